"""Base service class with common functionality for all services."""

import logging
from typing import Optional, Callable, TypeVar, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

T = TypeVar("T")


class BaseService:
    """Base service class providing common functionality for all services.

    Provides:
    - Transaction handling with rollback
    - Structured logging with correlation ID
    - Repository coordination for business operations
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id
        self.logger = logging.getLogger(self.__class__.__name__)

    def _set_repositories(self, **repositories):
        """Attach repository instances as attributes, e.g. ``self.job_repo``."""
        for name, repo in repositories.items():
            setattr(self, name, repo)

    def run_in_transaction(self, db: Session, operation: Callable[[], T], name: Optional[str] = None) -> T:
        """Execute operation within a database transaction.

        Commits on success, rolls back on any exception and re-raises it.

        Args:
            db: Database session to use for the transaction
            operation: Callable that performs database operations
            name: Optional operation name for the log record

        Returns:
            Result of the operation
        """
        log_extra = {
            "correlation_id": self.correlation_id,
            "service": self.__class__.__name__,
            "operation": name,
        }
        try:
            result = operation()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            self.logger.error(
                "Database error occurred, transaction rolled back",
                extra={**log_extra, "error": str(e)}
            )
            raise
        except Exception as e:
            db.rollback()
            self.logger.error(
                "Unexpected error occurred, transaction rolled back",
                extra={**log_extra, "error": str(e)}
            )
            raise
        self.logger.debug("Transaction committed successfully", extra=log_extra)
        return result

    def log_operation(self, operation: str, **kwargs: Any) -> None:
        """Log service operation with structured fields."""
        log_data = {
            "correlation_id": self.correlation_id,
            "service": self.__class__.__name__,
            "operation": operation,
            **kwargs
        }
        self.logger.info(f"Service operation: {operation}", extra=log_data)
