"""Service dependency providers for FastAPI dependency injection."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from typing import Optional

from app.api.dependencies.database import get_db
from app.services.export_services import ExportJobService, build_export_job_service
from app.services.storage_services import StorageService


def get_correlation_id(request: Request) -> Optional[str]:
	"""Extract or generate correlation ID for logging and tracing."""
	from app.core.observability import generate_correlation_id
	cid = getattr(request.state, "correlation_id", None)
	if not cid:
		cid = generate_correlation_id(request.headers.get("X-Correlation-ID"))
		setattr(request.state, "correlation_id", cid)
	return cid


def get_storage_service(
    correlation_id: Optional[str] = Depends(get_correlation_id)
) -> StorageService:
    """Provide StorageService instance.

    StorageService is stateless and talks to MinIO directly; the client is
    created lazily on first use.
    """
    return StorageService(correlation_id=correlation_id)


def get_export_job_service(
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    correlation_id: Optional[str] = Depends(get_correlation_id)
) -> ExportJobService:
    """Provide ExportJobService wired the same way the background worker wires it."""
    return build_export_job_service(db, storage=storage, correlation_id=correlation_id)
