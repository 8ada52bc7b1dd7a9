"""Domain-specific exceptions for service layer operations.

This module provides a structured exception hierarchy for the export engine,
enabling consistent error handling, logging, and client response generation.

Architecture:
- ServiceError: Base exception with correlation ID and context support
- Category Base Classes: Domain-specific base exceptions (BusinessError, InfrastructureError, etc.)
- Specific Exceptions: Concrete exceptions for export job scenarios

Errors raised while a claimed export job executes are caught at the job
lifecycle boundary and stored on the job as ``last_error``; only validation and
not-found errors reach API callers directly.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union
from http import HTTPStatus


class ErrorSeverity(Enum):
    """Error severity levels for logging and monitoring."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification and handling."""
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    EXTERNAL_SERVICE = "external_service"
    INFRASTRUCTURE = "infrastructure"
    SYSTEM = "system"


class ServiceError(Exception):
    """Base exception for all service layer errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for client handling
        correlation_id: Request correlation ID for tracing
        details: Additional error context (sanitized for logging)
        user_message: User-friendly message for client display
        severity: Error severity level for logging/monitoring
        category: Error category for classification
        http_status: HTTP status code for API responses
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SERVICE_ERROR",
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.correlation_id = correlation_id
        self.details = details or {}
        self.user_message = user_message or message
        self.severity = severity
        self.category = category
        self.http_status = http_status

    def to_dict(self, include_sensitive: bool = False) -> Dict[str, Any]:
        """Convert exception to dictionary for logging or client response.

        Args:
            include_sensitive: Whether to include sensitive details

        Returns:
            Dictionary representation of the error
        """
        result = {
            "error_code": self.error_code,
            "message": self.user_message,
            "severity": self.severity.value,
            "category": self.category.value,
            "http_status": self.http_status.value
        }

        if self.correlation_id:
            result["correlation_id"] = self.correlation_id

        if include_sensitive and self.details:
            result["details"] = self.details
            result["internal_message"] = self.message

        return result

    def __str__(self) -> str:
        return self.message


# =============================================================================
# AUTHENTICATION & AUTHORIZATION ERRORS
# =============================================================================

class AuthenticationError(ServiceError):
    """Bearer token missing, expired or malformed."""

    def __init__(
        self,
        message: str = "Authentication failed",
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code="AUTH_FAILED",
            correlation_id=correlation_id,
            user_message="Authentication failed. Please sign in again.",
            category=ErrorCategory.AUTHENTICATION,
            http_status=HTTPStatus.UNAUTHORIZED
        )


class BranchScopeError(ServiceError):
    """Principal restricted to some branches asked for data outside them."""

    def __init__(
        self,
        message: str,
        branch_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code="BRANCH_SCOPE_RESTRICTED",
            correlation_id=correlation_id,
            details={"branch_id": branch_id},
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.AUTHORIZATION,
            http_status=HTTPStatus.FORBIDDEN
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(ServiceError):
    """Input validation failed."""

    def __init__(
        self,
        field: str,
        message: str,
        correlation_id: Optional[str] = None,
        validation_errors: Optional[List[Dict[str, str]]] = None
    ):
        details = {"field": field, "validation_message": message}
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            correlation_id=correlation_id,
            details=details,
            user_message=f"Invalid {field}: {message}",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            http_status=HTTPStatus.BAD_REQUEST
        )


class UnsupportedExportTypeError(ValidationError):
    """Export type has no generator."""

    def __init__(
        self,
        export_type: str,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            field="type",
            message="Unsupported export type.",
            correlation_id=correlation_id,
            validation_errors=[{"type": str(export_type)}]
        )
        self.error_code = "EXPORTS_UNSUPPORTED_TYPE"


class AcknowledgementRequiredError(ValidationError):
    """Sensitive export requested without the expected acknowledgement."""

    def __init__(
        self,
        export_type: str,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            field="acknowledgement",
            message="Audit export requires acknowledgement.",
            correlation_id=correlation_id
        )
        self.error_code = "EXPORTS_ACKNOWLEDGEMENT_REQUIRED"
        self.details["type"] = export_type


# =============================================================================
# BUSINESS DOMAIN ERRORS
# =============================================================================

class BusinessError(ServiceError):
    """Base class for business domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        http_status: HTTPStatus = HTTPStatus.BAD_REQUEST
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            correlation_id=correlation_id,
            details=details,
            user_message=user_message,
            severity=severity,
            category=ErrorCategory.BUSINESS_RULE,
            http_status=http_status
        )


class ResourceNotFoundError(BusinessError):
    """Base class for resource not found errors."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Union[int, str],
        business_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ):
        details = {"resource_type": resource_type, "resource_id": resource_id}
        if business_id is not None:
            details["business_id"] = business_id

        super().__init__(
            message=f"{resource_type} not found",
            error_code=f"{resource_type.upper()}_NOT_FOUND",
            correlation_id=correlation_id,
            details=details,
            user_message=f"{resource_type} not found or you don't have permission to access it.",
            http_status=HTTPStatus.NOT_FOUND
        )
        self.category = ErrorCategory.RESOURCE_NOT_FOUND


class ExportJobNotFoundError(ResourceNotFoundError):
    """Export job not found within the caller's business."""

    def __init__(
        self,
        job_id: str,
        business_id: Optional[str] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            resource_type="ExportJob",
            resource_id=job_id,
            business_id=business_id,
            correlation_id=correlation_id
        )


# =============================================================================
# STORAGE & INFRASTRUCTURE ERRORS
# =============================================================================

class InfrastructureError(ServiceError):
    """Base class for infrastructure-related errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        http_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            correlation_id=correlation_id,
            details=details,
            user_message=user_message or "A system error occurred. Please try again later.",
            severity=severity,
            category=ErrorCategory.INFRASTRUCTURE,
            http_status=http_status
        )


class StorageError(InfrastructureError):
    """Object storage operation failed."""

    def __init__(
        self,
        operation: str,
        reason: str,
        key: Optional[str] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            message=f"Storage {operation} failed: {reason}",
            error_code="STORAGE_ERROR",
            correlation_id=correlation_id,
            details={"operation": operation, "key": key, "reason": reason},
            severity=ErrorSeverity.CRITICAL
        )


class StorageNotConfiguredError(InfrastructureError):
    """No bucket configured for object storage."""

    def __init__(self, correlation_id: Optional[str] = None):
        super().__init__(
            message="Storage bucket not configured.",
            error_code="STORAGE_NOT_CONFIGURED",
            correlation_id=correlation_id,
            severity=ErrorSeverity.CRITICAL
        )


class AttachmentDownloadError(InfrastructureError):
    """Fetching an attachment's bytes for a bundle failed."""

    def __init__(
        self,
        attachment_id: str,
        reason: str,
        status_code: Optional[int] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(
            message=reason,
            error_code="EXPORTS_HTTP_ERROR" if status_code is not None else "EXPORTS_DOWNLOAD_FAILED",
            correlation_id=correlation_id,
            details={"attachment_id": attachment_id, "status_code": status_code},
            severity=ErrorSeverity.MEDIUM,
            http_status=HTTPStatus.BAD_GATEWAY
        )
