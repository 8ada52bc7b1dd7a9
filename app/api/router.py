from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter


# Error responses every export route can produce; ServiceError subclasses map onto these
DEFAULT_ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Unsupported export type or missing acknowledgement"},
    401: {"description": "Missing or invalid bearer token"},
    403: {"description": "Branch-restricted principal"},
    404: {"description": "Export job not found in this business"},
    422: {"description": "Request validation failed"},
    500: {"description": "Internal Server Error"},
}


def create_router(*, name: Optional[str] = None) -> APIRouter:
    """Build an APIRouter carrying the shared error responses."""
    router = APIRouter(responses=dict(DEFAULT_ERROR_RESPONSES))
    if name:
        setattr(router, "name", name)
    return router
