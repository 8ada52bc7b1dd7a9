from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional, Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.config import settings

CORRELATION_HEADER = "X-Correlation-ID"

request_logger = logging.getLogger("exports.http")
outbound_logger = logging.getLogger("exports.outbound")


def generate_correlation_id(existing: Optional[str]) -> str:
	if existing and existing.strip():
		return existing.strip()
	return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Middleware to log inbound HTTP requests with correlation IDs."""

	async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
		correlation_id = generate_correlation_id(request.headers.get(CORRELATION_HEADER))
		setattr(request.state, "correlation_id", correlation_id)

		if not settings.ENABLE_REQUEST_LOGGING:
			response = await call_next(request)
			response.headers[CORRELATION_HEADER] = correlation_id
			return response

		start_ns = time.monotonic_ns()
		status_code: int = 500
		try:
			response = await call_next(request)
			status_code = response.status_code
		finally:
			duration_ms = int((time.monotonic_ns() - start_ns) / 1_000_000)
			request_logger.info(
				"%s %s -> %s",
				request.method,
				request.url.path,
				status_code,
				extra=_build_inbound_payload(request, correlation_id, status_code, duration_ms),
			)

		response.headers[CORRELATION_HEADER] = correlation_id
		return response


def _build_inbound_payload(request: Request, correlation_id: str, status_code: int, duration_ms: int) -> dict:
	# Route template is unavailable for 404s and errors raised before routing
	route = request.scope.get("route")
	path_template = getattr(route, "path", None) if route is not None else None

	xff = request.headers.get("x-forwarded-for")
	client_ip = (xff.split(",")[0].strip() if xff else (request.client.host if request.client else None))

	return {
		"correlation_id": correlation_id,
		"method": request.method,
		"raw_path": request.url.path,
		"path_template": path_template or request.url.path,
		"status_code": status_code,
		"duration_ms": duration_ms,
		"client_ip": client_ip,
		"user_agent": (request.headers.get("user-agent") or "")[:256],
	}


def log_outbound_call(provider: str, target: str, operation: str, correlation_id: Optional[str], call: Callable[[], Any]) -> Any:
	"""Execute an outbound call and log its duration and outcome.

	Args:
		provider: External provider name (e.g., minio, http)
		target: Target entity (e.g., object key, URL host)
		operation: Operation name
		correlation_id: Correlation ID for linkage
		call: Callable that performs the operation

	Returns:
		Result of `call()`
	"""
	if not settings.ENABLE_OUTBOUND_LOGGING:
		return call()

	start_ns = time.monotonic_ns()
	error_code: Optional[str] = None
	try:
		return call()
	except Exception as e:
		error_code = type(e).__name__
		raise
	finally:
		duration_ms = int((time.monotonic_ns() - start_ns) / 1_000_000)
		outbound_logger.log(
			logging.WARNING if error_code else logging.INFO,
			"%s %s %s",
			provider,
			operation,
			"failed" if error_code else "ok",
			extra={
				"correlation_id": correlation_id,
				"provider": provider,
				"target": target,
				"operation": operation,
				"duration_ms": duration_ms,
				"error_code": error_code,
			},
		)


def configure_logging(level: Optional[str] = None) -> None:
	logging.basicConfig(
		level=(level or settings.LOG_LEVEL).upper(),
		format="%(asctime)s %(levelname)s %(name)s %(message)s",
	)
