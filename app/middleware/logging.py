"""Structured logging for the API process.

structlog renders both its own loggers and the stdlib ``ghg_whatif.*``
loggers used by the engines, so ``extra=`` fields such as ``session_id``
reach the output. Request and session IDs are bound per request.
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import LogFormat, get_settings

_configured = False
_SESSION_PATH = re.compile(r"/api/v1/(?:sessions|ask)/([0-9a-fA-F\-]{36})(?:/|$)")

_SHARED_PROCESSORS: list[Any] = [
	structlog.contextvars.merge_contextvars,
	structlog.processors.add_log_level,
	structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def _renderer(log_format: LogFormat) -> Any:
	if log_format == LogFormat.console:
		return structlog.dev.ConsoleRenderer()
	return structlog.processors.JSONRenderer()


def stdlib_formatter(log_format: LogFormat) -> structlog.stdlib.ProcessorFormatter:
	"""Formatter that renders stdlib records, their ``extra`` fields included, like structlog events."""
	return structlog.stdlib.ProcessorFormatter(
		foreign_pre_chain=[
			*_SHARED_PROCESSORS,
			structlog.stdlib.add_logger_name,
			structlog.stdlib.ExtraAdder(),
		],
		processors=[
			structlog.stdlib.ProcessorFormatter.remove_processors_meta,
			_renderer(log_format),
		],
	)


def configure_structured_logging() -> None:
	"""Configure stdlib + structlog once for API process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	handler = logging.StreamHandler()
	handler.setFormatter(stdlib_formatter(settings.log_format))
	root = logging.getLogger()
	root.addHandler(handler)
	root.setLevel(log_level)

	structlog.configure(
		processors=[
			*_SHARED_PROCESSORS,
			structlog.processors.format_exc_info,
			_renderer(settings.log_format),
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def extract_session_id(path: str) -> uuid.UUID | None:
	match = _SESSION_PATH.search(path)
	if match is None:
		return None
	try:
		return uuid.UUID(match.group(1))
	except ValueError:
		return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Attach request IDs and emit structured per-request timing logs."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)
		session_id = extract_session_id(request.url.path)
		if session_id is not None:
			structlog.contextvars.bind_contextvars(session_id=str(session_id))

		logger = structlog.get_logger("ghg_whatif.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			duration_ms = (time.perf_counter() - start) * 1000.0
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=round(duration_ms, 2),
				error=str(exc),
			)
			raise

		duration_ms = (time.perf_counter() - start) * 1000.0
		response.headers["x-request-id"] = request_id
		logger.info(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=round(duration_ms, 2),
		)
		return response
