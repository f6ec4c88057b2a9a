"""Request-scoped access to the process-local session registry."""

from __future__ import annotations

from fastapi import Request

from app.config import get_constants, get_settings
from app.services.session_store import SessionRegistry


def build_session_registry() -> SessionRegistry:
	return SessionRegistry.from_settings(get_settings(), get_constants())


def get_session_registry(request: Request) -> SessionRegistry:
	registry = getattr(request.app.state, "sessions", None)
	if registry is None:
		registry = build_session_registry()
		request.app.state.sessions = registry
	return registry
