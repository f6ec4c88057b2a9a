"""Free-text command route."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_session_registry
from app.schemas.ask import AskRequest, AskResponse
from app.services.session_store import SessionRegistry

router = APIRouter(prefix="/ask", tags=["ask"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="ask failure")


@router.post(
	"/{session_id}",
	response_model=AskResponse,
)
async def ask_session(
	session_id: uuid.UUID,
	payload: AskRequest,
	registry: SessionRegistry = Depends(get_session_registry),
) -> AskResponse:
	try:
		store = registry.get(session_id)
		outcome = store.submit_command(payload.question)
	except Exception as exc:
		raise _map_error(exc) from exc
	return AskResponse(
		session_id=session_id,
		question=payload.question,
		rule=outcome.rule,
		response=outcome.response,
		parameters=outcome.state.params,
		mutated=outcome.mutated,
	)
