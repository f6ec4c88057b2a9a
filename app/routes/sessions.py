"""Session lifecycle, parameter updates and derived-view routes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.dependencies import get_session_registry
from app.models.enums import TrendMetricEnum
from app.schemas.farm import FeedCostUpdate, ParameterUpdate
from app.schemas.session import (
	MessageListRead,
	PerformanceRead,
	SessionCreate,
	SessionRead,
	SuggestionListRead,
	TimeframeUpdate,
	TrendRead,
)
from app.services.metrics_engine import kpi_statuses
from app.services.session_store import SessionLimitError, SessionRegistry, SessionStore
from app.services.suggestion_engine import NO_SUGGESTIONS_MESSAGE

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, SessionLimitError):
		return HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected session failure",
	)


def _to_session_read(store: SessionStore) -> SessionRead:
	state = store.state
	return SessionRead(
		session_id=store.session_id,
		created_at=store.created_at,
		params=state.params,
		feed_cost_per_kg=state.feed_cost_per_kg,
		timeframe=state.timeframe,
		metrics=state.metrics,
		display=state.metrics.display(),
		efficiency=state.efficiency,
		kpis=kpi_statuses(state.metrics, store.constants),
		suggestions=state.suggestions,
		performance=state.performance,
	)


def _get_store(registry: SessionRegistry, session_id: uuid.UUID) -> SessionStore:
	try:
		return registry.get(session_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
	payload: SessionCreate | None = None,
	registry: SessionRegistry = Depends(get_session_registry),
) -> SessionRead:
	try:
		store = registry.create(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	return _to_session_read(store)


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(
	session_id: uuid.UUID,
	registry: SessionRegistry = Depends(get_session_registry),
) -> SessionRead:
	return _to_session_read(_get_store(registry, session_id))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
	session_id: uuid.UUID,
	registry: SessionRegistry = Depends(get_session_registry),
) -> Response:
	try:
		registry.delete(session_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{session_id}/parameters", response_model=SessionRead)
async def update_parameters(
	session_id: uuid.UUID,
	payload: ParameterUpdate,
	registry: SessionRegistry = Depends(get_session_registry),
) -> SessionRead:
	store = _get_store(registry, session_id)
	store.apply_parameters(payload.merged_with(store.state.params))
	return _to_session_read(store)


@router.put("/{session_id}/feed-cost", response_model=SessionRead)
async def update_feed_cost(
	session_id: uuid.UUID,
	payload: FeedCostUpdate,
	registry: SessionRegistry = Depends(get_session_registry),
) -> SessionRead:
	store = _get_store(registry, session_id)
	store.set_feed_cost(payload.feed_cost_per_kg)
	return _to_session_read(store)


@router.put("/{session_id}/timeframe", response_model=SessionRead)
async def update_timeframe(
	session_id: uuid.UUID,
	payload: TimeframeUpdate,
	registry: SessionRegistry = Depends(get_session_registry),
) -> SessionRead:
	store = _get_store(registry, session_id)
	store.set_timeframe(payload.timeframe)
	return _to_session_read(store)


@router.get("/{session_id}/messages", response_model=MessageListRead)
async def list_messages(
	session_id: uuid.UUID,
	registry: SessionRegistry = Depends(get_session_registry),
) -> MessageListRead:
	store = _get_store(registry, session_id)
	return MessageListRead(session_id=session_id, items=list(store.messages))


@router.get("/{session_id}/suggestions", response_model=SuggestionListRead)
async def list_suggestions(
	session_id: uuid.UUID,
	registry: SessionRegistry = Depends(get_session_registry),
) -> SuggestionListRead:
	store = _get_store(registry, session_id)
	items = store.state.suggestions
	return SuggestionListRead(
		session_id=session_id,
		items=items,
		empty_message=None if items else NO_SUGGESTIONS_MESSAGE,
	)


@router.get("/{session_id}/trend", response_model=TrendRead)
async def get_trend(
	session_id: uuid.UUID,
	metric: TrendMetricEnum = Query(default=TrendMetricEnum.emissions),
	registry: SessionRegistry = Depends(get_session_registry),
) -> TrendRead:
	store = _get_store(registry, session_id)
	return TrendRead(
		session_id=session_id,
		metric=metric,
		timeframe=store.state.timeframe,
		points=store.trend(metric),
	)


@router.get("/{session_id}/performance", response_model=PerformanceRead)
async def get_performance(
	session_id: uuid.UUID,
	registry: SessionRegistry = Depends(get_session_registry),
) -> PerformanceRead:
	store = _get_store(registry, session_id)
	return PerformanceRead(session_id=session_id, points=store.state.performance)
