"""Shared pytest fixtures: async test client, isolated session registry, seeded stores."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import FarmConstants
from app.dependencies import get_session_registry
from app.main import app
from app.schemas.farm import FarmParameters
from app.services.session_store import SessionRegistry, SessionStore
from app.services.trend_simulator import TrendSimulator

BASELINE_FEED = 8.08
BASELINE_NITROGEN = 180.0
FEED_COST = 0.38


class FrozenClock:
	"""Registry clock that only moves when a test advances it."""

	def __init__(self) -> None:
		self.now = datetime(2024, 4, 1, 9, 0, tzinfo=UTC)

	def __call__(self) -> datetime:
		return self.now

	def advance(self, **delta: float) -> None:
		self.now += timedelta(**delta)


@pytest.fixture
def clock() -> FrozenClock:
	return FrozenClock()


@pytest.fixture
def constants() -> FarmConstants:
	return FarmConstants()


@pytest.fixture
def baseline_params() -> FarmParameters:
	return FarmParameters(concentrate_feed=BASELINE_FEED, nitrogen_rate=BASELINE_NITROGEN)


@pytest.fixture
def store(constants: FarmConstants, baseline_params: FarmParameters) -> SessionStore:
	"""A single session at the baseline parameters with deterministic trend noise."""
	return SessionStore(
		constants,
		params=baseline_params,
		feed_cost_per_kg=FEED_COST,
		simulator=TrendSimulator(seed=7),
	)


@pytest.fixture
def registry(constants: FarmConstants, baseline_params: FarmParameters, clock: FrozenClock) -> SessionRegistry:
	return SessionRegistry(
		constants,
		default_params=baseline_params,
		default_feed_cost_per_kg=FEED_COST,
		max_sessions=5,
		session_ttl=timedelta(minutes=30),
		trend_seed=11,
		clock=clock,
	)


@pytest.fixture
async def client(registry: SessionRegistry) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and the session registry overridden."""

	def override_registry() -> SessionRegistry:
		return registry

	app.dependency_overrides[get_session_registry] = override_registry
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
