from __future__ import annotations

from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, **payload: object) -> dict:
	response = await client.post("/api/v1/sessions", json=payload or None)
	assert response.status_code == 201
	return response.json()


@pytest.mark.asyncio
async def test_create_session_with_defaults(client: AsyncClient) -> None:
	body = await _create(client)

	assert body["params"] == {"concentrate_feed": 8.08, "nitrogen_rate": 180.0}
	assert body["feed_cost_per_kg"] == 0.38
	assert body["timeframe"] == "6m"
	assert body["display"]["emissions"] == 1.39
	assert body["display"]["milk_yield"] == 8750
	assert [item["category"] for item in body["suggestions"]] == ["operational", "cost"]
	assert [point["label"] for point in body["performance"]] == ["Jan", "Feb", "Mar", "Apr"]
	statuses = {item["metric"]: item["status"] for item in body["kpis"]}
	assert statuses["cost_per_litre"] == "attention"


@pytest.mark.asyncio
async def test_create_session_with_overrides(client: AsyncClient) -> None:
	body = await _create(
		client,
		parameters={"concentrate_feed": 12.0},
		feed_cost_per_kg=0.5,
		timeframe="12m",
	)
	assert body["params"]["concentrate_feed"] == 12.0
	assert body["feed_cost_per_kg"] == 0.5
	assert body["timeframe"] == "12m"
	assert body["suggestions"][0]["category"] == "environmental"


@pytest.mark.asyncio
async def test_unknown_session_returns_404(client: AsyncClient) -> None:
	response = await client.get(f"/api/v1/sessions/{uuid4()}")
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_parameters_runs_update_protocol(client: AsyncClient) -> None:
	session_id = (await _create(client))["session_id"]

	response = await client.put(
		f"/api/v1/sessions/{session_id}/parameters",
		json={"concentrate_feed": 12.0},
	)
	assert response.status_code == 200
	body = response.json()
	assert body["params"] == {"concentrate_feed": 12.0, "nitrogen_rate": 180.0}
	assert body["display"]["emissions"] == 1.59
	assert body["performance"][-1]["label"] == "May"

	messages = (await client.get(f"/api/v1/sessions/{session_id}/messages")).json()["items"]
	assert [m["kind"] for m in messages] == ["welcome", "alert"]


@pytest.mark.asyncio
async def test_update_parameters_coerces_bad_input_to_zero(client: AsyncClient) -> None:
	session_id = (await _create(client))["session_id"]

	response = await client.put(
		f"/api/v1/sessions/{session_id}/parameters",
		json={"concentrate_feed": "lots", "nitrogen_rate": -20},
	)
	assert response.status_code == 200
	assert response.json()["params"] == {"concentrate_feed": 0.0, "nitrogen_rate": 0.0}


@pytest.mark.asyncio
async def test_feed_cost_update_and_rejection(client: AsyncClient) -> None:
	session_id = (await _create(client))["session_id"]

	accepted = await client.put(f"/api/v1/sessions/{session_id}/feed-cost", json={"feed_cost_per_kg": 0.1})
	assert accepted.status_code == 200
	assert accepted.json()["feed_cost_per_kg"] == 0.1

	rejected = await client.put(f"/api/v1/sessions/{session_id}/feed-cost", json={"feed_cost_per_kg": "free"})
	assert rejected.status_code == 200
	assert rejected.json()["feed_cost_per_kg"] == 0.1

	messages = (await client.get(f"/api/v1/sessions/{session_id}/messages")).json()["items"]
	assert messages[-1]["kind"] == "error"
	assert messages[-1]["content"] == "Feed cost must be a positive number."


@pytest.mark.asyncio
async def test_timeframe_controls_trend_length(client: AsyncClient) -> None:
	session_id = (await _create(client))["session_id"]

	six = (await client.get(f"/api/v1/sessions/{session_id}/trend")).json()
	assert six["metric"] == "emissions"
	assert len(six["points"]) == 6

	update = await client.put(f"/api/v1/sessions/{session_id}/timeframe", json={"timeframe": "12m"})
	assert update.status_code == 200

	twelve = (await client.get(f"/api/v1/sessions/{session_id}/trend", params={"metric": "efficiency"})).json()
	assert twelve["timeframe"] == "12m"
	assert twelve["metric"] == "efficiency"
	assert len(twelve["points"]) == 12

	performance = (await client.get(f"/api/v1/sessions/{session_id}/performance")).json()
	assert len(performance["points"]) == 4


@pytest.mark.asyncio
async def test_invalid_timeframe_is_rejected(client: AsyncClient) -> None:
	session_id = (await _create(client))["session_id"]
	response = await client.put(f"/api/v1/sessions/{session_id}/timeframe", json={"timeframe": "3m"})
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_suggestions_endpoint_lists_current_items(client: AsyncClient) -> None:
	session_id = (await _create(client, feed_cost_per_kg=0.01))["session_id"]

	body = (await client.get(f"/api/v1/sessions/{session_id}/suggestions")).json()
	assert [item["category"] for item in body["items"]] == ["operational"]
	assert body["empty_message"] is None


@pytest.mark.asyncio
async def test_delete_session(client: AsyncClient) -> None:
	session_id = (await _create(client))["session_id"]

	response = await client.delete(f"/api/v1/sessions/{session_id}")
	assert response.status_code == 204
	assert (await client.get(f"/api/v1/sessions/{session_id}")).status_code == 404
	assert (await client.delete(f"/api/v1/sessions/{session_id}")).status_code == 404


@pytest.mark.asyncio
async def test_session_limit_returns_429(client: AsyncClient) -> None:
	for _ in range(5):
		await _create(client)
	response = await client.post("/api/v1/sessions")
	assert response.status_code == 429


@pytest.mark.asyncio
async def test_idle_sessions_expire_and_free_capacity(client: AsyncClient, clock: Any) -> None:
	abandoned = [(await _create(client))["session_id"] for _ in range(5)]
	assert (await client.post("/api/v1/sessions")).status_code == 429

	clock.advance(minutes=31)
	response = await client.post("/api/v1/sessions")

	assert response.status_code == 201
	assert (await client.get(f"/api/v1/sessions/{abandoned[0]}")).status_code == 404


@pytest.mark.asyncio
async def test_sessions_openapi_contract(client: AsyncClient) -> None:
	response = await client.get("/openapi.json")
	assert response.status_code == 200
	paths = response.json()["paths"]
	assert "/api/v1/sessions" in paths
	assert "/api/v1/sessions/{session_id}/parameters" in paths
	assert "/api/v1/sessions/{session_id}/feed-cost" in paths
	assert "/api/v1/sessions/{session_id}/timeframe" in paths
	assert "/api/v1/sessions/{session_id}/messages" in paths
	assert "/api/v1/sessions/{session_id}/suggestions" in paths
	assert "/api/v1/sessions/{session_id}/trend" in paths
	assert "/api/v1/sessions/{session_id}/performance" in paths
