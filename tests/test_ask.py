from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.services.session_store import SessionRegistry


@pytest.mark.asyncio
async def test_ask_reduce_feed_mutates_session(client: AsyncClient, registry: SessionRegistry) -> None:
	store = registry.create()

	response = await client.post(f"/api/v1/ask/{store.session_id}", json={"question": "Reduce feed by 20%"})

	assert response.status_code == 200
	body = response.json()
	assert body["rule"] == "reduce_feed"
	assert body["mutated"] is True
	assert body["response"]["kind"] == "confirmation"
	assert "20%" in body["response"]["text"]
	assert "6.46" in body["response"]["text"]
	assert body["parameters"]["concentrate_feed"] == pytest.approx(6.464)
	assert body["response"]["data"]["metrics"] == store.state.metrics.display()

	snapshot = (await client.get(f"/api/v1/sessions/{store.session_id}")).json()
	assert snapshot["params"]["concentrate_feed"] == pytest.approx(6.464)


@pytest.mark.asyncio
async def test_ask_validation_error_is_logged_not_raised(client: AsyncClient, registry: SessionRegistry) -> None:
	store = registry.create()

	response = await client.post(f"/api/v1/ask/{store.session_id}", json={"question": "reduce feed by 150%"})

	assert response.status_code == 200
	body = response.json()
	assert body["mutated"] is False
	assert body["response"]["kind"] == "error"
	assert body["parameters"]["concentrate_feed"] == 8.08

	messages = (await client.get(f"/api/v1/sessions/{store.session_id}/messages")).json()["items"]
	assert [m["kind"] for m in messages] == ["welcome", "user", "error"]
	assert messages[1]["content"] == "reduce feed by 150%"


@pytest.mark.asyncio
async def test_ask_unrecognized_returns_help(client: AsyncClient, registry: SessionRegistry) -> None:
	store = registry.create()

	response = await client.post(f"/api/v1/ask/{store.session_id}", json={"question": "banana"})

	body = response.json()
	assert body["rule"] == "help"
	assert body["response"]["kind"] == "help"
	assert body["mutated"] is False


@pytest.mark.asyncio
async def test_ask_show_emissions_returns_trend(client: AsyncClient, registry: SessionRegistry) -> None:
	store = registry.create()

	response = await client.post(f"/api/v1/ask/{store.session_id}", json={"question": "show emissions"})

	data = response.json()["response"]["data"]
	assert data["metric"] == "emissions"
	assert len(data["points"]) == 6


@pytest.mark.asyncio
async def test_ask_unknown_session_returns_404(client: AsyncClient) -> None:
	response = await client.post(f"/api/v1/ask/{uuid4()}", json={"question": "banana"})
	assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("question", ["", "   ", "\n\t"])
async def test_ask_rejects_blank_question(client: AsyncClient, registry: SessionRegistry, question: str) -> None:
	store = registry.create()
	response = await client.post(f"/api/v1/ask/{store.session_id}", json={"question": question})
	assert response.status_code == 422
	assert len(store.messages) == 1


@pytest.mark.asyncio
async def test_ask_strips_surrounding_whitespace(client: AsyncClient, registry: SessionRegistry) -> None:
	store = registry.create()
	response = await client.post(f"/api/v1/ask/{store.session_id}", json={"question": "  reduce feed by 10%  "})

	body = response.json()
	assert body["question"] == "reduce feed by 10%"
	assert body["rule"] == "reduce_feed"
	assert store.messages[1].content == "reduce feed by 10%"


@pytest.mark.asyncio
async def test_ask_openapi_contract(client: AsyncClient) -> None:
	response = await client.get("/openapi.json")
	assert response.status_code == 200

	body = response.json()
	assert "/api/v1/ask/{session_id}" in body["paths"]

	schema = body["components"]["schemas"]["AskResponse"]
	required = set(schema["required"])
	assert "response" in required
	assert "rule" in required
	assert "parameters" in schema["properties"]
