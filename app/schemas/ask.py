"""Pydantic schemas for the /ask free-text command endpoint."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ResponseKindEnum
from app.schemas.farm import FarmParameters


class AskRequest(BaseModel):
	model_config = ConfigDict(str_strip_whitespace=True)

	question: str = Field(min_length=1, max_length=2000)


class CommandResponse(BaseModel):
	kind: ResponseKindEnum
	text: str
	data: dict[str, Any] = Field(default_factory=dict)


class AskResponse(BaseModel):
	session_id: uuid.UUID
	question: str
	rule: str
	response: CommandResponse
	parameters: FarmParameters
	mutated: bool = False
