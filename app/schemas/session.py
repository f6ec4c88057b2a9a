"""Pydantic schemas for session state and session endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import TimeframeEnum, TrendMetricEnum
from app.schemas.farm import (
	DerivedMetrics,
	EfficiencyScore,
	FarmParameters,
	KpiStatus,
	Message,
	ParameterUpdate,
	Suggestion,
	TrendPoint,
)


class SessionState(BaseModel):
	"""Everything derived from one parameter set, published as a single value."""

	model_config = ConfigDict(frozen=True)

	params: FarmParameters
	feed_cost_per_kg: float = Field(gt=0)
	metrics: DerivedMetrics
	efficiency: EfficiencyScore
	suggestions: list[Suggestion] = Field(default_factory=list)
	timeframe: TimeframeEnum = TimeframeEnum.six_months
	performance: list[TrendPoint] = Field(default_factory=list)


class SessionCreate(BaseModel):
	parameters: ParameterUpdate | None = None
	feed_cost_per_kg: float | None = Field(default=None, gt=0)
	timeframe: TimeframeEnum | None = None
	seed: int | None = None


class TimeframeUpdate(BaseModel):
	timeframe: TimeframeEnum


class SessionRead(BaseModel):
	session_id: uuid.UUID
	created_at: datetime
	params: FarmParameters
	feed_cost_per_kg: float
	timeframe: TimeframeEnum
	metrics: DerivedMetrics
	display: dict[str, float | int]
	efficiency: EfficiencyScore
	kpis: list[KpiStatus] = Field(default_factory=list)
	suggestions: list[Suggestion] = Field(default_factory=list)
	performance: list[TrendPoint] = Field(default_factory=list)


class MessageListRead(BaseModel):
	session_id: uuid.UUID
	items: list[Message]


class SuggestionListRead(BaseModel):
	session_id: uuid.UUID
	items: list[Suggestion]
	empty_message: str | None = None


class TrendRead(BaseModel):
	session_id: uuid.UUID
	metric: TrendMetricEnum
	timeframe: TimeframeEnum
	points: list[TrendPoint]


class PerformanceRead(BaseModel):
	session_id: uuid.UUID
	points: list[TrendPoint]
