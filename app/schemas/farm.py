"""Pydantic schemas for farm parameters and the values derived from them."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import KpiStatusEnum, MessageKindEnum, PriorityEnum, SuggestionCategoryEnum


def _coerce_non_negative(value: Any) -> float | None:
	if value is None:
		return None
	try:
		number = float(value)
	except (TypeError, ValueError):
		return 0.0
	if not math.isfinite(number) or number < 0:
		return 0.0
	return number


class FarmParameters(BaseModel):
	model_config = ConfigDict(frozen=True)

	concentrate_feed: float = Field(ge=0, description="kg/day")
	nitrogen_rate: float = Field(ge=0, description="kg N/ha/yr")


class ParameterUpdate(BaseModel):
	"""Raw operator input. Non-numeric or negative values are coerced to 0."""

	concentrate_feed: float | None = None
	nitrogen_rate: float | None = None

	@field_validator("concentrate_feed", "nitrogen_rate", mode="before")
	@classmethod
	def _sanitize(cls, value: Any) -> float | None:
		return _coerce_non_negative(value)

	def merged_with(self, current: FarmParameters) -> FarmParameters:
		return FarmParameters(
			concentrate_feed=current.concentrate_feed if self.concentrate_feed is None else self.concentrate_feed,
			nitrogen_rate=current.nitrogen_rate if self.nitrogen_rate is None else self.nitrogen_rate,
		)


class FeedCostUpdate(BaseModel):
	feed_cost_per_kg: float

	@field_validator("feed_cost_per_kg", mode="before")
	@classmethod
	def _to_float(cls, value: Any) -> float:
		try:
			return float(value)
		except (TypeError, ValueError):
			return math.nan


class DerivedMetrics(BaseModel):
	model_config = ConfigDict(frozen=True)

	emissions: float
	milk_yield: float = Field(description="L/lactation")
	cost_per_litre: float
	protein_efficiency: float
	nitrogen_efficiency: float

	def display(self) -> dict[str, float | int]:
		"""Rounded values for presentation; the model itself keeps full precision."""
		return {
			"emissions": round(self.emissions, 2),
			"milk_yield": int(round(self.milk_yield)),
			"cost_per_litre": round(self.cost_per_litre, 2),
			"protein_efficiency": round(self.protein_efficiency, 1),
			"nitrogen_efficiency": round(self.nitrogen_efficiency, 1),
		}


class EfficiencyScore(BaseModel):
	model_config = ConfigDict(frozen=True)

	environmental: float
	economic: float
	operational: float
	total: float


class Suggestion(BaseModel):
	model_config = ConfigDict(frozen=True)

	priority: PriorityEnum
	category: SuggestionCategoryEnum
	action: str = Field(min_length=1)
	impact: dict[str, str] = Field(default_factory=dict)


class Message(BaseModel):
	model_config = ConfigDict(frozen=True)

	kind: MessageKindEnum
	content: str | dict[str, Any]
	timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class TrendPoint(BaseModel):
	model_config = ConfigDict(frozen=True)

	label: str
	value: float
	smoothed_value: float | None = None
	target: float | None = None
	cost: float | None = None


class KpiStatus(BaseModel):
	metric: str
	value: float
	threshold: float
	status: KpiStatusEnum
