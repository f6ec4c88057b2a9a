"""Threshold-based optimization suggestions.

Each rule looks only at the current metrics and returns at most one
suggestion. Results are concatenated in rule order; priority does not
reorder them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from app.config import FarmConstants
from app.models.enums import PriorityEnum, SuggestionCategoryEnum
from app.schemas.farm import DerivedMetrics, EfficiencyScore, FarmParameters, Suggestion
from app.services.metrics_engine import DAYS_PER_YEAR, emissions_for_feed, yield_for_feed

FEED_REDUCTION_FACTOR = 0.9
NO_SUGGESTIONS_MESSAGE = "No optimization suggestions at this time."


@dataclass(frozen=True, slots=True)
class SuggestionContext:
	metrics: DerivedMetrics
	efficiency: EfficiencyScore
	params: FarmParameters
	feed_cost_per_kg: float
	constants: FarmConstants


def _feed_reduction(ctx: SuggestionContext) -> Suggestion | None:
	if ctx.metrics.emissions <= ctx.constants.emissions_threshold:
		return None

	feed = ctx.params.concentrate_feed
	reduced_feed = feed * FEED_REDUCTION_FACTOR
	current_emissions = ctx.metrics.emissions
	reduced_emissions = emissions_for_feed(reduced_feed, ctx.constants)
	emissions_cut = (current_emissions - reduced_emissions) / current_emissions * 100
	annual_saving = (feed - reduced_feed) * ctx.feed_cost_per_kg * DAYS_PER_YEAR
	current_yield = yield_for_feed(feed, ctx.constants)
	yield_change = (yield_for_feed(reduced_feed, ctx.constants) - current_yield) / current_yield * 100

	return Suggestion(
		priority=PriorityEnum.high,
		category=SuggestionCategoryEnum.environmental,
		action=f"Consider reducing concentrate feed to {reduced_feed:.2f} kg/day",
		impact={
			"emissions": f"{emissions_cut:.1f}% reduction",
			"cost": f"{ctx.constants.currency_symbol}{annual_saving:.2f} annual savings",
			"yield": f"{yield_change:.1f}% yield impact",
		},
	)


def _operational_efficiency(ctx: SuggestionContext) -> Suggestion | None:
	gap = ctx.constants.operational_target - ctx.efficiency.operational
	if gap <= 0:
		return None
	return Suggestion(
		priority=PriorityEnum.medium,
		category=SuggestionCategoryEnum.operational,
		action="Optimize protein and nitrogen efficiency",
		impact={
			"potential": f"{gap:.1f}% efficiency improvement possible",
			"cost": "Estimated 5-10% cost reduction",
			"environmental": "Reduced environmental impact",
		},
	)


def _nitrogen_timing(ctx: SuggestionContext) -> Suggestion | None:
	if ctx.metrics.nitrogen_efficiency >= ctx.constants.nitrogen_efficiency_threshold:
		return None
	return Suggestion(
		priority=PriorityEnum.medium,
		category=SuggestionCategoryEnum.nitrogen,
		action="Optimize nitrogen application timing",
		impact={"nitrogen": "Could improve N efficiency by up to 15%"},
	)


def _protein_content(ctx: SuggestionContext) -> Suggestion | None:
	threshold = ctx.constants.protein_efficiency_threshold
	if ctx.metrics.protein_efficiency >= threshold:
		return None
	return Suggestion(
		priority=PriorityEnum.medium,
		category=SuggestionCategoryEnum.protein,
		action="Review protein content in concentrate feed",
		impact={"protein": f"Target protein efficiency above {threshold:g}%"},
	)


def _cost_reduction(ctx: SuggestionContext) -> Suggestion | None:
	threshold = ctx.constants.cost_per_litre_threshold
	if ctx.metrics.cost_per_litre <= threshold:
		return None
	symbol = ctx.constants.currency_symbol
	return Suggestion(
		priority=PriorityEnum.high,
		category=SuggestionCategoryEnum.cost,
		action="Consider cost reduction strategies",
		impact={
			"cost": (
				f"Current cost {symbol}{ctx.metrics.cost_per_litre:.2f}/L "
				f"exceeds target of {symbol}{threshold:.2f}/L"
			),
		},
	)


SUGGESTION_RULES: tuple[Callable[[SuggestionContext], Suggestion | None], ...] = (
	_feed_reduction,
	_operational_efficiency,
	_nitrogen_timing,
	_protein_content,
	_cost_reduction,
)


def generate_suggestions(
	metrics: DerivedMetrics,
	efficiency: EfficiencyScore,
	params: FarmParameters,
	feed_cost_per_kg: float,
	constants: FarmConstants,
) -> list[Suggestion]:
	ctx = SuggestionContext(
		metrics=metrics,
		efficiency=efficiency,
		params=params,
		feed_cost_per_kg=feed_cost_per_kg,
		constants=constants,
	)
	suggestions: list[Suggestion] = []
	for rule in SUGGESTION_RULES:
		suggestion = rule(ctx)
		if suggestion is not None:
			suggestions.append(suggestion)
	return suggestions
