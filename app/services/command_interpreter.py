"""Free-text command dispatch: ordered substring rules, first match wins."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from app.config import FarmConstants
from app.models.enums import ResponseKindEnum
from app.schemas.ask import CommandResponse
from app.schemas.farm import FarmParameters
from app.schemas.session import SessionState
from app.services.suggestion_engine import NO_SUGGESTIONS_MESSAGE
from app.services.trend_simulator import TrendSimulator

_logger = logging.getLogger("ghg_whatif.command_interpreter")

REDUCE_FEED_PATTERN = re.compile(r"reduce feed by (\d+)%")

WELCOME_TEXT = "Welcome! I can help you analyze your farm's performance."
EXAMPLE_QUERIES: tuple[str, ...] = (
	"Show me emissions",
	"Analyze efficiency",
	"What if I reduce feed by 20%?",
)
HELP_TOPICS: tuple[str, ...] = (
	"Emissions data",
	"Efficiency analysis",
	"Feed reduction scenarios",
)
EFFICIENCY_RECOMMENDATIONS: tuple[str, ...] = (
	"Consider adjusting feed levels",
	"Optimize nitrogen application",
)


@dataclass(frozen=True, slots=True)
class Interpretation:
	rule: str
	response: CommandResponse
	mutation: FarmParameters | None = None


Handler = Callable[[str, SessionState], Interpretation]


@dataclass(frozen=True, slots=True)
class CommandRule:
	name: str
	required: tuple[str, ...]
	handler: Handler
	any_of: bool = False

	def matches(self, query: str) -> bool:
		if self.any_of:
			return any(token in query for token in self.required)
		return all(token in query for token in self.required)


def welcome_content() -> dict[str, object]:
	return {"text": WELCOME_TEXT, "examples": list(EXAMPLE_QUERIES)}


class CommandInterpreter:
	"""Maps an utterance to a response and, for feed reductions, a parameter mutation.

	The interpreter never touches session state; callers apply ``mutation``.
	"""

	def __init__(self, constants: FarmConstants, simulator: TrendSimulator):
		self.constants = constants
		self.simulator = simulator
		self.rules: tuple[CommandRule, ...] = (
			CommandRule("emissions_trend", ("show", "emissions"), self._emissions_trend),
			CommandRule("efficiency_analysis", ("analyze", "efficiency"), self._efficiency_analysis),
			CommandRule("reduce_feed", ("reduce feed",), self._reduce_feed),
			CommandRule("emissions_status", ("emission",), self._emissions_status),
			CommandRule("cost_status", ("cost",), self._cost_status),
			CommandRule("yield_status", ("yield",), self._yield_status),
			CommandRule("advisory", ("suggest", "advice", "advise", "recommend"), self._advisory, any_of=True),
		)

	def interpret(self, utterance: str, state: SessionState) -> Interpretation:
		query = utterance.lower().strip()
		for rule in self.rules:
			if rule.matches(query):
				_logger.debug("command_rule_matched", extra={"rule": rule.name})
				return rule.handler(query, state)
		return self._help()

	def _emissions_trend(self, _query: str, state: SessionState) -> Interpretation:
		points = self.simulator.simulate(state.metrics.emissions, state.timeframe.periods)
		return Interpretation(
			rule="emissions_trend",
			response=CommandResponse(
				kind=ResponseKindEnum.trend,
				text="Showing emissions trends over the selected timeframe",
				data={
					"metric": "emissions",
					"timeframe": state.timeframe.value,
					"points": [point.model_dump() for point in points],
				},
			),
		)

	def _efficiency_analysis(self, _query: str, state: SessionState) -> Interpretation:
		scores = state.efficiency.model_dump()
		return Interpretation(
			rule="efficiency_analysis",
			response=CommandResponse(
				kind=ResponseKindEnum.metrics,
				text="Efficiency analysis for the current parameters",
				data={
					"metrics": [
						{"label": f"{name.capitalize()} Efficiency", "value": round(value, 2), "unit": "%"}
						for name, value in scores.items()
					],
					"recommendations": list(EFFICIENCY_RECOMMENDATIONS),
				},
			),
		)

	def _reduce_feed(self, query: str, state: SessionState) -> Interpretation:
		match = REDUCE_FEED_PATTERN.search(query)
		if match is None:
			return Interpretation(
				rule="reduce_feed",
				response=CommandResponse(
					kind=ResponseKindEnum.help,
					text=(
						"Please specify the percentage by which you want to reduce the feed. "
						'E.g., "Reduce feed by 20%".'
					),
				),
			)

		percentage = int(match.group(1))
		if percentage <= 0 or percentage > 100:
			return Interpretation(
				rule="reduce_feed",
				response=CommandResponse(
					kind=ResponseKindEnum.error,
					text="Please specify a valid reduction percentage between 1 and 100.",
					data={"reduction_percent": percentage},
				),
			)

		current_feed = state.params.concentrate_feed
		new_feed = current_feed * (1 - percentage / 100)
		return Interpretation(
			rule="reduce_feed",
			response=CommandResponse(
				kind=ResponseKindEnum.confirmation,
				text=f"Feed reduced by {percentage}% to {new_feed:.2f} kg/day.",
				data={
					"reduction_percent": percentage,
					"previous_feed": current_feed,
					"new_feed": new_feed,
				},
			),
			mutation=FarmParameters(concentrate_feed=new_feed, nitrogen_rate=state.params.nitrogen_rate),
		)

	def _emissions_status(self, _query: str, state: SessionState) -> Interpretation:
		emissions = state.metrics.emissions
		if emissions > self.constants.emissions_threshold:
			verdict = "This is above the target threshold. Consider reducing concentrate feed."
		else:
			verdict = "This is within acceptable range."
		return self._info("emissions_status", f"Current emissions are {emissions:.2f} units. {verdict}", emissions)

	def _cost_status(self, _query: str, state: SessionState) -> Interpretation:
		cost = state.metrics.cost_per_litre
		if cost > self.constants.cost_per_litre_threshold:
			verdict = "This is above target. Review feed costs and efficiency."
		else:
			verdict = "This is within target range."
		symbol = self.constants.currency_symbol
		return self._info("cost_status", f"Current cost per litre is {symbol}{cost:.2f}. {verdict}", cost)

	def _yield_status(self, _query: str, state: SessionState) -> Interpretation:
		milk_yield = int(round(state.metrics.milk_yield))
		target = int(round(self.constants.target_yield))
		if milk_yield < target:
			verdict = f"This is {target - milk_yield}L below target."
		else:
			verdict = "This meets or exceeds the target."
		return self._info("yield_status", f"Current yield is {milk_yield} L/lactation. {verdict}", milk_yield)

	def _advisory(self, _query: str, state: SessionState) -> Interpretation:
		count = len(state.suggestions)
		text = f"{count} optimization suggestion(s) for the current parameters." if count else NO_SUGGESTIONS_MESSAGE
		return Interpretation(
			rule="advisory",
			response=CommandResponse(
				kind=ResponseKindEnum.advisory,
				text=text,
				data={"suggestions": [item.model_dump(mode="json") for item in state.suggestions]},
			),
		)

	@staticmethod
	def _info(rule: str, text: str, value: float) -> Interpretation:
		return Interpretation(
			rule=rule,
			response=CommandResponse(kind=ResponseKindEnum.info, text=text, data={"value": value}),
		)

	@staticmethod
	def _help() -> Interpretation:
		return Interpretation(
			rule="help",
			response=CommandResponse(
				kind=ResponseKindEnum.help,
				text="I'm not sure how to help with that query. Try asking about: "
				+ ", ".join(topic.lower() for topic in HELP_TOPICS)
				+ ".",
				data={"topics": list(HELP_TOPICS)},
			),
		)
