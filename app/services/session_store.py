"""Per-session state holder and the single update protocol.

Every parameter or feed-cost change goes through ``_recompute``: metrics,
efficiency, suggestions and the performance window are derived together
and published as one ``SessionState`` assignment.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from app.config import FarmConstants, Settings
from app.models.enums import MessageKindEnum, ResponseKindEnum, TimeframeEnum, TrendMetricEnum
from app.schemas.ask import CommandResponse
from app.schemas.farm import DerivedMetrics, FarmParameters, Message, TrendPoint
from app.schemas.session import SessionCreate, SessionState
from app.services.command_interpreter import CommandInterpreter, welcome_content
from app.services.metrics_engine import DomainError, compute_efficiency, compute_metrics
from app.services.suggestion_engine import generate_suggestions
from app.services.trend_simulator import TrendSimulator, advance_window, initial_performance_window

_logger = logging.getLogger("ghg_whatif.session_store")


class SessionLimitError(RuntimeError):
	"""Raised when the registry already holds the configured number of sessions."""


@dataclass(frozen=True, slots=True)
class CommandOutcome:
	rule: str
	response: CommandResponse
	state: SessionState
	mutated: bool = False


def _signed(delta: float, decimals: int) -> str:
	delta = round(delta, decimals)
	if delta == 0:
		delta = 0.0
	if decimals == 0:
		return f"{int(delta):+d}"
	return f"{delta:+.{decimals}f}"


def change_summary(old: DerivedMetrics, new: DerivedMetrics, currency_symbol: str) -> dict[str, Any]:
	"""Old vs new display values for every metric, with signed deltas."""
	before = old.display()
	after = new.display()
	fields = (
		("emissions", "Emissions", "", "", 2),
		("milk_yield", "Yield", "", " L/lactation", 0),
		("cost_per_litre", "Cost per litre", currency_symbol, "", 2),
		("protein_efficiency", "Protein efficiency", "", "%", 1),
		("nitrogen_efficiency", "N efficiency", "", "%", 1),
	)
	changes: list[dict[str, Any]] = []
	lines = ["Parameter update summary:"]
	for key, label, prefix, suffix, decimals in fields:
		delta = _signed(after[key] - before[key], decimals)
		changes.append({"metric": key, "label": label, "old": before[key], "new": after[key], "delta": delta})
		lines.append(f"• {label}: {prefix}{before[key]} → {prefix}{after[key]}{suffix} ({delta})")
	return {"text": "\n".join(lines), "changes": changes}


class SessionStore:
	def __init__(
		self,
		constants: FarmConstants,
		*,
		params: FarmParameters,
		feed_cost_per_kg: float,
		timeframe: TimeframeEnum = TimeframeEnum.six_months,
		simulator: TrendSimulator | None = None,
		session_id: uuid.UUID | None = None,
	):
		if not math.isfinite(feed_cost_per_kg) or feed_cost_per_kg <= 0:
			raise ValueError("feed_cost_per_kg must be a positive number")

		self.session_id = session_id or uuid.uuid4()
		self.created_at = datetime.now(UTC)
		self.last_seen_at = self.created_at
		self.constants = constants
		self.simulator = simulator or TrendSimulator()
		self.interpreter = CommandInterpreter(constants, self.simulator)

		metrics = compute_metrics(params, feed_cost_per_kg, constants)
		efficiency = compute_efficiency(metrics, constants)
		self._state = SessionState(
			params=params,
			feed_cost_per_kg=feed_cost_per_kg,
			metrics=metrics,
			efficiency=efficiency,
			suggestions=generate_suggestions(metrics, efficiency, params, feed_cost_per_kg, constants),
			timeframe=timeframe,
			performance=initial_performance_window(constants.target_yield),
		)
		self._messages: list[Message] = [Message(kind=MessageKindEnum.welcome, content=welcome_content())]

	@property
	def state(self) -> SessionState:
		return self._state

	@property
	def messages(self) -> tuple[Message, ...]:
		return tuple(self._messages)

	def apply_parameters(self, new_params: FarmParameters) -> SessionState:
		"""Recompute everything for ``new_params`` and log a change summary.

		A domain error leaves the state untouched and is logged as an error message.
		"""
		try:
			return self._recompute(new_params, self._state.feed_cost_per_kg)
		except DomainError as exc:
			self._report_domain_error(exc)
			return self._state

	def set_feed_cost(self, feed_cost_per_kg: float) -> SessionState:
		if not math.isfinite(feed_cost_per_kg) or feed_cost_per_kg <= 0:
			self._append(MessageKindEnum.error, "Feed cost must be a positive number.")
			return self._state
		try:
			return self._recompute(self._state.params, feed_cost_per_kg)
		except DomainError as exc:
			self._report_domain_error(exc)
			return self._state

	def set_timeframe(self, timeframe: TimeframeEnum) -> SessionState:
		# The performance window keeps its size; only synthetic trends use the timeframe.
		self._state = self._state.model_copy(update={"timeframe": timeframe})
		return self._state

	def submit_command(self, utterance: str) -> CommandOutcome:
		"""Log the utterance, run it, apply any mutation, then log the response."""
		self._append(MessageKindEnum.user, utterance)
		interpretation = self.interpreter.interpret(utterance, self._state)
		response = interpretation.response
		mutated = False

		if interpretation.mutation is not None:
			previous = self._state.metrics
			try:
				state = self._recompute(interpretation.mutation, self._state.feed_cost_per_kg, announce=False)
			except DomainError as exc:
				_logger.warning("command_mutation_rejected", extra={"session_id": str(self.session_id), "error": str(exc)})
				response = CommandResponse(kind=ResponseKindEnum.error, text=str(exc))
			else:
				mutated = True
				summary = change_summary(previous, state.metrics, self.constants.currency_symbol)
				response = response.model_copy(
					update={
						"data": {
							**response.data,
							"metrics": state.metrics.display(),
							"changes": summary["changes"],
						}
					}
				)

		kind = MessageKindEnum.error if response.kind == ResponseKindEnum.error else MessageKindEnum.system
		self._append(kind, response.model_dump(mode="json"))
		return CommandOutcome(rule=interpretation.rule, response=response, state=self._state, mutated=mutated)

	def trend(self, metric: TrendMetricEnum) -> list[TrendPoint]:
		state = self._state
		if metric == TrendMetricEnum.emissions:
			current = state.metrics.emissions
		else:
			current = state.efficiency.total
		return self.simulator.simulate(current, state.timeframe.periods)

	def _recompute(
		self,
		params: FarmParameters,
		feed_cost_per_kg: float,
		*,
		announce: bool = True,
	) -> SessionState:
		old = self._state
		metrics = compute_metrics(params, feed_cost_per_kg, self.constants)
		efficiency = compute_efficiency(metrics, self.constants)
		new_state = SessionState(
			params=params,
			feed_cost_per_kg=feed_cost_per_kg,
			metrics=metrics,
			efficiency=efficiency,
			suggestions=generate_suggestions(metrics, efficiency, params, feed_cost_per_kg, self.constants),
			timeframe=old.timeframe,
			performance=advance_window(
				old.performance,
				metrics.milk_yield,
				target=self.constants.target_yield,
				cost=metrics.cost_per_litre,
			),
		)
		self._state = new_state
		_logger.info(
			"session_parameters_applied",
			extra={
				"session_id": str(self.session_id),
				"concentrate_feed": params.concentrate_feed,
				"nitrogen_rate": params.nitrogen_rate,
				"feed_cost_per_kg": feed_cost_per_kg,
				"suggestions": len(new_state.suggestions),
			},
		)
		if announce:
			self._append(
				MessageKindEnum.alert,
				change_summary(old.metrics, metrics, self.constants.currency_symbol),
			)
		return new_state

	def _report_domain_error(self, exc: DomainError) -> None:
		_logger.warning("session_update_rejected", extra={"session_id": str(self.session_id), "error": str(exc)})
		self._append(MessageKindEnum.error, str(exc))

	def _append(self, kind: MessageKindEnum, content: str | dict[str, Any]) -> None:
		self._messages.append(Message(kind=kind, content=content))


class SessionRegistry:
	"""In-memory sessions keyed by id. Sessions share no mutable state.

	A session idle for longer than ``session_ttl`` is evicted the next time a
	session is created, so abandoned sessions never hold the cap.
	"""

	def __init__(
		self,
		constants: FarmConstants,
		*,
		default_params: FarmParameters,
		default_feed_cost_per_kg: float,
		default_timeframe: TimeframeEnum = TimeframeEnum.six_months,
		max_sessions: int = 1000,
		session_ttl: timedelta = timedelta(minutes=60),
		trend_seed: int | None = None,
		clock: Callable[[], datetime] | None = None,
	):
		self.constants = constants
		self.default_params = default_params
		self.default_feed_cost_per_kg = default_feed_cost_per_kg
		self.default_timeframe = default_timeframe
		self.max_sessions = max_sessions
		self.session_ttl = session_ttl
		self.trend_seed = trend_seed
		self._clock = clock or (lambda: datetime.now(UTC))
		self._sessions: dict[uuid.UUID, SessionStore] = {}

	@classmethod
	def from_settings(cls, settings: Settings, constants: FarmConstants) -> SessionRegistry:
		return cls(
			constants,
			default_params=FarmParameters(
				concentrate_feed=settings.default_concentrate_feed,
				nitrogen_rate=settings.default_nitrogen_rate,
			),
			default_feed_cost_per_kg=settings.default_feed_cost_per_kg,
			default_timeframe=TimeframeEnum(settings.default_timeframe.value),
			max_sessions=settings.max_sessions,
			session_ttl=timedelta(minutes=settings.session_ttl_minutes),
			trend_seed=settings.trend_seed,
		)

	def __len__(self) -> int:
		return len(self._sessions)

	def create(self, payload: SessionCreate | None = None) -> SessionStore:
		now = self._clock()
		self.evict_idle(now)
		if len(self._sessions) >= self.max_sessions:
			raise SessionLimitError(f"session limit of {self.max_sessions} reached")

		payload = payload or SessionCreate()
		params = self.default_params
		if payload.parameters is not None:
			params = payload.parameters.merged_with(params)
		seed = payload.seed if payload.seed is not None else self.trend_seed

		store = SessionStore(
			self.constants,
			params=params,
			feed_cost_per_kg=payload.feed_cost_per_kg or self.default_feed_cost_per_kg,
			timeframe=payload.timeframe or self.default_timeframe,
			simulator=TrendSimulator(seed=seed),
		)
		store.last_seen_at = now
		self._sessions[store.session_id] = store
		_logger.info("session_created", extra={"session_id": str(store.session_id), "sessions": len(self._sessions)})
		return store

	def get(self, session_id: uuid.UUID) -> SessionStore:
		store = self._sessions.get(session_id)
		if store is None:
			raise LookupError(f"Session {session_id} not found")
		store.last_seen_at = self._clock()
		return store

	def delete(self, session_id: uuid.UUID) -> None:
		if self._sessions.pop(session_id, None) is None:
			raise LookupError(f"Session {session_id} not found")
		_logger.info("session_deleted", extra={"session_id": str(session_id)})

	def evict_idle(self, now: datetime | None = None) -> int:
		"""Drop sessions not touched within ``session_ttl``; returns how many were dropped."""
		cutoff = (now or self._clock()) - self.session_ttl
		expired = [sid for sid, store in self._sessions.items() if store.last_seen_at <= cutoff]
		for sid in expired:
			del self._sessions[sid]
		if expired:
			_logger.info("sessions_evicted", extra={"evicted": len(expired), "sessions": len(self._sessions)})
		return len(expired)
