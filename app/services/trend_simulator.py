"""Synthetic trend series for charting, plus the month-labelled performance window.

Production sessions use an unseeded noise generator, so repeated calls give
different jitter. Pass a seed (or a ``random.Random``) for reproducible output.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from datetime import UTC, date, datetime

from app.schemas.farm import TrendPoint

MONTH_LABELS: tuple[str, ...] = (
	"Jan", "Feb", "Mar", "Apr", "May", "Jun",
	"Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
NOISE_AMPLITUDE = 0.05
SMOOTHING_WINDOW = 3

INITIAL_PERFORMANCE_YIELDS: tuple[tuple[str, float], ...] = (
	("Jan", 8750.0),
	("Feb", 8900.0),
	("Mar", 8800.0),
	("Apr", 8650.0),
)
INITIAL_PERFORMANCE_COST = 0.32


def next_month_label(label: str) -> str:
	try:
		index = MONTH_LABELS.index(label)
	except ValueError as exc:
		raise ValueError(f"unknown month label: {label!r}") from exc
	return MONTH_LABELS[(index + 1) % len(MONTH_LABELS)]


def initial_performance_window(target_yield: float) -> list[TrendPoint]:
	return [
		TrendPoint(label=label, value=value, target=target_yield, cost=INITIAL_PERFORMANCE_COST)
		for label, value in INITIAL_PERFORMANCE_YIELDS
	]


def advance_window(
	window: Sequence[TrendPoint],
	value: float,
	*,
	target: float | None = None,
	cost: float | None = None,
) -> list[TrendPoint]:
	"""Append the next month's point and drop the oldest; length is unchanged."""
	if not window:
		raise ValueError("performance window is empty")
	point = TrendPoint(label=next_month_label(window[-1].label), value=value, target=target, cost=cost)
	return [*window[1:], point]


class TrendSimulator:
	def __init__(self, noise: random.Random | None = None, *, seed: int | None = None):
		self._noise = noise if noise is not None else random.Random(seed)

	def simulate(
		self,
		current_value: float,
		periods: int,
		reference: date | None = None,
	) -> list[TrendPoint]:
		"""Jittered history ending at ``reference``'s month, oldest first.

		From the third point on, ``smoothed_value`` is the trailing three-point mean.
		"""
		if periods < 1:
			raise ValueError("periods must be at least 1")
		today = reference or datetime.now(UTC).date()

		raw: list[tuple[str, float]] = []
		for offset in range(periods):
			label = MONTH_LABELS[(today.month - 1 - offset) % len(MONTH_LABELS)]
			jitter = self._noise.uniform(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)
			raw.append((label, current_value * (1 + jitter)))
		raw.reverse()

		points: list[TrendPoint] = []
		for index, (label, value) in enumerate(raw):
			smoothed = None
			if index >= SMOOTHING_WINDOW - 1:
				window = raw[index - SMOOTHING_WINDOW + 1 : index + 1]
				smoothed = sum(item[1] for item in window) / SMOOTHING_WINDOW
			points.append(TrendPoint(label=label, value=value, smoothed_value=smoothed))
		return points
