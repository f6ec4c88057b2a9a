"""Pure metric derivation: farm parameters to derived metrics to efficiency scores."""

from __future__ import annotations

import math

from app.config import FarmConstants
from app.models.enums import KpiStatusEnum
from app.schemas.farm import DerivedMetrics, EfficiencyScore, FarmParameters, KpiStatus

DAYS_PER_YEAR = 365


class DomainError(ValueError):
	"""Raised when parameters lead to a non-finite metric."""


def emissions_for_feed(feed: float, constants: FarmConstants) -> float:
	return 1.39 + 0.05 * (feed - constants.baseline_feed)


def yield_for_feed(feed: float, constants: FarmConstants) -> float:
	return 8750 + 100 * (feed - constants.baseline_feed)


def protein_efficiency_for_feed(feed: float, constants: FarmConstants) -> float:
	return 14.3 - 0.1 * (feed - constants.baseline_feed)


def nitrogen_efficiency_for_rate(nitrogen_rate: float, constants: FarmConstants) -> float:
	return 17.6 - 0.02 * (nitrogen_rate - constants.baseline_nitrogen)


def compute_metrics(
	params: FarmParameters,
	feed_cost_per_kg: float,
	constants: FarmConstants,
) -> DerivedMetrics:
	feed = params.concentrate_feed
	milk_yield = yield_for_feed(feed, constants)
	if milk_yield == 0:
		raise DomainError(f"yield is zero at concentrate feed {feed} kg/day; cost per litre is undefined")

	values = {
		"emissions": emissions_for_feed(feed, constants),
		"milk_yield": milk_yield,
		"cost_per_litre": constants.cost_offset + (feed * feed_cost_per_kg * DAYS_PER_YEAR) / milk_yield,
		"protein_efficiency": protein_efficiency_for_feed(feed, constants),
		"nitrogen_efficiency": nitrogen_efficiency_for_rate(params.nitrogen_rate, constants),
	}
	for name, value in values.items():
		if not math.isfinite(value):
			raise DomainError(f"{name} is not finite for the given parameters")
	return DerivedMetrics(**values)


def compute_efficiency(metrics: DerivedMetrics, constants: FarmConstants) -> EfficiencyScore:
	environmental = max(0.0, 100 - (metrics.emissions / constants.emissions_threshold) * 100)
	economic = max(
		0.0,
		100 - (metrics.milk_yield * constants.base_operational_cost / constants.cost_per_litre_threshold) * 100,
	)
	# Not clamped: operational is the plain mean of two percentages.
	operational = (metrics.protein_efficiency + metrics.nitrogen_efficiency) / 2
	return EfficiencyScore(
		environmental=environmental,
		economic=economic,
		operational=operational,
		total=(environmental + economic + operational) / 3,
	)


def kpi_statuses(metrics: DerivedMetrics, constants: FarmConstants) -> list[KpiStatus]:
	"""Threshold verdict per headline metric; efficiencies are bad when low."""
	checks = [
		("emissions", metrics.emissions, constants.emissions_threshold, False),
		("cost_per_litre", metrics.cost_per_litre, constants.cost_per_litre_threshold, False),
		("protein_efficiency", metrics.protein_efficiency, constants.protein_efficiency_threshold, True),
		("nitrogen_efficiency", metrics.nitrogen_efficiency, constants.nitrogen_efficiency_threshold, True),
	]
	statuses: list[KpiStatus] = []
	for metric, value, threshold, inverse in checks:
		breached = value < threshold if inverse else value > threshold
		statuses.append(
			KpiStatus(
				metric=metric,
				value=value,
				threshold=threshold,
				status=KpiStatusEnum.attention if breached else KpiStatusEnum.ok,
			)
		)
	return statuses
