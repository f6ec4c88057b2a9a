"""Enum types shared by the engines, the session store and the API schemas.

These are separate from the settings StrEnums in app/config.py:
config enums validate settings, these enums type domain values.
"""

from enum import StrEnum

# ── Suggestion enums ────────────────────────────────────────────────────────


class PriorityEnum(StrEnum):
    """Suggestion urgency. Metadata only, never an ordering key."""

    high = "high"
    medium = "medium"


class SuggestionCategoryEnum(StrEnum):
    environmental = "environmental"
    operational = "operational"
    nitrogen = "nitrogen"
    protein = "protein"
    cost = "cost"


# ── Session enums ───────────────────────────────────────────────────────────


class MessageKindEnum(StrEnum):
    """Kinds of entries in the append-only session log."""

    welcome = "welcome"
    user = "user"
    system = "system"
    alert = "alert"
    error = "error"


class TimeframeEnum(StrEnum):
    """Window over which synthetic trend data is generated."""

    six_months = "6m"
    twelve_months = "12m"

    @property
    def periods(self) -> int:
        return 6 if self is TimeframeEnum.six_months else 12


class TrendMetricEnum(StrEnum):
    emissions = "emissions"
    efficiency = "efficiency"


class KpiStatusEnum(StrEnum):
    ok = "ok"
    attention = "attention"


# ── Command enums ───────────────────────────────────────────────────────────


class ResponseKindEnum(StrEnum):
    """Shape of a command interpreter response."""

    trend = "trend"
    metrics = "metrics"
    confirmation = "confirmation"
    info = "info"
    advisory = "advisory"
    help = "help"
    error = "error"
