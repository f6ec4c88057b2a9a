"""Domain enum registry.

Application code can import every enum from here::

    from app.models import MessageKindEnum, PriorityEnum, ...
"""

from app.models.enums import (
    KpiStatusEnum,
    MessageKindEnum,
    PriorityEnum,
    ResponseKindEnum,
    SuggestionCategoryEnum,
    TimeframeEnum,
    TrendMetricEnum,
)

__all__ = [
    "KpiStatusEnum",
    "MessageKindEnum",
    "PriorityEnum",
    "ResponseKindEnum",
    "SuggestionCategoryEnum",
    "TimeframeEnum",
    "TrendMetricEnum",
]
