"""Combination of several estimates' FTE results into one capacity view."""

from __future__ import annotations

import math
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from phaseplan.planning.categories import LEGACY_CATEGORIES
from phaseplan.planning.intervals import TOTAL_SLOTS

# Legacy mirror fields and the wire names older results still use for them.
LEGACY_FIELDS: dict[str, tuple[str, str, str]] = {
    # field: (category key, metric, alias)
    "fte_functional": ("functional", "fte", "fte_funzionale"),
    "fte_technical": ("technical", "fte", "fte_tecnico"),
    "fte_governance": ("governance", "fte", "fte_governance"),
    "hours_functional": ("functional", "hours", "hours_funzionale"),
    "hours_technical": ("technical", "hours", "hours_tecnico"),
    "hours_governance": ("governance", "hours", "hours_governance"),
}


def _number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _numbers(values: Any) -> dict[str, float]:
    if not isinstance(values, Mapping):
        return {}
    return {str(key): _number(value) for key, value in values.items()}


@dataclass(slots=True)
class FTEInterval:
    """Effort of one slot, per category, in FTE and hours."""

    fte_categories: dict[str, float] = field(default_factory=dict)
    hours_categories: dict[str, float] = field(default_factory=dict)
    fte_functional: float = 0.0
    fte_technical: float = 0.0
    fte_governance: float = 0.0
    hours_functional: float = 0.0
    hours_technical: float = 0.0
    hours_governance: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> FTEInterval:
        data = data or {}
        interval = cls(
            fte_categories=_numbers(data.get("fte_categories")),
            hours_categories=_numbers(data.get("hours_categories")),
        )
        for name, (category, metric, alias) in LEGACY_FIELDS.items():
            if name in data:
                value = data[name]
            elif alias in data:
                value = data[alias]
            else:
                source = interval.fte_categories if metric == "fte" else interval.hours_categories
                value = source.get(category)
            setattr(interval, name, _number(value))
        return interval

    def total_fte(self) -> float:
        if self.fte_categories:
            return math.fsum(self.fte_categories.values())
        return math.fsum((self.fte_functional, self.fte_technical, self.fte_governance))

    def to_dict(self) -> dict[str, Any]:
        return {
            "fte_categories": dict(self.fte_categories),
            "hours_categories": dict(self.hours_categories),
            **{name: getattr(self, name) for name in LEGACY_FIELDS},
        }


@dataclass(slots=True)
class FTEResult:
    """Slot-aligned effort buckets produced by the FTE calculator."""

    intervals: list[FTEInterval] = field(default_factory=list)
    distribution_categories: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | FTEResult | None) -> FTEResult | None:
        if data is None:
            return None
        if isinstance(data, FTEResult):
            return data
        intervals = data.get("intervals")
        categories = data.get("distribution_categories") or []
        return cls(
            intervals=[FTEInterval.from_mapping(item) for item in intervals] if intervals else [],
            distribution_categories=[str(key) for key in categories],
        )

    @property
    def has_intervals(self) -> bool:
        return len(self.intervals) > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "distribution_categories": list(self.distribution_categories),
            "intervals": [interval.to_dict() for interval in self.intervals],
        }


# Same shape as a single result; derived, never persisted.
AggregatedResult = FTEResult


@dataclass(frozen=True, slots=True)
class AggregationInput:
    estimate_id: Hashable
    fte_results: FTEResult | None


@dataclass(frozen=True, slots=True)
class AggregatedTotals:
    total_functional: float
    total_technical: float
    total_governance: float
    total_categories: dict[str, float]
    total_all: float


def union_category_keys(declared: Iterable[Iterable[str]]) -> list[str]:
    """Union of declared keys: legacy keys first, then the rest alphabetically.

    The order depends only on the set of keys, never on input order.
    """

    keys = {key for group in declared for key in group if key}
    if not keys:
        return list(LEGACY_CATEGORIES)
    legacy = [key for key in LEGACY_CATEGORIES if key in keys]
    return legacy + sorted(keys.difference(LEGACY_CATEGORIES))


def _as_input(item: AggregationInput | Mapping[str, Any]) -> AggregationInput:
    if isinstance(item, AggregationInput):
        return item
    raw = item.get("fte_results", item.get("fteResults"))
    return AggregationInput(
        estimate_id=item.get("estimate_id", item.get("id")),
        fte_results=FTEResult.from_mapping(raw),
    )


def aggregate_fte_results(
    items: Iterable[AggregationInput | Mapping[str, Any]] | None,
) -> AggregatedResult | None:
    """Sum N results slot by slot and category by category.

    Entries without intervals are skipped; ``None`` means there is nothing
    to show. Missing category keys contribute 0. Sums go through
    ``math.fsum`` so the outcome does not depend on input order.
    """

    if not items:
        return None
    valid = [
        entry.fte_results
        for entry in map(_as_input, items)
        if entry.fte_results is not None and entry.fte_results.has_intervals
    ]
    if not valid:
        return None

    category_keys = union_category_keys(result.distribution_categories for result in valid)

    slots: list[FTEInterval] = []
    for index in range(TOTAL_SLOTS):
        present = [result.intervals[index] for result in valid if index < len(result.intervals)]
        slot = FTEInterval(
            fte_categories={
                key: math.fsum(item.fte_categories.get(key, 0.0) for item in present) for key in category_keys
            },
            hours_categories={
                key: math.fsum(item.hours_categories.get(key, 0.0) for item in present) for key in category_keys
            },
        )
        for name in LEGACY_FIELDS:
            setattr(slot, name, math.fsum(getattr(item, name) for item in present))
        slots.append(slot)

    return AggregatedResult(intervals=slots, distribution_categories=category_keys)


def calculate_aggregated_totals(result: AggregatedResult | None) -> AggregatedTotals:
    if result is None or not result.intervals:
        return AggregatedTotals(0.0, 0.0, 0.0, {}, 0.0)

    categories = {
        key: math.fsum(interval.fte_categories.get(key, 0.0) for interval in result.intervals)
        for key in result.distribution_categories
    }
    functional = math.fsum(interval.fte_functional for interval in result.intervals)
    technical = math.fsum(interval.fte_technical for interval in result.intervals)
    governance = math.fsum(interval.fte_governance for interval in result.intervals)
    total = math.fsum(categories.values()) or math.fsum((functional, technical, governance))
    return AggregatedTotals(
        total_functional=functional,
        total_technical=technical,
        total_governance=governance,
        total_categories=categories,
        total_all=total,
    )


def max_interval_fte(result: FTEResult | None) -> float:
    if result is None or not result.intervals:
        return 0.0
    return max(interval_total_fte(interval) for interval in result.intervals)


def interval_total_fte(interval: FTEInterval) -> float:
    return interval.total_fte()
