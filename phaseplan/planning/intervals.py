"""Discrete slot intervals and their calendar meaning."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

TOTAL_SLOTS = 10
MIN_SLOT = 1
MAX_SLOT = TOTAL_SLOTS


def clamp_slot(value: int) -> int:
    return max(MIN_SLOT, min(MAX_SLOT, int(value)))


@dataclass(frozen=True, slots=True)
class SlotRange:
    """Contiguous placement of a phase on the 10-slot timeline (inclusive)."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not MIN_SLOT <= self.start <= self.end <= MAX_SLOT:
            raise ValueError(f"invalid slot range [{self.start}, {self.end}]")

    @classmethod
    def clamped(cls, start: int, end: int) -> SlotRange:
        start = clamp_slot(start)
        end = clamp_slot(end)
        if end < start:
            end = start
        return cls(start, end)

    @classmethod
    def from_values(cls, values: Iterable[int] | None) -> SlotRange | None:
        """Read a persisted slot list; a gapped list is taken as its span."""

        if not values:
            return None
        slots = [clamp_slot(value) for value in values]
        if not slots:
            return None
        return cls(min(slots), max(slots))

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def to_values(self) -> list[int]:
        return list(range(self.start, self.end + 1))

    def contains(self, slot: int) -> bool:
        return self.start <= slot <= self.end

    def shifted(self, delta: int) -> SlotRange:
        # End is clamped first so the length survives a push against slot 10.
        start = max(MIN_SLOT, self.start + delta)
        end = min(MAX_SLOT, start + self.length - 1)
        return SlotRange(end - self.length + 1, end)


IntervalsByPhase = dict[str, SlotRange | None]


def envelope(intervals: Mapping[str, SlotRange | None]) -> SlotRange | None:
    """Smallest range covering every non-empty phase."""

    ranges = [value for value in intervals.values() if value is not None]
    if not ranges:
        return None
    return SlotRange(min(r.start for r in ranges), max(r.end for r in ranges))


def intervals_from_values(values_by_phase: Mapping[str, Iterable[int] | None]) -> IntervalsByPhase:
    return {phase: SlotRange.from_values(values) for phase, values in values_by_phase.items()}


def intervals_to_values(intervals: Mapping[str, SlotRange | None]) -> dict[str, list[int]]:
    return {phase: (value.to_values() if value is not None else []) for phase, value in intervals.items()}


class PeriodUnit(str, enum.Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


DEFAULT_UNIT_LABELS: dict[PeriodUnit, str] = {
    PeriodUnit.WEEK: "Week",
    PeriodUnit.MONTH: "Month",
    PeriodUnit.QUARTER: "Quarter",
}


class TotalDays(enum.IntEnum):
    """Calendar duration spread over the 10 slots."""

    DAYS_10 = 10
    DAYS_20 = 20
    DAYS_40 = 40
    DAYS_60 = 60
    DAYS_120 = 120
    DAYS_240 = 240

    @classmethod
    def coerce(cls, value: object, default: TotalDays | None = None) -> TotalDays:
        fallback = default if default is not None else cls.DAYS_10
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return fallback

    @property
    def days_per_slot(self) -> float:
        return self.value / TOTAL_SLOTS

    @property
    def period_unit(self) -> PeriodUnit:
        return _PERIODS[self][1]

    @property
    def period_count(self) -> int:
        return _PERIODS[self][0]


_PERIODS: dict[TotalDays, tuple[int, PeriodUnit]] = {
    TotalDays.DAYS_10: (2, PeriodUnit.WEEK),
    TotalDays.DAYS_20: (4, PeriodUnit.WEEK),
    TotalDays.DAYS_40: (2, PeriodUnit.MONTH),
    TotalDays.DAYS_60: (3, PeriodUnit.MONTH),
    TotalDays.DAYS_120: (6, PeriodUnit.MONTH),
    TotalDays.DAYS_240: (4, PeriodUnit.QUARTER),
}


@dataclass(frozen=True, slots=True)
class PeriodLabel:
    label: str
    start_slot: float
    end_slot: float


@dataclass(frozen=True, slots=True)
class PositionedPeriodLabel:
    label: str
    start_slot: float
    end_slot: float
    top_percent: float
    height_percent: float


def period_labels(
    total_days: TotalDays | int,
    unit_labels: Mapping[PeriodUnit, str] | None = None,
) -> list[PeriodLabel]:
    """Split the slot axis into the calendar periods of ``total_days``."""

    days = TotalDays.coerce(total_days)
    names = {**DEFAULT_UNIT_LABELS, **(unit_labels or {})}
    prefix = names[days.period_unit]
    size = TOTAL_SLOTS / days.period_count
    return [
        PeriodLabel(label=f"{prefix} {index + 1}", start_slot=index * size, end_slot=(index + 1) * size)
        for index in range(days.period_count)
    ]


def label_positions(labels: list[PeriodLabel]) -> list[PositionedPeriodLabel]:
    if not labels:
        return []
    height = 100 / len(labels)
    return [
        PositionedPeriodLabel(
            label=item.label,
            start_slot=item.start_slot,
            end_slot=item.end_slot,
            top_percent=index / len(labels) * 100,
            height_percent=height,
        )
        for index, item in enumerate(labels)
    ]


def slot_to_day_span(slot: int, total_days: TotalDays | int) -> tuple[int, int]:
    """First and last elapsed day (1-based) covered by ``slot``."""

    days = TotalDays.coerce(total_days)
    slot = clamp_slot(slot)
    per_slot = days.days_per_slot
    first = math.floor((slot - 1) * per_slot) + 1
    last = max(first, math.ceil(slot * per_slot))
    return first, last
