"""Conversions between slots, pixels and calendar dates.

Every function here is total: out-of-range input (a pointer outside the
drawing area, a zero-width timeline) is clamped instead of rejected, since
an in-progress drag routinely produces transient out-of-bounds deltas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from phaseplan.planning.intervals import MAX_SLOT, MIN_SLOT, TOTAL_SLOTS, SlotRange, clamp_slot


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def slot_to_pixel(slot: float, left_margin: float, slot_width: float) -> float:
    return left_margin + (slot - 1) * slot_width


def pixel_to_slot(pixel: float, left_margin: float, slot_width: float) -> int:
    if slot_width <= 0 or math.isnan(pixel):
        return MIN_SLOT
    if math.isinf(pixel):
        return MAX_SLOT if pixel > 0 else MIN_SLOT
    return clamp_slot(round_half_up((pixel - left_margin) / slot_width) + 1)


@dataclass(frozen=True, slots=True)
class BarPosition:
    x: float
    width: float


@dataclass(frozen=True, slots=True)
class TimelineGeometry:
    """Pixel geometry of a 10-slot timeline drawing area."""

    left_margin: float
    slot_width: float
    total_slots: int = TOTAL_SLOTS

    @classmethod
    def fit(cls, available_width: float, left_margin: float = 0.0) -> TimelineGeometry:
        return cls(left_margin=left_margin, slot_width=max(0.0, available_width) / TOTAL_SLOTS)

    @property
    def width(self) -> float:
        return self.slot_width * self.total_slots

    def slot_to_pixel(self, slot: float) -> float:
        return slot_to_pixel(slot, self.left_margin, self.slot_width)

    def pixel_to_slot(self, pixel: float) -> int:
        return pixel_to_slot(pixel, self.left_margin, self.slot_width)

    def bar_position(self, slot_range: SlotRange | None) -> BarPosition | None:
        if slot_range is None:
            return None
        return BarPosition(
            x=self.slot_to_pixel(slot_range.start),
            width=slot_range.length * self.slot_width,
        )

    def delta_slots(self, delta_pixels: float) -> float:
        if self.slot_width <= 0:
            return 0.0
        return delta_pixels / self.slot_width

    def snap(self, x: float, width: float) -> SlotRange:
        """Snap a continuous bar back onto whole slots."""

        if self.slot_width <= 0:
            return SlotRange(MIN_SLOT, MIN_SLOT)
        start = (x - self.left_margin) / self.slot_width + 1
        end = start + width / self.slot_width - 1
        return SlotRange.clamped(
            max(MIN_SLOT, min(MAX_SLOT, round_half_up(start))),
            max(MIN_SLOT, min(MAX_SLOT, round_half_up(end))),
        )


# ---------- Calendar axis ----------
def clamp_pixels_per_day(value: float, minimum: float, maximum: float) -> float:
    if not math.isfinite(value):
        return maximum if value > 0 else minimum
    return max(minimum, min(maximum, value))


def days_between(start: date, end: date) -> int:
    return (end - start).days


def date_to_pixel(day: date, min_date: date, pixels_per_day: float, left_margin: float = 0.0) -> float:
    return left_margin + days_between(min_date, day) * pixels_per_day


def pixel_to_date(pixel: float, min_date: date, pixels_per_day: float, left_margin: float = 0.0) -> date:
    if pixels_per_day <= 0 or not math.isfinite(pixel):
        return min_date
    offset = round_half_up((pixel - left_margin) / pixels_per_day)
    try:
        return min_date + timedelta(days=offset)
    except OverflowError:
        return date.max if offset > 0 else date.min
