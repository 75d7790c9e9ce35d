from __future__ import annotations

import math
from datetime import date

import pytest

from phaseplan.planning.geometry import (
    BarPosition,
    TimelineGeometry,
    clamp_pixels_per_day,
    date_to_pixel,
    pixel_to_date,
    pixel_to_slot,
    round_half_up,
)
from phaseplan.planning.intervals import SlotRange


@pytest.fixture()
def geometry() -> TimelineGeometry:
    return TimelineGeometry.fit(800, left_margin=100)


def test_slot_pixel_round_trip(geometry: TimelineGeometry) -> None:
    assert geometry.slot_width == 80
    for slot in range(1, 11):
        assert geometry.pixel_to_slot(geometry.slot_to_pixel(slot)) == slot


def test_pixel_to_slot_clamps(geometry: TimelineGeometry) -> None:
    assert geometry.pixel_to_slot(-500) == 1
    assert geometry.pixel_to_slot(10_000) == 10
    assert pixel_to_slot(300, 0, 0) == 1
    assert pixel_to_slot(math.nan, 0, 80) == 1
    assert pixel_to_slot(math.inf, 0, 80) == 10
    assert pixel_to_slot(-math.inf, 0, 80) == 1


def test_bar_position(geometry: TimelineGeometry) -> None:
    assert geometry.bar_position(SlotRange(3, 5)) == BarPosition(x=260, width=240)
    assert geometry.bar_position(None) is None


def test_delta_and_snap(geometry: TimelineGeometry) -> None:
    assert geometry.delta_slots(160) == 2.0
    assert TimelineGeometry(left_margin=0, slot_width=0).delta_slots(160) == 0.0
    assert geometry.snap(260, 240) == SlotRange(3, 5)
    assert geometry.snap(270, 240) == SlotRange(3, 5)
    assert geometry.snap(-400, 240) == SlotRange(1, 1)


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.5) == -1
    assert round_half_up(1.49) == 1


def test_calendar_axis_round_trip() -> None:
    start = date(2026, 1, 1)

    assert date_to_pixel(date(2026, 1, 11), start, 10, left_margin=50) == 150
    assert pixel_to_date(150, start, 10, left_margin=50) == date(2026, 1, 11)
    assert pixel_to_date(150, start, 0) == start


def test_clamp_pixels_per_day() -> None:
    assert clamp_pixels_per_day(100, 1.5, 40) == 40
    assert clamp_pixels_per_day(0.2, 1.5, 40) == 1.5
    assert clamp_pixels_per_day(math.inf, 1.5, 40) == 40
