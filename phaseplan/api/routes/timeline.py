"""Slot axis labels for the 10-slot timeline."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Query

from phaseplan.planning.intervals import TotalDays, label_positions, period_labels, slot_to_day_span

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("/period-labels")
def get_period_labels(total_days: int = Query(default=10)) -> dict[str, object]:
    """Period labels for a total-days choice; unknown values fall back to 10."""

    days = TotalDays.coerce(total_days)
    labels = period_labels(days)
    return {
        "total_days": days.value,
        "unit": days.period_unit.value,
        "labels": [asdict(item) for item in label_positions(labels)],
        "slot_days": [list(slot_to_day_span(slot, days)) for slot in range(1, 11)],
    }
