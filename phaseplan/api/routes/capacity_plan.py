"""Capacity plan endpoints: multi-estimate FTE view and calendar layout."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from phaseplan.core.config import get_settings
from phaseplan.db.dependencies import get_db_session
from phaseplan.planning.aggregation import (
    AggregationInput,
    FTEResult,
    aggregate_fte_results,
    calculate_aggregated_totals,
)
from phaseplan.planning.layout import ProjectRows, TaskRow, build_chart_layout
from phaseplan.planning.ports import FTECalculator
from phaseplan.services.capacity_plan_service import CapacityPlanService, serialize_aggregated

router = APIRouter(prefix="/capacity-plan", tags=["capacity-plan"])


class CapacityPlanPayload(BaseModel):
    estimate_ids: list[UUID] = Field(min_length=1)


class AggregationItemPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    estimate_id: str | None = None
    fte_results: dict[str, Any] | None = None


class AggregationPayload(BaseModel):
    items: list[AggregationItemPayload] = Field(default_factory=list)


class TaskRowPayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    status: int | str | None = None


class ProjectRowsPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    tasks: list[TaskRowPayload] = Field(default_factory=list)


class ChartLayoutPayload(BaseModel):
    projects: list[ProjectRowsPayload] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None
    container_width: float | None = Field(default=None, gt=0)
    show_project_headers: bool = True
    color_by_status: bool = True
    show_milestones: bool = False
    anonymize: bool = False

    @model_validator(mode="after")
    def check_range(self) -> ChartLayoutPayload:
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be provided together.")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date.")
        return self


def get_fte_calculator(request: Request) -> FTECalculator:
    calculator = getattr(request.app.state, "fte_calculator", None)
    if calculator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="FTE calculator is not configured.",
        )
    return calculator


@router.post("")
def build_capacity_plan(
    payload: CapacityPlanPayload,
    calculator: FTECalculator = Depends(get_fte_calculator),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = CapacityPlanService(db, calculator)
    snapshot = service.build(estimate_ids=payload.estimate_ids)
    return service.serialize_snapshot(snapshot)


@router.post("/aggregate")
def aggregate(payload: AggregationPayload) -> dict[str, object]:
    result = aggregate_fte_results(
        AggregationInput(estimate_id=item.estimate_id, fte_results=FTEResult.from_mapping(item.fte_results))
        for item in payload.items
    )
    return {
        "aggregated": serialize_aggregated(result),
        "totals": asdict(calculate_aggregated_totals(result)),
    }


@router.post("/layout")
def chart_layout(payload: ChartLayoutPayload) -> dict[str, object]:
    settings = get_settings()
    projects = [
        ProjectRows(
            name=project.name,
            tasks=tuple(
                TaskRow(title=task.title, start_date=task.start_date, end_date=task.end_date, status=task.status)
                for task in project.tasks
            ),
        )
        for project in payload.projects
    ]
    date_range = (payload.start_date, payload.end_date) if payload.start_date and payload.end_date else None
    layout = build_chart_layout(
        projects,
        date_range,
        payload.container_width or settings.chart_container_width,
        show_project_headers=payload.show_project_headers,
        color_by_status=payload.color_by_status,
        show_milestones=payload.show_milestones,
        anonymize=payload.anonymize,
        min_pixels_per_day=settings.min_pixels_per_day,
        max_pixels_per_day=settings.max_pixels_per_day,
    )
    return {"layout": asdict(layout) if layout is not None else None}
