"""Estimate phase configuration endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from phaseplan.db.dependencies import get_db_session
from phaseplan.planning.phase_config import EstimatePhaseConfig
from phaseplan.services.capacity_plan_service import (
    DistributionUpdateData,
    EstimateConfigService,
    IntervalsUpdateData,
)

router = APIRouter(prefix="/estimates", tags=["estimates"])


class IntervalsUpdatePayload(BaseModel):
    intervals: dict[str, list[int]]
    elapsed_days: int | None = None


class DistributionUpdatePayload(BaseModel):
    category_keys: list[str] = Field(min_length=1)
    distribution: dict[str, dict[str, float]]


def _config_service(db: Session) -> EstimateConfigService:
    return EstimateConfigService(db)


@router.get("/{estimate_id}/phase-config")
def get_phase_config(
    estimate_id: UUID,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _config_service(db)
    config = service.get_config(estimate_id=estimate_id)
    return service.serialize_config(config)


@router.put("/{estimate_id}/phase-config")
def replace_phase_config(
    estimate_id: UUID,
    payload: EstimatePhaseConfig,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _config_service(db)
    config = service.replace_config(estimate_id=estimate_id, config=payload)
    return service.serialize_config(config)


@router.put("/{estimate_id}/phase-config/intervals")
def update_phase_intervals(
    estimate_id: UUID,
    payload: IntervalsUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _config_service(db)
    config = service.update_intervals(
        estimate_id=estimate_id,
        data=IntervalsUpdateData(intervals=payload.intervals, elapsed_days=payload.elapsed_days),
    )
    return service.serialize_config(config)


@router.put("/{estimate_id}/phase-config/distribution")
def update_phase_distribution(
    estimate_id: UUID,
    payload: DistributionUpdatePayload,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _config_service(db)
    config = service.update_distribution(
        estimate_id=estimate_id,
        data=DistributionUpdateData(category_keys=payload.category_keys, distribution=payload.distribution),
    )
    return service.serialize_config(config)
