"""Application services for estimate phase configs and the capacity plan."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from phaseplan.core.config import get_settings
from phaseplan.models.entities import Estimate
from phaseplan.planning.aggregation import (
    AggregatedResult,
    AggregatedTotals,
    AggregationInput,
    FTEResult,
    aggregate_fte_results,
    calculate_aggregated_totals,
    max_interval_fte,
)
from phaseplan.planning.categories import CategoryRegistry
from phaseplan.planning.distribution import DistributionError, DistributionTable
from phaseplan.planning.editor import IntervalsChange, PhaseIntervalEditor
from phaseplan.planning.geometry import TimelineGeometry
from phaseplan.planning.intervals import (
    IntervalsByPhase,
    TotalDays,
    intervals_from_values,
    intervals_to_values,
)
from phaseplan.planning.phase_config import TIMELINE_PHASES, EstimatePhaseConfig, resolve_effective_config
from phaseplan.planning.ports import (
    CategoryLabelResolver,
    EstimateNotFoundError,
    EstimateRecord,
    EstimateStore,
    FTECalculator,
)
from phaseplan.repositories.estimate_repository import EstimateRepository

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IntervalsUpdateData:
    intervals: dict[str, list[int]]
    elapsed_days: int | None = None


@dataclass(slots=True)
class DistributionUpdateData:
    category_keys: list[str]
    distribution: dict[str, dict[str, float]]


# ---------- Persistence adapter ----------
class DatabaseEstimateStore:
    """``EstimateStore`` backed by the estimates table."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = EstimateRepository(db)

    def _get(self, estimate_id: Hashable) -> Estimate:
        try:
            key = estimate_id if isinstance(estimate_id, UUID) else UUID(str(estimate_id))
        except ValueError as exc:
            raise EstimateNotFoundError(estimate_id) from exc
        estimate = self.repo.get_estimate(key)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        return estimate

    def fetch_estimate(self, estimate_id: Hashable) -> EstimateRecord:
        estimate = self._get(estimate_id)
        return EstimateRecord(
            id=estimate.id,
            name=estimate.name,
            phases_config=estimate.phases_config,
            client_phases_config=estimate.client.phases_config if estimate.client else None,
        )

    def persist_estimate_config(self, estimate_id: Hashable, config: Mapping[str, Any]) -> None:
        estimate = self._get(estimate_id)
        self.repo.set_phases_config(estimate, dict(config))
        self.db.commit()


# ---------- Estimate phase configuration ----------
class EstimateConfigService:
    """Reads and validated writes of one estimate's phase configuration."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.store = DatabaseEstimateStore(db)

    def _fetch(self, estimate_id: UUID) -> EstimateRecord:
        try:
            return self.store.fetch_estimate(estimate_id)
        except EstimateNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estimate not found.") from exc

    def get_config(self, *, estimate_id: UUID) -> EstimatePhaseConfig:
        record = self._fetch(estimate_id)
        return resolve_effective_config(record.phases_config, record.client_phases_config)

    def replace_config(self, *, estimate_id: UUID, config: EstimatePhaseConfig) -> EstimatePhaseConfig:
        self._fetch(estimate_id)
        self._ensure_valid(config)
        return self._save(estimate_id, config)

    def update_intervals(self, *, estimate_id: UUID, data: IntervalsUpdateData) -> EstimatePhaseConfig:
        config = self.get_config(estimate_id=estimate_id)
        unknown = sorted(set(data.intervals).difference(TIMELINE_PHASES))
        if unknown:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Unknown phase: {unknown[0]}",
            )
        intervals = intervals_from_values(data.intervals)
        updated = config.with_intervals(intervals, elapsed_days=data.elapsed_days)
        return self._save(estimate_id, updated)

    def update_distribution(self, *, estimate_id: UUID, data: DistributionUpdateData) -> EstimatePhaseConfig:
        config = self.get_config(estimate_id=estimate_id)
        if not data.category_keys:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Must keep at least one category.",
            )
        registry = CategoryRegistry.from_keys(data.category_keys, order=data.category_keys)
        if config.common and config.common.category_colors:
            registry = registry.with_colors(config.common.category_colors)
        table = DistributionTable(TIMELINE_PHASES, data.distribution, registry)
        result = table.validate()
        if not result.ok:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.message)
        return self._save(estimate_id, table.apply_to(config))

    def _ensure_valid(self, config: EstimatePhaseConfig) -> None:
        result = DistributionTable.from_config(config).validate()
        if not result.ok:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.message)
        message = config.validate_e2e()
        if message:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)

    def _save(self, estimate_id: UUID, config: EstimatePhaseConfig) -> EstimatePhaseConfig:
        try:
            self.store.persist_estimate_config(estimate_id, config.to_payload())
        except EstimateNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estimate not found.") from exc
        return config

    @staticmethod
    def serialize_config(config: EstimatePhaseConfig) -> dict[str, object]:
        registry = config.category_registry()
        return {
            "config": config.to_payload(),
            "total_days": config.total_days.value,
            "intervals": intervals_to_values(config.intervals_by_phase()),
            "categories": [asdict(style) for style in registry.styles().values()],
        }


# ---------- Capacity plan ----------
@dataclass(slots=True)
class PlanEntry:
    record: EstimateRecord
    config: EstimatePhaseConfig
    fte_results: FTEResult | None = None


@dataclass(slots=True)
class PlanSnapshot:
    total_days: TotalDays
    entries: list[PlanEntry]
    aggregated: AggregatedResult | None
    totals: AggregatedTotals
    notifications: list[str] = field(default_factory=list)


class CapacityPlan:
    """Several estimates edited side by side on one shared slot axis.

    Edits are applied locally first, then persisted, then the affected
    estimate's FTE is recomputed. A failed save or computation is logged and
    reported in ``notifications``; local state is never rolled back.
    """

    def __init__(
        self,
        store: EstimateStore,
        calculator: FTECalculator,
        *,
        label_resolver: CategoryLabelResolver | None = None,
    ) -> None:
        self.store = store
        self.calculator = calculator
        self.label_resolver = label_resolver
        self.entries: dict[Hashable, PlanEntry] = {}
        self.notifications: list[str] = []

    def load(self, estimate_ids: Iterable[Hashable]) -> None:
        for estimate_id in estimate_ids:
            record = self.store.fetch_estimate(estimate_id)
            config = resolve_effective_config(record.phases_config, record.client_phases_config)
            self.entries[record.id] = PlanEntry(record=record, config=config)
        self.recompute_all()

    def entry(self, estimate_id: Hashable) -> PlanEntry:
        try:
            return self.entries[estimate_id]
        except KeyError as exc:
            raise EstimateNotFoundError(estimate_id) from exc

    @property
    def common_total_days(self) -> TotalDays:
        if not self.entries:
            return TotalDays.DAYS_10
        return max(entry.config.total_days for entry in self.entries.values())

    def intervals(self, estimate_id: Hashable) -> IntervalsByPhase:
        return self.entry(estimate_id).config.intervals_by_phase()

    def editor(self, geometry: TimelineGeometry) -> PhaseIntervalEditor:
        """Editor whose committed drags flow back into this plan."""

        return PhaseIntervalEditor(geometry, on_intervals_change=self.apply_intervals_change)

    # ---------- Edits ----------
    def apply_intervals_change(self, change: IntervalsChange) -> None:
        entry = self.entry(change.owner_id)
        entry.config = entry.config.with_intervals(change.intervals_by_phase)
        self._persist(entry)
        self.recompute(change.owner_id)

    def set_total_days(self, total_days: TotalDays | int) -> None:
        days = TotalDays.coerce(total_days)
        for entry in self.entries.values():
            entry.config = entry.config.with_intervals({}, elapsed_days=days)
            self._persist(entry)
        self.recompute_all()

    def apply_distribution(self, estimate_id: Hashable, table: DistributionTable) -> None:
        result = table.validate()
        if not result.ok:
            raise DistributionError(result.message)
        entry = self.entry(estimate_id)
        entry.config = table.apply_to(entry.config)
        self._persist(entry)
        self.recompute(estimate_id)

    # ---------- FTE ----------
    def recompute(self, estimate_id: Hashable) -> FTEResult | None:
        entry = self.entry(estimate_id)
        try:
            entry.fte_results = self.calculator.compute_fte(
                entry.record.id,
                self.common_total_days,
                entry.config.intervals_by_phase(),
            )
        except Exception:
            LOGGER.exception("FTE computation failed for estimate %s", entry.record.id)
            self.notifications.append(f"Could not compute FTE for '{entry.record.name}'.")
        return entry.fte_results

    def recompute_all(self) -> None:
        for estimate_id in list(self.entries):
            self.recompute(estimate_id)

    def aggregated(self) -> AggregatedResult | None:
        return aggregate_fte_results(
            AggregationInput(estimate_id=estimate_id, fte_results=entry.fte_results)
            for estimate_id, entry in self.entries.items()
        )

    def category_registry(self) -> CategoryRegistry:
        result = self.aggregated()
        registry = (
            CategoryRegistry.from_keys(result.distribution_categories, order=result.distribution_categories)
            if result is not None
            else CategoryRegistry.legacy()
        )
        if self.label_resolver is None:
            return registry
        labels = {key: label for key in registry.keys if (label := self.label_resolver.resolve(key))}
        return registry.with_labels(labels)

    def snapshot(self) -> PlanSnapshot:
        aggregated = self.aggregated()
        return PlanSnapshot(
            total_days=self.common_total_days,
            entries=list(self.entries.values()),
            aggregated=aggregated,
            totals=calculate_aggregated_totals(aggregated),
            notifications=list(self.notifications),
        )

    def _persist(self, entry: PlanEntry) -> None:
        try:
            self.store.persist_estimate_config(entry.record.id, entry.config.to_payload())
        except Exception:
            LOGGER.exception("Saving phase configuration failed for estimate %s", entry.record.id)
            self.notifications.append(f"Could not save phase configuration of '{entry.record.name}'.")


class CapacityPlanService:
    """Builds capacity plan views for the HTTP layer."""

    def __init__(self, db: Session, calculator: FTECalculator) -> None:
        self.db = db
        self.settings = get_settings()
        self.plan = CapacityPlan(DatabaseEstimateStore(db), calculator)

    def build(self, *, estimate_ids: list[UUID]) -> PlanSnapshot:
        try:
            self.plan.load(estimate_ids)
        except EstimateNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Estimate not found.") from exc
        return self.plan.snapshot()

    def timeline_geometry(self, left_margin: float = 0.0) -> TimelineGeometry:
        return TimelineGeometry.fit(self.settings.timeline_available_width, left_margin)

    def serialize_snapshot(self, snapshot: PlanSnapshot) -> dict[str, object]:
        geometry = self.timeline_geometry()
        return {
            "total_days": snapshot.total_days.value,
            "estimates": [
                {
                    "id": str(entry.record.id),
                    "name": entry.record.name,
                    "intervals": intervals_to_values(entry.config.intervals_by_phase()),
                    "bars": {
                        key: asdict(bar)
                        for key, value in entry.config.intervals_by_phase().items()
                        if (bar := geometry.bar_position(value)) is not None
                    },
                    "fte_results": entry.fte_results.to_dict() if entry.fte_results else None,
                }
                for entry in snapshot.entries
            ],
            "aggregated": serialize_aggregated(snapshot.aggregated),
            "totals": asdict(snapshot.totals),
            "notifications": snapshot.notifications,
        }


def serialize_aggregated(result: AggregatedResult | None) -> dict[str, object] | None:
    if result is None:
        return None
    return {**result.to_dict(), "max_interval_fte": max_interval_fte(result)}
