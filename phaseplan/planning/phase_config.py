"""Persisted phase configuration of a client or estimate."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from phaseplan.planning.categories import CategoryRegistry
from phaseplan.planning.intervals import IntervalsByPhase, SlotRange, TotalDays

PHASE_KEYS: tuple[str, ...] = (
    "analysis",
    "development",
    "internal_test",
    "uat",
    "release",
    "documentation",
    "startup",
    "pm",
    "contingency",
)
CONTINGENCY = "contingency"
# Phases drawn on the timeline and checked for a 100% distribution.
TIMELINE_PHASES: tuple[str, ...] = tuple(key for key in PHASE_KEYS if key != CONTINGENCY)

SUM_TOLERANCE = 0.01

DEFAULT_PHASES_CONFIG: dict[str, Any] = {
    "analysis": {
        "values": [1, 2],
        "e2e_percentage": 10.0,
        "distribution": {"functional": 100.0, "technical": 0.0, "governance": 0.0},
    },
    "development": {
        "values": [3, 4, 5, 6],
        "e2e_percentage": 47.0,
        "distribution": {"functional": 0.0, "technical": 100.0, "governance": 0.0},
    },
    "internal_test": {
        "values": [6, 7],
        "e2e_percentage": 12.0,
        "distribution": {"functional": 0.0, "technical": 100.0, "governance": 0.0},
    },
    "uat": {
        "values": [7, 8],
        "e2e_percentage": 8.0,
        "distribution": {"functional": 30.0, "technical": 70.0, "governance": 0.0},
    },
    "release": {
        "values": [9],
        "e2e_percentage": 5.0,
        "distribution": {"functional": 0.0, "technical": 100.0, "governance": 0.0},
    },
    "documentation": {
        "values": [9],
        "e2e_percentage": 5.0,
        "distribution": {"functional": 100.0, "technical": 0.0, "governance": 0.0},
    },
    "startup": {
        "values": [10],
        "e2e_percentage": 3.0,
        "distribution": {"functional": 50.0, "technical": 50.0, "governance": 0.0},
    },
    "pm": {
        "values": [1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
        "e2e_percentage": 10.0,
        "distribution": {"functional": 0.0, "technical": 0.0, "governance": 100.0},
    },
    "contingency": {
        "values": [],
        "e2e_percentage": 20.0,
        "distribution": {"functional": 0.0, "technical": 0.0, "governance": 0.0},
    },
    "elapsed_days": 10,
}


class PhaseConfig(BaseModel):
    """Placement, share of total effort and category split of one phase."""

    model_config = ConfigDict(extra="allow")

    values: list[int] = Field(default_factory=list)
    e2e_percentage: float = 0.0
    distribution: dict[str, float] = Field(default_factory=dict)

    @property
    def slot_range(self) -> SlotRange | None:
        return SlotRange.from_values(self.values)


class CommonChartSettings(BaseModel):
    model_config = ConfigDict(extra="allow")

    category_order: list[str] | None = None
    category_colors: dict[str, str] | None = None


class EstimatePhaseConfig(BaseModel):
    """Configuration object exchanged with persistence, keyed by phase name."""

    model_config = ConfigDict(extra="allow")

    analysis: PhaseConfig = Field(default_factory=PhaseConfig)
    development: PhaseConfig = Field(default_factory=PhaseConfig)
    internal_test: PhaseConfig = Field(default_factory=PhaseConfig)
    uat: PhaseConfig = Field(default_factory=PhaseConfig)
    release: PhaseConfig = Field(default_factory=PhaseConfig)
    documentation: PhaseConfig = Field(default_factory=PhaseConfig)
    startup: PhaseConfig = Field(default_factory=PhaseConfig)
    pm: PhaseConfig = Field(default_factory=PhaseConfig)
    contingency: PhaseConfig = Field(default_factory=PhaseConfig)
    elapsed_days: int = TotalDays.DAYS_10.value
    common: CommonChartSettings | None = None

    @field_validator("elapsed_days", mode="before")
    @classmethod
    def coerce_elapsed_days(cls, value: object) -> int:
        return TotalDays.coerce(value).value

    @classmethod
    def default(cls) -> EstimatePhaseConfig:
        return cls.model_validate(copy.deepcopy(DEFAULT_PHASES_CONFIG))

    @property
    def total_days(self) -> TotalDays:
        return TotalDays.coerce(self.elapsed_days)

    def phase(self, key: str) -> PhaseConfig:
        if key not in PHASE_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    # ---------- Intervals ----------
    def intervals_by_phase(self, phases: tuple[str, ...] = TIMELINE_PHASES) -> IntervalsByPhase:
        return {key: self.phase(key).slot_range for key in phases}

    def with_intervals(
        self,
        intervals: Mapping[str, SlotRange | None],
        *,
        elapsed_days: TotalDays | int | None = None,
    ) -> EstimatePhaseConfig:
        update: dict[str, Any] = {}
        for key, value in intervals.items():
            current = self.phase(key)
            update[key] = current.model_copy(update={"values": value.to_values() if value is not None else []})
        if elapsed_days is not None:
            update["elapsed_days"] = TotalDays.coerce(elapsed_days).value
        return self.model_copy(update=update)

    # ---------- Distribution ----------
    def distribution(self, phases: tuple[str, ...] = TIMELINE_PHASES) -> dict[str, dict[str, float]]:
        return {key: dict(self.phase(key).distribution) for key in phases}

    def with_distribution(self, distribution: Mapping[str, Mapping[str, float]]) -> EstimatePhaseConfig:
        update = {
            key: self.phase(key).model_copy(update={"distribution": dict(values)})
            for key, values in distribution.items()
        }
        return self.model_copy(update=update)

    def category_registry(self) -> CategoryRegistry:
        keys: list[str] = []
        for key in TIMELINE_PHASES:
            keys.extend(self.phase(key).distribution)
        order = self.common.category_order if self.common else None
        registry = CategoryRegistry.from_keys(keys, order=order)
        if self.common and self.common.category_colors:
            registry = registry.with_colors(self.common.category_colors)
        return registry

    def with_category_order(self, keys: list[str]) -> EstimatePhaseConfig:
        common = self.common or CommonChartSettings()
        return self.model_copy(update={"common": common.model_copy(update={"category_order": list(keys)})})

    # ---------- Validation ----------
    def e2e_sum(self) -> float:
        return sum(self.phase(key).e2e_percentage for key in TIMELINE_PHASES)

    def validate_e2e(self) -> str | None:
        total = self.e2e_sum()
        if abs(total - 100) > SUM_TOLERANCE:
            return f"End-to-end percentages must sum to 100 (current: {total:.1f})."
        return None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


def is_valid_config(config: Mapping[str, Any] | None) -> bool:
    return isinstance(config, Mapping) and len(config) > 0


def resolve_effective_config(
    estimate_config: Mapping[str, Any] | None,
    client_config: Mapping[str, Any] | None = None,
) -> EstimatePhaseConfig:
    """Estimate config, else the client's, else the built-in default."""

    if is_valid_config(estimate_config):
        return EstimatePhaseConfig.model_validate(estimate_config)
    if is_valid_config(client_config):
        return EstimatePhaseConfig.model_validate(client_config)
    return EstimatePhaseConfig.default()
