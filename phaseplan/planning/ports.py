"""Collaborators the planning engine talks to but does not implement."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from phaseplan.planning.aggregation import FTEResult
from phaseplan.planning.intervals import IntervalsByPhase, TotalDays


class EstimateNotFoundError(LookupError):
    def __init__(self, estimate_id: Hashable) -> None:
        super().__init__(f"Estimate not found: {estimate_id}")
        self.estimate_id = estimate_id


@dataclass(slots=True)
class EstimateRecord:
    id: Hashable
    name: str
    phases_config: Mapping[str, Any] | None = None
    client_phases_config: Mapping[str, Any] | None = None


class EstimateStore(Protocol):
    def fetch_estimate(self, estimate_id: Hashable) -> EstimateRecord:
        """Raise ``EstimateNotFoundError`` for unknown ids."""

    def persist_estimate_config(self, estimate_id: Hashable, config: Mapping[str, Any]) -> None:
        ...


class FTECalculator(Protocol):
    def compute_fte(
        self,
        estimate_id: Hashable,
        total_days: TotalDays,
        intervals_by_phase: IntervalsByPhase,
    ) -> FTEResult:
        ...


class CategoryLabelResolver(Protocol):
    def resolve(self, key: str) -> str | None:
        """Localized label, or ``None`` to fall back to the built-in one."""
