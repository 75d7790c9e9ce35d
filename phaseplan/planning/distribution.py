"""Per-phase percentage split of effort across dynamic categories."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from phaseplan.planning.categories import CategoryRegistry, normalize_category_key
from phaseplan.planning.phase_config import SUM_TOLERANCE, TIMELINE_PHASES, EstimatePhaseConfig

Distribution = dict[str, dict[str, float]]


class DistributionError(ValueError):
    """A rejected edit; the table is left unchanged."""


@dataclass(frozen=True, slots=True)
class ValidationResult:
    ok: bool
    phase: str | None = None
    actual_sum: float | None = None
    message: str | None = None


def coerce_percentage(value: object) -> float:
    """Non-negative number from raw cell input; anything unusable becomes 0."""

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


class DistributionTable:
    """Editable phase x category percentage table with row-sum validation."""

    def __init__(
        self,
        phases: Iterable[str],
        distribution: Mapping[str, Mapping[str, float]],
        registry: CategoryRegistry,
        *,
        on_distribution_change: Callable[[Distribution], None] | None = None,
        on_category_keys_change: Callable[[list[str]], None] | None = None,
    ) -> None:
        self.phases = tuple(phases)
        self.registry = registry
        self.on_distribution_change = on_distribution_change
        self.on_category_keys_change = on_category_keys_change
        # Every phase carries an entry for every category key.
        self._distribution: Distribution = {
            phase: {key: coerce_percentage(distribution.get(phase, {}).get(key)) for key in registry.keys}
            for phase in self.phases
        }

    @classmethod
    def from_config(
        cls,
        config: EstimatePhaseConfig,
        phases: Iterable[str] = TIMELINE_PHASES,
        **callbacks: Callable,
    ) -> DistributionTable:
        phases = tuple(phases)
        return cls(phases, config.distribution(phases), config.category_registry(), **callbacks)

    @property
    def category_keys(self) -> list[str]:
        return list(self.registry.keys)

    @property
    def distribution(self) -> Distribution:
        return {phase: dict(row) for phase, row in self._distribution.items()}

    def cell(self, phase: str, category: str) -> float:
        return self._distribution[phase].get(category, 0.0)

    # ---------- Edits ----------
    def set_cell(self, phase: str, category: str, value: object) -> float:
        if phase not in self._distribution:
            raise DistributionError(f"Unknown phase: {phase}")
        if category not in self.registry:
            raise DistributionError(f"Unknown category: {category}")
        number = coerce_percentage(value)
        self._distribution[phase][category] = number
        self._notify_distribution()
        return number

    def add_category(self, name: str) -> str:
        key = normalize_category_key(name)
        if not key:
            raise DistributionError("Category name is empty.")
        if key in self.registry:
            raise DistributionError(f"Category already exists: {key}")

        self.registry = self.registry.with_key(key)
        for row in self._distribution.values():
            row[key] = 0.0
        self._notify_keys()
        self._notify_distribution()
        return key

    def remove_category(self, key: str) -> None:
        if len(self.registry) <= 1:
            raise DistributionError("Must keep at least one category.")
        if key not in self.registry:
            raise DistributionError(f"Unknown category: {key}")

        self.registry = self.registry.without_key(key)
        for row in self._distribution.values():
            row.pop(key, None)
        self._notify_keys()
        self._notify_distribution()

    # ---------- Validation ----------
    def row_sum(self, phase: str) -> float:
        return math.fsum(self._distribution.get(phase, {}).values())

    def is_row_valid(self, phase: str) -> bool:
        return abs(self.row_sum(phase) - 100) <= SUM_TOLERANCE

    def validate(self) -> ValidationResult:
        """Report the first phase whose row does not sum to 100."""

        for phase in self.phases:
            total = self.row_sum(phase)
            if abs(total - 100) > SUM_TOLERANCE:
                return ValidationResult(
                    ok=False,
                    phase=phase,
                    actual_sum=total,
                    message=f"Distribution of phase '{phase}' must sum to 100 (current: {total:g}).",
                )
        return ValidationResult(ok=True)

    def apply_to(self, config: EstimatePhaseConfig) -> EstimatePhaseConfig:
        return config.with_distribution(self.distribution).with_category_order(self.category_keys)

    def _notify_distribution(self) -> None:
        if self.on_distribution_change is not None:
            self.on_distribution_change(self.distribution)

    def _notify_keys(self) -> None:
        if self.on_category_keys_change is not None:
            self.on_category_keys_change(self.category_keys)
