from __future__ import annotations

from phaseplan.planning.categories import CUSTOM_PALETTE, CategoryRegistry, normalize_category_key
from phaseplan.planning.intervals import SlotRange, TotalDays
from phaseplan.planning.phase_config import (
    DEFAULT_PHASES_CONFIG,
    EstimatePhaseConfig,
    is_valid_config,
    resolve_effective_config,
)


def test_default_config() -> None:
    config = EstimatePhaseConfig.default()

    assert config.total_days is TotalDays.DAYS_10
    assert config.analysis.slot_range == SlotRange(1, 2)
    assert config.pm.slot_range == SlotRange(1, 10)
    assert config.contingency.slot_range is None
    assert config.e2e_sum() == 100
    assert config.validate_e2e() is None
    assert "contingency" not in config.intervals_by_phase()


def test_default_config_is_not_shared() -> None:
    config = EstimatePhaseConfig.default()
    config.analysis.values.append(3)

    assert DEFAULT_PHASES_CONFIG["analysis"]["values"] == [1, 2]


def test_resolve_effective_config_precedence() -> None:
    client_config = {"analysis": {"values": [4, 5]}, "elapsed_days": 60}
    estimate_config = {"analysis": {"values": [7]}, "elapsed_days": 20}

    assert resolve_effective_config(estimate_config, client_config).analysis.values == [7]
    assert resolve_effective_config({}, client_config).total_days is TotalDays.DAYS_60
    assert resolve_effective_config(None, None).development.slot_range == SlotRange(3, 6)
    assert not is_valid_config({})
    assert not is_valid_config(None)


def test_unknown_elapsed_days_fall_back_to_ten() -> None:
    assert EstimatePhaseConfig.model_validate({"elapsed_days": 33}).elapsed_days == 10
    assert EstimatePhaseConfig.model_validate({"elapsed_days": "240"}).total_days is TotalDays.DAYS_240


def test_with_intervals_updates_values_and_total_days() -> None:
    config = EstimatePhaseConfig.default()

    updated = config.with_intervals({"analysis": SlotRange(2, 4), "release": None}, elapsed_days=120)

    assert updated.analysis.values == [2, 3, 4]
    assert updated.release.values == []
    assert updated.elapsed_days == 120
    assert updated.analysis.distribution == config.analysis.distribution
    assert config.analysis.values == [1, 2]


def test_unknown_keys_survive_a_round_trip() -> None:
    config = EstimatePhaseConfig.model_validate({"analysis": {"values": [1], "note": "x"}, "owner": "pmo"})
    payload = config.to_payload()

    assert payload["owner"] == "pmo"
    assert payload["analysis"]["note"] == "x"


def test_e2e_validation_message() -> None:
    config = EstimatePhaseConfig.default().model_copy(deep=True)
    config.analysis.e2e_percentage = 5

    assert config.validate_e2e() == "End-to-end percentages must sum to 100 (current: 95.0)."


def test_normalize_category_key() -> None:
    assert normalize_category_key("Data Migration") == "data_migration"
    assert normalize_category_key("  Q&A - Test ") == "qa_test"
    assert normalize_category_key("!!!") == ""


def test_registry_styles_cycle_custom_palette() -> None:
    registry = CategoryRegistry.from_keys(["functional", "qa", "data", "ops"])
    styles = registry.styles()

    assert styles["functional"].color == "#93C5FD"
    assert styles["functional"].label == "Functional"
    assert [styles[key].color for key in ("qa", "data", "ops")] == list(CUSTOM_PALETTE[:3])
    assert styles["qa"].label == "Qa"


def test_registry_order_and_overrides() -> None:
    registry = CategoryRegistry.from_keys(["technical", "qa", "functional"], order=["functional", "qa"])

    assert registry.keys == ("functional", "qa", "technical")
    assert CategoryRegistry.from_keys([]).keys == ("functional", "technical", "governance")

    custom = registry.with_colors({"qa": "#000000"}).with_labels({"qa": "Quality"})
    assert custom.color("qa") == "#000000"
    assert custom.label("qa") == "Quality"
    assert len(custom.without_key("qa")) == 2
