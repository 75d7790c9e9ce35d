"""Slot-based phase planning engine: intervals, editing, distribution, aggregation, layout."""

from phaseplan.planning.aggregation import AggregatedResult, FTEResult, aggregate_fte_results
from phaseplan.planning.distribution import DistributionError, DistributionTable
from phaseplan.planning.editor import DragMode, IntervalsChange, PhaseIntervalEditor
from phaseplan.planning.geometry import TimelineGeometry
from phaseplan.planning.intervals import SlotRange, TotalDays
from phaseplan.planning.layout import build_chart_layout
from phaseplan.planning.phase_config import EstimatePhaseConfig

__all__ = [
    "AggregatedResult",
    "DistributionError",
    "DistributionTable",
    "DragMode",
    "EstimatePhaseConfig",
    "FTEResult",
    "IntervalsChange",
    "PhaseIntervalEditor",
    "SlotRange",
    "TimelineGeometry",
    "TotalDays",
    "aggregate_fte_results",
    "build_chart_layout",
]
