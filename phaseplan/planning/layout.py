"""Adaptive calendar layout for many projects' bars on one shared axis."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, timedelta

from phaseplan.planning.geometry import BarPosition, clamp_pixels_per_day, date_to_pixel, days_between

ROW_HEIGHT = 36
PROJECT_ROW_HEIGHT = 44
TIMELINE_HEIGHT = 60
TIMELINE_BOTTOM_MARGIN = 16
LEGEND_HEIGHT = 50
LEGEND_TOP_MARGIN = 48
LEGEND_BOTTOM_MARGIN = 20
DEFAULT_LEFT_MARGIN = 200
MIN_LEFT_MARGIN = 120
MAX_LEFT_MARGIN = 400
LEFT_PADDING = 16
RIGHT_MARGIN = 40
MIN_BAR_WIDTH = 6
MIN_PIXELS_PER_DAY = 1.5
MAX_PIXELS_PER_DAY = 40.0
MIN_COLUMN_WIDTH = 170
COLUMN_GAP = 4
AVG_CHAR_WIDTH = 7.5
MIN_PADDING_DAYS = 3
MAX_PADDING_DAYS = 30
PADDING_RATIO = 0.05
DEFAULT_CONTAINER_WIDTH = 1400

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

NEUTRAL_COLOR = "#6366F1"
STATUS_COMPLETED = 1
STATUS_IN_PROGRESS = 2
STATUS_NOT_STARTED = 3
STATUS_COLORS: dict[int, str] = {
    STATUS_COMPLETED: "#10B981",
    STATUS_IN_PROGRESS: "#F59E0B",
    STATUS_NOT_STARTED: "#94A3B8",
}
DEFAULT_STATUS_COLOR = "#94A3B8"


class Granularity(str, enum.Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    QUARTERS = "quarters"
    YEARS = "years"


@dataclass(frozen=True, slots=True)
class TimelineLabels:
    """Header label prefixes; replaced by translated strings at the edge."""

    week_short: str = "W"
    week: str = "Week"
    month: str = "Month"
    months: str = "Months"


@dataclass(frozen=True, slots=True)
class TaskRow:
    title: str
    start_date: date | None = None
    end_date: date | None = None
    status: int | str | None = None


@dataclass(frozen=True, slots=True)
class ProjectRows:
    name: str
    tasks: tuple[TaskRow, ...] = ()


@dataclass(frozen=True, slots=True)
class TimelineSegment:
    label: str
    x: float
    width: float


@dataclass(frozen=True, slots=True)
class PositionedTask:
    task: TaskRow
    y: float
    bar: BarPosition | None
    color: str


@dataclass(frozen=True, slots=True)
class PositionedProject:
    project: ProjectRows
    y: float
    tasks: tuple[PositionedTask, ...]


@dataclass(frozen=True)
class ChartLayout:
    min_date: date
    max_date: date
    total_days: int
    pixels_per_day: float
    granularity: Granularity
    segments: list[TimelineSegment]
    projects: list[PositionedProject]
    left_margin: float
    total_width: float
    total_height: float
    legend_y: float
    show_legend: bool
    scale_factor: float = 1.0


# ---------- Sizing ----------
def determine_granularity(total_days: int) -> Granularity:
    if total_days <= 14:
        return Granularity.DAYS
    if total_days <= 60:
        return Granularity.WEEKS
    if total_days <= 365:
        return Granularity.MONTHS
    if total_days <= 1095:
        return Granularity.QUARTERS
    return Granularity.YEARS


def estimate_text_width(text: str | None, *, bold: bool = False) -> float:
    if not text:
        return 0.0
    char_width = AVG_CHAR_WIDTH * 1.1 if bold else AVG_CHAR_WIDTH
    return len(text) * char_width


def optimal_left_margin(projects: Sequence[ProjectRows]) -> float:
    """Left margin wide enough for the longest row label, within bounds."""

    titles = [task.title for project in projects for task in project.tasks]
    if not titles:
        return DEFAULT_LEFT_MARGIN
    widest = max(estimate_text_width(title) for title in titles)
    return max(MIN_LEFT_MARGIN, min(MAX_LEFT_MARGIN, widest + LEFT_PADDING))


def padding_days(duration_days: int) -> int:
    return max(MIN_PADDING_DAYS, min(MAX_PADDING_DAYS, math.ceil(duration_days * PADDING_RATIO)))


def date_range_of(projects: Iterable[ProjectRows]) -> tuple[date, date] | None:
    starts: list[date] = []
    ends: list[date] = []
    for project in projects:
        for task in project.tasks:
            if task.start_date and task.end_date:
                starts.append(task.start_date)
                ends.append(task.end_date)
    if not starts:
        return None
    return min(starts), max(ends)


def bar_position(task: TaskRow, min_date: date, pixels_per_day: float, left_margin: float) -> BarPosition | None:
    if task.start_date is None or task.end_date is None:
        return None
    x = date_to_pixel(task.start_date, min_date, pixels_per_day, left_margin)
    duration = max(1, days_between(task.start_date, task.end_date) + 1)
    return BarPosition(x=x, width=max(MIN_BAR_WIDTH, duration * pixels_per_day))


# ---------- Status colors ----------
def parse_status_id(status: int | str | None) -> int | None:
    if isinstance(status, bool) or status is None:
        return None
    if isinstance(status, int):
        return status
    upper = status.upper()
    if "DONE" in upper or "COMPLET" in upper:
        return STATUS_COMPLETED
    if "PROGRESS" in upper or "CORSO" in upper:
        return STATUS_IN_PROGRESS
    if "NEW" in upper or "PIANIFIC" in upper or "PLANNED" in upper:
        return STATUS_NOT_STARTED
    return None


def status_color(status: int | str | None, *, color_by_status: bool = True) -> str:
    if not color_by_status:
        return NEUTRAL_COLOR
    status_id = parse_status_id(status)
    return STATUS_COLORS.get(status_id, DEFAULT_STATUS_COLOR)


# ---------- Calendar helpers ----------
def _month_start(day: date) -> date:
    return date(day.year, day.month, 1)


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _visible_days(start: date, end: date, range_start: date, range_end: date) -> int:
    visible_start = max(start, range_start)
    visible_end = min(end, range_end)
    return days_between(visible_start, visible_end) + 1


def _label_width(width: float) -> float:
    return max(0.0, width - COLUMN_GAP)


# ---------- Timeline generators ----------
def days_timeline(start: date, end: date, pixels_per_day: float, left_margin: float) -> list[TimelineSegment]:
    segments: list[TimelineSegment] = []
    x = left_margin
    current = start
    while current <= end:
        segments.append(TimelineSegment(f"{current.day}/{current.month}", x, _label_width(pixels_per_day)))
        x += pixels_per_day
        current += timedelta(days=1)
    return segments


def weeks_timeline(
    start: date,
    end: date,
    pixels_per_day: float,
    left_margin: float,
    prefix: str = "W",
    separator: str = "",
) -> list[TimelineSegment]:
    segments: list[TimelineSegment] = []
    x = left_margin
    current = start - timedelta(days=start.weekday())
    number = 1
    while current <= end:
        width = _visible_days(current, current + timedelta(days=6), start, end) * pixels_per_day
        segments.append(TimelineSegment(f"{prefix}{separator}{number}", x, _label_width(width)))
        x += width
        current += timedelta(days=7)
        number += 1
    return segments


def _grouped_timeline(
    periods: list[tuple[date, date]],
    start: date,
    end: date,
    pixels_per_day: float,
    left_margin: float,
    label_for,
) -> list[TimelineSegment]:
    """Merge consecutive periods until a group is wide enough for a label."""

    segments: list[TimelineSegment] = []
    x = left_margin
    group: list[tuple[date, date]] = []
    group_width = 0.0
    for index, (period_start, period_end) in enumerate(periods):
        group.append((period_start, period_end))
        group_width += _visible_days(period_start, period_end, start, end) * pixels_per_day
        is_last = index == len(periods) - 1
        if group_width >= MIN_COLUMN_WIDTH or is_last:
            width = max(MIN_COLUMN_WIDTH, group_width - COLUMN_GAP)
            segments.append(TimelineSegment(label_for(group), x, width))
            x += width + COLUMN_GAP
            group = []
            group_width = 0.0
    return segments


def _month_periods(start: date, end: date) -> list[tuple[date, date]]:
    periods = []
    current = _month_start(start)
    while current <= end:
        following = _add_months(current, 1)
        periods.append((current, following - timedelta(days=1)))
        current = following
    return periods


def _quarter_periods(start: date, end: date) -> list[tuple[date, date]]:
    periods = []
    current = date(start.year, (start.month - 1) // 3 * 3 + 1, 1)
    while current <= end:
        following = _add_months(current, 3)
        periods.append((current, following - timedelta(days=1)))
        current = following
    return periods


def _month_label(group: list[tuple[date, date]]) -> str:
    first, last = group[0][0], group[-1][0]
    if len(group) == 1:
        return f"{MONTH_ABBR[first.month - 1]} {first.year}"
    first_abbr = MONTH_ABBR[first.month - 1].upper()
    last_abbr = MONTH_ABBR[last.month - 1].upper()
    if first.year == last.year:
        return f"{first_abbr}-{last_abbr} {first.year}"
    return f"{first_abbr} {first.year} - {last_abbr} {last.year}"


def _quarter_label(group: list[tuple[date, date]]) -> str:
    first, last = group[0][0], group[-1][0]
    first_q = (first.month - 1) // 3 + 1
    last_q = (last.month - 1) // 3 + 1
    if len(group) == 1:
        return f"Q{first_q} {first.year}"
    if first.year == last.year:
        return f"Q{first_q}-Q{last_q} {first.year}"
    return f"Q{first_q} {first.year} - Q{last_q} {last.year}"


def months_timeline(start: date, end: date, pixels_per_day: float, left_margin: float) -> list[TimelineSegment]:
    return _grouped_timeline(_month_periods(start, end), start, end, pixels_per_day, left_margin, _month_label)


def quarters_timeline(start: date, end: date, pixels_per_day: float, left_margin: float) -> list[TimelineSegment]:
    return _grouped_timeline(_quarter_periods(start, end), start, end, pixels_per_day, left_margin, _quarter_label)


def years_timeline(start: date, end: date, pixels_per_day: float, left_margin: float) -> list[TimelineSegment]:
    segments: list[TimelineSegment] = []
    x = left_margin
    year = start.year
    while date(year, 1, 1) <= end:
        width = _visible_days(date(year, 1, 1), date(year, 12, 31), start, end) * pixels_per_day
        segments.append(TimelineSegment(str(year), x, _label_width(width)))
        x += width
        year += 1
    return segments


def anonymous_months_timeline(
    start: date,
    end: date,
    pixels_per_day: float,
    left_margin: float,
    labels: TimelineLabels = TimelineLabels(),
) -> list[TimelineSegment]:
    periods = _month_periods(start, end)
    numbers = {period_start: index + 1 for index, (period_start, _) in enumerate(periods)}

    def label_for(group: list[tuple[date, date]]) -> str:
        first = numbers[group[0][0]]
        last = numbers[group[-1][0]]
        if len(group) == 1:
            return f"{labels.month} {first}"
        return f"{labels.months} {first}-{last}"

    return _grouped_timeline(periods, start, end, pixels_per_day, left_margin, label_for)


def adaptive_timeline(
    start: date,
    end: date,
    pixels_per_day: float,
    granularity: Granularity,
    left_margin: float,
    *,
    anonymize: bool = False,
    labels: TimelineLabels = TimelineLabels(),
) -> list[TimelineSegment]:
    if anonymize:
        if granularity in (Granularity.DAYS, Granularity.WEEKS):
            return weeks_timeline(start, end, pixels_per_day, left_margin, labels.week, " ")
        return anonymous_months_timeline(start, end, pixels_per_day, left_margin, labels)

    if granularity is Granularity.DAYS:
        return days_timeline(start, end, pixels_per_day, left_margin)
    if granularity is Granularity.WEEKS:
        return weeks_timeline(start, end, pixels_per_day, left_margin, labels.week_short)
    if granularity is Granularity.QUARTERS:
        return quarters_timeline(start, end, pixels_per_day, left_margin)
    if granularity is Granularity.YEARS:
        return years_timeline(start, end, pixels_per_day, left_margin)
    return months_timeline(start, end, pixels_per_day, left_margin)


# ---------- Chart ----------
def fit_segments(
    segments: list[TimelineSegment],
    left_margin: float,
    container_width: float,
) -> tuple[list[TimelineSegment], float]:
    """Uniformly rescale segments that overflow the container.

    Returns the segments and the factor applied (1.0 when they already fit);
    bar placement must use the same factor on its pixels-per-day.
    """

    if not segments:
        return segments, 1.0
    last = segments[-1]
    theoretical = last.x + last.width + RIGHT_MARGIN
    if theoretical <= container_width:
        return segments, 1.0

    available = container_width - left_margin - RIGHT_MARGIN
    current = theoretical - left_margin - RIGHT_MARGIN
    if current <= 0 or available <= 0:
        return segments, 1.0
    factor = available / current
    scaled = [
        replace(segment, x=left_margin + (segment.x - left_margin) * factor, width=segment.width * factor)
        for segment in segments
    ]
    return scaled, factor


def build_chart_layout(
    projects: Sequence[ProjectRows],
    date_range: tuple[date, date] | None = None,
    container_width: float = DEFAULT_CONTAINER_WIDTH,
    *,
    show_project_headers: bool = True,
    color_by_status: bool = True,
    show_milestones: bool = False,
    anonymize: bool = False,
    labels: TimelineLabels = TimelineLabels(),
    min_pixels_per_day: float = MIN_PIXELS_PER_DAY,
    max_pixels_per_day: float = MAX_PIXELS_PER_DAY,
) -> ChartLayout | None:
    """Position every project's rows on one padded, width-fitted calendar axis."""

    if not projects:
        return None
    date_range = date_range or date_range_of(projects)
    if date_range is None:
        return None

    range_start, range_end = sorted(date_range)
    left_margin = optimal_left_margin(projects)
    padding = timedelta(days=padding_days(days_between(range_start, range_end) + 1))
    min_date = range_start - padding
    max_date = range_end + padding
    total_days = days_between(min_date, max_date) + 1

    available = container_width - left_margin - RIGHT_MARGIN
    pixels_per_day = clamp_pixels_per_day(available / total_days, min_pixels_per_day, max_pixels_per_day)
    granularity = determine_granularity(total_days)

    segments = adaptive_timeline(
        min_date,
        max_date,
        pixels_per_day,
        granularity,
        left_margin,
        anonymize=anonymize,
        labels=labels,
    )
    segments, factor = fit_segments(segments, left_margin, container_width)
    pixels_per_day *= factor

    y = float(TIMELINE_HEIGHT + TIMELINE_BOTTOM_MARGIN)
    positioned: list[PositionedProject] = []
    for project in projects:
        project_y = y
        if show_project_headers:
            y += PROJECT_ROW_HEIGHT
        rows = []
        for task in project.tasks:
            rows.append(
                PositionedTask(
                    task=task,
                    y=y,
                    bar=bar_position(task, min_date, pixels_per_day, left_margin),
                    color=status_color(task.status, color_by_status=color_by_status),
                )
            )
            y += ROW_HEIGHT
        positioned.append(PositionedProject(project=project, y=project_y, tasks=tuple(rows)))

    show_legend = color_by_status or show_milestones
    legend_y = y + LEGEND_TOP_MARGIN
    total_height = legend_y + (LEGEND_HEIGHT + LEGEND_BOTTOM_MARGIN if show_legend else 0)

    return ChartLayout(
        min_date=min_date,
        max_date=max_date,
        total_days=total_days,
        pixels_per_day=pixels_per_day,
        granularity=granularity,
        segments=segments,
        projects=positioned,
        left_margin=left_margin,
        total_width=container_width,
        total_height=total_height,
        legend_y=legend_y,
        show_legend=show_legend,
        scale_factor=factor,
    )
