"""Drag / resize state machine for phase bars on the 10-slot timeline.

States::

    Idle -> Dragging(move | resize-left | resize-right | block-move) -> Idle

A session is opened on pointer-down, updated on every pointer-move with an
ephemeral preview, and closed on pointer-up. Only pointer-up writes back:
the committed intervals are reported once through ``on_intervals_change``.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Hashable, Mapping
from dataclasses import dataclass, field

from phaseplan.planning.geometry import BarPosition, TimelineGeometry, round_half_up
from phaseplan.planning.intervals import MAX_SLOT, MIN_SLOT, IntervalsByPhase, SlotRange, envelope

# Half width of the grab area around each bar edge, in pixels.
HANDLE_HALF_WIDTH = 6.0


class DragMode(str, enum.Enum):
    MOVE = "move"
    RESIZE_LEFT = "resize-left"
    RESIZE_RIGHT = "resize-right"
    BLOCK_MOVE = "block-move"


class ResizeEdge(str, enum.Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class DragSession:
    """Snapshot taken on pointer-down."""

    mode: DragMode
    phase_key: str | None
    owner_id: Hashable | None
    initial_range: SlotRange
    base: BarPosition
    origin_x: float
    initial_intervals: Mapping[str, SlotRange | None] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DragPreview:
    """Ephemeral visual state; never written to the committed model."""

    x: float
    width: float
    slot_range: SlotRange


@dataclass(frozen=True, slots=True)
class IntervalsChange:
    owner_id: Hashable | None
    phase_key: str | None
    intervals_by_phase: IntervalsByPhase


IntervalsChangeCallback = Callable[[IntervalsChange], None]


class PhaseIntervalEditor:
    """Interactive editor for one timeline drawing area."""

    def __init__(
        self,
        geometry: TimelineGeometry,
        on_intervals_change: IntervalsChangeCallback | None = None,
    ) -> None:
        self.geometry = geometry
        self.on_intervals_change = on_intervals_change
        self._session: DragSession | None = None
        self._preview: DragPreview | None = None

    @property
    def session(self) -> DragSession | None:
        return self._session

    @property
    def preview(self) -> DragPreview | None:
        return self._preview

    @property
    def is_active(self) -> bool:
        return self._session is not None

    # ---------- Idle -> Dragging ----------
    def hit_test(self, slot_range: SlotRange | None, pointer_x: float) -> DragMode | None:
        """Which interaction a pointer-down at ``pointer_x`` starts on this bar."""

        bar = self.geometry.bar_position(slot_range)
        if bar is None:
            return None
        if abs(pointer_x - bar.x) <= HANDLE_HALF_WIDTH:
            return DragMode.RESIZE_LEFT
        if abs(pointer_x - (bar.x + bar.width)) <= HANDLE_HALF_WIDTH:
            return DragMode.RESIZE_RIGHT
        if bar.x < pointer_x < bar.x + bar.width:
            return DragMode.MOVE
        return None

    def pointer_down(
        self,
        phase_key: str,
        intervals: Mapping[str, SlotRange | None],
        pointer_x: float,
        *,
        owner_id: Hashable | None = None,
    ) -> DragSession | None:
        mode = self.hit_test(intervals.get(phase_key), pointer_x)
        if mode is DragMode.MOVE:
            return self.begin_move(phase_key, intervals, pointer_x, owner_id=owner_id)
        if mode is DragMode.RESIZE_LEFT:
            return self.begin_resize(phase_key, ResizeEdge.LEFT, intervals, pointer_x, owner_id=owner_id)
        if mode is DragMode.RESIZE_RIGHT:
            return self.begin_resize(phase_key, ResizeEdge.RIGHT, intervals, pointer_x, owner_id=owner_id)
        return None

    def begin_move(
        self,
        phase_key: str,
        intervals: Mapping[str, SlotRange | None],
        pointer_x: float,
        *,
        owner_id: Hashable | None = None,
    ) -> DragSession | None:
        return self._begin(DragMode.MOVE, phase_key, intervals, pointer_x, owner_id)

    def begin_resize(
        self,
        phase_key: str,
        edge: ResizeEdge | str,
        intervals: Mapping[str, SlotRange | None],
        pointer_x: float,
        *,
        owner_id: Hashable | None = None,
    ) -> DragSession | None:
        mode = DragMode.RESIZE_LEFT if ResizeEdge(edge) is ResizeEdge.LEFT else DragMode.RESIZE_RIGHT
        return self._begin(mode, phase_key, intervals, pointer_x, owner_id)

    def begin_block_move(
        self,
        intervals: Mapping[str, SlotRange | None],
        pointer_x: float,
        *,
        owner_id: Hashable | None = None,
    ) -> DragSession | None:
        """Move every phase of one owner together (summary bar)."""

        return self._begin(DragMode.BLOCK_MOVE, None, intervals, pointer_x, owner_id)

    def _begin(
        self,
        mode: DragMode,
        phase_key: str | None,
        intervals: Mapping[str, SlotRange | None],
        pointer_x: float,
        owner_id: Hashable | None,
    ) -> DragSession | None:
        # A new pointer-down is only honoured after a clean pointer-up.
        if self._session is not None:
            return None

        if mode is DragMode.BLOCK_MOVE:
            initial = envelope(intervals)
        else:
            initial = intervals.get(phase_key) if phase_key is not None else None
        if initial is None:
            return None

        base = self.geometry.bar_position(initial)
        if base is None:
            return None
        self._session = DragSession(
            mode=mode,
            phase_key=phase_key,
            owner_id=owner_id,
            initial_range=initial,
            base=base,
            origin_x=pointer_x,
            initial_intervals=dict(intervals),
        )
        self._preview = DragPreview(x=base.x, width=base.width, slot_range=initial)
        return self._session

    # ---------- Dragging -> Dragging ----------
    def pointer_move(self, pointer_x: float) -> DragPreview | None:
        session = self._session
        if session is None:
            return None

        delta = self.geometry.delta_slots(pointer_x - session.origin_x)
        initial = session.initial_range
        width = self.geometry.slot_width

        if session.mode in (DragMode.MOVE, DragMode.BLOCK_MOVE):
            # Continuous start for sub-slot feedback; snapped on pointer-up.
            start = initial.start + delta
            start = max(MIN_SLOT, min(MAX_SLOT - initial.length + 1, start))
            snapped = initial.shifted(round_half_up(start) - initial.start)
            preview = DragPreview(
                x=self.geometry.slot_to_pixel(start),
                width=session.base.width,
                slot_range=snapped,
            )
        elif session.mode is DragMode.RESIZE_LEFT:
            start = initial.start + round_half_up(delta)
            start = max(MIN_SLOT, min(initial.end, start))
            resized = SlotRange(start, initial.end)
            preview = DragPreview(
                x=self.geometry.slot_to_pixel(start),
                width=resized.length * width,
                slot_range=resized,
            )
        else:
            end = initial.end + round_half_up(delta)
            end = max(initial.start, min(MAX_SLOT, end))
            resized = SlotRange(initial.start, end)
            preview = DragPreview(
                x=session.base.x,
                width=resized.length * width,
                slot_range=resized,
            )

        self._preview = preview
        return preview

    # ---------- Dragging -> Idle ----------
    def pointer_up(self) -> IntervalsChange | None:
        """Snap, validate and commit; zero net movement commits nothing."""

        session = self._session
        preview = self._preview
        self._session = None
        self._preview = None
        if session is None or preview is None:
            return None

        committed = preview.slot_range
        if committed == session.initial_range:
            return None

        updated: IntervalsByPhase = dict(session.initial_intervals)
        if session.mode is DragMode.BLOCK_MOVE:
            shift = committed.start - session.initial_range.start
            for key, value in updated.items():
                if value is not None:
                    updated[key] = value.shifted(shift)
        elif session.phase_key is not None:
            updated[session.phase_key] = committed
        else:
            return None

        change = IntervalsChange(
            owner_id=session.owner_id,
            phase_key=session.phase_key,
            intervals_by_phase=updated,
        )
        if self.on_intervals_change is not None:
            self.on_intervals_change(change)
        return change

    def abandon(self) -> None:
        """Teardown mid-drag: drop the session without committing."""

        self._session = None
        self._preview = None
