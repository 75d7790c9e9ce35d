from __future__ import annotations

import pytest

from phaseplan.planning.editor import DragMode, IntervalsChange, PhaseIntervalEditor, ResizeEdge
from phaseplan.planning.geometry import TimelineGeometry
from phaseplan.planning.intervals import SlotRange


@pytest.fixture()
def changes() -> list[IntervalsChange]:
    return []


@pytest.fixture()
def editor(changes: list[IntervalsChange]) -> PhaseIntervalEditor:
    # 100 px per slot, slot 1 starts at x=0.
    return PhaseIntervalEditor(TimelineGeometry.fit(1000), on_intervals_change=changes.append)


def _intervals() -> dict[str, SlotRange | None]:
    return {"analysis": SlotRange(3, 5), "development": SlotRange(6, 8), "uat": None}


def test_move_by_two_slots(editor: PhaseIntervalEditor, changes: list[IntervalsChange]) -> None:
    editor.begin_move("analysis", _intervals(), 250, owner_id="est-1")
    preview = editor.pointer_move(450)
    change = editor.pointer_up()

    assert preview is not None and preview.slot_range == SlotRange(5, 7)
    assert change is not None
    assert change.owner_id == "est-1"
    assert change.phase_key == "analysis"
    assert change.intervals_by_phase == {
        "analysis": SlotRange(5, 7),
        "development": SlotRange(6, 8),
        "uat": None,
    }
    assert changes == [change]
    assert not editor.is_active


def test_large_move_clamps_to_last_slot(editor: PhaseIntervalEditor) -> None:
    intervals = {"analysis": SlotRange(5, 7)}
    editor.begin_move("analysis", intervals, 450)
    editor.pointer_move(950)
    change = editor.pointer_up()

    assert change is not None
    assert change.intervals_by_phase["analysis"] == SlotRange(8, 10)


@pytest.mark.parametrize("delta", range(-1200, 1201, 37))
def test_move_keeps_length(editor: PhaseIntervalEditor, delta: int) -> None:
    editor.begin_move("analysis", _intervals(), 300)
    preview = editor.pointer_move(300 + delta)

    assert preview is not None
    assert preview.slot_range.length == 3
    assert 1 <= preview.slot_range.start <= preview.slot_range.end <= 10


def test_move_preview_is_continuous(editor: PhaseIntervalEditor) -> None:
    editor.begin_move("analysis", _intervals(), 250)
    preview = editor.pointer_move(380)

    assert preview is not None
    assert preview.x == pytest.approx(330)
    assert preview.width == 300
    assert preview.slot_range == SlotRange(4, 6)


@pytest.mark.parametrize("delta", range(-1200, 1201, 53))
def test_resize_left_never_crosses_end(editor: PhaseIntervalEditor, delta: int) -> None:
    editor.begin_resize("analysis", ResizeEdge.LEFT, _intervals(), 200)
    preview = editor.pointer_move(200 + delta)

    assert preview is not None
    assert 1 <= preview.slot_range.start <= preview.slot_range.end == 5


@pytest.mark.parametrize("delta", range(-1200, 1201, 53))
def test_resize_right_never_crosses_start(editor: PhaseIntervalEditor, delta: int) -> None:
    editor.begin_resize("analysis", "right", _intervals(), 500)
    preview = editor.pointer_move(500 + delta)

    assert preview is not None
    assert preview.slot_range.start == 3 <= preview.slot_range.end <= 10


def test_resize_edges_commit(editor: PhaseIntervalEditor) -> None:
    editor.begin_resize("analysis", ResizeEdge.LEFT, _intervals(), 200)
    editor.pointer_move(500)
    assert editor.pointer_up().intervals_by_phase["analysis"] == SlotRange(5, 5)

    editor.begin_resize("analysis", ResizeEdge.RIGHT, _intervals(), 500)
    editor.pointer_move(1200)
    assert editor.pointer_up().intervals_by_phase["analysis"] == SlotRange(3, 10)


def test_zero_movement_commits_nothing(editor: PhaseIntervalEditor, changes: list[IntervalsChange]) -> None:
    editor.begin_move("analysis", _intervals(), 300)
    editor.pointer_move(320)

    assert editor.pointer_up() is None
    assert changes == []


def test_only_one_session_at_a_time(editor: PhaseIntervalEditor) -> None:
    first = editor.begin_move("analysis", _intervals(), 300)
    second = editor.begin_move("development", _intervals(), 700)

    assert first is not None
    assert second is None
    assert editor.session is first


def test_empty_phase_cannot_be_dragged(editor: PhaseIntervalEditor) -> None:
    assert editor.begin_move("uat", _intervals(), 300) is None
    assert editor.pointer_move(500) is None
    assert editor.pointer_up() is None


def test_unknown_phase_and_repeated_release_commit_nothing(
    editor: PhaseIntervalEditor, changes: list[IntervalsChange]
) -> None:
    assert editor.begin_resize("missing", ResizeEdge.RIGHT, _intervals(), 500) is None
    assert editor.pointer_up() is None

    editor.begin_move("analysis", _intervals(), 300)
    editor.pointer_move(500)
    assert editor.pointer_up() is not None
    assert editor.pointer_up() is None
    assert len(changes) == 1
    assert not editor.is_active


def test_abandon_drops_session(editor: PhaseIntervalEditor, changes: list[IntervalsChange]) -> None:
    editor.begin_move("analysis", _intervals(), 300)
    editor.pointer_move(700)
    editor.abandon()

    assert not editor.is_active
    assert editor.preview is None
    assert editor.pointer_up() is None
    assert changes == []


def test_block_move_shifts_every_phase(editor: PhaseIntervalEditor) -> None:
    intervals = {"analysis": SlotRange(1, 2), "development": SlotRange(3, 6), "uat": None}
    editor.begin_block_move(intervals, 100, owner_id=7)
    editor.pointer_move(300)
    change = editor.pointer_up()

    assert change is not None
    assert change.phase_key is None
    assert change.intervals_by_phase == {
        "analysis": SlotRange(3, 4),
        "development": SlotRange(5, 8),
        "uat": None,
    }


def test_block_move_clamps_the_envelope(editor: PhaseIntervalEditor) -> None:
    intervals = {"analysis": SlotRange(1, 2), "development": SlotRange(3, 6)}
    editor.begin_block_move(intervals, 100)
    editor.pointer_move(2000)
    change = editor.pointer_up()

    assert change is not None
    assert change.intervals_by_phase == {"analysis": SlotRange(5, 6), "development": SlotRange(7, 10)}


def test_hit_test_and_pointer_down(editor: PhaseIntervalEditor) -> None:
    bar = SlotRange(3, 5)  # x=200, width=300

    assert editor.hit_test(bar, 203) is DragMode.RESIZE_LEFT
    assert editor.hit_test(bar, 497) is DragMode.RESIZE_RIGHT
    assert editor.hit_test(bar, 350) is DragMode.MOVE
    assert editor.hit_test(bar, 100) is None
    assert editor.hit_test(None, 350) is None

    session = editor.pointer_down("analysis", _intervals(), 350)
    assert session is not None and session.mode is DragMode.MOVE
