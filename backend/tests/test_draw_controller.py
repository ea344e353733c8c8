from __future__ import annotations

import pytest

from geo.screen import DrawBounds, ScreenPoint
from selection.draw import DrawSelectionController, DrawState


def _drag(ctrl: DrawSelectionController, start, end, *, leave: bool = False):
    ctrl.pointer_down(ScreenPoint(*start))
    ctrl.pointer_move(ScreenPoint((start[0] + end[0]) / 2, (start[1] + end[1]) / 2))
    ctrl.pointer_move(ScreenPoint(*end))
    return ctrl.pointer_leave() if leave else ctrl.pointer_up()


def test_rectangle_drag_emits_bounds_and_stays_armed():
    emitted: list[DrawBounds] = []
    ctrl = DrawSelectionController(on_complete=emitted.append)
    ctrl.select_tool("rectangle")
    assert ctrl.state is DrawState.armed

    out = _drag(ctrl, (100, 100), (300, 300))
    assert out == DrawBounds(
        shape="rectangle", start=ScreenPoint(100, 100), end=ScreenPoint(300, 300)
    )
    assert emitted == [out]
    assert ctrl.state is DrawState.armed
    assert ctrl.mode == "rectangle"


def test_pointer_leave_finalizes_like_pointer_up():
    emitted: list[DrawBounds] = []
    ctrl = DrawSelectionController(on_complete=emitted.append)
    ctrl.select_tool("circle")
    out = _drag(ctrl, (200, 200), (250, 230), leave=True)
    assert out is not None and out.shape == "circle"
    assert len(emitted) == 1


@pytest.mark.parametrize(
    "end",
    [(110, 300), (300, 110), (105, 105), (90, 300), (100, 100)],
)
def test_small_drags_are_discarded(end):
    emitted: list[DrawBounds] = []
    ctrl = DrawSelectionController(on_complete=emitted.append)
    ctrl.select_tool("rectangle")
    assert _drag(ctrl, (100, 100), end) is None
    assert emitted == []
    assert ctrl.state is DrawState.armed


def test_drag_just_over_threshold_is_kept():
    ctrl = DrawSelectionController()
    ctrl.select_tool("rectangle")
    assert _drag(ctrl, (100, 100), (111, 89)) is not None


def test_pointer_up_position_updates_current():
    ctrl = DrawSelectionController()
    ctrl.select_tool("rectangle")
    ctrl.pointer_down(ScreenPoint(0, 0))
    out = ctrl.pointer_up(ScreenPoint(50, 60))
    assert out is not None
    assert out.end == ScreenPoint(50, 60)


def test_pointer_events_ignored_when_not_armed():
    ctrl = DrawSelectionController()
    ctrl.pointer_down(ScreenPoint(0, 0))
    ctrl.pointer_move(ScreenPoint(100, 100))
    assert ctrl.pointer_up(ScreenPoint(100, 100)) is None
    assert ctrl.state is DrawState.none


def test_tool_switch_is_ignored_while_dragging():
    ctrl = DrawSelectionController()
    ctrl.select_tool("rectangle")
    ctrl.pointer_down(ScreenPoint(0, 0))
    ctrl.select_tool("circle")
    assert ctrl.state is DrawState.dragging
    assert ctrl.mode == "rectangle"
    out = ctrl.pointer_up(ScreenPoint(40, 40))
    assert out is not None and out.shape == "rectangle"


def test_preview_tracks_drag():
    ctrl = DrawSelectionController()
    ctrl.select_tool("circle")
    assert ctrl.preview() is None
    ctrl.pointer_down(ScreenPoint(10, 10))
    ctrl.pointer_move(ScreenPoint(30, 40))
    p = ctrl.preview()
    assert p is not None and p.radius == pytest.approx(36.0555, rel=1e-4)


def test_clear_and_pointer_tool_return_to_none_and_report_mode_changes():
    changes: list[tuple[str, str]] = []
    ctrl = DrawSelectionController(on_mode_change=lambda a, b: changes.append((a, b)))
    ctrl.select_tool("rectangle")
    ctrl.select_tool("circle")
    ctrl.select_tool("none")
    ctrl.select_tool("circle")
    ctrl.clear()
    assert ctrl.state is DrawState.none
    assert changes == [
        ("none", "rectangle"),
        ("rectangle", "circle"),
        ("circle", "none"),
        ("none", "circle"),
        ("circle", "none"),
    ]


def test_unknown_mode_is_rejected():
    ctrl = DrawSelectionController()
    with pytest.raises(ValueError):
        ctrl.select_tool("polygon")  # type: ignore[arg-type]
