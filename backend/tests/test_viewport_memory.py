from __future__ import annotations

from geo.view import LngLat, Viewport
from layers.registry import LayerRegistry
from selection.draw import DrawSelectionController
from selection.viewport import ViewportMemory


def _memory(renderer) -> ViewportMemory:
    registry = LayerRegistry([])
    registry.attach(renderer)
    return ViewportMemory(registry)


def test_first_tool_selection_captures_camera(renderer):
    memory = _memory(renderer)
    memory.on_mode_change("none", "rectangle")
    assert memory.saved == Viewport(center=LngLat(0.0, 0.0), zoom=10.0)


def test_switching_tools_keeps_the_first_snapshot(renderer):
    memory = _memory(renderer)
    ctrl = DrawSelectionController(on_mode_change=memory.on_mode_change)
    ctrl.select_tool("rectangle")
    renderer.jump_to(center=LngLat(5.0, 5.0), zoom=12.0)
    ctrl.select_tool("circle")
    # Pointer tool and back again is still the same session.
    ctrl.select_tool("none")
    ctrl.select_tool("rectangle")
    assert memory.saved == Viewport(center=LngLat(0.0, 0.0), zoom=10.0)


def test_restore_flies_back_exactly_once(renderer):
    memory = _memory(renderer)
    memory.on_mode_change("none", "circle")
    renderer.jump_to(center=LngLat(-90.0, 27.5), zoom=7.0)

    assert memory.restore() is True
    assert memory.restore() is False
    assert renderer.camera_history == [
        ("fly_to", Viewport(center=LngLat(0.0, 0.0), zoom=10.0))
    ]
    assert renderer.get_center() == LngLat(0.0, 0.0)
    assert renderer.get_zoom() == 10.0
    assert memory.saved is None


def test_restore_without_snapshot_does_nothing(renderer):
    memory = _memory(renderer)
    assert memory.restore() is False
    assert renderer.camera_history == []


def test_no_renderer_means_no_snapshot():
    memory = ViewportMemory(LayerRegistry([]))
    memory.on_mode_change("none", "rectangle")
    assert memory.saved is None
    assert memory.restore() is False
