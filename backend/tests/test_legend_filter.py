from __future__ import annotations

from layers.legend import LegendFilter
from layers.registry import LayerRegistry
from mapconfig.types import LayerConfig, LegendEntry
from renderer.expressions import matches


def _alerts() -> LayerConfig:
    return LayerConfig(
        id="points",
        name="Active Alerts",
        type="circle",
        data_url="alerts",
        legend_property="severity",
        legend=[
            LegendEntry(label="High", color="#ef4444"),
            LegendEntry(label="Medium", color="#f59e0b"),
            LegendEntry(label="Low", color="#22c55e"),
        ],
    )


def _ready(renderer, base_maps, layers=None) -> tuple[LayerRegistry, LegendFilter]:
    registry = LayerRegistry(layers or [_alerts()], base_maps)
    legend = LegendFilter(registry)
    registry.attach(renderer)
    renderer.load()
    return registry, legend


def test_toggle_hides_and_shows_a_class(renderer, base_maps):
    _, legend = _ready(renderer, base_maps)
    assert legend.toggle("points", "High") is True
    flt = renderer.get_filter("points")
    assert not matches(flt, {"severity": "High"})
    assert matches(flt, {"severity": "Low"})
    assert legend.hidden_labels("points") == {"High"}

    assert legend.toggle("points", "High") is False
    assert renderer.get_filter("points") is None
    assert matches(renderer.get_filter("points"), {"severity": "High"})


def test_entry_value_overrides_label(renderer, base_maps):
    layer = LayerConfig(
        id="wells",
        name="Wells",
        type="circle",
        data_url="alerts",
        legend_property="status_code",
        legend=[LegendEntry(label="Shut in", value=3)],
    )
    _, legend = _ready(renderer, base_maps, [layer])
    legend.toggle("wells", "Shut in")
    assert legend.filter_expression("wells") == [
        "!",
        ["in", ["get", "status_code"], ["literal", [3]]],
    ]
    assert not matches(renderer.get_filter("wells"), {"status_code": 3})


def test_unknown_layer_or_label_is_ignored(renderer, base_maps):
    plain = LayerConfig(id="plain", name="Plain", type="circle", data_url="alerts")
    _, legend = _ready(renderer, base_maps, [_alerts(), plain])
    assert legend.toggle("points", "Critical") is False
    assert legend.toggle("plain", "High") is False
    assert legend.toggle("missing", "High") is False
    assert renderer.get_filter("points") is None


def test_hidden_classes_survive_a_style_change(renderer, base_maps):
    registry, legend = _ready(renderer, base_maps)
    legend.toggle("points", "Medium")
    registry.change_base_style("satellite")
    renderer.signal_idle()
    assert not matches(renderer.get_filter("points"), {"severity": "Medium"})


def test_toggle_before_ready_applies_on_load(renderer, base_maps):
    registry = LayerRegistry([_alerts()], base_maps)
    legend = LegendFilter(registry)
    legend.toggle("points", "Low")
    registry.attach(renderer)
    renderer.load()
    assert not matches(renderer.get_filter("points"), {"severity": "Low"})
