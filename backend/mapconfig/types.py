from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


RenderType = Literal["fill", "line", "circle", "symbol"]
# geojson: inline-geometry feed; pmtiles: tiled vector feed.
SourceType = Literal["geojson", "pmtiles"]


class LegendEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    color: str = "#6b7280"
    # Property value this entry classifies. Defaults to the label.
    value: str | int | float | bool | None = None

    def match_value(self) -> Any:
        return self.label if self.value is None else self.value


class LayerConfig(BaseModel):
    """
    A single map layer as delivered by the configuration feed.

    Both the snake_case keys of the backend feed (`data_url`, `source_type`,
    `source_layer`) and the camelCase keys of the older frontend config
    (`source`, `sourceType`, `zIndex`) are accepted.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: RenderType
    source_type: SourceType = Field(
        default="geojson", validation_alias=AliasChoices("source_type", "sourceType")
    )
    # Feed location; doubles as the renderer source id.
    data_url: str | None = Field(
        default=None, validation_alias=AliasChoices("data_url", "dataUrl", "source")
    )
    source_layer: str | None = Field(
        default=None, validation_alias=AliasChoices("source_layer", "sourceLayer")
    )
    visible: bool = True
    # Opaque renderer style parameters.
    paint: dict[str, Any] = Field(default_factory=dict)
    layout: dict[str, Any] = Field(default_factory=dict)
    z_index: int = Field(default=0, validation_alias=AliasChoices("z_index", "zIndex"))
    tooltip_fields: list[str] | None = Field(
        default=None, validation_alias=AliasChoices("tooltip_fields", "tooltipFields")
    )
    analytics_columns: dict[str, str] | None = Field(
        default=None,
        validation_alias=AliasChoices("analytics_columns", "analyticsColumns"),
    )
    legend: list[LegendEntry] | None = None
    legend_property: str | None = Field(
        default=None,
        validation_alias=AliasChoices("legend_property", "legendProperty"),
    )

    @property
    def source_id(self) -> str | None:
        return self.data_url

    @property
    def interactive(self) -> bool:
        # Labels are not selectable.
        return self.type != "symbol"


class BaseMapStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    url: str


class BaseMapConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    styles: list[BaseMapStyle] = Field(min_length=1)
    default_style: str = Field(
        validation_alias=AliasChoices("default_style", "defaultStyle")
    )

    def style_url(self, style_id: str | None) -> str:
        sid = (style_id or "").strip()
        for style in self.styles:
            if style.id == sid:
                return style.url
        # Unknown style ids fall back to the first configured style.
        return self.styles[0].url

    def has_style(self, style_id: str | None) -> bool:
        return any(s.id == style_id for s in self.styles)


class MapViewConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # [lon, lat]
    center: tuple[float, float] = (-90.0, 27.5)
    zoom: float = Field(default=5.0, ge=0.0, le=24.0)


class MapConfig(BaseModel):
    """
    The whole configuration document: layers, base styles and the initial view.
    """

    model_config = ConfigDict(frozen=True)

    layers: list[LayerConfig]
    base_maps: BaseMapConfig = Field(
        validation_alias=AliasChoices("base_maps", "baseMaps", "baseMapConfigs")
    )
    view: MapViewConfig = Field(default_factory=MapViewConfig)

    @model_validator(mode="after")
    def _unique_layer_ids(self) -> "MapConfig":
        seen: set[str] = set()
        for layer in self.layers:
            if layer.id in seen:
                raise ValueError(f"Duplicate layer id in map config: {layer.id}")
            seen.add(layer.id)
        if not self.base_maps.has_style(self.base_maps.default_style):
            raise ValueError(
                f"Default base style is not configured: {self.base_maps.default_style}"
            )
        return self
