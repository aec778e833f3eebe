"""
View model for the map: the dropdown state machine and the render plan it produces.

Each selection rebuilds the full plan from scratch (reset-then-render), so the
plan depends only on the current mode and the analysis results.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class MapMode(str, Enum):
    NONE = "Select a Map"
    LST = "LST"
    NDVI = "NDVI"


DROPDOWN_ITEMS = [mode.value for mode in MapMode]


@dataclass(frozen=True)
class LayerSpec:
    name: str
    kind: str  # outline, region or raster
    band: str = None
    vis: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PanelSpec:
    key: str  # heading, legend or stats
    position: str
    title: str
    rows: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class RenderPlan:
    mode: MapMode
    layers: Tuple[LayerSpec, ...]
    panels: Tuple[PanelSpec, ...]
    zoom: float

    def panel_keys(self):
        return [panel.key for panel in self.panels]

    def layer_names(self):
        return [layer.name for layer in self.layers]


@dataclass
class MapViewState:
    region_name: str
    statistics_rows: Tuple[Tuple[str, str], ...]
    display: Any
    mode: MapMode = MapMode.NONE

    @classmethod
    def from_context(cls, ctx, cfg) -> "MapViewState":
        return cls(
            region_name=ctx.region.name,
            statistics_rows=tuple(ctx.statistics_rows(cfg.statistics)),
            display=cfg.display,
        )

    def select(self, item: str) -> RenderPlan:
        """Dropdown handler. Raises ValueError for an item not in DROPDOWN_ITEMS."""
        self.mode = MapMode(item)
        return self.plan()

    def plan(self) -> RenderPlan:
        if self.mode is MapMode.NONE:
            outline = self.display.outline
            layers = (LayerSpec(self.region_name, "outline", vis={
                "color": outline.color,
                "fillColor": outline.fill_color,
                "width": outline.width,
            }),)
            return RenderPlan(self.mode, layers, (), self.display.zoom)

        key = self.mode.value.lower()
        layer_cfg = self.display[key]
        vis = {"min": layer_cfg.min, "max": layer_cfg.max, "palette": list(layer_cfg.palette)}
        layers = (
            LayerSpec(self.region_name, "region"),
            LayerSpec(self.mode.value, "raster", band=layer_cfg.band, vis=vis),
        )

        panels = [
            PanelSpec("heading", "top-center", f"{self.mode.value} Map of {self.region_name}"),
            PanelSpec("legend", "bottom-right", self.mode.value,
                      tuple(zip(layer_cfg.palette, layer_cfg.labels))),
        ]
        if self.mode is MapMode.LST:
            panels.append(PanelSpec("stats", "bottom-left", "LST STATISTICS", tuple(self.statistics_rows)))
        return RenderPlan(self.mode, layers, tuple(panels), self.display.zoom)
