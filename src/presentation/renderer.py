"""
Draws a RenderPlan onto a folium based map (geemap.foliumap.Map by default).
"""
import html

import folium
import geemap.foliumap as geemap_folium
from loguru import logger

from src.presentation.view_state import PanelSpec, RenderPlan

# Earth Engine Code Editor positions -> leaflet control positions
LEGEND_POSITIONS = {
    "top-left": "topleft",
    "top-right": "topright",
    "bottom-left": "bottomleft",
    "bottom-right": "bottomright",
}

PANEL_CSS = {
    "top-center": "top: 10px; left: 50%; transform: translateX(-50%);",
    "top-left": "top: 10px; left: 50px;",
    "top-right": "top: 10px; right: 10px;",
    "bottom-left": "bottom: 30px; left: 10px;",
    "bottom-right": "bottom: 30px; right: 10px;",
}

REGION_STYLE = {"color": "#000000", "weight": 1, "fillColor": "#000000", "fillOpacity": 0.15}


def new_map(center, zoom, ee_initialize=False):
    return geemap_folium.Map(center=list(center), zoom=zoom, ee_initialize=ee_initialize)


def outline_style(vis: dict) -> dict:
    """EE style dict (hex without '#', fill with alpha suffix) -> leaflet path style."""
    fill = vis.get("fillColor", "00000000")
    return {
        "color": "#" + vis.get("color", "000000"),
        "weight": vis.get("width", 1),
        "fillColor": "#" + fill[:6],
        "fillOpacity": int(fill[6:8], 16) / 255 if len(fill) == 8 else 0.15,
    }


def add_region_layer(m, region, name, style):
    folium.GeoJson(
        region.to_geojson(),
        name=name,
        style_function=lambda _feature: style,
    ).add_to(m)


def panel_html(panel: PanelSpec) -> str:
    position = PANEL_CSS.get(panel.position, PANEL_CSS["top-center"])
    title_size = "18px" if panel.key == "heading" else "20px"
    parts = [
        f'<div class="lst-ndvi-panel lst-ndvi-{panel.key}" style="position: fixed; {position} z-index: 9999; '
        f'background-color: white; padding: 8px 15px; border: 1px solid black;">',
        f'<div style="font-weight: bold; font-size: {title_size}; margin: 0 0 4px 0;">{html.escape(panel.title)}</div>',
    ]
    for label, value in panel.rows:
        parts.append(
            f'<div style="font-size: 14px; color: black; margin: 0 0 4px 0;">'
            f'<span style="padding: 4px 4px;">{html.escape(label)}</span>'
            f'<span style="padding: 4px 4px;">{html.escape(value)}</span></div>'
        )
    parts.append("</div>")
    return "".join(parts)


def add_panel(m, panel: PanelSpec):
    if panel.key == "legend":
        colors, labels = zip(*panel.rows) if panel.rows else ((), ())
        m.add_legend(
            title=panel.title,
            labels=list(labels),
            colors=["#" + color for color in colors],
            position=LEGEND_POSITIONS.get(panel.position, "bottomright"),
        )
    else:
        m.get_root().html.add_child(folium.Element(panel_html(panel)))


def render_map(plan: RenderPlan, ctx, source, m=None):
    """
    Renders `plan` on a fresh map (or on `m` when given, which must be empty).

    Args:
        plan (RenderPlan): output of MapViewState.select().
        ctx (AnalysisContext): supplies the region and the derived image.
        source (RasterDataSource): draws raster layers for its own image handles.
    """
    if m is None:
        m = new_map(ctx.region.center, plan.zoom)

    for layer in plan.layers:
        if layer.kind == "outline":
            add_region_layer(m, ctx.region, layer.name, outline_style(layer.vis))
        elif layer.kind == "region":
            add_region_layer(m, ctx.region, layer.name, REGION_STYLE)
        elif layer.kind == "raster":
            source.add_map_layer(m, ctx.image, layer.band, layer.vis, layer.name)
        else:
            raise ValueError(f"Unknown layer kind '{layer.kind}'")

    for panel in plan.panels:
        add_panel(m, panel)

    logger.debug(f"Rendered {plan.mode.value}: layers={plan.layer_names()} panels={plan.panel_keys()}")
    return m
