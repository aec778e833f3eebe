import folium
import geemap.foliumap as geemap_folium
import pytest

from src.pipeline import run_analysis
from src.presentation.renderer import new_map, outline_style, panel_html, render_map
from src.presentation.view_state import MapViewState, PanelSpec


class RecordingMap(folium.Map):
    """folium.Map with the geemap legend call recorded instead of drawn."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.legends = []

    def add_legend(self, **kwargs):
        self.legends.append(kwargs)


def children_of(m, kind):
    return [child for child in m._children.values() if isinstance(child, kind)]


@pytest.fixture
def analysis(source, region, cfg):
    ctx = run_analysis(source, region, cfg)
    return ctx, MapViewState.from_context(ctx, cfg)


def test_outline_style_uses_transparent_fill():
    style = outline_style({"color": "000000", "fillColor": "00000000", "width": 1})
    assert style == {"color": "#000000", "weight": 1, "fillColor": "#000000", "fillOpacity": 0.0}


def test_initial_map_draws_only_the_outline(analysis, source):
    ctx, view = analysis
    m = render_map(view.plan(), ctx, source, m=RecordingMap())
    assert len(children_of(m, folium.GeoJson)) == 1
    assert children_of(m, folium.raster_layers.ImageOverlay) == []
    assert m.legends == []


def test_lst_map_has_raster_legend_and_statistics(analysis, source, cfg):
    ctx, view = analysis
    m = render_map(view.select("LST"), ctx, source, m=RecordingMap())

    assert len(children_of(m, folium.GeoJson)) == 1
    assert len(children_of(m, folium.raster_layers.ImageOverlay)) == 1
    assert m.legends == [{
        "title": "LST",
        "labels": ["Very Low", "Low", "Medium", "High", "Very High"],
        "colors": ["#0400ff", "#37ff00", "#fff875", "#ffb1d7", "#ff0000"],
        "position": "bottomright",
    }]
    rendered = m.get_root().render()
    assert "LST STATISTICS" in rendered
    assert "LST Map of Test AOI" in rendered
    for _, value in ctx.statistics_rows(cfg.statistics):
        assert value in rendered


def test_ndvi_map_has_no_statistics_panel(analysis, source):
    ctx, view = analysis
    m = render_map(view.select("NDVI"), ctx, source, m=RecordingMap())
    assert [legend["title"] for legend in m.legends] == ["NDVI"]
    rendered = m.get_root().render()
    assert "NDVI Map of Test AOI" in rendered
    assert "LST STATISTICS" not in rendered


def test_panel_text_is_escaped():
    html = panel_html(PanelSpec("heading", "top-center", "<b>AOI</b> & more"))
    assert "&lt;b&gt;AOI&lt;/b&gt; &amp; more" in html
    assert "<b>AOI</b>" not in html


def test_lst_plan_on_a_geemap_map(analysis, source):
    ctx, view = analysis
    plan = view.select("LST")
    m = render_map(plan, ctx, source, m=new_map(ctx.region.center, plan.zoom))

    assert isinstance(m, geemap_folium.Map)
    assert m.location == pytest.approx(list(ctx.region.center))
    assert len(children_of(m, folium.raster_layers.ImageOverlay)) == 1
    rendered = m.get_root().render()
    for label in ("Very Low", "Low", "Medium", "High", "Very High"):
        assert label in rendered
    assert "#0400ff" in rendered
    assert "LST Map of Test AOI" in rendered
    assert "LST STATISTICS" in rendered
