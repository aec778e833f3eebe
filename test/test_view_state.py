import pytest

from src.presentation.view_state import DROPDOWN_ITEMS, MapMode, MapViewState

STATS_ROWS = (("Min", "21.10 °C"), ("Max", "41.85 °C"), ("Mean", "31.02 °C"))


@pytest.fixture
def view(cfg):
    return MapViewState(region_name="Purba Bardhaman", statistics_rows=STATS_ROWS, display=cfg.display)


def test_dropdown_items_default_to_select_a_map(view):
    assert DROPDOWN_ITEMS == ["Select a Map", "LST", "NDVI"]
    assert view.mode is MapMode.NONE


def test_initial_plan_is_outline_only(view):
    plan = view.plan()
    assert [layer.kind for layer in plan.layers] == ["outline"]
    assert plan.layers[0].vis == {"color": "000000", "fillColor": "00000000", "width": 1}
    assert plan.panels == ()
    assert plan.zoom == pytest.approx(9.6)


def test_lst_view(view):
    plan = view.select("LST")
    assert view.mode is MapMode.LST
    assert [(layer.kind, layer.band) for layer in plan.layers] == [("region", None), ("raster", "LST")]
    assert plan.layers[1].vis["palette"] == ["0400ff", "37ff00", "fff875", "ffb1d7", "ff0000"]
    assert plan.panel_keys() == ["heading", "legend", "stats"]

    heading, legend, stats = plan.panels
    assert heading.title == "LST Map of Purba Bardhaman"
    assert heading.position == "top-center"
    assert legend.rows == (("0400ff", "Very Low"), ("37ff00", "Low"), ("fff875", "Medium"),
                           ("ffb1d7", "High"), ("ff0000", "Very High"))
    assert stats.title == "LST STATISTICS"
    assert stats.position == "bottom-left"
    assert stats.rows == STATS_ROWS


def test_ndvi_view_hides_lst_panels(view):
    view.select("LST")
    plan = view.select("NDVI")
    assert [(layer.kind, layer.band) for layer in plan.layers] == [("region", None), ("raster", "NDVI")]
    assert plan.panel_keys() == ["heading", "legend"]
    assert plan.panels[0].title == "NDVI Map of Purba Bardhaman"
    assert [label for _, label in plan.panels[1].rows] == ["Water Body", "Land", "Low Vegetation", "Dense Vegetation"]


@pytest.mark.parametrize("item", DROPDOWN_ITEMS)
def test_selecting_twice_is_idempotent(view, item):
    once = view.select(item)
    twice = view.select(item)
    assert once == twice


def test_plan_does_not_depend_on_history(view, cfg):
    view.select("NDVI")
    via_ndvi = view.select("LST")
    fresh = MapViewState("Purba Bardhaman", STATS_ROWS, cfg.display).select("LST")
    assert via_ndvi == fresh


@pytest.mark.parametrize("previous", ["LST", "NDVI"])
def test_select_a_map_resets_to_outline(view, previous):
    initial = view.plan()
    view.select(previous)
    plan = view.select("Select a Map")
    assert plan == initial
    assert plan.panels == ()


def test_unknown_item_is_rejected(view):
    with pytest.raises(ValueError):
        view.select("EVI")
    assert view.mode is MapMode.NONE
