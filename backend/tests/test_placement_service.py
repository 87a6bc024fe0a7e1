from __future__ import annotations

from geo.aoi import BBox, GeoPoint
from geo.predicates import create_fallback_bounds, is_point_in_viewport
from placement.pipeline import PlacementPipeline
from placement.service import place_popup
from placement.types import PopupSize
from fakes import TOKYO, DetachedMap, FlakyControlsMap, LinearMap, tokyo_view_bounds

POPUP = PopupSize(width=300, height=200)


def test_visible_region_center_is_the_anchor():
    m = LinearMap(bounds=tokyo_view_bounds())
    out = place_popup(TOKYO, GeoPoint(lat=35.7, lon=139.7), POPUP, m, PlacementPipeline())
    assert out.anchor == TOKYO
    assert out.click_valid is True
    assert out.fallback_used is False
    assert out.config.use_interaction_point is False


def test_hidden_region_center_anchors_at_click():
    m = LinearMap(bounds=BBox.from_sides(south=35.0, north=35.5, west=139.0, east=139.5))
    click = GeoPoint(lat=35.25, lon=139.25)
    out = place_popup(TOKYO, click, POPUP, m, PlacementPipeline())
    assert out.config.use_interaction_point is True
    assert out.anchor == click


def test_out_of_range_click_is_replaced_by_center():
    m = LinearMap(bounds=tokyo_view_bounds())
    out = place_popup(TOKYO, (91.0, 139.65), POPUP, m, PlacementPipeline())
    assert out.click_valid is False
    assert out.config.interaction_point == TOKYO
    assert out.anchor == TOKYO


def test_click_far_from_region_is_invalid():
    m = LinearMap(bounds=tokyo_view_bounds())
    out = place_popup(TOKYO, GeoPoint(lat=35.6762, lon=141.0), POPUP, m, PlacementPipeline())
    assert out.click_valid is False


def test_detached_map_still_yields_an_anchor():
    out = place_popup(TOKYO, GeoPoint(lat=35.7, lon=139.7), POPUP, DetachedMap(), PlacementPipeline())
    assert out.fallback_used is True
    assert out.anchor == TOKYO
    assert out.config.viewport_bounds == create_fallback_bounds(TOKYO)


def test_failing_controls_fall_back_to_edge_only_placement():
    m = FlakyControlsMap(bounds=tokyo_view_bounds())
    out = place_popup(TOKYO, GeoPoint(lat=35.7, lon=139.7), POPUP, m, PlacementPipeline())
    assert out.fallback_used is True
    assert out.click_valid is True
    assert is_point_in_viewport(out.anchor, create_fallback_bounds(TOKYO))
    assert out.anchor == TOKYO


def test_fallback_anchor_stays_inside_map_when_center_is_offscreen():
    osaka_view = BBox.from_sides(south=34.0, north=35.0, west=135.0, east=136.0)
    m = FlakyControlsMap(bounds=osaka_view)
    out = place_popup(TOKYO, GeoPoint(lat=35.7, lon=139.7), POPUP, m, PlacementPipeline())
    assert out.fallback_used is True
    assert osaka_view.contains(*out.anchor.as_tuple())
