from __future__ import annotations

import pytest

from geo.aoi import BBox, GeoPoint
from placement.collision import (
    ScreenElement,
    candidate_offsets,
    check_control_collision,
    control_rects_from_elements,
    find_collision_free_position,
    total_overlap_area,
)
from placement.types import AnchorCorner, ControlRect, PixelPoint, PixelRect, PopupSize
from fakes import LinearMap

POPUP = PopupSize(width=300, height=200)
ZOOM_BUTTONS = ControlRect(left=900, top=10, right=990, bottom=80, anchor_corner=AnchorCorner.top_right)


def _map(*controls: ControlRect) -> LinearMap:
    # Unit bounds over a 1024 px container keep the pixel round trip exact.
    return LinearMap(
        bounds=BBox.from_sides(south=0.0, north=1.0, west=0.0, east=1.0),
        width=1024,
        height=1024,
        controls=list(controls),
    )


def _geo(m: LinearMap, x: float, y: float) -> GeoPoint:
    return m.container_point_to_latlng(PixelPoint(x=x, y=y))


def test_collision_detected_against_padded_control():
    m = _map(ZOOM_BUTTONS)
    # popup spans y 50..250, padded control spans y 0..90
    assert check_control_collision(m, PixelPoint(x=850, y=250), POPUP) is True
    # popup top at 100 clears the padded bottom edge at 90
    assert check_control_collision(m, PixelPoint(x=850, y=300), POPUP) is False


def test_touching_padded_edge_counts_as_collision():
    m = _map(ZOOM_BUTTONS)
    assert check_control_collision(m, PixelPoint(x=850, y=290), POPUP) is True
    assert check_control_collision(m, PixelPoint(x=850, y=290), POPUP, padding=0) is False


def test_no_controls_means_no_collision():
    assert check_control_collision(_map(), PixelPoint(x=500, y=500), POPUP) is False


def test_original_point_returned_when_clear():
    m = _map(ZOOM_BUTTONS)
    p = _geo(m, 500, 500)
    assert find_collision_free_position(m, p, POPUP) is p


def test_first_free_offset_in_priority_order_wins():
    m = _map(ZOOM_BUTTONS)
    # up, left and right still collide; moving down 50 px clears the control
    out = find_collision_free_position(m, _geo(m, 850, 250), POPUP)
    px = m.latlng_to_container_point(out)
    assert px.x == pytest.approx(850)
    assert px.y == pytest.approx(300)
    assert check_control_collision(m, px, POPUP) is False


def test_least_overlap_candidate_used_when_all_collide():
    left_panel = ControlRect(left=0, top=0, right=500, bottom=1024, anchor_corner=AnchorCorner.top_left)
    m = _map(left_panel)
    out = find_collision_free_position(m, _geo(m, 500, 500), POPUP)
    px = m.latlng_to_container_point(out)
    # moving right shrinks the overlap the most; "right" precedes the diagonals
    assert px.x == pytest.approx(550)
    assert px.y == pytest.approx(500)


def test_candidates_outside_container_are_skipped():
    full = ControlRect(left=0, top=0, right=1024, bottom=1024)
    m = _map(full)
    out = find_collision_free_position(m, _geo(m, 980, 20), POPUP)
    px = m.latlng_to_container_point(out)
    assert 0 <= px.x <= 1024
    assert 0 <= px.y <= 1024
    # up and right leave the container; of the rest, "left" overlaps least
    assert px.x == pytest.approx(930)
    assert px.y == pytest.approx(20)


def test_total_overlap_area_sums_controls():
    controls = [
        ControlRect(left=0, top=0, right=100, bottom=100),
        ControlRect(left=200, top=0, right=300, bottom=100),
    ]
    # popup spans x 50..250, y 0..100
    area = total_overlap_area(PixelPoint(x=150, y=100), PopupSize(width=200, height=100), controls, padding=0)
    assert area == pytest.approx(50 * 100 + 50 * 100)


def test_candidate_offsets_order():
    assert candidate_offsets(50) == [
        (0, -50),
        (-50, 0),
        (50, 0),
        (0, 50),
        (-50, -50),
        (50, -50),
        (-50, 50),
        (50, 50),
    ]


def test_screen_elements_become_container_relative_controls():
    container = PixelRect(left=100, top=50, right=1100, bottom=850)
    elements = [
        ScreenElement(left=1000, top=60, right=1090, bottom=130, classes=frozenset({"leaflet-top", "leaflet-right"})),
        ScreenElement(
            left=110,
            top=800,
            right=200,
            bottom=840,
            classes=frozenset({"leaflet-control"}),
            parent_classes=frozenset({"leaflet-bottom", "leaflet-left"}),
        ),
        ScreenElement(left=500, top=500, right=500, bottom=540),  # hidden
        ScreenElement(left=300, top=300, right=320, bottom=320),
    ]
    rects = control_rects_from_elements(container, elements)
    assert rects == [
        ControlRect(left=900, top=10, right=990, bottom=80, anchor_corner=AnchorCorner.top_right),
        ControlRect(left=10, top=750, right=100, bottom=790, anchor_corner=AnchorCorner.bottom_left),
        ControlRect(left=200, top=250, right=220, bottom=270, anchor_corner=AnchorCorner.unknown),
    ]
