"""
Keeps the popup clear of overlay controls such as zoom buttons.

Host bindings that only see mounted DOM-like elements can build the `ControlRect`s for
`MapHandle.list_control_rects()` with `control_rects_from_elements`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from geo.aoi import GeoPoint
from placement.types import (
    AnchorCorner,
    ControlRect,
    MapHandle,
    PixelPoint,
    PixelRect,
    PixelSize,
    PopupSize,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTROL_PADDING_PX = 10.0
DEFAULT_OFFSET_PX = 50.0

# Unit directions in priority order: up, left, right, down, then the diagonals.
_OFFSET_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (0, -1),
    (-1, 0),
    (1, 0),
    (0, 1),
    (-1, -1),
    (1, -1),
    (-1, 1),
    (1, 1),
)


def candidate_offsets(magnitude: float = DEFAULT_OFFSET_PX) -> list[tuple[float, float]]:
    return [(dx * magnitude, dy * magnitude) for dx, dy in _OFFSET_DIRECTIONS]


@dataclass(frozen=True)
class ScreenElement:
    """
    A mounted control element as the host UI reports it: screen-space rect plus CSS classes.
    """

    left: float
    top: float
    right: float
    bottom: float
    classes: frozenset[str] = field(default_factory=frozenset)
    parent_classes: frozenset[str] = field(default_factory=frozenset)


def _corner_from_classes(classes: Iterable[str]) -> AnchorCorner:
    c = set(classes)
    vertical = "top" if "leaflet-top" in c else ("bottom" if "leaflet-bottom" in c else None)
    horizontal = "left" if "leaflet-left" in c else ("right" if "leaflet-right" in c else None)
    if vertical is None or horizontal is None:
        return AnchorCorner.unknown
    return AnchorCorner(f"{vertical}-{horizontal}")


def control_rects_from_elements(
    container: PixelRect, elements: Iterable[ScreenElement]
) -> list[ControlRect]:
    """
    Translate screen-space control elements into container-relative `ControlRect`s.

    Hidden (zero-size) elements are skipped. The anchor corner comes from the element's
    classes, then its parent's, else `unknown`.
    """
    out: list[ControlRect] = []
    for el in elements:
        if el.right - el.left == 0 or el.bottom - el.top == 0:
            continue
        corner = _corner_from_classes(el.classes)
        if corner is AnchorCorner.unknown:
            corner = _corner_from_classes(el.parent_classes)
        out.append(
            ControlRect(
                left=el.left - container.left,
                top=el.top - container.top,
                right=el.right - container.left,
                bottom=el.bottom - container.top,
                anchor_corner=corner,
            )
        )
    return out


def _padded(controls: Iterable[ControlRect], padding: float) -> list[PixelRect]:
    return [c.as_rect().expanded(padding) for c in controls]


def check_control_collision(
    map_handle: MapHandle,
    pixel_point: PixelPoint,
    popup_size: PopupSize,
    padding: float = DEFAULT_CONTROL_PADDING_PX,
) -> bool:
    popup = popup_size.rect_at(pixel_point)
    for rect in _padded(map_handle.list_control_rects(), padding):
        if popup.intersects(rect):
            return True
    return False


def total_overlap_area(
    pixel_point: PixelPoint,
    popup_size: PopupSize,
    controls: Iterable[ControlRect],
    padding: float = DEFAULT_CONTROL_PADDING_PX,
) -> float:
    popup = popup_size.rect_at(pixel_point)
    return sum(popup.overlap_area(rect) for rect in _padded(controls, padding))


def _inside_container(p: PixelPoint, size: PixelSize) -> bool:
    return 0 <= p.x <= size.width and 0 <= p.y <= size.height


def find_collision_free_position(
    map_handle: MapHandle,
    original_point: GeoPoint,
    popup_size: PopupSize,
    padding: float = DEFAULT_CONTROL_PADDING_PX,
    *,
    offset: float = DEFAULT_OFFSET_PX,
) -> GeoPoint:
    """
    Move the anchor off any overlay control, if needed.

    Tries eight fixed pixel offsets (up, left, right, down, diagonals) and returns the first
    collision-free one inside the container. If none is free, returns the in-container
    candidate with the smallest total overlap area (earlier candidates win ties); if no
    candidate is inside the container, the original point.
    """
    origin = map_handle.latlng_to_container_point(original_point)
    controls = map_handle.list_control_rects()
    padded = _padded(controls, padding)

    def collides(p: PixelPoint) -> bool:
        popup = popup_size.rect_at(p)
        return any(popup.intersects(r) for r in padded)

    if not collides(origin):
        return original_point

    size = map_handle.get_size()
    candidates = [
        p
        for p in (origin.offset(dx, dy) for dx, dy in candidate_offsets(offset))
        if _inside_container(p, size)
    ]

    for p in candidates:
        if not collides(p):
            logger.debug("control collision avoided at offset (%s, %s)", p.x - origin.x, p.y - origin.y)
            return map_handle.container_point_to_latlng(p)

    best: PixelPoint | None = None
    best_area = float("inf")
    for p in candidates:
        area = total_overlap_area(p, popup_size, controls, padding)
        if area < best_area:
            best_area = area
            best = p

    if best is None:
        return original_point
    logger.debug("no collision-free position; least overlap %.1f px^2", best_area)
    return map_handle.container_point_to_latlng(best)
