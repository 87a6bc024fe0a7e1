from __future__ import annotations

import logging

from geo.aoi import BBox, GeoPoint
from placement.types import MapHandle, PixelPoint, PixelSize, PopupSize, ViewportSnapshot

logger = logging.getLogger(__name__)

DEFAULT_EDGE_PADDING_PX = 20.0


def edge_shift(
    anchor: PixelPoint,
    popup_size: PopupSize,
    container: PixelSize,
    *,
    padding: float = DEFAULT_EDGE_PADDING_PX,
) -> tuple[float, float]:
    """
    Pixel shift (dx, dy) that pulls the popup rectangle inside the padded container.

    Left overflow wins over right overflow, top over bottom (popups larger than the
    container stay pinned to the top-left).
    """
    rect = popup_size.rect_at(anchor)

    dx = 0.0
    if rect.left < padding:
        dx = padding - rect.left
    elif rect.right > container.width - padding:
        dx = (container.width - padding) - rect.right

    dy = 0.0
    if rect.top < padding:
        dy = padding - rect.top
    elif rect.bottom > container.height - padding:
        dy = (container.height - padding) - rect.bottom

    return dx, dy


def adjust_position_for_visibility(
    point: GeoPoint,
    viewport_bounds: BBox,
    popup_size: PopupSize,
    map_handle: MapHandle,
    *,
    padding: float = DEFAULT_EDGE_PADDING_PX,
    snapshot: ViewportSnapshot | None = None,
) -> GeoPoint:
    """
    Nudge `point` so the popup drawn above it stays inside the visible container.

    The result is clamped to the overlap of the map's current bounds and `viewport_bounds`
    (to the map bounds alone when they are disjoint), which holds even when the pixel round
    trip drifts near the bounds edges. `snapshot` supplies bounds and container size (e.g.
    from a `ViewportStateCache`); without it the map is queried.
    """
    if snapshot is not None:
        map_bounds = snapshot.bounds
        container = snapshot.container_size
    else:
        map_bounds = map_handle.get_bounds()
        container = map_handle.get_size()

    anchor = map_handle.latlng_to_container_point(point)
    dx, dy = edge_shift(anchor, popup_size, container, padding=padding)

    lat, lon = point.lat, point.lon
    if dx or dy:
        shifted = map_handle.container_point_to_latlng(anchor.offset(dx, dy))
        # Only take the axis that actually moved; keeps the other coordinate exact.
        if dx:
            lon = shifted.lon
        if dy:
            lat = shifted.lat

    # Clamp into both rectangles; if they don't overlap, the map's own bounds win.
    target = viewport_bounds.intersection(map_bounds)
    if target is None:
        logger.debug(
            "viewport bounds %s lie outside the map bounds; clamping to the map", viewport_bounds
        )
        target = map_bounds.normalized()
    lat, lon = target.clamp(lat, lon)
    return GeoPoint(lat=lat, lon=lon)
