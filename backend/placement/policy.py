from __future__ import annotations

import logging
from typing import Any

from geo.aoi import BBox, GeoPoint
from geo.predicates import (
    DEFAULT_CENTER,
    coerce_point,
    create_fallback_bounds,
    is_point_in_viewport,
    is_valid_position,
)
from placement.types import MapHandle, PixelSize, PlacementConfig

logger = logging.getLogger(__name__)

SMALL_VIEWPORT_MIN_SIDE_PX = 480
SMALL_VIEWPORT_MIN_AREA_PX2 = 300_000
HIGH_ZOOM = 16
LOW_ZOOM = 4


def is_small_viewport(size: PixelSize) -> bool:
    return (
        size.width < SMALL_VIEWPORT_MIN_SIDE_PX
        or size.height < SMALL_VIEWPORT_MIN_SIDE_PX
        or size.area < SMALL_VIEWPORT_MIN_AREA_PX2
    )


def is_extreme_zoom(zoom: float) -> bool:
    return zoom >= HIGH_ZOOM or zoom <= LOW_ZOOM


def _as_geo_point(value: Any) -> GeoPoint | None:
    if not is_valid_position(value):
        return None
    lat, lon = coerce_point(value)  # type: ignore[misc]
    return GeoPoint(lat=lat, lon=lon)


def _read_map_state(map_handle: MapHandle) -> tuple[int, PixelSize] | None:
    # Zoom/size are hints for the overrides; an unreadable map just means "no hints".
    try:
        return map_handle.get_zoom(), map_handle.get_size()
    except Exception as exc:
        logger.warning("could not read map state for placement policy: %s", exc)
        return None


def determine_smart_position(
    semantic_center: Any,
    interaction_point: Any,
    viewport_bounds: BBox | None,
    map_handle: MapHandle | None = None,
    *,
    default_center: GeoPoint = DEFAULT_CENTER,
) -> PlacementConfig:
    """
    Choose between a region's semantic center and the user's interaction point.

    Base rule: anchor at the interaction point iff the semantic center is off-screen.

    With a map handle:
    - small viewports follow the base rule strictly;
    - at extreme zoom a visible semantic center always wins (no jitter), otherwise the base
      rule applies.

    Malformed inputs never raise: a bad interaction point is replaced by the semantic center,
    a bad semantic center by `default_center`, missing bounds by fallback bounds around the
    semantic center.
    """
    center = _as_geo_point(semantic_center)
    if center is None:
        logger.warning("invalid semantic center %r; using default center", semantic_center)
        center = default_center

    click = _as_geo_point(interaction_point)
    if click is None:
        logger.warning("invalid interaction point %r; using semantic center", interaction_point)
        click = center

    if viewport_bounds is None:
        viewport_bounds = create_fallback_bounds(center)

    center_visible = is_point_in_viewport(center, viewport_bounds)
    use_click = not center_visible

    state = _read_map_state(map_handle) if map_handle is not None else None
    if state is not None:
        zoom, size = state
        if is_small_viewport(size):
            logger.debug("small viewport %sx%s: visibility decides", size.width, size.height)
            return PlacementConfig(
                semantic_center=center,
                interaction_point=click,
                use_interaction_point=use_click,
                viewport_bounds=viewport_bounds,
                adjusted_position=click if use_click else center,
                reason="small_viewport",
            )
        if is_extreme_zoom(zoom) and center_visible:
            logger.debug("extreme zoom %s: keeping visible semantic center", zoom)
            return PlacementConfig(
                semantic_center=center,
                interaction_point=click,
                use_interaction_point=False,
                viewport_bounds=viewport_bounds,
                adjusted_position=center,
                reason="extreme_zoom",
            )

    return PlacementConfig(
        semantic_center=center,
        interaction_point=click,
        use_interaction_point=use_click,
        viewport_bounds=viewport_bounds,
    )
