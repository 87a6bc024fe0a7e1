from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from geo.aoi import GeoPoint
from geo.predicates import create_fallback_bounds, validate_click_position
from placement.edges import adjust_position_for_visibility
from placement.pipeline import PlacementPipeline
from placement.policy import determine_smart_position
from placement.types import MapHandle, PlacementConfig, PopupSize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PopupPlacement:
    anchor: GeoPoint
    config: PlacementConfig
    click_valid: bool
    fallback_used: bool = False


def place_popup(
    semantic_center: GeoPoint,
    click: Any,
    popup_size: PopupSize,
    map_handle: MapHandle,
    pipeline: PlacementPipeline,
) -> PopupPlacement:
    """
    Full placement for one interaction event, with the host-failure fallback.

    The popup always gets an anchor: if the map fails while being queried, the semantic
    center is used with synthetic bounds and only edge avoidance is retried (collision
    avoidance is best-effort). If that fails too, the clamped semantic center is returned.
    """
    click_valid = validate_click_position(click, semantic_center)
    interaction = click if click_valid else semantic_center

    try:
        # Viewport is read fresh for the decision; the pipeline reuses it via the cache.
        snap = pipeline.snapshot(map_handle)
        config = determine_smart_position(semantic_center, interaction, snap.bounds, map_handle)
        anchor = pipeline.adjust_position_for_visibility_and_controls(
            config.anchor, config.viewport_bounds, popup_size, map_handle
        )
        return PopupPlacement(anchor=anchor, config=config, click_valid=click_valid)
    except Exception as exc:
        logger.warning("map query failed during placement, falling back to semantic center: %s", exc)

    fallback_bounds = create_fallback_bounds(semantic_center)
    config = determine_smart_position(semantic_center, semantic_center, fallback_bounds)
    try:
        anchor = adjust_position_for_visibility(
            config.semantic_center,
            fallback_bounds,
            popup_size,
            map_handle,
            padding=pipeline.settings.edge_padding_px,
        )
    except Exception as exc:
        logger.warning("edge-only fallback failed as well: %s", exc)
        lat, lon = fallback_bounds.clamp(*config.semantic_center.as_tuple())
        anchor = GeoPoint(lat=lat, lon=lon)
    return PopupPlacement(anchor=anchor, config=config, click_valid=click_valid, fallback_used=True)
