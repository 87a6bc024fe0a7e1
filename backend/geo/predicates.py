from __future__ import annotations

import logging
import math
from typing import Any

from geo.aoi import BBox, GeoPoint

logger = logging.getLogger(__name__)

# Coarse sanity bound for click positions vs. their region center (~111 km at the equator).
MAX_CLICK_DISTANCE_DEG = 1.0

# Half-size of the synthetic bounds used when the real viewport is unavailable (~55 km).
FALLBACK_BOUNDS_OFFSET_DEG = 0.5

DEFAULT_CENTER = GeoPoint(lat=35.6762, lon=139.6503)


def coerce_point(value: Any) -> tuple[float, float] | None:
    """
    Accept a `GeoPoint` or a `(lat, lon)` pair; return None for anything malformed.

    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, GeoPoint):
        lat, lon = value.lat, value.lon
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        lat, lon = value
    else:
        return None
    for v in (lat, lon):
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        if not math.isfinite(v):
            return None
    return float(lat), float(lon)


def is_valid_position(value: Any) -> bool:
    coords = coerce_point(value)
    if coords is None:
        return False
    lat, lon = coords
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def is_point_in_viewport(point: Any, bounds: BBox) -> bool:
    """
    True iff the point lies within the bounds, inclusive on every side.

    Malformed points are never "in" anything.
    """
    coords = coerce_point(point)
    if coords is None:
        return False
    lat, lon = coords
    return bounds.contains(lat, lon)


def degree_distance(a: GeoPoint, b: GeoPoint) -> float:
    # Euclidean in degree space; not a geodesic distance.
    return math.sqrt((a.lat - b.lat) ** 2 + (a.lon - b.lon) ** 2)


def validate_click_position(point: Any, reference_center: Any) -> bool:
    """
    Reject corrupted click data.

    A click is valid when it is a finite (lat, lon) pair in geographic range and lies within
    `MAX_CLICK_DISTANCE_DEG` of the region's reference center. If the reference center itself
    is malformed the distance check is skipped.
    """
    coords = coerce_point(point)
    if coords is None:
        logger.warning("click position is malformed: %r", point)
        return False
    lat, lon = coords
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        logger.warning("click position out of range: lat=%s lon=%s", lat, lon)
        return False

    ref = coerce_point(reference_center)
    if ref is None or not is_valid_position(ref):
        return True

    distance = degree_distance(GeoPoint(lat=lat, lon=lon), GeoPoint(lat=ref[0], lon=ref[1]))
    if distance > MAX_CLICK_DISTANCE_DEG:
        logger.warning(
            "click position %.4f deg from region center (max %.1f)",
            distance,
            MAX_CLICK_DISTANCE_DEG,
        )
        return False
    return True


def create_fallback_bounds(center: Any, *, offset: float = FALLBACK_BOUNDS_OFFSET_DEG) -> BBox:
    """
    Small rectangle around `center` for when the real viewport can't be determined.

    A malformed center falls back to `DEFAULT_CENTER`. The rectangle is kept inside the
    valid geographic range, so it always contains its (valid) center.
    """
    coords = coerce_point(center) if is_valid_position(center) else None
    lat, lon = coords if coords is not None else DEFAULT_CENTER.as_tuple()
    return BBox.from_sides(
        south=max(-90.0, lat - offset),
        north=min(90.0, lat + offset),
        west=max(-180.0, lon - offset),
        east=min(180.0, lon + offset),
    )
