from __future__ import annotations

import logging
from typing import Sequence

from shapely.geometry import Point, Polygon

from geo.aoi import GeoPoint
from geo.predicates import degree_distance
from regions.types import RegionConfig

logger = logging.getLogger(__name__)


def _outline_polygon(region: RegionConfig) -> Polygon | None:
    ring = region.outline or []
    if len(ring) < 3:
        return None
    try:
        poly = Polygon([(float(lon), float(lat)) for lon, lat in ring])
    except Exception:
        return None
    if not poly.is_valid:
        poly = poly.buffer(0)
    return None if poly.is_empty else poly


def region_for_point(point: GeoPoint, regions: Sequence[RegionConfig]) -> RegionConfig | None:
    """
    Region whose outline contains the point; otherwise the one with the closest center.
    """
    q = Point(point.lon, point.lat)
    for region in regions:
        poly = _outline_polygon(region)
        if poly is not None and poly.covers(q):
            return region

    closest: RegionConfig | None = None
    closest_d = float("inf")
    for region in regions:
        d = degree_distance(point, region.center_point())
        if d < closest_d:
            closest_d = d
            closest = region
    if closest is not None:
        logger.debug("no region contains %s; falling back to closest center %s", point, closest.id)
    return closest
