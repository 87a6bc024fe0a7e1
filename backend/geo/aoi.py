from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lon)


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lon/lat degrees.

    Convention used throughout this repo:
    - minLon, minLat, maxLon, maxLat
    - south/north/west/east are read-only aliases (map-widget vocabulary)
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @classmethod
    def from_sides(cls, *, south: float, north: float, west: float, east: float) -> "BBox":
        return cls(min_lon=west, min_lat=south, max_lon=east, max_lat=north)

    @property
    def south(self) -> float:
        return self.min_lat

    @property
    def north(self) -> float:
        return self.max_lat

    @property
    def west(self) -> float:
        return self.min_lon

    @property
    def east(self) -> float:
        return self.max_lon

    @property
    def center(self) -> tuple[float, float]:
        # (lat, lon), same order as map widgets use for points.
        return ((self.min_lat + self.max_lat) / 2.0, (self.min_lon + self.max_lon) / 2.0)

    def normalized(self) -> "BBox":
        min_lon = min(self.min_lon, self.max_lon)
        max_lon = max(self.min_lon, self.max_lon)
        min_lat = min(self.min_lat, self.max_lat)
        max_lat = max(self.min_lat, self.max_lat)
        return BBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)

    def intersection(self, other: "BBox") -> "BBox | None":
        """
        Overlap of two boxes, or None when they are disjoint. Touching boxes overlap in a line.
        """
        a = self.normalized()
        b = other.normalized()
        min_lon = max(a.min_lon, b.min_lon)
        max_lon = min(a.max_lon, b.max_lon)
        min_lat = max(a.min_lat, b.min_lat)
        max_lat = min(a.max_lat, b.max_lat)
        if min_lon > max_lon or min_lat > max_lat:
            return None
        return BBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)

    def contains(self, lat: float, lon: float) -> bool:
        """
        Inclusive containment on all four sides.
        """
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon

    def clamp(self, lat: float, lon: float) -> tuple[float, float]:
        lat = max(self.min_lat, min(self.max_lat, float(lat)))
        lon = max(self.min_lon, min(self.max_lon, float(lon)))
        return lat, lon
