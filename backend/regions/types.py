from __future__ import annotations

from pydantic import BaseModel, Field

from geo.aoi import GeoPoint


class RegionCenter(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class RegionConfig(BaseModel):
    """
    A semantic region: its representative center and, optionally, a simplified outline.

    The outline is a single ring of [lon, lat] pairs (GeoJSON order).
    """

    id: str
    name: str
    nameLocal: str | None = None
    center: RegionCenter
    outline: list[tuple[float, float]] | None = None

    def center_point(self) -> GeoPoint:
        return GeoPoint(lat=self.center.lat, lon=self.center.lon)


class RegionSet(BaseModel):
    id: str
    title: str
    regions: list[RegionConfig]

    def get(self, region_id: str) -> RegionConfig | None:
        rid = (region_id or "").strip()
        for r in self.regions:
            if r.id == rid:
                return r
        return None
