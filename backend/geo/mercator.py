from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pyproj import Transformer

from geo.aoi import BBox, GeoPoint
from placement.types import ControlRect, PixelPoint, PixelRect, PixelSize

_MAX_MERCATOR_LAT = 85.05112878
# Half the EPSG:3857 world width in meters.
_ORIGIN_SHIFT_M = 20037508.342789244


@lru_cache(maxsize=1)
def transformer_4326_to_3857() -> Transformer:
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


@lru_cache(maxsize=1)
def transformer_3857_to_4326() -> Transformer:
    return Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


@dataclass(frozen=True)
class MercatorMap:
    """
    A fixed Web Mercator viewport that behaves like a slippy-map widget.

    Implements the `MapHandle` protocol, which makes it usable server-side (the HTTP API
    builds one from the client's view) and as a realistic map in tests.

    Pixels follow the usual 256px-tile convention: world size is `tile_size * 2**zoom`.
    """

    center: GeoPoint
    zoom: int
    width: int
    height: int
    controls: tuple[ControlRect, ...] = ()
    tile_size: int = 256

    @property
    def world_size(self) -> float:
        return float(self.tile_size) * (2.0 ** int(self.zoom))

    def project(self, point: GeoPoint) -> PixelPoint:
        """
        lat/lon -> world pixels.
        """
        lat = max(-_MAX_MERCATOR_LAT, min(_MAX_MERCATOR_LAT, float(point.lat)))
        x_m, y_m = transformer_4326_to_3857().transform(float(point.lon), lat)
        scale = self.world_size
        return PixelPoint(
            x=(x_m + _ORIGIN_SHIFT_M) / (2.0 * _ORIGIN_SHIFT_M) * scale,
            y=(_ORIGIN_SHIFT_M - y_m) / (2.0 * _ORIGIN_SHIFT_M) * scale,
        )

    def unproject(self, world: PixelPoint) -> GeoPoint:
        """
        World pixels -> lat/lon, clamped to the world so results stay within +-180 / +-85.05.
        """
        scale = self.world_size
        px = max(0.0, min(scale, float(world.x)))
        py = max(0.0, min(scale, float(world.y)))
        x_m = px / scale * 2.0 * _ORIGIN_SHIFT_M - _ORIGIN_SHIFT_M
        y_m = _ORIGIN_SHIFT_M - py / scale * 2.0 * _ORIGIN_SHIFT_M
        lon, lat = transformer_3857_to_4326().transform(x_m, y_m)
        return GeoPoint(lat=float(lat), lon=float(lon))

    def _top_left(self) -> PixelPoint:
        c = self.project(self.center)
        return PixelPoint(x=c.x - self.width / 2.0, y=c.y - self.height / 2.0)

    # MapHandle protocol

    def get_center(self) -> GeoPoint:
        return self.center

    def get_zoom(self) -> int:
        return int(self.zoom)

    def get_size(self) -> PixelSize:
        return PixelSize(width=self.width, height=self.height)

    def get_pixel_bounds(self) -> PixelRect:
        tl = self._top_left()
        return PixelRect(
            left=tl.x, top=tl.y, right=tl.x + self.width, bottom=tl.y + self.height
        )

    def get_bounds(self) -> BBox:
        sw = self.container_point_to_latlng(PixelPoint(x=0.0, y=float(self.height)))
        ne = self.container_point_to_latlng(PixelPoint(x=float(self.width), y=0.0))
        return BBox.from_sides(south=sw.lat, north=ne.lat, west=sw.lon, east=ne.lon).normalized()

    def latlng_to_container_point(self, point: GeoPoint) -> PixelPoint:
        p = self.project(point)
        tl = self._top_left()
        return PixelPoint(x=p.x - tl.x, y=p.y - tl.y)

    def container_point_to_latlng(self, point: PixelPoint) -> GeoPoint:
        tl = self._top_left()
        return self.unproject(PixelPoint(x=point.x + tl.x, y=point.y + tl.y))

    def list_control_rects(self) -> list[ControlRect]:
        return list(self.controls)
