from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Protocol

from shapely.geometry import box as shapely_box

from geo.aoi import BBox, GeoPoint


@dataclass(frozen=True)
class PixelPoint:
    """
    Container-relative pixel coordinates (x grows right, y grows down).
    """

    x: float
    y: float

    def offset(self, dx: float, dy: float) -> "PixelPoint":
        return PixelPoint(x=self.x + dx, y=self.y + dy)


@dataclass(frozen=True)
class PixelSize:
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class PixelRect:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def expanded(self, padding: float) -> "PixelRect":
        return PixelRect(
            left=self.left - padding,
            top=self.top - padding,
            right=self.right + padding,
            bottom=self.bottom + padding,
        )

    def intersects(self, other: "PixelRect") -> bool:
        # Touching edges count as overlap.
        return not (
            self.right < other.left
            or self.left > other.right
            or self.bottom < other.top
            or self.top > other.bottom
        )

    def overlap_area(self, other: "PixelRect") -> float:
        if not self.intersects(other):
            return 0.0
        a = shapely_box(self.left, self.top, self.right, self.bottom)
        b = shapely_box(other.left, other.top, other.right, other.bottom)
        return float(a.intersection(b).area)


@dataclass(frozen=True)
class PopupSize:
    width: float
    height: float

    def rect_at(self, anchor: PixelPoint) -> PixelRect:
        """
        Callout layout: the anchor sits at the bottom-center of the popup.
        """
        half = self.width / 2.0
        return PixelRect(
            left=anchor.x - half,
            top=anchor.y - self.height,
            right=anchor.x + half,
            bottom=anchor.y,
        )


class AnchorCorner(str, Enum):
    top_left = "top-left"
    top_right = "top-right"
    bottom_left = "bottom-left"
    bottom_right = "bottom-right"
    unknown = "unknown"


@dataclass(frozen=True)
class ControlRect:
    """
    Screen footprint of a mounted overlay control, in container pixels.
    """

    left: float
    top: float
    right: float
    bottom: float
    anchor_corner: AnchorCorner = AnchorCorner.unknown

    def as_rect(self) -> PixelRect:
        return PixelRect(left=self.left, top=self.top, right=self.right, bottom=self.bottom)


@dataclass(frozen=True)
class ViewportSnapshot:
    """
    Immutable view of the map state at one moment.

    `pixel_bounds` is the viewport's rectangle in world-pixel space, so its size is the
    container size.
    """

    bounds: BBox
    center: GeoPoint
    zoom: int
    pixel_bounds: PixelRect

    @property
    def container_size(self) -> PixelSize:
        return PixelSize(width=self.pixel_bounds.width, height=self.pixel_bounds.height)


PlacementReason = Literal["visibility", "small_viewport", "extreme_zoom"]


@dataclass(frozen=True)
class PlacementConfig:
    """
    Outcome of the anchor decision for one interaction event.

    Both candidates and the bounds used for the decision are carried along so downstream
    stages can recompute.
    """

    semantic_center: GeoPoint
    interaction_point: GeoPoint
    use_interaction_point: bool
    viewport_bounds: BBox
    adjusted_position: GeoPoint | None = None
    reason: PlacementReason = "visibility"

    @property
    def anchor(self) -> GeoPoint:
        return self.interaction_point if self.use_interaction_point else self.semantic_center


class MapHandle(Protocol):
    """
    What the engine needs from the host map widget.

    Implementations may raise from any method (e.g. a detached map); the engine lets those
    errors propagate.
    """

    def get_bounds(self) -> BBox: ...

    def get_center(self) -> GeoPoint: ...

    def get_zoom(self) -> int: ...

    def get_size(self) -> PixelSize: ...

    def get_pixel_bounds(self) -> PixelRect: ...

    def latlng_to_container_point(self, point: GeoPoint) -> PixelPoint: ...

    def container_point_to_latlng(self, point: PixelPoint) -> GeoPoint: ...

    def list_control_rects(self) -> list[ControlRect]: ...
