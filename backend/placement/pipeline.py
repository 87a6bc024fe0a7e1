from __future__ import annotations

from dataclasses import dataclass, field

from geo.aoi import BBox, GeoPoint
from placement.collision import find_collision_free_position
from placement.config import PlacementSettings
from placement.edges import adjust_position_for_visibility
from placement.types import MapHandle, PopupSize, ViewportSnapshot
from placement.viewport_cache import ViewportStateCache, snapshot_from_map


@dataclass
class PlacementPipeline:
    """
    Edge avoidance -> control avoidance -> edge avoidance again.

    Control offsets can push the popup back out of the viewport, so the last pass re-clamps.
    The cache is optional; output is the same with or without it.
    """

    cache: ViewportStateCache | None = None
    settings: PlacementSettings = field(default_factory=PlacementSettings)

    def snapshot(self, map_handle: MapHandle) -> ViewportSnapshot:
        if self.cache is not None:
            return self.cache.get(map_handle)
        return snapshot_from_map(map_handle)

    def adjust_position_for_visibility_and_controls(
        self,
        point: GeoPoint,
        bounds: BBox,
        popup_size: PopupSize,
        map_handle: MapHandle,
    ) -> GeoPoint:
        snap = self.snapshot(map_handle)
        pad = self.settings.edge_padding_px

        p = adjust_position_for_visibility(
            point, bounds, popup_size, map_handle, padding=pad, snapshot=snap
        )
        p = find_collision_free_position(
            map_handle,
            p,
            popup_size,
            self.settings.control_padding_px,
            offset=self.settings.control_offset_px,
        )
        return adjust_position_for_visibility(
            p, bounds, popup_size, map_handle, padding=pad, snapshot=snap
        )
