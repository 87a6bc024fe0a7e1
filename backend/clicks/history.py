from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from geo.aoi import GeoPoint

logger = logging.getLogger(__name__)


def _wall_ms() -> float:
    return time.time() * 1000.0


@dataclass(frozen=True)
class ClickRecord:
    position: GeoPoint
    region_id: str
    timestamp_ms: float
    near_boundary: bool = False
    confidence: float = 1.0


@dataclass(frozen=True)
class ClickStatistics:
    total_clicks: int
    boundary_clicks: int
    average_confidence: float
    regions_clicked: list[str]


@dataclass
class ClickHistory:
    """
    Short-lived click memory used to settle rapid repeated clicks on the same region.

    Newest records first; entries expire after `timeout_ms`.
    """

    max_size: int = 10
    timeout_ms: float = 5000.0
    rapid_window_ms: float = 1000.0
    clock: Callable[[], float] = field(default=_wall_ms, repr=False)
    _records: list[ClickRecord] = field(default_factory=list, repr=False)

    def store(
        self,
        position: GeoPoint,
        region_id: str,
        *,
        near_boundary: bool = False,
        confidence: float = 1.0,
    ) -> ClickRecord:
        rec = ClickRecord(
            position=position,
            region_id=region_id,
            timestamp_ms=self.clock(),
            near_boundary=near_boundary,
            confidence=float(confidence),
        )
        self._records.insert(0, rec)
        del self._records[self.max_size :]
        self._expire()
        return rec

    def recent_for_region(self, region_id: str) -> ClickRecord | None:
        self._expire()
        return next((r for r in self._records if r.region_id == region_id), None)

    def resolve_rapid_click(
        self,
        position: GeoPoint,
        region_id: str,
        *,
        near_boundary: bool = False,
        confidence: float = 1.0,
    ) -> ClickRecord:
        """
        Pick the click to honor when the same region is clicked several times in quick
        succession: the most confident one wins, and the newcomer must be strictly better.

        Does not store the new click.
        """
        now = self.clock()
        new = ClickRecord(
            position=position,
            region_id=region_id,
            timestamp_ms=now,
            near_boundary=near_boundary,
            confidence=float(confidence),
        )
        recent = [
            r
            for r in self._records
            if r.region_id == region_id and (now - r.timestamp_ms) < self.rapid_window_ms
        ]
        if not recent:
            return new

        best = recent[0]
        for r in recent[1:]:
            if r.confidence > best.confidence:
                best = r
        if new.confidence > best.confidence:
            return new
        logger.debug("rapid click on %s: keeping earlier position (confidence %.2f)", region_id, best.confidence)
        return best

    def clear_region(self, region_id: str) -> None:
        self._records = [r for r in self._records if r.region_id != region_id]

    def clear(self) -> None:
        self._records = []

    def statistics(self) -> ClickStatistics:
        self._expire()
        n = len(self._records)
        regions: list[str] = []
        for r in self._records:
            if r.region_id not in regions:
                regions.append(r.region_id)
        return ClickStatistics(
            total_clicks=n,
            boundary_clicks=sum(1 for r in self._records if r.near_boundary),
            average_confidence=(sum(r.confidence for r in self._records) / n) if n else 0.0,
            regions_clicked=regions,
        )

    def __len__(self) -> int:
        return len(self._records)

    def _expire(self) -> None:
        now = self.clock()
        self._records = [r for r in self._records if (now - r.timestamp_ms) < self.timeout_ms]
