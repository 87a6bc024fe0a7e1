from __future__ import annotations

import threading
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field

from clicks.history import ClickHistory
from geo.aoi import GeoPoint
from geo.mercator import MercatorMap
from placement.config import PlacementSettings
from placement.pipeline import PlacementPipeline
from placement.service import place_popup
from placement.types import AnchorCorner, ControlRect, PopupSize
from placement.viewport_cache import ViewportStateCache
from regions.lookup import region_for_point
from regions.registry import get_region, get_region_set, list_region_sets

# The engine assumes a single event thread; FastAPI runs sync handlers in a thread pool.
_LOCK = threading.RLock()


class ApiLatLon(BaseModel):
    lat: float
    lon: float


class ApiViewCenter(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class ApiView(BaseModel):
    center: ApiViewCenter
    zoom: int = Field(ge=0, le=24)
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ApiPopupSize(BaseModel):
    width: float = Field(gt=0.0)
    height: float = Field(gt=0.0)


class ApiControl(BaseModel):
    left: float
    top: float
    right: float
    bottom: float
    position: AnchorCorner = AnchorCorner.unknown


class ApiPlacementRequest(BaseModel):
    regionSet: str = "japan"
    # When omitted, the region is resolved from the click position.
    regionId: str | None = None
    click: ApiLatLon
    view: ApiView
    popup: ApiPopupSize | None = None
    controls: list[ApiControl] = Field(default_factory=list)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    nearBoundary: bool = False
    # Opaque per-user/session id; enables rapid-click resolution for that client only.
    clientId: str | None = Field(default=None, max_length=128)


@lru_cache(maxsize=1)
def _settings() -> PlacementSettings:
    return PlacementSettings.from_env()


@lru_cache(maxsize=1)
def _pipeline() -> PlacementPipeline:
    s = _settings()
    cache = ViewportStateCache(
        ttl_ms=s.cache_ttl_ms,
        max_entries=s.cache_max_entries,
        small_viewport_ttl_ms=s.cache_small_viewport_ttl_ms,
    )
    return PlacementPipeline(cache=cache, settings=s)


# Per-client click histories; the oldest client is dropped beyond this many.
_MAX_CLICK_CLIENTS = 256


@lru_cache(maxsize=1)
def _click_histories() -> dict[str, ClickHistory]:
    return {}


def _client_history(client_id: str) -> ClickHistory:
    histories = _click_histories()
    history = histories.get(client_id)
    if history is None:
        if len(histories) >= _MAX_CLICK_CLIENTS:
            histories.pop(next(iter(histories)))
        history = histories[client_id] = ClickHistory()
    return history


def reset_state() -> None:
    """
    Drop app-level caches (settings, viewport cache, click histories).
    """
    with _LOCK:
        _settings.cache_clear()
        _pipeline.cache_clear()
        _click_histories.cache_clear()


def _point(p: GeoPoint) -> dict[str, float]:
    return {"lat": p.lat, "lon": p.lon}


def list_regions_payload() -> list[dict[str, Any]]:
    return [rs.model_dump() for rs in list_region_sets()]


def compute_placement(body: ApiPlacementRequest) -> dict[str, Any]:
    """
    Resolve the region, settle rapid clicks, and place the popup on a server-side map.

    Raises KeyError for unknown region sets / regions.
    """
    region_set = get_region_set(body.regionSet)
    click = GeoPoint(lat=body.click.lat, lon=body.click.lon)
    if body.regionId:
        region = get_region(body.regionSet, body.regionId)
    else:
        region = region_for_point(click, region_set.regions)
        if region is None:
            raise KeyError(f"No regions in set {body.regionSet!r}")

    s = _settings()
    popup = body.popup or ApiPopupSize(width=s.popup_width_px, height=s.popup_height_px)
    map_handle = MercatorMap(
        center=GeoPoint(lat=body.view.center.lat, lon=body.view.center.lon),
        zoom=body.view.zoom,
        width=body.view.width,
        height=body.view.height,
        controls=tuple(
            ControlRect(
                left=c.left, top=c.top, right=c.right, bottom=c.bottom, anchor_corner=c.position
            )
            for c in body.controls
        ),
    )

    with _LOCK:
        interaction = click
        if body.clientId:
            # Rapid repeated clicks are only settled within one client's own history.
            history = _client_history(body.clientId)
            chosen = history.resolve_rapid_click(
                click, region.id, near_boundary=body.nearBoundary, confidence=body.confidence
            )
            history.store(
                click, region.id, near_boundary=body.nearBoundary, confidence=body.confidence
            )
            interaction = chosen.position
        placement = place_popup(
            region.center_point(),
            interaction,
            PopupSize(width=popup.width, height=popup.height),
            map_handle,
            _pipeline(),
        )

    cfg = placement.config
    return {
        "regionId": region.id,
        "anchor": _point(placement.anchor),
        "semanticCenter": _point(cfg.semantic_center),
        "interactionPoint": _point(cfg.interaction_point),
        "useInteractionPoint": cfg.use_interaction_point,
        "reason": cfg.reason,
        "clickValid": placement.click_valid,
        "fallbackUsed": placement.fallback_used,
    }


def cache_stats_payload() -> dict[str, int]:
    with _LOCK:
        cache = _pipeline().cache
        if cache is None:
            return {"hits": 0, "misses": 0, "evictions": 0, "size": 0}
        st = cache.stats()
    return {"hits": st.hits, "misses": st.misses, "evictions": st.evictions, "size": st.size}


def clear_cache(selective: bool = False) -> dict[str, int]:
    with _LOCK:
        cache = _pipeline().cache
        removed = cache.clear(selective=selective) if cache is not None else 0
    return {"removed": removed}


def click_stats_payload(client_id: str, region_id: str | None = None) -> dict[str, Any]:
    with _LOCK:
        history = _click_histories().get(client_id)
        if history is None:
            return {
                "totalClicks": 0,
                "boundaryClicks": 0,
                "averageConfidence": 0.0,
                "regionsClicked": [],
                "lastClick": None,
            }
        st = history.statistics()
        last = history.recent_for_region(region_id) if region_id else None
    return {
        "totalClicks": st.total_clicks,
        "boundaryClicks": st.boundary_clicks,
        "averageConfidence": st.average_confidence,
        "regionsClicked": st.regions_clicked,
        "lastClick": _point(last.position) if last is not None else None,
    }


def clear_clicks(client_id: str, region_id: str | None = None) -> dict[str, bool]:
    with _LOCK:
        history = _click_histories().get(client_id)
        if history is None:
            return {"cleared": False}
        if region_id:
            history.clear_region(region_id)
        else:
            history.clear()
    return {"cleared": True}
