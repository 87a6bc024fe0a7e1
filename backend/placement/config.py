from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return float(raw)
        except Exception:
            pass
    return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except Exception:
            pass
    return default


def regions_dir() -> Path:
    return Path(os.getenv("POPUP_REGIONS_DIR") or (_repo_root() / "data" / "regions"))


def log_level() -> str:
    return (os.getenv("POPUP_LOG_LEVEL") or "INFO").strip().upper() or "INFO"


@dataclass(frozen=True)
class PlacementSettings:
    cache_ttl_ms: float = 1000.0
    cache_max_entries: int = 50
    cache_small_viewport_ttl_ms: float = 5000.0
    edge_padding_px: float = 20.0
    control_padding_px: float = 10.0
    control_offset_px: float = 50.0
    popup_width_px: float = 300.0
    popup_height_px: float = 200.0

    @classmethod
    def from_env(cls) -> "PlacementSettings":
        d = cls()
        return cls(
            cache_ttl_ms=_env_float("POPUP_CACHE_TTL_MS", d.cache_ttl_ms),
            cache_max_entries=_env_int("POPUP_CACHE_MAX_ENTRIES", d.cache_max_entries),
            cache_small_viewport_ttl_ms=_env_float(
                "POPUP_CACHE_SMALL_VIEWPORT_TTL_MS", d.cache_small_viewport_ttl_ms
            ),
            edge_padding_px=_env_float("POPUP_EDGE_PADDING_PX", d.edge_padding_px),
            control_padding_px=_env_float("POPUP_CONTROL_PADDING_PX", d.control_padding_px),
            control_offset_px=_env_float("POPUP_CONTROL_OFFSET_PX", d.control_offset_px),
            popup_width_px=_env_float("POPUP_WIDTH_PX", d.popup_width_px),
            popup_height_px=_env_float("POPUP_HEIGHT_PX", d.popup_height_px),
        )
