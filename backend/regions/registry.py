from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from placement.config import regions_dir
from regions.types import RegionConfig, RegionSet


@dataclass(frozen=True)
class RegionSetEntry:
    region_set: RegionSet
    # Absolute path to regions.yaml on disk (useful for debugging).
    path: Path


def _iter_region_yaml_files() -> Iterable[Path]:
    root = regions_dir()
    if not root.exists():
        return []
    # Convention: regions/*/regions.yaml
    return root.glob("*/regions.yaml")


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid regions yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_registry() -> dict[str, RegionSetEntry]:
    out: dict[str, RegionSetEntry] = {}
    for p in sorted(_iter_region_yaml_files(), key=lambda x: str(x)):
        rs = RegionSet.model_validate(_load_yaml(p))
        if not rs.regions:
            raise ValueError(f"Region set has no regions: {p}")
        out[rs.id] = RegionSetEntry(region_set=rs, path=p)
    return out


def list_region_sets() -> list[RegionSet]:
    return [e.region_set for e in get_registry().values()]


def get_region_set(set_id: str) -> RegionSet:
    entry = get_registry().get((set_id or "").strip())
    if entry is None:
        raise KeyError(f"Unknown region set: {set_id!r}")
    return entry.region_set


def get_region(set_id: str, region_id: str) -> RegionConfig:
    region = get_region_set(set_id).get(region_id)
    if region is None:
        raise KeyError(f"Unknown region {region_id!r} in set {set_id!r}")
    return region


def clear_registry_cache() -> None:
    """
    Clear in-memory region registry cache.

    Region YAML changes (or a different `POPUP_REGIONS_DIR`) are otherwise not picked up
    until the process restarts.
    """
    get_registry.cache_clear()
