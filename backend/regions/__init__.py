from .lookup import region_for_point
from .registry import clear_registry_cache, get_region, get_region_set, list_region_sets

__all__ = [
    "clear_registry_cache",
    "get_region",
    "get_region_set",
    "list_region_sets",
    "region_for_point",
]
