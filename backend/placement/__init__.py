"""
Popup placement engine.

Decides where a map popup is anchored (region center vs. interaction point) and nudges the
anchor so the popup stays on screen and clear of overlay controls.
"""
from .pipeline import PlacementPipeline
from .policy import determine_smart_position
from .service import PopupPlacement, place_popup
from .viewport_cache import CacheStats, ViewportStateCache

__all__ = [
    "CacheStats",
    "PlacementPipeline",
    "PopupPlacement",
    "ViewportStateCache",
    "determine_smart_position",
    "place_popup",
]
