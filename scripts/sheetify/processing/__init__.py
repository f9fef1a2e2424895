"""
Tile processing modules for decoding, fingerprinting, deduplication, layout and composition.
"""

from .tiles import Tile, TileDecoder
from .hashing import ContentHasher
from .dedup import Deduplicator
from .atlas import (
    Atlas,
    AtlasComposer,
    AtlasGeometry,
    AtlasLayoutPlanner,
    AtlasValidator,
    LayoutPolicy,
    Placement,
    next_power_of_two,
)

__all__ = [
    "Tile",
    "TileDecoder",
    "ContentHasher",
    "Deduplicator",
    "Atlas",
    "AtlasComposer",
    "AtlasGeometry",
    "AtlasLayoutPlanner",
    "AtlasValidator",
    "LayoutPolicy",
    "Placement",
    "next_power_of_two",
]
