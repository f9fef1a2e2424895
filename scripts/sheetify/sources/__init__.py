"""
Tile sources: where the raw tile images come from.
"""

from .base import TileSource, TileEntry
from .directory import DirectoryTileSource, extract_order_key

__all__ = [
    "TileSource",
    "TileEntry",
    "DirectoryTileSource",
    "extract_order_key",
]
