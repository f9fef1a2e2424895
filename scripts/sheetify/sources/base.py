"""
Abstract base classes for tile sources.
Defines the interface a source of raw tile images must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class TileEntry:
    """One candidate tile file, positioned in packing order."""
    index: int
    name: str
    order_key: int
    path: Optional[str] = None


class TileSource(ABC):
    """Abstract base class for tile sources."""

    @abstractmethod
    def list_entries(self) -> List[TileEntry]:
        """
        Return candidate tiles in packing order.

        Entry ``index`` values run from 0 in that order.

        Raises:
            DirectoryReadError: If the source cannot be enumerated
        """
        pass

    @abstractmethod
    def read_bytes(self, entry: TileEntry) -> bytes:
        """
        Return the raw encoded bytes of one tile.

        Raises:
            DecodeError: If the tile cannot be read
        """
        pass

    def describe(self) -> str:
        """Human readable description used in log messages."""
        return type(self).__name__
