"""
Exact-duplicate tile removal by content fingerprint.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .hashing import ContentHasher
from .tiles import Tile

logger = logging.getLogger(__name__)


class Deduplicator:
    """
    Keeps the first occurrence of every distinct pixel buffer.

    One instance per pipeline run: ``seen`` is the set of fingerprints
    accepted so far and is never shared between runs.
    """

    def __init__(self, hasher: Optional[ContentHasher] = None):
        self.hasher = hasher or ContentHasher()
        self.seen: Set[str] = set()
        self.duplicates: List[Tuple[Tile, int]] = []
        self._first_index: Dict[str, int] = {}

    def dedupe(self, results: Iterable[Optional[Tile]]) -> List[Tile]:
        """
        Filter decoded tiles down to fingerprint first-occurrences.

        Args:
            results: Decoded tiles; None entries (failed decodes) are skipped

        Returns:
            Unique tiles in increasing source_index order
        """
        present = sorted((tile for tile in results if tile is not None),
                         key=lambda tile: tile.source_index)

        unique = []
        for tile in present:
            fingerprint = self.hasher.hash_tile(tile)
            if fingerprint in self.seen:
                kept_index = self._first_index[fingerprint]
                self.duplicates.append((tile, kept_index))
                logger.info(f"Skipping {tile.name}: duplicate of tile #{kept_index}")
                continue

            self.seen.add(fingerprint)
            self._first_index[fingerprint] = tile.source_index
            unique.append(tile)

        return unique
