"""
Content fingerprints for decoded tile pixels.
"""

import hashlib

from .tiles import Tile


class ContentHasher:
    """Computes a stable hex digest of raw pixel data."""

    def __init__(self, algorithm: str = "sha256"):
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        # Variable-length digests (shake_*) need an explicit output length
        if hashlib.new(algorithm).digest_size == 0:
            raise ValueError(f"Hash algorithm {algorithm} has no fixed digest size")
        self.algorithm = algorithm

    def hash(self, pixels: bytes) -> str:
        digest = hashlib.new(self.algorithm)
        digest.update(pixels)
        return digest.hexdigest()

    def hash_tile(self, tile: Tile) -> str:
        return self.hash(tile.pixels)
