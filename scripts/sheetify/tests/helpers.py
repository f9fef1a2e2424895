"""
Shared helpers for generating tile images in tests.
"""

from pathlib import Path

import numpy as np
from PIL import Image

from ..processing.tiles import Tile


def pattern_image(seed: int, size: int = 32) -> Image.Image:
    """RGBA image whose pixels depend on position and seed."""
    ys, xs = np.mgrid[0:size, 0:size]
    pixels = np.zeros((size, size, 4), dtype=np.uint8)
    pixels[..., 0] = (xs * 7 + seed) % 256
    pixels[..., 1] = (ys * 5 + seed * 3) % 256
    pixels[..., 2] = seed % 256
    pixels[..., 3] = 255
    return Image.fromarray(pixels)


def make_tile(index: int, seed: int = None, size: int = 32, name: str = None) -> Tile:
    image = pattern_image(index if seed is None else seed, size)
    return Tile.from_image(index, name or f"tile_{index}.png", image)


def write_tile(directory, name: str, seed: int, size: int = 32) -> Path:
    path = Path(directory) / name
    pattern_image(seed, size).save(path)
    return path
