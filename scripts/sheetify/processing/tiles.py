"""
Decoded tile model and the Pillow-backed tile decoder.
"""

import io
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import DecodeError, TileSizeMismatchError


@dataclass(frozen=True)
class Tile:
    """Immutable decoded tile. Pixels are row-major RGBA, 4 bytes per pixel."""
    source_index: int
    name: str
    width: int
    height: int
    pixels: bytes = field(repr=False)

    def __post_init__(self):
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"Tile '{self.name}' has {len(self.pixels)} pixel bytes, expected {expected}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def as_array(self) -> np.ndarray:
        """Read-only (height, width, 4) view of the pixel buffer."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(self.height, self.width, 4)

    @classmethod
    def from_image(cls, source_index: int, name: str, image: Image.Image) -> "Tile":
        if image.mode != 'RGBA':
            image = image.convert('RGBA')
        return cls(source_index, name, image.width, image.height, image.tobytes())


class TileDecoder:
    """
    Decodes raw image bytes into fixed-size RGBA tiles.

    Raises DecodeError when Pillow cannot read the data and
    TileSizeMismatchError when the decoded image is not sprite_size square.
    """

    def __init__(self, sprite_size: int):
        if sprite_size <= 0:
            raise ValueError("sprite_size must be positive")
        self.sprite_size = sprite_size

    def decode(self, source_index: int, name: str, data: bytes) -> Tile:
        expected = (self.sprite_size, self.sprite_size)
        try:
            with Image.open(io.BytesIO(data)) as image:
                # Size comes from the header; reject before decoding any pixels
                if image.size != expected:
                    raise TileSizeMismatchError(name, expected, image.size)
                image.load()
                return Tile.from_image(source_index, name, image)
        except (UnidentifiedImageError, Image.DecompressionBombError,
                OSError, ValueError, SyntaxError) as e:
            raise DecodeError(name, str(e) or type(e).__name__)
