"""
Grid layout planning and composition for tile spritesheets.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from ..errors import EmptyInputError, GeometryError, TileSizeMismatchError
from .tiles import Tile

logger = logging.getLogger(__name__)


class LayoutPolicy(Enum):
    """Supported grid sizing policies."""
    POWER_OF_TWO = "pow2"
    SQUARE = "square"


@dataclass(frozen=True)
class AtlasGeometry:
    """Grid dimensions of an atlas."""
    columns: int
    rows: int
    atlas_width: int
    atlas_height: int
    sprite_size: int
    policy: LayoutPolicy = LayoutPolicy.POWER_OF_TWO

    @property
    def capacity(self) -> int:
        """Number of tile cells in the grid."""
        return self.columns * self.rows

    def offset_for(self, position: int) -> Tuple[int, int]:
        """Pixel offset of the top-left corner of cell ``position``."""
        col = position % self.columns
        row = position // self.columns
        return col * self.sprite_size, row * self.sprite_size


@dataclass
class Rectangle:
    """Rectangle for atlas placement checks."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass
class Placement(Rectangle):
    """Region of the atlas occupied by one tile."""
    source_index: int = 0
    name: str = ""


@dataclass
class Atlas:
    """Composed atlas pixels plus where each tile landed."""
    geometry: AtlasGeometry
    pixels: np.ndarray
    placements: List[Placement] = field(default_factory=list)

    @property
    def width(self) -> int:
        return self.geometry.atlas_width

    @property
    def height(self) -> int:
        return self.geometry.atlas_height

    def to_image(self) -> Image.Image:
        """Return the atlas as a Pillow RGBA image."""
        return Image.fromarray(np.ascontiguousarray(self.pixels))


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n; 1 for non-positive n."""
    if n <= 0:
        return 1

    # Check if n is already a power of two
    if n & (n - 1) == 0:
        return n

    return 1 << n.bit_length()


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


class AtlasLayoutPlanner:
    """Computes grid geometry for a number of equally sized tiles."""

    def __init__(self, policy: LayoutPolicy = LayoutPolicy.POWER_OF_TWO,
                 max_columns: int = 16, max_texture_size: Optional[int] = None):
        """
        Initialize the planner.

        Args:
            policy: Grid sizing policy
            max_columns: Fixed column count for the power-of-two policy
            max_texture_size: Largest allowed atlas dimension, None or 0 for no limit
        """
        if max_columns <= 0:
            raise ValueError("max_columns must be positive")
        self.policy = LayoutPolicy(policy)
        self.max_columns = max_columns
        self.max_texture_size = max_texture_size or None

    def plan(self, tile_count: int, sprite_size: int) -> AtlasGeometry:
        """
        Plan the atlas grid.

        Args:
            tile_count: Number of unique tiles to place
            sprite_size: Edge length of every tile in pixels

        Returns:
            AtlasGeometry for the configured policy

        Raises:
            EmptyInputError: If tile_count is zero
            GeometryError: If the atlas would exceed max_texture_size
        """
        if tile_count < 0:
            raise ValueError(f"tile_count cannot be negative, got {tile_count}")
        if tile_count == 0:
            raise EmptyInputError("Cannot build an atlas from zero tiles")
        if sprite_size <= 0:
            raise ValueError(f"sprite_size must be positive, got {sprite_size}")

        if self.policy is LayoutPolicy.SQUARE:
            columns = math.ceil(math.sqrt(tile_count))
            rows = math.ceil(tile_count / columns)
            width = columns * sprite_size
            height = rows * sprite_size
        else:
            columns = self.max_columns
            rows = math.ceil(tile_count / columns)
            width = columns * sprite_size
            height = next_power_of_two(rows * sprite_size)

        if self.max_texture_size and (width > self.max_texture_size or
                                      height > self.max_texture_size):
            raise GeometryError(
                f"Atlas size {width}x{height} for {tile_count} tiles exceeds "
                f"maximum texture size {self.max_texture_size}"
            )

        geometry = AtlasGeometry(columns, rows, width, height, sprite_size, self.policy)
        logger.debug(f"Planned {columns}x{rows} grid ({width}x{height}) for {tile_count} tiles")
        return geometry


class AtlasComposer:
    """Copies tiles into their grid cells of a zeroed RGBA buffer."""

    def compose(self, geometry: AtlasGeometry, tiles: Sequence[Tile]) -> Atlas:
        """
        Compose tiles into an atlas in the given order.

        Every tile is checked before anything is written, so a mismatched
        tile never produces a partially written atlas.

        Raises:
            GeometryError: If there are more tiles than grid cells
            TileSizeMismatchError: If a tile is not sprite_size square
        """
        if len(tiles) > geometry.capacity:
            raise GeometryError(
                f"{len(tiles)} tiles do not fit a {geometry.columns}x{geometry.rows} grid"
            )

        expected = (geometry.sprite_size, geometry.sprite_size)
        for tile in tiles:
            if tile.size != expected:
                raise TileSizeMismatchError(tile.name, expected, tile.size, recoverable=False)

        pixels = np.zeros((geometry.atlas_height, geometry.atlas_width, 4), dtype=np.uint8)
        atlas = Atlas(geometry, pixels)
        size = geometry.sprite_size

        for position, tile in enumerate(tiles):
            x_offset, y_offset = geometry.offset_for(position)
            logger.debug(f"Placing {tile.name} at position ({x_offset}, {y_offset})")

            pixels[y_offset:y_offset + size, x_offset:x_offset + size] = tile.as_array()
            atlas.placements.append(Placement(
                x_offset, y_offset, size, size,
                source_index=tile.source_index, name=tile.name
            ))

        pixels.flags.writeable = False
        return atlas


class AtlasValidator:
    """Consistency checks for a composed atlas."""

    def validate_geometry(self, geometry: AtlasGeometry, tile_count: int) -> List[str]:
        """
        Check grid invariants.

        Returns:
            List of validation error messages
        """
        errors = []

        if geometry.atlas_width != geometry.columns * geometry.sprite_size:
            errors.append(
                f"Atlas width {geometry.atlas_width} != columns * sprite_size "
                f"({geometry.columns * geometry.sprite_size})"
            )

        if geometry.atlas_height < geometry.rows * geometry.sprite_size:
            errors.append(
                f"Atlas height {geometry.atlas_height} is smaller than "
                f"{geometry.rows} rows of {geometry.sprite_size}px"
            )

        if geometry.policy is LayoutPolicy.POWER_OF_TWO and not is_power_of_two(geometry.atlas_height):
            errors.append(f"Atlas height {geometry.atlas_height} is not a power of two")

        if geometry.capacity < tile_count:
            errors.append(f"Grid capacity {geometry.capacity} is below tile count {tile_count}")

        return errors

    def validate_placements(self, atlas: Atlas) -> List[str]:
        """
        Check every placement lies inside the atlas and no two overlap.

        Returns:
            List of validation error messages
        """
        errors = []

        for placement in atlas.placements:
            if placement.x < 0 or placement.y < 0:
                errors.append(f"Tile '{placement.name}' has negative coordinates: "
                              f"({placement.x}, {placement.y})")
            if placement.right > atlas.width:
                errors.append(f"Tile '{placement.name}' extends beyond atlas width: "
                              f"{placement.right} > {atlas.width}")
            if placement.bottom > atlas.height:
                errors.append(f"Tile '{placement.name}' extends beyond atlas height: "
                              f"{placement.bottom} > {atlas.height}")

        # Equal-size, grid-aligned cells overlap only when they share an origin
        size = atlas.geometry.sprite_size
        occupied = {}
        for placement in atlas.placements:
            if placement.x % size or placement.y % size:
                errors.append(f"Tile '{placement.name}' is not aligned to the {size}px grid")
                continue

            origin = (placement.x, placement.y)
            if origin in occupied:
                errors.append(f"Tile '{placement.name}' overlaps tile '{occupied[origin]}'")
            else:
                occupied[origin] = placement.name

        return errors

    def validate(self, atlas: Atlas) -> List[str]:
        errors = self.validate_geometry(atlas.geometry, len(atlas.placements))
        errors.extend(self.validate_placements(atlas))
        return errors
