"""
Tests for atlas composition and validation.
"""

import unittest

import numpy as np

from ..errors import GeometryError, TileSizeMismatchError
from ..processing.atlas import (
    Atlas, AtlasComposer, AtlasGeometry, AtlasLayoutPlanner, AtlasValidator,
    LayoutPolicy, Placement
)
from .helpers import make_tile


class TestAtlasComposer(unittest.TestCase):
    """Test AtlasComposer functionality."""

    def setUp(self):
        self.composer = AtlasComposer()

    def _compose(self, tiles, policy=LayoutPolicy.POWER_OF_TWO, max_columns=4):
        planner = AtlasLayoutPlanner(policy, max_columns=max_columns)
        geometry = planner.plan(len(tiles), tiles[0].width)
        return self.composer.compose(geometry, tiles)

    def test_pixel_fidelity(self):
        tiles = [make_tile(i) for i in range(6)]

        atlas = self._compose(tiles)

        for position, tile in enumerate(tiles):
            x, y = atlas.geometry.offset_for(position)
            region = atlas.pixels[y:y + 32, x:x + 32]
            self.assertTrue(np.array_equal(region, tile.as_array()), tile.name)

    def test_single_pixel_coordinates(self):
        tiles = [make_tile(i) for i in range(5)]
        atlas = self._compose(tiles, LayoutPolicy.SQUARE)

        # Tile 4 sits in column 1, row 1 of a 3x2 grid
        source = tiles[4].as_array()
        self.assertTrue(np.array_equal(atlas.pixels[32 + 9, 32 + 5], source[9, 5]))

    def test_placements_follow_order(self):
        tiles = [make_tile(i) for i in (0, 1, 2, 3)]

        atlas = self._compose(tiles)

        self.assertEqual([p.source_index for p in atlas.placements], [0, 1, 2, 3])
        self.assertEqual([(p.x, p.y) for p in atlas.placements],
                         [(0, 0), (32, 0), (64, 0), (96, 0)])
        self.assertEqual([p.name for p in atlas.placements][2], "tile_2.png")

    def test_unused_cells_transparent(self):
        tiles = [make_tile(i) for i in range(5)]

        atlas = self._compose(tiles, LayoutPolicy.SQUARE)

        self.assertEqual((atlas.width, atlas.height), (96, 64))
        self.assertFalse(atlas.pixels[32:64, 64:96].any())

    def test_power_of_two_padding_transparent(self):
        tiles = [make_tile(i) for i in range(9)]

        atlas = self._compose(tiles)

        self.assertEqual(atlas.height, 128)
        self.assertFalse(atlas.pixels[96:128].any())

    def test_result_is_read_only(self):
        atlas = self._compose([make_tile(0)])

        with self.assertRaises(ValueError):
            atlas.pixels[0, 0, 0] = 1

    def test_to_image(self):
        atlas = self._compose([make_tile(0), make_tile(1)])

        image = atlas.to_image()

        self.assertEqual(image.mode, 'RGBA')
        self.assertEqual(image.size, (128, 32))
        self.assertEqual(image.getpixel((32, 0)), tuple(int(v) for v in atlas.pixels[0, 32]))

    def test_size_mismatch_rejected(self):
        geometry = AtlasGeometry(2, 1, 64, 32, 32)
        tiles = [make_tile(0), make_tile(1, size=16)]

        with self.assertRaises(TileSizeMismatchError) as context:
            self.composer.compose(geometry, tiles)

        self.assertEqual(context.exception.actual, (16, 16))
        self.assertEqual(context.exception.expected, (32, 32))
        self.assertFalse(context.exception.recoverable)

    def test_too_many_tiles(self):
        geometry = AtlasGeometry(2, 1, 64, 32, 32)

        with self.assertRaises(GeometryError):
            self.composer.compose(geometry, [make_tile(i) for i in range(3)])


class TestAtlasValidator(unittest.TestCase):
    """Test AtlasValidator checks."""

    def setUp(self):
        self.validator = AtlasValidator()

    def test_valid_atlas(self):
        planner = AtlasLayoutPlanner(LayoutPolicy.POWER_OF_TWO, max_columns=3)
        tiles = [make_tile(i) for i in range(7)]
        atlas = AtlasComposer().compose(planner.plan(7, 32), tiles)

        self.assertEqual(self.validator.validate(atlas), [])

    def test_non_power_of_two_height(self):
        geometry = AtlasGeometry(2, 3, 64, 96, 32, LayoutPolicy.POWER_OF_TWO)

        errors = self.validator.validate_geometry(geometry, 5)

        self.assertTrue(any("not a power of two" in error for error in errors))

    def test_square_height_not_required_power_of_two(self):
        geometry = AtlasGeometry(2, 3, 64, 96, 32, LayoutPolicy.SQUARE)
        self.assertEqual(self.validator.validate_geometry(geometry, 5), [])

    def test_capacity_and_width(self):
        geometry = AtlasGeometry(2, 1, 70, 32, 32, LayoutPolicy.SQUARE)

        errors = self.validator.validate_geometry(geometry, 3)

        self.assertTrue(any("width" in error for error in errors))
        self.assertTrue(any("capacity" in error for error in errors))

    def test_overlap_and_bounds(self):
        geometry = AtlasGeometry(2, 1, 64, 32, 32, LayoutPolicy.SQUARE)
        pixels = np.zeros((32, 64, 4), dtype=np.uint8)
        atlas = Atlas(geometry, pixels, [
            Placement(0, 0, 32, 32, source_index=0, name="a.png"),
            Placement(0, 0, 32, 32, source_index=1, name="b.png"),
            Placement(64, 0, 32, 32, source_index=2, name="c.png"),
        ])

        errors = self.validator.validate_placements(atlas)

        self.assertTrue(any("'b.png' overlaps tile 'a.png'" in error for error in errors))
        self.assertTrue(any("'c.png' extends beyond atlas width" in error for error in errors))


if __name__ == '__main__':
    unittest.main()
