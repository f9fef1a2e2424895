"""
Tests for the directory tile source.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path

from ..errors import DecodeError, DirectoryReadError
from ..sources.directory import DirectoryTileSource, extract_order_key
from .helpers import write_tile


class TestExtractOrderKey(unittest.TestCase):
    """Test filename number extraction."""

    def test_first_number_wins(self):
        self.assertEqual(extract_order_key("tile_007_v2.png"), 7)
        self.assertEqual(extract_order_key("42.png"), 42)

    def test_no_number(self):
        self.assertEqual(extract_order_key("cover.png"), 0)


class TestDirectoryTileSource(unittest.TestCase):
    """Test DirectoryTileSource listing and reading."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.directory = Path(self.temp_dir)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _names(self, source):
        return [entry.name for entry in source.list_entries()]

    def test_numeric_not_lexicographic_order(self):
        for number in (10, 2, 1, 9):
            write_tile(self.directory, f"tile_{number}.png", number)

        entries = DirectoryTileSource(self.directory).list_entries()

        self.assertEqual([e.name for e in entries],
                         ["tile_1.png", "tile_2.png", "tile_9.png", "tile_10.png"])
        self.assertEqual([e.index for e in entries], [0, 1, 2, 3])
        self.assertEqual([e.order_key for e in entries], [1, 2, 9, 10])

    def test_extension_filter(self):
        write_tile(self.directory, "tile_1.png", 1)
        write_tile(self.directory, "tile_2.PNG", 2)
        (self.directory / "tile_3.jpg").write_bytes(b"jpeg")
        (self.directory / "notes.txt").write_text("not an image")
        (self.directory / "tile_4.png").mkdir()

        self.assertEqual(self._names(DirectoryTileSource(self.directory)),
                         ["tile_1.png", "tile_2.PNG"])

    def test_custom_extension(self):
        (self.directory / "tile_3.jpg").write_bytes(b"jpeg")
        write_tile(self.directory, "tile_1.png", 1)

        self.assertEqual(self._names(DirectoryTileSource(self.directory, ".JPG")), ["tile_3.jpg"])

    def test_unnumbered_files_sort_first_by_name(self):
        for name in ("tile_0.png", "b.png", "tile_1.png", "a.png"):
            write_tile(self.directory, name, 0)

        with self.assertLogs("sheetify.sources.directory", level="WARNING") as logs:
            names = self._names(DirectoryTileSource(self.directory))

        self.assertEqual(names, ["a.png", "b.png", "tile_0.png", "tile_1.png"])
        self.assertIn("a.png, b.png", logs.output[0])

    def test_same_number_ordered_by_name(self):
        write_tile(self.directory, "tile_1_b.png", 0)
        write_tile(self.directory, "tile_1_a.png", 1)

        self.assertEqual(self._names(DirectoryTileSource(self.directory)),
                         ["tile_1_a.png", "tile_1_b.png"])

    def test_empty_directory(self):
        self.assertEqual(DirectoryTileSource(self.directory).list_entries(), [])

    def test_missing_directory(self):
        source = DirectoryTileSource(self.directory / "missing")

        with self.assertRaises(DirectoryReadError) as context:
            source.list_entries()

        self.assertIn("does not exist", str(context.exception))
        self.assertFalse(context.exception.recoverable)

    def test_path_is_file(self):
        path = write_tile(self.directory, "tile_1.png", 1)

        with self.assertRaises(DirectoryReadError):
            DirectoryTileSource(path).list_entries()

    def test_read_bytes(self):
        path = write_tile(self.directory, "tile_1.png", 1)
        source = DirectoryTileSource(self.directory)
        entry = source.list_entries()[0]

        self.assertEqual(source.read_bytes(entry), path.read_bytes())

    def test_read_bytes_missing_file(self):
        write_tile(self.directory, "tile_1.png", 1)
        source = DirectoryTileSource(self.directory)
        entry = source.list_entries()[0]
        os.remove(entry.path)

        with self.assertRaises(DecodeError) as context:
            source.read_bytes(entry)

        self.assertEqual(context.exception.name, "tile_1.png")

    def test_describe(self):
        self.assertIn(str(self.directory), DirectoryTileSource(self.directory).describe())


if __name__ == '__main__':
    unittest.main()
