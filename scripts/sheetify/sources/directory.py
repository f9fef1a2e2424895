"""
Tile source backed by a directory of numbered image files.
"""

import logging
import re
from pathlib import Path
from typing import List, Tuple, Union

from ..errors import DecodeError, DirectoryReadError
from .base import TileEntry, TileSource

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"\d+")


def extract_order_key(filename: str) -> int:
    """
    Return the first number embedded in a filename.

    Files without a number sort as 0; callers break ties by filename.
    """
    match = NUMBER_PATTERN.search(filename)
    if match is None:
        return 0
    return int(match.group())


def sort_key(filename: str) -> Tuple[int, str]:
    return extract_order_key(filename), filename


class DirectoryTileSource(TileSource):
    """Lists ``*<extension>`` files in one directory, ordered by embedded number."""

    def __init__(self, directory: Union[str, Path], extension: str = ".png"):
        self.directory = Path(directory)
        self.extension = extension.lower()

    def list_entries(self) -> List[TileEntry]:
        if not self.directory.exists():
            raise DirectoryReadError(str(self.directory), "directory does not exist")
        if not self.directory.is_dir():
            raise DirectoryReadError(str(self.directory), "not a directory")

        try:
            names = [
                path.name for path in self.directory.iterdir()
                if path.is_file() and path.suffix.lower() == self.extension
            ]
        except OSError as e:
            raise DirectoryReadError(str(self.directory), e.strerror or str(e))

        unnumbered = [name for name in names if NUMBER_PATTERN.search(name) is None]
        if unnumbered:
            logger.warning(
                f"{len(unnumbered)} file(s) without a number in their name sort first: "
                f"{', '.join(sorted(unnumbered))}"
            )

        names.sort(key=sort_key)
        return [
            TileEntry(index, name, extract_order_key(name), str(self.directory / name))
            for index, name in enumerate(names)
        ]

    def read_bytes(self, entry: TileEntry) -> bytes:
        path = Path(entry.path) if entry.path else self.directory / entry.name
        try:
            return path.read_bytes()
        except OSError as e:
            raise DecodeError(entry.name, e.strerror or str(e))

    def describe(self) -> str:
        return f"directory {self.directory}"
