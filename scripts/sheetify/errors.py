"""
Exception hierarchy for the spritesheet pipeline.

Per-tile failures (decode, size mismatch) are recoverable: the tile is
dropped and the run continues. Everything else is structural and ends the run.
"""

from typing import Optional, Tuple


class SheetifyError(Exception):
    """Base exception for sheetify errors."""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class DirectoryReadError(SheetifyError):
    """Exception raised when the input directory cannot be enumerated."""

    def __init__(self, directory: str, reason: str):
        super().__init__(f"Cannot read input directory '{directory}': {reason}")
        self.directory = directory


class EmptyInputError(SheetifyError):
    """Exception raised when there are no tiles to place."""

    def __init__(self, message: str = "No tiles to pack"):
        super().__init__(message)


class DecodeError(SheetifyError):
    """Exception raised when a single tile cannot be read or decoded."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Failed to decode '{name}': {reason}", recoverable=True)
        self.name = name


class TileSizeMismatchError(SheetifyError):
    """Exception raised when a tile is not sprite_size x sprite_size."""

    def __init__(self, name: str, expected: Tuple[int, int], actual: Tuple[int, int],
                 recoverable: bool = True):
        super().__init__(
            f"Tile '{name}' has size {actual[0]}x{actual[1]}, expected {expected[0]}x{expected[1]}",
            recoverable=recoverable
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class GeometryError(SheetifyError):
    """Exception raised when an atlas layout cannot be built."""
    pass


class EncodeError(SheetifyError):
    """Exception raised when the finished atlas cannot be encoded."""
    pass


class WriteError(SheetifyError):
    """Exception raised when the encoded atlas cannot be written."""

    def __init__(self, path: str, reason: str, cause: Optional[BaseException] = None):
        super().__init__(f"Cannot write atlas to '{path}': {reason}")
        self.path = path
        self.cause = cause
