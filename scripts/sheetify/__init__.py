"""
sheetify - deduplicating spritesheet packer

Packs a directory of fixed-size, numbered tile images into a single texture
atlas. Tiles are decoded concurrently, exact duplicates are dropped by content
hash, and the remaining tiles are laid out in filename order on a grid.
"""

__version__ = "0.1.0"

from .config import SheetConfig
from .errors import (
    SheetifyError,
    DirectoryReadError,
    EmptyInputError,
    DecodeError,
    TileSizeMismatchError,
    GeometryError,
    EncodeError,
    WriteError,
)
from .pipeline import SheetPipeline, PipelineError, PipelineStep, PipelineState

__all__ = [
    "SheetConfig",
    "SheetifyError",
    "DirectoryReadError",
    "EmptyInputError",
    "DecodeError",
    "TileSizeMismatchError",
    "GeometryError",
    "EncodeError",
    "WriteError",
    "SheetPipeline",
    "PipelineError",
    "PipelineStep",
    "PipelineState",
]
