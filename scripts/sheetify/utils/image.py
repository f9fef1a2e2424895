"""
Image encoding and output utilities for the spritesheet builder.
"""

import io
from pathlib import Path
from typing import Union

from PIL import Image

from ..errors import EncodeError, WriteError


class ImageUtils:
    """Utility class for atlas encoding and persistence."""

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def encode_png(image: Image.Image, compress_level: int = 6) -> bytes:
        """
        Encode an image as PNG bytes.

        No text chunks or timestamps are written, so identical pixels
        always encode to identical bytes.

        Raises:
            EncodeError: If Pillow cannot encode the image
        """
        buffer = io.BytesIO()
        try:
            ImageUtils.ensure_rgba(image).save(buffer, format='PNG', compress_level=compress_level)
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode atlas as PNG: {e}")
        return buffer.getvalue()

    @staticmethod
    def write_bytes(data: bytes, path: Union[str, Path]) -> Path:
        """
        Write encoded image data, creating parent directories.

        Raises:
            WriteError: If the file cannot be written
        """
        output_path = Path(path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(data)
        except OSError as e:
            raise WriteError(str(output_path), e.strerror or str(e), cause=e)
        return output_path
