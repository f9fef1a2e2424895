"""
Utility modules for image output and bounded concurrent execution.
"""

from .image import ImageUtils
from .pool import BoundedPool, TaskResult

__all__ = [
    "ImageUtils",
    "BoundedPool",
    "TaskResult",
]
