"""Utility functions for contour generation."""

from .geo_utils import GridTransform

__all__ = [
    "GridTransform",
]
