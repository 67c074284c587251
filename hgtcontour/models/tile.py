"""Raster tile and geographic bounding box models."""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from pydantic import BaseModel, Field


class BoundingBox(BaseModel):
    """Geographic bounding box in degrees."""

    north: float = Field(..., ge=-90, le=90, description="Northern latitude boundary")
    south: float = Field(..., ge=-90, le=90, description="Southern latitude boundary")
    east: float = Field(..., ge=-180, le=180, description="Eastern longitude boundary")
    west: float = Field(..., ge=-180, le=180, description="Western longitude boundary")

    def padded(self, margin: float) -> "BoundingBox":
        """Grow the box by `margin` degrees on every side, clamped to valid coordinates."""
        return BoundingBox(
            north=min(90, self.north + margin),
            south=max(-90, self.south - margin),
            east=min(180, self.east + margin),
            west=max(-180, self.west - margin),
        )


@dataclass(frozen=True)
class RasterTile:
    """A decoded HGT tile.

    Samples are stored as a (size, size) array of signed 16-bit elevations in
    meters. Row 0 is the northern edge, column 0 the western edge.
    """

    origin_lat: int
    """Latitude of the southern edge (integer degrees)."""

    origin_lon: int
    """Longitude of the western edge (integer degrees)."""

    size: int
    """Grid side length (1201 or 3601)."""

    arc_seconds: int
    """Sample spacing in arc seconds (3 or 1)."""

    samples: np.ndarray = field(repr=False)

    name: Optional[str] = None

    def __post_init__(self):
        samples = np.asarray(self.samples, dtype=np.int16)
        if samples.size != self.size * self.size:
            raise ValueError(
                f"Expected {self.size * self.size} samples for a {self.size}x{self.size} grid, "
                f"got {samples.size}"
            )
        samples = samples.reshape(self.size, self.size)
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @property
    def resolution(self) -> float:
        """Degrees per cell."""
        return self.arc_seconds / 3600.0

    @property
    def north(self) -> int:
        """Latitude of the northern edge (first sample row)."""
        return self.origin_lat + 1

    @property
    def east(self) -> int:
        """Longitude of the eastern edge (last sample column)."""
        return self.origin_lon + 1

    def valid_mask(self, nodata_values: tuple[int, ...] = (-32768,)) -> np.ndarray:
        """Boolean grid, True where the sample holds a real elevation."""
        return ~np.isin(self.samples, nodata_values)

    def elevation_range(self, nodata_values: tuple[int, ...] = (-32768,)) -> Optional[tuple[int, int]]:
        """(min, max) elevation over valid samples, or None if the tile has no data."""
        valid = self.samples[self.valid_mask(nodata_values)]
        if valid.size == 0:
            return None
        return int(valid.min()), int(valid.max())

    def bounds(self) -> BoundingBox:
        """Bounds through the outermost sample centers, clamped to valid coordinates."""
        return BoundingBox(
            north=min(90, self.north),
            south=max(-90, self.origin_lat),
            east=min(180, self.east),
            west=max(-180, self.origin_lon),
        )

    def padded_bounds(self) -> BoundingBox:
        """Bounds through the outer cell edges (half a cell beyond the sample centers)."""
        return self.bounds().padded(self.resolution / 2)
