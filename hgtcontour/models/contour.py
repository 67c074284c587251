"""Contour line model."""

from dataclasses import dataclass, replace
from typing import Iterable

from shapely.geometry import LineString


@dataclass(frozen=True)
class ContourLine:
    """A traced iso-elevation polyline.

    Coordinates are (x, y) pairs: (column, row) in grid space straight out of
    the tracer, (longitude, latitude) once mapped by a GridTransform.
    """

    level: int
    coords: tuple[tuple[float, float], ...]
    closed: bool = False

    @property
    def num_points(self) -> int:
        return len(self.coords)

    def to_linestring(self) -> LineString:
        """Shapely view of the line (needs at least 2 points)."""
        return LineString(self.coords)

    def with_coords(self, coords: Iterable[tuple[float, float]]) -> "ContourLine":
        """Return a copy carrying new coordinates, same level and closure."""
        return replace(self, coords=tuple((float(x), float(y)) for x, y in coords))
