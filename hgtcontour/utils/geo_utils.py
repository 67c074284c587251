"""Grid-to-geographic coordinate utilities."""

from dataclasses import dataclass

from shapely.affinity import affine_transform

from ..models.contour import ContourLine
from ..models.tile import RasterTile


@dataclass(frozen=True)
class GridTransform:
    """Affine map from grid (column, row) to (longitude, latitude).

    lon = west + col * resolution
    lat = north - row * resolution
    """

    west: float
    north: float
    resolution: float

    @classmethod
    def for_tile(cls, tile: RasterTile) -> "GridTransform":
        """Transform anchored at the tile's north-west sample."""
        return cls(west=tile.origin_lon, north=tile.north, resolution=tile.resolution)

    @property
    def matrix(self) -> list[float]:
        """Shapely affine parameters [a, b, d, e, xoff, yoff]."""
        return [self.resolution, 0.0, 0.0, -self.resolution, self.west, self.north]

    def to_geo(self, col: float, row: float) -> tuple[float, float]:
        """Map one grid vertex to (lon, lat)."""
        return (self.west + col * self.resolution, self.north - row * self.resolution)

    def apply(self, line: ContourLine) -> ContourLine:
        """Return a new ContourLine with every vertex mapped to geographic space."""
        if line.num_points < 2:
            return line.with_coords(self.to_geo(x, y) for x, y in line.coords)
        geo = affine_transform(line.to_linestring(), self.matrix)
        return line.with_coords(geo.coords)
