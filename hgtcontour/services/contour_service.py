"""Contour line tracing service (marching squares over the sample grid)."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

import numpy as np
from shapely.geometry import LineString

from ..exceptions import GeometryError
from ..models.contour import ContourLine
from ..models.settings import ContourSettings
from ..models.tile import RasterTile

logger = logging.getLogger(__name__)

# Corner bits of a cell case index. A corner is set when its sample >= level.
TOP_LEFT = 1
TOP_RIGHT = 2
BOTTOM_RIGHT = 4
BOTTOM_LEFT = 8

TOP = "top"
RIGHT = "right"
BOTTOM = "bottom"
LEFT = "left"

EDGE_CORNERS = {
    TOP: (TOP_LEFT, TOP_RIGHT),
    RIGHT: (TOP_RIGHT, BOTTOM_RIGHT),
    BOTTOM: (BOTTOM_LEFT, BOTTOM_RIGHT),
    LEFT: (TOP_LEFT, BOTTOM_LEFT),
}

# Segment that separates a single corner from the other three
CORNER_SEGMENTS = {
    TOP_LEFT: (TOP, LEFT),
    TOP_RIGHT: (TOP, RIGHT),
    BOTTOM_RIGHT: (RIGHT, BOTTOM),
    BOTTOM_LEFT: (LEFT, BOTTOM),
}

# Diagonal corners above the level: four crossings, two segments
SADDLE_CASES = (TOP_LEFT | BOTTOM_RIGHT, TOP_RIGHT | BOTTOM_LEFT)

# Edge key kinds. A horizontal edge (H, r, c) joins samples (r, c)-(r, c+1),
# a vertical edge (V, r, c) joins samples (r, c)-(r+1, c).
H = 0
V = 1


def _build_case_segments() -> dict[int, tuple[tuple[str, str], ...]]:
    table = {}
    for case in range(1, 15):
        if case in SADDLE_CASES:
            continue
        crossed = [
            edge for edge, (a, b) in EDGE_CORNERS.items() if bool(case & a) != bool(case & b)
        ]
        table[case] = ((crossed[0], crossed[1]),)
    return table


CASE_SEGMENTS = _build_case_segments()


def saddle_segments(case: int, center_above: bool) -> tuple[tuple[str, str], ...]:
    """
    Resolve an ambiguous saddle cell.

    The mean of the four corners decides: when it is at or above the level the
    two above-corners are joined through the cell center, so the segments cut
    off the two below-corners. Otherwise the below-corners are joined and the
    above-corners are cut off.
    """
    if center_above:
        isolated = [bit for bit in CORNER_SEGMENTS if not case & bit]
    else:
        isolated = [bit for bit in CORNER_SEGMENTS if case & bit]
    return tuple(CORNER_SEGMENTS[bit] for bit in isolated)


def _edge_key(edge: str, row: int, col: int) -> tuple[int, int, int]:
    if edge == TOP:
        return (H, row, col)
    elif edge == BOTTOM:
        return (H, row + 1, col)
    elif edge == LEFT:
        return (V, row, col)
    else:
        return (V, row, col + 1)


def contour_levels(vmin: int, vmax: int, interval: int) -> list[int]:
    """Multiples of `interval` strictly between `vmin` and `vmax`."""
    if interval <= 0:
        raise ValueError(f"Contour interval must be positive, got {interval}")
    first = (vmin // interval + 1) * interval
    return list(range(first, vmax, interval))


@dataclass
class _PreparedGrid:
    """Per-grid arrays shared by every level."""

    grid: np.ndarray  # int32 (rows, cols)
    cell_min: np.ndarray  # min of the four corners per cell
    cell_max: np.ndarray  # max of the four corners per cell; no-data cells never activate


class ContourService:
    """Service for tracing iso-elevation lines through an elevation grid."""

    def __init__(self, settings: Optional[ContourSettings] = None):
        """
        Initialize contour service.

        Args:
            settings: Interval, no-data and simplification settings.
                      Uses defaults if not provided.
        """
        self.settings = settings or ContourSettings()

    @property
    def nodata_values(self) -> tuple[int, ...]:
        return tuple(self.settings.nodata_values)

    def levels_for(self, grid: np.ndarray) -> list[int]:
        """Contour levels that cross the valid value range of a grid."""
        grid = np.asarray(grid)
        valid = grid[~np.isin(grid, self.nodata_values)]
        if valid.size == 0:
            return []
        return contour_levels(int(valid.min()), int(valid.max()), self.settings.interval)

    def trace_tile(self, tile: RasterTile) -> list[ContourLine]:
        """Trace all contour lines of a tile in grid (column, row) space."""
        return self.trace_grid(tile.samples)

    def trace_grid(self, grid: np.ndarray) -> list[ContourLine]:
        """
        Trace contour lines at every interval level within the grid's range.

        Args:
            grid: 2D array of elevations, row 0 at the top

        Returns:
            Lines grouped by ascending level, each in (column, row) coordinates

        Raises:
            GeometryError: If cell fragments cannot be stitched consistently
        """
        grid = np.asarray(grid)
        if grid.ndim != 2:
            raise ValueError(f"Expected a 2D grid, got shape {grid.shape}")

        levels = self.levels_for(grid)
        if grid.shape[0] < 2 or grid.shape[1] < 2 or not levels:
            return []

        logger.info("Convert to contour lines ... BEGIN")

        prepared = self._prepare(grid)
        lines: list[ContourLine] = []
        for level in levels:
            level_lines = self._trace_level(prepared, level)
            logger.debug("Level %d: %d lines", level, len(level_lines))
            lines.extend(level_lines)

        logger.info("Convert to contour lines ... END (%d levels, %d lines)", len(levels), len(lines))
        return lines

    def _prepare(self, grid: np.ndarray) -> _PreparedGrid:
        g = grid.astype(np.int32)
        tl, tr = g[:-1, :-1], g[:-1, 1:]
        bl, br = g[1:, :-1], g[1:, 1:]
        cell_min = np.minimum(np.minimum(tl, tr), np.minimum(bl, br))
        cell_max = np.maximum(np.maximum(tl, tr), np.maximum(bl, br))

        nodata = np.isin(g, self.nodata_values)
        if nodata.any():
            bad_cell = nodata[:-1, :-1] | nodata[:-1, 1:] | nodata[1:, :-1] | nodata[1:, 1:]
            cell_max[bad_cell] = np.iinfo(np.int32).min

        return _PreparedGrid(grid=g, cell_min=cell_min, cell_max=cell_max)

    def _trace_level(self, prepared: _PreparedGrid, level: int) -> list[ContourLine]:
        """Trace, stitch and simplify all lines of a single level."""
        segments = self._cell_segments(prepared, level)
        if not segments:
            return []

        lines = []
        for edges, closed in self._stitch(segments):
            coords = self._edges_to_coords(prepared.grid, edges, level)
            line = self._finish_line(coords, closed, level)
            if line is not None:
                lines.append(line)
        return lines

    def _cell_segments(
        self, prepared: _PreparedGrid, level: int
    ) -> list[tuple[tuple[int, int, int], tuple[int, int, int]]]:
        """Per-cell fragments as pairs of crossed edge keys, in row-major cell order."""
        active = (prepared.cell_min < level) & (prepared.cell_max >= level)
        rows, cols = np.nonzero(active)
        if rows.size == 0:
            return []

        g = prepared.grid
        tl = g[rows, cols]
        tr = g[rows, cols + 1]
        br = g[rows + 1, cols + 1]
        bl = g[rows + 1, cols]
        cases = (
            (tl >= level) * TOP_LEFT
            | (tr >= level) * TOP_RIGHT
            | (br >= level) * BOTTOM_RIGHT
            | (bl >= level) * BOTTOM_LEFT
        )
        center_above = (tl + tr + br + bl) >= 4 * level

        segments = []
        for row, col, case, above in zip(
            rows.tolist(), cols.tolist(), cases.tolist(), center_above.tolist()
        ):
            if case in SADDLE_CASES:
                pairs = saddle_segments(case, above)
            else:
                pairs = CASE_SEGMENTS[case]
            for a, b in pairs:
                segments.append((_edge_key(a, row, col), _edge_key(b, row, col)))
        return segments

    @staticmethod
    def _stitch(segments) -> list[tuple[list[tuple[int, int, int]], bool]]:
        """
        Chain fragments sharing a crossed edge into polylines.

        Every crossed edge belongs to at most two cells, so chains never branch.
        Open chains (ending on the grid border or a no-data cell) are walked from
        one free end; the remaining fragments must form closed rings.
        """
        incidence = defaultdict(list)
        for index, (a, b) in enumerate(segments):
            incidence[a].append(index)
            incidence[b].append(index)

        for edge, members in incidence.items():
            if len(members) > 2:
                raise GeometryError(f"Edge {edge} shared by {len(members)} contour fragments")

        used = [False] * len(segments)

        def walk(start: int, start_edge) -> list:
            chain = [start_edge]
            index, edge = start, start_edge
            while True:
                used[index] = True
                a, b = segments[index]
                edge = b if a == edge else a
                chain.append(edge)
                following = [i for i in incidence[edge] if not used[i]]
                if not following:
                    return chain
                index = following[0]

        chains = []
        for index, (a, b) in enumerate(segments):
            if used[index]:
                continue
            if len(incidence[a]) == 1:
                chains.append((walk(index, a), False))
            elif len(incidence[b]) == 1:
                chains.append((walk(index, b), False))

        for index, (a, _b) in enumerate(segments):
            if used[index]:
                continue
            chain = walk(index, a)
            if chain[-1] != chain[0]:
                raise GeometryError(f"Contour fragment starting at edge {a} does not close")
            chains.append((chain, True))

        return chains

    @staticmethod
    def _edges_to_coords(grid: np.ndarray, edges, level: int) -> list[tuple[float, float]]:
        """Interpolate the crossing point on each edge, dropping repeated points."""
        coords: list[tuple[float, float]] = []
        for kind, row, col in edges:
            v0 = int(grid[row, col])
            if kind == H:
                v1 = int(grid[row, col + 1])
                t = (level - v0) / (v1 - v0)
                point = (col + t, float(row))
            else:
                v1 = int(grid[row + 1, col])
                t = (level - v0) / (v1 - v0)
                point = (float(col), row + t)
            if not coords or coords[-1] != point:
                coords.append(point)
        return coords

    def _finish_line(
        self, coords: list[tuple[float, float]], closed: bool, level: int
    ) -> Optional[ContourLine]:
        """Drop degenerate lines and simplify the rest."""
        if closed:
            # Rings need three distinct vertices plus the closing one
            if len(coords) < 4 or coords[0] != coords[-1]:
                return None
        elif len(coords) < 2:
            return None

        # Chains entering and leaving through the same on-level sample close on coordinates
        closed = closed or (len(coords) >= 4 and coords[0] == coords[-1])

        tolerance = self.settings.simplify_tolerance
        if tolerance > 0:
            simplified = list(LineString(coords).simplify(tolerance, preserve_topology=True).coords)
            if not closed or len(simplified) >= 4:
                coords = simplified

        return ContourLine(level=level, coords=tuple(coords), closed=closed)
