"""Shared test fixtures."""

from datetime import datetime, timezone

import numpy as np
import pytest

from hgtcontour.models.settings import ContourSettings
from hgtcontour.models.tile import RasterTile


@pytest.fixture
def fixed_timestamp():
    """Timestamp shared by all synthesized entities."""
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def ramp_grid():
    """6x6 grid rising 10 m per column, starting at 5 m."""
    cols = np.arange(6) * 10 + 5
    return np.tile(cols, (6, 1)).astype(np.int16)


@pytest.fixture
def peak_grid():
    """5x5 grid of zeros with a single 100 m sample in the middle."""
    grid = np.zeros((5, 5), dtype=np.int16)
    grid[2, 2] = 100
    return grid


@pytest.fixture
def pyramid_grid():
    """1201x1201 square pyramid: 600 m at the center, falling 2 m per sample, floored at 0."""
    rows, cols = np.indices((1201, 1201))
    distance = np.maximum(np.abs(rows - 600), np.abs(cols - 600))
    return np.clip(600 - 2 * distance, 0, None).astype(np.int16)


@pytest.fixture
def pyramid_tile(pyramid_grid):
    """3 arc-second tile N28E086 holding the pyramid."""
    return RasterTile(
        origin_lat=28,
        origin_lon=86,
        size=1201,
        arc_seconds=3,
        samples=pyramid_grid,
        name="N28E086.hgt",
    )


@pytest.fixture
def write_hgt(tmp_path):
    """Write a grid as a big-endian HGT file and return its path."""

    def _write(grid, name="N28E086.hgt"):
        path = tmp_path / name
        path.write_bytes(np.asarray(grid, dtype=">i2").tobytes())
        return path

    return _write


@pytest.fixture
def pyramid_hgt(write_hgt, pyramid_grid):
    """Pyramid tile on disk."""
    return write_hgt(pyramid_grid)


@pytest.fixture
def settings_100m():
    """Settings tracing every 100 m."""
    return ContourSettings(interval=100)
