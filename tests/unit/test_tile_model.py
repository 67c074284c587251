"""Tests for RasterTile and BoundingBox models."""

import numpy as np
import pytest
from pydantic import ValidationError

from hgtcontour.models.tile import BoundingBox, RasterTile


def _tile(origin_lat=28, origin_lon=86, size=1201, arc_seconds=3, samples=None):
    if samples is None:
        samples = np.zeros(size * size, dtype=np.int16)
    return RasterTile(
        origin_lat=origin_lat,
        origin_lon=origin_lon,
        size=size,
        arc_seconds=arc_seconds,
        samples=samples,
    )


class TestRasterTile:
    def test_reshapes_flat_samples(self):
        tile = _tile(size=3, samples=np.arange(9))
        assert tile.samples.shape == (3, 3)
        assert tile.samples[0, 2] == 2
        assert tile.samples[2, 0] == 6

    def test_rejects_wrong_sample_count(self):
        with pytest.raises(ValueError):
            _tile(size=3, samples=np.zeros(8))

    def test_resolution(self):
        assert _tile().resolution == pytest.approx(1 / 1200)
        assert _tile(size=3601, arc_seconds=1).resolution == pytest.approx(1 / 3600)

    def test_edges(self):
        tile = _tile(origin_lat=-33, origin_lon=-70)
        assert tile.north == -32
        assert tile.east == -69

    def test_elevation_range_skips_nodata(self):
        tile = _tile(size=2, samples=np.array([-32768, 10, 250, 40]))
        assert tile.elevation_range() == (10, 250)

    def test_elevation_range_without_data(self):
        tile = _tile(size=2, samples=np.full(4, -32768))
        assert tile.elevation_range() is None

    def test_padded_bounds(self):
        tile = _tile()
        half = tile.resolution / 2
        bbox = tile.padded_bounds()
        assert bbox.west == pytest.approx(86 - half)
        assert bbox.east == pytest.approx(87 + half)
        assert bbox.south == pytest.approx(28 - half)
        assert bbox.north == pytest.approx(29 + half)

    def test_padded_bounds_clamped_at_pole(self):
        tile = _tile(origin_lat=89, origin_lon=179)
        bbox = tile.padded_bounds()
        assert bbox.north == 90
        assert bbox.east == 180


class TestBoundingBox:
    def test_rejects_latitude_out_of_range(self):
        with pytest.raises(ValidationError):
            BoundingBox(north=91, south=40.0, east=-73.0, west=-74.0)

    def test_padded_grows_every_side(self):
        bbox = BoundingBox(north=29, south=28, east=87, west=86).padded(0.5)
        assert (bbox.north, bbox.south, bbox.east, bbox.west) == (29.5, 27.5, 87.5, 85.5)

    def test_padded_clamps_to_globe(self):
        bbox = BoundingBox(north=90, south=-90, east=180, west=-180).padded(1)
        assert (bbox.north, bbox.south, bbox.east, bbox.west) == (90, -90, 180, -180)
