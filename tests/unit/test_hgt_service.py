"""Tests for HGT tile decoding."""

import numpy as np
import pytest

from hgtcontour.exceptions import FormatError, NotFoundError
from hgtcontour.models.tile import RasterTile
from hgtcontour.services.hgt_service import (
    HgtService,
    grid_for_byte_size,
    parse_tile_name,
)


@pytest.fixture
def service():
    return HgtService()


class TestParseTileName:
    """Test origin recovery from file names."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("S33W070.hgt", (-33, -70)),
            ("N28E086.hgt", (28, 86)),
            ("n00e000.hgt", (0, 0)),
            ("N45W122.HGT", (45, -122)),
            ("S90E180.hgt", (-90, 180)),
        ],
    )
    def test_valid_names(self, name, expected):
        assert parse_tile_name(name) == expected

    @pytest.mark.parametrize(
        "name",
        [
            "N28E86.hgt",  # too short
            "N28E0860.hgt",  # too long
            "X28E086.hgt",  # bad latitude hemisphere
            "N28X086.hgt",  # bad longitude hemisphere
            "N91E086.hgt",  # latitude > 90
            "N28E181.hgt",  # longitude > 180
            "N2aE086.hgt",  # non-digit
            "N28E086.tif",  # wrong extension
            "E28N086.hgt",  # hemispheres swapped
        ],
    )
    def test_invalid_names(self, name):
        with pytest.raises(FormatError, match="N28E086.hgt"):
            parse_tile_name(name)

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_tile_name("bogus.hgt")


class TestGridForByteSize:
    def test_three_arc_second(self):
        assert grid_for_byte_size(1201 * 1201 * 2) == (1201, 3)

    def test_one_arc_second(self):
        assert grid_for_byte_size(3601 * 3601 * 2) == (3601, 1)

    @pytest.mark.parametrize("size", [0, 1201 * 1201 * 2 - 1, 1201 * 1201 * 2 + 2, 1201 * 1201, 3601 * 3601 * 4])
    def test_other_sizes_rejected(self, size):
        with pytest.raises(FormatError):
            grid_for_byte_size(size)


class TestReadTile:
    """Test decoding tiles from disk."""

    def test_reads_origin_and_geometry(self, service, write_hgt):
        path = write_hgt(np.zeros((1201, 1201)), name="S33W070.hgt")
        tile = service.read_tile(path)

        assert isinstance(tile, RasterTile)
        assert tile.origin_lat == -33
        assert tile.origin_lon == -70
        assert tile.size == 1201
        assert tile.arc_seconds == 3
        assert tile.resolution == pytest.approx(3 / 3600.0)
        assert tile.name == "S33W070.hgt"

    def test_decodes_big_endian_row_major(self, service, write_hgt):
        grid = np.zeros((1201, 1201), dtype=np.int16)
        grid[0, 0] = 1234  # north-west
        grid[0, 1] = -5
        grid[1, 0] = 300
        grid[1200, 1200] = 8848  # south-east
        grid[600, 600] = -32768
        tile = service.read_tile(write_hgt(grid))

        assert tile.samples.shape == (1201, 1201)
        assert tile.samples.dtype == np.int16
        assert tile.samples[0, 0] == 1234
        assert tile.samples[0, 1] == -5
        assert tile.samples[1, 0] == 300
        assert tile.samples[1200, 1200] == 8848
        assert tile.samples[600, 600] == -32768

    def test_samples_are_read_only(self, service, write_hgt):
        tile = service.read_tile(write_hgt(np.zeros((1201, 1201))))
        with pytest.raises(ValueError):
            tile.samples[0, 0] = 1

    def test_missing_file(self, service, tmp_path):
        with pytest.raises(NotFoundError):
            service.read_tile(tmp_path / "N28E086.hgt")

    def test_missing_file_is_file_not_found(self, service, tmp_path):
        with pytest.raises(FileNotFoundError):
            service.read_tile(tmp_path / "N28E086.hgt")

    def test_directory_is_not_a_tile(self, service, tmp_path):
        directory = tmp_path / "N28E086.hgt"
        directory.mkdir()
        with pytest.raises(NotFoundError):
            service.read_tile(directory)

    def test_wrong_size(self, service, tmp_path):
        path = tmp_path / "N28E086.hgt"
        path.write_bytes(b"\x00" * 1000)
        with pytest.raises(FormatError, match="size"):
            service.read_tile(path)

    def test_bad_name_with_valid_size(self, service, write_hgt):
        path = write_hgt(np.zeros((1201, 1201)), name="tile_0001.hgt")
        with pytest.raises(FormatError):
            service.read_tile(path)
