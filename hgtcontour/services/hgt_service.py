"""SRTM HGT tile decoding service."""

import logging
import re
from pathlib import Path
from typing import Union

import numpy as np

from ..exceptions import FormatError, NotFoundError
from ..models.tile import RasterTile

logger = logging.getLogger(__name__)

# N28E086.hgt, s33w070.HGT, ...
TILE_NAME_PATTERN = re.compile(r"^([ns])(\d{2})([ew])(\d{3})\.hgt$", re.IGNORECASE | re.ASCII)

# Grid side length -> arc seconds between samples
SUPPORTED_GRIDS = {
    3601: 1,
    1201: 3,
}

# Big-endian signed 16-bit
HGT_DTYPE = np.dtype(">i2")


def parse_tile_name(name: str) -> tuple[int, int]:
    """
    Recover the tile origin from an HGT file name.

    Args:
        name: File name such as ``N28E086.hgt`` (case-insensitive)

    Returns:
        (origin_lat, origin_lon) of the south-west corner in integer degrees

    Raises:
        FormatError: If the name does not follow the HGT naming pattern
    """
    match = TILE_NAME_PATTERN.match(name) if len(name) == 11 else None
    if match is None:
        raise FormatError(f"File name {name} invalid. It should look like [N28E086.hgt].")

    ns, lat_digits, ew, lon_digits = match.groups()
    lat = int(lat_digits)
    lon = int(lon_digits)
    if lat > 90 or lon > 180:
        raise FormatError(f"File name {name} invalid. It should look like [N28E086.hgt].")

    if ns.lower() == "s":
        lat = -lat
    if ew.lower() == "w":
        lon = -lon
    return lat, lon


def grid_for_byte_size(size_bytes: int) -> tuple[int, int]:
    """
    Detect the grid layout from the file size.

    Returns:
        (grid side length, arc seconds per sample)

    Raises:
        FormatError: If the size matches neither 1" nor 3" tiles
    """
    for side, arc_seconds in SUPPORTED_GRIDS.items():
        if size_bytes == side * side * HGT_DTYPE.itemsize:
            return side, arc_seconds
    raise FormatError(
        f"Invalid HGT file size {size_bytes} bytes; expected "
        + " or ".join(f"{s * s * HGT_DTYPE.itemsize} ({s}x{s})" for s in SUPPORTED_GRIDS)
    )


class HgtService:
    """Service for reading HGT elevation tiles."""

    def read_tile(self, path: Union[str, Path]) -> RasterTile:
        """
        Decode an HGT file into a RasterTile.

        Args:
            path: Path to the ``.hgt`` file

        Returns:
            RasterTile with origin parsed from the name and samples from the body

        Raises:
            NotFoundError: If the file does not exist
            FormatError: If the name or size is invalid
        """
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(f"File {path.absolute()} does not exist")

        origin_lat, origin_lon = parse_tile_name(path.name)
        size, arc_seconds = grid_for_byte_size(path.stat().st_size)

        logger.info("Load %s ... BEGIN", path.absolute())

        with open(path, "rb") as f:
            data = f.read()
        if len(data) != size * size * HGT_DTYPE.itemsize:
            raise FormatError(f"{path.absolute()} changed size while reading")

        samples = np.frombuffer(data, dtype=HGT_DTYPE).astype(np.int16)

        logger.info("Load %s ... END", path.absolute())

        return RasterTile(
            origin_lat=origin_lat,
            origin_lon=origin_lon,
            size=size,
            arc_seconds=arc_seconds,
            samples=samples,
            name=path.name,
        )
