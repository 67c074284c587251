"""Convert SRTM HGT elevation tiles into OSM contour-line entities."""

__version__ = "0.1.0"
