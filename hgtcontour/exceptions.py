"""Errors raised while converting an HGT tile into contour entities."""


class HgtContourError(Exception):
    """Base class for all conversion failures. Every one of them aborts the run."""


class NotFoundError(HgtContourError, FileNotFoundError):
    """The input tile does not exist or is not a regular file."""


class FormatError(HgtContourError, ValueError):
    """The tile name or size does not match the HGT layout."""


class GeometryError(HgtContourError):
    """The contour tracer hit an internal invariant violation."""


class IdSpaceError(HgtContourError):
    """A tile's block of way or node ids is used up."""
