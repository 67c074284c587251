"""Data models for contour generation."""

from .contour import ContourLine
from .entities import (
    DUMMY_USER,
    Bound,
    Entity,
    EntityType,
    MapNode,
    MapWay,
    OsmUser,
    Record,
    Tag,
)
from .settings import ContourSettings, MagnitudeBand, TagSettings, classify_elevation
from .tile import BoundingBox, RasterTile

__all__ = [
    "ContourLine",
    "DUMMY_USER",
    "Bound",
    "Entity",
    "EntityType",
    "MapNode",
    "MapWay",
    "OsmUser",
    "Record",
    "Tag",
    "ContourSettings",
    "MagnitudeBand",
    "TagSettings",
    "classify_elevation",
    "BoundingBox",
    "RasterTile",
]
