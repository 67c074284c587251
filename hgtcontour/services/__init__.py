"""Contour generation services."""

from .contour_service import ContourService
from .entity_service import EntityService, IdAllocator
from .hgt_service import HgtService
from .pipeline_service import PipelineService, RunSummary
from .sink_service import CollectingSink, EntitySink, EntitySorter, OsmXmlWriter

__all__ = [
    "ContourService",
    "EntityService",
    "IdAllocator",
    "HgtService",
    "PipelineService",
    "RunSummary",
    "CollectingSink",
    "EntitySink",
    "EntitySorter",
    "OsmXmlWriter",
]
