"""End-to-end conversion of one HGT tile into an OSM entity stream."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..models.settings import ContourSettings
from ..models.tile import RasterTile
from ..utils.geo_utils import GridTransform
from .contour_service import ContourService
from .entity_service import EntityService, IdAllocator, tile_bound
from .hgt_service import HgtService
from .sink_service import EntitySink, EntitySorter

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Outcome of a completed run."""

    tile: RasterTile
    lines_traced: int
    nodes: int
    ways: int
    skipped_lines: int
    dropped_lines: int
    first_node_id: int
    first_way_id: int

    @property
    def node_id_range(self) -> Optional[tuple[int, int]]:
        """(first, last) node id issued, None if no node was emitted."""
        if self.nodes == 0:
            return None
        return (self.first_node_id, self.first_node_id + self.nodes - 1)

    @property
    def way_id_range(self) -> Optional[tuple[int, int]]:
        """(first, last) way id issued, None if no way was emitted."""
        if self.ways == 0:
            return None
        return (self.first_way_id, self.first_way_id + self.ways - 1)


class PipelineService:
    """Runs decode, trace, transform and synthesis for a single tile."""

    def __init__(
        self,
        settings: Optional[ContourSettings] = None,
        timestamp: Optional[datetime] = None,
    ):
        """
        Initialize pipeline.

        Args:
            settings: Contour and tag settings. Uses defaults if not provided.
            timestamp: Timestamp for every entity. Defaults to the start time (UTC) of each run.
        """
        self.settings = settings or ContourSettings()
        self.hgt_service = HgtService()
        self.contour_service = ContourService(self.settings)
        self.entity_service = EntityService(tags=self.settings.tags, timestamp=timestamp)

    def run(self, path: Union[str, Path], sink: EntitySink) -> RunSummary:
        """
        Convert one tile and stream the result into `sink`.

        Records pass through an EntitySorter, so the sink receives the bound
        first, then nodes, then ways, each in ascending id order. The sink is
        closed on the way out whether or not the run succeeded.

        Args:
            path: HGT file to convert
            sink: Downstream receiver of the ordered records

        Returns:
            RunSummary with entity counts and id ranges

        Raises:
            NotFoundError, FormatError, GeometryError: On any fatal problem
        """
        sorter = EntitySorter(sink)
        try:
            tile = self.hgt_service.read_tile(path)

            bound = tile_bound(tile)
            logger.info("minLon: %f, maxLon: %f", bound.bbox.west, bound.bbox.east)
            logger.info("minLat: %f, maxLat: %f", bound.bbox.south, bound.bbox.north)

            lines = self.contour_service.trace_tile(tile)

            allocator = IdAllocator.for_tile(tile.origin_lat, tile.origin_lon)
            sorter.process(bound)
            stats = self.entity_service.synthesize(
                lines,
                allocator,
                sorter,
                transform=GridTransform.for_tile(tile),
            )
            sorter.complete()
        finally:
            sorter.close()

        logger.info(
            "%s: %d lines traced, %d nodes, %d ways written",
            tile.name,
            len(lines),
            stats.nodes,
            stats.ways,
        )

        return RunSummary(
            tile=tile,
            lines_traced=len(lines),
            nodes=stats.nodes,
            ways=stats.ways,
            skipped_lines=stats.skipped_lines,
            dropped_lines=stats.dropped_lines,
            first_node_id=allocator.first_node_id,
            first_way_id=allocator.first_way_id,
        )
