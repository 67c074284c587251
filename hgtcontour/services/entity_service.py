"""OSM entity synthesis for traced contour lines."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..exceptions import IdSpaceError
from ..models.contour import ContourLine
from ..models.entities import DUMMY_USER, Bound, Entity, MapNode, MapWay, OsmUser, Tag
from ..models.settings import TagSettings, classify_elevation
from ..models.tile import RasterTile
from ..utils.geo_utils import GridTransform
from .sink_service import EntitySink

logger = logging.getLogger(__name__)

# Ids start far above the range used by the official OSM database
ID_FLOOR = 10_000_000

# Ids reserved per tile
WAY_BLOCK_SIZE = 4**10 * 10
NODE_BLOCK_SIZE = 4**10 * 100

# Number of 1x1 degree tiles on the globe
TILE_COUNT = 360 * 180

# Contours outside this band are treated as noise
MIN_ELEVATION = 50
MAX_ELEVATION = 9000

BOUND_ORIGIN = "https://www.benpl.net/thegoat/about.html"


class IdAllocator:
    """Two independent, strictly increasing id counters for one run.

    Every tile owns a block of way ids and a block of node ids, derived from
    its origin. Tiles with origin latitudes -90..89 get pairwise distinct
    blocks. A tile at latitude 90 lands on the block of the tile at latitude -90
    one degree further east. All way blocks sit below all node blocks.
    """

    def __init__(self, first_way_id: int, first_node_id: int):
        self.first_way_id = first_way_id
        self.first_node_id = first_node_id
        self._next_way_id = first_way_id
        self._next_node_id = first_node_id

    @classmethod
    def for_tile(cls, origin_lat: int, origin_lon: int) -> "IdAllocator":
        """Seed the counters from a tile's south-west corner."""
        lon = origin_lon + 180
        lat = origin_lat + 90
        tile_index = lon * 180 + lat

        first_way_id = ID_FLOOR + tile_index * WAY_BLOCK_SIZE
        first_node_id = ID_FLOOR + TILE_COUNT * WAY_BLOCK_SIZE + tile_index * NODE_BLOCK_SIZE
        return cls(first_way_id, first_node_id)

    @property
    def ways_allocated(self) -> int:
        return self._next_way_id - self.first_way_id

    @property
    def nodes_allocated(self) -> int:
        return self._next_node_id - self.first_node_id

    def next_way_id(self) -> int:
        if self.ways_allocated >= WAY_BLOCK_SIZE:
            raise IdSpaceError(f"Way id block starting at {self.first_way_id} is exhausted")
        way_id = self._next_way_id
        self._next_way_id += 1
        return way_id

    def next_node_id(self) -> int:
        if self.nodes_allocated >= NODE_BLOCK_SIZE:
            raise IdSpaceError(f"Node id block starting at {self.first_node_id} is exhausted")
        node_id = self._next_node_id
        self._next_node_id += 1
        return node_id


@dataclass
class SynthesisStats:
    """Counters for one synthesis pass."""

    nodes: int = 0
    ways: int = 0
    skipped_lines: int = 0  # level outside the plausible band
    dropped_lines: int = 0  # fewer than 2 vertices


def is_plausible_elevation(level: int) -> bool:
    """Check a contour level against the fixed noise band."""
    return MIN_ELEVATION <= level <= MAX_ELEVATION


def tile_bound(tile: RasterTile, origin: str = BOUND_ORIGIN) -> Bound:
    """Bound record covering the tile's cells, half a cell beyond the outer samples."""
    return Bound(bbox=tile.padded_bounds(), origin=origin)


class EntityService:
    """Service for turning geo-mapped contour lines into OSM nodes and ways."""

    def __init__(
        self,
        tags: Optional[TagSettings] = None,
        timestamp: Optional[datetime] = None,
        user: OsmUser = DUMMY_USER,
    ):
        """
        Initialize entity service.

        Args:
            tags: Tag keys and values for contour ways. Uses defaults if not provided.
            timestamp: Timestamp shared by every entity. When not provided, each
                       synthesis pass stamps its entities with its own start time (UTC).
            user: Author attribution shared by every entity.
        """
        self.tags = tags or TagSettings()
        self.timestamp = timestamp
        self.user = user

    def resolve_timestamp(self) -> datetime:
        """The injected timestamp, or the current UTC time."""
        return self.timestamp or datetime.now(timezone.utc)

    def way_tags(self, elevation: int) -> tuple[Tag, ...]:
        """Elevation, contour and magnitude band tags for a contour way."""
        band = classify_elevation(elevation)
        return (
            Tag(self.tags.elev_key, str(elevation)),
            Tag(self.tags.contour_key, self.tags.contour_val),
            Tag(self.tags.contour_ext_key, self.tags.band_value(band)),
        )

    def line_entities(
        self,
        line: ContourLine,
        allocator: IdAllocator,
        timestamp: Optional[datetime] = None,
    ) -> list[Entity]:
        """
        Build the nodes and the way for one geo-mapped line.

        Nodes come first in traversal order, the way last. The closing vertex of a
        closed line reuses the first node instead of allocating a new one.

        Returns:
            Entities to emit, empty when the line has fewer than 2 vertices
        """
        points = line.num_points
        if points < 2:
            return []

        timestamp = timestamp or self.resolve_timestamp()

        entities: list[Entity] = []
        node_ids: list[int] = []

        for i, (lon, lat) in enumerate(line.coords):
            if i == points - 1 and line.closed:
                node_ids.append(node_ids[0])
                break

            node_id = allocator.next_node_id()
            entities.append(
                MapNode(
                    id=node_id,
                    latitude=lat,
                    longitude=lon,
                    timestamp=timestamp,
                    user=self.user,
                )
            )
            node_ids.append(node_id)

        entities.append(
            MapWay(
                id=allocator.next_way_id(),
                node_ids=tuple(node_ids),
                timestamp=timestamp,
                tags=self.way_tags(line.level),
                user=self.user,
            )
        )
        return entities

    def synthesize(
        self,
        lines: Iterable[ContourLine],
        allocator: IdAllocator,
        sink: EntitySink,
        transform: Optional[GridTransform] = None,
    ) -> SynthesisStats:
        """
        Emit entities for every plausible line into a sink.

        Args:
            lines: Contour lines, in grid space if `transform` is given,
                   otherwise already in (lon, lat)
            allocator: Id counters for this run
            sink: Receiver of the entities
            transform: Optional grid-to-geo mapping applied to each kept line

        Returns:
            Counts of emitted entities and discarded lines
        """
        stats = SynthesisStats()
        timestamp = self.resolve_timestamp()

        for line in lines:
            if not is_plausible_elevation(line.level):
                stats.skipped_lines += 1
                continue

            if transform is not None:
                line = transform.apply(line)

            entities = self.line_entities(line, allocator, timestamp)
            if not entities:
                stats.dropped_lines += 1
                continue

            for entity in entities:
                sink.process(entity)
            stats.nodes += len(entities) - 1
            stats.ways += 1

        logger.debug(
            "Synthesized %d nodes and %d ways (%d lines skipped, %d dropped)",
            stats.nodes,
            stats.ways,
            stats.skipped_lines,
            stats.dropped_lines,
        )
        return stats
