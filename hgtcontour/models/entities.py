"""OSM entity records emitted for traced contour lines."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Union

from .tile import BoundingBox


class EntityType(IntEnum):
    """Record kind. The integer value is the output order (bound, nodes, ways)."""

    BOUND = 0
    NODE = 1
    WAY = 2


@dataclass(frozen=True)
class OsmUser:
    """Author attribution attached to every entity."""

    uid: int
    name: str


# Synthetic author used for generated data
DUMMY_USER = OsmUser(uid=888888, name="dummyUser")


@dataclass(frozen=True)
class Tag:
    """A single key/value tag."""

    key: str
    value: str


@dataclass(frozen=True)
class Bound:
    """Bounding box record sent ahead of any entity."""

    bbox: BoundingBox
    origin: str

    entity_type = EntityType.BOUND


@dataclass(frozen=True)
class MapNode:
    """A point entity."""

    id: int
    latitude: float
    longitude: float
    timestamp: datetime
    user: OsmUser = DUMMY_USER
    version: int = 1
    changeset: int = 0

    entity_type = EntityType.NODE


@dataclass(frozen=True)
class MapWay:
    """A line entity referencing its member nodes by id."""

    id: int
    node_ids: tuple[int, ...]
    timestamp: datetime
    tags: tuple[Tag, ...] = field(default_factory=tuple)
    user: OsmUser = DUMMY_USER
    version: int = 1
    changeset: int = 0

    entity_type = EntityType.WAY

    @property
    def is_closed(self) -> bool:
        """True when the way ends on its first node."""
        return len(self.node_ids) > 2 and self.node_ids[0] == self.node_ids[-1]

    def tag_dict(self) -> dict[str, str]:
        return {tag.key: tag.value for tag in self.tags}


Entity = Union[MapNode, MapWay]
Record = Union[Bound, MapNode, MapWay]
