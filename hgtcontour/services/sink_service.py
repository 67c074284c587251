"""Entity sinks: the receiving end of a conversion run."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, TextIO, Union
from xml.sax.saxutils import XMLGenerator

from .. import __version__
from ..models.entities import Bound, EntityType, MapNode, MapWay, Record

logger = logging.getLogger(__name__)


class EntitySink(Protocol):
    """Anything that accepts a stream of records.

    `close()` must release resources whether or not `complete()` was reached.
    """

    def process(self, record: Record) -> None: ...

    def complete(self) -> None: ...

    def close(self) -> None: ...


def record_sort_key(record: Record) -> tuple[int, int]:
    """Sort by record type (bound, node, way), then by id."""
    return (int(record.entity_type), getattr(record, "id", 0))


class CollectingSink:
    """Keeps every record in memory, in arrival order."""

    def __init__(self):
        self.records: list[Record] = []
        self.completed = False
        self.closed = False

    def process(self, record: Record) -> None:
        self.records.append(record)

    def complete(self) -> None:
        self.completed = True

    def close(self) -> None:
        self.closed = True

    @property
    def bounds(self) -> list[Bound]:
        return [r for r in self.records if r.entity_type == EntityType.BOUND]

    @property
    def nodes(self) -> list[MapNode]:
        return [r for r in self.records if r.entity_type == EntityType.NODE]

    @property
    def ways(self) -> list[MapWay]:
        return [r for r in self.records if r.entity_type == EntityType.WAY]


class EntitySorter:
    """Buffers records and forwards them in type-then-id order on completion."""

    def __init__(self, sink: EntitySink):
        """
        Args:
            sink: Downstream sink receiving the ordered records
        """
        self.sink = sink
        self._buffer: list[Record] = []

    def process(self, record: Record) -> None:
        self._buffer.append(record)

    def complete(self) -> None:
        logger.info("Write to output stream ... BEGIN")
        self._buffer.sort(key=record_sort_key)
        for record in self._buffer:
            self.sink.process(record)
        self._buffer.clear()
        self.sink.complete()
        logger.info("Write to output stream ... END")

    def close(self) -> None:
        self._buffer.clear()
        self.sink.close()


def _format_timestamp(timestamp: datetime) -> str:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _format_coordinate(value: float) -> str:
    return f"{value:.7f}"


class OsmXmlWriter:
    """Writes records as an OSM XML 0.6 document.

    When given a path, output goes to a temporary ``.part`` file that is moved
    into place on `complete()`; closing an incomplete writer removes it.
    """

    def __init__(self, target: Union[str, Path, TextIO]):
        """
        Args:
            target: Output file path, or an open text stream (left open on close)
        """
        self.path: Optional[Path] = None
        self._part_path: Optional[Path] = None
        if isinstance(target, (str, Path)):
            self.path = Path(target)
            self._part_path = self.path.with_name(self.path.name + ".part")
            self._stream: TextIO = open(self._part_path, "w", encoding="utf-8")
        else:
            self._stream = target

        self._xml = XMLGenerator(self._stream, encoding="utf-8", short_empty_elements=True)
        self._started = False
        self._completed = False

    def _start(self) -> None:
        if self._started:
            return
        self._xml.startDocument()
        self._xml.startElement("osm", {"version": "0.6", "generator": f"hgtcontour {__version__}"})
        self._newline()
        self._started = True

    def _newline(self) -> None:
        self._xml.ignorableWhitespace("\n")

    def _common_attrs(self, record: Union[MapNode, MapWay]) -> dict[str, str]:
        return {
            "id": str(record.id),
            "version": str(record.version),
            "timestamp": _format_timestamp(record.timestamp),
            "uid": str(record.user.uid),
            "user": record.user.name,
            "changeset": str(record.changeset),
        }

    def process(self, record: Record) -> None:
        self._start()
        if record.entity_type == EntityType.BOUND:
            self._write_bound(record)
        elif record.entity_type == EntityType.NODE:
            self._write_node(record)
        else:
            self._write_way(record)

    def _write_bound(self, bound: Bound) -> None:
        bbox = bound.bbox
        self._xml.ignorableWhitespace("  ")
        self._xml.startElement(
            "bounds",
            {
                "minlon": _format_coordinate(bbox.west),
                "minlat": _format_coordinate(bbox.south),
                "maxlon": _format_coordinate(bbox.east),
                "maxlat": _format_coordinate(bbox.north),
                "origin": bound.origin,
            },
        )
        self._xml.endElement("bounds")
        self._newline()

    def _write_node(self, node: MapNode) -> None:
        attrs = self._common_attrs(node)
        attrs["lat"] = _format_coordinate(node.latitude)
        attrs["lon"] = _format_coordinate(node.longitude)
        self._xml.ignorableWhitespace("  ")
        self._xml.startElement("node", attrs)
        self._xml.endElement("node")
        self._newline()

    def _write_way(self, way: MapWay) -> None:
        self._xml.ignorableWhitespace("  ")
        self._xml.startElement("way", self._common_attrs(way))
        self._newline()
        for node_id in way.node_ids:
            self._xml.ignorableWhitespace("    ")
            self._xml.startElement("nd", {"ref": str(node_id)})
            self._xml.endElement("nd")
            self._newline()
        for tag in way.tags:
            self._xml.ignorableWhitespace("    ")
            self._xml.startElement("tag", {"k": tag.key, "v": tag.value})
            self._xml.endElement("tag")
            self._newline()
        self._xml.ignorableWhitespace("  ")
        self._xml.endElement("way")
        self._newline()

    def complete(self) -> None:
        self._start()
        self._xml.endElement("osm")
        self._newline()
        self._xml.endDocument()
        self._stream.flush()
        self._completed = True

    def close(self) -> None:
        if self._part_path is None:
            return
        if not self._stream.closed:
            self._stream.close()
        if self._completed:
            os.replace(self._part_path, self.path)
        elif self._part_path.exists():
            logger.warning("Discarding incomplete output %s", self._part_path)
            self._part_path.unlink()
        self._part_path = None
