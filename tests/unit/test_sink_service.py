"""Tests for entity sinks."""

import io
import xml.etree.ElementTree as ET

import pytest

from hgtcontour.models.entities import Bound, MapNode, MapWay, Tag
from hgtcontour.models.tile import BoundingBox
from hgtcontour.services.sink_service import (
    CollectingSink,
    EntitySorter,
    OsmXmlWriter,
    record_sort_key,
)


@pytest.fixture
def bound():
    return Bound(
        bbox=BoundingBox(north=29.0004, south=27.9996, east=87.0004, west=85.9996),
        origin="https://www.benpl.net/thegoat/about.html",
    )


@pytest.fixture
def node_factory(fixed_timestamp):
    def _node(node_id, lat=28.5, lon=86.5):
        return MapNode(id=node_id, latitude=lat, longitude=lon, timestamp=fixed_timestamp)

    return _node


@pytest.fixture
def way_factory(fixed_timestamp):
    def _way(way_id, node_ids=(1, 2)):
        return MapWay(
            id=way_id,
            node_ids=tuple(node_ids),
            timestamp=fixed_timestamp,
            tags=(Tag("ele", "100"), Tag("contour", "elevation")),
        )

    return _way


class TestRecordSortKey:
    def test_type_then_id(self, bound, node_factory, way_factory):
        records = [way_factory(5), node_factory(9), way_factory(1), bound, node_factory(3)]
        ordered = sorted(records, key=record_sort_key)
        assert ordered[0] is bound
        assert [r.id for r in ordered[1:]] == [3, 9, 1, 5]


class TestEntitySorter:
    def test_forwards_in_order_on_complete(self, bound, node_factory, way_factory):
        downstream = CollectingSink()
        sorter = EntitySorter(downstream)

        sorter.process(bound)
        sorter.process(node_factory(11))
        sorter.process(way_factory(2))
        sorter.process(node_factory(10))
        sorter.process(way_factory(1))
        assert downstream.records == []

        sorter.complete()

        assert downstream.records[0] is bound
        assert [n.id for n in downstream.nodes] == [10, 11]
        assert [w.id for w in downstream.ways] == [1, 2]
        assert downstream.records[1:3] == downstream.nodes
        assert downstream.completed

    def test_close_releases_downstream(self, node_factory):
        downstream = CollectingSink()
        sorter = EntitySorter(downstream)
        sorter.process(node_factory(1))

        sorter.close()

        assert downstream.closed
        assert not downstream.completed
        assert downstream.records == []


class TestOsmXmlWriter:
    def _document(self, bound, node_factory, way_factory):
        stream = io.StringIO()
        writer = OsmXmlWriter(stream)
        writer.process(bound)
        writer.process(node_factory(1, lat=28.1234567, lon=86.7654321))
        writer.process(node_factory(2))
        writer.process(way_factory(7, node_ids=(1, 2, 1)))
        writer.complete()
        writer.close()
        return ET.fromstring(stream.getvalue().encode("utf-8"))

    def test_root(self, bound, node_factory, way_factory):
        root = self._document(bound, node_factory, way_factory)
        assert root.tag == "osm"
        assert root.get("version") == "0.6"
        assert root.get("generator").startswith("hgtcontour")

    def test_bounds(self, bound, node_factory, way_factory):
        bounds = self._document(bound, node_factory, way_factory).find("bounds")
        assert float(bounds.get("minlat")) == pytest.approx(27.9996)
        assert float(bounds.get("maxlat")) == pytest.approx(29.0004)
        assert float(bounds.get("minlon")) == pytest.approx(85.9996)
        assert float(bounds.get("maxlon")) == pytest.approx(87.0004)
        assert bounds.get("origin") == "https://www.benpl.net/thegoat/about.html"

    def test_nodes(self, bound, node_factory, way_factory):
        nodes = self._document(bound, node_factory, way_factory).findall("node")
        assert [n.get("id") for n in nodes] == ["1", "2"]
        first = nodes[0]
        assert first.get("lat") == "28.1234567"
        assert first.get("lon") == "86.7654321"
        assert first.get("version") == "1"
        assert first.get("timestamp") == "2024-01-01T12:00:00Z"
        assert first.get("uid") == "888888"
        assert first.get("user") == "dummyUser"

    def test_way(self, bound, node_factory, way_factory):
        way = self._document(bound, node_factory, way_factory).find("way")
        assert way.get("id") == "7"
        assert [nd.get("ref") for nd in way.findall("nd")] == ["1", "2", "1"]
        assert {t.get("k"): t.get("v") for t in way.findall("tag")} == {
            "ele": "100",
            "contour": "elevation",
        }

    def test_empty_document(self):
        stream = io.StringIO()
        writer = OsmXmlWriter(stream)
        writer.complete()
        root = ET.fromstring(stream.getvalue().encode("utf-8"))
        assert root.tag == "osm"
        assert len(root) == 0

    def test_file_written_on_complete(self, tmp_path, bound):
        path = tmp_path / "out.osm"
        writer = OsmXmlWriter(path)
        writer.process(bound)
        writer.complete()
        writer.close()

        assert path.exists()
        assert not (tmp_path / "out.osm.part").exists()
        assert ET.parse(path).getroot().find("bounds") is not None

    def test_incomplete_file_discarded(self, tmp_path, bound):
        path = tmp_path / "out.osm"
        writer = OsmXmlWriter(path)
        writer.process(bound)
        writer.close()

        assert not path.exists()
        assert not (tmp_path / "out.osm.part").exists()

    def test_close_twice(self, tmp_path, bound):
        path = tmp_path / "out.osm"
        writer = OsmXmlWriter(path)
        writer.complete()
        writer.close()
        writer.close()
        assert path.exists()
