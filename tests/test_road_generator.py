"""Tests for tensor-field road generation."""

import pytest

from city_layout_generator.config import RoadGenConfig, StreamlineConfig
from city_layout_generator.road_generator import (
    add_streamline_to_graph,
    annotate_water_crossings,
    build_tensor_field,
    generate_road_network,
)
from city_layout_generator.river import River
from city_layout_generator.roads import RoadGraph, RoadNodeType, RoadType
from city_layout_generator.streamline import Streamline, StreamlinePoint


def horizontal_streamline(x_end, y=0.0, step=2.0):
    count = int(x_end / step) + 1
    return Streamline(tuple(
        StreamlinePoint((i * step, y), (1.0, 0.0)) for i in range(count)
    ))


def vertical_streamline(y_end, x=5.0, step=2.0):
    count = int(y_end / step) + 1
    return Streamline(tuple(
        StreamlinePoint((x, i * step), (0.0, 1.0)) for i in range(count)
    ))


class TestBuildTensorField:
    """Tests for field composition."""

    def test_without_river(self):
        assert len(build_tensor_field(RoadGenConfig())) == 2

    def test_with_river(self, straight_river):
        assert len(build_tensor_field(RoadGenConfig(), straight_river())) == 3

    def test_river_field_disabled(self, straight_river):
        config = RoadGenConfig(river_field_decay=0.0)

        assert len(build_tensor_field(config, straight_river())) == 2

    def test_empty_river_ignored(self):
        assert len(build_tensor_field(RoadGenConfig(), River())) == 2


class TestAddStreamlineToGraph:
    """Tests for streamline-to-graph conversion."""

    def test_long_segments_are_split(self):
        graph = RoadGraph()
        added = add_streamline_to_graph(horizontal_streamline(60.0), graph, RoadGenConfig(), RoadType.MAJOR)

        assert added == 2
        assert graph.node_count() == 3
        positions = sorted(node.position[0] for _, node in graph.nodes())
        assert positions == pytest.approx([0.0, 46.0, 60.0])
        assert sum(edge.length for edge in graph.edges()) == pytest.approx(60.0)

    def test_node_types(self):
        graph = RoadGraph()
        add_streamline_to_graph(horizontal_streamline(60.0), graph, RoadGenConfig(), RoadType.MAJOR)

        types = {node.position[0]: node.node_type for _, node in graph.nodes()}
        assert types[0.0] == RoadNodeType.ENDPOINT
        assert types[46.0] == RoadNodeType.INTERSECTION
        assert types[60.0] == RoadNodeType.ENDPOINT

    def test_segment_closes_at_existing_node(self):
        graph = RoadGraph()
        crossing = graph.add_node((30.0, 0.0), RoadNodeType.INTERSECTION)

        added = add_streamline_to_graph(horizontal_streamline(60.0), graph, RoadGenConfig(), RoadType.MINOR)

        assert added == 2
        assert graph.node_count() == 3
        assert graph.node_degree(crossing) == 2
        assert all(edge.road_type == RoadType.MINOR for edge in graph.edges())

    def test_short_streamline_is_ignored(self):
        graph = RoadGraph()
        streamline = Streamline((StreamlinePoint((0.0, 0.0), (1.0, 0.0)),))

        assert add_streamline_to_graph(streamline, graph, RoadGenConfig(), RoadType.MINOR) == 0
        assert graph.node_count() == 0

    def test_bridge_edges(self, straight_river):
        river = straight_river(y=20.0, width=10.0)
        graph = RoadGraph()

        add_streamline_to_graph(vertical_streamline(60.0), graph, RoadGenConfig(), RoadType.MAJOR, river)

        bridges = [edge for edge in graph.edges() if edge.crosses_water]
        assert len(bridges) == 1
        assert bridges[0].water_entry == pytest.approx((5.0, 15.0))
        assert bridges[0].water_exit == pytest.approx((5.0, 25.0))


class TestAnnotateWaterCrossings:
    """Tests for post-hoc bridge detection."""

    def test_marks_and_clears(self, straight_river):
        graph = RoadGraph()
        a = graph.add_node((5.0, -20.0), RoadNodeType.ENDPOINT)
        b = graph.add_node((5.0, 20.0), RoadNodeType.ENDPOINT)
        c = graph.add_node((40.0, 20.0), RoadNodeType.ENDPOINT)
        graph.add_edge(a, b, [(5.0, -20.0), (5.0, 20.0)], RoadType.MAJOR)
        graph.add_edge(b, c, [(5.0, 20.0), (40.0, 20.0)], RoadType.MINOR)

        assert annotate_water_crossings(graph, straight_river()) == 1
        assert graph.edge_by_index(0).crosses_water
        assert not graph.edge_by_index(1).crosses_water

        assert annotate_water_crossings(graph, River()) == 0
        assert not graph.edge_by_index(0).crosses_water


class TestGenerateRoadNetwork:
    """Tests for full streamline placement."""

    @pytest.fixture
    def config(self):
        return RoadGenConfig(city_size=100.0, streamline=StreamlineConfig(max_steps=40))

    def test_produces_consistent_graph(self, config):
        graph, streamlines = generate_road_network(build_tensor_field(config), config)

        assert graph.node_count() > 0
        assert graph.edge_count() > 0
        live = set(graph.node_indices())
        for _, a, b, _ in graph.edge_items():
            assert a in live and b in live

    def test_streamlines(self, config):
        _, streamlines = generate_road_network(build_tensor_field(config), config)

        assert streamlines
        assert all(len(s) >= 3 for s in streamlines)
        assert streamlines[0].is_major

    def test_road_types(self, config):
        graph, _ = generate_road_network(build_tensor_field(config), config)

        assert {edge.road_type for edge in graph.edges()} <= {RoadType.MAJOR, RoadType.MINOR}

    def test_deterministic(self, config):
        field = build_tensor_field(config)
        graph_a, _ = generate_road_network(field, config)
        graph_b, _ = generate_road_network(field, config)

        assert [n.position for _, n in graph_a.nodes()] == [n.position for _, n in graph_b.nodes()]
        assert graph_a.edge_count() == graph_b.edge_count()
