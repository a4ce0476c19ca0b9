"""Tests for undoable road edits."""

import pytest

from city_layout_generator.history import (
    AddEdge,
    AddNode,
    AddNodeAndEdge,
    EditHistory,
    RoadDrawSession,
)
from city_layout_generator.roads import RoadEdge, RoadGraph, RoadNodeType, RoadType


def straight(a, b):
    return RoadEdge.new([a, b], RoadType.MINOR)


class TestEditHistory:
    """Tests for apply/undo/redo."""

    def test_add_node_undo_redo(self):
        graph = RoadGraph()
        history = EditHistory(graph)

        action = history.apply(AddNode((1.0, 2.0), RoadNodeType.ENDPOINT))
        assert graph.node_count() == 1
        assert graph.node_by_index(action.node).position == (1.0, 2.0)

        assert history.undo()
        assert graph.node_count() == 0
        assert history.can_redo()

        assert history.redo()
        assert graph.node_count() == 1
        assert graph.node_by_index(action.node).position == (1.0, 2.0)

    def test_undo_and_redo_on_empty_history(self):
        history = EditHistory(RoadGraph())

        assert not history.can_undo()
        assert not history.undo()
        assert not history.redo()

    def test_add_node_and_edge_is_one_step(self):
        graph = RoadGraph()
        anchor = graph.add_node((0.0, 0.0), RoadNodeType.ENDPOINT)
        history = EditHistory(graph)

        action = history.apply(AddNodeAndEdge(
            (10.0, 0.0), RoadNodeType.ENDPOINT, anchor, straight((0.0, 0.0), (10.0, 0.0))
        ))
        assert graph.node_count() == 2
        assert graph.edge_endpoints(action.edge_index) == (anchor, action.node)

        history.undo()
        assert graph.node_count() == 1
        assert graph.edge_count() == 0
        assert graph.node_by_index(anchor) is not None

    def test_add_node_and_edge_to_missing_node(self):
        history = EditHistory(RoadGraph())

        with pytest.raises(KeyError):
            history.apply(AddNodeAndEdge((1.0, 1.0), RoadNodeType.ENDPOINT, 5, straight((0.0, 0.0), (1.0, 1.0))))
        assert not history.can_undo()

    def test_apply_clears_redo(self):
        history = EditHistory(RoadGraph())
        history.apply(AddNode((0.0, 0.0), RoadNodeType.ENDPOINT))
        history.undo()
        assert history.can_redo()

        history.apply(AddNode((5.0, 5.0), RoadNodeType.ENDPOINT))

        assert not history.can_redo()

    def test_redo_remaps_dependent_edges(self):
        graph = RoadGraph()
        anchor = graph.add_node((0.0, 0.0), RoadNodeType.ENDPOINT)
        history = EditHistory(graph)

        node = history.apply(AddNode((10.0, 0.0), RoadNodeType.ENDPOINT)).node
        history.apply(AddEdge(anchor, node, straight((0.0, 0.0), (10.0, 0.0))))
        history.undo()
        history.undo()
        assert graph.node_count() == 1

        history.redo()
        history.redo()

        assert graph.node_count() == 2
        assert graph.edge_count() == 1
        (_, a, b, _), = graph.edge_items()
        assert {a, b} == set(graph.node_indices())

    def test_undo_never_leaves_dangling_edges(self):
        graph = RoadGraph()
        history = EditHistory(graph)
        first = history.apply(AddNode((0.0, 0.0), RoadNodeType.ENDPOINT)).node
        second = history.apply(AddNodeAndEdge(
            (10.0, 0.0), RoadNodeType.ENDPOINT, first, straight((0.0, 0.0), (10.0, 0.0))
        )).node
        history.apply(AddNodeAndEdge(
            (10.0, 10.0), RoadNodeType.ENDPOINT, second, straight((10.0, 0.0), (10.0, 10.0))
        ))

        while history.undo():
            live = set(graph.node_indices())
            for _, a, b, _ in graph.edge_items():
                assert a in live and b in live

        assert graph.node_count() == 0

    def test_clear(self):
        history = EditHistory(RoadGraph())
        history.apply(AddNode((0.0, 0.0), RoadNodeType.ENDPOINT))
        history.clear()

        assert not history.can_undo()
        assert not history.can_redo()


class TestRoadDrawSession:
    """Tests for click-to-place drawing."""

    def test_closing_a_loop(self):
        graph = RoadGraph()
        session = RoadDrawSession(EditHistory(graph), snap_distance=5.0)

        start = session.place((0.0, 0.0))
        session.place((10.0, 0.0))
        session.place((10.0, 10.0))
        closing = session.place((0.0, 1.0))

        assert closing == start
        assert graph.node_count() == 3
        assert graph.edge_count() == 3
        assert graph.node_degree(start) == 2

    def test_undo_everything(self):
        graph = RoadGraph()
        history = EditHistory(graph)
        session = RoadDrawSession(history)
        for point in [(0.0, 0.0), (20.0, 0.0), (20.0, 20.0)]:
            session.place(point)

        while history.undo():
            pass

        assert graph.node_count() == 0
        assert graph.edge_count() == 0

    def test_finish_starts_new_polyline(self):
        graph = RoadGraph()
        session = RoadDrawSession(EditHistory(graph))
        session.place((0.0, 0.0))
        session.place((20.0, 0.0))
        session.finish()
        session.place((0.0, 50.0))

        assert graph.edge_count() == 1
        assert graph.node_count() == 3

    def test_draw_after_undo(self):
        graph = RoadGraph()
        history = EditHistory(graph)
        session = RoadDrawSession(history)
        session.place((0.0, 0.0))
        session.place((10.0, 0.0))
        history.undo()

        node = session.place((20.0, 0.0))

        assert graph.node_by_index(node) is not None
        assert graph.node_count() == 2
        assert graph.edge_count() == 0

        session.place((30.0, 0.0))
        assert graph.edge_count() == 1

    def test_draw_after_redo_remap(self):
        graph = RoadGraph()
        history = EditHistory(graph)
        session = RoadDrawSession(history)
        session.place((0.0, 0.0))
        history.undo()
        history.redo()

        node = session.place((20.0, 0.0))

        assert graph.node_by_index(node) is not None
        assert graph.node_count() == 2
        assert graph.edge_count() == 0
