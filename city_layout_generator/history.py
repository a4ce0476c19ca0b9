"""
Reversible road edits (undo/redo) for interactive road drawing.

Every action is a small tagged value replayed or reverted against a
:class:`~.roads.RoadGraph`. Each mutation completes before control returns,
so readers never observe an edge pointing at a removed node.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from .roads import RoadEdge, RoadGraph, RoadNodeType, RoadType
from .utils import Vec2


@dataclass
class AddNode:
    position: Vec2
    node_type: RoadNodeType
    # Filled in when applied
    node: Optional[int] = None


@dataclass
class AddEdge:
    a: int
    b: int
    edge: RoadEdge
    edge_index: Optional[int] = None


@dataclass
class AddNodeAndEdge:
    """Create a node and connect it to ``connect_to`` in one step."""

    position: Vec2
    node_type: RoadNodeType
    connect_to: int
    edge: RoadEdge
    node: Optional[int] = None
    edge_index: Optional[int] = None


RoadAction = Union[AddNode, AddEdge, AddNodeAndEdge]


def _apply(graph: RoadGraph, action: RoadAction) -> None:
    if isinstance(action, AddNode):
        action.node = graph.restore_node(action.position, action.node_type)
    elif isinstance(action, AddEdge):
        action.edge_index = graph.add_edge_data(action.a, action.b, action.edge)
    elif isinstance(action, AddNodeAndEdge):
        if graph.node_by_index(action.connect_to) is None:
            raise KeyError(f"Node {action.connect_to} does not exist")
        action.node = graph.restore_node(action.position, action.node_type)
        action.edge_index = graph.add_edge_data(action.connect_to, action.node, action.edge)
    else:
        raise TypeError(f"Unknown road action: {type(action).__name__}")


def _revert(graph: RoadGraph, action: RoadAction) -> None:
    if isinstance(action, AddNode):
        graph.remove_node(action.node)
    elif isinstance(action, AddEdge):
        graph.remove_edge(action.edge_index)
    elif isinstance(action, AddNodeAndEdge):
        graph.remove_edge(action.edge_index)
        graph.remove_node(action.node)
    else:
        raise TypeError(f"Unknown road action: {type(action).__name__}")


class EditHistory:
    """Undo/redo stacks of road actions applied to one graph."""

    def __init__(self, graph: RoadGraph):
        self.graph = graph
        self.undo_stack: List[RoadAction] = []
        self.redo_stack: List[RoadAction] = []

    def apply(self, action: RoadAction) -> RoadAction:
        """
        Apply an action and record it; clears the redo stack.

        Args:
            action: Action to perform

        Returns:
            The same action, with created indices filled in
        """
        _apply(self.graph, action)
        self.undo_stack.append(action)
        self.redo_stack.clear()
        return action

    def undo(self) -> bool:
        """Revert the most recent action; False when there is nothing to undo."""
        if not self.undo_stack:
            return False
        action = self.undo_stack.pop()
        _revert(self.graph, action)
        self.redo_stack.append(action)
        return True

    def redo(self) -> bool:
        """
        Re-apply the most recently undone action.

        Node indices are never reused, so a redone node gets a new index.
        Subsequent recorded actions that referenced the old index are
        remapped.
        """
        if not self.redo_stack:
            return False
        action = self.redo_stack.pop()
        old_node = getattr(action, "node", None)
        _apply(self.graph, action)
        new_node = getattr(action, "node", None)
        if old_node is not None and new_node != old_node:
            self._remap_node(old_node, new_node)
        self.undo_stack.append(action)
        return True

    def _remap_node(self, old: int, new: int) -> None:
        for pending in self.redo_stack:
            if isinstance(pending, AddEdge):
                if pending.a == old:
                    pending.a = new
                if pending.b == old:
                    pending.b = new
            elif isinstance(pending, AddNodeAndEdge) and pending.connect_to == old:
                pending.connect_to = new

    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()


@dataclass
class RoadDrawSession:
    """
    Click-to-place road drawing on top of an :class:`EditHistory`.

    Each placed point snaps to a nearby node or creates one, and is connected
    to the previously placed node with a straight edge.
    """

    history: EditHistory
    snap_distance: float = 5.0
    road_type: RoadType = RoadType.MINOR
    last_node: Optional[int] = None

    def place(self, position: Vec2) -> int:
        """
        Place a point; returns the node it resolved to.

        Args:
            position: Clicked position (x, y)
        """
        graph = self.history.graph
        # The previous point may have been undone or remapped by redo
        if self.last_node is not None and graph.node_by_index(self.last_node) is None:
            self.last_node = None

        existing = graph.find_nearest(position, self.snap_distance)
        if existing is not None:
            node = existing
            if self.last_node is not None and node != self.last_node:
                edge = self._straight_edge(self.last_node, node)
                self.history.apply(AddEdge(self.last_node, node, edge))
        elif self.last_node is None:
            node = self.history.apply(AddNode(position, RoadNodeType.ENDPOINT)).node
        else:
            prev = graph.node_by_index(self.last_node).position
            action = self.history.apply(AddNodeAndEdge(
                position,
                RoadNodeType.INTERSECTION,
                self.last_node,
                RoadEdge.new([prev, position], self.road_type),
            ))
            node = action.node

        self.last_node = node
        return node

    def _straight_edge(self, a: int, b: int) -> RoadEdge:
        graph = self.history.graph
        return RoadEdge.new(
            [graph.node_by_index(a).position, graph.node_by_index(b).position],
            self.road_type,
        )

    def finish(self) -> None:
        """End the current polyline; the next placement starts a new one."""
        self.last_node = None
