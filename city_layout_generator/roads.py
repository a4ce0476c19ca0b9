"""
Road graph built from traced streamlines.

Nodes and edges carry stable integer indices that are never reused, so a
removed element can never alias a newer one.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from .utils import Vec2, polyline_length, snap_to_node


class RoadNodeType(Enum):
    """Role of a node in the road network."""

    INTERSECTION = "intersection"
    ENDPOINT = "endpoint"
    DEAD_END = "dead_end"


class RoadType(Enum):
    """Road classification."""

    HIGHWAY = "highway"
    MAJOR = "major"
    MINOR = "minor"
    ALLEY = "alley"

    @property
    def width(self) -> float:
        """Nominal carriageway width in world units."""
        return _ROAD_WIDTHS[self]


_ROAD_WIDTHS = {
    RoadType.HIGHWAY: 12.0,
    RoadType.MAJOR: 8.0,
    RoadType.MINOR: 5.0,
    RoadType.ALLEY: 3.0,
}


@dataclass
class RoadNode:
    """A node in the road network (intersection or endpoint)."""

    position: Vec2
    node_type: RoadNodeType = RoadNodeType.ENDPOINT


@dataclass(frozen=True)
class RoadEdge:
    """A road segment between two nodes, with its centerline polyline."""

    points: Tuple[Vec2, ...]
    road_type: RoadType
    length: float = 0.0
    crosses_water: bool = False
    water_entry: Optional[Vec2] = None
    water_exit: Optional[Vec2] = None

    @classmethod
    def new(cls, points: Sequence[Vec2], road_type: RoadType) -> "RoadEdge":
        pts = tuple((float(p[0]), float(p[1])) for p in points)
        return cls(pts, road_type, polyline_length(pts))

    @classmethod
    def new_bridge(
        cls,
        points: Sequence[Vec2],
        road_type: RoadType,
        water_entry: Vec2,
        water_exit: Vec2,
    ) -> "RoadEdge":
        """Create a road edge that crosses water."""
        edge = cls.new(points, road_type)
        return replace(
            edge,
            crosses_water=True,
            water_entry=water_entry,
            water_exit=water_exit,
        )

    def without_water(self) -> "RoadEdge":
        return replace(self, crosses_water=False, water_entry=None, water_exit=None)


class RoadGraph:
    """The road network graph."""

    def __init__(self):
        """Initialize an empty graph."""
        self.graph = nx.MultiGraph()
        self._endpoints: Dict[int, Tuple[int, int]] = {}
        self._next_node = 0
        self._next_edge = 0

        # Nearest-node cache, rebuilt lazily after node changes
        self._cache_ids: Optional[List[int]] = None
        self._cache_pos: Optional[np.ndarray] = None

    def __repr__(self) -> str:
        return f"RoadGraph(nodes={self.node_count()}, edges={self.edge_count()})"

    def _invalidate(self) -> None:
        self._cache_ids = None
        self._cache_pos = None

    def _ensure_cache(self) -> None:
        if self._cache_ids is None:
            self._cache_ids = list(self.graph.nodes())
            self._cache_pos = np.array(
                [self.graph.nodes[n]["node"].position for n in self._cache_ids],
                dtype=float,
            ).reshape(-1, 2)

    # -- mutation ---------------------------------------------------------

    def add_node(self, position: Vec2, node_type: RoadNodeType) -> int:
        """
        Add a node to the graph.

        Args:
            position: Node position (x, y)
            node_type: Node role

        Returns:
            New node index
        """
        idx = self._next_node
        self._next_node += 1
        pos = (float(position[0]), float(position[1]))
        self.graph.add_node(idx, node=RoadNode(pos, node_type))
        self._invalidate()
        return idx

    def restore_node(self, position: Vec2, node_type: RoadNodeType) -> int:
        """Re-add a previously removed node (undo/redo); the index is new."""
        return self.add_node(position, node_type)

    def add_edge_data(self, a: int, b: int, edge: RoadEdge) -> int:
        """
        Add an edge with full RoadEdge data (undo/redo).

        Raises:
            KeyError: If either node does not exist
        """
        for n in (a, b):
            if n not in self.graph:
                raise KeyError(f"Node {n} does not exist")

        idx = self._next_edge
        self._next_edge += 1
        self.graph.add_edge(a, b, key=idx, edge=edge)
        self._endpoints[idx] = (a, b)
        return idx

    def add_edge(
        self,
        a: int,
        b: int,
        points: Sequence[Vec2],
        road_type: RoadType,
    ) -> int:
        """Add an edge between two nodes."""
        return self.add_edge_data(a, b, RoadEdge.new(points, road_type))

    def add_bridge_edge(
        self,
        a: int,
        b: int,
        points: Sequence[Vec2],
        road_type: RoadType,
        water_entry: Vec2,
        water_exit: Vec2,
    ) -> int:
        """Add a bridge edge between two nodes (crosses water)."""
        return self.add_edge_data(
            a, b, RoadEdge.new_bridge(points, road_type, water_entry, water_exit)
        )

    def replace_edge_data(self, idx: int, edge: RoadEdge) -> None:
        """Swap the payload of an existing edge, keeping its index."""
        a, b = self._endpoints[idx]
        self.graph.edges[a, b, idx]["edge"] = edge

    def snap_or_create(
        self,
        position: Vec2,
        snap_distance: float,
        node_type: RoadNodeType,
    ) -> int:
        """
        Snap a position to an existing node, or create a new one.

        A reused endpoint is upgraded to an intersection.

        Args:
            position: Query point (x, y)
            snap_distance: Maximum snap distance
            node_type: Type for a newly created node

        Returns:
            Node index
        """
        existing = self.find_nearest(position, snap_distance)
        if existing is None:
            return self.add_node(position, node_type)

        node = self.graph.nodes[existing]["node"]
        if node.node_type == RoadNodeType.ENDPOINT:
            node.node_type = RoadNodeType.INTERSECTION
        return existing

    def remove_edge(self, idx: int) -> Optional[RoadEdge]:
        """Remove an edge by index; returns its data if it existed."""
        endpoints = self._endpoints.pop(idx, None)
        if endpoints is None:
            return None
        a, b = endpoints
        edge = self.graph.edges[a, b, idx]["edge"]
        self.graph.remove_edge(a, b, key=idx)
        return edge

    def remove_node(self, idx: int) -> Optional[RoadNode]:
        """
        Remove a node by index, together with all incident edges.

        Returns:
            Node data if it existed
        """
        if idx not in self.graph:
            return None

        for edge_idx in list(self.edges_of_node(idx)):
            self.remove_edge(edge_idx)

        node = self.graph.nodes[idx]["node"]
        self.graph.remove_node(idx)
        self._invalidate()
        return node

    def clear(self) -> None:
        self.graph.clear()
        self._endpoints.clear()
        self._invalidate()

    # -- queries ----------------------------------------------------------

    def find_nearest(self, position: Vec2, max_distance: float) -> Optional[int]:
        """Nearest node within ``max_distance`` (inclusive), or None."""
        self._ensure_cache()
        row = snap_to_node(position, self._cache_pos, max_distance)
        if row is None:
            return None
        return self._cache_ids[row]

    def find_edge(self, a: int, b: int) -> Optional[int]:
        """Index of an edge between two nodes (lowest index if several)."""
        if a not in self.graph or b not in self.graph:
            return None
        keys = self.graph.get_edge_data(a, b)
        if not keys:
            return None
        return min(keys)

    def node_by_index(self, idx: int) -> Optional[RoadNode]:
        if idx not in self.graph:
            return None
        return self.graph.nodes[idx]["node"]

    def edge_by_index(self, idx: int) -> Optional[RoadEdge]:
        endpoints = self._endpoints.get(idx)
        if endpoints is None:
            return None
        a, b = endpoints
        return self.graph.edges[a, b, idx]["edge"]

    def edge_endpoints(self, idx: int) -> Optional[Tuple[int, int]]:
        return self._endpoints.get(idx)

    def neighbors(self, idx: int) -> Iterator[int]:
        return iter(self.graph.neighbors(idx))

    def edges_of_node(self, idx: int) -> Iterator[int]:
        return (key for _, _, key in self.graph.edges(idx, keys=True))

    def node_has_edges(self, idx: int) -> bool:
        return self.node_degree(idx) > 0

    def node_degree(self, idx: int) -> int:
        return self.graph.degree(idx)

    def nodes(self) -> Iterator[Tuple[int, RoadNode]]:
        """All nodes as (index, node) pairs, in insertion order."""
        return ((n, data["node"]) for n, data in self.graph.nodes(data=True))

    def edges(self) -> Iterator[RoadEdge]:
        """All edge payloads, in insertion order."""
        return (self.edge_by_index(idx) for idx in self._endpoints)

    def edge_items(self) -> Iterator[Tuple[int, int, int, RoadEdge]]:
        """All edges as (index, node_a, node_b, edge) tuples."""
        for idx, (a, b) in self._endpoints.items():
            yield idx, a, b, self.graph.edges[a, b, idx]["edge"]

    def node_indices(self) -> List[int]:
        return list(self.graph.nodes())

    def edge_indices(self) -> List[int]:
        return list(self._endpoints)

    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    def edge_count(self) -> int:
        return len(self._endpoints)

    def to_networkx(self) -> nx.Graph:
        """
        Simple undirected view for graph analysis.

        Returns:
            ``nx.Graph`` with ``x``/``y`` node attributes and the shortest
            parallel edge ``length``; self-loops are dropped
        """
        simple = nx.Graph()
        for idx, node in self.nodes():
            simple.add_node(idx, x=node.position[0], y=node.position[1],
                            node_type=node.node_type.value)
        for _, a, b, edge in self.edge_items():
            if a == b:
                continue
            if simple.has_edge(a, b) and simple.edges[a, b]["length"] <= edge.length:
                continue
            simple.add_edge(a, b, length=edge.length, road_type=edge.road_type.value)
        return simple

    def copy(self) -> "RoadGraph":
        """Deep copy preserving indices."""
        clone = RoadGraph()
        for idx, node in self.nodes():
            clone.graph.add_node(idx, node=RoadNode(node.position, node.node_type))
        for idx, a, b, edge in self.edge_items():
            clone.graph.add_edge(a, b, key=idx, edge=edge)
            clone._endpoints[idx] = (a, b)
        clone._next_node = self._next_node
        clone._next_edge = self._next_edge
        return clone
