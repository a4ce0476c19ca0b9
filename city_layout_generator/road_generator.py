"""
Road network generator using tensor fields and streamline integration.

Creates organic city road layouts by:
1. Composing a tensor field (radial downtown + grid suburbs + river)
2. Tracing streamlines through the field
3. Building a graph with snapped intersections
"""

from typing import List, Optional, Sequence, Tuple

from .config import RoadGenConfig
from .river import River
from .roads import RoadEdge, RoadGraph, RoadNodeType, RoadType
from .streamline import Streamline, StreamlineIntegrator, generate_seeds, is_valid_seed
from .tensor import TensorField
from .utils import Vec2, distance

MINOR_SEPARATION_FACTOR = 0.7
MAX_SEGMENT_FACTOR = 3.0
MIN_STREAMLINE_POINTS = 3


def build_tensor_field(config: RoadGenConfig, river: Optional[River] = None) -> TensorField:
    """
    Build a tensor field with a global grid, a downtown radial and the river.

    Args:
        config: Road generation settings
        river: Optional river whose centerline bends nearby streets

    Returns:
        Composite tensor field
    """
    field = TensorField()
    field.add_grid(config.grid_angle)
    field.add_radial(config.downtown_center, config.radial_decay)

    if river is not None and len(river.centerline) >= 2 and config.river_field_decay > 0:
        field.add_polyline(river.centerline_points(), config.river_field_decay)

    return field


def _make_edge(
    points: Sequence[Vec2],
    road_type: RoadType,
    river: Optional[River],
) -> RoadEdge:
    """Build an edge, consulting the river once for a bridge crossing."""
    if river is not None and len(points) >= 2:
        crossing = river.crosses_river(points[0], points[-1])
        if crossing is not None:
            return RoadEdge.new_bridge(points, road_type, crossing[0], crossing[1])
    return RoadEdge.new(points, road_type)


def add_streamline_to_graph(
    streamline: Streamline,
    graph: RoadGraph,
    config: RoadGenConfig,
    road_type: RoadType,
    river: Optional[River] = None,
) -> int:
    """
    Convert a streamline to road graph edges.

    Args:
        streamline: Traced streamline
        graph: Graph to extend
        config: Road generation settings
        road_type: Classification of the created edges
        river: Optional river for bridge detection

    Returns:
        Number of edges added
    """
    if len(streamline.points) < 2:
        return 0

    snap_dist = config.streamline.snap_distance
    max_segment = config.streamline.separation * MAX_SEGMENT_FACTOR
    added = 0

    start_pos = streamline.points[0].position
    prev_node = graph.snap_or_create(start_pos, snap_dist, RoadNodeType.ENDPOINT)
    segment: List[Vec2] = [start_pos]
    segment_length = 0.0

    for point in streamline.points[1:]:
        pos = point.position
        segment_length += distance(segment[-1], pos)
        segment.append(pos)

        # Passing an existing node closes the segment there
        existing = graph.find_nearest(pos, snap_dist)
        if existing is not None and existing != prev_node:
            graph.add_edge_data(prev_node, existing, _make_edge(segment, road_type, river))
            added += 1
            prev_node = existing
            segment = [pos]
            segment_length = 0.0

        # Split long segments with an intermediate node
        if segment_length > max_segment:
            new_node = graph.add_node(pos, RoadNodeType.INTERSECTION)
            graph.add_edge_data(prev_node, new_node, _make_edge(segment, road_type, river))
            added += 1
            prev_node = new_node
            segment = [pos]
            segment_length = 0.0

    end_pos = streamline.points[-1].position
    end_node = graph.snap_or_create(end_pos, snap_dist, RoadNodeType.ENDPOINT)
    if end_node != prev_node and len(segment) >= 2:
        graph.add_edge_data(prev_node, end_node, _make_edge(segment, road_type, river))
        added += 1

    return added


def generate_road_network(
    field: TensorField,
    config: RoadGenConfig,
    river: Optional[River] = None,
) -> Tuple[RoadGraph, List[Streamline]]:
    """
    Generate a road network by tracing streamlines.

    Major roads are traced first; cross streets then fill the gaps with a
    tighter seed clearance.

    Args:
        field: Tensor field to follow
        config: Road generation settings
        river: Optional river for bridge detection

    Returns:
        (graph, streamlines) tuple
    """
    graph = RoadGraph()
    half_size = config.city_size / 2.0
    separation = config.streamline.separation

    seeds = generate_seeds((-half_size, -half_size, half_size, half_size), separation * 2.0)
    integrator = StreamlineIntegrator(field, config.streamline)
    streamlines: List[Streamline] = []

    passes = (
        (True, separation, RoadType.MAJOR),
        (False, separation * MINOR_SEPARATION_FACTOR, RoadType.MINOR),
    )
    for use_major, clearance, road_type in passes:
        for seed in seeds:
            if not is_valid_seed(seed, streamlines, clearance):
                continue

            streamline = integrator.trace(seed, use_major)
            if len(streamline.points) >= MIN_STREAMLINE_POINTS:
                add_streamline_to_graph(streamline, graph, config, road_type, river)
                streamlines.append(streamline)

    return graph, streamlines


def annotate_water_crossings(graph: RoadGraph, river: River) -> int:
    """
    Recompute water-crossing metadata for every edge.

    Args:
        graph: Road graph, updated in place
        river: River to test against

    Returns:
        Number of bridge edges
    """
    bridges = 0
    for idx, _, _, edge in list(graph.edge_items()):
        crossing = river.crosses_river(edge.points[0], edge.points[-1]) if edge.points else None
        if crossing is not None:
            graph.replace_edge_data(
                idx, RoadEdge.new_bridge(edge.points, edge.road_type, crossing[0], crossing[1])
            )
            bridges += 1
        elif edge.crosses_water:
            graph.replace_edge_data(idx, edge.without_water())
    return bridges
