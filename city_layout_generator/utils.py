"""
Utility functions for geometry operations and spatial queries.
"""

import math
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree
from shapely.geometry import Polygon, box

if TYPE_CHECKING:
    from .roads import RoadGraph

Vec2 = Tuple[float, float]

EPSILON = 1e-3


def calculate_bearing(p1: Vec2, p2: Vec2) -> float:
    """
    Calculate bearing (0-180°) of line segment from p1 to p2.

    Args:
        p1: Start point (x, y)
        p2: End point (x, y)

    Returns:
        Bearing in degrees [0, 180)
    """
    bearing = math.degrees(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))

    # Normalize to [0, 180) - direction does not matter
    if bearing < 0:
        bearing += 180
    if bearing >= 180:
        bearing -= 180

    return bearing


def distance(a: Vec2, b: Vec2) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def normalize(v: Vec2) -> Vec2:
    """Unit vector, or the zero vector for near-zero input."""
    length = math.hypot(v[0], v[1])
    if length < 1e-9:
        return (0.0, 0.0)
    return (v[0] / length, v[1] / length)


def point_to_segment(p: Vec2, a: Vec2, b: Vec2) -> Tuple[float, Vec2]:
    """
    Distance from a point to a segment, and the segment direction.

    Args:
        p: Query point (x, y)
        a: Segment start (x, y)
        b: Segment end (x, y)

    Returns:
        (distance, unit direction of a->b); a zero-length segment gives a
        zero direction and the distance to ``a``.
    """
    abx, aby = b[0] - a[0], b[1] - a[1]
    len_sq = abx * abx + aby * aby
    if len_sq < 1e-12:
        return distance(p, a), (0.0, 0.0)

    t = ((p[0] - a[0]) * abx + (p[1] - a[1]) * aby) / len_sq
    t = min(max(t, 0.0), 1.0)
    closest = (a[0] + abx * t, a[1] + aby * t)
    return distance(p, closest), normalize((abx, aby))


def polyline_length(points: Sequence[Vec2]) -> float:
    """Sum of segment lengths along a polyline."""
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def polygon_area(vertices: Sequence[Vec2]) -> float:
    """
    Unsigned polygon area (shoelace formula).

    Args:
        vertices: Closed polygon vertices (first vertex not repeated)

    Returns:
        Area, 0 for fewer than 3 vertices
    """
    if len(vertices) < 3:
        return 0.0
    xy = np.asarray(vertices, dtype=float)
    x, y = xy[:, 0], xy[:, 1]
    return float(abs(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) / 2.0)


def polygon_centroid(vertices: Sequence[Vec2]) -> Vec2:
    """Vertex average of a polygon; origin for an empty polygon."""
    if len(vertices) == 0:
        return (0.0, 0.0)
    mean = np.asarray(vertices, dtype=float).mean(axis=0)
    return (float(mean[0]), float(mean[1]))


def to_shapely_polygon(vertices: Sequence[Vec2]) -> Optional[Polygon]:
    """Shapely polygon for a vertex ring, or None when degenerate."""
    if len(vertices) < 3:
        return None
    return Polygon(vertices)


def create_city_polygon(half_size: float, center: Vec2 = (0.0, 0.0)) -> Polygon:
    """
    Create the square city footprint centered on ``center``.

    Args:
        half_size: Half of the city extent
        center: Footprint center

    Returns:
        Square polygon
    """
    cx, cy = center
    return box(cx - half_size, cy - half_size, cx + half_size, cy + half_size)


def snap_to_node(
    point: Vec2,
    nodes: np.ndarray,
    tolerance: float
) -> Optional[int]:
    """
    Find the nearest node within tolerance.

    Args:
        point: Query point (x, y)
        nodes: (n, 2) array of node positions
        tolerance: Maximum snap distance (inclusive)

    Returns:
        Row index of the nearest node, or None
    """
    if len(nodes) == 0:
        return None

    distances = np.hypot(nodes[:, 0] - point[0], nodes[:, 1] - point[1])
    min_idx = int(np.argmin(distances))

    if distances[min_idx] <= tolerance:
        return min_idx
    return None


def resample_polyline(points: Sequence[Vec2], spacing: float) -> List[Vec2]:
    """
    Resample each segment of a polyline at roughly ``spacing``.

    Both ends of every segment are included; near-zero segments are skipped.
    """
    samples: List[Vec2] = []
    for i in range(len(points) - 1):
        start, end = points[i], points[i + 1]
        dx, dy = end[0] - start[0], end[1] - start[1]
        length = math.hypot(dx, dy)
        if length < EPSILON:
            continue

        steps = max(1, int(math.ceil(length / spacing)))
        for j in range(steps + 1):
            t = j / steps
            samples.append((start[0] + dx * t, start[1] + dy * t))
    return samples


def collect_road_points(graph: "RoadGraph", spacing: float) -> List[Vec2]:
    """
    Collect points along all road edges plus every node position.

    Args:
        graph: Road graph
        spacing: Resampling distance along edge polylines

    Returns:
        Point cloud of the road network
    """
    points: List[Vec2] = []
    for edge in graph.edges():
        points.extend(resample_polyline(edge.points, spacing))
    for _, node in graph.nodes():
        points.append(node.position)
    return points


class PointCloudIndex:
    """
    Nearest-distance queries against a static point cloud.
    """

    def __init__(self, points: Iterable[Vec2]):
        """
        Build the index.

        Args:
            points: Points to index
        """
        self.points = np.asarray(list(points), dtype=float).reshape(-1, 2)
        self.tree: Optional[cKDTree] = cKDTree(self.points) if len(self.points) else None

    def __len__(self) -> int:
        return len(self.points)

    def min_distance(self, point: Vec2) -> float:
        """Distance to the closest indexed point, ``inf`` when empty."""
        if self.tree is None:
            return math.inf
        dist, _ = self.tree.query(point)
        return float(dist)

    def min_distances(self, points: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`min_distance` for an (n, 2) array."""
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        if self.tree is None:
            return np.full(len(points), math.inf)
        dist, _ = self.tree.query(points)
        return np.asarray(dist, dtype=float)


def compute_orientation_histogram(
    segments: Iterable[Tuple[Vec2, Vec2]],
    num_bins: int = 18
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute orientation histogram for road segments.

    Args:
        segments: (start, end) pairs
        num_bins: Number of bins for [0, 180)

    Returns:
        (bin_edges, counts) arrays
    """
    bearings = [calculate_bearing(a, b) for a, b in segments]

    if not bearings:
        return np.linspace(0, 180, num_bins + 1), np.zeros(num_bins)

    counts, bin_edges = np.histogram(bearings, bins=num_bins, range=(0, 180))
    return bin_edges, counts


def compute_entropy(histogram_counts: np.ndarray) -> float:
    """
    Compute Shannon entropy of histogram.

    Args:
        histogram_counts: Array of bin counts

    Returns:
        Entropy value
    """
    total = np.sum(histogram_counts)
    if total == 0:
        return 0.0

    probs = np.asarray(histogram_counts, dtype=float) / total
    probs = probs[probs > 0]

    return float(-np.sum(probs * np.log2(probs)))
