"""
Parcel subdivision using oriented bounding boxes.

Converts closed block polygons into buildable lots, and provides the small
geometry helpers used on lot footprints.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import SubdivisionConfig
from .roads import RoadGraph
from .utils import (
    PointCloudIndex,
    Vec2,
    point_to_segment,
    polygon_area,
    polygon_centroid,
    resample_polyline,
)

# Splits that shave off less than this fraction of area are treated as failed
MIN_SPLIT_REDUCTION = 1e-6


@dataclass(frozen=True)
class OrientedBoundingBox:
    """An oriented bounding box; ``half_extents`` are along (major, minor)."""

    center: Vec2
    half_extents: Vec2
    rotation: float

    @property
    def major_axis(self) -> Vec2:
        return (math.cos(self.rotation), math.sin(self.rotation))

    @property
    def minor_axis(self) -> Vec2:
        return (-math.sin(self.rotation), math.cos(self.rotation))

    def longer_axis(self) -> Vec2:
        """Unit direction of the longer box side."""
        if self.half_extents[0] > self.half_extents[1]:
            return self.major_axis
        return self.minor_axis


@dataclass(frozen=True)
class LotFrontage:
    """Which street a lot faces."""

    edge_index: int
    street_width: float


@dataclass
class Lot:
    """A buildable lot (subdivision or grid-scan result)."""

    vertices: List[Vec2]
    area: float
    frontage: Optional[LotFrontage] = None

    @classmethod
    def from_vertices(cls, vertices: Sequence[Vec2]) -> "Lot":
        verts = [(float(v[0]), float(v[1])) for v in vertices]
        return cls(verts, polygon_area(verts))

    @property
    def centroid(self) -> Vec2:
        return lot_centroid(self.vertices)


class Block:
    """A city block (closed polygon bounded by roads)."""

    def __init__(self, vertices: Sequence[Vec2]):
        self.vertices = [(float(v[0]), float(v[1])) for v in vertices]
        self.area = polygon_area(self.vertices)

    def __repr__(self) -> str:
        return f"Block(vertices={len(self.vertices)}, area={self.area:.1f})"

    def compute_obb(self) -> OrientedBoundingBox:
        """
        Oriented bounding box from the principal axes of the vertices.

        Returns:
            OBB centered on the vertex centroid
        """
        if not self.vertices:
            return OrientedBoundingBox((0.0, 0.0), (0.0, 0.0), 0.0)

        pts = np.asarray(self.vertices, dtype=float)
        centroid = pts.mean(axis=0)
        d = pts - centroid

        cxx = float(np.dot(d[:, 0], d[:, 0]))
        cyy = float(np.dot(d[:, 1], d[:, 1]))
        cxy = float(np.dot(d[:, 0], d[:, 1]))
        angle = 0.5 * math.atan2(2.0 * cxy, cxx - cyy)

        axis = np.array([math.cos(angle), math.sin(angle)])
        perp = np.array([-axis[1], axis[0]])
        proj_major = d @ axis
        proj_minor = d @ perp

        return OrientedBoundingBox(
            center=(float(centroid[0]), float(centroid[1])),
            half_extents=(
                float(proj_major.max() - proj_major.min()) / 2.0,
                float(proj_minor.max() - proj_minor.min()) / 2.0,
            ),
            rotation=angle,
        )


def split_polygon(
    vertices: Sequence[Vec2],
    point: Vec2,
    direction: Vec2,
) -> Tuple[List[Vec2], List[Vec2]]:
    """
    Split a polygon by an infinite line.

    Args:
        vertices: Polygon ring
        point: Point on the split line
        direction: Line direction

    Returns:
        (left, right) vertex lists; vertices on the line go to both sides
    """
    normal = (-direction[1], direction[0])
    left: List[Vec2] = []
    right: List[Vec2] = []

    n = len(vertices)
    for i in range(n):
        v1 = vertices[i]
        v2 = vertices[(i + 1) % n]

        d1 = (v1[0] - point[0]) * normal[0] + (v1[1] - point[1]) * normal[1]
        d2 = (v2[0] - point[0]) * normal[0] + (v2[1] - point[1]) * normal[1]

        if d1 >= 0.0:
            left.append(v1)
        if d1 <= 0.0:
            right.append(v1)

        if (d1 > 0.0 and d2 < 0.0) or (d1 < 0.0 and d2 > 0.0):
            t = d1 / (d1 - d2)
            crossing = (v1[0] + (v2[0] - v1[0]) * t, v1[1] + (v2[1] - v1[1]) * t)
            left.append(crossing)
            right.append(crossing)

    return left, right


def subdivide_block(block: Block, config: Optional[SubdivisionConfig] = None) -> List[Lot]:
    """
    Subdivide a block into lots by repeated OBB splitting.

    Args:
        block: Block to subdivide
        config: Subdivision settings (defaults if None)

    Returns:
        Lots covering the block, in depth-first order
    """
    config = config if config is not None else SubdivisionConfig()
    if len(block.vertices) < 3:
        return []

    lots: List[Lot] = []
    stack: List[List[Vec2]] = [list(block.vertices)]

    while stack:
        vertices = stack.pop()
        area = polygon_area(vertices)

        if area <= config.max_lot_area:
            lots.append(Lot(vertices, area))
            continue

        obb = Block(vertices).compute_obb()
        left, right = split_polygon(vertices, obb.center, obb.longer_axis())

        if len(left) < 3 or len(right) < 3:
            lots.append(Lot(vertices, area))
            continue

        # A split that leaves a piece as large as its parent would never terminate
        largest = max(polygon_area(left), polygon_area(right))
        if largest >= area * (1.0 - MIN_SPLIT_REDUCTION):
            lots.append(Lot(vertices, area))
            continue

        # Right pushed first so the left half is processed first
        stack.append(right)
        stack.append(left)

    return lots


def lot_centroid(vertices: Sequence[Vec2]) -> Vec2:
    """Centroid (vertex mean) of a lot polygon."""
    return polygon_centroid(vertices)


def shrink_polygon(vertices: Sequence[Vec2], distance: float) -> List[Vec2]:
    """
    Move every vertex toward the centroid to create a setback footprint.

    Args:
        vertices: Lot polygon
        distance: Setback distance

    Returns:
        Shrunk polygon, empty for fewer than 3 vertices
    """
    if len(vertices) < 3:
        return []

    cx, cy = lot_centroid(vertices)
    shrunk = []
    for vx, vy in vertices:
        dx, dy = vx - cx, vy - cy
        length = math.hypot(dx, dy)
        if length < 1e-9:
            shrunk.append((vx, vy))
        else:
            shrunk.append((vx - dx / length * distance, vy - dy / length * distance))
    return shrunk


def polygon_bounds(vertices: Sequence[Vec2]) -> Tuple[Vec2, Vec2]:
    """
    Axis-aligned bounds of a polygon.

    Returns:
        ((min_x, min_y), (max_x, max_y)); an empty polygon gives inverted
        infinite bounds
    """
    if len(vertices) == 0:
        return (math.inf, math.inf), (-math.inf, -math.inf)
    pts = np.asarray(vertices, dtype=float)
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return (float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1]))


def assign_frontages(
    lots: Sequence[Lot],
    graph: RoadGraph,
    max_distance: float,
    sample_spacing: float = 2.0,
) -> int:
    """
    Find, for every lot, the side closest to a road and record it as the frontage.

    Road polylines are resampled once and indexed, so each lot only checks the
    road points that can possibly lie within ``max_distance`` of it.

    Args:
        lots: Lots to update in place
        graph: Road graph
        max_distance: Roads farther than this are ignored
        sample_spacing: Resampling distance along road polylines

    Returns:
        Number of lots that received a frontage
    """
    points: List[Vec2] = []
    widths: List[float] = []
    for edge in graph.edges():
        samples = resample_polyline(edge.points, sample_spacing)
        points.extend(samples)
        widths.extend([edge.road_type.width] * len(samples))
    index = PointCloudIndex(points)

    assigned = 0
    for lot in lots:
        lot.frontage = None
        n = len(lot.vertices)
        if n < 3 or index.tree is None:
            continue

        center = lot_centroid(lot.vertices)
        reach = max(math.hypot(v[0] - center[0], v[1] - center[1]) for v in lot.vertices)
        nearby = sorted(index.tree.query_ball_point(center, reach + max_distance))

        best_dist = math.inf
        for k in nearby:
            road_pt = points[k]
            for i in range(n):
                dist, _ = point_to_segment(road_pt, lot.vertices[i], lot.vertices[(i + 1) % n])
                if dist <= max_distance and dist < best_dist:
                    best_dist = dist
                    lot.frontage = LotFrontage(edge_index=i, street_width=widths[k])

        if lot.frontage is not None:
            assigned += 1

    return assigned


def assign_frontage(
    lot: Lot,
    graph: RoadGraph,
    max_distance: float,
    sample_spacing: float = 2.0,
) -> Optional[LotFrontage]:
    """Single-lot :func:`assign_frontages`; returns the frontage or None."""
    assign_frontages([lot], graph, max_distance, sample_spacing)
    return lot.frontage
