"""
River generation and water-crossing queries.

A meandering river is laid across the city with Perlin noise. Road generation
consults the river once per candidate edge to decide whether it needs a bridge.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import noise
import numpy as np

from .config import RiverConfig
from .utils import Vec2, distance, normalize


@dataclass(frozen=True)
class RiverPoint:
    """A point along the river centerline."""

    position: Vec2
    width: float
    # Tangent direction (normalized)
    direction: Vec2


def segment_intersection(a1: Vec2, a2: Vec2, b1: Vec2, b2: Vec2) -> Optional[Vec2]:
    """
    Intersection point of segments a1-a2 and b1-b2.

    Args:
        a1, a2: First segment
        b1, b2: Second segment

    Returns:
        Intersection point, or None for disjoint or parallel segments
    """
    d1 = (a2[0] - a1[0], a2[1] - a1[1])
    d2 = (b2[0] - b1[0], b2[1] - b1[1])

    cross = d1[0] * d2[1] - d1[1] * d2[0]
    if abs(cross) < 1e-10:
        return None

    d = (b1[0] - a1[0], b1[1] - a1[1])
    t = (d[0] * d2[1] - d[1] * d2[0]) / cross
    u = (d[0] * d1[1] - d[1] * d1[0]) / cross

    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        return (a1[0] + d1[0] * t, a1[1] + d1[1] * t)
    return None


@dataclass
class River:
    """River centerline with banks; an empty river never blocks anything."""

    centerline: List[RiverPoint] = field(default_factory=list)
    # Left bank looking downstream
    left_bank: List[Vec2] = field(default_factory=list)
    right_bank: List[Vec2] = field(default_factory=list)
    water_level: float = 0.0
    bank_slope_width: float = 0.0
    # (min_x, min_y, max_x, max_y)
    bounds: Optional[Tuple[float, float, float, float]] = None

    def is_empty(self) -> bool:
        return not self.centerline

    def centerline_points(self) -> List[Vec2]:
        return [p.position for p in self.centerline]

    def _in_bounds(self, point: Vec2) -> bool:
        if self.bounds is None:
            return False
        min_x, min_y, max_x, max_y = self.bounds
        return min_x <= point[0] <= max_x and min_y <= point[1] <= max_y

    def contains_point(self, point: Vec2) -> bool:
        """Check if a point is inside the river (between banks)."""
        if not self._in_bounds(point):
            return False
        return self.signed_distance(point) < 0.0

    def signed_distance(self, point: Vec2) -> float:
        """
        Distance from a point to the river edge.

        Returns:
            Negative inside the river, positive outside, ``inf`` for no river
        """
        if not self.centerline:
            return math.inf

        centers = np.array(self.centerline_points(), dtype=float)
        widths = np.array([p.width for p in self.centerline], dtype=float)
        if len(centers) == 1:
            return distance(self.centerline[0].position, point) - self.centerline[0].width * 0.5

        # Closest point on every centerline segment, half-width interpolated along it
        a = centers[:-1]
        ab = centers[1:] - a
        len_sq = np.einsum('ij,ij->i', ab, ab)
        rel = np.asarray(point, dtype=float) - a
        t = np.divide(np.einsum('ij,ij->i', rel, ab), len_sq,
                      out=np.zeros_like(len_sq), where=len_sq > 1e-12)
        t = np.clip(t, 0.0, 1.0)
        closest = a + ab * t[:, None]
        dist_to_center = np.hypot(closest[:, 0] - point[0], closest[:, 1] - point[1])
        half_widths = 0.5 * (widths[:-1] + (widths[1:] - widths[:-1]) * t)
        return float(np.min(dist_to_center - half_widths))

    def _bank_intersections(self, start: Vec2, end: Vec2) -> List[Vec2]:
        hits = []
        for bank in (self.left_bank, self.right_bank):
            for i in range(len(bank) - 1):
                pt = segment_intersection(start, end, bank[i], bank[i + 1])
                if pt is not None:
                    hits.append(pt)
        return hits

    def intersects_segment(self, start: Vec2, end: Vec2) -> Optional[Vec2]:
        """First bank intersection of a segment, if any."""
        if len(self.left_bank) < 2:
            return None
        hits = self._bank_intersections(start, end)
        return hits[0] if hits else None

    def intersect_polyline(self, points: Sequence[Vec2]) -> List[Tuple[int, Vec2]]:
        """All (segment_index, bank_intersection) pairs of a polyline."""
        intersections = []
        for i in range(len(points) - 1):
            pt = self.intersects_segment(points[i], points[i + 1])
            if pt is not None:
                intersections.append((i, pt))
        return intersections

    def crosses_river(self, start: Vec2, end: Vec2) -> Optional[Tuple[Vec2, Vec2]]:
        """
        Check if a road segment crosses the river completely.

        Args:
            start: Segment start, must be on land
            end: Segment end, must be on land

        Returns:
            (entry, exit) bank intersections ordered from ``start``, or None
        """
        if self.is_empty():
            return None
        if self.contains_point(start) or self.contains_point(end):
            return None

        intersections = sorted(self._bank_intersections(start, end), key=lambda p: distance(start, p))

        # A segment through a bank vertex hits both adjoining bank segments
        unique: List[Vec2] = []
        for pt in intersections:
            if not unique or distance(unique[-1], pt) > 1e-6:
                unique.append(pt)

        if len(unique) < 2:
            return None
        return unique[0], unique[1]


def generate_river(config: RiverConfig) -> River:
    """
    Generate a meandering river flowing across the city.

    Args:
        config: River settings

    Returns:
        River, empty when disabled
    """
    if not config.enabled or config.resolution < 2:
        return River()

    base = config.seed % 256
    width_base = (config.seed + 1000) % 256

    half_size = config.city_size * 0.5

    # Flows from the left edge to the right edge, roughly diagonal
    start_offset = noise.pnoise2(0.5, 0.5, base=base) * 50.0
    start = (-half_size, -half_size * 0.7 + start_offset)
    end = (half_size, half_size * 0.7 - start_offset)

    base_direction = normalize((end[0] - start[0], end[1] - start[1]))
    perpendicular = (-base_direction[1], base_direction[0])

    positions: List[Vec2] = []
    widths: List[float] = []
    for i in range(config.resolution):
        t = i / (config.resolution - 1)
        base_pos = (start[0] + (end[0] - start[0]) * t, start[1] + (end[1] - start[1]) * t)

        meander = noise.pnoise2(
            t * config.meander_frequency * config.city_size,
            config.seed * 0.1,
            base=base,
        )
        positions.append((
            base_pos[0] + perpendicular[0] * meander * config.meander_amplitude,
            base_pos[1] + perpendicular[1] * meander * config.meander_amplitude,
        ))

        width_noise = noise.pnoise2(t * 5.0, 0.5, base=width_base)
        widths.append(config.river_width * (1.0 + width_noise * config.width_variation))

    # Tangents: central differences, one-sided at the ends
    directions: List[Vec2] = []
    last = len(positions) - 1
    for i in range(len(positions)):
        prev = positions[max(i - 1, 0)]
        nxt = positions[min(i + 1, last)]
        direction = normalize((nxt[0] - prev[0], nxt[1] - prev[1]))
        directions.append(direction if direction != (0.0, 0.0) else base_direction)

    centerline = [RiverPoint(p, w, d) for p, w, d in zip(positions, widths, directions)]

    left_bank: List[Vec2] = []
    right_bank: List[Vec2] = []
    for point in centerline:
        px, py = -point.direction[1], point.direction[0]
        half_width = point.width * 0.5
        left_bank.append((point.position[0] + px * half_width, point.position[1] + py * half_width))
        right_bank.append((point.position[0] - px * half_width, point.position[1] - py * half_width))

    banks = np.array(left_bank + right_bank, dtype=float)
    pad = config.bank_slope_width
    min_xy = banks.min(axis=0) - pad
    max_xy = banks.max(axis=0) + pad

    return River(
        centerline=centerline,
        left_bank=left_bank,
        right_bank=right_bank,
        water_level=config.water_level,
        bank_slope_width=config.bank_slope_width,
        bounds=(float(min_xy[0]), float(min_xy[1]), float(max_xy[0]), float(max_xy[1])),
    )
