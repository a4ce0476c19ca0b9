"""
Tensor field describing preferred street directions.

The field is a weighted blend of basis fields (grid, radial, polyline), after
Chen et al. 2008, "Interactive Procedural Street Modeling".
"""

import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .utils import Vec2, distance, point_to_segment

DEGENERATE_RADIUS_SQ = 1e-4
MIN_TOTAL_WEIGHT = 1e-4


@dataclass(frozen=True)
class Tensor:
    """
    2x2 symmetric trace-free tensor ``[[r, s], [s, -r]]``.

    Encodes an undirected line: ``theta`` and ``theta + pi`` give the same tensor.
    """

    r: float
    s: float

    @classmethod
    def zero(cls) -> "Tensor":
        return cls(0.0, 0.0)

    @classmethod
    def from_angle(cls, theta: float) -> "Tensor":
        """Create a tensor from an angle (radians)."""
        return cls(math.cos(2.0 * theta), math.sin(2.0 * theta))

    @classmethod
    def from_direction(cls, direction: Vec2) -> "Tensor":
        """Create a tensor aligned to a direction vector."""
        return cls.from_angle(math.atan2(direction[1], direction[0]))

    def is_degenerate(self) -> bool:
        return self.r * self.r + self.s * self.s < 1e-12

    def angle(self) -> float:
        """Angle of the major eigenvector (radians)."""
        return 0.5 * math.atan2(self.s, self.r)

    def major(self) -> Vec2:
        """Major eigenvector (primary road direction); zero for a degenerate tensor."""
        if self.is_degenerate():
            return (0.0, 0.0)
        theta = self.angle()
        return (math.cos(theta), math.sin(theta))

    def minor(self) -> Vec2:
        """Minor eigenvector (cross-street direction), perpendicular to the major one."""
        mx, my = self.major()
        return (-my, mx)

    @staticmethod
    def blend(a: "Tensor", b: "Tensor", weight_a: float, weight_b: float) -> "Tensor":
        """Weighted average of two tensors."""
        total = weight_a + weight_b
        if total < MIN_TOTAL_WEIGHT:
            return Tensor.zero()
        return Tensor(
            (a.r * weight_a + b.r * weight_b) / total,
            (a.s * weight_a + b.s * weight_b) / total,
        )


class BasisField:
    """A single directional influence composing a :class:`TensorField`."""

    def sample(self, pos: Vec2) -> Tensor:
        raise NotImplementedError

    def weight(self, pos: Vec2, decay: float) -> float:
        raise NotImplementedError


@dataclass(frozen=True)
class GridField(BasisField):
    """Uniform grid aligned to ``angle``, with global influence."""

    angle: float = 0.0

    def sample(self, pos: Vec2) -> Tensor:
        return Tensor.from_angle(self.angle)

    def weight(self, pos: Vec2, decay: float) -> float:
        return 1.0


@dataclass(frozen=True)
class RadialField(BasisField):
    """Field radiating from ``center``; influence decays exponentially."""

    center: Vec2 = (0.0, 0.0)

    def sample(self, pos: Vec2) -> Tensor:
        dx = pos[0] - self.center[0]
        dy = pos[1] - self.center[1]
        if dx * dx + dy * dy < DEGENERATE_RADIUS_SQ:
            return Tensor.zero()
        return Tensor.from_direction((dx, dy))

    def weight(self, pos: Vec2, decay: float) -> float:
        return math.exp(-distance(pos, self.center) * decay)


@dataclass(frozen=True)
class PolylineField(BasisField):
    """Field aligned to the nearest segment of a polyline (river, highway)."""

    points: Tuple[Vec2, ...] = ()

    def _closest_segment(self, pos: Vec2) -> Tuple[float, Vec2]:
        min_dist = math.inf
        closest_dir = (1.0, 0.0)
        for i in range(len(self.points) - 1):
            dist, direction = point_to_segment(pos, self.points[i], self.points[i + 1])
            if dist < min_dist:
                min_dist = dist
                closest_dir = direction
        return min_dist, closest_dir

    def sample(self, pos: Vec2) -> Tensor:
        _, direction = self._closest_segment(pos)
        if direction == (0.0, 0.0):
            return Tensor.zero()
        return Tensor.from_direction(direction)

    def weight(self, pos: Vec2, decay: float) -> float:
        min_dist, _ = self._closest_segment(pos)
        if math.isinf(min_dist):
            return 0.0
        return math.exp(-min_dist * decay)


@dataclass
class TensorField:
    """Composite tensor field: ordered ``(basis_field, decay)`` pairs."""

    basis_fields: List[Tuple[BasisField, float]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.basis_fields)

    def sample(self, pos: Vec2) -> Tensor:
        """
        Sample the composite field at a position.

        Args:
            pos: Query point (x, y)

        Returns:
            Weighted blend of all basis tensors, or the axis-aligned tensor
            when the field is empty
        """
        if not self.basis_fields:
            return Tensor.from_angle(0.0)

        result = Tensor.zero()
        total_weight = 0.0

        for basis, decay in self.basis_fields:
            weight = basis.weight(pos, decay)
            result = Tensor.blend(result, basis.sample(pos), total_weight, weight)
            total_weight += weight

        return result

    def add_grid(self, angle: float) -> None:
        self.basis_fields.append((GridField(angle), 0.0))

    def add_radial(self, center: Vec2, decay: float) -> None:
        self.basis_fields.append((RadialField(tuple(center)), decay))

    def add_polyline(self, points: Sequence[Vec2], decay: float) -> None:
        self.basis_fields.append(
            (PolylineField(tuple(tuple(p) for p in points)), decay)
        )

    def clear(self) -> None:
        self.basis_fields.clear()
