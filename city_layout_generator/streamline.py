"""
Streamline integration for tracing roads through the tensor field.

A "turtle" walks through the field following the major or minor eigenvector,
advancing with fixed-step RK4.
"""

import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .config import StreamlineConfig
from .tensor import TensorField
from .utils import Vec2

MIN_DISPLACEMENT = 1e-3


@dataclass(frozen=True)
class StreamlinePoint:
    """A point along a streamline."""

    position: Vec2
    direction: Vec2


@dataclass(frozen=True)
class Streamline:
    """A complete streamline; ``is_major`` selects the eigenvector it follows."""

    points: Tuple[StreamlinePoint, ...] = field(default_factory=tuple)
    is_major: bool = True

    def __len__(self) -> int:
        return len(self.points)

    @cached_property
    def _position_array(self) -> np.ndarray:
        return np.array([p.position for p in self.points], dtype=float).reshape(-1, 2)

    def positions(self) -> np.ndarray:
        """(n, 2) array of point positions."""
        return self._position_array

    def length(self) -> float:
        pos = self.positions()
        if len(pos) < 2:
            return 0.0
        return float(np.sum(np.hypot(*np.diff(pos, axis=0).T)))


def _align(direction: Vec2, reference: Vec2) -> Vec2:
    """Flip ``direction`` when it points more than 90 degrees away from ``reference``."""
    if direction[0] * reference[0] + direction[1] * reference[1] < 0.0:
        return (-direction[0], -direction[1])
    return direction


class StreamlineIntegrator:
    """Generate streamlines from a tensor field."""

    def __init__(self, tensor_field: TensorField, config: Optional[StreamlineConfig] = None):
        """
        Initialize integrator.

        Args:
            tensor_field: Field to follow
            config: Integration settings (defaults if None)
        """
        self.field = tensor_field
        self.config = config if config is not None else StreamlineConfig()

    def trace(self, seed: Vec2, use_major: bool) -> Streamline:
        """
        Trace a streamline from a seed point in both directions.

        Args:
            seed: Start point (x, y)
            use_major: Follow the major (True) or minor (False) eigenvector

        Returns:
            Streamline ordered from the backward end to the forward end
        """
        seed = (float(seed[0]), float(seed[1]))
        forward = self._trace_direction(seed, use_major, 1.0)
        backward = self._trace_direction(seed, use_major, -1.0)

        # Backward directions point away from the seed; turn them to travel order
        points = [
            StreamlinePoint(p.position, (-p.direction[0], -p.direction[1]))
            for p in reversed(backward)
        ]
        points.extend(forward[1:])

        return Streamline(points=tuple(points), is_major=use_major)

    def _eigenvector(self, pos: Vec2, use_major: bool) -> Vec2:
        tensor = self.field.sample(pos)
        return tensor.major() if use_major else tensor.minor()

    def _trace_direction(self, seed: Vec2, use_major: bool, sign: float) -> List[StreamlinePoint]:
        """Trace in one direction from seed."""
        points: List[StreamlinePoint] = []
        pos = seed
        prev_dir: Optional[Vec2] = None

        for _ in range(self.config.max_steps):
            raw = self._eigenvector(pos, use_major)
            if prev_dir is None:
                direction = (raw[0] * sign, raw[1] * sign)
            else:
                direction = _align(raw, prev_dir)

            points.append(StreamlinePoint(pos, direction))

            new_pos = self._rk4_step(pos, direction, use_major)

            # Degenerate tensor: no progress possible
            if math.hypot(new_pos[0] - pos[0], new_pos[1] - pos[1]) < MIN_DISPLACEMENT:
                break

            prev_dir = direction
            pos = new_pos

        return points

    def _rk4_step(self, pos: Vec2, heading: Vec2, use_major: bool) -> Vec2:
        """Single RK4 step; every slope is aligned with ``heading``."""
        h = self.config.step_size

        def slope(p: Vec2) -> Vec2:
            return _align(self._eigenvector(p, use_major), heading)

        k1 = slope(pos)
        k2 = slope((pos[0] + k1[0] * h * 0.5, pos[1] + k1[1] * h * 0.5))
        k3 = slope((pos[0] + k2[0] * h * 0.5, pos[1] + k2[1] * h * 0.5))
        k4 = slope((pos[0] + k3[0] * h, pos[1] + k3[1] * h))

        return (
            pos[0] + (k1[0] + 2.0 * k2[0] + 2.0 * k3[0] + k4[0]) * (h / 6.0),
            pos[1] + (k1[1] + 2.0 * k2[1] + 2.0 * k3[1] + k4[1]) * (h / 6.0),
        )


def generate_seeds(bounds: Tuple[float, float, float, float], spacing: float) -> List[Vec2]:
    """
    Generate a regular grid of seed points.

    Args:
        bounds: (min_x, min_y, max_x, max_y), inclusive
        spacing: Distance between neighbouring seeds

    Returns:
        Seeds in row-major order

    Raises:
        ValueError: If spacing is not positive
    """
    if spacing <= 0:
        raise ValueError(f"Seed spacing should be positive, got {spacing}")

    min_x, min_y, max_x, max_y = bounds
    if max_x < min_x or max_y < min_y:
        return []
    nx_steps = int(math.floor((max_x - min_x) / spacing + 1e-9)) + 1
    ny_steps = int(math.floor((max_y - min_y) / spacing + 1e-9)) + 1

    return [
        (min_x + i * spacing, min_y + j * spacing)
        for j in range(ny_steps)
        for i in range(nx_steps)
    ]


def is_valid_seed(seed: Vec2, streamlines: Iterable[Streamline], min_distance: float) -> bool:
    """
    Check that a seed is at least ``min_distance`` from every traced point.

    Args:
        seed: Candidate seed (x, y)
        streamlines: Already traced streamlines
        min_distance: Required clearance

    Returns:
        True if the seed is far enough from all streamlines
    """
    for streamline in streamlines:
        pos = streamline.positions()
        if len(pos) == 0:
            continue
        if np.any(np.hypot(pos[:, 0] - seed[0], pos[:, 1] - seed[1]) < min_distance):
            return False
    return True
