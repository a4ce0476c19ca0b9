"""Tests for streamline tracing and seeding."""

import pytest

from city_layout_generator.config import StreamlineConfig
from city_layout_generator.streamline import (
    Streamline,
    StreamlineIntegrator,
    StreamlinePoint,
    generate_seeds,
    is_valid_seed,
)
from city_layout_generator.tensor import TensorField


def grid_field(angle=0.0):
    field = TensorField()
    field.add_grid(angle)
    return field


class TestStreamlineIntegrator:
    """Tests for RK4 eigenvector tracing."""

    def test_grid_trace_is_straight_and_bidirectional(self):
        integrator = StreamlineIntegrator(grid_field(), StreamlineConfig(step_size=2.0, max_steps=10))
        streamline = integrator.trace((0.0, 0.0), use_major=True)

        assert len(streamline) == 19
        positions = streamline.positions()
        assert positions[0, 0] == pytest.approx(-18.0)
        assert positions[-1, 0] == pytest.approx(18.0)
        assert all(abs(y) < 1e-9 for y in positions[:, 1])
        assert streamline.length() == pytest.approx(36.0)

    def test_seed_appears_once(self):
        integrator = StreamlineIntegrator(grid_field(), StreamlineConfig(max_steps=5))
        streamline = integrator.trace((3.0, 4.0), use_major=True)

        seeds = [p for p in streamline.points if p.position == (3.0, 4.0)]
        assert len(seeds) == 1

    def test_minor_trace_is_perpendicular(self):
        integrator = StreamlineIntegrator(grid_field(), StreamlineConfig(max_steps=5))
        streamline = integrator.trace((0.0, 0.0), use_major=False)

        positions = streamline.positions()
        assert all(abs(x) < 1e-9 for x in positions[:, 0])
        assert positions[-1, 1] > positions[0, 1]

    def test_direction_continuity(self):
        field = TensorField()
        field.add_grid(0.4)
        field.add_radial((20.0, -10.0), 0.01)
        field.add_polyline([(-80.0, 30.0), (0.0, 50.0), (80.0, 20.0)], 0.03)
        integrator = StreamlineIntegrator(field, StreamlineConfig(max_steps=120))

        for seed in [(0.0, 0.0), (-40.0, 35.0), (25.0, -50.0)]:
            for use_major in (True, False):
                points = integrator.trace(seed, use_major).points
                for prev, cur in zip(points, points[1:]):
                    dot = prev.direction[0] * cur.direction[0] + prev.direction[1] * cur.direction[1]
                    assert dot >= -1e-9

    def test_degenerate_field_stops_immediately(self):
        field = TensorField()
        field.add_radial((0.0, 0.0), 0.01)
        integrator = StreamlineIntegrator(field, StreamlineConfig(max_steps=50))

        streamline = integrator.trace((0.0, 0.0), use_major=True)

        assert len(streamline) == 1

    def test_default_config(self):
        integrator = StreamlineIntegrator(grid_field())

        assert integrator.config == StreamlineConfig()


class TestStreamline:
    """Tests for the streamline value object."""

    def test_empty_streamline(self):
        streamline = Streamline()

        assert len(streamline) == 0
        assert streamline.positions().shape == (0, 2)
        assert streamline.length() == 0.0

    def test_positions(self):
        streamline = Streamline((
            StreamlinePoint((0.0, 0.0), (1.0, 0.0)),
            StreamlinePoint((3.0, 4.0), (1.0, 0.0)),
        ))

        assert streamline.positions().tolist() == [[0.0, 0.0], [3.0, 4.0]]
        assert streamline.length() == pytest.approx(5.0)


class TestSeeding:
    """Tests for seed generation and validation."""

    def test_generate_seeds_row_major_inclusive(self):
        seeds = generate_seeds((0.0, 0.0, 10.0, 10.0), 5.0)

        assert len(seeds) == 9
        assert seeds[:3] == [(0.0, 0.0), (5.0, 0.0), (10.0, 0.0)]
        assert seeds[-1] == (10.0, 10.0)

    @pytest.mark.parametrize("spacing", [0.0, -2.0])
    def test_generate_seeds_rejects_bad_spacing(self, spacing):
        with pytest.raises(ValueError):
            generate_seeds((0.0, 0.0, 10.0, 10.0), spacing)

    def test_generate_seeds_inverted_bounds(self):
        assert generate_seeds((10.0, 0.0, 0.0, 10.0), 1.0) == []

    def test_is_valid_seed(self):
        streamline = Streamline((
            StreamlinePoint((0.0, 0.0), (1.0, 0.0)),
            StreamlinePoint((10.0, 0.0), (1.0, 0.0)),
        ))

        assert is_valid_seed((5.0, 20.0), [streamline], 15.0)
        assert not is_valid_seed((10.0, 5.0), [streamline], 15.0)
        assert is_valid_seed((0.0, 0.0), [], 15.0)
