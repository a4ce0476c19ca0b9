"""Tests for river generation and water queries."""

import math

import pytest

from city_layout_generator.config import RiverConfig
from city_layout_generator.river import River, RiverPoint, generate_river, segment_intersection


class TestSegmentIntersection:
    """Tests for the segment intersection helper."""

    def test_crossing(self):
        assert segment_intersection((0.0, 0.0), (2.0, 2.0), (0.0, 2.0), (2.0, 0.0)) == pytest.approx((1.0, 1.0))

    def test_parallel(self):
        assert segment_intersection((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)) is None

    def test_disjoint(self):
        assert segment_intersection((0.0, 0.0), (1.0, 0.0), (5.0, -1.0), (5.0, 1.0)) is None


class TestRiverQueries:
    """Tests against a straight hand-built river."""

    def test_contains_point(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        assert river.contains_point((5.0, 0.0))
        assert not river.contains_point((5.0, 20.0))
        assert not river.contains_point((500.0, 0.0))

    def test_signed_distance(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        assert river.signed_distance((0.0, 0.0)) == pytest.approx(-5.0)
        assert river.signed_distance((0.0, 15.0)) == pytest.approx(10.0)

    def test_water_between_centerline_samples(self, straight_river):
        river = straight_river(y=0.0, width=10.0, step=25.0)

        assert river.contains_point((12.5, 0.0))
        assert river.contains_point((12.5, 4.0))
        assert river.signed_distance((12.5, 0.0)) == pytest.approx(-5.0)

    def test_width_is_interpolated_along_segment(self):
        river = River(
            centerline=[
                RiverPoint((0.0, 0.0), 10.0, (1.0, 0.0)),
                RiverPoint((20.0, 0.0), 30.0, (1.0, 0.0)),
            ],
            bounds=(-20.0, -20.0, 40.0, 20.0),
        )

        assert river.signed_distance((10.0, 0.0)) == pytest.approx(-10.0)
        assert river.contains_point((10.0, 9.0))
        assert not river.contains_point((10.0, 11.0))

    def test_crosses_river(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        crossing = river.crosses_river((5.0, -20.0), (5.0, 20.0))

        assert crossing is not None
        entry, exit_ = crossing
        assert entry == pytest.approx((5.0, -5.0))
        assert exit_ == pytest.approx((5.0, 5.0))

    def test_crossing_through_bank_vertex(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        entry, exit_ = river.crosses_river((0.0, 20.0), (0.0, -20.0))

        assert entry == pytest.approx((0.0, 5.0))
        assert exit_ == pytest.approx((0.0, -5.0))

    def test_no_crossing_from_water(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        assert river.crosses_river((5.0, 0.0), (5.0, 20.0)) is None

    def test_no_crossing_when_segment_stays_on_one_bank(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        assert river.crosses_river((5.0, 10.0), (25.0, 30.0)) is None

    def test_intersect_polyline(self, straight_river):
        river = straight_river(y=0.0, width=10.0)

        hits = river.intersect_polyline([(5.0, -20.0), (5.0, -1.0), (15.0, 20.0)])

        assert [i for i, _ in hits] == [0, 1]

    def test_empty_river(self):
        river = River()

        assert river.is_empty()
        assert math.isinf(river.signed_distance((0.0, 0.0)))
        assert not river.contains_point((0.0, 0.0))
        assert river.crosses_river((0.0, -10.0), (0.0, 10.0)) is None
        assert river.intersects_segment((0.0, -10.0), (0.0, 10.0)) is None


class TestGenerateRiver:
    """Tests for Perlin river generation."""

    def test_disabled(self):
        assert generate_river(RiverConfig(enabled=False)).is_empty()

    def test_shape(self):
        config = RiverConfig(resolution=50)
        river = generate_river(config)

        assert len(river.centerline) == 50
        assert len(river.left_bank) == 50
        assert len(river.right_bank) == 50
        assert river.centerline[0].position[0] < river.centerline[-1].position[0]
        assert all(p.width > 0 for p in river.centerline)

    def test_bounds_cover_banks(self):
        river = generate_river(RiverConfig())
        min_x, min_y, max_x, max_y = river.bounds

        for x, y in river.left_bank + river.right_bank:
            assert min_x < x < max_x
            assert min_y < y < max_y

    def test_centerline_is_water(self):
        river = generate_river(RiverConfig())
        middle = river.centerline[len(river.centerline) // 2].position

        assert river.contains_point(middle)

    def test_deterministic(self):
        a = generate_river(RiverConfig(seed=99))
        b = generate_river(RiverConfig(seed=99))

        assert a.centerline == b.centerline

    def test_road_across_city_crosses(self):
        river = generate_river(RiverConfig())
        half = RiverConfig().city_size / 2

        crossing = river.crosses_river((0.0, -half * 3), (0.0, half * 3))

        assert crossing is not None
