"""Shared fixtures for the city layout generator tests."""

import matplotlib

matplotlib.use("Agg")

import pytest

from city_layout_generator.config import (
    BlockConfig,
    CityConfig,
    LotEngineConfig,
    RiverConfig,
    RoadGenConfig,
    StreamlineConfig,
)
from city_layout_generator.river import River, RiverPoint


@pytest.fixture
def small_config():
    """A small, quiet city that generates quickly."""
    return CityConfig(
        seed=7,
        verbose=False,
        roads=RoadGenConfig(city_size=120.0, streamline=StreamlineConfig(max_steps=40)),
        river=RiverConfig(city_size=120.0, river_width=12.0, meander_amplitude=20.0, resolution=40),
        blocks=BlockConfig(city_half_size=60.0),
        lots=LotEngineConfig(city_radius=60.0),
    )


@pytest.fixture
def straight_river():
    """Factory for a horizontal river along ``y`` spanning x in [-50, 50]."""

    def make(y=0.0, width=10.0, step=10.0, pad=5.0):
        xs = []
        x = -50.0
        while x <= 50.0 + 1e-9:
            xs.append(x)
            x += step
        centerline = [RiverPoint((px, y), width, (1.0, 0.0)) for px in xs]
        half = width / 2.0
        return River(
            centerline=centerline,
            left_bank=[(px, y + half) for px in xs],
            right_bank=[(px, y - half) for px in xs],
            water_level=-2.0,
            bank_slope_width=pad,
            bounds=(-50.0 - pad, y - half - pad, 50.0 + pad, y + half + pad),
        )

    return make
