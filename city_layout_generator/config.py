"""
Configuration management for city layout generation.
"""

import json
import math
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Tuple


@dataclass
class StreamlineConfig:
    """Configuration for streamline integration."""

    # Step size for RK4 integration
    step_size: float = 2.0
    # Maximum steps per traced direction
    max_steps: int = 300
    # Minimum distance between streamlines
    separation: float = 15.0
    # Snapping distance to existing road nodes
    snap_distance: float = 8.0


@dataclass
class RoadGenConfig:
    """Configuration for road network generation."""

    city_size: float = 500.0
    downtown_center: Tuple[float, float] = (0.0, 0.0)
    radial_decay: float = 0.008
    grid_angle: float = 0.0
    # Decay of the polyline field laid along the river (0 disables it)
    river_field_decay: float = 0.02
    streamline: StreamlineConfig = field(default_factory=StreamlineConfig)


@dataclass
class RiverConfig:
    """Configuration for river generation."""

    enabled: bool = True
    seed: int = 12345
    river_width: float = 30.0
    width_variation: float = 0.3
    meander_amplitude: float = 80.0
    meander_frequency: float = 0.015
    water_level: float = -2.0
    bank_slope_width: float = 15.0
    city_size: float = 500.0
    resolution: int = 100


@dataclass
class BlockConfig:
    """Configuration for grid-scan lot extraction."""

    grid_cell_size: float = 12.0
    # Minimum distance from a road centerline
    road_clearance: float = 8.0
    city_half_size: float = 250.0
    # Inset applied to every side of a grid cell
    lot_gap: float = 1.0
    road_sample_spacing: float = 2.0
    skip_water: bool = True


@dataclass
class SubdivisionConfig:
    """Configuration for OBB parcel subdivision."""

    max_lot_area: float = 800.0


@dataclass
class LotEngineConfig:
    """Settings for how lots are evaluated."""

    # Approximate city radius used to bias density near the center
    city_radius: float = 250.0
    center: Tuple[float, float] = (0.0, 0.0)
    # How far road influence reaches when evaluating access/noise
    max_road_influence: float = 40.0
    high_density_cutoff: float = 0.65
    medium_density_cutoff: float = 0.35
    # Smaller = smoother environment fields
    env_noise_scale: float = 0.03
    road_sample_spacing: float = 3.0
    seed: int = 42


@dataclass
class CityConfig:
    """Aggregate configuration for a full generation run."""

    # Master seed; the generator reseeds river and lot planning from it
    seed: int = 42
    verbose: bool = True

    roads: RoadGenConfig = field(default_factory=RoadGenConfig)
    river: RiverConfig = field(default_factory=RiverConfig)
    blocks: BlockConfig = field(default_factory=BlockConfig)
    subdivision: SubdivisionConfig = field(default_factory=SubdivisionConfig)
    lots: LotEngineConfig = field(default_factory=LotEngineConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CityConfig":
        """Build configuration from a nested dict (missing keys keep defaults)."""
        roads = dict(data.get("roads", {}))
        streamline = StreamlineConfig(**roads.pop("streamline", {}))
        if "downtown_center" in roads:
            roads["downtown_center"] = tuple(roads["downtown_center"])
        lots = dict(data.get("lots", {}))
        if "center" in lots:
            lots["center"] = tuple(lots["center"])

        # Stage seeds default to the master seed
        seed = data.get("seed", 42)
        river = dict(data.get("river", {}))
        river.setdefault("seed", seed)
        lots.setdefault("seed", seed)

        return cls(
            seed=seed,
            verbose=data.get("verbose", True),
            roads=RoadGenConfig(streamline=streamline, **roads),
            river=RiverConfig(**river),
            blocks=BlockConfig(**data.get("blocks", {})),
            subdivision=SubdivisionConfig(**data.get("subdivision", {})),
            lots=LotEngineConfig(**lots),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible nested dict."""
        data = asdict(self)
        data["roads"]["downtown_center"] = list(self.roads.downtown_center)
        data["lots"]["center"] = list(self.lots.center)
        return data

    @classmethod
    def from_json(cls, filepath: str) -> "CityConfig":
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_json(self, filepath: str) -> None:
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def with_seed(self, seed: int) -> "CityConfig":
        """
        Copy of this configuration with every stochastic stage reseeded.

        Args:
            seed: Master seed

        Returns:
            New configuration
        """
        return replace(
            self,
            seed=seed,
            river=replace(self.river, seed=seed),
            lots=replace(self.lots, seed=seed),
        )

    def validate(self) -> None:
        """
        Perform sanity checks.

        Raises:
            ValueError: If a parameter is out of range
        """
        stream = self.roads.streamline
        if self.roads.city_size <= 0:
            raise ValueError("city_size should be positive")
        half_size = self.roads.city_size / 2.0
        if self.river.enabled and not math.isclose(self.river.city_size, self.roads.city_size):
            raise ValueError("river city_size should match roads city_size")
        if not math.isclose(self.blocks.city_half_size, half_size):
            raise ValueError("blocks city_half_size should be half of roads city_size")
        if not math.isclose(self.lots.city_radius, half_size):
            raise ValueError("lots city_radius should be half of roads city_size")
        if stream.step_size <= 0:
            raise ValueError("step_size should be positive")
        if stream.max_steps < 1:
            raise ValueError("max_steps should be at least 1")
        if stream.separation <= 0:
            raise ValueError("separation should be positive")
        if stream.snap_distance < 0:
            raise ValueError("snap_distance should not be negative")
        if self.blocks.grid_cell_size <= 2 * self.blocks.lot_gap:
            raise ValueError("grid_cell_size should exceed twice the lot_gap")
        if self.blocks.road_sample_spacing <= 0:
            raise ValueError("road_sample_spacing should be positive")
        if self.subdivision.max_lot_area <= 0:
            raise ValueError("max_lot_area should be positive")
        if self.lots.max_road_influence <= 0 or self.lots.city_radius <= 0:
            raise ValueError("city_radius and max_road_influence should be positive")
        if self.lots.medium_density_cutoff > self.lots.high_density_cutoff:
            raise ValueError("medium_density_cutoff should not exceed high_density_cutoff")
        if self.river.resolution < 2:
            raise ValueError("river resolution should be at least 2")
        if not math.isfinite(self.roads.grid_angle):
            raise ValueError("grid_angle should be finite")
