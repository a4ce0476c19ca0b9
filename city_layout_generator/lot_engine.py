"""
Lot planning engine.

Annotates the buildable lots discovered between roads with zoning, density
and environmental context: a predictable-yet-randomized plan for later
building placement.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

import noise
import numpy as np

from .config import LotEngineConfig
from .parcels import Lot, lot_centroid
from .roads import RoadGraph
from .utils import PointCloudIndex, Vec2, collect_road_points, distance

GREENERY_OFFSET = (15.0, 42.0)
NEAR_ROAD_FRACTION = 0.45


class DensityTier(Enum):
    """Classification for density-aware planning."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ZoneType(Enum):
    """Proposed zoning for a lot."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    CIVIC = "civic"
    GREEN = "green"


@dataclass(frozen=True)
class EnvironmentalFactors:
    """Environmental modifiers affecting desirability and growth cadence, all in [0, 1]."""

    sunlight: float
    greenery: float
    noise: float


@dataclass
class PlannedLot:
    """A lot annotated with planning data for downstream building generation."""

    lot: Lot
    centroid: Vec2
    density: DensityTier
    zone: ZoneType
    environment: EnvironmentalFactors
    # Likelihood of attempting construction during the next review window
    build_probability: float
    # In-sim days before the lot reevaluates growth
    next_review_in_days: int


_BASE_GROWTH = {
    DensityTier.HIGH: 0.65,
    DensityTier.MEDIUM: 0.5,
    DensityTier.LOW: 0.35,
}

_REVIEW_DAYS = {
    DensityTier.HIGH: (15, 45),
    DensityTier.MEDIUM: (30, 90),
    DensityTier.LOW: (60, 150),
}


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return min(max(value, lo), hi)


def normalize_noise(value: float) -> float:
    """Map Perlin output from [-1, 1] to [0, 1]."""
    return _clamp((value + 1.0) * 0.5)


def evaluate_environment(
    centroid: Vec2,
    road_distance: float,
    noise_base: int,
    noise_scale: float,
    max_road_influence: float,
) -> EnvironmentalFactors:
    """
    Sample sunlight, greenery and road noise at a lot.

    Args:
        centroid: Lot centroid
        road_distance: Distance to the nearest road point
        noise_base: Perlin permutation base
        noise_scale: Sampling scale for the noise fields
        max_road_influence: Distance at which road noise fades out

    Returns:
        Environmental factors
    """
    sx = centroid[0] * noise_scale
    sy = centroid[1] * noise_scale
    sunlight = normalize_noise(noise.pnoise2(sx, sy, base=noise_base))
    greenery = normalize_noise(
        noise.pnoise2(sx + GREENERY_OFFSET[0], sy + GREENERY_OFFSET[1], base=noise_base)
    )
    road_noise = _clamp(1.0 - _clamp(road_distance / max_road_influence))

    return EnvironmentalFactors(sunlight=sunlight, greenery=greenery, noise=road_noise)


def density_score(
    distance_from_center: float,
    road_distance: float,
    lot_area: float,
    environment: EnvironmentalFactors,
    city_radius: float,
    max_road_influence: float,
    rng: np.random.Generator,
) -> float:
    """
    Blend centrality, road access, environment and lot size into a score.

    Returns:
        Score in [0, 1.2]
    """
    center_bias = 1.0 - _clamp(distance_from_center / city_radius)
    road_bias = (max_road_influence - road_distance) / max_road_influence
    env_bias = 0.5 * environment.sunlight + 0.5 * environment.greenery
    area_bias = _clamp(200.0 / max(lot_area, 50.0))
    randomness = float(rng.uniform(0.0, 0.15))

    return _clamp(
        center_bias * 0.45
        + _clamp(road_bias) * 0.3
        + env_bias * 0.15
        + area_bias * 0.1
        + randomness,
        0.0,
        1.2,
    )


def classify_density(score: float, high_cutoff: float, medium_cutoff: float) -> DensityTier:
    if score >= high_cutoff:
        return DensityTier.HIGH
    if score >= medium_cutoff:
        return DensityTier.MEDIUM
    return DensityTier.LOW


def choose_zone(
    density: DensityTier,
    environment: EnvironmentalFactors,
    road_distance: float,
    max_road_influence: float,
) -> ZoneType:
    """Pick a zone; green space and noise dominate, then density near roads."""
    near_roads = _clamp(road_distance / max_road_influence) < NEAR_ROAD_FRACTION

    if environment.greenery > 0.65 and density != DensityTier.HIGH:
        return ZoneType.GREEN
    if environment.noise > 0.75:
        return ZoneType.INDUSTRIAL
    if density == DensityTier.HIGH and near_roads:
        return ZoneType.COMMERCIAL
    if density == DensityTier.MEDIUM and near_roads:
        return ZoneType.CIVIC
    return ZoneType.RESIDENTIAL


def compute_growth_probability(
    density: DensityTier,
    environment: EnvironmentalFactors,
    rng: np.random.Generator,
) -> float:
    """Chance of construction at the next review, in [0.05, 0.95]."""
    bonus = environment.sunlight * 0.2 + environment.greenery * 0.1 - environment.noise * 0.15
    randomness = float(rng.uniform(-0.05, 0.1))
    return _clamp(_BASE_GROWTH[density] + bonus + randomness, 0.05, 0.95)


def schedule_next_review(density: DensityTier, rng: np.random.Generator) -> int:
    """Days until the next growth review (inclusive range per tier)."""
    min_days, max_days = _REVIEW_DAYS[density]
    return int(rng.integers(min_days, max_days, endpoint=True))


def plan_lots(
    lots: Sequence[Lot],
    graph: RoadGraph,
    config: Optional[LotEngineConfig] = None,
) -> List[PlannedLot]:
    """
    Annotate lots with density, zone and growth data.

    Args:
        lots: Buildable lots
        graph: Road graph used for access and noise
        config: Planning settings (defaults if None)

    Returns:
        One planned lot per input lot, in input order
    """
    config = config if config is not None else LotEngineConfig()
    if not lots:
        return []

    # Separate streams keep density scores independent of tier-dependent draws
    density_seq, growth_seq = np.random.SeedSequence(config.seed).spawn(2)
    density_rng = np.random.default_rng(density_seq)
    growth_rng = np.random.default_rng(growth_seq)
    noise_base = config.seed % 256
    index = PointCloudIndex(collect_road_points(graph, config.road_sample_spacing))

    planned = []
    for lot in lots:
        centroid = lot_centroid(lot.vertices)
        distance_from_center = distance(centroid, config.center)
        road_distance = index.min_distance(centroid)

        environment = evaluate_environment(
            centroid,
            road_distance,
            noise_base,
            config.env_noise_scale,
            config.max_road_influence,
        )
        score = density_score(
            distance_from_center,
            road_distance,
            lot.area,
            environment,
            config.city_radius,
            config.max_road_influence,
            density_rng,
        )
        density = classify_density(score, config.high_density_cutoff, config.medium_density_cutoff)
        zone = choose_zone(density, environment, road_distance, config.max_road_influence)

        planned.append(PlannedLot(
            lot=lot,
            centroid=centroid,
            density=density,
            zone=zone,
            environment=environment,
            build_probability=compute_growth_probability(density, environment, growth_rng),
            next_review_in_days=schedule_next_review(density, growth_rng),
        ))

    return planned


def summarize_plans(planned: Sequence[PlannedLot]) -> Dict[str, Dict[str, int]]:
    """
    Count planned lots per zone and per density tier.

    Returns:
        {'zones': {...}, 'density': {...}} keyed by enum value, every member present
    """
    zones = Counter(p.zone for p in planned)
    tiers = Counter(p.density for p in planned)
    return {
        'zones': {z.value: zones.get(z, 0) for z in ZoneType},
        'density': {d.value: tiers.get(d, 0) for d in DensityTier},
    }
