"""
City lot extraction from the road graph.

Uses a grid-based approach: every grid cell whose center keeps clear of all
roads becomes a buildable lot.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .config import BlockConfig
from .parcels import Lot
from .river import River
from .roads import RoadGraph
from .utils import PointCloudIndex, collect_road_points


@dataclass
class CityLots:
    """Buildable lots produced by extraction."""

    lots: List[Lot] = field(default_factory=list)
    extracted: bool = False

    def __len__(self) -> int:
        return len(self.lots)

    def total_area(self) -> float:
        return float(sum(lot.area for lot in self.lots))


def _cell_origins(half: float, cell: float) -> np.ndarray:
    """Lower-left corners of the grid cells covering [-half, half)."""
    count = int(np.ceil(2.0 * half / cell - 1e-9))
    return -half + cell * np.arange(max(count, 0))


def extract_lots(
    graph: RoadGraph,
    config: Optional[BlockConfig] = None,
    river: Optional[River] = None,
) -> List[Lot]:
    """
    Extract buildable lots between roads.

    Args:
        graph: Road graph
        config: Extraction settings (defaults if None)
        river: Optional river; with ``skip_water`` cells in water are dropped

    Returns:
        Square lots in row-major order (bottom row first)
    """
    config = config if config is not None else BlockConfig()
    cell = config.grid_cell_size
    gap = config.lot_gap

    index = PointCloudIndex(collect_road_points(graph, config.road_sample_spacing))

    origins = _cell_origins(config.city_half_size, cell)
    if len(origins) == 0:
        return []
    xs, ys = np.meshgrid(origins, origins)
    xs, ys = xs.ravel(), ys.ravel()
    centers = np.column_stack([xs + cell / 2.0, ys + cell / 2.0])
    clear = index.min_distances(centers) > config.road_clearance

    check_water = config.skip_water and river is not None and not river.is_empty()
    area = (cell - 2.0 * gap) ** 2

    lots = []
    for x, y, center, ok in zip(xs, ys, centers, clear):
        if not ok:
            continue
        if check_water and river.contains_point((float(center[0]), float(center[1]))):
            continue

        x, y = float(x), float(y)
        vertices = [
            (x + gap, y + gap),
            (x + cell - gap, y + gap),
            (x + cell - gap, y + cell - gap),
            (x + gap, y + cell - gap),
        ]
        lots.append(Lot(vertices=vertices, area=area))

    return lots
