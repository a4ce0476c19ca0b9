"""
Wave Function Collapse for zoning and land use assignment.

Cells on a grid start in superposition of every zone; the most constrained
cell is collapsed repeatedly and adjacency rules are propagated to its
neighbours until the grid is solved or a contradiction appears.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

import numpy as np

from .lot_engine import ZoneType


class WfcZone(Enum):
    """Zone types for land use."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    PARK = "park"
    CIVIC = "civic"
    EMPTY = "empty"


# Fixed iteration order keeps solver choices reproducible for a seed
ALL_ZONES: Tuple[WfcZone, ...] = tuple(WfcZone)
_ZONE_ORDER = {zone: i for i, zone in enumerate(ALL_ZONES)}

WFC_TO_LOT_ZONE: Dict[WfcZone, Optional[ZoneType]] = {
    WfcZone.RESIDENTIAL: ZoneType.RESIDENTIAL,
    WfcZone.COMMERCIAL: ZoneType.COMMERCIAL,
    WfcZone.INDUSTRIAL: ZoneType.INDUSTRIAL,
    WfcZone.PARK: ZoneType.GREEN,
    WfcZone.CIVIC: ZoneType.CIVIC,
    WfcZone.EMPTY: None,
}


def _sorted_zones(zones: Iterable[WfcZone]) -> List[WfcZone]:
    return sorted(zones, key=_ZONE_ORDER.__getitem__)


class AdjacencyRules:
    """Allow-list of (source, neighbor) zone pairs."""

    def __init__(self, allowed: Iterable[Tuple[WfcZone, WfcZone]] = ()):
        self.allowed: Set[Tuple[WfcZone, WfcZone]] = set(allowed)
        self._neighbors: Dict[WfcZone, FrozenSet[WfcZone]] = {}

    @classmethod
    def default(cls) -> "AdjacencyRules":
        """Standard land-use rules: industry never borders homes, parks or civic sites."""
        table = {
            WfcZone.RESIDENTIAL: (WfcZone.RESIDENTIAL, WfcZone.COMMERCIAL, WfcZone.PARK,
                                  WfcZone.CIVIC, WfcZone.EMPTY),
            WfcZone.COMMERCIAL: ALL_ZONES,
            WfcZone.INDUSTRIAL: (WfcZone.COMMERCIAL, WfcZone.INDUSTRIAL, WfcZone.EMPTY),
            WfcZone.PARK: (WfcZone.RESIDENTIAL, WfcZone.COMMERCIAL, WfcZone.PARK,
                           WfcZone.CIVIC, WfcZone.EMPTY),
            WfcZone.CIVIC: (WfcZone.RESIDENTIAL, WfcZone.COMMERCIAL, WfcZone.PARK,
                            WfcZone.CIVIC, WfcZone.EMPTY),
            WfcZone.EMPTY: ALL_ZONES,
        }
        return cls((src, nb) for src, neighbors in table.items() for nb in neighbors)

    def allow(self, source: WfcZone, neighbor: WfcZone) -> None:
        self.allowed.add((source, neighbor))
        self._neighbors.clear()

    def is_allowed(self, source: WfcZone, neighbor: WfcZone) -> bool:
        return (source, neighbor) in self.allowed

    def valid_neighbors(self, source: WfcZone) -> FrozenSet[WfcZone]:
        cached = self._neighbors.get(source)
        if cached is None:
            cached = frozenset(z for z in ALL_ZONES if self.is_allowed(source, z))
            self._neighbors[source] = cached
        return cached


@dataclass
class WfcCell:
    """A grid cell in superposition of its possible zones."""

    possibilities: Set[WfcZone] = field(default_factory=lambda: set(ALL_ZONES))
    collapsed: Optional[WfcZone] = None

    def entropy(self) -> int:
        if self.collapsed is not None:
            return 0
        return len(self.possibilities)

    def is_collapsed(self) -> bool:
        return self.collapsed is not None


class WfcSolver:
    """Wave Function Collapse solver for zoning."""

    def __init__(self, width: int, height: int, rules: Optional[AdjacencyRules] = None):
        """
        Initialize a grid with every cell uncollapsed.

        Args:
            width: Grid columns
            height: Grid rows
            rules: Adjacency rules (defaults if None)
        """
        if width < 0 or height < 0:
            raise ValueError(f"Grid size should not be negative, got {width}x{height}")
        self.width = width
        self.height = height
        self.rules = rules if rules is not None else AdjacencyRules.default()
        self.cells = [WfcCell() for _ in range(width * height)]

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def coords(self, idx: int) -> Tuple[int, int]:
        return idx % self.width, idx // self.width

    def neighbors(self, x: int, y: int) -> List[Tuple[int, int]]:
        """4-connected neighbours inside the grid."""
        result = []
        if x > 0:
            result.append((x - 1, y))
        if x < self.width - 1:
            result.append((x + 1, y))
        if y > 0:
            result.append((x, y - 1))
        if y < self.height - 1:
            result.append((x, y + 1))
        return result

    def _find_lowest_entropy(self, rng: np.random.Generator) -> Optional[int]:
        candidates: List[int] = []
        min_entropy = None

        for i, cell in enumerate(self.cells):
            if cell.is_collapsed():
                continue
            entropy = cell.entropy()
            if entropy == 0:
                continue
            if min_entropy is None or entropy < min_entropy:
                min_entropy = entropy
                candidates = [i]
            elif entropy == min_entropy:
                candidates.append(i)

        if not candidates:
            return None
        return candidates[int(rng.integers(len(candidates)))]

    def _collapse(self, idx: int, rng: np.random.Generator) -> bool:
        cell = self.cells[idx]
        if not cell.possibilities:
            return False

        choices = _sorted_zones(cell.possibilities)
        choice = choices[int(rng.integers(len(choices)))]
        cell.possibilities = {choice}
        cell.collapsed = choice
        return True

    def _propagate(self, start_idx: int) -> bool:
        stack = [start_idx]

        while stack:
            idx = stack.pop()
            x, y = self.coords(idx)

            valid: Set[WfcZone] = set()
            for zone in self.cells[idx].possibilities:
                valid |= self.rules.valid_neighbors(zone)

            for nx_, ny_ in self.neighbors(x, y):
                neighbor = self.cells[self.index(nx_, ny_)]
                if neighbor.is_collapsed():
                    continue

                before = len(neighbor.possibilities)
                neighbor.possibilities &= valid
                after = len(neighbor.possibilities)

                if after == 0:
                    return False
                if after < before:
                    stack.append(self.index(nx_, ny_))

        return True

    def solve(self, rng: np.random.Generator) -> bool:
        """
        Run the algorithm to completion.

        Args:
            rng: Random generator for cell and zone choices

        Returns:
            True if every cell collapsed without contradiction
        """
        while True:
            idx = self._find_lowest_entropy(rng)
            if idx is None:
                return all(cell.is_collapsed() for cell in self.cells)

            if not self._collapse(idx, rng):
                return False
            if not self._propagate(idx):
                return False

    def result(self) -> List[Optional[WfcZone]]:
        """Row-major zone grid; None for uncollapsed cells."""
        return [cell.collapsed for cell in self.cells]

    def result_as_lot_zones(self) -> List[Optional[ZoneType]]:
        return [WFC_TO_LOT_ZONE[z] if z is not None else None for z in self.result()]

    def is_consistent(self) -> bool:
        """Check every pair of collapsed neighbours against the rules."""
        for idx, cell in enumerate(self.cells):
            if cell.collapsed is None:
                continue
            x, y = self.coords(idx)
            for nx_, ny_ in self.neighbors(x, y):
                other = self.cells[self.index(nx_, ny_)].collapsed
                if other is not None and not self.rules.is_allowed(cell.collapsed, other):
                    return False
        return True


def solve_zoning(
    width: int,
    height: int,
    seed: int,
    max_attempts: int = 10,
    rules: Optional[AdjacencyRules] = None,
) -> Optional[List[Optional[WfcZone]]]:
    """
    Solve a zoning grid, retrying with derived seeds on contradiction.

    Args:
        width: Grid columns
        height: Grid rows
        seed: Base seed
        max_attempts: Number of attempts before giving up
        rules: Adjacency rules (defaults if None)

    Returns:
        Row-major zone grid, or None if every attempt hit a contradiction
    """
    for attempt in range(max_attempts):
        solver = WfcSolver(width, height, rules)
        if solver.solve(np.random.default_rng(seed + attempt)):
            return solver.result()
    return None
