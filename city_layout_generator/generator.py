"""
City layout generation driver.

Runs river -> tensor field -> road network -> lot extraction -> subdivision
and frontage -> lot planning,
keeping every intermediate result on the generator instead of in globals.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .blocks import CityLots, extract_lots
from .config import CityConfig
from .lot_engine import PlannedLot, plan_lots, summarize_plans
from .parcels import Block, Lot, assign_frontages, subdivide_block
from .river import River, generate_river
from .road_generator import build_tensor_field, generate_road_network
from .roads import RoadGraph
from .streamline import Streamline
from .tensor import TensorField


@dataclass
class CityLayout:
    """Result of a generation run."""

    config: CityConfig
    tensor_field: TensorField
    river: River
    streamlines: List[Streamline]
    graph: RoadGraph
    lots: CityLots
    planned_lots: List[PlannedLot]
    metadata: Dict[str, Any] = field(default_factory=dict)


class CityLayoutGenerator:
    """Generate a road network and planned lots from a tensor field."""

    def __init__(self, config: Optional[CityConfig] = None, seed: Optional[int] = None):
        """
        Initialize generator.

        Args:
            config: Generation configuration (defaults if None)
            seed: Master seed (uses config.seed if None); river and lot
                planning are reseeded from it
        """
        config = config if config is not None else CityConfig()
        # The master seed drives every stochastic stage
        config = config.with_seed(config.seed if seed is None else seed)
        config.validate()
        self.config = config

        self._reset()

    def _reset(self) -> None:
        self.river = River()
        self.tensor_field = TensorField()
        self.graph = RoadGraph()
        self.streamlines: List[Streamline] = []
        self.lots = CityLots()
        self.planned_lots: List[PlannedLot] = []

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    def generate(self) -> CityLayout:
        """
        Generate the full layout.

        Returns:
            CityLayout holding every stage's output
        """
        self._reset()

        if self.config.river.enabled:
            self._log("Generating river...")
            self.river = generate_river(self.config.river)
            self._log(f"River generated with {len(self.river.centerline)} centerline points")

        self._log("Building tensor field...")
        self.tensor_field = build_tensor_field(self.config.roads, self.river)
        self._log(f"Tensor field has {len(self.tensor_field)} basis fields")

        self._log("Tracing streamlines...")
        self.graph, self.streamlines = generate_road_network(
            self.tensor_field, self.config.roads, self.river
        )
        bridges = sum(1 for edge in self.graph.edges() if edge.crosses_water)
        self._log(f"Generated {self.graph.node_count()} nodes, "
                  f"{self.graph.edge_count()} edges ({bridges} bridges) "
                  f"from {len(self.streamlines)} streamlines")

        self._log("Extracting buildable lots...")
        self.lots = CityLots(
            lots=extract_lots(self.graph, self.config.blocks, self.river),
            extracted=True,
        )
        self._log(f"Found {len(self.lots)} buildable lots")

        self._log("Subdividing oversized lots...")
        self.lots.lots = self._subdivide(self.lots.lots)
        frontage = assign_frontages(
            self.lots.lots,
            self.graph,
            self.config.blocks.road_clearance + self.config.blocks.grid_cell_size,
            self.config.blocks.road_sample_spacing,
        )
        self._log(f"{len(self.lots)} lots after subdivision, {frontage} facing a street")

        self._log("Planning zoning and growth targets for open lots...")
        self.planned_lots = plan_lots(self.lots.lots, self.graph, self.config.lots)
        summary = summarize_plans(self.planned_lots)
        self._log(f"Zones: {summary['zones']}")

        self._log("Generation complete!")

        metadata = {
            "seed": self.config.seed,
            "streamlines": len(self.streamlines),
            "nodes": self.graph.node_count(),
            "edges": self.graph.edge_count(),
            "bridges": bridges,
            "lots": len(self.lots),
            "frontage": frontage,
            "plan_summary": summary,
        }

        return CityLayout(
            config=self.config,
            tensor_field=self.tensor_field,
            river=self.river,
            streamlines=self.streamlines,
            graph=self.graph,
            lots=self.lots,
            planned_lots=self.planned_lots,
            metadata=metadata,
        )

    def _subdivide(self, lots: List[Lot]) -> List[Lot]:
        max_area = self.config.subdivision.max_lot_area
        result: List[Lot] = []
        for lot in lots:
            if lot.area <= max_area:
                result.append(lot)
            else:
                result.extend(subdivide_block(Block(lot.vertices), self.config.subdivision))
        return result

    def regenerate(self, seed: Optional[int] = None) -> CityLayout:
        """
        Discard the previous run and generate again.

        Args:
            seed: Optional new seed; keeps the current one if None
        """
        if seed is not None:
            self.config = self.config.with_seed(seed)
        return self.generate()
