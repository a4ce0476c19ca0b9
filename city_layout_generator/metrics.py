"""
Metrics computation for generated city layouts.
"""

from collections import Counter
from typing import TYPE_CHECKING, Dict, List

import networkx as nx

from .lot_engine import summarize_plans
from .roads import RoadGraph
from .utils import compute_entropy, compute_orientation_histogram, create_city_polygon

if TYPE_CHECKING:
    from .generator import CityLayout


class LayoutMetrics:
    """Compute road morphology and lot statistics."""

    @staticmethod
    def compute_node_density(graph: nx.Graph, city_size_m: float) -> float:
        """
        Compute node density (nodes per km²).

        Args:
            graph: NetworkX graph
            city_size_m: City extent in meters

        Returns:
            Node density
        """
        area_km2 = (city_size_m / 1000.0) ** 2
        if area_km2 <= 0:
            return 0.0
        return graph.number_of_nodes() / area_km2

    @staticmethod
    def compute_degree_distribution(graph: nx.Graph) -> Dict[int, int]:
        """Map node degree -> count."""
        degrees = [d for _, d in graph.degree()]
        return dict(Counter(degrees))

    @staticmethod
    def compute_dead_end_ratio(graph: nx.Graph) -> float:
        """
        Compute ratio of dead-end nodes (degree 1).

        Returns:
            Ratio [0, 1]
        """
        if graph.number_of_nodes() == 0:
            return 0.0

        dead_ends = sum(1 for _, d in graph.degree() if d == 1)
        return dead_ends / graph.number_of_nodes()

    @staticmethod
    def compute_segment_lengths(road_graph: RoadGraph) -> List[float]:
        """Polyline length of every road edge."""
        return [edge.length for edge in road_graph.edges()]

    @staticmethod
    def compute_road_morphology(
        road_graph: RoadGraph,
        city_size_m: float,
        num_orientation_bins: int = 18
    ) -> Dict:
        """
        Compute all road network metrics.

        Args:
            road_graph: Road graph
            city_size_m: City extent
            num_orientation_bins: Number of orientation bins

        Returns:
            Dict with all road metrics
        """
        simple = road_graph.to_networkx()

        segments = [
            (edge.points[i], edge.points[i + 1])
            for edge in road_graph.edges()
            for i in range(len(edge.points) - 1)
        ]
        bin_edges, orientation_counts = compute_orientation_histogram(
            segments, num_orientation_bins
        )

        return {
            "node_density": LayoutMetrics.compute_node_density(simple, city_size_m),
            "degree_distribution": LayoutMetrics.compute_degree_distribution(simple),
            "dead_end_ratio": LayoutMetrics.compute_dead_end_ratio(simple),
            "connected_components": nx.number_connected_components(simple),
            "segment_lengths": LayoutMetrics.compute_segment_lengths(road_graph),
            "bridge_count": sum(1 for edge in road_graph.edges() if edge.crosses_water),
            "orientation_histogram": {
                "bin_edges": bin_edges.tolist(),
                "counts": orientation_counts.tolist(),
                "entropy": compute_entropy(orientation_counts),
            },
        }

    @staticmethod
    def compute_all(layout: "CityLayout") -> Dict:
        """
        Compute road and lot metrics for a generated layout.

        Args:
            layout: Generation result

        Returns:
            Dict with 'roads' and 'lots' sections
        """
        planned = layout.planned_lots
        city_area = create_city_polygon(layout.config.blocks.city_half_size).area
        return {
            "roads": LayoutMetrics.compute_road_morphology(
                layout.graph, layout.config.roads.city_size
            ),
            "lots": {
                "count": len(layout.lots),
                "total_area": layout.lots.total_area(),
                "coverage": layout.lots.total_area() / city_area if city_area > 0 else 0.0,
                "mean_build_probability": (
                    sum(p.build_probability for p in planned) / len(planned) if planned else 0.0
                ),
                **summarize_plans(planned),
            },
        }
