"""
Export of generated layouts to GeoJSON and metrics JSON.
"""

import json
from pathlib import Path
from typing import Any, Dict

import numpy as np
from shapely.geometry import LineString, Point, mapping

from .config import CityConfig
from .generator import CityLayout
from .metrics import LayoutMetrics
from .utils import to_shapely_polygon


class LayoutExporter:
    """Write a generated layout to disk for inspection in GIS tools."""

    def __init__(self, config: CityConfig):
        """
        Initialize exporter.

        Args:
            config: Configuration the layout was generated with
        """
        self.config = config

    def export(self, layout: CityLayout, output_dir: str, prefix: str = "city") -> Dict[str, Path]:
        """
        Export nodes, edges, lots and metrics.

        Args:
            layout: Generation result
            output_dir: Output directory (created if missing)
            prefix: Filename prefix

        Returns:
            Mapping of output kind -> written file path
        """
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        if self.config.verbose:
            print("Exporting GeoJSON...")
        written = {
            "nodes": self._write(output_path / f"{prefix}_nodes.geojson", self._nodes_geojson(layout)),
            "edges": self._write(output_path / f"{prefix}_edges.geojson", self._edges_geojson(layout)),
            "lots": self._write(output_path / f"{prefix}_lots.geojson", self._lots_geojson(layout)),
        }

        if self.config.verbose:
            print("Exporting metrics...")
        metrics = LayoutMetrics.compute_all(layout)
        lengths = metrics["roads"].pop("segment_lengths")
        metrics["roads"]["segment_length_stats"] = {
            "mean": float(np.mean(lengths)) if lengths else 0,
            "median": float(np.median(lengths)) if lengths else 0,
            "std": float(np.std(lengths)) if lengths else 0,
        }
        metrics_data = {
            "metadata": layout.metadata,
            "config": layout.config.to_dict(),
            "metrics": metrics,
        }
        written["metrics"] = self._write(output_path / f"{prefix}_metrics.json", metrics_data, indent=2)

        if self.config.verbose:
            print(f"Export complete. Results in {output_dir}/")
        return written

    @staticmethod
    def _write(path: Path, data: Dict[str, Any], indent=None) -> Path:
        with open(path, 'w') as f:
            json.dump(data, f, indent=indent)
        return path

    @staticmethod
    def _nodes_geojson(layout: CityLayout) -> Dict[str, Any]:
        graph = layout.graph
        features = []
        for idx, node in graph.nodes():
            features.append({
                "type": "Feature",
                "geometry": mapping(Point(node.position)),
                "properties": {
                    "node_id": int(idx),
                    "node_type": node.node_type.value,
                    "degree": graph.node_degree(idx),
                },
            })
        return {"type": "FeatureCollection", "features": features}

    @staticmethod
    def _edges_geojson(layout: CityLayout) -> Dict[str, Any]:
        features = []
        for idx, a, b, edge in layout.graph.edge_items():
            if len(edge.points) < 2:
                continue
            features.append({
                "type": "Feature",
                "geometry": mapping(LineString(edge.points)),
                "properties": {
                    "edge_id": int(idx),
                    "u": int(a),
                    "v": int(b),
                    "road_type": edge.road_type.value,
                    "length": float(edge.length),
                    "crosses_water": edge.crosses_water,
                },
            })
        return {"type": "FeatureCollection", "features": features}

    @staticmethod
    def _lots_geojson(layout: CityLayout) -> Dict[str, Any]:
        features = []
        for i, planned in enumerate(layout.planned_lots):
            polygon = to_shapely_polygon(planned.lot.vertices)
            if polygon is None:
                continue
            frontage = planned.lot.frontage
            features.append({
                "type": "Feature",
                "geometry": mapping(polygon),
                "properties": {
                    "lot_id": i,
                    "area": float(planned.lot.area),
                    "zone": planned.zone.value,
                    "density": planned.density.value,
                    "sunlight": planned.environment.sunlight,
                    "greenery": planned.environment.greenery,
                    "noise": planned.environment.noise,
                    "build_probability": planned.build_probability,
                    "next_review_in_days": planned.next_review_in_days,
                    "frontage_edge": frontage.edge_index if frontage else None,
                    "street_width": frontage.street_width if frontage else None,
                },
            })
        return {"type": "FeatureCollection", "features": features}
