#!/usr/bin/env python3
"""
Example script for generating a city layout.

Usage:
    python generate_city.py --seed 7 --output ./output_city
    python generate_city.py --config custom_config.json --plot
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from city_layout_generator import CityConfig, CityLayoutGenerator, solve_zoning
from city_layout_generator.export import LayoutExporter


def main():
    parser = argparse.ArgumentParser(
        description="Generate a tensor-field city layout"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config JSON (optional)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the configured seed"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="./outputs",
        help="Output directory"
    )
    parser.add_argument(
        "--no-river",
        action="store_true",
        help="Disable river generation"
    )
    parser.add_argument(
        "--zoning-grid",
        type=int,
        default=0,
        help="Also solve an N x N WFC zoning grid"
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save a PNG overview of the layout"
    )

    args = parser.parse_args()

    if args.config:
        print(f"Loading config from {args.config}")
        config = CityConfig.from_json(args.config)
    else:
        print("Using default configuration")
        config = CityConfig()

    if args.seed is not None:
        config = config.with_seed(args.seed)
    if args.no_river:
        config.river.enabled = False

    try:
        config.validate()
    except ValueError as e:
        print(f"✗ Invalid configuration: {e}")
        return 1

    print(f"\n{'='*60}")
    print("City Layout Generator")
    print(f"{'='*60}")
    print(f"Seed: {config.seed}")
    print(f"City Size: {config.roads.city_size}m")
    print(f"River: {'on' if config.river.enabled else 'off'}")
    print(f"Output: {args.output}")
    print(f"{'='*60}\n")

    print("Step 1: Generating layout...")
    print("-" * 60)

    generator = CityLayoutGenerator(config)
    layout = generator.generate()

    print("-" * 60)
    print("✓ Generation complete!")
    print(f"  - Streamlines: {layout.metadata['streamlines']}")
    print(f"  - Nodes: {layout.metadata['nodes']}")
    print(f"  - Edges: {layout.metadata['edges']}")
    print(f"  - Bridges: {layout.metadata['bridges']}")
    print(f"  - Lots: {layout.metadata['lots']}")
    print()

    print("Step 2: Exporting results...")
    output_dir = Path(args.output)
    prefix = f"city_{config.seed}"
    LayoutExporter(config).export(layout, str(output_dir), prefix=prefix)

    if args.zoning_grid > 0:
        print(f"Step 3: Solving {args.zoning_grid}x{args.zoning_grid} zoning grid...")
        zones = solve_zoning(args.zoning_grid, args.zoning_grid, config.seed)
        if zones is None:
            print("✗ Zoning solver hit a contradiction on every attempt")
        else:
            print(f"✓ Solved {len(zones)} cells")

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from city_layout_generator.visualization import plot_layout, plot_zone_grid

        fig = plot_layout(layout)
        fig.savefig(output_dir / f"{prefix}_layout.png", dpi=150)
        plt.close(fig)

        if args.zoning_grid > 0 and zones is not None:
            fig, ax = plt.subplots(figsize=(6, 6))
            plot_zone_grid(zones, args.zoning_grid, args.zoning_grid, ax=ax)
            fig.savefig(output_dir / f"{prefix}_zoning.png", dpi=150)
            plt.close(fig)

    print(f"\n{'='*60}")
    print("✓ All done!")
    print(f"{'='*60}")
    print(f"\nResults saved to: {output_dir}/")
    print(f"  - {prefix}_nodes.geojson")
    print(f"  - {prefix}_edges.geojson")
    print(f"  - {prefix}_lots.geojson")
    print(f"  - {prefix}_metrics.json")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
