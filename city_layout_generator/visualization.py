"""
Visualization utilities for generated layouts.
"""

from typing import Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Polygon as PolygonPatch
from matplotlib.patches import Rectangle

from .generator import CityLayout
from .lot_engine import PlannedLot, ZoneType
from .river import River
from .roads import RoadGraph, RoadType
from .tensor import TensorField
from .zoning import WfcZone

ZONE_COLORS: Dict[ZoneType, str] = {
    ZoneType.RESIDENTIAL: '#F4D03F',
    ZoneType.COMMERCIAL: '#3498DB',
    ZoneType.INDUSTRIAL: '#7F8C8D',
    ZoneType.CIVIC: '#9B59B6',
    ZoneType.GREEN: '#27AE60',
}

WFC_COLORS: Dict[WfcZone, str] = {
    WfcZone.RESIDENTIAL: '#F4D03F',
    WfcZone.COMMERCIAL: '#3498DB',
    WfcZone.INDUSTRIAL: '#7F8C8D',
    WfcZone.PARK: '#27AE60',
    WfcZone.CIVIC: '#9B59B6',
    WfcZone.EMPTY: '#FDFEFE',
}

_ROAD_LINEWIDTH = {
    RoadType.HIGHWAY: 2.5,
    RoadType.MAJOR: 1.6,
    RoadType.MINOR: 0.9,
    RoadType.ALLEY: 0.5,
}


def _draw_city_bounds(ax: plt.Axes, city_size: float) -> None:
    half = city_size / 2.0
    ax.add_patch(Rectangle(
        (-half, -half), city_size, city_size,
        fill=False, edgecolor='gray', linestyle='--', linewidth=1
    ))
    ax.set_xlim(-half - 10, half + 10)
    ax.set_ylim(-half - 10, half + 10)


def plot_road_graph(
    graph: RoadGraph,
    city_size: float = 500,
    ax: Optional[plt.Axes] = None,
    title: str = "Road Network",
    node_size: float = 8,
    edge_color: str = '#2C3E50',
    bridge_color: str = '#E67E22',
    show_nodes: bool = True
) -> plt.Axes:
    """
    Plot the road network.

    Args:
        graph: Road graph
        city_size: City extent (for bounds)
        ax: Matplotlib axis (creates new if None)
        title: Plot title
        node_size: Node marker size
        edge_color: Road color
        bridge_color: Color for edges that cross water
        show_nodes: Draw node markers

    Returns:
        Matplotlib axis
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    _draw_city_bounds(ax, city_size)

    for edge in graph.edges():
        if len(edge.points) < 2:
            continue
        pts = np.asarray(edge.points)
        ax.plot(
            pts[:, 0], pts[:, 1],
            color=bridge_color if edge.crosses_water else edge_color,
            linewidth=_ROAD_LINEWIDTH[edge.road_type], zorder=2
        )

    if show_nodes:
        node_positions = np.array([node.position for _, node in graph.nodes()])
        if len(node_positions) > 0:
            ax.scatter(
                node_positions[:, 0], node_positions[:, 1],
                s=node_size, c='#E74C3C', zorder=3,
                edgecolors='black', linewidths=0.3
            )

    ax.set_aspect('equal')
    ax.set_title(title, fontsize=12, fontweight='bold')
    ax.set_xlabel('X (meters)')
    ax.set_ylabel('Y (meters)')
    ax.grid(True, alpha=0.3)

    return ax


def plot_river(river: River, ax: plt.Axes, color: str = '#5DADE2') -> plt.Axes:
    """Fill the area between the river banks."""
    if river.is_empty():
        return ax
    outline = list(river.left_bank) + list(reversed(river.right_bank))
    ax.add_patch(PolygonPatch(outline, closed=True, facecolor=color, edgecolor='none',
                              alpha=0.6, zorder=0))
    return ax


def plot_lots(
    planned_lots: Sequence[PlannedLot],
    ax: Optional[plt.Axes] = None,
    title: str = "Planned Lots",
    alpha: float = 0.8
) -> plt.Axes:
    """
    Plot planned lots colored by zone.

    Args:
        planned_lots: Planned lots
        ax: Matplotlib axis (creates new if None)
        title: Plot title
        alpha: Fill opacity

    Returns:
        Matplotlib axis
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    for planned in planned_lots:
        if len(planned.lot.vertices) < 3:
            continue
        ax.add_patch(PolygonPatch(
            planned.lot.vertices, closed=True,
            facecolor=ZONE_COLORS[planned.zone], edgecolor='none',
            alpha=alpha, zorder=1
        ))

    handles = [Rectangle((0, 0), 1, 1, color=c) for c in ZONE_COLORS.values()]
    ax.legend(handles, [z.value for z in ZONE_COLORS], loc='upper right', fontsize=8)
    ax.set_aspect('equal')
    ax.autoscale_view()
    ax.set_title(title, fontsize=12, fontweight='bold')

    return ax


def plot_zone_grid(
    zones: List[Optional[WfcZone]],
    width: int,
    height: int,
    ax: Optional[plt.Axes] = None,
    title: str = "WFC Zoning"
) -> plt.Axes:
    """
    Plot a row-major WFC zone grid; uncollapsed cells are drawn black.

    Args:
        zones: Solver result
        width: Grid columns
        height: Grid rows
        ax: Matplotlib axis (creates new if None)
        title: Plot title

    Returns:
        Matplotlib axis
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 6))

    for idx, zone in enumerate(zones):
        x, y = idx % width, idx // width
        color = WFC_COLORS[zone] if zone is not None else 'black'
        ax.add_patch(Rectangle((x, y), 1, 1, facecolor=color, edgecolor='#BDC3C7', linewidth=0.5))

    ax.set_xlim(0, width)
    ax.set_ylim(0, height)
    ax.set_aspect('equal')
    ax.set_title(title, fontsize=12, fontweight='bold')

    return ax


def plot_tensor_field(
    field: TensorField,
    city_size: float = 500,
    resolution: int = 25,
    ax: Optional[plt.Axes] = None,
    title: str = "Tensor Field",
    show_minor: bool = False
) -> plt.Axes:
    """
    Plot major (and optionally minor) eigenvector crosses on a regular grid.

    Args:
        field: Tensor field
        city_size: City extent
        resolution: Samples per axis
        ax: Matplotlib axis (creates new if None)
        title: Plot title
        show_minor: Also draw minor eigenvectors

    Returns:
        Matplotlib axis
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))

    half = city_size / 2.0
    coords = np.linspace(-half, half, resolution)
    xs, ys = np.meshgrid(coords, coords)
    xs, ys = xs.ravel(), ys.ravel()

    majors = np.array([field.sample((x, y)).major() for x, y in zip(xs, ys)])
    quiver_kw = dict(angles='xy', pivot='middle', headwidth=0, headlength=0, headaxislength=0)
    ax.quiver(xs, ys, majors[:, 0], majors[:, 1], color='#C0392B', **quiver_kw)
    if show_minor:
        minors = np.array([field.sample((x, y)).minor() for x, y in zip(xs, ys)])
        ax.quiver(xs, ys, minors[:, 0], minors[:, 1], color='#2980B9', **quiver_kw)

    _draw_city_bounds(ax, city_size)
    ax.set_aspect('equal')
    ax.set_title(title, fontsize=12, fontweight='bold')

    return ax


def plot_layout(layout: CityLayout, figsize=(16, 8)) -> plt.Figure:
    """
    Side-by-side overview: tensor field and roads, then zoned lots.

    Args:
        layout: Generation result
        figsize: Figure size

    Returns:
        Matplotlib figure
    """
    city_size = layout.config.roads.city_size
    fig, (ax_roads, ax_lots) = plt.subplots(1, 2, figsize=figsize)

    plot_tensor_field(layout.tensor_field, city_size, ax=ax_roads, title="Roads")
    plot_river(layout.river, ax_roads)
    plot_road_graph(layout.graph, city_size, ax=ax_roads, title="Roads")

    plot_river(layout.river, ax_lots)
    plot_lots(layout.planned_lots, ax=ax_lots, title=f"Lots ({len(layout.planned_lots)})")
    plot_road_graph(layout.graph, city_size, ax=ax_lots, title=f"Lots ({len(layout.planned_lots)})",
                    show_nodes=False, edge_color='#566573')

    plt.tight_layout()
    return fig
