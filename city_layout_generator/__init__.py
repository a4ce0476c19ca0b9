"""
Tensor-Field City Layout Generator

Procedurally derives a city's road network, buildable lots and zoning from a
composable tensor field, deterministically from an integer seed.
"""

__version__ = "0.1.0"

from .config import CityConfig
from .generator import CityLayout, CityLayoutGenerator
from .history import AddEdge, AddNode, AddNodeAndEdge, EditHistory
from .roads import RoadGraph
from .tensor import Tensor, TensorField
from .zoning import WfcSolver, solve_zoning

__all__ = [
    "CityConfig",
    "CityLayout",
    "CityLayoutGenerator",
    "AddEdge",
    "AddNode",
    "AddNodeAndEdge",
    "EditHistory",
    "RoadGraph",
    "Tensor",
    "TensorField",
    "WfcSolver",
    "solve_zoning",
]
