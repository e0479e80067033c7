"""Level generation for Delver.

Levels are built by composing layers in a builder chain:
- BuilderChain: runs one initial layer, then modifiers in order
- level_builder: picks the recipe for a depth

Plus the pieces other layers lean on:
- spawn_room / spawn_region: depth-scaled spawn planning over an area
- WFCSolver: generic Wave Function Collapse solver
- WFCPattern: pattern definition with adjacency rules
"""

from .pipeline import (
    BuildData,
    BuilderChain,
    BuilderConfigurationError,
    GeneratedLevel,
    MapHistory,
    level_builder,
)
from .spawner import spawn_region, spawn_room
from .wfc_solver import (
    WFCContradiction,
    WFCPattern,
    WFCSolver,
)

__all__ = [
    "BuildData",
    "BuilderChain",
    "BuilderConfigurationError",
    "GeneratedLevel",
    "MapHistory",
    "WFCContradiction",
    "WFCPattern",
    "WFCSolver",
    "level_builder",
    "spawn_region",
    "spawn_room",
]
