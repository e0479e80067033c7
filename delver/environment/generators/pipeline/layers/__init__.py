"""Generation layers for the builder chain.

Each layer plays one or both roles:
- Initial layers: lay down a whole grid (rooms, caves, mazes, prefabs, town)
- Room modifiers: sort, draw, join and reshape the rooms of room-based maps
- Placement layers: choose the start and exit, and cull unreachable tiles
- Spawn layers: plan entity spawns over rooms, corridors or Voronoi regions
- Finishing layers: resynthesis, prefabs, doors and decorators
"""

from .area_based import (
    AreaEndingPosition,
    AreaStartingPosition,
    CullUnreachable,
    DistantExit,
    XEnd,
    XStart,
    YEnd,
    YStart,
)
from .cellular_automata import CellularAutomataBuilder
from .corridors import (
    BspCorridors,
    CorridorSpawner,
    DoglegCorridors,
    NearestCorridors,
    StraightLineCorridors,
)
from .decorators import CaveDecorator, CaveTransition, YellowBrickRoad
from .dla import DLABuilder
from .doors import DoorPlacement
from .drunkard import DrunkardsWalkBuilder
from .maze import MazeBuilder
from .prefabs import PrefabBuilder
from .room_modifiers import (
    RoomBasedSpawner,
    RoomBasedStairs,
    RoomBasedStartingPosition,
    RoomCornerRounder,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
)
from .rooms import BspDungeonBuilder, BspInteriorBuilder, SimpleMapBuilder
from .spawning import VoronoiSpawning
from .town import TownBuilder
from .voronoi import VoronoiCellBuilder
from .waveform_collapse import WaveformCollapseBuilder

__all__ = [
    "AreaEndingPosition",
    "AreaStartingPosition",
    "BspCorridors",
    "BspDungeonBuilder",
    "BspInteriorBuilder",
    "CaveDecorator",
    "CaveTransition",
    "CellularAutomataBuilder",
    "CorridorSpawner",
    "CullUnreachable",
    "DLABuilder",
    "DistantExit",
    "DoglegCorridors",
    "DoorPlacement",
    "DrunkardsWalkBuilder",
    "MazeBuilder",
    "NearestCorridors",
    "PrefabBuilder",
    "RoomBasedSpawner",
    "RoomBasedStairs",
    "RoomBasedStartingPosition",
    "RoomCornerRounder",
    "RoomDrawer",
    "RoomExploder",
    "RoomSort",
    "RoomSorter",
    "SimpleMapBuilder",
    "StraightLineCorridors",
    "TownBuilder",
    "VoronoiCellBuilder",
    "VoronoiSpawning",
    "WaveformCollapseBuilder",
    "XEnd",
    "XStart",
    "YEnd",
    "YStart",
    "YellowBrickRoad",
]
