"""Recipes: which layers build the level at a given depth.

`level_builder` is the single entry point used by the rest of the package.
The first five depths have hand-tuned recipes; everything deeper is rolled
by `random_builder` from the full catalogue of layers. Every recipe is a
plain function returning an unbuilt BuilderChain, so callers decide when to
run it and against which random stream.

The dice rolled here consume the same stream the chain is later built with,
so a fixed stream always yields the same recipe and the same level.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from delver.util.dice import roll_dice

from .layers.area_based import (
    AreaEndingPosition,
    AreaStartingPosition,
    CullUnreachable,
    DistantExit,
    XEnd,
    XStart,
    YEnd,
    YStart,
)
from .layers.cellular_automata import CellularAutomataBuilder
from .layers.corridors import (
    BspCorridors,
    CorridorSpawner,
    DoglegCorridors,
    NearestCorridors,
    StraightLineCorridors,
)
from .layers.decorators import CaveDecorator, CaveTransition, YellowBrickRoad
from .layers.dla import DLABuilder
from .layers.doors import DoorPlacement
from .layers.drunkard import DrunkardsWalkBuilder
from .layers.maze import MazeBuilder
from .layers.prefab_data import ORC_CAMP, ORC_WARREN, UNDERGROUND_FORT
from .layers.prefabs import PrefabBuilder
from .layers.room_modifiers import (
    RoomBasedSpawner,
    RoomBasedStairs,
    RoomBasedStartingPosition,
    RoomCornerRounder,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
)
from .layers.rooms import BspDungeonBuilder, BspInteriorBuilder, SimpleMapBuilder
from .layers.spawning import VoronoiSpawning
from .layers.town import TownBuilder
from .layers.voronoi import VoronoiCellBuilder
from .layers.waveform_collapse import WaveformCollapseBuilder
from .pipeline import BuilderChain

if TYPE_CHECKING:
    from delver.raws import RawMaster
    from delver.types import Depth
    from delver.util.rng import RNG

    from .context import MapHistory
    from .layer import InitialLayer

logger = logging.getLogger(__name__)

type Recipe = Callable[..., BuilderChain]


def random_start_position(rng: RNG) -> tuple[XStart, YStart]:
    match roll_dice(rng, 1, 3):
        case 1:
            x = XStart.LEFT
        case 2:
            x = XStart.CENTER
        case _:
            x = XStart.RIGHT

    match roll_dice(rng, 1, 3):
        case 1:
            y = YStart.BOTTOM
        case 2:
            y = YStart.CENTER
        case _:
            y = YStart.TOP

    return x, y


# =============================================================================
# FIXED RECIPES
# =============================================================================


def town_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    chain = BuilderChain(
        depth, width, height, "The Town of Bracketon", raws=raws, history=history
    )
    chain.start_with(TownBuilder())
    chain.with_modifier(CullUnreachable())
    return chain


def forest_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    """Open woodland with a road running east to the exit."""
    chain = BuilderChain(
        depth, width, height, "Into the Woods", raws=raws, history=history
    )
    chain.start_with(CellularAutomataBuilder())
    chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(AreaStartingPosition(XStart.LEFT, YStart.CENTER))
    chain.with_modifier(VoronoiSpawning())
    chain.with_modifier(YellowBrickRoad())
    chain.with_modifier(CullUnreachable())
    return chain


def limestone_cavern_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    chain = BuilderChain(
        depth, width, height, "Limestone Caverns", raws=raws, history=history
    )
    chain.start_with(DrunkardsWalkBuilder.winding_passages())
    chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(AreaStartingPosition(XStart.LEFT, YStart.CENTER))
    chain.with_modifier(VoronoiSpawning())
    chain.with_modifier(DistantExit())
    chain.with_modifier(CaveDecorator())
    return chain


def limestone_deep_cavern_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    """Branching caves around an orc camp.

    The camp is stamped before culling and exit placement, so neither the
    camp walls nor its spawns can cut the start off from the stairs.
    """
    chain = BuilderChain(
        depth, width, height, "Deep Limestone Caverns", raws=raws, history=history
    )
    chain.start_with(DLABuilder.central_attractor())
    chain.with_modifier(AreaStartingPosition(XStart.LEFT, YStart.TOP))
    chain.with_modifier(PrefabBuilder.sectional(ORC_CAMP))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(VoronoiSpawning())
    chain.with_modifier(DistantExit())
    chain.with_modifier(CaveDecorator())
    return chain


def limestone_transition_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    """Caves on the west giving way to dwarven halls on the east."""
    chain = BuilderChain(
        depth,
        width,
        height,
        "Dwarf Fort - Upper Reaches",
        raws=raws,
        history=history,
    )
    chain.start_with(CellularAutomataBuilder())
    chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(AreaStartingPosition(XStart.LEFT, YStart.CENTER))
    chain.with_modifier(VoronoiSpawning())
    chain.with_modifier(CaveDecorator())
    chain.with_modifier(CaveTransition())
    chain.with_modifier(AreaStartingPosition(XStart.LEFT, YStart.CENTER))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(AreaEndingPosition(XEnd.RIGHT, YEnd.CENTER))
    return chain


# =============================================================================
# RANDOM RECIPES
# =============================================================================


def random_room_builder(rng: RNG, chain: BuilderChain) -> None:
    """Rooms joined by corridors, with a start, an exit and spawns."""
    build_roll = roll_dice(rng, 1, 3)
    match build_roll:
        case 1:
            chain.start_with(SimpleMapBuilder())
        case 2:
            chain.start_with(BspDungeonBuilder())
        case _:
            chain.start_with(BspInteriorBuilder())

    # BSP interiors carve their own rooms and doorways.
    if build_roll != 3:
        match roll_dice(rng, 1, 5):
            case 1:
                chain.with_modifier(RoomSorter(RoomSort.LEFTMOST))
            case 2:
                chain.with_modifier(RoomSorter(RoomSort.RIGHTMOST))
            case 3:
                chain.with_modifier(RoomSorter(RoomSort.TOPMOST))
            case 4:
                chain.with_modifier(RoomSorter(RoomSort.BOTTOMMOST))
            case _:
                chain.with_modifier(RoomSorter(RoomSort.CENTRAL))

        chain.with_modifier(RoomDrawer())

        match roll_dice(rng, 1, 4):
            case 1:
                chain.with_modifier(DoglegCorridors())
            case 2:
                chain.with_modifier(NearestCorridors())
            case 3:
                chain.with_modifier(StraightLineCorridors())
            case _:
                chain.with_modifier(BspCorridors())

        if roll_dice(rng, 1, 2) == 1:
            chain.with_modifier(CorridorSpawner())

        match roll_dice(rng, 1, 6):
            case 1:
                chain.with_modifier(RoomExploder())
            case 2:
                chain.with_modifier(RoomCornerRounder())

    if roll_dice(rng, 1, 2) == 1:
        chain.with_modifier(RoomBasedStartingPosition())
    else:
        chain.with_modifier(AreaStartingPosition(*random_start_position(rng)))

    if roll_dice(rng, 1, 2) == 1:
        chain.with_modifier(RoomBasedStairs())
    else:
        chain.with_modifier(DistantExit())

    if roll_dice(rng, 1, 2) == 1:
        chain.with_modifier(RoomBasedSpawner())
    else:
        chain.with_modifier(VoronoiSpawning())


def random_shape_starter(rng: RNG) -> InitialLayer:
    match roll_dice(rng, 1, 16):
        case 1:
            return CellularAutomataBuilder()
        case 2:
            return DrunkardsWalkBuilder.open_area()
        case 3:
            return DrunkardsWalkBuilder.open_halls()
        case 4:
            return DrunkardsWalkBuilder.winding_passages()
        case 5:
            return DrunkardsWalkBuilder.fat_passages()
        case 6:
            return DrunkardsWalkBuilder.fearful_symmetry()
        case 7:
            return MazeBuilder()
        case 8:
            return DLABuilder.walk_inwards()
        case 9:
            return DLABuilder.walk_outwards()
        case 10:
            return DLABuilder.central_attractor()
        case 11:
            return DLABuilder.insectoid()
        case 12:
            return VoronoiCellBuilder.pythagoras()
        case 13:
            return VoronoiCellBuilder.manhattan()
        case _:
            return PrefabBuilder.constant(ORC_WARREN)


def random_shape_builder(rng: RNG, chain: BuilderChain) -> None:
    """A roomless layout, culled around its centre, with a start and exit."""
    chain.start_with(random_shape_starter(rng))

    chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(AreaStartingPosition(*random_start_position(rng)))

    chain.with_modifier(VoronoiSpawning())
    chain.with_modifier(DistantExit())


def random_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    """Roll a recipe from the whole layer catalogue.

    Half the time the level is built from rooms, otherwise from one of the
    shape generators. A third of levels are then resynthesized with WFC,
    one in twenty gets an underground fort, and every level gets doors,
    a chance of vaults and a final cull so stamping never strands a tile.
    """
    chain = BuilderChain(depth, width, height, "New Map", raws=raws, history=history)
    if roll_dice(rng, 1, 2) == 1:
        random_room_builder(rng, chain)
    else:
        random_shape_builder(rng, chain)

    if roll_dice(rng, 1, 3) == 1:
        chain.with_modifier(WaveformCollapseBuilder())
        chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
        chain.with_modifier(CullUnreachable())
        chain.with_modifier(AreaStartingPosition(*random_start_position(rng)))
        chain.with_modifier(VoronoiSpawning())
        chain.with_modifier(DistantExit())

    if roll_dice(rng, 1, 20) == 1:
        chain.with_modifier(PrefabBuilder.sectional(UNDERGROUND_FORT))
        chain.with_modifier(CullUnreachable())
        chain.with_modifier(DistantExit())

    chain.with_modifier(DoorPlacement())
    chain.with_modifier(PrefabBuilder.vaults())
    chain.with_modifier(CullUnreachable())
    return chain


# =============================================================================
# SELECTION
# =============================================================================

RECIPES: dict[str, Recipe] = {
    "town": town_builder,
    "forest": forest_builder,
    "limestone_cavern": limestone_cavern_builder,
    "limestone_deep_cavern": limestone_deep_cavern_builder,
    "limestone_transition": limestone_transition_builder,
    "random": random_builder,
}

DEPTH_RECIPES: dict[Depth, Recipe] = {
    1: town_builder,
    2: forest_builder,
    3: limestone_cavern_builder,
    4: limestone_deep_cavern_builder,
    5: limestone_transition_builder,
}


def level_builder(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    """Pick the recipe for ``depth`` and return its unbuilt chain."""
    recipe = DEPTH_RECIPES.get(depth, random_builder)
    logger.info(f"Depth {depth}: using {recipe.__name__}")
    return recipe(depth, rng, width, height, raws=raws, history=history)


def recipe_builder(
    name: str,
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None = None,
    history: MapHistory | None = None,
) -> BuilderChain:
    """Build the chain for a recipe by name, at any depth.

    Raises:
        ValueError: If ``name`` is not one of ``RECIPES``.
    """
    try:
        recipe = RECIPES[name]
    except KeyError:
        raise ValueError(
            f"Unknown recipe {name!r}; expected one of {', '.join(RECIPES)}"
        ) from None
    return recipe(depth, rng, width, height, raws=raws, history=history)
