"""Levels the player has already visited, and how to get to a new one.

Levels are generated once. Going back to a depth returns the stored grid
instead of running its recipe again, so stairs and terrain stay where the
player left them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from delver.environment.generators.pipeline.factory import level_builder
from delver.environment.generators.pipeline.pipeline import GeneratedLevel
from delver.environment.tile_types import TileTypeID

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import MapHistory
    from delver.environment.map import GameMap
    from delver.raws import RawMaster
    from delver.types import Depth, WorldTilePos
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class MasterDungeonMap:
    """Every generated level, keyed by depth.

    Maps go in and come out as copies, so edits to a level in play never
    reach the stored version until it is stored again.
    """

    def __init__(self) -> None:
        self._maps: dict[Depth, GameMap] = {}

    def store_map(self, game_map: GameMap) -> None:
        self._maps[game_map.depth] = game_map.copy()

    def get_map(self, depth: Depth) -> GameMap | None:
        stored = self._maps.get(depth)
        return stored.copy() if stored is not None else None

    def __contains__(self, depth: object) -> bool:
        return depth in self._maps

    def __len__(self) -> int:
        return len(self._maps)


def find_tile(game_map: GameMap, tile: TileTypeID) -> WorldTilePos | None:
    """First tile of type ``tile`` in scan order, or None."""
    matches = np.flatnonzero(game_map.flat_tiles == tile)
    if matches.size == 0:
        return None
    return game_map.idx_xy(int(matches[0]))


def generate_level(
    depth: Depth,
    rng: RNG,
    width: int,
    height: int,
    raws: RawMaster | None,
    dungeon_map: MasterDungeonMap,
    arriving_from_below: bool = False,
    history: MapHistory | None = None,
) -> GeneratedLevel:
    """Return the level at ``depth``, generating it on the first visit.

    A stored level is returned as is: the player arrives on its up stairs,
    or on its down stairs when climbing back up from below. It carries no
    spawn intents, since its entities were spawned on the first visit.

    A new level is built with `level_builder`. Below the town, the start
    tile becomes up stairs. The finished map is stored before returning.
    """
    cached = dungeon_map.get_map(depth)
    if cached is not None:
        arrival = (
            TileTypeID.DOWN_STAIRS if arriving_from_below else TileTypeID.UP_STAIRS
        )
        logger.debug(f"Depth {depth} already generated; reusing it")
        return GeneratedLevel(
            game_map=cached,
            starting_position=find_tile(cached, arrival),
            spawn_list=[],
        )

    chain = level_builder(depth, rng, width, height, raws=raws, history=history)
    chain.build_map(rng)
    level = chain.to_generated_level()
    if depth > 1 and level.starting_position is not None:
        level.game_map.tiles[level.starting_position] = TileTypeID.UP_STAIRS
        level.game_map.populate_blocked()

    dungeon_map.store_map(level.game_map)
    return level
