"""Shared builders for generation tests.

Maps are drawn as lists of strings, one string per row:

    '#' wall    '.' floor    '>' down stairs    '~' shallow water
    '=' road    ',' gravel   '"' grass          '≈' deep water
"""

from __future__ import annotations

from random import Random

import numpy as np

from delver.environment.generators.pipeline.context import BuildData
from delver.environment.map import GameMap
from delver.environment.tile_types import TileTypeID
from delver.raws import RawMaster
from delver.util.pathfinding import UNREACHABLE, compute_distance_map

GLYPH_TILES = {
    "#": TileTypeID.WALL,
    ".": TileTypeID.FLOOR,
    ">": TileTypeID.DOWN_STAIRS,
    "~": TileTypeID.SHALLOW_WATER,
    "=": TileTypeID.ROAD,
    ",": TileTypeID.GRAVEL,
    '"': TileTypeID.GRASS,
    "≈": TileTypeID.DEEP_WATER,
}


def map_from_rows(rows: list[str], depth: int = 1) -> GameMap:
    game_map = GameMap(depth, len(rows[0]), len(rows))
    for y, row in enumerate(rows):
        for x, glyph in enumerate(row):
            game_map.tiles[x, y] = GLYPH_TILES[glyph]
    game_map.populate_blocked()
    return game_map


def data_from_rows(
    rows: list[str], raws: RawMaster | None = None, depth: int = 1
) -> BuildData:
    return BuildData(
        game_map=map_from_rows(rows, depth),
        raws=raws if raws is not None else RawMaster.empty(),
    )


def empty_data(
    width: int, height: int, raws: RawMaster | None = None, depth: int = 1
) -> BuildData:
    return BuildData.create_empty(
        depth, width, height, raws=raws if raws is not None else RawMaster.empty()
    )


def open_rows(width: int, height: int) -> list[str]:
    """A floor rectangle with a one-tile wall border."""
    inner = "#" + "." * (width - 2) + "#"
    return ["#" * width] + [inner] * (height - 2) + ["#" * width]


def unreachable_walkable(game_map: GameMap, start: tuple[int, int]) -> int:
    """How many walkable tiles cannot be reached from ``start``."""
    dist = compute_distance_map(game_map, start)
    return int(np.count_nonzero(game_map.walkable & (dist == UNREACHABLE)))


def seeded(seed: int) -> Random:
    return Random(seed)
