"""Spawn planning: turning areas of a level into (tile, entity key) intents.

Both entry points draw a depth-scaled count of entities from the raws' spawn
table and scatter them over distinct tiles of the given area. A tile is only
eligible if it is walkable, is not the starting position, and has no intent
on it yet, so intents never stack.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delver import config
from delver.raws import NO_SPAWN
from delver.util.dice import roll_dice

if TYPE_CHECKING:
    from collections.abc import Iterable

    from delver.types import TileIndex
    from delver.util.coordinates import Rect
    from delver.util.rng import RNG

    from .pipeline.context import BuildData

logger = logging.getLogger(__name__)


def spawn_count(rng: RNG, depth: int, max_spawns: int = config.MAX_SPAWNS) -> int:
    """How many entities an area gets before clamping to its size.

    Deeper levels are busier; shallow levels often get none.
    """
    return max(0, roll_dice(rng, 1, max_spawns + 3) + (depth - 1) - 3)


def eligible_tiles(data: BuildData, area: Iterable[TileIndex]) -> list[TileIndex]:
    """Filter ``area`` down to tiles a new spawn intent may use, keeping order."""
    game_map = data.game_map
    game_map.populate_blocked()
    occupied = data.spawned_indices()
    start_idx = data.start_index()
    blocked = game_map.blocked.ravel(order="F")

    eligible: list[TileIndex] = []
    seen: set[TileIndex] = set()
    for idx in area:
        if idx in seen or idx in occupied or idx == start_idx:
            continue
        if not 0 <= idx < game_map.tile_count or blocked[idx]:
            continue
        seen.add(idx)
        eligible.append(idx)
    return eligible


def spawn_region(data: BuildData, rng: RNG, area: Iterable[TileIndex]) -> int:
    """Add spawn intents to tiles in ``area``.

    Returns:
        The number of intents added (table draws of "None" add nothing).
    """
    table = data.raws.get_spawn_table_for_depth(data.depth)
    candidates = eligible_tiles(data, area)
    num_spawns = min(len(candidates), spawn_count(rng, data.depth))

    added = 0
    for _ in range(num_spawns):
        pick = roll_dice(rng, 1, len(candidates)) - 1
        idx = candidates.pop(pick)
        key = table.roll(rng)
        if key == NO_SPAWN:
            continue
        data.add_spawn(idx, key)
        added += 1
    return added


def spawn_room(data: BuildData, rng: RNG, room: Rect) -> int:
    """Add spawn intents inside a room's carved interior."""
    game_map = data.game_map
    area = [
        game_map.xy_idx(x, y)
        for x, y in room.interior()
        if game_map.in_bounds(x, y)
    ]
    return spawn_region(data, rng, area)
