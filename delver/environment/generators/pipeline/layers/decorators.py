"""Finishing layers that dress up a level for a particular setting."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import tcod.los

from delver.environment.generators.pipeline.context import MapHistory
from delver.environment.generators.pipeline.layer import ModifierLayer, require_start
from delver.environment.generators.pipeline.pipeline import BuilderChain
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import distance_squared
from delver.util.dice import roll_dice
from delver.util.pathfinding import find_path

from .area_based import clear_exits, nearest_walkable
from .common import draw_corridor
from .corridors import NearestCorridors
from .room_modifiers import (
    RoomBasedSpawner,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
)
from .rooms import BspDungeonBuilder

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.types import WorldTilePos
    from delver.util.coordinates import Rect
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class CaveDecorator(ModifierLayer):
    """Scatter gravel, pools and rock formations through a cave.

    Floor may turn to gravel (1 in 6) or, failing that, shallow water (1 in
    10). A wall with more than two wall neighbours becomes a deep pool; a
    wall with exactly one becomes a stalactite or stalagmite half the time.
    Neighbours are read from the map as it was before decorating. The level
    is marked as underground.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        old = game_map.tiles.copy(order="F")
        w, h = game_map.width, game_map.height

        for y in range(h):
            for x in range(w):
                tile = old[x, y]
                if tile == TileTypeID.FLOOR:
                    if roll_dice(rng, 1, 6) == 1:
                        game_map.tiles[x, y] = TileTypeID.GRAVEL
                    elif roll_dice(rng, 1, 10) == 1:
                        game_map.tiles[x, y] = TileTypeID.SHALLOW_WATER
                elif tile == TileTypeID.WALL:
                    neighbours = 0
                    if x > 0 and old[x - 1, y] == TileTypeID.WALL:
                        neighbours += 1
                    if x < w - 2 and old[x + 1, y] == TileTypeID.WALL:
                        neighbours += 1
                    if y > 0 and old[x, y - 1] == TileTypeID.WALL:
                        neighbours += 1
                    if y < h - 2 and old[x, y + 1] == TileTypeID.WALL:
                        neighbours += 1

                    if neighbours > 2:
                        game_map.tiles[x, y] = TileTypeID.DEEP_WATER
                    elif neighbours == 1:
                        match roll_dice(rng, 1, 4):
                            case 1:
                                game_map.tiles[x, y] = TileTypeID.STALACTITE
                            case 2:
                                game_map.tiles[x, y] = TileTypeID.STALAGMITE

        game_map.populate_blocked()
        data.take_snapshot()
        game_map.outdoors = False


class CaveTransition(ModifierLayer):
    """Replace the right half of a cave with a room-and-corridor dungeon.

    A nested builder chain lays out the dungeon on a map of the same size.
    Its right half is copied over, and a corridor is cut from the cave to
    the leftmost dungeon room so both halves join. Cave spawns stay on the
    left and dungeon spawns stay on the right.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        w = game_map.width
        half = w // 2

        inner = BuilderChain(
            data.depth,
            w,
            game_map.height,
            game_map.name,
            raws=data.raws,
            history=MapHistory() if data.history is not None else None,
        )
        inner.start_with(BspDungeonBuilder())
        inner.with_modifier(RoomDrawer())
        inner.with_modifier(RoomSorter(RoomSort.RIGHTMOST))
        inner.with_modifier(NearestCorridors())
        inner.with_modifier(RoomExploder())
        inner.with_modifier(RoomBasedSpawner())
        inner_data = inner.build_map(rng)

        if data.history is not None and inner_data.history is not None:
            data.history.extend(inner_data.history)

        game_map.tiles[half:, :] = inner_data.game_map.tiles[half:, :]
        data.take_snapshot()

        data.spawn_list = [
            (idx, key) for idx, key in data.spawn_list if idx % w < half
        ]
        data.spawn_list.extend(
            (idx, key) for idx, key in inner_data.spawn_list if idx % w > half
        )

        self._join_halves(game_map, inner_data.rooms or [], half)
        game_map.populate_blocked()
        data.take_snapshot()

    @staticmethod
    def _join_halves(game_map: GameMap, rooms: list[Rect], half: int) -> None:
        right_rooms = [room for room in rooms if room.center()[0] >= half]
        if not right_rooms:
            logger.debug("No dungeon room on the right half to join")
            return
        target = min(right_rooms, key=lambda r: r.center()[0]).center()

        game_map.populate_blocked()
        left = game_map.walkable.copy()
        left[half:, :] = False
        if not left.any():
            logger.debug("No cave floor on the left half to join")
            return
        candidates = [
            (x, y) for x in range(half) for y in range(game_map.height) if left[x, y]
        ]
        source = min(
            candidates,
            key=lambda p: (distance_squared(p, target), p[1] * game_map.width + p[0]),
        )
        draw_corridor(game_map, source[0], source[1], target[0], target[1])


class YellowBrickRoad(ModifierLayer):
    """Lay a road from the start to an exit on the east side, plus a stream.

    The road follows the cheapest walkable path and is three tiles wide. The
    stream runs corner to corner along a walkable path, turning plain floor
    into shallow water, so it never changes what is reachable.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        start = require_start(data, self)
        game_map = data.game_map
        w, h = game_map.width, game_map.height

        clear_exits(game_map)
        end = nearest_walkable(game_map, (w - 2, h // 2), exclude=start)
        if end is None:
            logger.debug("No tile for the road to lead to")
            return

        steps = find_path(game_map, start, end)
        if not steps:
            logger.debug("No walkable route for the road; cutting straight through")
            steps = [tuple(p) for p in tcod.los.bresenham(start, end).tolist()]
        path = [start, *steps]
        for x, y in path:
            for px, py in ((x, y), (x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)):
                self._paint_road(game_map, px, py)
        game_map.tiles[end] = TileTypeID.DOWN_STAIRS
        game_map.populate_blocked()
        data.take_snapshot()

        if roll_dice(rng, 1, 2) == 1:
            stream_from, stream_to = (w - 1, 1), (0, h - 1)
        else:
            stream_from, stream_to = (w - 1, h - 1), (0, 1)
        self._lay_stream(game_map, stream_from, stream_to)
        data.take_snapshot()

    @staticmethod
    def _paint_road(game_map: GameMap, x: int, y: int) -> None:
        if not (0 < x < game_map.width - 1 and 0 < y < game_map.height - 1):
            return
        if game_map.tiles[x, y] != TileTypeID.DOWN_STAIRS:
            game_map.tiles[x, y] = TileTypeID.ROAD

    @staticmethod
    def _lay_stream(
        game_map: GameMap, seed_from: WorldTilePos, seed_to: WorldTilePos
    ) -> None:
        source = nearest_walkable(game_map, seed_from)
        target = nearest_walkable(game_map, seed_to)
        if source is None or target is None or source == target:
            return
        for x, y in [source, *find_path(game_map, source, target)]:
            if game_map.tiles[x, y] == TileTypeID.FLOOR:
                game_map.tiles[x, y] = TileTypeID.SHALLOW_WATER
        game_map.populate_blocked()
