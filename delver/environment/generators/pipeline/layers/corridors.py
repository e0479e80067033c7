"""Corridor layers for room-based recipes.

Every strategy records the tiles it carved in ``BuildData.corridors``, one
list per corridor, so later layers can put doors at corridor mouths or
spawn things along them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from delver.environment.generators.pipeline.layer import (
    BuilderConfigurationError,
    ModifierLayer,
    require_rooms,
)
from delver.environment.generators.spawner import spawn_region
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import distance_squared
from delver.util.dice import roll_dice

from .common import (
    apply_horizontal_tunnel,
    apply_vertical_tunnel,
    draw_corridor,
    draw_line_corridor,
)

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.types import TileIndex, WorldTilePos
    from delver.util.coordinates import Rect
    from delver.util.rng import RNG


def _nearest_unconnected(
    rooms: list[Rect], i: int, connected: set[int]
) -> int | None:
    """Index of the room whose centre is closest to room ``i``'s, if any."""
    center = rooms[i].center()
    best: int | None = None
    best_distance = 0
    for j, other in enumerate(rooms):
        if j == i or j in connected:
            continue
        d = distance_squared(center, other.center())
        if best is None or d < best_distance:
            best = j
            best_distance = d
    return best


class DoglegCorridors(ModifierLayer):
    """Join each room to the previous one with a single-bend corridor."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        game_map = data.game_map
        corridors: list[list[TileIndex]] = []
        for prev, room in zip(rooms, rooms[1:], strict=False):
            new_x, new_y = room.center()
            prev_x, prev_y = prev.center()
            if roll_dice(rng, 1, 2) == 1:
                corridor = apply_horizontal_tunnel(game_map, prev_x, new_x, prev_y)
                corridor += apply_vertical_tunnel(game_map, prev_y, new_y, new_x)
            else:
                corridor = apply_vertical_tunnel(game_map, prev_y, new_y, prev_x)
                corridor += apply_horizontal_tunnel(game_map, prev_x, new_x, new_y)
            corridors.append(corridor)
            data.take_snapshot()
        data.corridors = corridors


class NearestCorridors(ModifierLayer):
    """Join each room to the nearest room not yet processed.

    Rooms are visited in list order and each one links forward to a room that
    has not been visited, so every room chains through to the last one.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        game_map = data.game_map
        connected: set[int] = set()
        corridors: list[list[TileIndex]] = []
        for i, room in enumerate(rooms):
            j = _nearest_unconnected(rooms, i, connected)
            if j is not None:
                start_x, start_y = room.center()
                end_x, end_y = rooms[j].center()
                corridors.append(
                    draw_corridor(game_map, start_x, start_y, end_x, end_y)
                )
                data.take_snapshot()
            connected.add(i)
        data.corridors = corridors


class StraightLineCorridors(ModifierLayer):
    """Like NearestCorridors, but tunnels in a straight line."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        game_map = data.game_map
        connected: set[int] = set()
        corridors: list[list[TileIndex]] = []
        for i, room in enumerate(rooms):
            j = _nearest_unconnected(rooms, i, connected)
            if j is not None:
                corridors.append(
                    draw_line_corridor(game_map, room.center(), rooms[j].center())
                )
                data.take_snapshot()
            connected.add(i)
        data.corridors = corridors


class BspCorridors(ModifierLayer):
    """Join consecutive rooms between random floor points inside each."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        game_map = data.game_map
        corridors: list[list[TileIndex]] = []
        for room, next_room in zip(rooms, rooms[1:], strict=False):
            start_x, start_y = self._random_floor_point(game_map, room, rng)
            end_x, end_y = self._random_floor_point(game_map, next_room, rng)
            corridors.append(draw_corridor(game_map, start_x, start_y, end_x, end_y))
            data.take_snapshot()
        data.corridors = corridors

    @staticmethod
    def _random_floor_point(game_map: GameMap, room: Rect, rng: RNG) -> WorldTilePos:
        floor = [
            (x, y)
            for x, y in room.interior()
            if game_map.in_bounds(x, y) and game_map.tiles[x, y] == TileTypeID.FLOOR
        ]
        if not floor:
            return room.center()
        return floor[roll_dice(rng, 1, len(floor)) - 1]


class CorridorSpawner(ModifierLayer):
    """Draw from the spawn table along every recorded corridor."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        if data.corridors is None:
            raise BuilderConfigurationError(
                "CorridorSpawner requires a builder with corridors"
            )
        for corridor in data.corridors:
            spawn_region(data, rng, corridor)
