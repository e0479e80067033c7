"""Layers that work on the room list of room-based recipes.

All of them need rooms and raise BuilderConfigurationError when the initial
layer produced none.
"""

from __future__ import annotations

import logging
import math
from enum import Enum, auto
from typing import TYPE_CHECKING

from delver.environment.generators.pipeline.layer import (
    BuilderConfigurationError,
    ModifierLayer,
    require_rooms,
)
from delver.environment.generators.spawner import spawn_room
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import distance_squared
from delver.util.dice import roll_dice
from delver.util.pathfinding import reachable_mask

from .area_based import clear_exits, place_distant_exit
from .common import Symmetry, apply_room_to_map, paint

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.util.coordinates import Rect
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class RoomSort(Enum):
    LEFTMOST = auto()
    RIGHTMOST = auto()
    TOPMOST = auto()
    BOTTOMMOST = auto()
    CENTRAL = auto()


class RoomSorter(ModifierLayer):
    """Reorder rooms, which changes how corridors chain them together."""

    def __init__(self, sort_by: RoomSort) -> None:
        self.sort_by = sort_by

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        match self.sort_by:
            case RoomSort.LEFTMOST:
                rooms.sort(key=lambda r: r.x1)
            case RoomSort.RIGHTMOST:
                rooms.sort(key=lambda r: r.x1, reverse=True)
            case RoomSort.TOPMOST:
                rooms.sort(key=lambda r: r.y1)
            case RoomSort.BOTTOMMOST:
                rooms.sort(key=lambda r: r.y2, reverse=True)
            case RoomSort.CENTRAL:
                map_center = (data.width // 2, data.height // 2)
                rooms.sort(key=lambda r: distance_squared(r.center(), map_center))


class RoomDrawer(ModifierLayer):
    """Carve planned rooms: mostly rectangles, one in four a circle."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        for room in rooms:
            if roll_dice(rng, 1, 4) == 1:
                self._circle(data.game_map, room)
            else:
                apply_room_to_map(data.game_map, room)
            data.take_snapshot()

    @staticmethod
    def _circle(game_map: GameMap, room: Rect) -> None:
        radius = min(room.width, room.height) / 2.0
        center_x, center_y = room.center()
        for y in range(max(room.y1, 2), min(room.y2, game_map.height - 2) + 1):
            for x in range(max(room.x1, 2), min(room.x2, game_map.width - 2) + 1):
                if math.hypot(x - center_x, y - center_y) <= radius:
                    game_map.tiles[x, y] = TileTypeID.FLOOR


class RoomExploder(ModifierLayer):
    """Send a handful of short random diggers out of each room's centre."""

    def __init__(self, lifetime: int = 20) -> None:
        self.lifetime = lifetime

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        game_map = data.game_map
        for room in rooms:
            diggers = roll_dice(rng, 1, 20) - 5
            for _ in range(max(diggers, 0)):
                x, y = room.center()
                for _ in range(self.lifetime):
                    paint(game_map, Symmetry.NONE, 1, x, y)
                    match roll_dice(rng, 1, 4):
                        case 1:
                            if x > 2:
                                x -= 1
                        case 2:
                            if x < game_map.width - 2:
                                x += 1
                        case 3:
                            if y > 2:
                                y -= 1
                        case _:
                            if y < game_map.height - 2:
                                y += 1
            data.take_snapshot()


class RoomCornerRounder(ModifierLayer):
    """Fill in room corners that stick out into solid rock."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        game_map = data.game_map
        for room in rooms:
            corners = [
                (room.x1 + 1, room.y1 + 1),
                (room.x2, room.y1 + 1),
                (room.x1 + 1, room.y2),
                (room.x2, room.y2),
            ]
            for x, y in corners:
                self._fill_if_corner(game_map, x, y)
            data.take_snapshot()

    @staticmethod
    def _fill_if_corner(game_map: GameMap, x: int, y: int) -> None:
        if not (0 < x < game_map.width - 1 and 0 < y < game_map.height - 1):
            return
        neighbours = [(x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)]
        walls = sum(
            1 for nx, ny in neighbours if game_map.tiles[nx, ny] == TileTypeID.WALL
        )
        if walls == 2:
            game_map.tiles[x, y] = TileTypeID.WALL


class RoomBasedStartingPosition(ModifierLayer):
    """Start the player at the centre of the first room."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        if not rooms:
            raise BuilderConfigurationError(
                "RoomBasedStartingPosition found no rooms to start in"
            )
        data.starting_position = rooms[0].center()


class RoomBasedStairs(ModifierLayer):
    """Put the down stairs at the centre of the last room.

    With a single room the last room is also the first, so the stairs would
    land on the start; the most distant reachable tile is used instead. The
    same fallback applies when the last room cannot be reached from the start.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        if not rooms:
            raise BuilderConfigurationError("RoomBasedStairs found no rooms")
        stairs = rooms[-1].center()
        start = data.starting_position
        if stairs == start:
            logger.debug("Last room holds the start; placing a distant exit")
            place_distant_exit(data, self)
            return
        if start is not None and not reachable_mask(data.game_map, start)[stairs]:
            logger.debug("Last room is cut off from the start; placing a distant exit")
            place_distant_exit(data, self)
            return
        game_map = data.game_map
        clear_exits(game_map)
        game_map.tiles[stairs] = TileTypeID.DOWN_STAIRS
        game_map.populate_blocked()


class RoomBasedSpawner(ModifierLayer):
    """Populate every room except the first, where the player starts."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        rooms = require_rooms(data, self)
        for room in rooms[1:]:
            spawn_room(data, rng, room)
