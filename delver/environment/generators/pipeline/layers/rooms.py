"""Room-producing initial layers.

- SimpleMapBuilder: random non-overlapping rectangles
- BspDungeonBuilder: rooms sampled from a recursive four-way space split
- BspInteriorBuilder: a building interior fully divided into rooms

Simple and BSP-dungeon layers only *plan* rooms; a RoomDrawer must carve them
and a corridor layer must connect them. BSP interior carves and connects its
rooms itself, because its rooms share walls and need no further drawing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from delver import config
from delver.environment.generators.pipeline.layer import InitialLayer
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import Rect
from delver.util.dice import roll_dice

from .common import draw_corridor

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.util.rng import RNG


class SimpleMapBuilder(InitialLayer):
    """Scatter rectangles at random, keeping those that overlap nothing."""

    def __init__(
        self,
        max_rooms: int = config.SIMPLE_MAX_ROOMS,
        min_size: int = config.SIMPLE_MIN_ROOM_SIZE,
        max_size: int = config.SIMPLE_MAX_ROOM_SIZE,
    ) -> None:
        self.max_rooms = max_rooms
        self.min_size = min_size
        self.max_size = max_size

    def build(self, data: BuildData, rng: RNG) -> None:
        rooms: list[Rect] = []
        for _ in range(self.max_rooms):
            w = rng.randint(self.min_size, self.max_size - 1)
            h = rng.randint(self.min_size, self.max_size - 1)
            x = roll_dice(rng, 1, data.width - w - 1) - 1
            y = roll_dice(rng, 1, data.height - h - 1) - 1
            new_room = Rect(x, y, w, h)
            if not any(new_room.intersects(other) for other in rooms):
                rooms.append(new_room)
        data.rooms = rooms


class BspDungeonBuilder(InitialLayer):
    """Binary-space-partition style room placement.

    Keeps a pool of candidate rects, starting with the whole map. Each attempt
    picks a rect, samples a small room inside it, and keeps the room if it
    stays two tiles clear of the map edge and of every accepted room; the
    host rect is then split into quarters which join the pool.
    """

    def __init__(self, attempts: int = config.BSP_DUNGEON_ATTEMPTS) -> None:
        self.attempts = attempts

    def build(self, data: BuildData, rng: RNG) -> None:
        rooms: list[Rect] = []
        rects: list[Rect] = []
        first_room = Rect(2, 2, data.width - 5, data.height - 5)
        rects.append(first_room)
        self._add_subrects(rects, first_room)

        for _ in range(self.attempts):
            if len(rects) == 1:
                rect = rects[0]
            else:
                rect = rects[roll_dice(rng, 1, len(rects)) - 1]
            candidate = self._random_sub_rect(rect, rng)
            if self._is_possible(candidate, data.game_map, rooms):
                rooms.append(candidate)
                self._add_subrects(rects, rect)

        data.rooms = rooms

    @staticmethod
    def _add_subrects(rects: list[Rect], rect: Rect) -> None:
        half_w = max(rect.width // 2, 1)
        half_h = max(rect.height // 2, 1)
        rects.append(Rect(rect.x1, rect.y1, half_w, half_h))
        rects.append(Rect(rect.x1, rect.y1 + half_h, half_w, half_h))
        rects.append(Rect(rect.x1 + half_w, rect.y1, half_w, half_h))
        rects.append(Rect(rect.x1 + half_w, rect.y1 + half_h, half_w, half_h))

    @staticmethod
    def _random_sub_rect(rect: Rect, rng: RNG) -> Rect:
        w = max(3, roll_dice(rng, 1, max(min(abs(rect.width), 10), 1)) - 1) + 1
        h = max(3, roll_dice(rng, 1, max(min(abs(rect.height), 10), 1)) - 1) + 1
        x = rect.x1 + roll_dice(rng, 1, 6) - 1
        y = rect.y1 + roll_dice(rng, 1, 6) - 1
        return Rect(x, y, w, h)

    @staticmethod
    def _is_possible(candidate: Rect, game_map: GameMap, rooms: list[Rect]) -> bool:
        expanded = Rect.from_bounds(
            candidate.x1 - 2, candidate.y1 - 2, candidate.x2 + 2, candidate.y2 + 2
        )
        if expanded.x1 < 1 or expanded.y1 < 1:
            return False
        if expanded.x2 > game_map.width - 2 or expanded.y2 > game_map.height - 2:
            return False
        if any(room.intersects(expanded) for room in rooms):
            return False
        region = game_map.tiles[
            expanded.x1 : expanded.x2 + 1, expanded.y1 : expanded.y2 + 1
        ]
        return bool((region == TileTypeID.WALL).all())


class BspInteriorBuilder(InitialLayer):
    """Divide the whole map into adjoining rooms, like a building interior.

    Rooms are carved as they come out of the split and then chained together
    with corridors between random points of consecutive rooms.
    """

    def __init__(self, min_room_size: int = config.BSP_INTERIOR_MIN_ROOM_SIZE) -> None:
        self.min_room_size = min_room_size

    def build(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        rects: list[Rect] = []
        first_room = Rect(1, 1, data.width - 2, data.height - 2)
        rects.append(first_room)
        self._add_subrects(rects, first_room, rng)

        rooms = list(rects)
        for room in rooms:
            x1 = max(room.x1, 1)
            y1 = max(room.y1, 1)
            x2 = min(room.x2, game_map.width - 1)
            y2 = min(room.y2, game_map.height - 1)
            if x1 < x2 and y1 < y2:
                game_map.tiles[x1:x2, y1:y2] = TileTypeID.FLOOR
        data.take_snapshot()

        corridors: list[list[int]] = []
        for room, next_room in zip(rooms, rooms[1:], strict=False):
            start = self._random_point(room, rng)
            end = self._random_point(next_room, rng)
            corridors.append(draw_corridor(game_map, *start, *end))
        data.rooms = rooms
        data.corridors = corridors

    @staticmethod
    def _random_point(room: Rect, rng: RNG) -> tuple[int, int]:
        x = room.x1 + roll_dice(rng, 1, max(abs(room.width), 1)) - 1
        y = room.y1 + roll_dice(rng, 1, max(abs(room.height), 1)) - 1
        return x, y

    def _add_subrects(self, rects: list[Rect], rect: Rect, rng: RNG) -> None:
        # The parent is always the most recent rect; it gets replaced by its halves.
        if rects:
            rects.pop()

        width = rect.width
        height = rect.height
        half_width = width // 2
        half_height = height // 2

        if roll_dice(rng, 1, 4) <= 2:
            left = Rect(rect.x1, rect.y1, half_width - 1, height)
            rects.append(left)
            if half_width > self.min_room_size:
                self._add_subrects(rects, left, rng)
            right = Rect(rect.x1 + half_width, rect.y1, half_width, height)
            rects.append(right)
            if half_width > self.min_room_size:
                self._add_subrects(rects, right, rng)
        else:
            top = Rect(rect.x1, rect.y1, width, half_height - 1)
            rects.append(top)
            if half_height > self.min_room_size:
                self._add_subrects(rects, top, rng)
            bottom = Rect(rect.x1, rect.y1 + half_height, width, half_height)
            rects.append(bottom)
            if half_height > self.min_room_size:
                self._add_subrects(rects, bottom, rng)
