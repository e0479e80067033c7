"""A walled harbour town, the first level of every dungeon.

The town is laid out in stages, each recorded as a snapshot:

1. A grass field with a ragged shoreline of deep and shallow water along the
   west edge, crossed by a few wooden piers.
2. A wall around the town proper, broken by a gap where the main road runs
   east to west. Ground inside the walls is gravel.
3. Buildings on free gravel, outlined in wall, each with a door facing the
   main road and a road leading from the door to it.
4. The exit at the east end of the main road.
5. Roles by size (the largest building is the pub, where the player starts)
   and the furniture and people that go with each role.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np

from delver import config
from delver.environment.generators.pipeline.layer import (
    BuilderConfigurationError,
    InitialLayer,
)
from delver.environment.tile_types import TileTypeID
from delver.util.dice import Dice, roll_dice
from delver.util.pathfinding import find_path

from .area_based import nearest_in
from .doors import DOOR_KEY

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.types import EntityKey, WorldTilePos
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)

MIN_TOWN_WIDTH = 64
MIN_TOWN_HEIGHT = 24


class BuildingTag(Enum):
    PUB = auto()
    TEMPLE = auto()
    BLACKSMITH = auto()
    CLOTHIER = auto()
    ALCHEMIST = auto()
    PLAYER_HOUSE = auto()
    HOVEL = auto()
    ABANDONED = auto()


# Roles handed out largest building first. Everything after them is a hovel,
# except the smallest, which is abandoned.
RANKED_ROLES = (
    BuildingTag.PUB,
    BuildingTag.TEMPLE,
    BuildingTag.BLACKSMITH,
    BuildingTag.CLOTHIER,
    BuildingTag.ALCHEMIST,
    BuildingTag.PLAYER_HOUSE,
)

FURNISHINGS: dict[BuildingTag, tuple[EntityKey, ...]] = {
    BuildingTag.PUB: (
        "Barkeep",
        "Shady Salesman",
        "Keg",
        "Keg",
        "Table",
        "Chair",
        "Table",
        "Chair",
    ),
    BuildingTag.TEMPLE: ("Priest", "Altar", "Candle", "Candle"),
    BuildingTag.BLACKSMITH: (
        "Blacksmith",
        "Anvil",
        "Water Trough",
        "Weapon Rack",
        "Armor Stand",
    ),
    BuildingTag.CLOTHIER: ("Clothier", "Cabinet", "Table", "Loom", "Hide Rack"),
    BuildingTag.ALCHEMIST: (
        "Alchemist",
        "Chemistry Set",
        "Dead Thing",
        "Chair",
        "Table",
    ),
    BuildingTag.PLAYER_HOUSE: ("Mom", "Bed", "Cabinet", "Chair", "Table"),
    BuildingTag.HOVEL: ("Bed", "Chair", "Table"),
    BuildingTag.ABANDONED: (),
}

# Occupants rolled per building on top of the fixed furnishings.
CROWDS: dict[BuildingTag, tuple[EntityKey, Dice]] = {
    BuildingTag.PUB: ("Patron", Dice("1d4+1")),
    BuildingTag.TEMPLE: ("Parishioner", Dice("1d3")),
    BuildingTag.HOVEL: ("Peasant", Dice("1d2")),
}

DOCK_FOLK: tuple[EntityKey, ...] = ("Dock Worker", "Wannabe Pirate", "Fisher")
TOWNSFOLK: tuple[EntityKey, ...] = ("Peasant", "Drunk", "Townsperson", "Townsperson")


@dataclass
class Building:
    """A building footprint. The outer ring is wall, the rest wood floor."""

    x: int
    y: int
    width: int
    height: int
    tag: BuildingTag = BuildingTag.HOVEL

    @property
    def area(self) -> int:
        return self.width * self.height

    def center(self) -> WorldTilePos:
        return self.x + self.width // 2, self.y + self.height // 2

    def interior(self) -> Iterator[WorldTilePos]:
        """Yield the floor tiles inside the walls in scan order."""
        for y in range(self.y + 1, self.y + self.height - 1):
            for x in range(self.x + 1, self.x + self.width - 1):
                yield x, y


class TownBuilder(InitialLayer):
    """Lay out the surface town.

    The result is outdoors, and its only exit is the down stairs on the main
    road. Buildings are separated by at least one tile of open ground.
    """

    def __init__(
        self,
        max_buildings: int = config.TOWN_MAX_BUILDINGS,
        max_attempts: int = config.TOWN_BUILDING_ATTEMPTS,
    ) -> None:
        self.max_buildings = max_buildings
        self.max_attempts = max_attempts

    def build(self, data: BuildData, rng: RNG) -> None:
        w, h = data.width, data.height
        if w < MIN_TOWN_WIDTH or h < MIN_TOWN_HEIGHT:
            raise BuilderConfigurationError(
                f"A town needs at least {MIN_TOWN_WIDTH}x{MIN_TOWN_HEIGHT} tiles, "
                f"got {w}x{h}"
            )
        game_map = data.game_map
        game_map.tiles[:] = TileTypeID.GRASS
        data.take_snapshot()

        water_width = self._lay_water_and_piers(game_map, rng)
        data.take_snapshot()

        wall_gap_y, available = self._lay_town_walls(game_map, rng, water_width)
        data.take_snapshot()

        buildings = self._place_buildings(data, rng, available)
        doors = self._add_doors(data, rng, buildings, wall_gap_y)
        data.take_snapshot()

        self._lay_paths(game_map, doors)
        exit_pos = (w - 5, wall_gap_y)
        game_map.tiles[exit_pos] = TileTypeID.DOWN_STAIRS
        game_map.populate_blocked()
        data.take_snapshot()

        self._assign_roles(buildings)
        if buildings:
            data.starting_position = buildings[0].center()
        else:
            logger.warning("The town has no buildings; starting on the main road")
            data.starting_position = (w // 2, wall_gap_y)

        for building in buildings:
            self._furnish(data, rng, building)
        self._spawn_dock_folk(data, rng)
        self._spawn_townsfolk(data, rng)
        logger.debug(
            f"Town laid out with {len(buildings)} buildings and "
            f"{len(data.spawn_list)} spawn intents"
        )

    # -------------------------------------------------------------------------
    # Terrain
    # -------------------------------------------------------------------------

    @staticmethod
    def _lay_water_and_piers(game_map: GameMap, rng: RNG) -> list[int]:
        """Shoreline along the west edge. Returns the water width of each row."""
        h = game_map.height
        phase = roll_dice(rng, 1, 65535) / 65535
        water_width: list[int] = []
        for y in range(h):
            n_water = int(math.sin(phase) * 10.0) + 14 + roll_dice(rng, 1, 6)
            water_width.append(n_water)
            phase += 0.1
            game_map.tiles[: n_water - 3, y] = TileTypeID.DEEP_WATER
            game_map.tiles[n_water - 3 : n_water, y] = TileTypeID.SHALLOW_WATER

        for _ in range(roll_dice(rng, 1, 4) + 6):
            y = roll_dice(rng, 1, h) - 1
            start_x = 2 + roll_dice(rng, 1, 6)
            game_map.tiles[start_x : water_width[y] + 4, y] = TileTypeID.BRIDGE
        game_map.populate_blocked()
        return water_width

    @staticmethod
    def _lay_town_walls(
        game_map: GameMap, rng: RNG, water_width: list[int]
    ) -> tuple[int, np.ndarray]:
        """Wall in the town and run the main road through the gap.

        Returns:
            The row the road is centred on, and a mask of gravel tiles where
            buildings may go.
        """
        w, h = game_map.width, game_map.height
        wall_gap_y = roll_dice(rng, 1, h - 9) + 5
        available = np.zeros((w, h), dtype=bool, order="F")

        for y in range(1, h - 1):
            if wall_gap_y - 4 < y < wall_gap_y + 4:
                game_map.tiles[water_width[y] :, y] = TileTypeID.ROAD
                continue
            left = water_width[y] + 5
            game_map.tiles[left, y] = TileTypeID.WALL
            game_map.tiles[w - 2, y] = TileTypeID.WALL
            game_map.tiles[left + 1 : w - 2, y] = TileTypeID.GRAVEL
            if 2 < y < h - 3:
                available[left + 1 : w - 2, y] = True

        game_map.tiles[water_width[1] + 5 : w - 1, 1] = TileTypeID.WALL
        game_map.tiles[water_width[h - 2] + 5 : w - 1, h - 2] = TileTypeID.WALL
        game_map.populate_blocked()
        return wall_gap_y, available

    # -------------------------------------------------------------------------
    # Buildings
    # -------------------------------------------------------------------------

    def _place_buildings(
        self, data: BuildData, rng: RNG, available: np.ndarray
    ) -> list[Building]:
        game_map = data.game_map
        w, h = game_map.width, game_map.height
        buildings: list[Building] = []

        attempts = 0
        while len(buildings) < self.max_buildings and attempts < self.max_attempts:
            attempts += 1
            bx = roll_dice(rng, 1, w - 32) + 30
            by = roll_dice(rng, 1, h) - 2
            bw = roll_dice(rng, 1, 8) + 4
            bh = roll_dice(rng, 1, 8) + 4
            if by < 0 or bx + bw > w or by + bh > h:
                continue
            if not available[bx : bx + bw, by : by + bh].all():
                continue

            buildings.append(Building(bx, by, bw, bh))
            available[bx - 1 : bx + bw + 1, max(by - 1, 0) : by + bh + 1] = False
            game_map.tiles[bx : bx + bw, by : by + bh] = TileTypeID.WALL
            game_map.tiles[bx + 1 : bx + bw - 1, by + 1 : by + bh - 1] = (
                TileTypeID.WOOD_FLOOR
            )
            data.take_snapshot()

        if len(buildings) < self.max_buildings:
            logger.debug(
                f"Fitted {len(buildings)} of {self.max_buildings} buildings "
                f"in {attempts} attempts"
            )
        game_map.populate_blocked()
        return buildings

    @staticmethod
    def _add_doors(
        data: BuildData, rng: RNG, buildings: list[Building], wall_gap_y: int
    ) -> list[WorldTilePos]:
        """Cut a door in the wall of each building that faces the main road."""
        game_map = data.game_map
        doors: list[WorldTilePos] = []
        for building in buildings:
            door_x = building.x + 1 + roll_dice(rng, 1, building.width - 3)
            if building.center()[1] > wall_gap_y:
                door_y = building.y
            else:
                door_y = building.y + building.height - 1
            game_map.tiles[door_x, door_y] = TileTypeID.FLOOR
            data.add_spawn(game_map.xy_idx(door_x, door_y), DOOR_KEY)
            doors.append((door_x, door_y))
        game_map.populate_blocked()
        return doors

    @staticmethod
    def _lay_paths(game_map: GameMap, doors: list[WorldTilePos]) -> None:
        """Pave the cheapest route from every door to the nearest road."""
        for door in doors:
            target = nearest_in(game_map.tiles == TileTypeID.ROAD, door)
            steps = find_path(game_map, door, target)
            if not steps:
                logger.debug(f"No route from the door at {door} to the road")
                continue
            for x, y in steps:
                if game_map.tiles[x, y] in (TileTypeID.GRASS, TileTypeID.GRAVEL):
                    game_map.tiles[x, y] = TileTypeID.ROAD
        game_map.populate_blocked()

    @staticmethod
    def _assign_roles(buildings: list[Building]) -> None:
        """Sort ``buildings`` largest first and tag each with its role."""
        buildings.sort(key=lambda b: b.area, reverse=True)
        for i, building in enumerate(buildings):
            if i < len(RANKED_ROLES):
                building.tag = RANKED_ROLES[i]
            elif i == len(buildings) - 1:
                building.tag = BuildingTag.ABANDONED
            else:
                building.tag = BuildingTag.HOVEL

    # -------------------------------------------------------------------------
    # Spawns
    # -------------------------------------------------------------------------

    @staticmethod
    def _furnish(data: BuildData, rng: RNG, building: Building) -> None:
        game_map = data.game_map
        occupied = data.spawned_indices()
        start_idx = data.start_index()
        free = [
            idx
            for idx in (game_map.xy_idx(x, y) for x, y in building.interior())
            if game_map.flat_tiles[idx] == TileTypeID.WOOD_FLOOR
            and idx not in occupied
            and idx != start_idx
        ]

        if building.tag is BuildingTag.ABANDONED:
            for idx in free:
                if roll_dice(rng, 1, 8) == 1:
                    data.add_spawn(idx, "Rat")
            return

        to_place = list(FURNISHINGS[building.tag])
        if building.tag in CROWDS:
            key, crowd = CROWDS[building.tag]
            to_place.extend([key] * crowd.roll(rng))

        for key in to_place:
            if not free:
                logger.debug(f"No floor left in the {building.tag.name} for {key}")
                break
            idx = free.pop(roll_dice(rng, 1, len(free)) - 1)
            data.add_spawn(idx, key)

    @staticmethod
    def _spawn_dock_folk(data: BuildData, rng: RNG) -> None:
        flat = data.game_map.flat_tiles
        occupied = data.spawned_indices()
        for idx in np.flatnonzero(flat == TileTypeID.BRIDGE):
            idx = int(idx)
            if idx in occupied or roll_dice(rng, 1, 6) != 1:
                continue
            data.add_spawn(idx, DOCK_FOLK[roll_dice(rng, 1, len(DOCK_FOLK)) - 1])

    @staticmethod
    def _spawn_townsfolk(data: BuildData, rng: RNG) -> None:
        flat = data.game_map.flat_tiles
        occupied = data.spawned_indices()
        start_idx = data.start_index()
        outdoors = np.isin(
            flat, (TileTypeID.GRASS, TileTypeID.GRAVEL, TileTypeID.ROAD)
        )
        for idx in np.flatnonzero(outdoors):
            idx = int(idx)
            if idx in occupied or idx == start_idx or roll_dice(rng, 1, 50) != 1:
                continue
            data.add_spawn(idx, TOWNSFOLK[roll_dice(rng, 1, len(TOWNSFOLK)) - 1])
