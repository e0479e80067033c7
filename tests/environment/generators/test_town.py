"""Tests for the surface town."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from delver.environment.dungeon import find_tile
from delver.environment.generators.pipeline import BuilderConfigurationError
from delver.environment.generators.pipeline.layers import TownBuilder
from delver.environment.generators.pipeline.layers.doors import DOOR_KEY
from delver.environment.generators.pipeline.layers.town import (
    RANKED_ROLES,
    Building,
    BuildingTag,
)
from delver.environment.tile_types import TileTypeID
from delver.util.pathfinding import UNREACHABLE, compute_distance_map
from tests.helpers import empty_data, seeded


def build_town(seed: int, **kwargs):
    data = empty_data(80, 50)
    TownBuilder(**kwargs).build(data, seeded(seed))
    return data


def carve_building(data, building: Building) -> None:
    tiles = data.game_map.tiles
    x, y, w, h = building.x, building.y, building.width, building.height
    tiles[x : x + w, y : y + h] = TileTypeID.WALL
    tiles[x + 1 : x + w - 1, y + 1 : y + h - 1] = TileTypeID.WOOD_FLOOR
    data.game_map.populate_blocked()


# =============================================================================
# Layout
# =============================================================================


class TestTownLayout:
    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_one_exit_on_the_main_road(self, seed: int) -> None:
        data = build_town(seed)
        game_map = data.game_map

        assert game_map.count(TileTypeID.DOWN_STAIRS) == 1
        exit_x, exit_y = find_tile(game_map, TileTypeID.DOWN_STAIRS)
        assert exit_x == 75
        assert game_map.tiles[exit_x - 1, exit_y] == TileTypeID.ROAD

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_start_in_the_pub_and_exit_reachable(self, seed: int) -> None:
        data = build_town(seed)
        game_map = data.game_map
        start = data.starting_position

        assert game_map.tiles[start] == TileTypeID.WOOD_FLOOR
        dist = compute_distance_map(game_map, start)
        exit_pos = find_tile(game_map, TileTypeID.DOWN_STAIRS)
        assert dist[exit_pos] != UNREACHABLE

    def test_west_edge_is_deep_water(self) -> None:
        data = build_town(4)
        assert (data.game_map.tiles[0, :] == TileTypeID.DEEP_WATER).all()

    def test_town_is_outdoors(self) -> None:
        data = build_town(4)
        assert data.game_map.outdoors

    def test_same_seed_same_town(self) -> None:
        first, second = build_town(7), build_town(7)
        np.testing.assert_array_equal(first.game_map.tiles, second.game_map.tiles)
        assert first.spawn_list == second.spawn_list
        assert first.starting_position == second.starting_position

    def test_too_small_for_a_town(self) -> None:
        data = empty_data(60, 30)
        with pytest.raises(BuilderConfigurationError):
            TownBuilder().build(data, seeded(1))

    def test_no_buildings_starts_on_road(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            data = build_town(5, max_attempts=0)

        game_map = data.game_map
        assert "no buildings" in caplog.text
        assert game_map.count(TileTypeID.WOOD_FLOOR) == 0
        assert data.starting_position[0] == 40
        assert game_map.tiles[data.starting_position] == TileTypeID.ROAD


# =============================================================================
# Spawns
# =============================================================================


class TestTownSpawns:
    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_intents_are_valid(self, seed: int) -> None:
        data = build_town(seed)
        indices = [idx for idx, _ in data.spawn_list]
        walkable = data.game_map.walkable.ravel(order="F")

        assert len(indices) == len(set(indices))
        assert data.start_index() not in indices
        assert all(walkable[idx] for idx in indices)

    def test_pub_has_a_barkeep(self) -> None:
        data = build_town(2)
        keys = [key for _, key in data.spawn_list]
        assert "Barkeep" in keys
        assert DOOR_KEY in keys


# =============================================================================
# Building helpers
# =============================================================================


class TestBuildings:
    def test_building_geometry(self) -> None:
        building = Building(10, 4, 6, 5)
        assert building.area == 30
        assert building.center() == (13, 6)
        interior = list(building.interior())
        assert interior[0] == (11, 5)
        assert interior[-1] == (14, 7)
        assert len(interior) == 4 * 3

    def test_roles_by_size(self) -> None:
        buildings = [Building(0, 0, 5, 5 + i) for i in range(8)]
        TownBuilder._assign_roles(buildings)

        assert [b.tag for b in buildings[:6]] == list(RANKED_ROLES)
        assert buildings[0].height == 12
        assert buildings[6].tag is BuildingTag.HOVEL
        assert buildings[7].tag is BuildingTag.ABANDONED

    def test_few_buildings_get_ranked_roles_only(self) -> None:
        buildings = [Building(0, 0, 5, 5), Building(0, 0, 6, 6)]
        TownBuilder._assign_roles(buildings)
        assert [b.tag for b in buildings] == [BuildingTag.PUB, BuildingTag.TEMPLE]

    def test_doors_face_the_road(self) -> None:
        data = empty_data(40, 40)
        below = Building(10, 25, 6, 5)
        above = Building(20, 5, 6, 5)
        for building in (below, above):
            carve_building(data, building)

        doors = TownBuilder._add_doors(data, seeded(1), [below, above], 18)

        (below_x, below_y), (above_x, above_y) = doors
        assert below_y == 25 and 12 <= below_x <= 14
        assert above_y == 9 and 22 <= above_x <= 24
        tiles = data.game_map.tiles
        assert tiles[below_x, below_y] == TileTypeID.FLOOR
        assert tiles[above_x, above_y] == TileTypeID.FLOOR
        assert [key for _, key in data.spawn_list] == [DOOR_KEY, DOOR_KEY]

    def test_furnishing_stops_when_floor_runs_out(self) -> None:
        data = empty_data(20, 20)
        pub = Building(2, 2, 5, 5, tag=BuildingTag.PUB)
        carve_building(data, pub)

        TownBuilder._furnish(data, seeded(1), pub)

        assert len(data.spawn_list) == 9
        assert data.spawn_list[0][1] == "Barkeep"
        inside = {data.game_map.xy_idx(x, y) for x, y in pub.interior()}
        assert {idx for idx, _ in data.spawn_list} == inside

    def test_abandoned_building_only_has_rats(self) -> None:
        data = empty_data(30, 30)
        shack = Building(2, 2, 12, 12, tag=BuildingTag.ABANDONED)
        carve_building(data, shack)

        for seed in range(5):
            TownBuilder._furnish(data, seeded(seed), shack)

        assert {key for _, key in data.spawn_list} <= {"Rat"}

    def test_furnishing_skips_the_start(self) -> None:
        data = empty_data(20, 20)
        house = Building(2, 2, 5, 5, tag=BuildingTag.PLAYER_HOUSE)
        carve_building(data, house)
        data.starting_position = house.center()

        TownBuilder._furnish(data, seeded(1), house)

        assert data.start_index() not in {idx for idx, _ in data.spawn_list}
        assert len(data.spawn_list) == 5
