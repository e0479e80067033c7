"""Tests for level caching and revisits."""

from __future__ import annotations

import numpy as np

from delver.environment.dungeon import MasterDungeonMap, find_tile, generate_level
from delver.environment.map import GameMap
from delver.environment.tile_types import TileTypeID
from delver.util.rng import RNGProvider
from tests.helpers import map_from_rows


def generate(depth: int, dungeon_map: MasterDungeonMap, raws, **kwargs):
    rng = RNGProvider("burrow1").for_depth(depth)
    return generate_level(depth, rng, 80, 50, raws, dungeon_map, **kwargs)


class TestMasterDungeonMap:
    def test_stores_copies(self) -> None:
        dungeon_map = MasterDungeonMap()
        game_map = GameMap(3, 10, 10)
        dungeon_map.store_map(game_map)
        game_map.tiles[5, 5] = TileTypeID.FLOOR

        stored = dungeon_map.get_map(3)
        assert stored is not None
        assert stored.tiles[5, 5] == TileTypeID.WALL

    def test_get_returns_a_fresh_copy(self) -> None:
        dungeon_map = MasterDungeonMap()
        dungeon_map.store_map(GameMap(3, 10, 10))

        first = dungeon_map.get_map(3)
        first.tiles[1, 1] = TileTypeID.FLOOR
        assert dungeon_map.get_map(3).tiles[1, 1] == TileTypeID.WALL

    def test_lookup(self) -> None:
        dungeon_map = MasterDungeonMap()
        dungeon_map.store_map(GameMap(2, 10, 10))
        assert 2 in dungeon_map
        assert 3 not in dungeon_map
        assert len(dungeon_map) == 1
        assert dungeon_map.get_map(3) is None


class TestFindTile:
    def test_first_in_scan_order(self) -> None:
        game_map = map_from_rows(["#####", "#..>#", "#>..#", "#####"])
        assert find_tile(game_map, TileTypeID.DOWN_STAIRS) == (3, 1)

    def test_missing(self) -> None:
        game_map = map_from_rows(["###", "#.#", "###"])
        assert find_tile(game_map, TileTypeID.DOWN_STAIRS) is None


class TestGenerateLevel:
    def test_town_start_is_not_stairs(self, raws) -> None:
        level = generate(1, MasterDungeonMap(), raws)
        assert level.game_map.tiles[level.starting_position] != TileTypeID.UP_STAIRS

    def test_lower_levels_start_on_up_stairs(self, raws) -> None:
        dungeon_map = MasterDungeonMap()
        level = generate(2, dungeon_map, raws)

        assert level.game_map.tiles[level.starting_position] == TileTypeID.UP_STAIRS
        assert level.spawn_list
        assert 2 in dungeon_map

    def test_revisit_returns_stored_level(self, raws) -> None:
        dungeon_map = MasterDungeonMap()
        first = generate(2, dungeon_map, raws)
        again = generate(2, dungeon_map, raws)

        np.testing.assert_array_equal(again.game_map.tiles, first.game_map.tiles)
        assert again.starting_position == first.starting_position
        assert again.spawn_list == []

    def test_climbing_back_arrives_on_down_stairs(self, raws) -> None:
        dungeon_map = MasterDungeonMap()
        first = generate(2, dungeon_map, raws)
        back = generate(2, dungeon_map, raws, arriving_from_below=True)

        assert back.starting_position == find_tile(
            first.game_map, TileTypeID.DOWN_STAIRS
        )
        assert back.game_map.tiles[back.starting_position] == TileTypeID.DOWN_STAIRS
