"""Tests for spawn planning, region spawning and door placement."""

from __future__ import annotations

import pytest

from delver.environment.generators.pipeline.layers import (
    DoorPlacement,
    VoronoiSpawning,
)
from delver.environment.generators.pipeline.layers.doors import DOOR_KEY
from delver.environment.generators.spawner import (
    eligible_tiles,
    spawn_count,
    spawn_region,
    spawn_room,
)
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import Rect
from tests.helpers import data_from_rows, empty_data, open_rows, seeded

CORRIDOR_ROWS = [
    "##########",
    "#..####..#",
    "#........#",
    "#..####..#",
    "##########",
]
# Tiles (3, 2) .. (6, 2): the corridor between the two rooms.
CHOKEPOINTS = {23, 24, 25, 26}


def assert_valid_intents(data) -> None:
    indices = [idx for idx, _ in data.spawn_list]
    assert len(indices) == len(set(indices))
    walkable = data.game_map.walkable.ravel(order="F")
    assert all(walkable[idx] for idx in indices)
    if data.starting_position is not None:
        assert data.start_index() not in indices


# =============================================================================
# Spawn counts and eligibility
# =============================================================================


class TestSpawnCount:
    def test_shallow_levels_are_sparse(self) -> None:
        rng = seeded(3)
        counts = {spawn_count(rng, 1) for _ in range(200)}
        assert min(counts) == 0
        assert max(counts) <= 4

    def test_deeper_levels_get_more(self) -> None:
        rng = seeded(3)
        counts = [spawn_count(rng, 10) for _ in range(200)]
        assert min(counts) >= 7
        assert max(counts) <= 13


class TestEligibleTiles:
    def test_filters_and_keeps_order(self) -> None:
        data = data_from_rows(open_rows(6, 5))
        data.starting_position = (1, 1)
        data.add_spawn(8, "Goblin")

        area = [9, 7, 8, 6, 9, 0, -1, 30, 14]
        # 7 is the start, 8 is taken, 6 and 0 are wall, -1 and 30 are off the map.
        assert eligible_tiles(data, area) == [9, 14]

    def test_empty_area(self) -> None:
        data = data_from_rows(open_rows(6, 5))
        assert eligible_tiles(data, []) == []


# =============================================================================
# Region and room spawning
# =============================================================================


class TestSpawnRegion:
    def test_intents_stay_in_area(self, raws) -> None:
        data = data_from_rows(open_rows(20, 12), raws=raws, depth=8)
        data.starting_position = (5, 5)
        area = [data.game_map.xy_idx(x, y) for x in range(1, 11) for y in range(1, 11)]

        for seed in range(10):
            spawn_region(data, seeded(seed), area)

        assert data.spawn_list
        assert {idx for idx, _ in data.spawn_list} <= set(area)
        assert_valid_intents(data)

    def test_never_more_than_the_area_holds(self, raws) -> None:
        data = data_from_rows(open_rows(6, 5), raws=raws, depth=30)
        added = spawn_region(data, seeded(1), [8])
        assert added <= 1
        assert len(data.spawn_list) == added

    def test_empty_table_adds_nothing(self) -> None:
        data = data_from_rows(open_rows(10, 10), depth=30)
        area = list(range(data.game_map.tile_count))
        assert spawn_region(data, seeded(1), area) == 0
        assert data.spawn_list == []

    def test_keys_come_from_depth_table(self, raws) -> None:
        data = data_from_rows(open_rows(30, 20), raws=raws, depth=8)
        area = list(range(data.game_map.tile_count))
        for seed in range(20):
            spawn_region(data, seeded(seed), area)

        names = {name for name, _ in raws.get_spawn_table_for_depth(8).entries}
        assert {key for _, key in data.spawn_list} <= names

    def test_spawn_room_uses_interior(self, raws) -> None:
        data = empty_data(30, 20, raws=raws, depth=8)
        room = Rect(4, 4, 6, 5)
        for x, y in room.interior():
            data.game_map.tiles[x, y] = TileTypeID.FLOOR
        data.game_map.populate_blocked()

        for seed in range(10):
            spawn_room(data, seeded(seed), room)

        inside = {data.game_map.xy_idx(x, y) for x, y in room.interior()}
        assert {idx for idx, _ in data.spawn_list} <= inside
        assert_valid_intents(data)


# =============================================================================
# Voronoi spawning
# =============================================================================


class TestVoronoiSpawning:
    def test_intents_are_valid(self, raws) -> None:
        data = data_from_rows(open_rows(40, 30), raws=raws, depth=8)
        data.starting_position = (20, 15)
        VoronoiSpawning().apply(data, seeded(4))

        assert data.spawn_list
        assert_valid_intents(data)

    def test_same_seed_same_intents(self, raws) -> None:
        first = data_from_rows(open_rows(40, 30), raws=raws, depth=8)
        second = data_from_rows(open_rows(40, 30), raws=raws, depth=8)
        VoronoiSpawning().apply(first, seeded(9))
        VoronoiSpawning().apply(second, seeded(9))
        assert first.spawn_list == second.spawn_list

    def test_solid_map_is_left_alone(self, raws) -> None:
        data = empty_data(20, 20, raws=raws, depth=8)
        VoronoiSpawning().apply(data, seeded(1))
        assert data.spawn_list == []


# =============================================================================
# Doors
# =============================================================================


class TestDoorPlacement:
    def test_door_at_corridor_mouth(self) -> None:
        data = data_from_rows(CORRIDOR_ROWS)
        data.corridors = [[23, 24, 25, 26]]
        DoorPlacement().apply(data, seeded(1))
        assert data.spawn_list == [(23, DOOR_KEY)]

    @pytest.mark.parametrize(
        "corridor",
        [
            [23, 24],  # too short
            [21, 22, 23],  # starts in the open room
        ],
    )
    def test_no_door(self, corridor: list[int]) -> None:
        data = data_from_rows(CORRIDOR_ROWS)
        data.corridors = [corridor]
        DoorPlacement().apply(data, seeded(1))
        assert data.spawn_list == []

    def test_no_door_on_start_or_taken_tile(self) -> None:
        data = data_from_rows(CORRIDOR_ROWS)
        data.corridors = [[23, 24, 25, 26], [26, 25, 24, 23]]
        data.starting_position = (3, 2)
        data.add_spawn(26, "Goblin")
        DoorPlacement().apply(data, seeded(1))
        assert data.spawn_list == [(26, "Goblin")]

    def test_chokepoints_without_corridors(self) -> None:
        doors: set[int] = set()
        for seed in range(10):
            data = data_from_rows(CORRIDOR_ROWS)
            DoorPlacement().apply(data, seeded(seed))
            assert all(key == DOOR_KEY for _, key in data.spawn_list)
            doors.update(idx for idx, _ in data.spawn_list)

        assert doors
        assert doors <= CHOKEPOINTS

    def test_empty_corridor_list_adds_nothing(self) -> None:
        data = data_from_rows(CORRIDOR_ROWS)
        data.corridors = []
        DoorPlacement().apply(data, seeded(1))
        assert data.spawn_list == []
