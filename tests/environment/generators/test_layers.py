"""Tests for the grid-producing layers and their carving helpers."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from delver.environment.generators.pipeline import BuilderConfigurationError
from delver.environment.generators.pipeline.layers import (
    BspCorridors,
    BspDungeonBuilder,
    BspInteriorBuilder,
    CellularAutomataBuilder,
    DLABuilder,
    DoglegCorridors,
    DrunkardsWalkBuilder,
    MazeBuilder,
    NearestCorridors,
    RoomBasedSpawner,
    RoomBasedStartingPosition,
    RoomCornerRounder,
    RoomDrawer,
    RoomExploder,
    RoomSort,
    RoomSorter,
    SimpleMapBuilder,
    StraightLineCorridors,
    VoronoiCellBuilder,
)
from delver.environment.generators.pipeline.layers.cellular_automata import (
    count_wall_neighbors,
)
from delver.environment.generators.pipeline.layers.common import (
    DistanceMetric,
    Symmetry,
    apply_room_to_map,
    draw_corridor,
    paint,
    voronoi_membership,
)
from delver.environment.generators.pipeline.layers.voronoi import random_seeds
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import Rect
from tests.helpers import data_from_rows, empty_data, seeded, unreachable_walkable


def first_floor(tiles: np.ndarray) -> tuple[int, int]:
    x, y = np.argwhere(tiles == TileTypeID.FLOOR)[0]
    return int(x), int(y)


def border_is_wall(tiles: np.ndarray) -> bool:
    return bool(
        (tiles[0, :] == TileTypeID.WALL).all()
        and (tiles[-1, :] == TileTypeID.WALL).all()
        and (tiles[:, 0] == TileTypeID.WALL).all()
        and (tiles[:, -1] == TileTypeID.WALL).all()
    )


def carved_rooms(width: int, height: int, rooms: list[Rect]):
    data = empty_data(width, height)
    for room in rooms:
        apply_room_to_map(data.game_map, room)
    data.rooms = list(rooms)
    return data


THREE_ROOMS = [Rect(2, 2, 5, 4), Rect(20, 3, 6, 5), Rect(8, 14, 7, 4)]


# =============================================================================
# Carving helpers
# =============================================================================


class TestCarvingHelpers:
    def test_room_interior_is_carved(self) -> None:
        data = empty_data(12, 10)
        apply_room_to_map(data.game_map, Rect(2, 2, 4, 3))

        tiles = data.game_map.tiles
        assert (tiles[3:7, 3:6] == TileTypeID.FLOOR).all()
        assert tiles[2, 3] == TileTypeID.WALL
        assert data.game_map.count(TileTypeID.FLOOR) == 12

    def test_draw_corridor_closes_x_then_y(self) -> None:
        data = empty_data(10, 10)
        carved = draw_corridor(data.game_map, 1, 1, 4, 3)

        game_map = data.game_map
        expected = [(1, 1), (2, 1), (3, 1), (4, 1), (4, 2), (4, 3)]
        assert carved == [game_map.xy_idx(x, y) for x, y in expected]

    def test_draw_corridor_reports_only_changed_tiles(self) -> None:
        data = empty_data(10, 10)
        data.game_map.tiles[2, 1] = TileTypeID.FLOOR
        carved = draw_corridor(data.game_map, 1, 1, 3, 1)
        assert carved == [data.game_map.xy_idx(1, 1), data.game_map.xy_idx(3, 1)]

    def test_paint_mirrors_both_ways(self) -> None:
        data = empty_data(11, 11)
        paint(data.game_map, Symmetry.BOTH, 1, 3, 2)

        tiles = data.game_map.tiles
        for x, y in ((3, 2), (7, 2), (3, 8), (7, 8)):
            assert tiles[x, y] == TileTypeID.FLOOR
        assert data.game_map.count(TileTypeID.FLOOR) == 4

    def test_paint_never_touches_the_border(self) -> None:
        data = empty_data(8, 8)
        paint(data.game_map, Symmetry.NONE, 1, 0, 3)
        assert data.game_map.count(TileTypeID.FLOOR) == 0

    def test_voronoi_membership_splits_between_seeds(self) -> None:
        membership = voronoi_membership(10, 3, [(0, 1), (9, 1)])
        assert (membership[:5, :] == 0).all()
        assert (membership[5:, :] == 1).all()

    def test_voronoi_ties_go_to_lower_seed(self) -> None:
        seeds = [(0, 0), (4, 0)]
        membership = voronoi_membership(5, 1, seeds, DistanceMetric.MANHATTAN)
        assert membership[2, 0] == 0

    def test_voronoi_needs_seeds(self) -> None:
        with pytest.raises(ValueError):
            voronoi_membership(5, 5, [])


# =============================================================================
# Cellular automata
# =============================================================================


class TestCellularAutomata:
    def test_neighbor_counts(self) -> None:
        data = data_from_rows(["#####", "#...#", "#...#", "#...#", "#####"])
        counts = count_wall_neighbors(data.game_map.tiles)

        assert counts.shape == (3, 3)
        assert counts[1, 1] == 0
        assert counts[0, 0] == 5
        assert counts[1, 0] == 3

    def test_smoothing_rule(self) -> None:
        data = data_from_rows(["#####", "#...#", "#...#", "#...#", "#####"])
        CellularAutomataBuilder.apply_iteration(data.game_map)

        tiles = data.game_map.tiles
        assert tiles[2, 2] == TileTypeID.WALL
        assert tiles[1, 1] == TileTypeID.WALL
        assert tiles[2, 1] == TileTypeID.FLOOR

    def test_same_seed_same_cave(self) -> None:
        first = empty_data(40, 25)
        second = empty_data(40, 25)
        CellularAutomataBuilder().build(first, seeded(5))
        CellularAutomataBuilder().build(second, seeded(5))

        np.testing.assert_array_equal(first.game_map.tiles, second.game_map.tiles)

    def test_border_stays_wall(self) -> None:
        data = empty_data(40, 25)
        CellularAutomataBuilder().build(data, seeded(6))

        assert border_is_wall(data.game_map.tiles)
        assert data.game_map.count(TileTypeID.FLOOR) > 0

    def test_as_modifier_runs_one_pass(self) -> None:
        data = data_from_rows(["#####", "#...#", "#...#", "#...#", "#####"])
        CellularAutomataBuilder(iterations=99).apply(data, seeded(1))
        assert data.game_map.count(TileTypeID.FLOOR) == 4


# =============================================================================
# Rooms
# =============================================================================


class TestRoomBuilders:
    def test_simple_rooms_do_not_overlap(self) -> None:
        data = empty_data(80, 50)
        SimpleMapBuilder().build(data, seeded(3))

        rooms = data.rooms
        assert rooms
        for i, room in enumerate(rooms):
            assert room.x1 >= 0 and room.y1 >= 0
            assert room.x2 <= 78 and room.y2 <= 48
            for other in rooms[i + 1 :]:
                assert not room.intersects(other)

    def test_simple_rooms_are_only_planned(self) -> None:
        data = empty_data(80, 50)
        SimpleMapBuilder().build(data, seeded(3))
        assert data.game_map.count(TileTypeID.FLOOR) == 0

    def test_bsp_dungeon_rooms_keep_clear(self) -> None:
        data = empty_data(80, 50)
        BspDungeonBuilder().build(data, seeded(4))

        rooms = data.rooms
        assert rooms
        for i, room in enumerate(rooms):
            assert room.x1 >= 3 and room.y1 >= 3
            assert room.x2 <= 80 - 4 and room.y2 <= 50 - 4
            for other in rooms[i + 1 :]:
                assert not room.intersects(other)

    def test_bsp_interior_is_connected(self) -> None:
        data = empty_data(80, 50)
        BspInteriorBuilder().build(data, seeded(8))

        assert data.rooms
        assert data.corridors is not None
        assert len(data.corridors) == len(data.rooms) - 1
        game_map = data.game_map
        assert unreachable_walkable(game_map, first_floor(game_map.tiles)) == 0

    def test_room_drawer_carves_every_centre(self) -> None:
        data = empty_data(40, 25)
        data.rooms = list(THREE_ROOMS)
        RoomDrawer().apply(data, seeded(2))

        for room in THREE_ROOMS:
            assert data.game_map.tiles[room.center()] == TileTypeID.FLOOR

    def test_room_layers_need_rooms(self) -> None:
        data = empty_data(20, 20)
        layers = [
            RoomDrawer(),
            RoomSorter(RoomSort.LEFTMOST),
            RoomExploder(),
            RoomCornerRounder(),
            RoomBasedSpawner(),
            RoomBasedStartingPosition(),
            NearestCorridors(),
            DoglegCorridors(),
        ]
        for layer in layers:
            with pytest.raises(BuilderConfigurationError):
                layer.apply(data, seeded(1))


# =============================================================================
# Corridors
# =============================================================================


@pytest.mark.parametrize(
    "layer_cls",
    [DoglegCorridors, NearestCorridors, StraightLineCorridors, BspCorridors],
)
def test_corridors_connect_every_room(layer_cls) -> None:
    data = carved_rooms(40, 25, THREE_ROOMS)
    layer_cls().apply(data, seeded(11))

    game_map = data.game_map
    assert data.corridors is not None
    assert len(data.corridors) == len(THREE_ROOMS) - 1
    assert unreachable_walkable(game_map, THREE_ROOMS[0].center()) == 0


def test_corridor_indices_are_carved_floor() -> None:
    data = carved_rooms(40, 25, THREE_ROOMS)
    NearestCorridors().apply(data, seeded(1))

    tiles = data.game_map.flat_tiles
    for corridor in data.corridors:
        assert corridor
        assert all(tiles[idx] == TileTypeID.FLOOR for idx in corridor)


# =============================================================================
# Room modifiers
# =============================================================================


class TestRoomModifiers:
    @pytest.mark.parametrize(
        ("sort_by", "expected_first"),
        [
            (RoomSort.LEFTMOST, Rect(2, 2, 5, 4)),
            (RoomSort.RIGHTMOST, Rect(20, 3, 6, 5)),
            (RoomSort.TOPMOST, Rect(2, 2, 5, 4)),
            (RoomSort.BOTTOMMOST, Rect(8, 14, 7, 4)),
            (RoomSort.CENTRAL, Rect(20, 3, 6, 5)),
        ],
    )
    def test_sorting(self, sort_by: RoomSort, expected_first: Rect) -> None:
        data = empty_data(40, 25)
        data.rooms = list(THREE_ROOMS)
        RoomSorter(sort_by).apply(data, seeded(1))
        assert data.rooms[0] == expected_first

    def test_start_in_first_room(self) -> None:
        data = carved_rooms(40, 25, THREE_ROOMS)
        RoomBasedStartingPosition().apply(data, seeded(1))
        assert data.starting_position == THREE_ROOMS[0].center()

    def test_start_needs_a_room(self) -> None:
        data = empty_data(20, 20)
        data.rooms = []
        with pytest.raises(BuilderConfigurationError):
            RoomBasedStartingPosition().apply(data, seeded(1))

    def test_corner_rounder_fills_corners(self) -> None:
        room = Rect(2, 2, 4, 4)
        data = carved_rooms(10, 10, [room])
        RoomCornerRounder().apply(data, seeded(1))

        tiles = data.game_map.tiles
        for corner in ((3, 3), (6, 3), (3, 6), (6, 6)):
            assert tiles[corner] == TileTypeID.WALL
        assert tiles[4, 4] == TileTypeID.FLOOR

    def test_exploder_only_adds_floor(self) -> None:
        data = carved_rooms(40, 25, THREE_ROOMS)
        before = data.game_map.tiles == TileTypeID.FLOOR
        RoomExploder().apply(data, seeded(12))

        after = data.game_map.tiles == TileTypeID.FLOOR
        assert (after | ~before).all()
        assert border_is_wall(data.game_map.tiles)

    def test_spawner_skips_the_first_room(self, raws) -> None:
        rooms = [Rect(2, 2, 8, 6), Rect(20, 3, 8, 6), Rect(8, 14, 8, 6)]
        data = carved_rooms(40, 25, rooms)
        data.raws = raws
        data.game_map.depth = 6
        RoomBasedSpawner().apply(data, seeded(13))

        game_map = data.game_map
        for idx, _ in data.spawn_list:
            x, y = game_map.idx_xy(idx)
            assert not rooms[0].contains(x, y)
            assert any(room.contains(x, y) for room in rooms[1:])


# =============================================================================
# Maze
# =============================================================================


class TestMaze:
    def test_maze_is_a_spanning_tree(self) -> None:
        data = empty_data(21, 15)
        MazeBuilder().build(data, seeded(21))

        cells = (21 // 2 - 2) * (15 // 2 - 2)
        game_map = data.game_map
        assert game_map.count(TileTypeID.FLOOR) == 2 * cells - 1
        assert unreachable_walkable(game_map, (2, 2)) == 0

    def test_too_small_map_is_left_solid(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        data = empty_data(5, 5)
        with caplog.at_level(logging.WARNING):
            MazeBuilder().build(data, seeded(1))

        assert data.game_map.count(TileTypeID.FLOOR) == 0
        assert "too small for a maze" in caplog.text


# =============================================================================
# Diffusion-limited aggregation
# =============================================================================


class TestDLA:
    @pytest.mark.parametrize(
        "factory", [DLABuilder.walk_inwards, DLABuilder.central_attractor]
    )
    def test_grows_one_connected_blob(self, factory) -> None:
        data = empty_data(30, 20)
        factory().build(data, seeded(31))

        game_map = data.game_map
        assert game_map.count(TileTypeID.FLOOR) >= int(0.25 * 30 * 20)
        assert unreachable_walkable(game_map, (15, 10)) == 0
        assert border_is_wall(game_map.tiles)

    def test_particle_cap(self, caplog: pytest.LogCaptureFixture) -> None:
        data = empty_data(30, 20)
        with caplog.at_level(logging.WARNING):
            DLABuilder(DLABuilder.walk_inwards().settings, max_particles=3).build(
                data, seeded(1)
            )
        assert "DLA stopped after 3 particles" in caplog.text


# =============================================================================
# Voronoi cells
# =============================================================================


class TestVoronoiCells:
    def test_seeds_are_distinct(self) -> None:
        seeds = random_seeds(seeded(1), 10, 10, 30)
        assert len(seeds) == len(set(seeds)) == 30

    def test_seed_count_is_capped_by_the_map(self) -> None:
        assert len(random_seeds(seeded(1), 3, 3, 50)) == 4

    @pytest.mark.parametrize(
        "factory",
        [
            VoronoiCellBuilder.pythagoras,
            VoronoiCellBuilder.manhattan,
            VoronoiCellBuilder.chebyshev,
        ],
    )
    def test_cells_have_walls_between_them(self, factory) -> None:
        data = empty_data(40, 25)
        factory().build(data, seeded(41))

        game_map = data.game_map
        assert border_is_wall(game_map.tiles)
        assert 0 < game_map.count(TileTypeID.FLOOR) < 38 * 23

    def test_deterministic(self) -> None:
        first = empty_data(40, 25)
        second = empty_data(40, 25)
        VoronoiCellBuilder.pythagoras().build(first, seeded(42))
        VoronoiCellBuilder.pythagoras().build(second, seeded(42))
        np.testing.assert_array_equal(first.game_map.tiles, second.game_map.tiles)


# =============================================================================
# Drunkard's walk
# =============================================================================


class TestDrunkardsWalk:
    def test_open_area_is_connected(self) -> None:
        data = empty_data(40, 30)
        DrunkardsWalkBuilder.open_area().build(data, seeded(51))

        game_map = data.game_map
        assert game_map.count(TileTypeID.FLOOR) >= int(0.5 * 40 * 30)
        assert unreachable_walkable(game_map, (20, 15)) == 0
        assert border_is_wall(game_map.tiles)

    def test_fearful_symmetry_is_mirrored(self) -> None:
        data = empty_data(40, 30)
        DrunkardsWalkBuilder.fearful_symmetry().build(data, seeded(52))

        tiles = data.game_map.tiles
        for x in range(2, 39):
            np.testing.assert_array_equal(tiles[x, 2:29], tiles[40 - x, 2:29])
        for y in range(2, 29):
            np.testing.assert_array_equal(tiles[2:39, y], tiles[2:39, 30 - y])

    @pytest.mark.parametrize(
        "factory",
        [
            DrunkardsWalkBuilder.open_halls,
            DrunkardsWalkBuilder.winding_passages,
            DrunkardsWalkBuilder.fat_passages,
        ],
    )
    def test_reaches_floor_target(self, factory) -> None:
        data = empty_data(40, 30)
        builder = factory()
        builder.build(data, seeded(53))

        target = int(builder.settings.floor_percent * 40 * 30)
        assert data.game_map.count(TileTypeID.FLOOR) >= target
        assert border_is_wall(data.game_map.tiles)
