"""Tests for rebuilding a map from its own chunks with WFC."""

from __future__ import annotations

import logging
from unittest.mock import patch

import numpy as np
import pytest

from delver.environment.generators.pipeline.layers import WaveformCollapseBuilder
from delver.environment.generators.pipeline.layers.waveform_collapse import (
    build_patterns,
    chunk_edge,
    connected_floor,
    edges_compatible,
    sample_chunks,
)
from delver.environment.generators.wfc_solver import WFCContradiction, WFCSolver
from delver.environment.tile_types import TileTypeID
from delver.util.coordinates import Rect
from tests.helpers import (
    data_from_rows,
    empty_data,
    map_from_rows,
    open_rows,
    seeded,
)

WALL, FLOOR = TileTypeID.WALL, TileTypeID.FLOOR
GRASS, GRAVEL, DEEP_WATER = TileTypeID.GRASS, TileTypeID.GRAVEL, TileTypeID.DEEP_WATER


def floor_data(width: int, height: int):
    data = empty_data(width, height)
    data.game_map.tiles[:] = FLOOR
    data.game_map.populate_blocked()
    return data


# =============================================================================
# Chunk sampling
# =============================================================================


class TestChunks:
    def test_mirrored_duplicates_merge(self) -> None:
        exemplar = np.full((8, 4), WALL, dtype=np.uint8, order="F")
        exemplar[4:, :] = FLOOR

        chunks = sample_chunks(exemplar, 4)

        assert len(chunks) == 2
        assert (chunks[0][0] == WALL).all()
        assert (chunks[1][0] == FLOOR).all()
        assert [count for _, count in chunks] == [4, 4]

    def test_asymmetric_chunk_keeps_mirrors(self) -> None:
        exemplar = np.full((3, 3), WALL, dtype=np.uint8, order="F")
        exemplar[0, 0] = FLOOR

        chunks = sample_chunks(exemplar, 3)

        assert len(chunks) == 4
        assert all(count == 1 for _, count in chunks)

    def test_leftover_strip_is_ignored(self) -> None:
        exemplar = np.full((10, 9), WALL, dtype=np.uint8, order="F")
        exemplar[8:, :] = FLOOR
        chunks = sample_chunks(exemplar, 4)
        assert len(chunks) == 1
        assert chunks[0][1] == 4 * 4

    @pytest.mark.parametrize(
        ("edge", "facing", "expected"),
        [
            ([False, False], [False, False], True),
            ([True, False], [True, True], True),
            ([True, False], [False, True], False),
            ([True, True], [False, False], False),
        ],
    )
    def test_edges_compatible(self, edge, facing, expected: bool) -> None:
        assert edges_compatible(np.array(edge), np.array(facing)) is expected

    def test_solid_and_open_chunks_never_touch(self) -> None:
        exemplar = np.full((8, 4), WALL, dtype=np.uint8, order="F")
        exemplar[4:, :] = FLOOR

        patterns = build_patterns(sample_chunks(exemplar, 4))

        for direction in ("N", "E", "S", "W"):
            assert patterns[0].valid_neighbors[direction] == {0}
            assert patterns[1].valid_neighbors[direction] == {1}
        assert patterns[0].weight == 4.0

    def test_walkable_edges_are_open(self) -> None:
        chunk = np.full((4, 4), DEEP_WATER, dtype=np.uint8, order="F")
        chunk[:, 0] = GRASS
        chunk[1, 3] = GRAVEL

        assert chunk_edge(chunk, "N").all()
        assert chunk_edge(chunk, "S").tolist() == [False, True, False, False]
        assert chunk_edge(chunk, "W").tolist() == [True, False, False, False]

    def test_connected_floor_counts_the_central_pocket(self) -> None:
        rows = open_rows(30, 21)
        rows[10] = "#" * 30
        for y in range(1, 10):
            rows[y] = "#" * 30
        rows[2] = "#...." + "#" * 25
        tiles = map_from_rows(rows).tiles

        assert connected_floor(tiles) == 28 * 9

    def test_connected_floor_of_solid_rock(self) -> None:
        assert connected_floor(np.full((8, 8), WALL, dtype=np.uint8, order="F")) == 0


# =============================================================================
# The layer
# =============================================================================


class TestWaveformCollapseBuilder:
    def test_single_chunk_map_is_reproduced(self) -> None:
        data = floor_data(32, 32)
        WaveformCollapseBuilder().apply(data, seeded(1))
        assert (data.game_map.tiles == FLOOR).all()

    def test_success_clears_layout_state(self) -> None:
        data = floor_data(32, 32)
        data.add_spawn(40, "Goblin")
        data.rooms = [Rect(2, 2, 4, 4)]
        data.corridors = [[1, 2, 3]]

        WaveformCollapseBuilder().apply(data, seeded(1))

        assert data.spawn_list == []
        assert data.rooms is None
        assert data.corridors is None

    def test_partial_chunks_become_wall(self) -> None:
        data = floor_data(36, 20)
        WaveformCollapseBuilder(chunk_size=8).apply(data, seeded(1))

        tiles = data.game_map.tiles
        assert (tiles[:32, :16] == FLOOR).all()
        assert (tiles[32:, :] == WALL).all()
        assert (tiles[:, 16:] == WALL).all()

    def test_output_is_built_from_sampled_chunks(self) -> None:
        rows = open_rows(40, 24)
        rows[12] = "#" * 20 + "." * 19 + "#"
        data = data_from_rows(rows)
        exemplar = data.game_map.tiles.copy(order="F")
        sampled = {chunk.tobytes(order="F") for chunk, _ in sample_chunks(exemplar, 8)}

        WaveformCollapseBuilder(chunk_size=8).apply(data, seeded(5))

        tiles = data.game_map.tiles
        for x0 in range(0, 40, 8):
            for y0 in range(0, 24, 8):
                block = np.asfortranarray(tiles[x0 : x0 + 8, y0 : y0 + 8])
                assert block.tobytes(order="F") in sampled

    def test_same_seed_same_map(self) -> None:
        rows = open_rows(40, 24)
        rows[12] = "#" * 20 + "." * 19 + "#"
        first, second = data_from_rows(rows), data_from_rows(rows)
        WaveformCollapseBuilder().apply(first, seeded(5))
        WaveformCollapseBuilder().apply(second, seeded(5))
        np.testing.assert_array_equal(first.game_map.tiles, second.game_map.tiles)

    def test_contradiction_keeps_map(self, caplog: pytest.LogCaptureFixture) -> None:
        # Every chunk opens onto a single east-edge tile. On a 3x1 chunk grid
        # the rim cells must close westward and eastward, which no chain of
        # matching edges can satisfy.
        data = empty_data(12, 4)
        for x in (3, 7, 11):
            data.game_map.tiles[x, 1] = FLOOR
        data.game_map.populate_blocked()
        data.add_spawn(data.game_map.xy_idx(7, 1), "Goblin")
        before = data.game_map.tiles.copy()

        with caplog.at_level(logging.DEBUG):
            WaveformCollapseBuilder(chunk_size=4, max_attempts=3).apply(
                data, seeded(1)
            )

        assert data.game_map.tiles.tobytes() == before.tobytes()
        assert data.spawn_list == [(data.game_map.xy_idx(7, 1), "Goblin")]
        assert caplog.text.count("No valid patterns") == 3
        assert "WFC failed after 3 attempts" in caplog.text

    def test_solver_contradiction_is_retried(self) -> None:
        data = floor_data(32, 32)
        real_solve = WFCSolver.solve
        outcomes = [WFCContradiction("stuck")]

        def solve_once_stuck(solver):
            if outcomes:
                raise outcomes.pop()
            return real_solve(solver)

        with patch.object(WFCSolver, "solve", solve_once_stuck):
            WaveformCollapseBuilder(max_attempts=2).apply(data, seeded(1))

        assert (data.game_map.tiles == FLOOR).all()

    def test_too_little_connected_floor_keeps_map(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        data = data_from_rows(open_rows(32, 32))
        data.add_spawn(40, "Goblin")
        before = data.game_map.tiles.copy()

        with caplog.at_level(logging.DEBUG):
            WaveformCollapseBuilder(max_attempts=3, min_floor_fraction=2.0).apply(
                data, seeded(1)
            )

        np.testing.assert_array_equal(data.game_map.tiles, before)
        assert data.spawn_list == [(40, "Goblin")]
        assert "rejected" in caplog.text
        assert "WFC failed after 3 attempts" in caplog.text

    @pytest.mark.parametrize("seed", range(12))
    def test_kept_layout_has_enough_connected_floor(self, seed: int) -> None:
        # A lone room straddling four chunks among mostly solid rock.
        data = empty_data(40, 40)
        data.game_map.tiles[12:20, 12:20] = FLOOR
        data.game_map.populate_blocked()
        before = data.game_map.tiles.copy()

        WaveformCollapseBuilder().apply(data, seeded(seed))

        tiles = data.game_map.tiles
        if not np.array_equal(tiles, before):
            assert connected_floor(tiles) >= 16

    def test_single_tile_type_is_preserved(self) -> None:
        data = empty_data(16, 16)
        data.game_map.tiles[:] = GRASS
        data.game_map.populate_blocked()

        WaveformCollapseBuilder().apply(data, seeded(1))

        assert (data.game_map.tiles == GRASS).all()

    def test_output_uses_only_example_tile_types(self) -> None:
        rows = ['"' * 32 for _ in range(32)]
        for y in range(8, 24):
            rows[y] = '"' * 8 + "," * 16 + "≈≈" + '"' * 6
        data = data_from_rows(rows)

        WaveformCollapseBuilder().apply(data, seeded(3))

        assert set(np.unique(data.game_map.tiles)) <= {GRASS, GRAVEL, DEEP_WATER}

    def test_stairs_are_not_copied(self) -> None:
        rows = open_rows(32, 32)
        rows[5] = "#" + "." * 4 + ">" + "." * 25 + "#"
        data = data_from_rows(rows)

        WaveformCollapseBuilder().apply(data, seeded(2))

        changed = data.game_map.count(TileTypeID.DOWN_STAIRS) == 0
        unchanged = np.array_equal(data.game_map.tiles, map_from_rows(rows).tiles)
        assert changed or unchanged

    def test_map_smaller_than_a_chunk(self, caplog: pytest.LogCaptureFixture) -> None:
        data = data_from_rows(open_rows(6, 6))
        before = data.game_map.tiles.copy()
        with caplog.at_level(logging.WARNING):
            WaveformCollapseBuilder(chunk_size=8).apply(data, seeded(1))

        np.testing.assert_array_equal(data.game_map.tiles, before)
        assert "keeping the current map" in caplog.text
