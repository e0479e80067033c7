"""Resynthesize the current map from its own chunks with Wave Function Collapse.

The map so far serves as the example. It is cut into square chunks, each
chunk is also taken mirrored three ways, and identical chunks are merged
with a weight equal to how often they occurred. Two chunks may sit side by
side when their facing edges share at least one open tile, or when both
facing edges are solid wall. The WFC solver then lays out a chunk grid that
covers the map. Chunks keep their real tile types; an edge tile is open when
it is walkable.

A finished layout is kept only if the floor connected to the map centre is a
fair share of the example's floor, so an all-wall or scattered-pocket layout
counts as a failed attempt. If every attempt fails the map is left exactly as
it was. A partial map is never kept.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from delver import config
from delver.environment.generators.pipeline.layer import ModifierLayer
from delver.environment.generators.wfc_solver import (
    DIRECTIONS,
    OPPOSITE_DIR,
    WFCContradiction,
    WFCPattern,
    WFCSolver,
)
from delver.environment.map import GameMap
from delver.environment.tile_types import TileTypeID, get_walkable_map
from delver.util.pathfinding import reachable_mask

from .area_based import XStart, YStart, choose_area_tile

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


def sample_chunks(
    exemplar: np.ndarray, chunk_size: int
) -> list[tuple[np.ndarray, int]]:
    """Distinct chunks of ``exemplar`` (with mirror images) and their counts.

    Chunks come back in first-seen order, which keeps pattern ids stable for
    a given map.
    """
    chunks: dict[bytes, np.ndarray] = {}
    counts: dict[bytes, int] = {}
    chunks_x = exemplar.shape[0] // chunk_size
    chunks_y = exemplar.shape[1] // chunk_size
    for cy in range(chunks_y):
        for cx in range(chunks_x):
            x0, y0 = cx * chunk_size, cy * chunk_size
            chunk = exemplar[x0 : x0 + chunk_size, y0 : y0 + chunk_size]
            for variant in (chunk, chunk[::-1, :], chunk[:, ::-1], chunk[::-1, ::-1]):
                key = variant.tobytes(order="F")
                if key not in chunks:
                    chunks[key] = np.asfortranarray(variant)
                    counts[key] = 0
                counts[key] += 1
    return [(chunks[key], counts[key]) for key in chunks]


def chunk_edge(chunk: np.ndarray, direction: str) -> np.ndarray:
    """Open-tile mask along one edge of ``chunk``."""
    match direction:
        case "N":
            edge = chunk[:, 0]
        case "S":
            edge = chunk[:, -1]
        case "W":
            edge = chunk[0, :]
        case _:
            edge = chunk[-1, :]
    return get_walkable_map(edge)


def edges_compatible(edge: np.ndarray, facing: np.ndarray) -> bool:
    if not edge.any() and not facing.any():
        return True
    return bool((edge & facing).any())


def build_patterns(
    chunks: list[tuple[np.ndarray, int]],
) -> dict[int, WFCPattern[int]]:
    """Turn sampled chunks into solver patterns with edge-derived adjacency."""
    edges = [
        {direction: chunk_edge(chunk, direction) for direction in DIRECTIONS}
        for chunk, _ in chunks
    ]
    patterns: dict[int, WFCPattern[int]] = {}
    for i, (_, count) in enumerate(chunks):
        neighbors: dict[str, set[int]] = {}
        for direction in DIRECTIONS:
            facing = OPPOSITE_DIR[direction]
            neighbors[direction] = {
                j
                for j in range(len(chunks))
                if edges_compatible(edges[i][direction], edges[j][facing])
            }
        patterns[i] = WFCPattern(i, weight=float(count), valid_neighbors=neighbors)
    return patterns


def connected_floor(tiles: np.ndarray, depth: int = 1) -> int:
    """Walkable tiles joined to the tile a centre start would be placed on."""
    scratch = GameMap(depth, tiles.shape[0], tiles.shape[1])
    scratch.tiles = np.asfortranarray(tiles)
    scratch.populate_blocked()
    if not scratch.walkable.any():
        return 0
    start = choose_area_tile(scratch, XStart.CENTER, YStart.CENTER)
    return int(np.count_nonzero(reachable_mask(scratch, start) & scratch.walkable))


class WaveformCollapseBuilder(ModifierLayer):
    """Rebuild the map from chunks of itself.

    On success the spawn list, rooms and corridors are cleared, since they
    described the old layout.
    """

    def __init__(
        self,
        chunk_size: int = config.WFC_CHUNK_SIZE,
        max_attempts: int = config.WFC_MAX_ATTEMPTS,
        min_floor_fraction: float = config.WFC_MIN_FLOOR_FRACTION,
    ) -> None:
        self.chunk_size = chunk_size
        self.max_attempts = max_attempts
        self.min_floor_fraction = min_floor_fraction

    def apply(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        chunks_x = game_map.width // self.chunk_size
        chunks_y = game_map.height // self.chunk_size
        if chunks_x < 1 or chunks_y < 1:
            logger.warning(
                f"No {self.chunk_size}x{self.chunk_size} chunk fits a "
                f"{game_map.width}x{game_map.height} map; keeping the current map"
            )
            return

        # Exits are placed after resynthesis; sampled stairs would multiply.
        exemplar = game_map.tiles.copy(order="F")
        exemplar[exemplar == TileTypeID.DOWN_STAIRS] = TileTypeID.FLOOR
        chunks = sample_chunks(exemplar, self.chunk_size)
        patterns = build_patterns(chunks)
        logger.debug(f"WFC sampled {len(patterns)} distinct chunks")

        exemplar_floor = int(np.count_nonzero(get_walkable_map(exemplar)))
        needed = max(2, int(np.ceil(self.min_floor_fraction * exemplar_floor)))

        for attempt in range(1, self.max_attempts + 1):
            try:
                solver = WFCSolver(chunks_x, chunks_y, patterns, rng)
                self._constrain_borders(solver, chunks)
                layout = solver.solve()
            except WFCContradiction as exc:
                logger.debug(
                    f"WFC attempt {attempt}/{self.max_attempts} failed: {exc}"
                )
                continue

            tiles = self._layout_tiles(game_map, chunks, layout)
            floor = connected_floor(tiles, game_map.depth)
            if floor < needed:
                logger.debug(
                    f"WFC attempt {attempt}/{self.max_attempts} rejected: "
                    f"{floor} connected floor tiles, need {needed}"
                )
                continue

            self._commit(data, tiles)
            return

        logger.warning(
            f"WFC failed after {self.max_attempts} attempts; keeping the current map"
        )

    @staticmethod
    def _constrain_borders(
        solver: WFCSolver[int], chunks: list[tuple[np.ndarray, int]]
    ) -> None:
        """Prefer solid outward edges on the rim of the chunk grid."""
        closed = {
            direction: {
                i
                for i, (chunk, _) in enumerate(chunks)
                if not chunk_edge(chunk, direction).any()
            }
            for direction in DIRECTIONS
        }
        all_ids = set(range(len(chunks)))
        constraints: list[tuple[int, int, set[int]]] = []
        for cx in range(solver.width):
            for cy in range(solver.height):
                facing = []
                if cy == 0:
                    facing.append("N")
                if cy == solver.height - 1:
                    facing.append("S")
                if cx == 0:
                    facing.append("W")
                if cx == solver.width - 1:
                    facing.append("E")
                allowed = set(all_ids)
                for direction in facing:
                    if closed[direction]:
                        allowed &= closed[direction]
                if facing and allowed and allowed != all_ids:
                    constraints.append((cx, cy, allowed))
        solver.constrain_cells(constraints)

    def _layout_tiles(
        self,
        game_map: GameMap,
        chunks: list[tuple[np.ndarray, int]],
        layout: list[list[int]],
    ) -> np.ndarray:
        """Paint ``layout`` onto a fresh wall grid the size of ``game_map``."""
        size = self.chunk_size
        tiles = np.full_like(game_map.tiles, TileTypeID.WALL, order="F")
        for cx, column in enumerate(layout):
            for cy, pattern_id in enumerate(column):
                chunk, _ = chunks[pattern_id]
                x0, y0 = cx * size, cy * size
                tiles[x0 : x0 + size, y0 : y0 + size] = chunk
        return tiles

    @staticmethod
    def _commit(data: BuildData, tiles: np.ndarray) -> None:
        game_map = data.game_map
        game_map.tiles[:] = tiles
        game_map.populate_blocked()

        data.spawn_list = []
        data.rooms = None
        data.corridors = None
        data.take_snapshot()
