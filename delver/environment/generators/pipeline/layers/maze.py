"""Perfect maze via recursive backtracking.

The maze is solved on a half-resolution cell grid and drawn back at even map
coordinates, with the knocked-down walls between cells filled in as floor.
Every cell is visited once, so the result is a spanning tree: fully connected
and free of loops.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from delver.environment.generators.pipeline.layer import InitialLayer
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)

# Top, right, bottom, left.
_NEIGHBOUR_STEPS = ((0, -1), (1, 0), (0, 1), (-1, 0))


class MazeBuilder(InitialLayer):
    """Carve a loop-free maze covering most of the map."""

    def build(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        cols = game_map.width // 2 - 2
        rows = game_map.height // 2 - 2
        if cols < 1 or rows < 1:
            logger.warning(
                f"Map {game_map.width}x{game_map.height} is too small for a maze"
            )
            return

        visited = np.zeros((cols, rows), dtype=bool)
        # Passages as pairs of adjacent cells.
        passages: list[tuple[tuple[int, int], tuple[int, int]]] = []
        backtrace: list[tuple[int, int]] = []
        current = (0, 0)

        while True:
            visited[current] = True
            options = [
                (current[0] + dx, current[1] + dy)
                for dx, dy in _NEIGHBOUR_STEPS
                if 0 <= current[0] + dx < cols
                and 0 <= current[1] + dy < rows
                and not visited[current[0] + dx, current[1] + dy]
            ]
            if options:
                nxt = options[roll_dice(rng, 1, len(options)) - 1]
                backtrace.append(current)
                passages.append((current, nxt))
                current = nxt
            elif backtrace:
                current = backtrace.pop()
            else:
                break

        self._draw(game_map, cols, rows, passages)

    @staticmethod
    def _draw(
        game_map: GameMap,
        cols: int,
        rows: int,
        passages: list[tuple[tuple[int, int], tuple[int, int]]],
    ) -> None:
        # Cell (c, r) sits at map tile ((c + 1) * 2, (r + 1) * 2).
        end_x = (cols + 1) * 2
        end_y = (rows + 1) * 2
        game_map.tiles[2:end_x:2, 2:end_y:2] = TileTypeID.FLOOR
        for (ax, ay), (bx, by) in passages:
            wall_x = ax + bx + 2
            wall_y = ay + by + 2
            game_map.tiles[wall_x, wall_y] = TileTypeID.FLOOR
