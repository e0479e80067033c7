"""Cellular automata cave generation.

As an initial layer the builder randomizes the interior (roughly 45% floor)
and then smooths it for a fixed number of passes. As a modifier it runs a
single smoothing pass over whatever map it is given, which softens the hard
edges left by other layers.

Smoothing rule, applied to every interior tile simultaneously: a tile becomes
wall if more than four of its eight neighbours are walls, or if none of them
are (which fills isolated single-tile pockets); otherwise it becomes floor.
The one-tile border is never touched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from delver import config
from delver.environment.generators.pipeline.layer import InitialLayer, ModifierLayer
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.util.rng import RNG


def count_wall_neighbors(tiles: np.ndarray) -> np.ndarray:
    """Moore-neighbourhood wall counts for every interior tile.

    Returns:
        An int array of shape (width - 2, height - 2) aligned with
        ``tiles[1:-1, 1:-1]``.
    """
    walls = (tiles == TileTypeID.WALL).astype(np.int8)
    w, h = walls.shape
    counts = np.zeros((w - 2, h - 2), dtype=np.int8)
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            counts += walls[1 + dx : w - 1 + dx, 1 + dy : h - 1 + dy]
    return counts


class CellularAutomataBuilder(InitialLayer, ModifierLayer):
    """Organic caves from random noise and neighbour-count smoothing."""

    def __init__(
        self,
        iterations: int = config.CA_ITERATIONS,
        floor_roll_threshold: int = config.CA_FLOOR_ROLL_THRESHOLD,
    ) -> None:
        """
        Args:
            iterations: Smoothing passes run by the initial build.
            floor_roll_threshold: A 1d100 roll above this seeds a floor tile.
        """
        self.iterations = iterations
        self.floor_roll_threshold = floor_roll_threshold

    def build(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        for y in range(1, game_map.height - 1):
            for x in range(1, game_map.width - 1):
                roll = roll_dice(rng, 1, 100)
                game_map.tiles[x, y] = (
                    TileTypeID.FLOOR
                    if roll > self.floor_roll_threshold
                    else TileTypeID.WALL
                )
        data.take_snapshot()

        for _ in range(self.iterations):
            self.apply_iteration(game_map)
            data.take_snapshot()

    def apply(self, data: BuildData, rng: RNG) -> None:
        self.apply_iteration(data.game_map)

    @staticmethod
    def apply_iteration(game_map: GameMap) -> None:
        """Run one simultaneous smoothing pass over the interior."""
        if game_map.width < 3 or game_map.height < 3:
            return
        neighbors = count_wall_neighbors(game_map.tiles)
        becomes_wall = (neighbors > 4) | (neighbors == 0)
        game_map.tiles[1:-1, 1:-1] = np.where(
            becomes_wall, TileTypeID.WALL, TileTypeID.FLOOR
        )
        game_map.invalidate_property_caches()
