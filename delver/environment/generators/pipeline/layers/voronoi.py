"""Voronoi cell caves: open cells separated by thin walls along cell borders."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from delver import config
from delver.environment.generators.pipeline.layer import InitialLayer
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

from .common import DistanceMetric, voronoi_membership

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.types import WorldTilePos
    from delver.util.rng import RNG


def random_seeds(
    rng: RNG, width: int, height: int, count: int
) -> list[WorldTilePos]:
    """``count`` distinct seed points, drawn in order."""
    count = min(count, (width - 1) * (height - 1))
    seeds: list[WorldTilePos] = []
    seen: set[WorldTilePos] = set()
    while len(seeds) < count:
        seed = (roll_dice(rng, 1, width - 1), roll_dice(rng, 1, height - 1))
        if seed not in seen:
            seen.add(seed)
            seeds.append(seed)
    return seeds


class VoronoiCellBuilder(InitialLayer):
    """Partition the map around random seeds and wall off the cell borders.

    An interior tile stays open when fewer than two of its four neighbours
    belong to a different cell.
    """

    def __init__(
        self,
        metric: DistanceMetric = DistanceMetric.PYTHAGORAS,
        n_seeds: int = config.VORONOI_SEEDS,
    ) -> None:
        self.metric = metric
        self.n_seeds = n_seeds

    @classmethod
    def pythagoras(cls) -> VoronoiCellBuilder:
        return cls(DistanceMetric.PYTHAGORAS)

    @classmethod
    def manhattan(cls) -> VoronoiCellBuilder:
        return cls(DistanceMetric.MANHATTAN)

    @classmethod
    def chebyshev(cls) -> VoronoiCellBuilder:
        return cls(DistanceMetric.CHEBYSHEV)

    def build(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        w, h = game_map.width, game_map.height
        if w < 3 or h < 3:
            return
        seeds = random_seeds(rng, w, h, self.n_seeds)
        membership = voronoi_membership(w, h, seeds, self.metric)

        inner = membership[1:-1, 1:-1]
        foreign = (
            (membership[2:, 1:-1] != inner).astype(np.int8)
            + (membership[:-2, 1:-1] != inner)
            + (membership[1:-1, 2:] != inner)
            + (membership[1:-1, :-2] != inner)
        )
        game_map.tiles[1:-1, 1:-1] = np.where(
            foreign < 2, TileTypeID.FLOOR, TileTypeID.WALL
        )
        game_map.invalidate_property_caches()
