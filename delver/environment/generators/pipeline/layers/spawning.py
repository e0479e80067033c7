"""Region-based spawning for levels without rooms."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delver import config
from delver.environment.generators.pipeline.layer import ModifierLayer
from delver.environment.generators.spawner import spawn_region
from delver.util.dice import roll_dice

from .common import DistanceMetric, voronoi_membership, walkable_indices

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.types import TileIndex
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class VoronoiSpawning(ModifierLayer):
    """Split the walkable area into Voronoi regions and populate each one.

    Seeds are drawn from walkable tiles, one per ``cell_area`` walkable tiles,
    and tiles join their nearest seed by Manhattan distance. Regions are
    populated in seed order.
    """

    def __init__(self, cell_area: int = config.VORONOI_SPAWN_CELL_AREA) -> None:
        self.cell_area = cell_area

    def apply(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        walkable = walkable_indices(game_map)
        if len(walkable) == 0:
            logger.debug("No walkable tiles to spawn on")
            return

        n_seeds = max(1, len(walkable) // self.cell_area)
        pool = [int(idx) for idx in walkable]
        seeds = []
        for _ in range(min(n_seeds, len(pool))):
            pick = roll_dice(rng, 1, len(pool)) - 1
            seeds.append(game_map.idx_xy(pool.pop(pick)))

        membership = voronoi_membership(
            game_map.width, game_map.height, seeds, DistanceMetric.MANHATTAN
        ).ravel(order="F")

        regions: dict[int, list[TileIndex]] = {}
        for idx, region in zip(walkable, membership[walkable], strict=True):
            regions.setdefault(int(region), []).append(int(idx))

        for region_id in sorted(regions):
            spawn_region(data, rng, regions[region_id])
        logger.debug(
            f"Voronoi spawning covered {len(regions)} regions, "
            f"{len(data.spawn_list)} intents total"
        )
