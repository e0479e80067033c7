"""Random-walk ("drunkard's walk") cave digging.

Diggers stagger around the map carving floor until a target share of the map
is open. Each profile varies where diggers start, how long each one lives,
how wide it carves and whether its carving is mirrored around the centre.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from delver import config
from delver.environment.generators.pipeline.layer import InitialLayer
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

from .common import Symmetry, paint

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class DrunkSpawnMode(Enum):
    STARTING_POINT = auto()
    RANDOM = auto()


@dataclass(frozen=True)
class DrunkardSettings:
    spawn_mode: DrunkSpawnMode
    drunken_lifetime: int
    floor_percent: float
    brush_size: int
    symmetry: Symmetry


class DrunkardsWalkBuilder(InitialLayer):
    """Carves caves with a succession of short-lived random walkers.

    The first digger always starts at the map centre. Digging stops once
    ``floor_percent`` of the map is floor, or after ``max_diggers`` diggers
    as a safety valve.
    """

    def __init__(
        self, settings: DrunkardSettings, max_diggers: int = config.DRUNKARD_MAX_DIGGERS
    ) -> None:
        self.settings = settings
        self.max_diggers = max_diggers

    @classmethod
    def open_area(cls) -> DrunkardsWalkBuilder:
        return cls(
            DrunkardSettings(DrunkSpawnMode.STARTING_POINT, 400, 0.5, 1, Symmetry.NONE)
        )

    @classmethod
    def open_halls(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 400, 0.5, 1, Symmetry.NONE))

    @classmethod
    def winding_passages(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 100, 0.4, 1, Symmetry.NONE))

    @classmethod
    def fat_passages(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 100, 0.4, 2, Symmetry.NONE))

    @classmethod
    def fearful_symmetry(cls) -> DrunkardsWalkBuilder:
        return cls(DrunkardSettings(DrunkSpawnMode.RANDOM, 100, 0.4, 1, Symmetry.BOTH))

    def build(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        settings = self.settings
        center = (game_map.width // 2, game_map.height // 2)
        game_map.tiles[center] = TileTypeID.FLOOR

        desired_floor = int(settings.floor_percent * game_map.tile_count)
        floor_count = game_map.count(TileTypeID.FLOOR)
        digger_count = 0

        while floor_count < desired_floor:
            if digger_count >= self.max_diggers:
                logger.warning(
                    f"Drunkard's walk stopped after {digger_count} diggers at "
                    f"{floor_count}/{desired_floor} floor tiles"
                )
                break

            from_center = settings.spawn_mode is DrunkSpawnMode.STARTING_POINT
            if digger_count == 0 or from_center:
                drunk_x, drunk_y = center
            else:
                drunk_x = roll_dice(rng, 1, game_map.width - 3) + 1
                drunk_y = roll_dice(rng, 1, game_map.height - 3) + 1

            for _ in range(settings.drunken_lifetime):
                paint(
                    game_map, settings.symmetry, settings.brush_size, drunk_x, drunk_y
                )
                match roll_dice(rng, 1, 4):
                    case 1:
                        if drunk_x > 2:
                            drunk_x -= 1
                    case 2:
                        if drunk_x < game_map.width - 2:
                            drunk_x += 1
                    case 3:
                        if drunk_y > 2:
                            drunk_y -= 1
                    case _:
                        if drunk_y < game_map.height - 2:
                            drunk_y += 1

            digger_count += 1
            floor_count = game_map.count(TileTypeID.FLOOR)
            if digger_count % 10 == 0:
                data.take_snapshot()

        logger.debug(
            f"Drunkard's walk used {digger_count} diggers for {floor_count} floor tiles"
        )
