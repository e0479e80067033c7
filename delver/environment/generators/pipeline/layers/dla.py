"""Diffusion-limited aggregation.

Particles wander until they touch the growing cave and stick where they
touched it. Each particle lands next to floor that already exists, so the
cave grows as one connected blob out of a small seed at the centre.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

import tcod.los

from delver import config
from delver.environment.generators.pipeline.layer import InitialLayer
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

from .common import Symmetry, paint

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class DLAAlgorithm(Enum):
    WALK_INWARDS = auto()
    WALK_OUTWARDS = auto()
    CENTRAL_ATTRACTOR = auto()


@dataclass(frozen=True)
class DLASettings:
    algorithm: DLAAlgorithm
    brush_size: int
    symmetry: Symmetry
    floor_percent: float = config.DLA_FLOOR_PERCENT


class DLABuilder(InitialLayer):
    """Grow a cave by diffusion-limited aggregation."""

    def __init__(
        self, settings: DLASettings, max_particles: int = config.DLA_MAX_PARTICLES
    ) -> None:
        self.settings = settings
        self.max_particles = max_particles

    @classmethod
    def walk_inwards(cls) -> DLABuilder:
        return cls(DLASettings(DLAAlgorithm.WALK_INWARDS, 1, Symmetry.NONE))

    @classmethod
    def walk_outwards(cls) -> DLABuilder:
        return cls(DLASettings(DLAAlgorithm.WALK_OUTWARDS, 2, Symmetry.NONE))

    @classmethod
    def central_attractor(cls) -> DLABuilder:
        return cls(DLASettings(DLAAlgorithm.CENTRAL_ATTRACTOR, 2, Symmetry.NONE))

    @classmethod
    def insectoid(cls) -> DLABuilder:
        return cls(DLASettings(DLAAlgorithm.CENTRAL_ATTRACTOR, 2, Symmetry.HORIZONTAL))

    def build(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        center = (game_map.width // 2, game_map.height // 2)
        cx, cy = center
        for x, y in ((cx, cy), (cx - 1, cy), (cx + 1, cy), (cx, cy - 1), (cx, cy + 1)):
            game_map.tiles[x, y] = TileTypeID.FLOOR
        data.take_snapshot()

        desired_floor = int(self.settings.floor_percent * game_map.tile_count)
        floor_count = game_map.count(TileTypeID.FLOOR)
        particles = 0

        while floor_count < desired_floor:
            if particles >= self.max_particles:
                logger.warning(
                    f"DLA stopped after {particles} particles at "
                    f"{floor_count}/{desired_floor} floor tiles"
                )
                break

            match self.settings.algorithm:
                case DLAAlgorithm.WALK_INWARDS:
                    self._walk_inwards(game_map, rng)
                case DLAAlgorithm.WALK_OUTWARDS:
                    self._walk_outwards(game_map, rng, center)
                case DLAAlgorithm.CENTRAL_ATTRACTOR:
                    self._central_attractor(game_map, rng, center)

            particles += 1
            floor_count = game_map.count(TileTypeID.FLOOR)
            if particles % 50 == 0:
                data.take_snapshot()

        logger.debug(f"DLA used {particles} particles for {floor_count} floor tiles")

    def _paint(self, game_map: GameMap, x: int, y: int) -> None:
        paint(game_map, self.settings.symmetry, self.settings.brush_size, x, y)

    @staticmethod
    def _random_interior_point(game_map: GameMap, rng: RNG) -> tuple[int, int]:
        x = roll_dice(rng, 1, game_map.width - 3) + 1
        y = roll_dice(rng, 1, game_map.height - 3) + 1
        return x, y

    @staticmethod
    def _stagger(game_map: GameMap, rng: RNG, x: int, y: int) -> tuple[int, int]:
        match roll_dice(rng, 1, 4):
            case 1:
                if x > 2:
                    x -= 1
            case 2:
                if x < game_map.width - 2:
                    x += 1
            case 3:
                if y > 2:
                    y -= 1
            case _:
                if y < game_map.height - 2:
                    y += 1
        return x, y

    def _walk_inwards(self, game_map: GameMap, rng: RNG) -> None:
        x, y = self._random_interior_point(game_map, rng)
        prev_x, prev_y = x, y
        while game_map.tiles[x, y] == TileTypeID.WALL:
            prev_x, prev_y = x, y
            x, y = self._stagger(game_map, rng, x, y)
        self._paint(game_map, prev_x, prev_y)

    def _walk_outwards(
        self, game_map: GameMap, rng: RNG, center: tuple[int, int]
    ) -> None:
        x, y = center
        while game_map.tiles[x, y] == TileTypeID.FLOOR:
            x, y = self._stagger(game_map, rng, x, y)
        self._paint(game_map, x, y)

    def _central_attractor(
        self, game_map: GameMap, rng: RNG, center: tuple[int, int]
    ) -> None:
        x, y = self._random_interior_point(game_map, rng)
        prev_x, prev_y = x, y
        path = tcod.los.bresenham((x, y), center).tolist()
        for step_x, step_y in path:
            if game_map.tiles[x, y] != TileTypeID.WALL:
                break
            prev_x, prev_y = x, y
            x, y = step_x, step_y
        self._paint(game_map, prev_x, prev_y)
