"""Reachability and placement layers.

- AreaStartingPosition: put the player start in a chosen ninth of the map
- AreaEndingPosition: put the exit stairs in a chosen ninth of the map
- CullUnreachable: wall off every walkable tile the start cannot reach
- DistantExit: put the exit stairs as far from the start as possible

All of them read distances from `delver.util.pathfinding`, which runs tcod's
Dijkstra over the map's occupancy index with per-tile movement costs.
Ties are always broken by scan order (lowest ``y * width + x``), so placement
is reproducible for a fixed grid.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np

from delver.environment.generators.pipeline.layer import (
    BuilderConfigurationError,
    ModifierLayer,
    require_start,
)
from delver.environment.tile_types import TileTypeID
from delver.util.pathfinding import UNREACHABLE, compute_distance_map

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.environment.map import GameMap
    from delver.types import WorldTilePos
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)


class XStart(Enum):
    LEFT = auto()
    CENTER = auto()
    RIGHT = auto()


class YStart(Enum):
    TOP = auto()
    CENTER = auto()
    BOTTOM = auto()


# Exits are placed with the same vocabulary as starts.
XEnd = XStart
YEnd = YStart


def seed_point(game_map: GameMap, x_pos: XStart, y_pos: YStart) -> WorldTilePos:
    """The point a placement search measures distance from."""
    seed_x = {
        XStart.LEFT: 1,
        XStart.CENTER: game_map.width // 2,
        XStart.RIGHT: game_map.width - 2,
    }[x_pos]
    seed_y = {
        YStart.TOP: 1,
        YStart.CENTER: game_map.height // 2,
        YStart.BOTTOM: game_map.height - 2,
    }[y_pos]
    return seed_x, seed_y


def area_mask(game_map: GameMap, x_pos: XStart, y_pos: YStart) -> np.ndarray:
    """Boolean map of the ninth of the grid named by ``x_pos``/``y_pos``."""
    w, h = game_map.width, game_map.height
    x_bounds = {
        XStart.LEFT: (0, w // 3),
        XStart.CENTER: (w // 3, 2 * w // 3),
        XStart.RIGHT: (2 * w // 3, w),
    }[x_pos]
    y_bounds = {
        YStart.TOP: (0, h // 3),
        YStart.CENTER: (h // 3, 2 * h // 3),
        YStart.BOTTOM: (2 * h // 3, h),
    }[y_pos]
    mask = np.zeros((w, h), dtype=bool, order="F")
    mask[x_bounds[0] : x_bounds[1], y_bounds[0] : y_bounds[1]] = True
    return mask


def nearest_in(candidates: np.ndarray, seed: WorldTilePos) -> WorldTilePos:
    """Candidate nearest to ``seed``; equal distances resolve in scan order."""
    xs, ys = np.indices(candidates.shape)
    distance = (xs - seed[0]) ** 2 + (ys - seed[1]) ** 2
    distance = np.where(candidates, distance, np.iinfo(np.int64).max)
    flat_idx = int(np.argmin(distance.ravel(order="F")))
    width = candidates.shape[0]
    return flat_idx % width, flat_idx // width


def nearest_walkable(
    game_map: GameMap, seed: WorldTilePos, exclude: WorldTilePos | None = None
) -> WorldTilePos | None:
    """Walkable tile nearest to ``seed``, or None if the map has none."""
    game_map.populate_blocked()
    candidates = game_map.walkable.copy()
    if exclude is not None:
        candidates[exclude] = False
    if not candidates.any():
        return None
    return nearest_in(candidates, seed)


def choose_area_tile(
    game_map: GameMap,
    x_pos: XStart,
    y_pos: YStart,
    exclude: WorldTilePos | None = None,
) -> WorldTilePos:
    """Pick the walkable tile for an area placement.

    Looks for walkable tiles in the named ninth of the map, closest to its
    seed point first. When that ninth has none, the nearest walkable tile on
    the whole map is used instead. Down stairs and ``exclude`` are never
    chosen.

    Raises:
        BuilderConfigurationError: If the map has no eligible walkable tile.
    """
    game_map.populate_blocked()
    eligible = game_map.walkable & (game_map.tiles != TileTypeID.DOWN_STAIRS)
    if exclude is not None:
        eligible[exclude] = False

    seed = seed_point(game_map, x_pos, y_pos)
    in_area = eligible & area_mask(game_map, x_pos, y_pos)
    if in_area.any():
        return nearest_in(in_area, seed)
    if eligible.any():
        logger.debug(
            f"No walkable tile in the {x_pos.name}/{y_pos.name} area; "
            "falling back to the whole map"
        )
        return nearest_in(eligible, seed)
    raise BuilderConfigurationError("No walkable tile available for placement")


def clear_exits(game_map: GameMap) -> None:
    """Turn existing down stairs back into floor so a level has one exit."""
    game_map.tiles[game_map.tiles == TileTypeID.DOWN_STAIRS] = TileTypeID.FLOOR


def place_distant_exit(data: BuildData, layer: object) -> WorldTilePos:
    """Put the down stairs on the reachable tile farthest from the start.

    Raises:
        BuilderConfigurationError: If there is no starting position, or no
            tile other than the start can be reached.
    """
    start = require_start(data, layer)
    game_map = data.game_map
    clear_exits(game_map)
    dist = compute_distance_map(game_map, start)

    reachable = (dist != UNREACHABLE) & game_map.walkable
    reachable[start] = False
    if not reachable.any():
        raise BuilderConfigurationError(
            f"{type(layer).__name__} found no reachable tile besides the start"
        )

    scored = np.where(reachable, dist, -1).astype(np.int64)
    flat_idx = int(np.argmax(scored.ravel(order="F")))
    exit_pos = game_map.idx_xy(flat_idx)
    game_map.tiles[exit_pos] = TileTypeID.DOWN_STAIRS
    game_map.populate_blocked()
    logger.debug(f"Exit placed at {exit_pos}, distance {int(dist[exit_pos])}")
    return exit_pos


class AreaStartingPosition(ModifierLayer):
    """Set the player start inside a chosen ninth of the map."""

    def __init__(self, x: XStart, y: YStart) -> None:
        self.x = x
        self.y = y

    def apply(self, data: BuildData, rng: RNG) -> None:
        data.starting_position = choose_area_tile(data.game_map, self.x, self.y)


class AreaEndingPosition(ModifierLayer):
    """Place the down stairs inside a chosen ninth of the map.

    Used when the exit must sit in a particular direction rather than simply
    as far away as possible. The exit never lands on the start tile.
    """

    def __init__(self, x: XEnd, y: YEnd) -> None:
        self.x = x
        self.y = y

    def apply(self, data: BuildData, rng: RNG) -> None:
        game_map = data.game_map
        clear_exits(game_map)
        exit_pos = choose_area_tile(
            game_map, self.x, self.y, exclude=data.starting_position
        )
        game_map.tiles[exit_pos] = TileTypeID.DOWN_STAIRS
        game_map.populate_blocked()


class CullUnreachable(ModifierLayer):
    """Turn every walkable tile the start cannot reach into wall.

    Afterwards every walkable tile on the map is reachable from the start.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        start = require_start(data, self)
        game_map = data.game_map
        dist = compute_distance_map(game_map, start)

        unreachable = game_map.walkable & (dist == UNREACHABLE)
        unreachable[start] = False
        culled = int(np.count_nonzero(unreachable))
        game_map.tiles[unreachable] = TileTypeID.WALL
        game_map.populate_blocked()
        if culled:
            logger.debug(f"Culled {culled} unreachable tiles")


class DistantExit(ModifierLayer):
    """Place the down stairs at the greatest finite distance from the start."""

    def apply(self, data: BuildData, rng: RNG) -> None:
        place_distant_exit(data, self)
