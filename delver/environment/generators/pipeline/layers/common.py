"""Carving primitives shared by the generation layers.

Rooms, tunnels and corridors are all carved as FLOOR. Corridor helpers return
the flat indices of the tiles they actually changed, which room-based recipes
record in ``BuildData.corridors`` for door placement and corridor spawning.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np
import tcod.los

from delver.environment.tile_types import TileTypeID

if TYPE_CHECKING:
    from delver.environment.map import GameMap
    from delver.types import TileIndex, WorldTilePos
    from delver.util.coordinates import Rect


class Symmetry(Enum):
    NONE = auto()
    HORIZONTAL = auto()
    VERTICAL = auto()
    BOTH = auto()


class DistanceMetric(Enum):
    PYTHAGORAS = auto()
    MANHATTAN = auto()
    CHEBYSHEV = auto()


# =============================================================================
# ROOMS AND TUNNELS
# =============================================================================


def apply_room_to_map(game_map: GameMap, room: Rect) -> None:
    """Carve the interior of ``room`` (its outer ring stays wall)."""
    x1 = max(room.x1 + 1, 1)
    y1 = max(room.y1 + 1, 1)
    x2 = min(room.x2, game_map.width - 2)
    y2 = min(room.y2, game_map.height - 2)
    game_map.tiles[x1 : x2 + 1, y1 : y2 + 1] = TileTypeID.FLOOR


def _carve(game_map: GameMap, x: int, y: int, corridor: list[TileIndex]) -> None:
    if not game_map.in_bounds(x, y):
        return
    if game_map.tiles[x, y] != TileTypeID.FLOOR:
        game_map.tiles[x, y] = TileTypeID.FLOOR
        corridor.append(game_map.xy_idx(x, y))


def apply_horizontal_tunnel(
    game_map: GameMap, x1: int, x2: int, y: int
) -> list[TileIndex]:
    corridor: list[TileIndex] = []
    for x in range(min(x1, x2), max(x1, x2) + 1):
        _carve(game_map, x, y, corridor)
    return corridor


def apply_vertical_tunnel(
    game_map: GameMap, y1: int, y2: int, x: int
) -> list[TileIndex]:
    corridor: list[TileIndex] = []
    for y in range(min(y1, y2), max(y1, y2) + 1):
        _carve(game_map, x, y, corridor)
    return corridor


def draw_corridor(
    game_map: GameMap, x1: int, y1: int, x2: int, y2: int
) -> list[TileIndex]:
    """Walk from (x1, y1) to (x2, y2), closing x before y, carving as it goes.

    Both end points are carved too, so a corridor started from a random point
    inside a room always joins that room.
    """
    corridor: list[TileIndex] = []
    x, y = x1, y1
    _carve(game_map, x, y, corridor)
    while x != x2 or y != y2:
        if x < x2:
            x += 1
        elif x > x2:
            x -= 1
        elif y < y2:
            y += 1
        else:
            y -= 1
        _carve(game_map, x, y, corridor)
    return corridor


def draw_line_corridor(
    game_map: GameMap, start: WorldTilePos, end: WorldTilePos
) -> list[TileIndex]:
    """Carve a Bresenham line from ``start`` to ``end``.

    Each step of the line is widened to a cardinal neighbour when it moves
    diagonally, so the corridor is walkable even without diagonal movement.
    """
    corridor: list[TileIndex] = []
    line = tcod.los.bresenham(start, end).tolist()
    prev_x, prev_y = line[0]
    for x, y in line:
        if x != prev_x and y != prev_y:
            _carve(game_map, x, prev_y, corridor)
        _carve(game_map, x, y, corridor)
        prev_x, prev_y = x, y
    return corridor


# =============================================================================
# BRUSH PAINTING
# =============================================================================


def _apply_paint(game_map: GameMap, brush_size: int, x: int, y: int) -> None:
    if brush_size <= 1:
        if 0 < x < game_map.width - 1 and 0 < y < game_map.height - 1:
            game_map.tiles[x, y] = TileTypeID.FLOOR
        return

    half = brush_size // 2
    x1 = max(x - half, 2)
    y1 = max(y - half, 2)
    x2 = min(x + half, game_map.width - 1)
    y2 = min(y + half, game_map.height - 1)
    if x1 < x2 and y1 < y2:
        game_map.tiles[x1:x2, y1:y2] = TileTypeID.FLOOR


def paint(
    game_map: GameMap, mode: Symmetry, brush_size: int, x: int, y: int
) -> None:
    """Carve floor at (x, y), mirrored around the map centre per ``mode``."""
    center_x = game_map.width // 2
    center_y = game_map.height // 2
    dist_x = abs(center_x - x)
    dist_y = abs(center_y - y)
    mirrored_x = [x] if dist_x == 0 else [center_x + dist_x, center_x - dist_x]
    mirrored_y = [y] if dist_y == 0 else [center_y + dist_y, center_y - dist_y]

    match mode:
        case Symmetry.NONE:
            points = [(x, y)]
        case Symmetry.HORIZONTAL:
            points = [(px, y) for px in mirrored_x]
        case Symmetry.VERTICAL:
            points = [(x, py) for py in mirrored_y]
        case Symmetry.BOTH:
            points = [(px, py) for px in mirrored_x for py in mirrored_y]

    for px, py in points:
        _apply_paint(game_map, brush_size, px, py)


# =============================================================================
# REGIONS
# =============================================================================


def voronoi_membership(
    width: int,
    height: int,
    seeds: list[WorldTilePos],
    metric: DistanceMetric = DistanceMetric.PYTHAGORAS,
) -> np.ndarray:
    """Assign every tile to its nearest seed.

    Returns:
        An int array of shape (width, height) holding the index into
        ``seeds`` of each tile's nearest seed. Ties go to the lower index.
    """
    if not seeds:
        raise ValueError("Voronoi membership needs at least one seed")

    xs, ys = np.indices((width, height))
    seed_x = np.array([s[0] for s in seeds]).reshape(-1, 1, 1)
    seed_y = np.array([s[1] for s in seeds]).reshape(-1, 1, 1)
    dx = np.abs(xs[np.newaxis] - seed_x)
    dy = np.abs(ys[np.newaxis] - seed_y)

    match metric:
        case DistanceMetric.PYTHAGORAS:
            distance = dx * dx + dy * dy
        case DistanceMetric.MANHATTAN:
            distance = dx + dy
        case DistanceMetric.CHEBYSHEV:
            distance = np.maximum(dx, dy)

    return np.asfortranarray(np.argmin(distance, axis=0))


def walkable_indices(game_map: GameMap) -> np.ndarray:
    """Flat indices of every walkable tile, in scan order."""
    game_map.invalidate_property_caches()
    return np.flatnonzero(game_map.walkable.ravel(order="F"))
