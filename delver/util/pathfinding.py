"""Distance maps and paths over generated levels.

Both helpers sit on top of tcod's pathfinding:

- `compute_distance_map` runs `tcod.path.dijkstra2d` from one tile over the
  map's occupancy index and returns per-tile travel cost. Reachability culling,
  distant-exit placement and the spawn sanity checks all read this map.
- `find_path` wraps `tcod.path.AStar` for layers that lay roads or streams
  between two points.

Movement is 8-way. Per-tile costs come from the tile classification (road is
cheaper than grass, shallow water dearer) and are scaled to integers because
tcod's Dijkstra works on integer cost arrays.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import tcod.path

from delver.types import WorldTilePos

if TYPE_CHECKING:
    from delver.environment.map import GameMap

# Distance value for tiles the search never reached.
UNREACHABLE = int(np.iinfo(np.int32).max)

# Integer cost scale: a tile with cost 1.0 costs COST_SCALE to enter.
COST_SCALE = 10
# Step multipliers fed to dijkstra2d; diagonal is ~sqrt(2) times cardinal.
CARDINAL_STEP = 10
DIAGONAL_STEP = 14


def movement_cost_array(game_map: GameMap) -> np.ndarray:
    """Integer cost array for tcod: 0 where blocked, scaled tile cost elsewhere."""
    cost = np.rint(game_map.cost * COST_SCALE).astype(np.int32)
    cost[game_map.blocked] = 0
    return cost


def compute_distance_map(game_map: GameMap, start: WorldTilePos) -> np.ndarray:
    """
    Calculates travel cost from ``start`` to every tile on the map.

    Refreshes the map's occupancy index first, so callers can run this right
    after rewriting tiles.

    Args:
        game_map: The map to search.
        start: The (x, y) origin of the search.

    Returns:
        An int32 array of shape (width, height). Tiles the search could not
        reach hold `UNREACHABLE`.
    """
    game_map.populate_blocked()
    cost = movement_cost_array(game_map)

    dist = tcod.path.maxarray(
        (game_map.width, game_map.height), dtype=np.int32, order="F"
    )
    dist[start] = 0
    tcod.path.dijkstra2d(dist, cost, CARDINAL_STEP, DIAGONAL_STEP, out=dist)
    return dist


def reachable_mask(game_map: GameMap, start: WorldTilePos) -> np.ndarray:
    """Boolean map of tiles reachable from ``start`` (including ``start``)."""
    return compute_distance_map(game_map, start) != UNREACHABLE


def find_path(
    game_map: GameMap, start_pos: WorldTilePos, end_pos: WorldTilePos
) -> list[WorldTilePos]:
    """
    Calculates a path from a start to an end position using A*.

    Only walkable tiles are entered. The list does not include the start
    point and is empty if no path is found.
    """
    game_map.populate_blocked()
    cost = movement_cost_array(game_map)
    astar = tcod.path.AStar(cost=cost, diagonal=1)
    path: list[WorldTilePos] = astar.get_path(
        start_pos[0], start_pos[1], end_pos[0], end_pos[1]
    )
    return path
