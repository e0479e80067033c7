"""Door placement at chokepoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from delver.environment.generators.pipeline.layer import ModifierLayer
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.types import TileIndex
    from delver.util.rng import RNG

DOOR_KEY = "Door"


class DoorPlacement(ModifierLayer):
    """Add door spawns where a walkway squeezes between two walls.

    With recorded corridors, a door goes at the mouth of each corridor longer
    than two tiles. Without them every floor chokepoint is a candidate and
    roughly one in three gets a door.
    """

    def apply(self, data: BuildData, rng: RNG) -> None:
        if data.corridors is not None:
            for corridor in data.corridors:
                if len(corridor) > 2 and self._door_possible(data, corridor[0]):
                    data.add_spawn(corridor[0], DOOR_KEY)
            return

        tiles = data.game_map.flat_tiles
        for idx in range(data.game_map.tile_count):
            if tiles[idx] != TileTypeID.FLOOR:
                continue
            if self._door_possible(data, idx) and roll_dice(rng, 1, 3) == 1:
                data.add_spawn(idx, DOOR_KEY)

    @staticmethod
    def _door_possible(data: BuildData, idx: TileIndex) -> bool:
        if idx in data.spawned_indices() or idx == data.start_index():
            return False
        game_map = data.game_map
        x, y = game_map.idx_xy(idx)
        if not (0 < x < game_map.width - 1 and 0 < y < game_map.height - 1):
            return False
        tiles = game_map.tiles
        if tiles[x, y] != TileTypeID.FLOOR:
            return False

        floor, wall = TileTypeID.FLOOR, TileTypeID.WALL
        east_west = (
            tiles[x - 1, y] == floor
            and tiles[x + 1, y] == floor
            and tiles[x, y - 1] == wall
            and tiles[x, y + 1] == wall
        )
        north_south = (
            tiles[x, y - 1] == floor
            and tiles[x, y + 1] == floor
            and tiles[x - 1, y] == wall
            and tiles[x + 1, y] == wall
        )
        return bool(east_west or north_south)
