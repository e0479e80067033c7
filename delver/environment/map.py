from __future__ import annotations

import numpy as np

from delver.environment import tile_types
from delver.environment.tile_types import TileTypeID
from delver.types import Depth, TileIndex, WorldTilePos
from delver.util.coordinates import TileCoord


class GameMap:
    """A generated level.

    Every per-tile array has shape ``(width, height)`` in Fortran order, so
    ``tiles[x, y]`` addresses a tile and the flat memory index of ``(x, y)``
    is ``y * width + x``. ``xy_idx`` and ``idx_xy`` are the only conversions
    between the two forms; generation code stores positions as flat indices
    (spawn intents, corridors) and reads tiles by coordinate.
    """

    def __init__(
        self,
        depth: Depth,
        width: TileCoord,
        height: TileCoord,
        name: str = "New Map",
    ) -> None:
        self.depth = depth
        self.width: TileCoord = width
        self.height: TileCoord = height
        self.name = name
        # Lighting downstream treats outdoor maps as sunlit; cave decorators clear it.
        self.outdoors = True

        self.tiles = np.full(
            (width, height), fill_value=TileTypeID.WALL, dtype=np.uint8, order="F"
        )

        # Carried for snapshot diagnostics; generation never reads them.
        self.revealed = np.full(
            (width, height), fill_value=False, dtype=bool, order="F"
        )
        self.visible = np.full((width, height), fill_value=False, dtype=bool, order="F")

        # Occupancy index. Stale until populate_blocked() runs.
        self.blocked = np.full((width, height), fill_value=False, dtype=bool, order="F")

        # Cached property arrays, populated on demand by the respective properties.
        self._walkable_map_cache: np.ndarray | None = None
        self._cost_map_cache: np.ndarray | None = None

    # -------------------------------------------------------------------------
    # Indexing
    # -------------------------------------------------------------------------

    def xy_idx(self, x: TileCoord, y: TileCoord) -> TileIndex:
        """Flat index of (x, y).

        Raises:
            IndexError: If (x, y) is outside the map.
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) is outside a {self.width}x{self.height} map")
        return y * self.width + x

    def idx_xy(self, idx: TileIndex) -> WorldTilePos:
        if not 0 <= idx < self.width * self.height:
            raise IndexError(f"Tile index {idx} is outside the map")
        return idx % self.width, idx // self.width

    def in_bounds(self, x: TileCoord, y: TileCoord) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    @property
    def tile_count(self) -> int:
        return self.width * self.height

    @property
    def flat_tiles(self) -> np.ndarray:
        """View of ``tiles`` in flat-index order (``flat_tiles[y * w + x]``)."""
        return self.tiles.ravel(order="F")

    def tile_at_idx(self, idx: TileIndex) -> TileTypeID:
        x, y = self.idx_xy(idx)
        return TileTypeID(self.tiles[x, y])

    def set_tile_at_idx(self, idx: TileIndex, tile: TileTypeID) -> None:
        x, y = self.idx_xy(idx)
        self.tiles[x, y] = tile

    def count(self, tile: TileTypeID) -> int:
        return int(np.count_nonzero(self.tiles == tile))

    # -------------------------------------------------------------------------
    # Derived property maps
    # -------------------------------------------------------------------------

    def invalidate_property_caches(self) -> None:
        """Call this whenever `self.tiles` changes to clear cached property maps."""
        self._walkable_map_cache = None
        self._cost_map_cache = None

    @property
    def walkable(self) -> np.ndarray:
        """Boolean array of shape (width, height) where True means tile is walkable."""
        if self._walkable_map_cache is None:
            self._walkable_map_cache = tile_types.get_walkable_map(self.tiles)
        return self._walkable_map_cache

    @property
    def cost(self) -> np.ndarray:
        """Float array of per-tile movement costs."""
        if self._cost_map_cache is None:
            self._cost_map_cache = tile_types.get_cost_map(self.tiles)
        return self._cost_map_cache

    def populate_blocked(self) -> None:
        """Rebuild the occupancy index from the current tile classifications.

        Run after any en-masse tile rewrite and before anything that tests
        blocking.
        """
        self.invalidate_property_caches()
        self.blocked[:] = ~self.walkable

    def is_blocked_idx(self, idx: TileIndex) -> bool:
        x, y = self.idx_xy(idx)
        return bool(self.blocked[x, y])

    # -------------------------------------------------------------------------
    # Copies
    # -------------------------------------------------------------------------

    def copy(self) -> GameMap:
        clone = GameMap(self.depth, self.width, self.height, self.name)
        clone.outdoors = self.outdoors
        clone.tiles = self.tiles.copy(order="F")
        clone.revealed = self.revealed.copy(order="F")
        clone.visible = self.visible.copy(order="F")
        clone.blocked = self.blocked.copy(order="F")
        return clone

    def snapshot(self) -> GameMap:
        """A deep copy with every tile revealed, for mapgen history viewers."""
        clone = self.copy()
        clone.revealed[:] = True
        return clone

    def __repr__(self) -> str:
        return (
            f"GameMap(depth={self.depth}, name={self.name!r}, "
            f"size={self.width}x{self.height})"
        )
