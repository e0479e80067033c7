from __future__ import annotations

from collections.abc import Iterator

from delver.types import TileCoord, WorldTilePos

# =============================================================================
# RECTANGLES
# =============================================================================


class Rect:
    """Rectangle/bounding box in tile coordinates.

    Rooms are carved in the interior ``x1 + 1 .. x2`` by ``y1 + 1 .. y2``,
    so the outer ring of a room's rect stays wall.
    """

    def __init__(self, x: TileCoord, y: TileCoord, w: TileCoord, h: TileCoord) -> None:
        self.x1: TileCoord = x
        self.y1: TileCoord = y
        self.x2: TileCoord = x + w
        self.y2: TileCoord = y + h

    @classmethod
    def from_bounds(
        cls, x1: TileCoord, y1: TileCoord, x2: TileCoord, y2: TileCoord
    ) -> Rect:
        """Create a Rect from corner coordinates (x1, y1, x2, y2)."""
        return cls(x1, y1, x2 - x1, y2 - y1)

    @property
    def width(self) -> TileCoord:
        return self.x2 - self.x1

    @property
    def height(self) -> TileCoord:
        return self.y2 - self.y1

    def center(self) -> WorldTilePos:
        return ((self.x1 + self.x2) // 2, (self.y1 + self.y2) // 2)

    def intersects(self, other: Rect) -> bool:
        return (
            self.x1 <= other.x2
            and self.x2 >= other.x1
            and self.y1 <= other.y2
            and self.y2 >= other.y1
        )

    def contains(self, x: TileCoord, y: TileCoord) -> bool:
        """True if (x, y) lies in the carved interior of this rect."""
        return self.x1 < x <= self.x2 and self.y1 < y <= self.y2

    def interior(self) -> Iterator[WorldTilePos]:
        """Yield the interior tiles in scan order (row by row)."""
        for y in range(self.y1 + 1, self.y2 + 1):
            for x in range(self.x1 + 1, self.x2 + 1):
                yield x, y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.x1, self.y1, self.x2, self.y2) == (
            other.x1,
            other.y1,
            other.x2,
            other.y2,
        )

    def __hash__(self) -> int:
        return hash((self.x1, self.y1, self.x2, self.y2))

    def __repr__(self) -> str:
        return f"Rect(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"


# =============================================================================
# BOUNDS CHECKING HELPERS
# =============================================================================


def is_valid_world_tile_pos(
    pos: WorldTilePos, map_width: TileCoord, map_height: TileCoord
) -> bool:
    """Check if world tile position is within map bounds."""
    x, y = pos
    return 0 <= x < map_width and 0 <= y < map_height


def distance_squared(a: WorldTilePos, b: WorldTilePos) -> int:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy
