"""
Tile Type system for level generation using the flyweight pattern.

This module defines:
- `TileTypeID`: the enumerated tag stored per tile in a `GameMap`. Maps store
  a NumPy array of these small integers rather than full tile records.
- `TileTypeData`: the intrinsic properties of a *type* of tile (walkable,
  transparent, movement cost, display name). These are the flyweight objects.
- A registration system binding each `TileTypeID` to its `TileTypeData`.
- Helper functions that turn a `TileTypeID` map into a property map (e.g., a
  boolean map of all walkable tiles), plus scalar lookups for single tiles.

The walkable/opaque/cost helpers here are the only place generation code learns
what a tile *means*. Layers must ask these helpers instead of comparing against
specific tile types when they care about passability or sight.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np


class TileTypeID(IntEnum):
    """Stable integer IDs for every tile type.

    The order here is the registration order, and WALL must stay 0 so that a
    freshly allocated map is solid rock.
    """

    WALL = 0
    FLOOR = 1
    DOWN_STAIRS = 2
    UP_STAIRS = 3
    ROAD = 4
    GRASS = 5
    SHALLOW_WATER = 6
    DEEP_WATER = 7
    WOOD_FLOOR = 8
    BRIDGE = 9
    GRAVEL = 10
    STALACTITE = 11
    STALAGMITE = 12


# Defines the intrinsic data for a *type* of tile (flyweight).
TileTypeData = np.dtype(
    [
        ("walkable", bool),
        ("transparent", bool),  # FOV/line-of-sight
        ("cost", np.float32),  # Movement cost multiplier for pathing
        ("display_name", "U32"),  # Human-readable name (Unicode string, max 32 chars)
    ]
)

# --- Tile Type Registration ---

# Indexed by TileTypeID; filled by register_tile_type().
_registered_tile_type_data_list: list[np.ndarray | None] = [None] * len(TileTypeID)


def register_tile_type(tile_type_id: TileTypeID, data: np.ndarray) -> TileTypeID:
    """Bind ``data`` to ``tile_type_id``.

    Raises:
        ValueError: If the ID already has data registered.
    """
    if _registered_tile_type_data_list[tile_type_id] is not None:
        raise ValueError(f"Tile type {tile_type_id.name} is already registered.")
    _registered_tile_type_data_list[tile_type_id] = data
    return tile_type_id


def make_tile_type_data(
    *,  # Forces keyword arguments - prevents bugs from wrong parameter order
    walkable: bool,
    transparent: bool,
    display_name: str,
    cost: float = 1.0,
) -> np.ndarray:  # Returns an instance of TileTypeData
    """Create a TileTypeData instance."""
    return np.array((walkable, transparent, cost, display_name), dtype=TileTypeData)


# --- Define and Register Core Tile Types ---

register_tile_type(
    TileTypeID.WALL,
    make_tile_type_data(walkable=False, transparent=False, display_name="Wall"),
)
register_tile_type(
    TileTypeID.FLOOR,
    make_tile_type_data(walkable=True, transparent=True, display_name="Floor"),
)
register_tile_type(
    TileTypeID.DOWN_STAIRS,
    make_tile_type_data(walkable=True, transparent=True, display_name="Down Stairs"),
)
register_tile_type(
    TileTypeID.UP_STAIRS,
    make_tile_type_data(walkable=True, transparent=True, display_name="Up Stairs"),
)
register_tile_type(
    TileTypeID.ROAD,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Road", cost=0.8
    ),
)
register_tile_type(
    TileTypeID.GRASS,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Grass", cost=1.1
    ),
)
register_tile_type(
    TileTypeID.SHALLOW_WATER,
    make_tile_type_data(
        walkable=True, transparent=True, display_name="Shallow Water", cost=1.2
    ),
)
register_tile_type(
    TileTypeID.DEEP_WATER,
    make_tile_type_data(walkable=False, transparent=True, display_name="Deep Water"),
)
register_tile_type(
    TileTypeID.WOOD_FLOOR,
    make_tile_type_data(walkable=True, transparent=True, display_name="Wood Floor"),
)
register_tile_type(
    TileTypeID.BRIDGE,
    make_tile_type_data(walkable=True, transparent=True, display_name="Bridge"),
)
register_tile_type(
    TileTypeID.GRAVEL,
    make_tile_type_data(walkable=True, transparent=True, display_name="Gravel"),
)
register_tile_type(
    TileTypeID.STALACTITE,
    make_tile_type_data(walkable=False, transparent=False, display_name="Stalactite"),
)
register_tile_type(
    TileTypeID.STALAGMITE,
    make_tile_type_data(walkable=False, transparent=False, display_name="Stalagmite"),
)

# --- Pre-calculated Property Arrays for Efficient Lookups ---
# Built after every tile type is registered; indexing one of these with a
# TileTypeID map gives the matching property map in a single vectorized step.

_tile_type_properties_walkable = np.array(
    [t["walkable"] for t in _registered_tile_type_data_list], dtype=bool
)
_tile_type_properties_transparent = np.array(
    [t["transparent"] for t in _registered_tile_type_data_list], dtype=bool
)
_tile_type_properties_cost = np.array(
    [t["cost"] for t in _registered_tile_type_data_list], dtype=np.float32
)
_tile_type_properties_display_name = np.array(
    [t["display_name"] for t in _registered_tile_type_data_list], dtype="U32"
)

# --- Public Helper Functions for Accessing Tile Properties ---


def is_tile_walkable(tile_type_id: int) -> bool:
    return bool(_tile_type_properties_walkable[tile_type_id])


def is_tile_opaque(tile_type_id: int) -> bool:
    return not _tile_type_properties_transparent[tile_type_id]


def get_tile_cost(tile_type_id: int) -> float:
    return float(_tile_type_properties_cost[tile_type_id])


def classify(tile_type_id: int) -> tuple[bool, bool, float]:
    """Return the (walkable, opaque, cost) triple for a single tile type."""
    return (
        is_tile_walkable(tile_type_id),
        is_tile_opaque(tile_type_id),
        get_tile_cost(tile_type_id),
    )


def get_walkable_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    """
    Converts a map of TileTypeIDs into a boolean map of walkability.
    True means the tile at that position is walkable.
    """
    return _tile_type_properties_walkable[tile_type_ids_map]


def get_transparent_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    return _tile_type_properties_transparent[tile_type_ids_map]


def get_opaque_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    return ~_tile_type_properties_transparent[tile_type_ids_map]


def get_cost_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    """
    Converts a map of TileTypeIDs into a float32 map of movement costs.
    Costs are reported for every tile; callers mask out non-walkable tiles.
    """
    return _tile_type_properties_cost[tile_type_ids_map]


def get_tile_type_data_by_id(tile_type_id: int) -> np.ndarray:  # Returns TileTypeData
    """Retrieve the full TileTypeData instance for a given TileTypeID."""
    if 0 <= tile_type_id < len(_registered_tile_type_data_list):
        return _registered_tile_type_data_list[tile_type_id]
    raise IndexError(
        f"Invalid TileTypeID: {tile_type_id}. "
        f"Registered IDs are 0 to {len(_registered_tile_type_data_list) - 1}."
    )


def get_tile_type_name_by_id(tile_type_id: int) -> str:
    """Get the human-readable name of a tile type by its ID."""
    if 0 <= tile_type_id < len(_tile_type_properties_display_name):
        return str(_tile_type_properties_display_name[tile_type_id])
    return f"Unknown Tile (ID: {tile_type_id})"
