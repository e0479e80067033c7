"""Stamp hand-drawn prefabs onto a level.

PrefabBuilder plays three roles, picked by its constructor:

- ``constant``: an initial layer that lays a complete prefab level in the
  middle of an otherwise solid map
- ``sectional``: a modifier that stamps a section at a fixed anchor, first
  clearing any spawn intents under its footprint
- ``vaults``: a modifier that drops a few depth-appropriate vaults onto
  stretches of plain floor

No stamp ever overwrites the starting tile.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

import numpy as np

from delver.environment.generators.pipeline.layer import (
    BuilderConfigurationError,
    InitialLayer,
    ModifierLayer,
)
from delver.environment.tile_types import TileTypeID
from delver.util.dice import roll_dice

from .prefab_data import (
    VAULTS,
    HorizontalPlacement,
    PrefabLevel,
    PrefabRoom,
    PrefabSection,
    VerticalPlacement,
)

if TYPE_CHECKING:
    from delver.environment.generators.pipeline.context import BuildData
    from delver.types import EntityKey, WorldTilePos
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)

START_GLYPH = "@"

# glyph -> (tile, spawned entity or None)
GLYPHS: dict[str, tuple[TileTypeID, EntityKey | None]] = {
    " ": (TileTypeID.FLOOR, None),
    "#": (TileTypeID.WALL, None),
    "≈": (TileTypeID.DEEP_WATER, None),
    START_GLYPH: (TileTypeID.FLOOR, None),
    ">": (TileTypeID.DOWN_STAIRS, None),
    "g": (TileTypeID.FLOOR, "Goblin"),
    "o": (TileTypeID.FLOOR, "Orc"),
    "O": (TileTypeID.FLOOR, "Orc Leader"),
    "e": (TileTypeID.FLOOR, "Dark Elf"),
    "^": (TileTypeID.FLOOR, "Bear Trap"),
    "%": (TileTypeID.FLOOR, "Rations"),
    "!": (TileTypeID.FLOOR, "Health Potion"),
    "☼": (TileTypeID.FLOOR, "Watch Fire"),
}


class PrefabMode(Enum):
    CONSTANT = auto()
    SECTIONAL = auto()
    VAULTS = auto()


def stamp(data: BuildData, rows: list[str], origin: WorldTilePos) -> None:
    """Write ``rows`` onto the map with their top-left corner at ``origin``.

    Glyphs that fall outside the map are dropped. The starting tile is left
    untouched, and no spawn is placed on it.
    """
    game_map = data.game_map
    ox, oy = origin
    start = data.starting_position
    for dy, row in enumerate(rows):
        for dx, glyph in enumerate(row):
            x, y = ox + dx, oy + dy
            if not game_map.in_bounds(x, y) or (x, y) == start:
                continue
            if glyph not in GLYPHS:
                logger.warning(f"Unknown prefab glyph {glyph!r} at ({x}, {y})")
            tile, entity = GLYPHS.get(glyph, (TileTypeID.FLOOR, None))
            game_map.tiles[x, y] = tile
            if entity is not None:
                data.add_spawn(game_map.xy_idx(x, y), entity)
            elif glyph == START_GLYPH:
                data.starting_position = (x, y)
    game_map.populate_blocked()


class PrefabBuilder(InitialLayer, ModifierLayer):
    """Hand-drawn content, as a whole level, an anchored section or vaults."""

    def __init__(
        self,
        mode: PrefabMode,
        level: PrefabLevel | None = None,
        section: PrefabSection | None = None,
        vaults: tuple[PrefabRoom, ...] = VAULTS,
    ) -> None:
        self.mode = mode
        self.level = level
        self.section = section
        self.vault_pool = vaults

    @classmethod
    def constant(cls, level: PrefabLevel) -> PrefabBuilder:
        return cls(PrefabMode.CONSTANT, level=level)

    @classmethod
    def sectional(cls, section: PrefabSection) -> PrefabBuilder:
        return cls(PrefabMode.SECTIONAL, section=section)

    @classmethod
    def vaults(cls, vaults: tuple[PrefabRoom, ...] = VAULTS) -> PrefabBuilder:
        return cls(PrefabMode.VAULTS, vaults=vaults)

    def build(self, data: BuildData, rng: RNG) -> None:
        if self.mode is not PrefabMode.CONSTANT or self.level is None:
            raise BuilderConfigurationError(
                f"A {self.mode.name.lower()} prefab cannot start a chain"
            )
        level = self.level
        origin = (
            max((data.width - level.width) // 2, 0),
            max((data.height - level.height) // 2, 0),
        )
        stamp(data, level.rows(), origin)

    def apply(self, data: BuildData, rng: RNG) -> None:
        match self.mode:
            case PrefabMode.SECTIONAL:
                self._apply_section(data)
            case PrefabMode.VAULTS:
                self._apply_vaults(data, rng)
            case PrefabMode.CONSTANT:
                raise BuilderConfigurationError(
                    "A constant prefab level can only start a chain"
                )

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _apply_section(self, data: BuildData) -> None:
        section = self.section
        if section is None:
            raise BuilderConfigurationError("Sectional prefab has no section")
        if section.width > data.width or section.height > data.height:
            logger.debug(
                f"Section {section.width}x{section.height} does not fit a "
                f"{data.width}x{data.height} map; skipped"
            )
            return

        horizontal, vertical = section.placement
        x0 = {
            HorizontalPlacement.LEFT: 0,
            HorizontalPlacement.CENTER: data.width // 2 - section.width // 2,
            HorizontalPlacement.RIGHT: data.width - 1 - section.width,
        }[horizontal]
        y0 = {
            VerticalPlacement.TOP: 0,
            VerticalPlacement.CENTER: data.height // 2 - section.height // 2,
            VerticalPlacement.BOTTOM: data.height - 1 - section.height,
        }[vertical]
        x0, y0 = max(x0, 0), max(y0, 0)

        game_map = data.game_map
        kept = []
        for idx, key in data.spawn_list:
            x, y = game_map.idx_xy(idx)
            inside = x0 <= x < x0 + section.width and y0 <= y < y0 + section.height
            if not inside:
                kept.append((idx, key))
        data.spawn_list = kept

        stamp(data, section.rows(), (x0, y0))

    # -------------------------------------------------------------------------
    # Vaults
    # -------------------------------------------------------------------------

    def _apply_vaults(self, data: BuildData, rng: RNG) -> None:
        if roll_dice(rng, 1, 6) < 4:
            return
        possible = [
            v for v in self.vault_pool if v.first_depth <= data.depth <= v.last_depth
        ]
        if not possible:
            return

        n_vaults = min(roll_dice(rng, 1, 3), len(possible))
        used = np.zeros((data.width, data.height), dtype=bool, order="F")
        for _ in range(n_vaults):
            pick = 0 if len(possible) == 1 else roll_dice(rng, 1, len(possible)) - 1
            vault = possible[pick]
            positions = self._vault_positions(data, vault, used)
            if not positions:
                logger.debug(f"No room for a {vault.width}x{vault.height} vault")
                continue
            x0, y0 = positions[roll_dice(rng, 1, len(positions)) - 1]
            stamp(data, vault.rows(), (x0, y0))
            used[x0 : x0 + vault.width, y0 : y0 + vault.height] = True
            data.take_snapshot()
            possible.pop(pick)

    @staticmethod
    def _vault_positions(
        data: BuildData, vault: PrefabRoom, used: np.ndarray
    ) -> list[WorldTilePos]:
        """Top-left corners where ``vault`` covers only free, plain floor."""
        game_map = data.game_map
        free = (game_map.tiles == TileTypeID.FLOOR) & ~used
        for idx in data.spawned_indices():
            free[game_map.idx_xy(idx)] = False
        if data.starting_position is not None:
            free[data.starting_position] = False

        positions: list[WorldTilePos] = []
        for y in range(2, data.height - vault.height - 2):
            for x in range(2, data.width - vault.width - 2):
                if free[x : x + vault.width, y : y + vault.height].all():
                    positions.append((x, y))
        return positions
