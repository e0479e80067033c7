"""Builder chain that orchestrates layer-based level generation.

The BuilderChain runs one InitialLayer and then a sequence of ModifierLayers,
each transforming a shared BuildData. This enables compositional level
generation where each layer focuses on one aspect of the map.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from delver import config
from delver.raws import RawMaster, load_raws
from delver.types import Depth, EntityKey, SpawnIntent, TileIndex, WorldTilePos

from .context import BuildData, MapHistory
from .layer import BuilderConfigurationError

if TYPE_CHECKING:
    from delver.environment.map import GameMap
    from delver.util.rng import RNG

    from .layer import InitialLayer, ModifierLayer

logger = logging.getLogger(__name__)

type EntitySpawner = Callable[[TileIndex, EntityKey], None]


class ChainState(Enum):
    EMPTY = auto()
    HAS_INITIAL = auto()
    FINALIZED = auto()


@dataclass
class GeneratedLevel:
    """Everything a finished build hands to the world.

    Attributes:
        game_map: The finished grid.
        starting_position: Where the player enters.
        spawn_list: Validated (tile index, entity key) intents.
        history: Per-stage snapshots when diagnostics were enabled.
    """

    game_map: GameMap
    starting_position: WorldTilePos | None
    spawn_list: list[SpawnIntent]
    history: MapHistory | None = None


class BuilderChain:
    """Runs a recipe: exactly one initial layer, then modifiers in order.

    State machine: ``EMPTY -> HAS_INITIAL -> FINALIZED``.

    Example:
        chain = BuilderChain(3, 80, 50, "Limestone Caverns", raws=raws)
        chain.start_with(DrunkardsWalkBuilder.winding_passages())
        chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
        chain.with_modifier(CullUnreachable())
        chain.build_map(rng)
        level = chain.to_generated_level()

    Attributes:
        build_data: The generation state, owned by this chain for its lifetime.
    """

    def __init__(
        self,
        depth: Depth,
        width: int,
        height: int,
        name: str = "New Map",
        raws: RawMaster | None = None,
        history: MapHistory | None = None,
    ) -> None:
        """Initialize an empty chain.

        Args:
            depth: Depth of the level being built.
            width: Map width in tiles.
            height: Map height in tiles.
            name: Human-readable level name.
            raws: Spawn raws. Defaults to the raws shipped with the package.
            history: Snapshot sink. When omitted, one is created only if
                ``config.MAPGEN_SNAPSHOTS`` is enabled.
        """
        if history is None and config.MAPGEN_SNAPSHOTS:
            history = MapHistory()
        self.build_data = BuildData.create_empty(
            depth,
            width,
            height,
            raws=raws if raws is not None else load_raws(),
            name=name,
            history=history,
        )
        self._starter: InitialLayer | None = None
        self._modifiers: list[ModifierLayer] = []
        self._state = ChainState.EMPTY

    @property
    def state(self) -> ChainState:
        return self._state

    @property
    def modifiers(self) -> tuple[ModifierLayer, ...]:
        return tuple(self._modifiers)

    @property
    def starter(self) -> InitialLayer | None:
        return self._starter

    def start_with(self, starter: InitialLayer) -> BuilderChain:
        """Set the initial layer. Only one is allowed."""
        if self._state is not ChainState.EMPTY:
            raise BuilderConfigurationError("You can only have one starting builder.")
        self._starter = starter
        self._state = ChainState.HAS_INITIAL
        return self

    def with_modifier(self, modifier: ModifierLayer) -> BuilderChain:
        """Append a modifier layer. Modifiers run in the order they are added."""
        if self._state is ChainState.EMPTY:
            raise BuilderConfigurationError(
                "Set a starting builder before adding modifiers."
            )
        if self._state is ChainState.FINALIZED:
            raise BuilderConfigurationError(
                "Cannot modify a chain that has been built."
            )
        self._modifiers.append(modifier)
        return self

    def build_map(self, rng: RNG) -> BuildData:
        """Run the initial layer and every modifier against ``rng``.

        Returns:
            The finalized BuildData.

        Raises:
            BuilderConfigurationError: If no starting builder was set or the
                chain has already been built.
        """
        if self._starter is None:
            raise BuilderConfigurationError(
                "Cannot run a map builder chain without a starting build system"
            )
        if self._state is ChainState.FINALIZED:
            raise BuilderConfigurationError(
                "This builder chain has already been built."
            )

        data = self.build_data
        logger.debug(
            f"Building {data.game_map.name!r} (depth {data.depth}) with "
            f"{type(self._starter).__name__} and {len(self._modifiers)} modifiers"
        )

        self._starter.build(data, rng)
        data.take_snapshot()

        for modifier in self._modifiers:
            modifier.apply(data, rng)
            data.take_snapshot()

        data.game_map.populate_blocked()
        self._prune_spawns()
        self._state = ChainState.FINALIZED
        return data

    def _prune_spawns(self) -> None:
        """Drop intents a later stage invalidated.

        Keeps the first intent per tile and discards any intent on the
        starting tile or on a tile that is no longer walkable.
        """
        data = self.build_data
        game_map = data.game_map
        start_idx = data.start_index()
        blocked = game_map.blocked.ravel(order="F")

        seen: set[TileIndex] = set()
        kept: list[SpawnIntent] = []
        for idx, key in data.spawn_list:
            if idx in seen or idx == start_idx:
                continue
            if not 0 <= idx < game_map.tile_count or blocked[idx]:
                continue
            seen.add(idx)
            kept.append((idx, key))

        pruned = len(data.spawn_list) - len(kept)
        if pruned:
            logger.debug(f"Pruned {pruned} stale spawn intents")
        data.spawn_list = kept

    def spawn_entities(self, spawner: EntitySpawner) -> int:
        """Hand every spawn intent to ``spawner`` in list order.

        Returns:
            The number of intents handed over.
        """
        if self._state is not ChainState.FINALIZED:
            raise BuilderConfigurationError("Build the map before spawning entities.")
        for idx, key in self.build_data.spawn_list:
            spawner(idx, key)
        return len(self.build_data.spawn_list)

    def to_generated_level(self) -> GeneratedLevel:
        if self._state is not ChainState.FINALIZED:
            raise BuilderConfigurationError("Build the map before extracting it.")
        data = self.build_data
        return GeneratedLevel(
            game_map=data.game_map,
            starting_position=data.starting_position,
            spawn_list=list(data.spawn_list),
            history=data.history,
        )
