"""Generation state for the builder chain.

BuildData is a mutable container that holds all state during level
generation. The initial layer and every modifier receive the same BuildData
and modify it in place, so large numpy arrays are never copied between stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from delver.environment.map import GameMap
from delver.types import Depth, EntityKey, SpawnIntent, TileIndex, WorldTilePos
from delver.util.coordinates import Rect

if TYPE_CHECKING:
    from delver.raws import RawMaster


@dataclass
class MapHistory:
    """Ordered list of full-grid snapshots, one per pipeline stage.

    Diagnostics only: nothing in generation ever reads it back.
    """

    snapshots: list[GameMap] = field(default_factory=list)

    def record(self, game_map: GameMap) -> None:
        self.snapshots.append(game_map.snapshot())

    def extend(self, other: MapHistory) -> None:
        self.snapshots.extend(other.snapshots)

    def __len__(self) -> int:
        return len(self.snapshots)


@dataclass
class BuildData:
    """Mutable state container passed through the builder chain.

    Attributes:
        game_map: The level being built.
        raws: Read-only spawn raws used to resolve spawn tables.
        spawn_list: Accumulated (tile index, entity key) spawn intents.
        starting_position: Where the player enters, once a layer has chosen it.
        rooms: Carved rooms, for room-based recipes. None means the initial
            layer produced no room structure.
        corridors: Carved corridors as lists of tile indices.
        history: Optional snapshot sink. None disables snapshots entirely.
    """

    game_map: GameMap
    raws: RawMaster
    spawn_list: list[SpawnIntent] = field(default_factory=list)
    starting_position: WorldTilePos | None = None
    rooms: list[Rect] | None = None
    corridors: list[list[TileIndex]] | None = None
    history: MapHistory | None = None

    @classmethod
    def create_empty(
        cls,
        depth: Depth,
        width: int,
        height: int,
        raws: RawMaster,
        name: str = "New Map",
        history: MapHistory | None = None,
    ) -> BuildData:
        """Create generation state around an all-wall map."""
        return cls(
            game_map=GameMap(depth, width, height, name),
            raws=raws,
            history=history,
        )

    @property
    def width(self) -> int:
        return self.game_map.width

    @property
    def height(self) -> int:
        return self.game_map.height

    @property
    def depth(self) -> Depth:
        return self.game_map.depth

    def take_snapshot(self) -> None:
        """Record the current grid when a history sink is attached."""
        if self.history is not None:
            self.history.record(self.game_map)

    def start_index(self) -> TileIndex | None:
        if self.starting_position is None:
            return None
        return self.game_map.xy_idx(*self.starting_position)

    def add_spawn(self, idx: TileIndex, key: EntityKey) -> None:
        self.spawn_list.append((idx, key))

    def spawned_indices(self) -> set[TileIndex]:
        return {idx for idx, _ in self.spawn_list}
