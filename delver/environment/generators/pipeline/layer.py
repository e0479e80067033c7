"""Abstract base classes for generation layers.

A builder chain runs exactly one initial layer, which lays down a complete
grid from nothing, followed by any number of modifier layers, each of which
rewrites the grid or the rest of the BuildData in place. One class may play
both roles (cellular automata seeds-and-iterates as an initial layer, but only
smooths as a modifier).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from delver.util.coordinates import Rect
    from delver.util.rng import RNG

    from .context import BuildData


class BuilderConfigurationError(RuntimeError):
    """A recipe was composed incorrectly.

    Raised for structural mistakes such as a chain with two initial layers,
    a room-dependent modifier run after a roomless initial layer, or culling
    before any starting position exists. These are programming errors and
    are never caught inside the generator.
    """


class InitialLayer(ABC):
    """A layer that produces the whole grid, ignoring prior tile state."""

    @abstractmethod
    def build(self, data: BuildData, rng: RNG) -> None:
        """Lay down a complete grid in ``data``.

        Args:
            data: The generation state to fill in.
            rng: Random stream for this run. Do not keep a reference to it.
        """
        raise NotImplementedError


class ModifierLayer(ABC):
    """A layer that reads and rewrites an existing BuildData."""

    @abstractmethod
    def apply(self, data: BuildData, rng: RNG) -> None:
        """Apply this layer's logic to ``data`` in place.

        This method may:
        - Rewrite tiles (data.game_map.tiles)
        - Replace or reorder rooms and corridors
        - Append to or prune data.spawn_list
        - Move data.starting_position

        Args:
            data: The generation state to modify.
            rng: Random stream for this run. Do not keep a reference to it.
        """
        raise NotImplementedError


def require_rooms(data: BuildData, layer: object) -> list[Rect]:
    """Return ``data.rooms`` or fail loudly if the recipe never made any."""
    if data.rooms is None:
        raise BuilderConfigurationError(
            f"{type(layer).__name__} requires a builder with room structures"
        )
    return data.rooms


def require_start(data: BuildData, layer: object) -> tuple[int, int]:
    """Return ``data.starting_position`` or fail loudly if none is set."""
    if data.starting_position is None:
        raise BuilderConfigurationError(
            f"{type(layer).__name__} requires a starting position"
        )
    return data.starting_position
