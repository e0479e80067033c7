"""Spawn raws: named entity templates and the depth-scaled spawn table.

Raws are plain JSON. `load_raws()` parses them into a `RawMaster`, which
generation receives as an explicit read-only argument. Nothing in the package
keeps a process-wide copy, so two builds with different raws can run side by
side.

File layout:

    {
        "mobs":  [{"name": "Goblin", ...}, ...],
        "items": [{"name": "Rations", ...}, ...],
        "props": [{"name": "Door", ...}, ...],
        "spawn_table": [
            {"name": "Goblin", "weight": 10, "min_depth": 3, "max_depth": 100},
            {"name": "Orc", "weight": 1, "min_depth": 3, "max_depth": 100,
             "add_map_depth_to_weight": true}
        ]
    }

Template bodies beyond ``name`` belong to the external entity spawner and are
carried through untouched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from delver import config
from delver.util.dice import roll_dice

if TYPE_CHECKING:
    from delver.types import Depth, EntityKey
    from delver.util.rng import RNG

logger = logging.getLogger(__name__)

# Table draws that land on this key spawn nothing.
NO_SPAWN = "None"

TEMPLATE_KINDS = ("mobs", "items", "props")


@dataclass(frozen=True)
class SpawnTableEntry:
    name: EntityKey
    weight: int
    min_depth: Depth
    max_depth: Depth
    add_map_depth_to_weight: bool = False

    def available_at(self, depth: Depth) -> bool:
        return self.min_depth <= depth <= self.max_depth

    def weight_at(self, depth: Depth) -> int:
        return self.weight + depth if self.add_map_depth_to_weight else self.weight


@dataclass
class RandomTable:
    """Weighted table of entity keys.

    Rolls use integer dice (``1d<total weight>``) against the caller's stream,
    so a table draw consumes exactly one random number.
    """

    entries: list[tuple[EntityKey, int]] = field(default_factory=list)

    def add(self, name: EntityKey, weight: int) -> RandomTable:
        if weight > 0:
            self.entries.append((name, weight))
        return self

    @property
    def total_weight(self) -> int:
        return sum(weight for _, weight in self.entries)

    def roll(self, rng: RNG) -> EntityKey:
        """Draw one key; an empty table always yields `NO_SPAWN`."""
        total = self.total_weight
        if total == 0:
            return NO_SPAWN

        roll = roll_dice(rng, 1, total) - 1
        for name, weight in self.entries:
            if roll < weight:
                return name
            roll -= weight
        return NO_SPAWN

    def __len__(self) -> int:
        return len(self.entries)


class RawMaster:
    """Indexed, read-only view of the spawn raws."""

    def __init__(
        self,
        templates: dict[str, list[dict[str, Any]]] | None = None,
        spawn_table: list[SpawnTableEntry] | None = None,
    ) -> None:
        self.templates: dict[str, list[dict[str, Any]]] = {
            kind: list((templates or {}).get(kind, [])) for kind in TEMPLATE_KINDS
        }
        self.spawn_table: list[SpawnTableEntry] = list(spawn_table or [])
        self._kind_by_name: dict[EntityKey, str] = {}
        self._index()

    @classmethod
    def empty(cls) -> RawMaster:
        return cls()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> RawMaster:
        """Build a RawMaster from parsed JSON.

        Raises:
            ValueError: If a section has the wrong shape or an entry is missing
                a required field.
        """
        templates: dict[str, list[dict[str, Any]]] = {}
        for kind in TEMPLATE_KINDS:
            section = raw.get(kind, [])
            if not isinstance(section, list):
                raise ValueError(f"Raws section {kind!r} must be a list")
            for template in section:
                if not isinstance(template, dict) or "name" not in template:
                    raise ValueError(f"Every entry in {kind!r} needs a name")
            templates[kind] = section

        entries: list[SpawnTableEntry] = []
        for entry in raw.get("spawn_table", []):
            try:
                entries.append(
                    SpawnTableEntry(
                        name=entry["name"],
                        weight=int(entry["weight"]),
                        min_depth=int(entry["min_depth"]),
                        max_depth=int(entry["max_depth"]),
                        add_map_depth_to_weight=bool(
                            entry.get("add_map_depth_to_weight", False)
                        ),
                    )
                )
            except (KeyError, TypeError) as exc:
                raise ValueError(f"Malformed spawn table entry: {entry!r}") from exc

        return cls(templates, entries)

    def _index(self) -> None:
        for kind in TEMPLATE_KINDS:
            for template in self.templates[kind]:
                name = template["name"]
                if name in self._kind_by_name:
                    logger.warning(f"Duplicate template name in raws: {name}")
                self._kind_by_name[name] = kind

        for entry in self.spawn_table:
            if entry.name != NO_SPAWN and entry.name not in self._kind_by_name:
                logger.warning(
                    f"Spawn table entry {entry.name} has no matching mob, item or prop"
                )

    def has_template(self, name: EntityKey) -> bool:
        return name in self._kind_by_name

    def template_kind(self, name: EntityKey) -> str | None:
        """Return "mobs", "items" or "props" for a known template, else None."""
        return self._kind_by_name.get(name)

    def get_spawn_table_for_depth(self, depth: Depth) -> RandomTable:
        """Weighted table of everything allowed to spawn at ``depth``."""
        table = RandomTable()
        for entry in self.spawn_table:
            if entry.available_at(depth):
                table.add(entry.name, entry.weight_at(depth))
        return table


def load_raws(path: Path | str | None = None) -> RawMaster:
    """Load spawn raws from JSON. Defaults to the raws shipped with delver.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the JSON is malformed or has the wrong shape.
    """
    raws_path = Path(path) if path is not None else config.RAWS_PATH
    with raws_path.open(encoding="utf-8") as fh:
        try:
            raw = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid raws file {raws_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"Raws file {raws_path} must contain a JSON object")

    raws = RawMaster.from_dict(raw)
    logger.debug(
        f"Loaded raws from {raws_path}: {len(raws.spawn_table)} spawn table entries"
    )
    return raws
