"""Spawn raws: entity templates and depth-scaled spawn tables."""

from .raw_master import (
    NO_SPAWN,
    RandomTable,
    RawMaster,
    SpawnTableEntry,
    load_raws,
)

__all__ = [
    "NO_SPAWN",
    "RandomTable",
    "RawMaster",
    "SpawnTableEntry",
    "load_raws",
]
