#!/usr/bin/env python3
"""Generate a level and print it as ASCII.

Examples:
    python scripts/preview_level.py --depth 3 --seed burrow1
    python scripts/preview_level.py --recipe town --history
"""

from __future__ import annotations

import argparse
import logging
from collections import Counter

from delver import config
from delver.environment.generators.pipeline import (
    RECIPES,
    MapHistory,
    level_builder,
    recipe_builder,
)
from delver.environment.map import GameMap
from delver.environment.tile_types import TileTypeID
from delver.util.rng import RNGProvider

TILE_GLYPHS: dict[TileTypeID, str] = {
    TileTypeID.WALL: "#",
    TileTypeID.FLOOR: ".",
    TileTypeID.DOWN_STAIRS: ">",
    TileTypeID.UP_STAIRS: "<",
    TileTypeID.ROAD: "=",
    TileTypeID.GRASS: '"',
    TileTypeID.SHALLOW_WATER: "~",
    TileTypeID.DEEP_WATER: "≈",
    TileTypeID.WOOD_FLOOR: "_",
    TileTypeID.BRIDGE: "+",
    TileTypeID.GRAVEL: ",",
    TileTypeID.STALACTITE: "╨",
    TileTypeID.STALAGMITE: "╥",
}


def render(
    game_map: GameMap,
    start: tuple[int, int] | None = None,
    spawns: set[int] | None = None,
) -> str:
    """Draw ``game_map`` row by row; '@' marks the start, 'e' a spawn."""
    lines = []
    for y in range(game_map.height):
        row = []
        for x in range(game_map.width):
            if (x, y) == start:
                row.append("@")
            elif spawns and y * game_map.width + x in spawns:
                row.append("e")
            else:
                row.append(TILE_GLYPHS.get(TileTypeID(game_map.tiles[x, y]), "?"))
        lines.append("".join(row))
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Preview a generated level")
    parser.add_argument("--depth", type=int, default=1, help="Depth to generate")
    parser.add_argument(
        "--seed", type=str, default=config.RANDOM_SEED, help="Master seed"
    )
    parser.add_argument("--width", type=int, default=config.MAP_WIDTH)
    parser.add_argument("--height", type=int, default=config.MAP_HEIGHT)
    parser.add_argument(
        "--recipe",
        choices=sorted(RECIPES),
        help="Use this recipe instead of the one chosen for the depth",
    )
    parser.add_argument(
        "--history", action="store_true", help="Print every generation snapshot"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    rng = RNGProvider(args.seed).for_depth(args.depth)
    history = MapHistory() if args.history else None
    if args.recipe:
        chain = recipe_builder(
            args.recipe, args.depth, rng, args.width, args.height, history=history
        )
    else:
        chain = level_builder(args.depth, rng, args.width, args.height, history=history)
    chain.build_map(rng)
    level = chain.to_generated_level()

    if history is not None:
        for i, snapshot in enumerate(history.snapshots):
            print(f"--- snapshot {i + 1}/{len(history)} ---")
            print(render(snapshot))
            print()

    print(f"{level.game_map.name} (depth {args.depth}, seed {args.seed!r})")
    print(
        render(
            level.game_map,
            level.starting_position,
            {idx for idx, _ in level.spawn_list},
        )
    )
    print()
    counts = Counter(key for _, key in level.spawn_list)
    for key, count in counts.most_common():
        print(f"{count:4d}  {key}")


if __name__ == "__main__":
    main()
