"""Layer-based level generation.

A BuilderChain runs exactly one InitialLayer, which lays down a whole grid,
followed by any number of ModifierLayers, each rewriting a shared BuildData
in place. The finished chain hands back a GeneratedLevel.

Example usage:
    from delver.environment.generators.pipeline import level_builder

    chain = level_builder(3, rng, 80, 50)
    chain.build_map(rng)
    level = chain.to_generated_level()

Chains can also be assembled by hand:
    from delver.environment.generators.pipeline import (
        AreaStartingPosition,
        BuilderChain,
        CellularAutomataBuilder,
        CullUnreachable,
        DistantExit,
        XStart,
        YStart,
    )

    chain = BuilderChain(6, 80, 50, "Caves")
    chain.start_with(CellularAutomataBuilder())
    chain.with_modifier(AreaStartingPosition(XStart.CENTER, YStart.CENTER))
    chain.with_modifier(CullUnreachable())
    chain.with_modifier(DistantExit())
"""

from .context import BuildData, MapHistory
from .factory import (
    RECIPES,
    forest_builder,
    level_builder,
    limestone_cavern_builder,
    limestone_deep_cavern_builder,
    limestone_transition_builder,
    random_builder,
    recipe_builder,
    town_builder,
)
from .layer import BuilderConfigurationError, InitialLayer, ModifierLayer
from .layers import (
    AreaEndingPosition,
    AreaStartingPosition,
    CellularAutomataBuilder,
    CullUnreachable,
    DistantExit,
    XEnd,
    XStart,
    YEnd,
    YStart,
)
from .pipeline import BuilderChain, ChainState, EntitySpawner, GeneratedLevel

__all__ = [
    "RECIPES",
    "AreaEndingPosition",
    "AreaStartingPosition",
    "BuildData",
    "BuilderChain",
    "BuilderConfigurationError",
    "CellularAutomataBuilder",
    "ChainState",
    "CullUnreachable",
    "DistantExit",
    "EntitySpawner",
    "GeneratedLevel",
    "InitialLayer",
    "MapHistory",
    "ModifierLayer",
    "XEnd",
    "XStart",
    "YEnd",
    "YStart",
    "forest_builder",
    "level_builder",
    "limestone_cavern_builder",
    "limestone_deep_cavern_builder",
    "limestone_transition_builder",
    "random_builder",
    "recipe_builder",
    "town_builder",
]
