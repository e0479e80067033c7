from __future__ import annotations

# =============================================================================
# TILE-BASED COORDINATE SYSTEMS (Always integers)
# =============================================================================


TileCoord = int  # Always integer tile position

# Map coordinates - absolute positions on the generated grid
WorldTileCoord = TileCoord  # Example: x=5, y=3
WorldTilePos = tuple[WorldTileCoord, WorldTileCoord]  # Example: (5, 3)

# Flat index into a map's parallel arrays, always y * width + x
TileIndex = int

# =============================================================================
# GENERATION TYPES
# =============================================================================

# Seed for the RNG provider. None means non-deterministic.
RandomSeed = int | str | None

# Name of an entity template in the spawn raws (e.g., "Goblin").
EntityKey = str

# One spawn intent: the tile it targets and the template to build there.
SpawnIntent = tuple[TileIndex, EntityKey]

# Depth of a level below the surface. The town is depth 1.
Depth = int
