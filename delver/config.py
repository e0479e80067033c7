"""
Configuration constants.

Centralizes all magic numbers and configuration values used by level generation.
Organized by functional area for easy maintenance.
"""

from pathlib import Path

# =============================================================================
# GENERAL
# =============================================================================

# RANDOM_SEED = None
RANDOM_SEED = "burrow1"

# =============================================================================
# MAP DIMENSIONS
# =============================================================================

MAP_WIDTH = 80
MAP_HEIGHT = 50

# =============================================================================
# DIAGNOSTICS
# =============================================================================

# Record a full-grid snapshot after every pipeline stage. Off by default so
# production builds never clone grids; the preview script turns it on.
MAPGEN_SNAPSHOTS = False

# =============================================================================
# CELLULAR AUTOMATA
# =============================================================================

# A seed tile becomes floor when a 1d100 roll exceeds this value (~45% floor).
CA_FLOOR_ROLL_THRESHOLD = 55
CA_ITERATIONS = 15

# =============================================================================
# RANDOM WALK DIGGERS
# =============================================================================

# Safety valve: hard cap on the number of diggers a single walk may spawn.
DRUNKARD_MAX_DIGGERS = 2000

# =============================================================================
# DIFFUSION-LIMITED AGGREGATION
# =============================================================================

DLA_FLOOR_PERCENT = 0.25
# Safety valve: hard cap on the number of particles released.
DLA_MAX_PARTICLES = 20000

# =============================================================================
# ROOMS
# =============================================================================

SIMPLE_MAX_ROOMS = 30
SIMPLE_MIN_ROOM_SIZE = 6
SIMPLE_MAX_ROOM_SIZE = 10
BSP_DUNGEON_ATTEMPTS = 240
BSP_INTERIOR_MIN_ROOM_SIZE = 8

# =============================================================================
# VORONOI
# =============================================================================

VORONOI_SEEDS = 64

# One spawn region per this many tiles (80x50 maps get ~25 regions).
VORONOI_SPAWN_CELL_AREA = 156

# =============================================================================
# WAVEFORM COLLAPSE
# =============================================================================

WFC_CHUNK_SIZE = 8
WFC_MAX_ATTEMPTS = 5
# A layout is kept only if the floor connected to the map centre holds at
# least this share of the example map's walkable tiles.
WFC_MIN_FLOOR_FRACTION = 0.25

# =============================================================================
# TOWN
# =============================================================================

TOWN_MAX_BUILDINGS = 12
# Safety valve: footprint rolls allowed before settling for fewer buildings.
TOWN_BUILDING_ATTEMPTS = 2000

# =============================================================================
# SPAWNING
# =============================================================================

MAX_SPAWNS = 4

# Spawn-table raws shipped with the package
RAWS_PATH = Path(__file__).resolve().parent / "data" / "spawns.json"
