"""Simulation tuning constants.

All positions are normalized screen coordinates: x grows to the right in
[0, 1], y grows downward with 0 at the top edge and 1 at the bottom edge.
Obstacles are spawned slightly above the screen and culled slightly below it.
"""

# =============================================================================
# TICK CADENCE
# =============================================================================

# Fixed interval between ticks (~60 ticks per second)
TICK_INTERVAL_MS = 16

# How often the driver logs a stats line, in seconds
STATS_LOG_INTERVAL_SECONDS = 5.0


# =============================================================================
# PLAYER
# =============================================================================

PLAYER_START_X = 0.5
PLAYER_Y = 0.8  # Fixed vertical position of the ship
PLAYER_RADIUS = 0.04


# =============================================================================
# OBSTACLES
# =============================================================================

OBSTACLE_BASE_RADIUS = 0.05  # Scaled by Obstacle.size_scale
OBSTACLE_SPAWN_Y = -0.1
OBSTACLE_DESPAWN_Y = 1.2  # Obstacles at or below this line are culled

# Spawn chance per tick: BASE + PER_LEVEL * level
OBSTACLE_SPAWN_CHANCE_BASE = 0.02
OBSTACLE_SPAWN_CHANCE_PER_LEVEL = 0.002

# Vertical speed: (BASE + uniform(0, JITTER)) * (1 + LEVEL_SCALE * level)
OBSTACLE_BASE_SPEED = 0.008
OBSTACLE_SPEED_JITTER = 0.005
OBSTACLE_SPEED_LEVEL_SCALE = 0.15

# Size scale: MIN + uniform(0, JITTER), i.e. [0.75, 1.25]
OBSTACLE_MIN_SIZE_SCALE = 0.75
OBSTACLE_SIZE_SCALE_JITTER = 0.5


# =============================================================================
# SCORING
# =============================================================================

POINTS_PER_LEVEL = 500
