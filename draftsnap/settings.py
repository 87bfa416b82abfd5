# draftsnap global settings

# Direction / parallelism threshold shared by the geometry kernel
EPS = 1e-6

# Snapping defaults (document units)
SNAP_TOLERANCE = 8.0
GRID_SIZE = 50.0
ANGLE_BAND = 1.5        # angle snap accepts within ANGLE_BAND * tolerance
CIRCLE_RING_STEPS = 16  # segments used to approximate a circle outline

# Segment edits
EXTEND_MAX_LENGTH = 1000.0
EXTEND_ELEMENT_CAP = 4000.0
TRIM_CLICK_MARGIN = 0.01  # parameter gap between click and an accepted cut
JOIN_ELEMENT_TOLERANCE = 10.0

# Walls
WALL_THICKNESS = 200.0
WALL_INNER_INSET = 0.1       # fraction of thickness removed from the inner ring
WALL_JOIN_TOLERANCE = 5.0
OPENING_SEARCH_DISTANCE = 50.0
DOOR_WIDTH = 900.0
WINDOW_WIDTH = 1200.0

# Spatial index
INDEX_REBUILD_THRESHOLD = 64  # pending changes before the STR tree is rebuilt
