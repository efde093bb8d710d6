"""Live grid defaults."""

# Placeholders closer than this to the viewport start loading
DEFAULT_PROXIMITY_MARGIN_PX = 400

DEFAULT_MAX_CONCURRENT_LOADS = 6

# Grid geometry used to place placeholders
DEFAULT_COLUMNS = 6
DEFAULT_TILE_SIZE_PX = 180
DEFAULT_GAP_PX = 8

# Collage variant: tiles are rotated within +/- this many degrees
MAX_TILT_DEGREES = 3.0

DEFAULT_COVER_TIMEOUT = 20.0  # seconds
