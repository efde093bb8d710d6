"""Export compositor defaults."""

DEFAULT_TARGET_WIDTH_PX = 2048

# Layout
MIN_COLUMNS = 5
MIN_TILE_SIZE_PX = 26

# JPEG quality tiers, keyed by item count
QUALITY_HIGH = 92
QUALITY_MEDIUM = 85
QUALITY_LOW = 75
MEDIUM_QUALITY_FROM = 500
LOW_QUALITY_FROM = 1000

# Readiness gate
DEFAULT_READY_DEADLINE_SECONDS = 12.0
DEFAULT_POLL_INTERVAL = 0.05  # seconds

DEFAULT_EXPORT_CONCURRENCY = 8
DEFAULT_IMAGE_TIMEOUT = 10.0  # seconds

BACKGROUND_COLOR = (17, 17, 17)
EXPORT_CONTENT_TYPE = "image/jpeg"
