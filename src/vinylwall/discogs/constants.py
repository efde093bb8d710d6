"""Discogs relay URLs, paging and retry defaults."""

# Relay endpoints (same-origin intermediaries that hold the Discogs token)
DEFAULT_CATALOG_RELAY_URL = "http://localhost:8888/.netlify/functions/discogs"
DEFAULT_IMAGE_RELAY_URL = "http://localhost:8888/.netlify/functions/img-proxy"

# Public Discogs site, used to build deep links for releases
DISCOGS_WEB_BASE = "https://www.discogs.com"
RELEASE_URL_TEMPLATE = f"{DISCOGS_WEB_BASE}/release/{{release_id}}"

# Query parameter the catalog relay reads the collection owner from
OWNER_PARAM = "username"

# Paging
PER_PAGE = 100
FIRST_PAGE = 1

# Retry defaults
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds, multiplied by the attempt number
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds

# Longest error body surfaced in UpstreamError messages
ERROR_DETAIL_LIMIT = 160

UNKNOWN_TITLE = "(Unknown Title)"
