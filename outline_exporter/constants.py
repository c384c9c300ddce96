"""Application-wide constants.

This module centralizes all magic numbers and configuration defaults
to ensure a single source of truth and easier maintenance.
"""

# =============================================================================
# Outline API
# =============================================================================

DEFAULT_OUTLINE_API_URL = "http://localhost:3000"

# List endpoints (all require POST)
COLLECTIONS_LIST_PATH = "/api/collections.list"
DOCUMENTS_LIST_PATH = "/api/documents.list"
USERS_LIST_PATH = "/api/users.list"

# Items requested per page
DEFAULT_PAGE_LIMIT = 25

# =============================================================================
# HTTP Timeout Configuration
# =============================================================================

# Per-request timeout for Outline API calls (seconds)
DEFAULT_SCRAPE_TIMEOUT_SECONDS = 10.0

# =============================================================================
# Retry Configuration
# =============================================================================

# Retries after the initial attempt
MAX_FETCH_RETRIES = 3

# First backoff delay, doubled on every further retry (seconds)
RETRY_BASE_DELAY_SECONDS = 1.0

# Lower-cased fragments of transport errors worth retrying
RETRYABLE_ERROR_MARKERS = (
    "timeout",
    "timed out",
    "connection reset",
    "eof",
    "server disconnected",
    "incomplete",
    "broken pipe",
)

# Response body length kept in logs
MAX_LOGGED_BODY_CHARS = 500

# =============================================================================
# Server
# =============================================================================

DEFAULT_LISTEN_ADDRESS = ":9877"
DEFAULT_METRICS_PATH = "/metrics"

APP_TITLE = "Outline Wiki Exporter"
APP_VERSION = "0.1.0"

# =============================================================================
# Metrics
# =============================================================================

METRIC_PREFIX = "outline"
