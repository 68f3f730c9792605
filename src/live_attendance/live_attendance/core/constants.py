"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_EXPECTED_WORK_HOURS = 8.0
DEFAULT_LATE_GRACE_MINUTES = 0

DEFAULT_REFRESH_INTERVAL_SECONDS = 30.0
DEFAULT_VISIBILITY_DEBOUNCE_SECONDS = 1.0
DEFAULT_ONLINE_RETRY_SECONDS = 2.0
# A dashboard controller nobody has read for this long is closed.
DEFAULT_IDLE_TIMEOUT_SECONDS = 300.0

# A view older than this many refresh intervals is considered stale.
STALE_AFTER_INTERVALS = 2

CLOCK_PLACEHOLDER = "--"
ALL_FILTER_VALUE = "all"
