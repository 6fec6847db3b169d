"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_ACTIVE_MONITORS = 4
DEFAULT_MONITOR_TERM_DAYS = 365
DEFAULT_HISTORY_LIMIT = 200
DEFAULT_SWEEP_INTERVAL_SECONDS = 3600
READ_RETRY_ATTEMPTS = 1
