"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os
from typing import List


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    return value.lower() in ('true', '1', 'yes')


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


def _get_list(key: str, default: List[str]) -> List[str]:
    """Get comma-separated list from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


# =============================================================================
# SERVER SETTINGS
# =============================================================================
PORT = _get_int('PORT', 3000)
HOST = _get_str('HOST', '0.0.0.0')
NODE_ENV = _get_str('NODE_ENV', 'development')

# =============================================================================
# STORAGE SETTINGS
# =============================================================================
# Freshness store backend: "memory" or "sqlite"
FRESHNESS_DB_TYPE = _get_str('FRESHNESS_DB_TYPE', 'memory')

# Data directory for the sqlite freshness store
# Priority: DATA_DIR > ./data
DATA_DIR = os.environ.get('DATA_DIR') or 'data'

# =============================================================================
# FRESHNESS SETTINGS
# =============================================================================
# How long server data stays fresh (in minutes)
# Default: 24 hours (1440 minutes)
DATA_MAX_AGE_MINUTES = _get_int('DATA_MAX_AGE_MINUTES', 1440)

# How long the client-side cache stays fresh (in minutes)
CLIENT_MAX_AGE_MINUTES = _get_int('CLIENT_MAX_AGE_MINUTES', 5)

# =============================================================================
# REFRESH SETTINGS
# =============================================================================
REFRESH_RETRY_ATTEMPTS = _get_int('REFRESH_RETRY_ATTEMPTS', 3)
REFRESH_RETRY_DELAY_SECONDS = _get_float('REFRESH_RETRY_DELAY_SECONDS', 5.0)
REFRESH_RETRY_BACKOFF = _get_float('REFRESH_RETRY_BACKOFF', 1.0)

# Scheduled refresh interval (in minutes)
REFRESH_INTERVAL_MINUTES = _get_int('REFRESH_INTERVAL_MINUTES', 1440)

# League keys refreshed by the scheduler and POST /api/refresh
REFRESH_LEAGUES = _get_list('REFRESH_LEAGUES', ['NFL'])

# Refresh all leagues when the server starts
FETCH_ON_STARTUP = _get_bool('FETCH_ON_STARTUP', NODE_ENV != 'production')

DEFAULT_SEASON = _get_str('DEFAULT_SEASON', '2023')

# =============================================================================
# UPSTREAM PROVIDER (API-Sports)
# =============================================================================
API_SPORTS_BASE_URL = _get_str(
    'API_SPORTS_BASE_URL', 'https://v1.american-football.api-sports.io'
)
API_SPORTS_HOST = _get_str('API_SPORTS_HOST', 'v1.american-football.api-sports.io')
API_SPORTS_KEY = _get_str('API_SPORTS_KEY', '')
API_TIMEOUT_SECONDS = _get_float('API_TIMEOUT_SECONDS', 30.0)

# League key -> upstream league metadata
LEAGUES = {
    'NFL': {
        'upstream_id': '1',
        'name': 'NFL',
        'abbreviation': 'NFL',
        'sport': 'football',
        'level': 'professional',
    },
}

# =============================================================================
# CLIENT SETTINGS
# =============================================================================
# Base URL of the sportsync server, used by the client-side cache manager
SERVER_URL = _get_str('SERVER_URL', 'http://localhost:3000')

# =============================================================================
# RATE LIMITING
# =============================================================================
# Cooldown between manual refresh requests (in seconds)
# Default: 5 minutes (300 seconds)
REFRESH_COOLDOWN_SECONDS = _get_int('REFRESH_COOLDOWN_SECONDS', 300)

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
