"""Runtime settings - tunable parameters for extraction, caching and sessions.

All values read from environment variables with sensible defaults.
Import from here instead of hardcoding. Durations are in seconds.

Infrastructure config (API base URL, tokens) stays in designsync/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


# =====================================================================
# Cache
# =====================================================================

# Maximum number of entries before least-recently-used eviction
CACHE_MAX_SIZE = _int("CACHE_MAX_SIZE", 1000)

# TTL applied when a caller does not pass one
CACHE_DEFAULT_TTL = _float("CACHE_DEFAULT_TTL", 3600.0)

# Per-key-family TTLs
CACHE_TTL_COMPONENT = _float("CACHE_TTL_COMPONENT", 3600.0)
CACHE_TTL_COMPONENT_LIST = _float("CACHE_TTL_COMPONENT_LIST", 1800.0)
CACHE_TTL_DESIGN_TOKENS = _float("CACHE_TTL_DESIGN_TOKENS", 86400.0)
CACHE_TTL_COMPONENT_SPEC = _float("CACHE_TTL_COMPONENT_SPEC", 3600.0)
CACHE_TTL_FILE_METADATA = _float("CACHE_TTL_FILE_METADATA", 300.0)
CACHE_TTL_FILE_STYLES = _float("CACHE_TTL_FILE_STYLES", 3600.0)


# =====================================================================
# Working-file sessions
# =====================================================================

# Absolute lifetime of a session, measured from when the file was set
SESSION_TTL = _float("SESSION_TTL", 86400.0)


# =====================================================================
# HTTP Clients (Figma API)
# =====================================================================

FIGMA_HTTP_TIMEOUT = _float("FIGMA_HTTP_TIMEOUT", 60.0)
FIGMA_HTTP_MAX_CONNECTIONS = _int("FIGMA_HTTP_MAX_CONNECTIONS", 5)
FIGMA_HTTP_MAX_KEEPALIVE = _int("FIGMA_HTTP_MAX_KEEPALIVE", 3)


# =====================================================================
# Logging
# =====================================================================

LOG_LEVEL = _str("LOG_LEVEL", "INFO")
