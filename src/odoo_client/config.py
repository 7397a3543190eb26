"""
Library constants: option defaults, endpoint names, cache and timeout settings.

All constants used across the client modules are centralized here so that
configuration is separated from logic.  Connection settings (host, database,
credentials) live in the root ``config`` package, not here.
"""

from __future__ import annotations

from datetime import timedelta

# ---------------------------------------------------------------------------
# Remote endpoints
# ---------------------------------------------------------------------------

# Logical endpoint names; each maps to ``<host>/xmlrpc/<name>``.
COMMON_ENDPOINT = "common"  # version, login
OBJECT_ENDPOINT = "object"  # execute: generic model operations
REPORT_ENDPOINT = "report"  # render_report

ENDPOINTS: tuple[str, ...] = (COMMON_ENDPOINT, OBJECT_ENDPOINT, REPORT_ENDPOINT)

# Path prefix under which the server exposes its XML-RPC services
XMLRPC_PATH = "xmlrpc"

# ---------------------------------------------------------------------------
# Option defaults
# ---------------------------------------------------------------------------

# Library-wide defaults; overridable once per client through
# OdooClient.configure_defaults_options(), then per call.
DEFAULT_OPTIONS: dict[str, object] = {
    "domain": [],
    "offset": 0,
    "limit": 100,
    "order": "name ASC",
    "fields": [],   # empty means "all fields"
    "context": {},
    "lazy": True,
}

# ---------------------------------------------------------------------------
# Authentication cache
# ---------------------------------------------------------------------------

AUTH_CACHE_KEY = "__authentication"
AUTH_CACHE_TTL = timedelta(minutes=30)

# Model and method used to fetch the user's request context after login
CONTEXT_MODEL = "res.users"
CONTEXT_METHOD = "context_get"

# ---------------------------------------------------------------------------
# Transport and cache sizing
# ---------------------------------------------------------------------------

REQUEST_TIMEOUT_SECONDS: int = 60  # HTTP request timeout
DEFAULT_CACHE_MAXSIZE: int = 1024  # entries held by MemoryCacheStore

# report/report_get polling (generate_report)
REPORT_POLL_INTERVAL_SECONDS: int = 1
REPORT_POLL_MAX_ATTEMPTS: int = 30
