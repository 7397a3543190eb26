"""
Connection and logging configuration for applications using odoo_client.

This is the AUTHORITATIVE source for connection settings.
OdooClient.from_env() reads from here; do not maintain parallel copies.

ENVIRONMENT VARIABLES:
    ODOO_HOST       — server base URL, e.g. https://erp.example.com (required)
    ODOO_DATABASE   — database name (required)
    ODOO_USER       — login name (required)
    ODOO_PASSWORD   — password or API key (required)
    ODOO_TIMEOUT    — HTTP timeout in seconds (optional, default 60)
    ODOO_LOG_LEVEL  — level for the odoo_client loggers (optional, default INFO)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

# ---------------------------------------------------------------------------
# Connection settings
# ---------------------------------------------------------------------------
#
# Keys are OdooClient constructor arguments; values are environment variables.

CONNECTION_ENV: dict[str, str] = {
    "host": "ODOO_HOST",
    "database": "ODOO_DATABASE",
    "user": "ODOO_USER",
    "password": "ODOO_PASSWORD",
}

TIMEOUT_ENV = "ODOO_TIMEOUT"
LOG_LEVEL_ENV = "ODOO_LOG_LEVEL"


def load_connection_settings(environ: Mapping[str, str] | None = None) -> dict:
    """
    Read connection settings from the environment.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.

    Returns:
        Dict of OdooClient keyword arguments (``host``, ``database``,
        ``user``, ``password`` and, when set, ``timeout``).

    Raises:
        ValueError: A required environment variable is unset or empty, or
            the timeout is not an integer.
    """
    environ = os.environ if environ is None else environ

    settings: dict = {}
    for arg, env_var in CONNECTION_ENV.items():
        value = environ.get(env_var)
        if not value:
            raise ValueError(
                f"Connection setting not found. Set the '{env_var}' environment "
                "variable before creating the client."
            )
        settings[arg] = value

    timeout = environ.get(TIMEOUT_ENV)
    if timeout:
        try:
            settings["timeout"] = int(timeout)
        except ValueError as exc:
            raise ValueError(f"'{TIMEOUT_ENV}' must be an integer, got '{timeout}'.") from exc

    return settings


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def get_logging_config(level: str | None = None) -> dict[str, Any]:
    """Return a ``logging.config.dictConfig`` dict for the client loggers."""
    level = level or os.environ.get(LOG_LEVEL_ENV, "INFO")
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "src.odoo_client": {
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["default"],
        },
    }
