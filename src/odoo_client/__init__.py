"""
src/odoo_client — XML-RPC client for Odoo / OpenERP servers.

Module layout
-------------
config.py      — option defaults, endpoint names, cache/timeout constants
errors.py      — error taxonomy, fault categorization
options.py     — per-call option rule table and resolution
params.py      — positional parameter construction
cache.py       — cache-key derivation, one-shot result cache, memory store
session.py     — lazy authentication and session persistence
transport.py   — XML-RPC endpoints over requests, endpoint registry
dispatcher.py  — remote call execution with fixed-wait retry
client.py      — OdooClient high-level operations

Public interface
----------------
Connect and query:
    client = OdooClient(host, database, user, password)
    client.search(model, domain, limit=10)
    client.search_read(model, domain, fields=[...])
    client.read(model, ids)

Modify records:
    client.create(model, data)
    client.write(model, ids, data)
    client.unlink(model, ids)

Cache the next read-like call:
    client.set_cache(MemoryCacheStore()).with_cache(ttl=300).search(...)
"""

from .cache import MemoryCacheStore, ResultCache, derive_cache_key
from .client import OdooClient, ReportResult
from .dispatcher import CallDispatcher, RetryPolicy
from .errors import (
    AuthenticationError,
    CacheNotConfiguredError,
    FaultCategory,
    OdooClientError,
    RemoteFaultError,
    ValidationError,
)
from .options import UNLIMITED, OperationKind, OptionValidator, resolve_options
from .params import ParameterBuilder
from .session import Session, SessionManager, SessionState

__all__ = [
    # Client
    "OdooClient",
    "ReportResult",
    "UNLIMITED",
    # Building blocks
    "OperationKind",
    "OptionValidator",
    "resolve_options",
    "ParameterBuilder",
    "derive_cache_key",
    "ResultCache",
    "MemoryCacheStore",
    "Session",
    "SessionManager",
    "SessionState",
    "CallDispatcher",
    "RetryPolicy",
    # Errors
    "OdooClientError",
    "ValidationError",
    "AuthenticationError",
    "RemoteFaultError",
    "CacheNotConfiguredError",
    "FaultCategory",
]
