"""
High-level client: CRUD, search, grouping and report operations.

Each operation resolves its options, builds the positional parameter array,
and executes the call through the dispatcher.  Read-like operations
(search, search_read, search_count, read, read_group) go through the
one-shot result cache.

Usage::

    client = OdooClient("https://erp.example.com", "prod", "admin", "secret")
    ids = client.search("res.partner", [["active", "=", True]], limit=10)
    partners = client.with_cache(300).read("res.partner", ids, fields=["name"])
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from typing import NamedTuple

import requests

from .cache import TTL, CacheStore, ResultCache, derive_cache_key
from .config import (
    COMMON_ENDPOINT,
    OBJECT_ENDPOINT,
    REPORT_ENDPOINT,
    REPORT_POLL_INTERVAL_SECONDS,
    REPORT_POLL_MAX_ATTEMPTS,
    REQUEST_TIMEOUT_SECONDS,
)
from .dispatcher import CallDispatcher, RetryPolicy
from .errors import FaultCategory, RemoteFaultError
from .options import UNLIMITED, OperationKind, OptionValidator
from .params import ParameterBuilder
from .session import SessionManager
from .transport import EndpointRegistry, XmlRpcEndpoint


class ReportResult(NamedTuple):
    """Decoded report document."""

    content: bytes
    format: str


def _wire_limit(limit: object) -> object:
    # The server reads a false limit as "no limit".
    return False if limit is UNLIMITED else limit


class OdooClient:
    """
    Client for the XML-RPC API of Odoo (formerly OpenERP).

    Args:
        host: Server base URL.
        database: Database to log into.
        user: Login name.
        password: Password of ``user``.
        cache_store: Optional store for results and the persisted session.
        logger: Optional diagnostic sink receiving debug traces.
        retry_policy: Retry policy for every remote call; retry disabled
            by default.
        http_session_provider: Optional callable returning a configured
            ``requests.Session`` for each endpoint.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        host: str,
        database: str,
        user: str,
        password: str,
        *,
        cache_store: CacheStore | None = None,
        logger: logging.Logger | None = None,
        retry_policy: RetryPolicy | None = None,
        http_session_provider: Callable[[], requests.Session] | None = None,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.host = host
        self.database = database
        self.user = user
        self.logger = logger

        self.endpoints = EndpointRegistry(host, http_session_provider, timeout)
        self.dispatcher = CallDispatcher(self.endpoints, retry_policy)
        self.sessions = SessionManager(database, user, password, self.dispatcher, cache_store)
        self.params = ParameterBuilder(database, password, self.sessions)
        self.options = OptionValidator(logger)
        self.cache = ResultCache(cache_store, logger)

    @classmethod
    def from_env(cls, **kwargs) -> OdooClient:
        """
        Build a client from the ``ODOO_*`` environment variables.

        Raises:
            ValueError: A required environment variable is unset.
        """
        from config.client_config import load_connection_settings  # noqa: PLC0415

        return cls(**load_connection_settings(), **kwargs)

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------

    def set_cache(self, store: CacheStore) -> OdooClient:
        self.cache.store = store
        self.sessions.store = store
        return self

    def set_logger(self, logger: logging.Logger | None) -> OdooClient:
        self.logger = logger
        self.options.logger = logger
        self.cache.logger = logger
        return self

    def set_retry_policy(self, policy: RetryPolicy) -> OdooClient:
        self.dispatcher.policy = policy
        return self

    def set_http_session_provider(self, provider: Callable[[], requests.Session]) -> OdooClient:
        """Use ``provider`` for endpoints opened from now on."""
        self.endpoints.http_session_provider = provider
        return self

    def with_cache(self, ttl: TTL = None) -> OdooClient:
        """
        Serve the next read-like call from the cache, storing it on a miss.

        Raises:
            CacheNotConfiguredError: No cache store is attached.
        """
        self.cache.activate(ttl)
        return self

    def configure_defaults_options(self, **options) -> OdooClient:
        """Override the library defaults (offset, limit, order, fields, context, lazy)."""
        self._debug("Configure defaults options", options)
        self.options.configure_defaults(options)
        return self

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    @property
    def last_endpoint(self) -> XmlRpcEndpoint | None:
        return self.endpoints.last_endpoint

    @property
    def last_request(self) -> str | None:
        endpoint = self.endpoints.last_endpoint
        return endpoint.last_request if endpoint else None

    @property
    def last_response(self) -> str | None:
        endpoint = self.endpoints.last_endpoint
        return endpoint.last_response if endpoint else None

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def version(self) -> dict:
        """Return the server version information (no authentication needed)."""
        return self.dispatcher.invoke(COMMON_ENDPOINT, "version")

    def search(self, model: str, domain: list | None = None, **options) -> list[int]:
        """
        Search records and return their ids.

        Options: fields, offset, limit, order, context.  ``fields`` is
        accepted for parity with search_read and not sent.
        """
        opts = self._resolve(OperationKind.SEARCH, options, model=model, domain=domain)
        params = self.params.build(
            opts["model"],
            "search",
            opts["domain"],
            opts["offset"],
            _wire_limit(opts["limit"]),
            opts["order"],
            self._context(opts),
        )
        return self._search_or_read(opts["model"], params)

    def search_read(self, model: str, domain: list | None = None, **options) -> list[dict]:
        """
        Search records and read them in one call.

        Options: fields, offset, limit, order, context.
        """
        opts = self._resolve(OperationKind.SEARCH_READ, options, model=model, domain=domain)
        params = self.params.build(
            opts["model"],
            "search_read",
            opts["domain"],
            opts["fields"],
            opts["offset"],
            _wire_limit(opts["limit"]),
            opts["order"],
            self._context(opts),
        )
        return self._search_or_read(opts["model"], params)

    def search_count(self, model: str, domain: list | None = None, **options) -> int:
        """Count records matching ``domain``.  Options: fields (not sent), context."""
        opts = self._resolve(OperationKind.SEARCH_COUNT, options, model=model, domain=domain)
        params = self.params.build(
            opts["model"],
            "search_count",
            opts["domain"],
            self._context(opts),
        )
        return self._search_or_read(opts["model"], params)

    def read(self, model: str, ids: list[int], **options) -> list[dict]:
        """Read records by id.  Options: fields, context."""
        opts = self._resolve(OperationKind.READ, options, model=model, ids=ids)
        params = self.params.build(
            opts["model"],
            "read",
            opts["ids"],
            opts["fields"],
            self._context(opts),
        )
        return self._search_or_read(opts["model"], params)

    def read_group(
        self,
        model: str,
        domain: list | None = None,
        group_by: list[str] | None = None,
        **options,
    ) -> list[dict]:
        """
        Aggregate records grouped by one or more fields.

        Options: fields, offset, limit, order, lazy, context.
        """
        opts = self._resolve(
            OperationKind.READ_GROUP, options, model=model, domain=domain, group_by=group_by
        )
        params = self.params.build(
            opts["model"],
            "read_group",
            opts["domain"],
            opts["fields"],
            opts["group_by"],
            opts["offset"],
            _wire_limit(opts["limit"]),
            self._context(opts),
            opts["order"],
            opts["lazy"],
        )
        return self._search_or_read(opts["model"], params)

    def create(self, model: str, data: dict, **options) -> int:
        """Create a record and return its id.  Options: context."""
        opts = self._resolve(OperationKind.CREATE, options, model=model, data=data)
        params = self.params.build(
            opts["model"],
            "create",
            opts["data"],
            self._context(opts),
        )
        self._debug(f"Create model {opts['model']}", params)
        return self._execute(params)

    def write(self, model: str, ids: list[int], data: dict, **options) -> bool:
        """Update records with ``data`` (``{field: value}``).  Options: context."""
        opts = self._resolve(OperationKind.WRITE, options, model=model, ids=ids, data=data)
        params = self.params.build(
            opts["model"],
            "write",
            opts["ids"],
            opts["data"],
            self._context(opts),
        )
        self._debug(f"Write model {opts['model']}", params)
        return self._execute(params)

    def unlink(self, model: str, ids: list[int], **options) -> bool:
        """Delete records.  Options: context."""
        opts = self._resolve(OperationKind.UNLINK, options, model=model, ids=ids)
        params = self.params.build(
            opts["model"],
            "unlink",
            opts["ids"],
            self._context(opts),
        )
        self._debug(f"Unlink model {opts['model']}", params)
        return self._execute(params)

    def render_report(self, report: str, ids: list[int], **options) -> ReportResult:
        """Render a report synchronously.  Options: context."""
        opts = self._resolve(OperationKind.REPORT, options, report=report, ids=ids)
        params = self.params.build_raw(opts["report"], opts["ids"], self._context(opts))
        self._debug(f"Render report {opts['report']}", params)
        return self._decode_report(
            self.dispatcher.invoke(REPORT_ENDPOINT, "render_report", params)
        )

    def generate_report(self, report: str, ids: list[int], **options) -> ReportResult:
        """
        Request a report and poll until the server has generated it.

        Options: context.

        Raises:
            RemoteFaultError: The report was not ready after the maximum
                number of polls.
        """
        opts = self._resolve(OperationKind.REPORT, options, report=report, ids=ids)
        context = self._context(opts)
        params = self.params.build_raw(opts["report"], opts["ids"], {}, context)
        self._debug(f"Generate report {opts['report']}", params)
        report_id = self.dispatcher.invoke(REPORT_ENDPOINT, "report", params)

        for attempt in range(1, REPORT_POLL_MAX_ATTEMPTS + 1):
            state = self.dispatcher.invoke(
                REPORT_ENDPOINT, "report_get", self.params.build_raw(report_id)
            )
            if state.get("state"):
                return self._decode_report(state)
            if attempt < REPORT_POLL_MAX_ATTEMPTS:
                self.dispatcher.sleep(REPORT_POLL_INTERVAL_SECONDS)

        raise RemoteFaultError(
            f"Report {opts['report']} (id {report_id}) not ready after "
            f"{REPORT_POLL_MAX_ATTEMPTS} polls.",
            category=FaultCategory.TIMEOUT,
        )

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _resolve(self, kind: OperationKind, options: dict, **positional) -> dict:
        supplied = {name: value for name, value in positional.items() if value is not None}
        supplied.update(options)
        return self.options.resolve(kind, supplied)

    def _context(self, opts: dict) -> dict:
        """Merge the per-call context over the session context."""
        return {**self.sessions.current_session().context, **opts["context"]}

    def _search_or_read(self, model: str, params: list) -> object:
        key = derive_cache_key(params)
        self._debug(f"Read-like call on model {model}", params)
        return self.cache.fetch_or_compute(key, lambda: self._execute(params))

    def _execute(self, params: list) -> object:
        return self.dispatcher.invoke(OBJECT_ENDPOINT, "execute", params)

    @staticmethod
    def _decode_report(payload: dict) -> ReportResult:
        content = payload.get("result") or ""
        if isinstance(content, str):
            content = base64.b64decode(content)
        return ReportResult(content=content, format=payload.get("format", "pdf"))

    def _debug(self, message: str, payload: object = None) -> None:
        if self.logger is not None:
            self.logger.debug(message, extra={"payload": payload})
