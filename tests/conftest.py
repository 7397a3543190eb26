"""
Shared pytest fixtures for the odoo_client tests.

No test touches the network: remote calls go to :class:`FakeEndpoints`,
which records every call and answers from a table of canned results.
"""

from __future__ import annotations

import pytest

from src.odoo_client.cache import MemoryCacheStore
from src.odoo_client.client import OdooClient
from src.odoo_client.dispatcher import CallDispatcher
from src.odoo_client.session import SessionManager

HOST = "https://erp.example.com"
DATABASE = "prod"
USER = "admin"
PASSWORD = "secret"
UID = 7


# ---------------------------------------------------------------------------
# Fake endpoint registry
# ---------------------------------------------------------------------------

class FakeEndpoints:
    """
    Stand-in for EndpointRegistry.

    ``responses`` maps ``(endpoint, method)`` to a result; ``object.execute``
    calls are answered from ``operations``, keyed by the ORM method name
    (the fifth positional argument).  Callable results receive the params.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, list]] = []
        self.last_endpoint = None
        self.responses: dict[tuple[str, str], object] = {
            ("common", "login"): UID,
            ("common", "version"): {"server_version": "17.0"},
        }
        self.operations: dict[str, object] = {"context_get": {}}

    def call(self, name: str, method: str, params=()) -> object:
        params = list(params)
        self.calls.append((name, method, params))

        if (name, method) == ("object", "execute"):
            result = self.operations[params[4]]
        else:
            result = self.responses[(name, method)]

        if isinstance(result, Exception):
            raise result
        return result(params) if callable(result) else result

    def count(self, method: str, operation: str | None = None) -> int:
        return sum(
            1 for _, m, params in self.calls
            if m == method and (operation is None or params[4] == operation)
        )

    def execute_calls(self, operation: str) -> list[list]:
        return [
            params for _, m, params in self.calls
            if m == "execute" and params[4] == operation
        ]


@pytest.fixture
def fake_endpoints():
    return FakeEndpoints()


@pytest.fixture
def store():
    return MemoryCacheStore()


@pytest.fixture
def dispatcher(fake_endpoints):
    return CallDispatcher(fake_endpoints, sleep=lambda _seconds: None)


@pytest.fixture
def session_manager(dispatcher):
    return SessionManager(DATABASE, USER, PASSWORD, dispatcher)


def attach_fake_endpoints(client: OdooClient, endpoints: FakeEndpoints) -> OdooClient:
    """Route every remote call of ``client`` to ``endpoints``."""
    client.endpoints = endpoints
    client.dispatcher.endpoints = endpoints
    client.dispatcher.sleep = lambda _seconds: None
    return client


@pytest.fixture
def client(fake_endpoints):
    """Client without a cache store."""
    return attach_fake_endpoints(OdooClient(HOST, DATABASE, USER, PASSWORD), fake_endpoints)


@pytest.fixture
def cached_client(fake_endpoints, store):
    """Client backed by an in-memory cache store."""
    return attach_fake_endpoints(
        OdooClient(HOST, DATABASE, USER, PASSWORD, cache_store=store),
        fake_endpoints,
    )
