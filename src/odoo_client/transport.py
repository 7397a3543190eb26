"""
XML-RPC endpoints over ``requests``.

Requests are encoded and decoded with the standard library's XML-RPC codec
and sent with a ``requests.Session``.  Faults and transport failures are
translated into :class:`RemoteFaultError` carrying a fault category, so
the dispatcher can decide whether to retry.
"""

from __future__ import annotations

import logging
import threading
import xmlrpc.client
from collections.abc import Callable
from xml.parsers.expat import ExpatError

import requests

from .config import REQUEST_TIMEOUT_SECONDS, XMLRPC_PATH
from .errors import FaultCategory, RemoteFaultError

logger = logging.getLogger(__name__)


class XmlRpcEndpoint:
    """
    One remote service path (``common``, ``object`` or ``report``).

    Args:
        url: Full endpoint URL.
        http_session: Session used for every POST to ``url``.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        url: str,
        http_session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url
        self.http_session = http_session or requests.Session()
        self.timeout = timeout
        self.last_request: str | None = None
        self.last_response: str | None = None

    def call(self, method: str, params: list | tuple = ()) -> object:
        """
        Execute ``method`` with positional ``params`` and return its result.

        Raises:
            RemoteFaultError: On an XML-RPC fault, an HTTP error status, a
                transport failure, or an undecodable response.
        """
        body = xmlrpc.client.dumps(tuple(params), methodname=method, allow_none=True)
        self.last_request = body
        self.last_response = None

        try:
            response = self.http_session.post(
                self.url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "text/xml"},
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise RemoteFaultError(
                f"{method} on {self.url} timed out: {exc}",
                category=FaultCategory.TIMEOUT,
                retriable=True,
            ) from exc
        except requests.ConnectionError as exc:
            raise RemoteFaultError(
                f"Cannot reach {self.url}: {exc}",
                category=FaultCategory.CONNECTION,
                retriable=True,
            ) from exc
        except requests.RequestException as exc:
            message = str(exc)
            category = FaultCategory.categorize(message)
            raise RemoteFaultError(
                message,
                category=category,
                retriable=FaultCategory.is_retriable(category),
            ) from exc

        self.last_response = response.text

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            category = FaultCategory.categorize(str(exc), response.status_code)
            raise RemoteFaultError(
                f"{method} on {self.url} failed: {exc}",
                category=category,
                fault_code=response.status_code,
                retriable=FaultCategory.is_retriable(category),
            ) from exc

        try:
            (result,), _ = xmlrpc.client.loads(response.content, use_builtin_types=True)
        except xmlrpc.client.Fault as exc:
            category = FaultCategory.categorize(str(exc.faultString))
            raise RemoteFaultError(
                str(exc.faultString),
                category=category,
                fault_code=exc.faultCode,
                retriable=FaultCategory.is_retriable(category),
            ) from exc
        except (ExpatError, xmlrpc.client.ResponseError, ValueError) as exc:
            raise RemoteFaultError(
                f"Invalid XML-RPC response from {self.url}: {exc}",
                category=FaultCategory.INVALID_RESPONSE,
            ) from exc

        return result


class EndpointRegistry:
    """
    Lazily creates and caches one :class:`XmlRpcEndpoint` per logical name.

    Args:
        host: Server base URL, e.g. ``https://erp.example.com``.
        http_session_provider: Optional callable returning the
            ``requests.Session`` for a new endpoint (custom TLS, proxies,
            auth headers).
        timeout: Request timeout passed to each endpoint.
    """

    def __init__(
        self,
        host: str,
        http_session_provider: Callable[[], requests.Session] | None = None,
        timeout: int = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.host = host.rstrip("/")
        self.http_session_provider = http_session_provider
        self.timeout = timeout
        self.last_endpoint: XmlRpcEndpoint | None = None
        self._endpoints: dict[str, XmlRpcEndpoint] = {}
        self._lock = threading.Lock()

    def url_for(self, name: str) -> str:
        return f"{self.host}/{XMLRPC_PATH}/{name}"

    def get(self, name: str) -> XmlRpcEndpoint:
        with self._lock:
            endpoint = self._endpoints.get(name)
            if endpoint is None:
                http_session = self.http_session_provider() if self.http_session_provider else None
                endpoint = XmlRpcEndpoint(self.url_for(name), http_session, self.timeout)
                self._endpoints[name] = endpoint
                logger.debug("Opened endpoint %s", endpoint.url)
            self.last_endpoint = endpoint
        return endpoint

    def call(self, name: str, method: str, params: list | tuple = ()) -> object:
        return self.get(name).call(method, params)
