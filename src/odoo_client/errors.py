"""
Error taxonomy and remote fault categorization.

Categories drive retry decisions in the dispatcher: transient faults are
retried when the client's retry policy allows it; permanent faults propagate
immediately.
"""

from __future__ import annotations


class OdooClientError(Exception):
    """Base class for every error raised by the client."""


class ValidationError(OdooClientError):
    """
    A per-call option failed validation.

    Raised locally, before any network call is attempted.  Never retried.
    """

    def __init__(self, option: str, constraint: str) -> None:
        self.option = option
        self.constraint = constraint
        super().__init__(f"Invalid option '{option}': {constraint}")


class AuthenticationError(OdooClientError):
    """The server rejected the login credentials."""


class CacheNotConfiguredError(OdooClientError):
    """Caching was requested but no cache store is attached to the client."""


class RemoteFaultError(OdooClientError):
    """
    The remote endpoint (or the transport to it) reported a failure.

    Attributes:
        category: One of the :class:`FaultCategory` constants.
        fault_code: XML-RPC fault code or HTTP status, when known.
        retriable: Whether the dispatcher may retry the call.
        attempts: Number of attempts made before the error surfaced; set by
            the dispatcher.
    """

    def __init__(
        self,
        message: str,
        category: str = "other",
        fault_code: int | str | None = None,
        retriable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.fault_code = fault_code
        self.retriable = retriable
        self.attempts = 0

    def __str__(self) -> str:
        if self.attempts > 1:
            return f"{self.message} (after {self.attempts} attempts)"
        return self.message


# ---------------------------------------------------------------------------
# Fault classification
# ---------------------------------------------------------------------------

class FaultCategory:
    """
    Fault category constants and classification logic for remote failures.
    """

    TIMEOUT = "timeout"
    CONNECTION = "connection_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    RATE_LIMIT = "rate_limit_exceeded"
    CONCURRENCY = "concurrency_conflict"
    ACCESS_DENIED = "access_denied"
    MISSING_RECORD = "missing_record"
    USER_ERROR = "user_error"
    INVALID_RESPONSE = "invalid_response"
    OTHER = "other"

    # Transient faults that are safe to retry
    RETRIABLE: frozenset[str] = frozenset(
        {TIMEOUT, CONNECTION, SERVICE_UNAVAILABLE, RATE_LIMIT, CONCURRENCY}
    )
    # Malformed or rejected requests; retry cannot succeed
    PERMANENT: frozenset[str] = frozenset(
        {ACCESS_DENIED, MISSING_RECORD, USER_ERROR, INVALID_RESPONSE, OTHER}
    )

    @staticmethod
    def categorize(message: str, status_code: int | None = None) -> str:
        """
        Classify a fault message (and optional HTTP status) into a category.

        Args:
            message: Fault string reported by the server or the transport.
            status_code: HTTP status code of the response, if any.

        Returns:
            A category constant.
        """
        text = message.lower()

        if status_code == 429 or "rate limit" in text:
            return FaultCategory.RATE_LIMIT

        if status_code in (502, 503, 504) or "service unavailable" in text:
            return FaultCategory.SERVICE_UNAVAILABLE

        if "timeout" in text or "timed out" in text:
            return FaultCategory.TIMEOUT

        if "connection" in text and ("refused" in text or "reset" in text or "aborted" in text):
            return FaultCategory.CONNECTION

        # PostgreSQL serialization failures surface through the ORM on
        # concurrent writes; the server itself retries these.
        if "could not serialize access" in text or "concurrent update" in text:
            return FaultCategory.CONCURRENCY

        if "accessdenied" in text or "access denied" in text or "accesserror" in text:
            return FaultCategory.ACCESS_DENIED

        if "missingerror" in text or "does not exist" in text:
            return FaultCategory.MISSING_RECORD

        if "usererror" in text or "validationerror" in text or "warning" in text:
            return FaultCategory.USER_ERROR

        if any(tok in text for tok in ("parse", "not well-formed", "malformed")):
            return FaultCategory.INVALID_RESPONSE

        return FaultCategory.OTHER

    @staticmethod
    def is_retriable(category: str) -> bool:
        return category in FaultCategory.RETRIABLE
