"""
Remote call execution with optional fixed-wait retry.

Retry schedule: after a retriable failure the dispatcher waits
``wait_seconds`` and tries again, up to ``max_attempts`` attempts in total.
There is no wait before the first attempt and none after the last.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from .errors import RemoteFaultError

if TYPE_CHECKING:
    from .transport import EndpointRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attributes:
        enabled: When ``False`` every call gets exactly one attempt.
        max_attempts: Total attempts allowed (initial call + retries).
        wait_seconds: Blocking pause between two attempts.
    """

    enabled: bool = False
    max_attempts: int = 1
    wait_seconds: int = 0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.wait_seconds < 0:
            raise ValueError("wait_seconds must be non-negative.")


def should_retry(error: RemoteFaultError, attempt: int, policy: RetryPolicy) -> bool:
    """
    Decide whether a failed call should be attempted again.

    Args:
        error: Fault raised by the attempt that just failed.
        attempt: 1-based number of that attempt.
        policy: Retry policy in force.
    """
    if not policy.enabled or attempt >= policy.max_attempts:
        return False
    return error.retriable


class CallDispatcher:
    """
    Runs remote calls under the client's :class:`RetryPolicy`.

    Args:
        endpoints: Registry providing endpoint connections for :meth:`invoke`.
        policy: Retry policy; retry disabled by default.
        sleep: Blocking sleep function; injectable for tests.
    """

    def __init__(
        self,
        endpoints: EndpointRegistry,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.endpoints = endpoints
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def run(self, call: Callable[[], T], label: str = "remote call") -> T:
        """
        Execute ``call``, retrying retriable faults as the policy allows.

        Raises:
            RemoteFaultError: The last fault, with ``attempts`` set.
        """
        policy = self.policy
        attempt = 0

        while True:
            attempt += 1
            try:
                return call()
            except RemoteFaultError as exc:
                exc.attempts = attempt
                if not should_retry(exc, attempt, policy):
                    raise

                logger.warning(
                    "Attempt %d/%d of %s failed [%s]: %s; retrying in %ds",
                    attempt,
                    policy.max_attempts,
                    label,
                    exc.category,
                    exc.message[:120],
                    policy.wait_seconds,
                )
                self.sleep(policy.wait_seconds)

    def invoke(self, endpoint: str, method: str, params: list | tuple = ()) -> object:
        """Call ``method`` on the named endpoint under the retry policy."""
        return self.run(
            lambda: self.endpoints.call(endpoint, method, params),
            label=f"{endpoint}.{method}",
        )
