"""Bounded retry for idempotent ledger calls (reads only)."""

from collections.abc import Callable
from typing import TypeVar

import structlog
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from supplychain.shipment.errors import GatewayTimeout, GatewayUnavailable

logger = structlog.get_logger(__name__)

T = TypeVar("T")

RETRYABLE = (GatewayTimeout, GatewayUnavailable)


def with_retries(call: Callable[[], T], max_retries: int, operation: str, backoff: float = 0.0, **context) -> T:
    """Run ``call``, retrying up to ``max_retries`` times on a retryable gateway failure.

    Waits grow exponentially from ``backoff`` seconds. Never wrap a ledger
    write in this; an append whose acknowledgement was lost must be
    verified, not repeated.
    """

    def log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception()
        logger.warning(
            "gateway_retry",
            operation=operation,
            attempt=retry_state.attempt_number,
            error=getattr(exc, "kind", type(exc).__name__),
            **context,
        )

    retrying = Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=backoff, max=backoff * 8),
        retry=retry_if_exception_type(RETRYABLE),
        before_sleep=log_retry,
        reraise=True,
    )
    return retrying(call)
