"""Runtime settings for the supply-chain domain, read from the environment.

    LEDGER_ADAPTER          memory | http            (default: memory)
    LEDGER_URL              base URL of the ledger REST service (http adapter)
    LEDGER_TIMEOUT_SECONDS  bound on every gateway call (default: 5)
    LEDGER_MAX_RETRIES      retries for retryable gateway reads (default: 2)
    LEDGER_RETRY_BACKOFF    first wait between read retries, doubling (default: 0.2)
    SHIPMENT_PAGE_SIZE      default page size for shipment listings (default: 10)
"""

import os
from dataclasses import dataclass

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class LedgerSettings:
    adapter: str
    url: str | None
    timeout_seconds: float
    max_retries: int
    retry_backoff_seconds: float = 0.2


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


def ledger_settings() -> LedgerSettings:
    """Return the ledger gateway settings currently in effect."""
    timeout = _env_number("LEDGER_TIMEOUT_SECONDS", 5.0, float)
    if timeout <= 0:
        raise ValueError("LEDGER_TIMEOUT_SECONDS must be positive")

    max_retries = _env_number("LEDGER_MAX_RETRIES", 2, int)
    if max_retries < 0:
        raise ValueError("LEDGER_MAX_RETRIES cannot be negative")

    backoff = _env_number("LEDGER_RETRY_BACKOFF", 0.2, float)
    if backoff < 0:
        raise ValueError("LEDGER_RETRY_BACKOFF cannot be negative")

    return LedgerSettings(
        adapter=os.environ.get("LEDGER_ADAPTER", "memory").lower(),
        url=os.environ.get("LEDGER_URL"),
        timeout_seconds=timeout,
        max_retries=max_retries,
        retry_backoff_seconds=backoff,
    )


def default_page_size() -> int:
    size = _env_number("SHIPMENT_PAGE_SIZE", 10, int)
    return max(1, min(size, MAX_PAGE_SIZE))
