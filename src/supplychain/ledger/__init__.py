"""Ledger adapter abstraction — pluggable shipment ledger substrate."""

from supplychain.config import ledger_settings

_ledger_instance = None


def get_ledger():
    """Return the configured ledger gateway (singleton).

    Uses InMemoryLedger by default. Point at a ledger REST service with
    LEDGER_ADAPTER=http and LEDGER_URL.
    """
    global _ledger_instance
    if _ledger_instance is None:
        settings = ledger_settings()
        if settings.adapter == "memory":
            from supplychain.ledger.memory_adapter import InMemoryLedger

            _ledger_instance = InMemoryLedger()
        elif settings.adapter == "http":
            from supplychain.ledger.http_adapter import HttpLedger

            _ledger_instance = HttpLedger(settings.url, timeout=settings.timeout_seconds)
        else:
            raise ValueError(f"Unknown ledger adapter: {settings.adapter}")
    return _ledger_instance


def reset_ledger():
    """Reset the ledger singleton (useful for testing)."""
    global _ledger_instance
    if _ledger_instance is not None and hasattr(_ledger_instance, "close"):
        _ledger_instance.close()
    _ledger_instance = None
