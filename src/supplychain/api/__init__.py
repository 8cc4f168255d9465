"""Supply-chain domain API package."""

from supplychain.api.errors import register_error_handlers
from supplychain.api.routes import recall_router, shipment_router

__all__ = ["shipment_router", "recall_router", "register_error_handlers"]
