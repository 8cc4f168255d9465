"""Shipment error taxonomy.

Payload problems are reported with protean's ``ValidationError`` (field ->
messages). Everything else the core can reject a request for is a
``ShipmentError`` subclass carrying a stable ``kind``, a human message and the
structured details needed to render a precise response.
"""

from typing import Any


class ShipmentError(Exception):
    """Base class for non-validation shipment failures."""

    kind = "ShipmentError"
    status_code = 400
    retryable = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, **self.details}


class Unauthorized(ShipmentError):
    """The actor's role may not perform the action."""

    kind = "Unauthorized"
    status_code = 403


class NotOwner(ShipmentError):
    """Right role, but the actor does not hold custody of the shipment."""

    kind = "NotOwner"
    status_code = 403


class IllegalTransition(ShipmentError):
    """The action is not valid from the shipment's current status."""

    kind = "IllegalTransition"
    status_code = 409


class ShipmentNotFound(ShipmentError):
    kind = "NotFound"
    status_code = 404


class Conflict(ShipmentError):
    """Lost a race against another write; re-read and retry."""

    kind = "Conflict"
    status_code = 409
    retryable = True


class GatewayTimeout(ShipmentError):
    """The ledger did not answer in time. The write may or may not have landed."""

    kind = "GatewayTimeout"
    status_code = 504
    retryable = True


class GatewayUnavailable(ShipmentError):
    kind = "GatewayUnavailable"
    status_code = 503
    retryable = True


class LedgerRejected(ShipmentError):
    """The ledger refused the request outright (any other 4xx)."""

    kind = "LedgerRejected"
    status_code = 502
