"""HTTP ledger adapter — talks to a ledger REST service over httpx.

Wire shapes are those of ``supplychain.ledger.codec``:

    GET  /shipments/{id}                  -> snapshot
    POST /shipments                       snapshot -> snapshot (201)
    POST /shipments/{id}/transitions      {expectedVersion, transition, shipment, events} -> snapshot
    GET  /shipments?owner=&pageSize=&bookmark=  -> {shipments, bookmark}
    GET  /shipments/{id}/history          -> {entries}

Failures map onto the shipment error taxonomy: timeouts raise
``GatewayTimeout``, transport errors and 5xx raise ``GatewayUnavailable``,
404 raises ``ShipmentNotFound``, 409 raises ``Conflict`` and any other 4xx
raises ``LedgerRejected``.
"""

import httpx
import structlog

from supplychain.ledger.codec import event_names, shipment_from_dict, shipment_to_dict, transition_to_dict
from supplychain.ledger.port import LedgerGateway, ShipmentPage
from supplychain.shipment.errors import (
    Conflict,
    GatewayTimeout,
    GatewayUnavailable,
    LedgerRejected,
    ShipmentNotFound,
)
from supplychain.shipment.lifecycle import Transition
from supplychain.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


class HttpLedger(LedgerGateway):
    """Ledger gateway backed by a remote REST service."""

    def __init__(self, base_url: str, timeout: float = 5.0, transport: httpx.BaseTransport | None = None):
        if not base_url:
            raise ValueError("LEDGER_URL is required for the http ledger adapter")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "User-Agent": "supplychain-ledger-client"},
        )

    def close(self):
        self.client.close()

    def _request(self, method: str, path: str, timeout: float | None = None, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, timeout=timeout or self.timeout, **kwargs)
        except httpx.TimeoutException as exc:
            raise GatewayTimeout(f"Ledger did not answer {method} {path} in time", path=path) from exc
        except httpx.TransportError as exc:
            logger.warning("ledger_unreachable", method=method, path=path, error=str(exc))
            raise GatewayUnavailable(f"Ledger is unreachable: {exc}", path=path) from exc

        if response.status_code >= 500:
            raise GatewayUnavailable(
                f"Ledger failed with HTTP {response.status_code}", path=path, ledger_status=response.status_code
            )
        if response.status_code == 404:
            raise ShipmentNotFound(self._message(response, "Shipment does not exist"), path=path)
        if response.status_code == 409:
            raise Conflict(self._message(response, "Shipment was modified concurrently"), path=path)
        if response.status_code >= 400:
            raise LedgerRejected(
                self._message(response, f"Ledger rejected the request with HTTP {response.status_code}"),
                path=path,
                ledger_status=response.status_code,
            )
        return response

    @staticmethod
    def _message(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return default

    # -------------------------------------------------------------------
    # LedgerGateway
    # -------------------------------------------------------------------
    def read_shipment(self, shipment_id: str, timeout: float | None = None) -> Shipment:
        response = self._request("GET", f"/shipments/{shipment_id}", timeout=timeout)
        return shipment_from_dict(response.json())

    def create_shipment(self, shipment: Shipment, timeout: float | None = None) -> Shipment:
        body = {**shipment_to_dict(shipment), "events": event_names(shipment)}
        response = self._request("POST", "/shipments", timeout=timeout, json=body)
        return shipment_from_dict(response.json())

    def append_and_advance(
        self,
        shipment_id: str,
        expected_version: int,
        transition: Transition,
        shipment: Shipment,
        timeout: float | None = None,
    ) -> Shipment:
        body = {
            "expectedVersion": expected_version,
            "transition": transition_to_dict(transition),
            "shipment": shipment_to_dict(shipment),
            "events": event_names(shipment),
        }
        response = self._request("POST", f"/shipments/{shipment_id}/transitions", timeout=timeout, json=body)
        return shipment_from_dict(response.json())

    def list_shipments(
        self,
        owner: str | None = None,
        page_size: int = 10,
        bookmark: str | None = None,
        timeout: float | None = None,
    ) -> ShipmentPage:
        params = {"pageSize": page_size}
        if owner is not None:
            params["owner"] = owner
        if bookmark:
            params["bookmark"] = bookmark
        body = self._request("GET", "/shipments", timeout=timeout, params=params).json()
        return ShipmentPage(
            shipments=[shipment_from_dict(item) for item in body.get("shipments", [])],
            bookmark=body.get("bookmark") or None,
        )

    def history(self, shipment_id: str, timeout: float | None = None) -> list[dict]:
        body = self._request("GET", f"/shipments/{shipment_id}/history", timeout=timeout).json()
        return body.get("entries", [])
