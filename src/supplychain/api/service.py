"""Client-facing service — maps external requests onto domain commands and queries.

No business rules live here. Each action name is translated to its protean
command, processed synchronously, and every failure is converted to an
``{error, message, ...details}`` body plus HTTP status.
"""

import json
from dataclasses import dataclass
from typing import Any

from protean.exceptions import ValidationError

from supplychain.api.errors import error_response
from supplychain.domain import supplychain
from supplychain.ledger.codec import shipment_to_dict
from supplychain.shipment.certification import RecordCertification, SubmitForCertification
from supplychain.shipment.creation import CreateShipment
from supplychain.shipment.distribution import DistributeShipment
from supplychain.shipment.errors import ShipmentError
from supplychain.shipment.lifecycle import Action, parse_action
from supplychain.shipment.processing import ProcessShipment
from supplychain.shipment.queries import ShipmentQueries
from supplychain.shipment.recall import InitiateRecall
from supplychain.shipment.receiving import ReceiveShipment
from supplychain.utils.logging import log_context

ACTION_COMMANDS = {
    Action.SUBMIT_FOR_CERTIFICATION: SubmitForCertification,
    Action.RECORD_CERTIFICATION: RecordCertification,
    Action.PROCESS: ProcessShipment,
    Action.DISTRIBUTE: DistributeShipment,
    Action.RECEIVE: ReceiveShipment,
    Action.INITIATE_RECALL: InitiateRecall,
}

# Request bodies that wrap the stage record, e.g. {"processorData": {...}}
ENVELOPES = {
    Action.PROCESS: "processorData",
    Action.DISTRIBUTE: "distributorData",
    Action.RECEIVE: "retailerData",
}


@dataclass(frozen=True)
class ServiceResult:
    status_code: int
    body: Any


def unwrap(action: Action, body: dict | None) -> dict:
    """Strip the stage envelope from a request body when one is present."""
    body = body or {}
    key = ENVELOPES.get(action)
    if key is not None and key in body:
        return body[key]
    return body


class ShipmentService:
    def __init__(self, queries: ShipmentQueries | None = None):
        self._queries = queries

    @property
    def queries(self) -> ShipmentQueries:
        return self._queries or ShipmentQueries()

    def _run(self, call, status_code: int = 200, **context) -> ServiceResult:
        try:
            with log_context(**context), supplychain.domain_context():
                return ServiceResult(status_code, call())
        except (ShipmentError, ValidationError) as exc:
            return ServiceResult(*error_response(exc))

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def create(self, actor_alias: str, actor_role: str, payload: dict | None) -> ServiceResult:
        def call():
            command = CreateShipment(actor_alias=actor_alias, actor_role=actor_role, body=json.dumps(payload or {}))
            return supplychain.process(command, asynchronous=False)

        return self._run(call, status_code=201, action="create", actor=actor_alias)

    def perform(
        self, shipment_id: str, action_name: str, actor_alias: str, actor_role: str, body: dict | None
    ) -> ServiceResult:
        """Run one lifecycle action by its external name (``"process"``, ``"initiateRecall"``, ...)."""

        def call():
            action = parse_action(action_name)
            command = ACTION_COMMANDS[action](
                shipment_id=shipment_id,
                actor_alias=actor_alias,
                actor_role=actor_role,
                body=json.dumps(unwrap(action, body)),
            )
            return supplychain.process(command, asynchronous=False)

        return self._run(call, shipment_id=shipment_id, action=action_name, actor=actor_alias)

    def recall(self, actor_alias: str, actor_role: str, body: dict | None) -> ServiceResult:
        """Recall request in the ``{shipmentId, recallId, reason}`` shape."""
        body = dict(body or {})
        shipment_id = body.pop("shipmentId", None)
        if not shipment_id:
            return ServiceResult(*error_response(ValidationError({"shipmentId": ["Field required"]})))
        return self.perform(shipment_id, Action.INITIATE_RECALL.value, actor_alias, actor_role, body)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get(self, shipment_id: str, actor_alias: str | None = None, actor_role: str | None = None) -> ServiceResult:
        """Shipment record, plus the actions the caller could take now when the caller is known."""

        def call():
            shipment = self.queries.get(shipment_id)
            body = shipment_to_dict(shipment)
            if actor_alias and actor_role:
                body["availableActions"] = [a.value for a in shipment.available_actions(actor_role, actor_alias)]
            return body

        return self._run(call)

    def page(self, owner: str | None = None, page_size: int | None = None, bookmark: str | None = None) -> ServiceResult:
        def call():
            page = self.queries.page(owner=owner, page_size=page_size, bookmark=bookmark)
            return {
                "shipments": [shipment_to_dict(s) for s in page.shipments],
                "bookmark": page.bookmark,
                "count": page.count,
            }

        return self._run(call)

    def my_shipments(self, actor_alias: str | None, page_size: int | None = None, bookmark: str | None = None):
        if not actor_alias:
            return ServiceResult(*error_response(ValidationError({"X-Actor-Alias": ["Header required"]})))
        return self.page(owner=actor_alias, page_size=page_size, bookmark=bookmark)

    def history(self, shipment_id: str) -> ServiceResult:
        return self._run(lambda: {"shipmentId": shipment_id, "entries": self.queries.history(shipment_id)})

    def stats(self, owner: str | None = None) -> ServiceResult:
        return self._run(lambda: self.queries.stats(owner=owner))
