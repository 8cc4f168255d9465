"""Shipment creation — command and handler."""

import json

from protean import handle
from protean.fields import String, Text

from supplychain.domain import supplychain
from supplychain.ledger.codec import shipment_to_dict
from supplychain.shipment.executor import TransitionExecutor
from supplychain.shipment.lifecycle import Actor
from supplychain.shipment.shipment import Shipment


@supplychain.command(part_of="Shipment")
class CreateShipment:
    """Register a new product lot. Only a farmer may create shipments."""

    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(required=True)  # JSON object, CreateShipmentPayload shape


@supplychain.command_handler(part_of=Shipment)
class CreateShipmentHandler:
    @handle(CreateShipment)
    def create_shipment(self, command):
        payload = json.loads(command.body) if isinstance(command.body, str) else command.body
        shipment = TransitionExecutor().create(Actor(alias=command.actor_alias, role=command.actor_role), payload)
        return shipment_to_dict(shipment)
