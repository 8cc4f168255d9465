"""Shipment receipt at retail — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text

from supplychain.domain import supplychain
from supplychain.shipment.lifecycle import Action
from supplychain.shipment.shipment import Shipment
from supplychain.shipment.transition import run_transition


@supplychain.command(part_of="Shipment")
class ReceiveShipment:
    """Record the retailer's receipt of a DISTRIBUTED shipment. Ends the lifecycle."""

    shipment_id = Identifier(required=True)
    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(required=True)  # JSON retailerData


@supplychain.command_handler(part_of=Shipment)
class ReceivingHandler:
    @handle(ReceiveShipment)
    def receive_shipment(self, command):
        return run_transition(Action.RECEIVE, command)
