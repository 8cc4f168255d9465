"""Shipment processing — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text

from supplychain.domain import supplychain
from supplychain.shipment.lifecycle import Action
from supplychain.shipment.shipment import Shipment
from supplychain.shipment.transition import run_transition


@supplychain.command(part_of="Shipment")
class ProcessShipment:
    """Record processing of a CERTIFIED shipment and hand it to the destination distributor."""

    shipment_id = Identifier(required=True)
    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(required=True)  # JSON processorData


@supplychain.command_handler(part_of=Shipment)
class ProcessingHandler:
    @handle(ProcessShipment)
    def process_shipment(self, command):
        return run_transition(Action.PROCESS, command)
