"""Shipment distribution — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text

from supplychain.domain import supplychain
from supplychain.shipment.lifecycle import Action
from supplychain.shipment.shipment import Shipment
from supplychain.shipment.transition import run_transition


@supplychain.command(part_of="Shipment")
class DistributeShipment:
    """Record the transport leg of a PROCESSED shipment and hand it to the destination retailer."""

    shipment_id = Identifier(required=True)
    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(required=True)  # JSON distributorData


@supplychain.command_handler(part_of=Shipment)
class DistributionHandler:
    @handle(DistributeShipment)
    def distribute_shipment(self, command):
        return run_transition(Action.DISTRIBUTE, command)
