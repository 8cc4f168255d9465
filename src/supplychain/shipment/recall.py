"""Shipment recall — command and handler.

Regulators and admins may pull any shipment that has not been delivered or
already recalled. Custody does not change.
"""

from protean import handle
from protean.fields import Identifier, String, Text

from supplychain.domain import supplychain
from supplychain.shipment.lifecycle import Action
from supplychain.shipment.shipment import Shipment
from supplychain.shipment.transition import run_transition


@supplychain.command(part_of="Shipment")
class InitiateRecall:
    shipment_id = Identifier(required=True)
    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(required=True)  # JSON: {"recallId": optional, "reason": ...}


@supplychain.command_handler(part_of=Shipment)
class RecallHandler:
    @handle(InitiateRecall)
    def initiate_recall(self, command):
        return run_transition(Action.INITIATE_RECALL, command)
