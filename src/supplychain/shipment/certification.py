"""Shipment certification — commands and handler.

The farmer hands the shipment to certification; a certifier then records the
inspection outcome. A REJECTED outcome recalls the shipment.
"""

from protean import handle
from protean.fields import Identifier, String, Text

from supplychain.domain import supplychain
from supplychain.shipment.lifecycle import Action
from supplychain.shipment.shipment import Shipment
from supplychain.shipment.transition import run_transition


@supplychain.command(part_of="Shipment")
class SubmitForCertification:
    """Submit a CREATED shipment for certification, handing it to the destination processor."""

    shipment_id = Identifier(required=True)
    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(default="{}")  # JSON: {"destinationProcessorId": ...}, optional


@supplychain.command(part_of="Shipment")
class RecordCertification:
    """Record an inspection outcome on a PENDING_CERTIFICATION shipment."""

    shipment_id = Identifier(required=True)
    actor_alias = String(required=True, max_length=255)
    actor_role = String(required=True, max_length=50)
    body = Text(required=True)  # JSON: inspectionDate, certificationStatus, comments


@supplychain.command_handler(part_of=Shipment)
class CertificationHandler:
    @handle(SubmitForCertification)
    def submit_for_certification(self, command):
        return run_transition(Action.SUBMIT_FOR_CERTIFICATION, command)

    @handle(RecordCertification)
    def record_certification(self, command):
        return run_transition(Action.RECORD_CERTIFICATION, command)
