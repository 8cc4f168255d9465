"""Shipment domain events — immutable facts about custody and status changes.

One event per lifecycle step. The ledger records the event names alongside
each history entry.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from supplychain.domain import supplychain


@supplychain.event(part_of="Shipment")
class ShipmentCreated:
    """A farmer registered a new shipment lot."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    product_name = String(required=True)
    quantity = Float(required=True)
    unit_of_measure = String(required=True)
    created_by = String(required=True)
    created_at = DateTime(required=True)


@supplychain.event(part_of="Shipment")
class ShipmentSubmittedForCertification:
    __version__ = 1

    shipment_id = Identifier(required=True)
    submitted_by = String(required=True)
    handed_to = String(required=True)
    submitted_at = DateTime(required=True)


@supplychain.event(part_of="Shipment")
class CertificationRecorded:
    """A certifier inspected the shipment. A REJECTED outcome recalls it."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    certifier = String(required=True)
    certification_status = String(required=True)
    resulting_status = String(required=True)
    recorded_at = DateTime(required=True)


@supplychain.event(part_of="Shipment")
class ShipmentProcessed:
    __version__ = 1

    shipment_id = Identifier(required=True)
    processor = String(required=True)
    output_batch_id = String(required=True)
    handed_to = String(required=True)
    processed_at = DateTime(required=True)


@supplychain.event(part_of="Shipment")
class ShipmentDistributed:
    __version__ = 1

    shipment_id = Identifier(required=True)
    distributor = String(required=True)
    distribution_center = String(required=True)
    handed_to = String(required=True)
    distributed_at = DateTime(required=True)


@supplychain.event(part_of="Shipment")
class ShipmentReceived:
    """The retailer took delivery; the lifecycle is complete."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    retailer = String(required=True)
    store_id = String(required=True)
    received_at = DateTime(required=True)


@supplychain.event(part_of="Shipment")
class ShipmentRecalled:
    __version__ = 1

    shipment_id = Identifier(required=True)
    recall_id = String(required=True)
    reason = Text(required=True)
    initiated_by = String(required=True)
    previous_status = String(required=True)
    recalled_at = DateTime(required=True)
