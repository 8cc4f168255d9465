"""Shipment aggregate — a product lot and its append-only stage history.

The aggregate holds identity, custody (``current_owner_alias``), lifecycle
status and one immutable record per stage reached. It never decides on its
own whether a move is legal; it applies transitions planned by
``supplychain.shipment.lifecycle`` and refuses anything that would rewrite
history or step backwards.

Stage records:
    farmer_data         set at creation
    certification_records  appended by recordCertification (append-only)
    processor_data      set by process
    distributor_data    set by distribute
    retailer_data       set by receive
    recall_record       set by initiateRecall
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    List,
    String,
    Text,
    ValueObject,
)

from supplychain.domain import supplychain
from supplychain.shipment import lifecycle
from supplychain.shipment.errors import IllegalTransition
from supplychain.shipment.events import (
    CertificationRecorded,
    ShipmentCreated,
    ShipmentDistributed,
    ShipmentProcessed,
    ShipmentReceived,
    ShipmentRecalled,
    ShipmentSubmittedForCertification,
)
from supplychain.shipment.lifecycle import (
    Action,
    Actor,
    CertificationStatus,
    ShipmentStatus,
    Transition,
)
from supplychain.shipment.records import ContaminationCheck, FarmingPractice, UnitOfMeasure

# Single-valued stage records and the status that brings them into existence
_STAGE_RECORDS = (
    ("processor_data", ShipmentStatus.PROCESSED),
    ("distributor_data", ShipmentStatus.DISTRIBUTED),
    ("retailer_data", ShipmentStatus.DELIVERED),
)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@supplychain.value_object(part_of="Shipment")
class FarmerData:
    """Origin details captured by the farmer when the lot is created."""

    farmer_name = String(required=True, max_length=255)
    farm_location = String(required=True, max_length=255)
    crop_type = String(max_length=255)
    farming_practice = String(choices=FarmingPractice, default=FarmingPractice.CONVENTIONAL.value)
    planting_date = DateTime()
    harvest_date = DateTime()
    fertilizer_used = Text()
    destination_processor_id = String(max_length=255)
    certification_document_hash = String(max_length=255)


@supplychain.value_object(part_of="Shipment")
class ProcessorData:
    processing_type = String(required=True, max_length=255)
    processing_line_id = String(required=True, max_length=255)
    date_processed = DateTime(required=True)
    contamination_check = String(required=True, choices=ContaminationCheck)
    output_batch_id = String(required=True, max_length=255)
    expiry_date = DateTime(required=True)
    processing_location = String(required=True, max_length=255)
    destination_distributor_id = String(required=True, max_length=255)


@supplychain.value_object(part_of="Shipment")
class DistributorData:
    """Transport leg details. ``transit_locations`` is the ordered route log."""

    pickup_date_time = DateTime(required=True)
    delivery_date_time = DateTime(required=True)
    transport_conditions = String(required=True, max_length=255)
    temperature_range = String(required=True, max_length=255)
    distribution_center = String(required=True, max_length=255)
    distribution_line_id = String(required=True, max_length=255)
    destination_retailer_id = String(required=True, max_length=255)
    storage_temperature = Float(min_value=-50.0, max_value=50.0)
    transit_locations = List(content_type=String)


@supplychain.value_object(part_of="Shipment")
class RetailerData:
    store_location = String(required=True, max_length=255)
    store_id = String(required=True, max_length=255)
    date_received = DateTime(required=True)
    price = Float(required=True, min_value=0.0)
    sell_by_date = DateTime(required=True)
    shelf_life = String(required=True, max_length=255)


@supplychain.value_object(part_of="Shipment")
class RecallRecord:
    """Why, when and by whom a shipment was pulled from the chain."""

    recall_id = String(required=True, max_length=255)
    reason = Text(required=True)
    initiated_by = String(required=True, max_length=255)
    initiated_role = String(required=True, max_length=50)
    initiated_at = DateTime(required=True)
    previous_status = String(required=True, choices=ShipmentStatus)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@supplychain.entity(part_of="Shipment")
class CertificationRecord:
    """A single inspection outcome. The certifier is taken from the actor, never the payload."""

    inspection_date = DateTime(required=True)
    certification_status = String(required=True, choices=CertificationStatus)
    comments = Text()
    certifier_identity = String(required=True, max_length=255)
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@supplychain.aggregate
class Shipment:
    shipment_id = Identifier(identifier=True, required=True)
    product_name = String(required=True, max_length=255)
    description = Text()
    quantity = Float(required=True, min_value=0.0)
    unit_of_measure = String(required=True, choices=UnitOfMeasure)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.CREATED.value)
    current_owner_alias = String(required=True, max_length=255)
    created_by = String(required=True, max_length=255)
    farmer_data = ValueObject(FarmerData, required=True)
    certification_records = HasMany(CertificationRecord)
    processor_data = ValueObject(ProcessorData)
    distributor_data = ValueObject(DistributorData)
    retailer_data = ValueObject(RetailerData)
    recall_record = ValueObject(RecallRecord)
    ledger_version = Integer(default=0)
    last_transition_id = String(max_length=64)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def quantity_must_be_positive(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

    @invariant.post
    def stage_records_match_status(self):
        current = ShipmentStatus(self.status)
        if current == ShipmentStatus.RECALLED:
            return
        if self.recall_record is not None:
            raise ValidationError({"recall_record": ["Only a recalled shipment carries a recall record"]})
        for field_name, stage in _STAGE_RECORDS:
            present = getattr(self, field_name) is not None
            if present != lifecycle.has_reached(current, stage):
                raise ValidationError({field_name: [f"Stage record does not match {current.value} status"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        shipment_id: str,
        product_name: str,
        quantity: float,
        unit_of_measure: str,
        farmer_data: FarmerData,
        created_by: str,
        description: str | None = None,
    ):
        """Register a new lot in CREATED state, owned by its creator."""
        now = datetime.now(UTC)
        shipment = cls(
            shipment_id=shipment_id,
            product_name=product_name,
            description=description,
            quantity=quantity,
            unit_of_measure=unit_of_measure,
            status=ShipmentStatus.CREATED.value,
            current_owner_alias=created_by,
            created_by=created_by,
            farmer_data=farmer_data,
            created_at=now,
            updated_at=now,
        )
        shipment.raise_(
            ShipmentCreated(
                shipment_id=shipment_id,
                product_name=product_name,
                quantity=quantity,
                unit_of_measure=unit_of_measure,
                created_by=created_by,
                created_at=now,
            )
        )
        return shipment

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def lifecycle_status(self) -> ShipmentStatus:
        return ShipmentStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.lifecycle_status in lifecycle.ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle_status in lifecycle.TERMINAL_STATUSES

    def has_reached(self, stage: ShipmentStatus) -> bool:
        return lifecycle.has_reached(self.lifecycle_status, stage)

    def can_transition(self, action: Action | str, actor_role: str, actor_alias: str) -> bool:
        """Side-effect free: may ``actor_alias`` acting as ``actor_role`` perform ``action`` now?"""
        if isinstance(action, str):
            action = lifecycle.parse_action(action)
        return lifecycle.can_transition(
            action, self.lifecycle_status, self.current_owner_alias, Actor(alias=actor_alias, role=actor_role)
        )

    def available_actions(self, actor_role: str, actor_alias: str) -> list[Action]:
        return lifecycle.available_actions(
            self.lifecycle_status, self.current_owner_alias, Actor(alias=actor_alias, role=actor_role)
        )

    # -------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------
    def apply(self, transition: Transition) -> None:
        """Apply a planned transition: append its record, then move status and custody together."""
        current = self.lifecycle_status
        if current != transition.from_status or not lifecycle.is_forward(current, transition.to_status):
            raise IllegalTransition(
                f"Cannot move shipment from {current.value} to {transition.to_status.value}",
                action=transition.action.value,
                current_status=current.value,
                required_status=[transition.from_status.value],
            )

        single_record = transition.record_field not in (None, "certification_records")
        if single_record and getattr(self, transition.record_field) is not None:
            raise IllegalTransition(
                f"{transition.record_field} is already recorded and cannot be replaced",
                action=transition.action.value,
                current_status=current.value,
                required_status=[transition.from_status.value],
            )

        with atomic_change(self):
            if transition.record_field == "certification_records":
                self.add_certification_records(transition.record)
            elif single_record:
                setattr(self, transition.record_field, transition.record)

            self.status = transition.to_status.value
            self.current_owner_alias = transition.new_owner
            self.last_transition_id = transition.transition_id
            self.updated_at = transition.occurred_at

        self.raise_(self._event_for(transition))

    def _event_for(self, transition: Transition):
        actor = transition.actor.alias
        at = transition.occurred_at
        record = transition.record

        if transition.action == Action.SUBMIT_FOR_CERTIFICATION:
            return ShipmentSubmittedForCertification(
                shipment_id=self.shipment_id, submitted_by=actor, handed_to=transition.new_owner, submitted_at=at
            )
        if transition.action == Action.RECORD_CERTIFICATION:
            return CertificationRecorded(
                shipment_id=self.shipment_id,
                certifier=actor,
                certification_status=record.certification_status,
                resulting_status=transition.to_status.value,
                recorded_at=at,
            )
        if transition.action == Action.PROCESS:
            return ShipmentProcessed(
                shipment_id=self.shipment_id,
                processor=actor,
                output_batch_id=record.output_batch_id,
                handed_to=transition.new_owner,
                processed_at=at,
            )
        if transition.action == Action.DISTRIBUTE:
            return ShipmentDistributed(
                shipment_id=self.shipment_id,
                distributor=actor,
                distribution_center=record.distribution_center,
                handed_to=transition.new_owner,
                distributed_at=at,
            )
        if transition.action == Action.RECEIVE:
            return ShipmentReceived(shipment_id=self.shipment_id, retailer=actor, store_id=record.store_id, received_at=at)
        return ShipmentRecalled(
            shipment_id=self.shipment_id,
            recall_id=record.recall_id,
            reason=record.reason,
            initiated_by=actor,
            previous_status=transition.from_status.value,
            recalled_at=at,
        )


def summarize(shipments) -> dict:
    """Dashboard counts for a set of shipments. Computed on demand, never stored."""
    shipments = list(shipments)
    counts = {status.value: 0 for status in ShipmentStatus}
    for shipment in shipments:
        counts[shipment.status] += 1
    return {
        "total": len(shipments),
        "active": sum(1 for s in shipments if s.is_active),
        "byStatus": counts,
    }
