"""Tests for the Shipment aggregate: creation, transitions, invariants and events."""

from dataclasses import replace
from datetime import UTC, datetime

import pytest
from protean.exceptions import ValidationError
from protean.utils.reflection import declared_fields
from supplychain.shipment import lifecycle
from supplychain.shipment.errors import IllegalTransition
from supplychain.shipment.events import (
    CertificationRecorded,
    ShipmentCreated,
    ShipmentProcessed,
    ShipmentRecalled,
    ShipmentSubmittedForCertification,
)
from supplychain.shipment.lifecycle import Action, Actor, ShipmentStatus
from supplychain.shipment.shipment import (
    CertificationRecord,
    FarmerData,
    ProcessorData,
    RecallRecord,
    Shipment,
    summarize,
)

FARMER = Actor(alias="farmer-1", role="farmer")
CERTIFIER = Actor(alias="cert-1", role="certifier")
PROCESSOR = Actor(alias="proc-1", role="processor")
REGULATOR = Actor(alias="reg-1", role="regulator")

NOW = datetime(2024, 6, 20, 8, 30, tzinfo=UTC)


def _shipment(**overrides):
    kwargs = {
        "shipment_id": "SHIP-000001-ABC",
        "product_name": "Organic Tomatoes",
        "quantity": 125.5,
        "unit_of_measure": "kg",
        "farmer_data": FarmerData(farmer_name="Alice", farm_location="Salinas", destination_processor_id="proc-1"),
        "created_by": "farmer-1",
    }
    kwargs.update(overrides)
    return Shipment.create(**kwargs)


def _processor_data():
    return ProcessorData(
        processing_type="Washing",
        processing_line_id="LINE-3",
        date_processed=NOW,
        contamination_check="PASSED",
        output_batch_id="BATCH-1",
        expiry_date=NOW,
        processing_location="Fresno",
        destination_distributor_id="dist-1",
    )


def _certification(status="APPROVED"):
    return CertificationRecord(
        inspection_date=NOW,
        certification_status=status,
        comments="ok",
        certifier_identity="cert-1",
        recorded_at=NOW,
    )


def _submit(shipment):
    shipment.apply(
        lifecycle.plan(
            Action.SUBMIT_FOR_CERTIFICATION,
            shipment.lifecycle_status,
            shipment.current_owner_alias,
            FARMER,
            destination="proc-1",
        )
    )


def _certify(shipment, status="APPROVED"):
    transition = lifecycle.plan(
        Action.RECORD_CERTIFICATION,
        shipment.lifecycle_status,
        shipment.current_owner_alias,
        CERTIFIER,
        certification_status=status,
    )
    shipment.apply(replace(transition, record=_certification(status)))


def _process(shipment):
    transition = lifecycle.plan(
        Action.PROCESS, shipment.lifecycle_status, shipment.current_owner_alias, PROCESSOR, destination="dist-1"
    )
    shipment.apply(replace(transition, record=_processor_data()))


class TestShipmentStructure:
    def test_declared_fields(self):
        fields = declared_fields(Shipment)
        for name in (
            "shipment_id",
            "status",
            "current_owner_alias",
            "farmer_data",
            "certification_records",
            "processor_data",
            "distributor_data",
            "retailer_data",
            "recall_record",
            "ledger_version",
        ):
            assert name in fields


class TestShipmentCreation:
    def test_created_status_and_owner(self):
        shipment = _shipment()
        assert shipment.status == ShipmentStatus.CREATED.value
        assert shipment.current_owner_alias == "farmer-1"
        assert shipment.created_by == "farmer-1"
        assert shipment.processor_data is None
        assert len(shipment.certification_records) == 0

    def test_raises_created_event(self):
        shipment = _shipment()
        assert len(shipment._events) == 1
        assert isinstance(shipment._events[0], ShipmentCreated)
        assert shipment._events[0].quantity == 125.5

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(ValidationError):
            _shipment(quantity=0)

    def test_farmer_data_is_required(self):
        with pytest.raises(ValidationError):
            _shipment(farmer_data=None)

    def test_unknown_unit_is_rejected(self):
        with pytest.raises(ValidationError):
            _shipment(unit_of_measure="bushels")


class TestDerivedState:
    def test_created_is_active(self):
        shipment = _shipment()
        assert shipment.is_active
        assert not shipment.is_terminal

    def test_pending_certification_is_not_active(self):
        shipment = _shipment()
        _submit(shipment)
        assert not shipment.is_active

    def test_can_transition_is_side_effect_free(self):
        shipment = _shipment()
        assert shipment.can_transition("submitForCertification", "farmer", "farmer-1")
        assert not shipment.can_transition("submitForCertification", "farmer", "farmer-2")
        assert shipment.status == ShipmentStatus.CREATED.value
        assert len(shipment._events) == 1

    def test_available_actions(self):
        shipment = _shipment()
        assert shipment.available_actions("farmer", "farmer-1") == [Action.SUBMIT_FOR_CERTIFICATION]
        assert shipment.available_actions("admin", "admin-1") == [Action.INITIATE_RECALL]


class TestApplyTransition:
    def test_submit_moves_custody(self):
        shipment = _shipment()
        _submit(shipment)
        assert shipment.status == ShipmentStatus.PENDING_CERTIFICATION.value
        assert shipment.current_owner_alias == "proc-1"
        assert isinstance(shipment._events[-1], ShipmentSubmittedForCertification)

    def test_certification_is_appended(self):
        shipment = _shipment()
        _submit(shipment)
        _certify(shipment)
        assert shipment.status == ShipmentStatus.CERTIFIED.value
        assert len(shipment.certification_records) == 1
        assert shipment.certification_records[0].certifier_identity == "cert-1"
        assert isinstance(shipment._events[-1], CertificationRecorded)

    def test_rejected_certification_recalls_without_recall_record(self):
        shipment = _shipment()
        _submit(shipment)
        _certify(shipment, "REJECTED")
        assert shipment.status == ShipmentStatus.RECALLED.value
        assert shipment.is_terminal
        assert shipment.recall_record is None
        assert shipment._events[-1].resulting_status == "RECALLED"

    def test_process_sets_processor_data_and_hands_off(self):
        shipment = _shipment()
        _submit(shipment)
        _certify(shipment)
        _process(shipment)
        assert shipment.status == ShipmentStatus.PROCESSED.value
        assert shipment.processor_data.output_batch_id == "BATCH-1"
        assert shipment.current_owner_alias == "dist-1"
        assert isinstance(shipment._events[-1], ShipmentProcessed)

    def test_stale_transition_is_rejected(self):
        shipment = _shipment()
        stale = lifecycle.plan(
            Action.SUBMIT_FOR_CERTIFICATION, ShipmentStatus.CREATED, "farmer-1", FARMER, destination="proc-1"
        )
        shipment.apply(stale)
        with pytest.raises(IllegalTransition):
            shipment.apply(stale)

    def test_stage_record_is_set_once(self):
        shipment = _shipment()
        _submit(shipment)
        _certify(shipment)
        _process(shipment)
        forged = lifecycle.Transition(
            action=Action.PROCESS,
            actor=PROCESSOR,
            from_status=ShipmentStatus.PROCESSED,
            to_status=ShipmentStatus.RECALLED,
            new_owner="proc-1",
            record_field="processor_data",
            record=_processor_data(),
        )
        with pytest.raises(IllegalTransition):
            shipment.apply(forged)
        assert shipment.status == ShipmentStatus.PROCESSED.value

    def test_recall_attaches_recall_record(self):
        shipment = _shipment()
        transition = lifecycle.plan(Action.INITIATE_RECALL, shipment.lifecycle_status, "farmer-1", REGULATOR)
        record = RecallRecord(
            recall_id="R-1",
            reason="Contamination",
            initiated_by="reg-1",
            initiated_role="regulator",
            initiated_at=NOW,
            previous_status="CREATED",
        )
        shipment.apply(replace(transition, record=record))
        assert shipment.status == ShipmentStatus.RECALLED.value
        assert shipment.recall_record.reason == "Contamination"
        assert shipment.current_owner_alias == "farmer-1"
        assert isinstance(shipment._events[-1], ShipmentRecalled)


class TestStageRecordInvariant:
    def test_processor_data_without_processed_status_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            Shipment(
                shipment_id="SHIP-1",
                product_name="Tomatoes",
                quantity=1,
                unit_of_measure="kg",
                status="CERTIFIED",
                current_owner_alias="proc-1",
                created_by="farmer-1",
                farmer_data=FarmerData(farmer_name="Alice", farm_location="Salinas"),
                processor_data=_processor_data(),
            )
        assert "processor_data" in exc.value.messages

    def test_processed_status_without_processor_data_is_rejected(self):
        with pytest.raises(ValidationError):
            Shipment(
                shipment_id="SHIP-1",
                product_name="Tomatoes",
                quantity=1,
                unit_of_measure="kg",
                status="PROCESSED",
                current_owner_alias="dist-1",
                created_by="farmer-1",
                farmer_data=FarmerData(farmer_name="Alice", farm_location="Salinas"),
            )


class TestSummarize:
    def test_counts(self):
        created = _shipment(shipment_id="S-1")
        pending = _shipment(shipment_id="S-2")
        _submit(pending)
        stats = summarize([created, pending])
        assert stats["total"] == 2
        assert stats["active"] == 1
        assert stats["byStatus"]["CREATED"] == 1
        assert stats["byStatus"]["PENDING_CERTIFICATION"] == 1
        assert stats["byStatus"]["DELIVERED"] == 0
