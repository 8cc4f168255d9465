"""Application tests for shipment commands processed through the domain."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from supplychain.shipment.certification import RecordCertification, SubmitForCertification
from supplychain.shipment.creation import CreateShipment
from supplychain.shipment.distribution import DistributeShipment
from supplychain.shipment.errors import IllegalTransition, NotOwner, Unauthorized
from supplychain.shipment.processing import ProcessShipment
from supplychain.shipment.recall import InitiateRecall
from supplychain.shipment.receiving import ReceiveShipment


def _create(payloads, alias="farmer-alice", role="farmer", **overrides):
    command = CreateShipment(actor_alias=alias, actor_role=role, body=json.dumps(payloads.create(**overrides)))
    return current_domain.process(command, asynchronous=False)


def _run(command_cls, shipment_id, alias, role, payload=None):
    command = command_cls(
        shipment_id=shipment_id,
        actor_alias=alias,
        actor_role=role,
        body=json.dumps(payload or {}),
    )
    return current_domain.process(command, asynchronous=False)


class TestCreateShipmentCommand:
    def test_returns_wire_record(self, payloads):
        shipment = _create(payloads, shipmentId="SHIP-100001-AAA")
        assert shipment["shipmentId"] == "SHIP-100001-AAA"
        assert shipment["status"] == "CREATED"
        assert shipment["currentOwnerAlias"] == "farmer-alice"
        assert shipment["quantity"] == 125.5
        assert shipment["version"] == 1
        assert shipment["farmerData"]["plantingDate"] == "2024-03-01T00:00:00Z"

    def test_json_body_travels_in_the_command(self, payloads):
        command = CreateShipment(actor_alias="farmer-alice", actor_role="farmer", body=json.dumps(payloads.create()))
        assert json.loads(command.to_dict()["body"])["productName"] == "Organic Tomatoes"
        shipment = current_domain.process(command, asynchronous=False)
        assert shipment["productName"] == "Organic Tomatoes"

    def test_generated_id_format(self, payloads):
        shipment = _create(payloads)
        prefix, digits, suffix = shipment["shipmentId"].split("-")
        assert prefix == "SHIP"
        assert len(digits) == 6 and digits.isdigit()
        assert len(suffix) == 3 and suffix.isalnum() and suffix.upper() == suffix

    def test_only_farmers_create(self, payloads):
        with pytest.raises(Unauthorized):
            _create(payloads, alias="proc-1", role="processor")

    def test_invalid_payload(self, payloads):
        with pytest.raises(ValidationError) as exc:
            _create(payloads, quantity=-1)
        assert "quantity" in exc.value.messages

    def test_missing_actor_is_a_validation_error(self, payloads):
        with pytest.raises(ValidationError):
            CreateShipment(actor_alias="", actor_role="farmer", body=json.dumps(payloads.create()))


class TestLifecycleCommands:
    def test_full_lifecycle(self, payloads):
        shipment_id = _create(payloads)["shipmentId"]

        shipment = _run(SubmitForCertification, shipment_id, "farmer-alice", "farmer")
        assert shipment["status"] == "PENDING_CERTIFICATION"
        assert shipment["currentOwnerAlias"] == "processor-carol"

        shipment = _run(RecordCertification, shipment_id, "certifier-bob", "certifier", payloads.certification())
        assert shipment["status"] == "CERTIFIED"
        assert shipment["certificationRecords"][0]["certifierIdentity"] == "certifier-bob"

        shipment = _run(ProcessShipment, shipment_id, "processor-carol", "processor", payloads.processor())
        assert shipment["status"] == "PROCESSED"
        assert shipment["currentOwnerAlias"] == "distributor-dan"

        shipment = _run(DistributeShipment, shipment_id, "distributor-dan", "distributor", payloads.distributor())
        assert shipment["status"] == "DISTRIBUTED"
        assert shipment["currentOwnerAlias"] == "retailer-erin"
        assert shipment["distributorData"]["transitLocations"] == ["Fresno", "San Jose"]

        shipment = _run(ReceiveShipment, shipment_id, "retailer-erin", "retailer", payloads.retailer())
        assert shipment["status"] == "DELIVERED"
        assert shipment["currentOwnerAlias"] == "retailer-erin"
        assert shipment["retailerData"]["price"] == 12.99
        assert shipment["version"] == 6

    def test_submit_without_any_destination(self, payloads):
        farmer_data = payloads.farmer_data()
        del farmer_data["destinationProcessorId"]
        shipment_id = _create(payloads, farmerData=farmer_data)["shipmentId"]

        with pytest.raises(ValidationError) as exc:
            _run(SubmitForCertification, shipment_id, "farmer-alice", "farmer")
        assert "destinationProcessorId" in exc.value.messages

    def test_submit_destination_from_payload_wins(self, payloads):
        shipment_id = _create(payloads)["shipmentId"]
        shipment = _run(
            SubmitForCertification, shipment_id, "farmer-alice", "farmer", {"destinationProcessorId": "processor-zed"}
        )
        assert shipment["currentOwnerAlias"] == "processor-zed"

    def test_process_before_certification_is_illegal(self, payloads):
        shipment_id = _create(payloads)["shipmentId"]
        with pytest.raises(IllegalTransition):
            _run(ProcessShipment, shipment_id, "farmer-alice", "processor", payloads.processor())

    def test_non_owner_cannot_process(self, advance, payloads):
        shipment = advance("CERTIFIED")
        with pytest.raises(NotOwner):
            _run(ProcessShipment, shipment.shipment_id, "processor-mallory", "processor", payloads.processor())

    def test_recall_by_regulator(self, advance):
        shipment = advance("PROCESSED")
        recalled = _run(
            InitiateRecall, shipment.shipment_id, "regulator-fay", "regulator", {"reason": "Listeria detected"}
        )
        assert recalled["status"] == "RECALLED"
        assert recalled["currentOwnerAlias"] == "distributor-dan"
        assert recalled["recallRecord"]["previousStatus"] == "PROCESSED"
        assert recalled["recallRecord"]["initiatedBy"] == "regulator-fay"
        assert recalled["recallRecord"]["recallId"].startswith("RECALL-")
        assert recalled["processorData"] is not None
