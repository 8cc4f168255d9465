import pytest
from protean.integrations.pytest import DomainFixture

FARMER = "farmer-alice"
CERTIFIER = "certifier-bob"
PROCESSOR = "processor-carol"
DISTRIBUTOR = "distributor-dan"
RETAILER = "retailer-erin"
REGULATOR = "regulator-fay"


@pytest.fixture(scope="session")
def supplychain_bed():
    from supplychain.domain import supplychain

    bed = DomainFixture(supplychain)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(supplychain_bed):
    with supplychain_bed.domain_context():
        yield


class Payloads:
    """Valid request payloads for every stage, overridable per test."""

    @staticmethod
    def farmer_data(**overrides):
        data = {
            "farmerName": "Alice Grower",
            "farmLocation": "Salinas Valley, CA",
            "cropType": "Tomato",
            "farmingPractice": "Organic",
            "plantingDate": "2024-03-01",
            "harvestDate": "2024-06-15",
            "fertilizerUsed": "Compost",
            "destinationProcessorId": PROCESSOR,
        }
        data.update(overrides)
        return data

    @staticmethod
    def create(**overrides):
        data = {
            "productName": "Organic Tomatoes",
            "description": "Vine-ripened heirloom tomatoes",
            "quantity": 125.5,
            "unitOfMeasure": "kg",
            "farmerData": Payloads.farmer_data(),
        }
        data.update(overrides)
        return data

    @staticmethod
    def certification(status="APPROVED", **overrides):
        data = {"inspectionDate": "2024-06-18", "certificationStatus": status, "comments": "Meets organic standard"}
        data.update(overrides)
        return data

    @staticmethod
    def processor(**overrides):
        data = {
            "processingType": "Washing and packing",
            "processingLineId": "LINE-3",
            "dateProcessed": "2024-06-20T08:30:00Z",
            "contaminationCheck": "PASSED",
            "outputBatchId": "BATCH-0042",
            "expiryDate": "2024-07-20",
            "processingLocation": "Fresno Plant",
            "destinationDistributorId": DISTRIBUTOR,
        }
        data.update(overrides)
        return data

    @staticmethod
    def distributor(**overrides):
        data = {
            "pickupDateTime": "2024-06-21T06:00:00Z",
            "deliveryDateTime": "2024-06-22T14:00:00Z",
            "transportConditions": "Refrigerated",
            "temperatureRange": "2-6C",
            "distributionCenter": "Bay Area DC",
            "distributionLineId": "ROUTE-9",
            "destinationRetailerId": RETAILER,
            "storageTemperature": 4.5,
            "transitLocations": ["Fresno", "San Jose"],
        }
        data.update(overrides)
        return data

    @staticmethod
    def retailer(**overrides):
        data = {
            "storeLocation": "Palo Alto, CA",
            "storeId": "STORE-17",
            "dateReceived": "2024-06-22",
            "price": "12.99",
            "sellByDate": "2024-07-05",
            "shelfLife": "10 days",
        }
        data.update(overrides)
        return data


@pytest.fixture()
def payloads():
    return Payloads


@pytest.fixture()
def ledger():
    from supplychain.ledger import get_ledger

    return get_ledger()


@pytest.fixture()
def executor(ledger):
    from supplychain.config import LedgerSettings
    from supplychain.shipment.executor import TransitionExecutor

    return TransitionExecutor(
        ledger=ledger,
        settings=LedgerSettings(adapter="memory", url=None, timeout_seconds=1.0, max_retries=2, retry_backoff_seconds=0.0),
    )


@pytest.fixture()
def actors():
    from supplychain.shipment.lifecycle import Actor

    return {
        "farmer": Actor(alias=FARMER, role="farmer"),
        "certifier": Actor(alias=CERTIFIER, role="certifier"),
        "processor": Actor(alias=PROCESSOR, role="processor"),
        "distributor": Actor(alias=DISTRIBUTOR, role="distributor"),
        "retailer": Actor(alias=RETAILER, role="retailer"),
        "regulator": Actor(alias=REGULATOR, role="regulator"),
    }


@pytest.fixture()
def advance(executor, actors):
    """Create a shipment and drive it forward to ``status`` through the executor."""
    from supplychain.shipment.lifecycle import Action, ShipmentStatus

    steps = [
        (ShipmentStatus.PENDING_CERTIFICATION, Action.SUBMIT_FOR_CERTIFICATION, "farmer", lambda: {}),
        (ShipmentStatus.CERTIFIED, Action.RECORD_CERTIFICATION, "certifier", Payloads.certification),
        (ShipmentStatus.PROCESSED, Action.PROCESS, "processor", Payloads.processor),
        (ShipmentStatus.DISTRIBUTED, Action.DISTRIBUTE, "distributor", Payloads.distributor),
        (ShipmentStatus.DELIVERED, Action.RECEIVE, "retailer", Payloads.retailer),
    ]

    def _advance(status="CREATED", **create_overrides):
        shipment = executor.create(actors["farmer"], Payloads.create(**create_overrides))
        target = ShipmentStatus(status)
        for reached, action, role, payload in steps:
            if shipment.has_reached(target):
                break
            shipment = executor.execute(shipment.shipment_id, action, actors[role], payload())
            assert shipment.status == reached.value
        return shipment

    return _advance
