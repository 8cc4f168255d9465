"""Wire contracts for shipment creation and every lifecycle stage record.

Each contract is a closed set of camelCase fields (unknown keys are rejected).
Requiredness is checked explicitly, blank strings count as missing.
Timestamps are normalized to UTC: calendar dates become start-of-day UTC and
naive date-times are read as UTC. Decimals accept numbers or numeric strings
(never booleans) and are range-checked, never clamped.

``parse_payload`` turns any pydantic failure into protean's
``ValidationError`` keyed by the wire path of the offending field, e.g.
``{"farmerData.farmerName": ["Field required"]}``.
"""

from collections.abc import Mapping
from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated, Any

from protean.exceptions import ValidationError
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PayloadError
from pydantic.alias_generators import to_camel

from supplychain.shipment.lifecycle import CertificationStatus


class UnitOfMeasure(Enum):
    KG = "kg"
    TONS = "tons"
    LBS = "lbs"
    PIECES = "pieces"
    BOXES = "boxes"
    LITERS = "liters"


class FarmingPractice(Enum):
    ORGANIC = "Organic"
    CONVENTIONAL = "Conventional"
    SUSTAINABLE = "Sustainable"
    HYDROPONIC = "Hydroponic"


class ContaminationCheck(Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"


def to_utc(value: Any) -> datetime | None:
    """Normalize an ISO-8601 date or date-time (string or object) to an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if len(text) == 10:
            value = date.fromisoformat(text)
        else:
            value = datetime.fromisoformat(text)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    raise ValueError("Expected an ISO-8601 date or date-time")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _not_a_boolean(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Input should be a number, not a boolean")
    return value


def _default_practice(value: Any) -> Any:
    return _blank_to_none(value) or FarmingPractice.CONVENTIONAL.value


Timestamp = Annotated[datetime, BeforeValidator(to_utc)]
OptionalTimestamp = Annotated[datetime | None, BeforeValidator(to_utc)]
RequiredText = Annotated[str, Field(min_length=1, max_length=255)]
OptionalText = Annotated[Annotated[str, Field(max_length=255)] | None, BeforeValidator(_blank_to_none)]
LongText = Annotated[Annotated[str, Field(max_length=2000)] | None, BeforeValidator(_blank_to_none)]
ShipmentId = Annotated[
    Annotated[str, Field(max_length=64, pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$")] | None,
    BeforeValidator(_blank_to_none),
]
Temperature = Annotated[
    Annotated[float, Field(ge=-50, le=50, allow_inf_nan=False)] | None,
    BeforeValidator(_not_a_boolean),
    BeforeValidator(_blank_to_none),
]
Price = Annotated[float, Field(ge=0, allow_inf_nan=False), BeforeValidator(_not_a_boolean)]
Quantity = Annotated[float, Field(gt=0, allow_inf_nan=False), BeforeValidator(_not_a_boolean)]


class RecordPayload(BaseModel):
    """Base for every inbound contract."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
        use_enum_values=True,
        frozen=True,
    )

    def record_kwargs(self) -> dict:
        """Attribute values for the matching stage value object."""
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Stage records
# ---------------------------------------------------------------------------
class FarmerRecord(RecordPayload):
    farmer_name: RequiredText
    farm_location: RequiredText
    crop_type: OptionalText = None
    farming_practice: Annotated[FarmingPractice, BeforeValidator(_default_practice)] = Field(
        default=FarmingPractice.CONVENTIONAL.value
    )
    planting_date: OptionalTimestamp = None
    harvest_date: OptionalTimestamp = None
    fertilizer_used: LongText = None
    destination_processor_id: OptionalText = None
    certification_document_hash: OptionalText = None

    @field_validator("harvest_date")
    @classmethod
    def harvest_not_before_planting(cls, value: datetime | None, info: ValidationInfo) -> datetime | None:
        planted = info.data.get("planting_date")
        if value is not None and planted is not None and value < planted:
            raise ValueError("harvestDate cannot be earlier than plantingDate")
        return value


class CertificationPayload(RecordPayload):
    inspection_date: Timestamp
    certification_status: CertificationStatus
    comments: LongText = Field(default=None, validate_default=True)

    @field_validator("comments")
    @classmethod
    def conditional_needs_comments(cls, value: str | None, info: ValidationInfo) -> str | None:
        if info.data.get("certification_status") == CertificationStatus.CONDITIONAL.value and not value:
            raise ValueError("comments are required for a CONDITIONAL certification")
        return value


class ProcessorRecord(RecordPayload):
    processing_type: RequiredText
    processing_line_id: RequiredText
    date_processed: Timestamp
    contamination_check: ContaminationCheck
    output_batch_id: RequiredText
    expiry_date: Timestamp
    processing_location: RequiredText
    destination_distributor_id: RequiredText

    @field_validator("expiry_date")
    @classmethod
    def expiry_after_processing(cls, value: datetime, info: ValidationInfo) -> datetime:
        processed = info.data.get("date_processed")
        if processed is not None and value < processed:
            raise ValueError("expiryDate cannot be earlier than dateProcessed")
        return value


class DistributorRecord(RecordPayload):
    pickup_date_time: Timestamp
    delivery_date_time: Timestamp
    transport_conditions: RequiredText
    temperature_range: RequiredText
    distribution_center: RequiredText
    distribution_line_id: RequiredText
    destination_retailer_id: RequiredText
    storage_temperature: Temperature = None
    transit_locations: list[RequiredText] = Field(default_factory=list)

    @field_validator("delivery_date_time")
    @classmethod
    def delivery_after_pickup(cls, value: datetime, info: ValidationInfo) -> datetime:
        pickup = info.data.get("pickup_date_time")
        if pickup is not None and value < pickup:
            raise ValueError("deliveryDateTime cannot be earlier than pickupDateTime")
        return value


class RetailerRecord(RecordPayload):
    store_location: RequiredText
    store_id: RequiredText
    date_received: Timestamp
    price: Price
    sell_by_date: Timestamp
    shelf_life: RequiredText


# ---------------------------------------------------------------------------
# Action payloads without a stage record of their own
# ---------------------------------------------------------------------------
class CreateShipmentPayload(RecordPayload):
    shipment_id: ShipmentId = None
    product_name: RequiredText
    description: LongText = None
    quantity: Quantity
    unit_of_measure: UnitOfMeasure = Field(default=UnitOfMeasure.KG.value)
    farmer_data: FarmerRecord


class SubmitForCertificationPayload(RecordPayload):
    destination_processor_id: OptionalText = None


class RecallPayload(RecordPayload):
    recall_id: OptionalText = None
    reason: Annotated[str, Field(min_length=1, max_length=2000)]


def _error_key(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "payload"


def parse_payload(contract: type[RecordPayload], payload: Mapping | None) -> RecordPayload:
    """Validate ``payload`` against ``contract``, reporting every violation at once."""
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationError({"payload": ["Expected an object"]})

    try:
        return contract.model_validate(dict(payload))
    except PayloadError as exc:
        messages: dict[str, list[str]] = {}
        for error in exc.errors():
            message = error["msg"].removeprefix("Value error, ")
            messages.setdefault(_error_key(error["loc"]), []).append(message)
        raise ValidationError(messages) from None
