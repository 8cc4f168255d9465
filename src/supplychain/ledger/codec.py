"""Wire codec for shipments stored on the ledger.

Snapshots are plain JSON-compatible dicts with camelCase keys, ISO-8601 UTC
timestamps ending in ``Z`` and decimals as numbers. Both ledger adapters
store and exchange exactly this shape, and the API returns it unchanged.
"""

import hashlib
import json
from datetime import UTC, datetime
from typing import Any

from protean.utils.reflection import declared_fields
from pydantic.alias_generators import to_camel

from supplychain.shipment.lifecycle import Transition
from supplychain.shipment.records import to_utc
from supplychain.shipment.shipment import (
    CertificationRecord,
    DistributorData,
    FarmerData,
    ProcessorData,
    RecallRecord,
    RetailerData,
    Shipment,
)

GENESIS_HASH = "0" * 64

_STAGE_VALUE_OBJECTS = {
    "farmer_data": FarmerData,
    "processor_data": ProcessorData,
    "distributor_data": DistributorData,
    "retailer_data": RetailerData,
    "recall_record": RecallRecord,
}

_CERTIFICATION_FIELDS = ("inspection_date", "certification_status", "comments", "certifier_identity", "recorded_at")

# Fields parsed back into aware datetimes on decode
_TIMESTAMPS = {
    FarmerData: {"planting_date", "harvest_date"},
    ProcessorData: {"date_processed", "expiry_date"},
    DistributorData: {"pickup_date_time", "delivery_date_time"},
    RetailerData: {"date_received", "sell_by_date"},
    RecallRecord: {"initiated_at"},
    CertificationRecord: {"inspection_date", "recorded_at"},
}

_SCALAR_FIELDS = (
    "shipment_id",
    "product_name",
    "description",
    "quantity",
    "unit_of_measure",
    "status",
    "current_owner_alias",
    "created_by",
    "last_transition_id",
)


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, (list, tuple)):
        return [_encode_value(item) for item in value]
    return value


def encode_record(record) -> dict | None:
    """Encode a stage value object or a certification record."""
    if record is None:
        return None
    if isinstance(record, CertificationRecord):
        names = _CERTIFICATION_FIELDS
    else:
        names = declared_fields(type(record)).keys()
    return {to_camel(name): _encode_value(getattr(record, name)) for name in names}


def decode_record(record_cls, data: dict | None):
    """Rebuild a stage value object (or certification record) from its wire dict."""
    if data is None:
        return None
    timestamps = _TIMESTAMPS[record_cls]
    if record_cls is CertificationRecord:
        names = _CERTIFICATION_FIELDS
    else:
        names = declared_fields(record_cls).keys()

    kwargs = {}
    for name in names:
        value = data.get(to_camel(name))
        if value is None:
            continue
        kwargs[name] = to_utc(value) if name in timestamps else value
    return record_cls(**kwargs)


def shipment_to_dict(shipment: Shipment) -> dict:
    data = {to_camel(name): getattr(shipment, name) for name in _SCALAR_FIELDS}
    for name in _STAGE_VALUE_OBJECTS:
        data[to_camel(name)] = encode_record(getattr(shipment, name))
    data["certificationRecords"] = [encode_record(record) for record in shipment.certification_records]
    data["version"] = shipment.ledger_version
    data["createdAt"] = format_timestamp(shipment.created_at)
    data["updatedAt"] = format_timestamp(shipment.updated_at)
    return data


def shipment_from_dict(data: dict) -> Shipment:
    kwargs = {name: data.get(to_camel(name)) for name in _SCALAR_FIELDS}
    for name, record_cls in _STAGE_VALUE_OBJECTS.items():
        kwargs[name] = decode_record(record_cls, data.get(to_camel(name)))
    kwargs["certification_records"] = [
        decode_record(CertificationRecord, record) for record in data.get("certificationRecords") or []
    ]
    kwargs["ledger_version"] = data.get("version", 0)
    kwargs["created_at"] = to_utc(data.get("createdAt"))
    kwargs["updated_at"] = to_utc(data.get("updatedAt"))
    return Shipment(**kwargs)


def transition_to_dict(transition: Transition) -> dict:
    return {
        "transitionId": transition.transition_id,
        "action": transition.action.value,
        "actorAlias": transition.actor.alias,
        "actorRole": transition.actor.role,
        "fromStatus": transition.from_status.value,
        "toStatus": transition.to_status.value,
        "newOwner": transition.new_owner,
        "recordField": to_camel(transition.record_field) if transition.record_field else None,
        "record": encode_record(transition.record),
        "occurredAt": format_timestamp(transition.occurred_at),
    }


def event_names(shipment: Shipment) -> list[str]:
    """Names of the domain events the aggregate raised since it was loaded."""
    return [type(event).__name__ for event in shipment._events]


def canonical_json(data: Any) -> str:
    """Deterministic JSON (sorted keys, compact separators) for hashing."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def chain_hash(previous_hash: str, content: dict) -> str:
    """SHA-256 over the previous entry hash and this entry's canonical content."""
    canonical = canonical_json({"previousHash": previous_hash, "content": content})
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
