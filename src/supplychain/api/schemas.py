"""Pydantic API schemas for the supply-chain domain.

Request bodies are passed through to the stage contracts in
``supplychain.shipment.records`` so that every payload error is reported in
one place. These models describe the responses.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShipmentPageResponse(ApiModel):
    shipments: list[dict[str, Any]]
    bookmark: str | None = None
    count: int


class ShipmentStatsResponse(ApiModel):
    total: int
    active: int
    by_status: dict[str, int]


class HistoryResponse(ApiModel):
    shipment_id: str
    entries: list[dict[str, Any]]


class ErrorResponse(ApiModel):
    model_config = ConfigDict(extra="allow")

    error: str
    message: str


class HealthResponse(ApiModel):
    status: str
    domain: str
    ledger: str = Field(description="Configured ledger adapter")


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid payload"},
    403: {"model": ErrorResponse, "description": "Role or custody check failed"},
    404: {"model": ErrorResponse, "description": "Shipment not found"},
    409: {"model": ErrorResponse, "description": "Illegal transition or concurrent update"},
    502: {"model": ErrorResponse, "description": "Ledger rejected the request"},
    503: {"model": ErrorResponse, "description": "Ledger unavailable"},
    504: {"model": ErrorResponse, "description": "Ledger timed out"},
}
