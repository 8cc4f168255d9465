"""FastAPI routes for the supply-chain domain.

The acting party is identified by the ``X-Actor-Alias`` and ``X-Actor-Role``
headers. Authentication happens in front of this service.
"""

from typing import Any

from fastapi import APIRouter, Body, Header, Query
from fastapi.responses import JSONResponse

from supplychain.api.schemas import ERROR_RESPONSES, HistoryResponse, ShipmentPageResponse, ShipmentStatsResponse
from supplychain.api.service import ServiceResult, ShipmentService
from supplychain.shipment.lifecycle import Action

service = ShipmentService()


def _respond(result: ServiceResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)


# ---------------------------------------------------------------------------
# Shipment Router
# ---------------------------------------------------------------------------
shipment_router = APIRouter(prefix="/api/shipments", tags=["shipments"], responses=ERROR_RESPONSES)


@shipment_router.post("", status_code=201)
def create_shipment(
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    """Register a new shipment. The caller must be a farmer."""
    return _respond(service.create(x_actor_alias, x_actor_role, body))


@shipment_router.get("/all", response_model=ShipmentPageResponse)
def list_all_shipments(
    page_size: int | None = Query(default=None, alias="pageSize"),
    bookmark: str | None = Query(default=None),
):
    return _respond(service.page(page_size=page_size, bookmark=bookmark))


@shipment_router.get("/my", response_model=ShipmentPageResponse)
def list_my_shipments(
    page_size: int | None = Query(default=None, alias="pageSize"),
    bookmark: str | None = Query(default=None),
    x_actor_alias: str = Header(default=""),
):
    """Shipments currently in the caller's custody."""
    return _respond(service.my_shipments(x_actor_alias, page_size=page_size, bookmark=bookmark))


@shipment_router.get("/stats", response_model=ShipmentStatsResponse)
def shipment_stats(owner: str | None = Query(default=None)):
    """Dashboard counts: total, active and per status."""
    return _respond(service.stats(owner=owner))


@shipment_router.get("/{shipment_id}")
def get_shipment(
    shipment_id: str,
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    return _respond(service.get(shipment_id, actor_alias=x_actor_alias, actor_role=x_actor_role))


@shipment_router.get("/{shipment_id}/history", response_model=HistoryResponse)
def shipment_history(shipment_id: str):
    """Ledger entries for the shipment, oldest first."""
    return _respond(service.history(shipment_id))


@shipment_router.post("/{shipment_id}/certification/submit")
def submit_for_certification(
    shipment_id: str,
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    return _respond(
        service.perform(shipment_id, Action.SUBMIT_FOR_CERTIFICATION.value, x_actor_alias, x_actor_role, body)
    )


@shipment_router.post("/{shipment_id}/certification/record")
def record_certification(
    shipment_id: str,
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    return _respond(service.perform(shipment_id, Action.RECORD_CERTIFICATION.value, x_actor_alias, x_actor_role, body))


@shipment_router.post("/{shipment_id}/process")
def process_shipment(
    shipment_id: str,
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    """Body: ``{"processorData": {...}}``."""
    return _respond(service.perform(shipment_id, Action.PROCESS.value, x_actor_alias, x_actor_role, body))


@shipment_router.post("/{shipment_id}/distribute")
def distribute_shipment(
    shipment_id: str,
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    """Body: ``{"distributorData": {...}}``."""
    return _respond(service.perform(shipment_id, Action.DISTRIBUTE.value, x_actor_alias, x_actor_role, body))


@shipment_router.post("/{shipment_id}/receive")
def receive_shipment(
    shipment_id: str,
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    """Body: ``{"retailerData": {...}}``."""
    return _respond(service.perform(shipment_id, Action.RECEIVE.value, x_actor_alias, x_actor_role, body))


@shipment_router.post("/{shipment_id}/actions/{action}")
def perform_action(
    shipment_id: str,
    action: str,
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    """Generic entry point: ``action`` is any lifecycle action name, e.g. ``submitForCertification``."""
    return _respond(service.perform(shipment_id, action, x_actor_alias, x_actor_role, body))


# ---------------------------------------------------------------------------
# Recall Router
# ---------------------------------------------------------------------------
recall_router = APIRouter(prefix="/api/recalls", tags=["recalls"], responses=ERROR_RESPONSES)


@recall_router.post("/initiate")
def initiate_recall(
    body: dict[str, Any] | None = Body(default=None),
    x_actor_alias: str = Header(default=""),
    x_actor_role: str = Header(default=""),
):
    """Body: ``{"shipmentId": ..., "recallId": optional, "reason": ...}``."""
    return _respond(service.recall(x_actor_alias, x_actor_role, body))
