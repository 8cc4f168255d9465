"""Transition executor — the single write path for shipments.

For an action request it loads the shipment, validates the payload against
the stage contract, checks the lifecycle rules, builds the immutable stage
record and appends the transition atomically through the ledger gateway with
the version it read. A successful request makes exactly one ledger write; a
rejected one makes none.

Reads are retried on retryable gateway failures up to ``LEDGER_MAX_RETRIES``.
Appends never are: when an append times out the executor reads the
shipment history and only treats the write as done if the transition it
attempted is recorded there.
"""

import secrets
import string
import time
from dataclasses import replace
from datetime import datetime

import structlog
from protean.exceptions import ValidationError

from supplychain.config import LedgerSettings, ledger_settings
from supplychain.ledger import get_ledger
from supplychain.ledger.codec import event_names
from supplychain.ledger.port import LedgerGateway
from supplychain.ledger.retry import with_retries
from supplychain.shipment import lifecycle
from supplychain.shipment.errors import GatewayTimeout, ShipmentError, Unauthorized
from supplychain.shipment.lifecycle import Action, Actor, Role, Transition
from supplychain.shipment.records import (
    CertificationPayload,
    CreateShipmentPayload,
    DistributorRecord,
    ProcessorRecord,
    RecallPayload,
    RetailerRecord,
    SubmitForCertificationPayload,
    parse_payload,
)
from supplychain.shipment.shipment import (
    CertificationRecord,
    DistributorData,
    FarmerData,
    ProcessorData,
    RecallRecord,
    RetailerData,
    Shipment,
)

logger = structlog.get_logger(__name__)

PAYLOAD_CONTRACTS = {
    Action.SUBMIT_FOR_CERTIFICATION: SubmitForCertificationPayload,
    Action.RECORD_CERTIFICATION: CertificationPayload,
    Action.PROCESS: ProcessorRecord,
    Action.DISTRIBUTE: DistributorRecord,
    Action.RECEIVE: RetailerRecord,
    Action.INITIATE_RECALL: RecallPayload,
}

_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_shipment_id() -> str:
    """``SHIP-<last 6 digits of the ms clock>-<3 random chars>``, e.g. ``SHIP-482913-K7Q``."""
    millis = str(int(time.time() * 1000))[-6:]
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(3))
    return f"SHIP-{millis}-{suffix}"


def generate_recall_id() -> str:
    return f"RECALL-{secrets.token_hex(4).upper()}"


class TransitionExecutor:
    def __init__(self, ledger: LedgerGateway | None = None, settings: LedgerSettings | None = None):
        self.ledger = ledger or get_ledger()
        self.settings = settings or ledger_settings()

    @property
    def timeout(self) -> float:
        return self.settings.timeout_seconds

    def read(self, shipment_id: str) -> Shipment:
        return with_retries(
            lambda: self.ledger.read_shipment(shipment_id, timeout=self.timeout),
            self.settings.max_retries,
            "read_shipment",
            backoff=self.settings.retry_backoff_seconds,
            shipment_id=shipment_id,
        )

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create(self, actor: Actor, payload: dict | None) -> Shipment:
        """Register a new shipment owned by the creating farmer."""
        if not actor.has_role({Role.FARMER}):
            raise Unauthorized(
                f"Role `{actor.role}` may not create shipments; requires farmer",
                action="create",
                actor_role=actor.role,
                required_roles=[Role.FARMER.value],
            )

        data = parse_payload(CreateShipmentPayload, payload)
        shipment = Shipment.create(
            shipment_id=data.shipment_id or generate_shipment_id(),
            product_name=data.product_name,
            description=data.description,
            quantity=data.quantity,
            unit_of_measure=data.unit_of_measure,
            farmer_data=FarmerData(**data.farmer_data.record_kwargs()),
            created_by=actor.alias,
        )

        # A creation that times out is not verified by re-reading: the id may
        # have been taken by someone else in the meantime.
        stored = self.ledger.create_shipment(shipment, timeout=self.timeout)
        logger.info(
            "shipment_created",
            shipment_id=stored.shipment_id,
            created_by=actor.alias,
            quantity=stored.quantity,
            unit_of_measure=stored.unit_of_measure,
        )
        return stored

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def execute(self, shipment_id: str, action: Action | str, actor: Actor, payload: dict | None) -> Shipment:
        """Apply one lifecycle action and return the stored shipment."""
        if isinstance(action, str):
            action = lifecycle.parse_action(action)

        shipment = self.read(shipment_id)
        expected_version = shipment.ledger_version

        try:
            data = parse_payload(PAYLOAD_CONTRACTS[action], payload)
            transition = lifecycle.plan(
                action,
                shipment.lifecycle_status,
                shipment.current_owner_alias,
                actor,
                destination=self._destination(action, shipment, data),
                certification_status=getattr(data, "certification_status", None),
            )
        except (ShipmentError, ValidationError) as exc:
            logger.info(
                "transition_rejected",
                shipment_id=shipment_id,
                action=action.value,
                actor=actor.alias,
                actor_role=actor.role,
                status=shipment.status,
                error=getattr(exc, "kind", "ValidationError"),
            )
            raise

        transition = replace(transition, record=self._build_record(transition, data))
        shipment.apply(transition)
        events = event_names(shipment)

        try:
            stored = self.ledger.append_and_advance(
                shipment_id, expected_version, transition, shipment, timeout=self.timeout
            )
        except GatewayTimeout:
            stored = self._landed(shipment_id, transition)
            if stored is None:
                raise

        logger.info(
            "transition_applied",
            shipment_id=shipment_id,
            action=action.value,
            actor=actor.alias,
            from_status=transition.from_status.value,
            to_status=transition.to_status.value,
            owner=transition.new_owner,
            version=stored.ledger_version,
            events=events,
        )
        return stored

    def _landed(self, shipment_id: str, transition: Transition) -> Shipment | None:
        """After a timed-out append, return the shipment if the transition is in its history.

        Another transition may have been appended on top of ours before we
        look, so the history is searched rather than the latest entry.
        """
        entries = with_retries(
            lambda: self.ledger.history(shipment_id, timeout=self.timeout),
            self.settings.max_retries,
            "history",
            backoff=self.settings.retry_backoff_seconds,
            shipment_id=shipment_id,
        )
        if not any(entry.get("transitionId") == transition.transition_id for entry in entries):
            return None

        logger.info(
            "transition_landed_after_timeout",
            shipment_id=shipment_id,
            transition_id=transition.transition_id,
        )
        return self.read(shipment_id)

    @staticmethod
    def _destination(action: Action, shipment: Shipment, data) -> str | None:
        if action == Action.SUBMIT_FOR_CERTIFICATION:
            destination = data.destination_processor_id or shipment.farmer_data.destination_processor_id
            if not destination:
                raise ValidationError(
                    {"destinationProcessorId": ["A destination processor is required to submit for certification"]}
                )
            return destination
        if action == Action.PROCESS:
            return data.destination_distributor_id
        if action == Action.DISTRIBUTE:
            return data.destination_retailer_id
        return None

    @staticmethod
    def _build_record(transition: Transition, data):
        at: datetime = transition.occurred_at
        action = transition.action

        if action == Action.RECORD_CERTIFICATION:
            return CertificationRecord(
                inspection_date=data.inspection_date,
                certification_status=data.certification_status,
                comments=data.comments,
                certifier_identity=transition.actor.alias,
                recorded_at=at,
            )
        if action == Action.PROCESS:
            return ProcessorData(**data.record_kwargs())
        if action == Action.DISTRIBUTE:
            return DistributorData(**data.record_kwargs())
        if action == Action.RECEIVE:
            return RetailerData(**data.record_kwargs())
        if action == Action.INITIATE_RECALL:
            return RecallRecord(
                recall_id=data.recall_id or generate_recall_id(),
                reason=data.reason,
                initiated_by=transition.actor.alias,
                initiated_role=transition.actor.role.strip().lower(),
                initiated_at=at,
                previous_status=transition.from_status.value,
            )
        return None
