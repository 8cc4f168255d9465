"""Shipment lifecycle state machine.

Pure functions over (action, status, owner, actor). Nothing here touches the
ledger or mutates an aggregate; the aggregate and the transition executor both
ask this module whether a move is legal and where it leads.

    CREATED → PENDING_CERTIFICATION → CERTIFIED → PROCESSED → DISTRIBUTED → DELIVERED
    {every status except DELIVERED and RECALLED} → RECALLED
    PENDING_CERTIFICATION → RECALLED  (certification REJECTED)

Custodial actions (the ones that require the actor to be the current owner)
hand the shipment to the destination named in their payload, or leave it with
the acting party when none is named. Certification and recall never move
custody.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from protean.exceptions import ValidationError

from supplychain.shipment.errors import IllegalTransition, NotOwner, Unauthorized


class ShipmentStatus(Enum):
    CREATED = "CREATED"
    PENDING_CERTIFICATION = "PENDING_CERTIFICATION"
    CERTIFIED = "CERTIFIED"
    PROCESSED = "PROCESSED"
    DISTRIBUTED = "DISTRIBUTED"
    DELIVERED = "DELIVERED"
    RECALLED = "RECALLED"


class Action(Enum):
    SUBMIT_FOR_CERTIFICATION = "submitForCertification"
    RECORD_CERTIFICATION = "recordCertification"
    PROCESS = "process"
    DISTRIBUTE = "distribute"
    RECEIVE = "receive"
    INITIATE_RECALL = "initiateRecall"


class Role(Enum):
    FARMER = "farmer"
    CERTIFIER = "certifier"
    PROCESSOR = "processor"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"
    REGULATOR = "regulator"
    ADMIN = "admin"


class CertificationStatus(Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CONDITIONAL = "CONDITIONAL"


# Forward chain, in stage order
LIFECYCLE = (
    ShipmentStatus.CREATED,
    ShipmentStatus.PENDING_CERTIFICATION,
    ShipmentStatus.CERTIFIED,
    ShipmentStatus.PROCESSED,
    ShipmentStatus.DISTRIBUTED,
    ShipmentStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({ShipmentStatus.DELIVERED, ShipmentStatus.RECALLED})

ACTIVE_STATUSES = frozenset({ShipmentStatus.CREATED, ShipmentStatus.PROCESSED, ShipmentStatus.DISTRIBUTED})

RECALLABLE_STATUSES = frozenset(s for s in ShipmentStatus if s not in TERMINAL_STATUSES)

_VALID_TRANSITIONS = {
    ShipmentStatus.CREATED: {ShipmentStatus.PENDING_CERTIFICATION, ShipmentStatus.RECALLED},
    ShipmentStatus.PENDING_CERTIFICATION: {ShipmentStatus.CERTIFIED, ShipmentStatus.RECALLED},
    ShipmentStatus.CERTIFIED: {ShipmentStatus.PROCESSED, ShipmentStatus.RECALLED},
    ShipmentStatus.PROCESSED: {ShipmentStatus.DISTRIBUTED, ShipmentStatus.RECALLED},
    ShipmentStatus.DISTRIBUTED: {ShipmentStatus.DELIVERED, ShipmentStatus.RECALLED},
    ShipmentStatus.DELIVERED: set(),  # terminal
    ShipmentStatus.RECALLED: set(),  # terminal
}


@dataclass(frozen=True)
class TransitionRule:
    action: Action
    from_statuses: frozenset
    roles: frozenset
    requires_owner: bool
    to_status: ShipmentStatus
    record_field: str | None = None


RULES = {
    Action.SUBMIT_FOR_CERTIFICATION: TransitionRule(
        action=Action.SUBMIT_FOR_CERTIFICATION,
        from_statuses=frozenset({ShipmentStatus.CREATED}),
        roles=frozenset({Role.FARMER}),
        requires_owner=True,
        to_status=ShipmentStatus.PENDING_CERTIFICATION,
    ),
    Action.RECORD_CERTIFICATION: TransitionRule(
        action=Action.RECORD_CERTIFICATION,
        from_statuses=frozenset({ShipmentStatus.PENDING_CERTIFICATION}),
        roles=frozenset({Role.CERTIFIER}),
        requires_owner=False,
        to_status=ShipmentStatus.CERTIFIED,
        record_field="certification_records",
    ),
    Action.PROCESS: TransitionRule(
        action=Action.PROCESS,
        from_statuses=frozenset({ShipmentStatus.CERTIFIED}),
        roles=frozenset({Role.PROCESSOR}),
        requires_owner=True,
        to_status=ShipmentStatus.PROCESSED,
        record_field="processor_data",
    ),
    Action.DISTRIBUTE: TransitionRule(
        action=Action.DISTRIBUTE,
        from_statuses=frozenset({ShipmentStatus.PROCESSED}),
        roles=frozenset({Role.DISTRIBUTOR}),
        requires_owner=True,
        to_status=ShipmentStatus.DISTRIBUTED,
        record_field="distributor_data",
    ),
    Action.RECEIVE: TransitionRule(
        action=Action.RECEIVE,
        from_statuses=frozenset({ShipmentStatus.DISTRIBUTED}),
        roles=frozenset({Role.RETAILER}),
        requires_owner=True,
        to_status=ShipmentStatus.DELIVERED,
        record_field="retailer_data",
    ),
    Action.INITIATE_RECALL: TransitionRule(
        action=Action.INITIATE_RECALL,
        from_statuses=RECALLABLE_STATUSES,
        roles=frozenset({Role.REGULATOR, Role.ADMIN}),
        requires_owner=False,
        to_status=ShipmentStatus.RECALLED,
        record_field="recall_record",
    ),
}


@dataclass(frozen=True)
class Actor:
    """The identity + role pair attempting a transition."""

    alias: str
    role: str

    def has_role(self, roles) -> bool:
        return (self.role or "").strip().lower() in {r.value for r in roles}


@dataclass(frozen=True)
class Transition:
    """A fully planned, not yet persisted, lifecycle move."""

    action: Action
    actor: Actor
    from_status: ShipmentStatus
    to_status: ShipmentStatus
    new_owner: str
    record_field: str | None = None
    record: Any = None
    transition_id: str = field(default_factory=lambda: uuid4().hex)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def parse_action(name: str) -> Action:
    """Resolve an external action name (``"process"``) to an ``Action``."""
    try:
        return Action(name)
    except ValueError:
        valid = ", ".join(a.value for a in Action)
        raise ValidationError({"action": [f"Unknown action `{name}`. Expected one of: {valid}"]}) from None


def rule_for(action: Action) -> TransitionRule:
    return RULES[action]


def is_forward(current: ShipmentStatus, target: ShipmentStatus) -> bool:
    """True if ``target`` is directly reachable from ``current`` in the lifecycle graph."""
    return target in _VALID_TRANSITIONS.get(current, set())


def has_reached(current: ShipmentStatus, stage: ShipmentStatus) -> bool:
    """True if a shipment in ``current`` has reached or passed ``stage`` on the forward chain.

    RECALLED is off the chain; it has only reached RECALLED itself.
    """
    if current == ShipmentStatus.RECALLED or stage == ShipmentStatus.RECALLED:
        return current == stage
    return LIFECYCLE.index(current) >= LIFECYCLE.index(stage)


def check_transition(action: Action, status: ShipmentStatus, owner_alias: str, actor: Actor) -> TransitionRule:
    """Raise unless ``actor`` may perform ``action`` on a shipment in ``status`` owned by ``owner_alias``.

    Checks run status first, then role, then ownership.
    """
    rule = rule_for(action)

    if status not in rule.from_statuses:
        required = sorted(s.value for s in rule.from_statuses)
        raise IllegalTransition(
            f"Cannot {action.value} a shipment in {status.value} state; requires {' or '.join(required)}",
            action=action.value,
            current_status=status.value,
            required_status=required,
        )

    if not actor.has_role(rule.roles):
        required_roles = sorted(r.value for r in rule.roles)
        raise Unauthorized(
            f"Role `{actor.role}` may not {action.value}; requires {' or '.join(required_roles)}",
            action=action.value,
            actor_role=actor.role,
            required_roles=required_roles,
        )

    if rule.requires_owner and actor.alias != owner_alias:
        raise NotOwner(
            f"`{actor.alias}` does not hold custody of this shipment",
            action=action.value,
            actor=actor.alias,
            current_owner=owner_alias,
        )

    return rule


def can_transition(action: Action, status: ShipmentStatus, owner_alias: str, actor: Actor) -> bool:
    try:
        check_transition(action, status, owner_alias, actor)
    except (IllegalTransition, Unauthorized, NotOwner):
        return False
    return True


def available_actions(status: ShipmentStatus, owner_alias: str, actor: Actor) -> list[Action]:
    """Actions ``actor`` could perform right now, in declaration order."""
    return [action for action in Action if can_transition(action, status, owner_alias, actor)]


def next_status(action: Action, certification_status: str | None = None) -> ShipmentStatus:
    """Status a successful ``action`` leads to.

    A REJECTED certification recalls the shipment; CONDITIONAL certifies it.
    """
    if action == Action.RECORD_CERTIFICATION and certification_status == CertificationStatus.REJECTED.value:
        return ShipmentStatus.RECALLED
    return rule_for(action).to_status


def next_owner(action: Action, current_owner: str, actor: Actor, destination: str | None = None) -> str:
    """Custodian after a successful ``action``.

    Custodial actions hand off to ``destination`` immediately when one is
    named, otherwise the acting party keeps custody. Non-custodial actions
    (certification, recall) leave custody where it is.
    """
    if not rule_for(action).requires_owner:
        return current_owner
    return destination or actor.alias


def plan(
    action: Action,
    status: ShipmentStatus,
    owner_alias: str,
    actor: Actor,
    record: Any = None,
    destination: str | None = None,
    certification_status: str | None = None,
) -> Transition:
    """Check and plan a transition. Raises the same errors as ``check_transition``."""
    rule = check_transition(action, status, owner_alias, actor)
    return Transition(
        action=action,
        actor=actor,
        from_status=status,
        to_status=next_status(action, certification_status),
        new_owner=next_owner(action, owner_alias, actor, destination),
        record_field=rule.record_field,
        record=record,
    )
