"""Dispatch shared by the lifecycle command handlers."""

import json

from supplychain.ledger.codec import shipment_to_dict
from supplychain.shipment.executor import TransitionExecutor
from supplychain.shipment.lifecycle import Action, Actor


def run_transition(action: Action, command) -> dict:
    """Execute ``action`` for a lifecycle command and return the stored shipment as a wire dict."""
    payload = json.loads(command.body) if isinstance(command.body, str) else command.body
    shipment = TransitionExecutor().execute(
        command.shipment_id,
        action,
        Actor(alias=command.actor_alias, role=command.actor_role),
        payload,
    )
    return shipment_to_dict(shipment)
