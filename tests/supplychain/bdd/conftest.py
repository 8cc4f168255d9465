"""Shared BDD fixtures and step definitions for the supply-chain domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when
from supplychain.shipment.errors import ShipmentError
from supplychain.shipment.lifecycle import Actor


@pytest.fixture()
def error():
    """Container for the failure a step captured."""
    return {"exc": None}


@pytest.fixture()
def attempt(error):
    """Run a call and keep any domain failure for a later Then step."""

    def _attempt(call):
        try:
            return call()
        except (ShipmentError, ValidationError) as exc:
            error["exc"] = exc
            return None

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a shipment in status "{status}"'), target_fixture="shipment")
def shipment_in_status(advance, status):
    return advance(status)


@given("a new shipment", target_fixture="shipment")
def new_shipment(advance):
    return advance("CREATED")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{alias}" as {role} performs "{action}"'))
def actor_performs(executor, payloads, shipment, attempt, alias, role, action):
    builders = {
        "submitForCertification": lambda: {},
        "recordCertification": payloads.certification,
        "process": payloads.processor,
        "distribute": payloads.distributor,
        "receive": payloads.retailer,
        "initiateRecall": lambda: {"reason": "Routine audit"},
    }
    payload = builders[action]() if action in builders else {}
    attempt(lambda: executor.execute(shipment.shipment_id, action, Actor(alias=alias, role=role), payload))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the shipment status is "{status}"'))
def shipment_status_is(executor, shipment, status):
    assert executor.read(shipment.shipment_id).status == status


@then(parsers.cfparse('the shipment is held by "{alias}"'))
def shipment_held_by(executor, shipment, alias):
    assert executor.read(shipment.shipment_id).current_owner_alias == alias


@then(parsers.cfparse('the action fails with "{kind}"'))
def action_fails_with(error, kind):
    exc = error["exc"]
    assert exc is not None, "Expected the action to fail but it succeeded"
    actual = exc.kind if isinstance(exc, ShipmentError) else type(exc).__name__
    assert actual == kind


@then("the action succeeds")
def action_succeeds(error):
    assert error["exc"] is None, f"Unexpected failure: {error['exc']!r}"


@then(parsers.cfparse("a {event_type} event is recorded on the ledger"))
def event_recorded(ledger, shipment, event_type):
    last = ledger.history(shipment.shipment_id)[-1]
    assert event_type in last["events"], f"No {event_type} in {last['events']}"


@then(parsers.cfparse("the ledger holds {count:d} entries"))
def ledger_holds(ledger, shipment, count):
    assert len(ledger.history(shipment.shipment_id)) == count
