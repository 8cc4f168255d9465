import os
from pathlib import Path

import pytest

# Test layer, by the directory a test module lives in
LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Activate the supplychain domain before collection.

    The ledger defaults to the in-memory adapter and file logging is off
    unless the environment says otherwise.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("LEDGER_ADAPTER", "memory")
    os.environ.setdefault("LOG_TO_FILE", "false")
    os.environ.setdefault("LEDGER_RETRY_BACKOFF", "0")

    from supplychain.domain import supplychain

    supplychain.init()
    supplychain.domain_context().push()


def pytest_collection_modifyitems(config, items):
    for item in items:
        layers = [LAYER_MARKERS[part] for part in Path(item.fspath).parts if part in LAYER_MARKERS]
        if not layers:
            continue
        item.add_marker(layers[-1])
        if layers[-1] is LAYER_MARKERS["integration"] and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Every test starts from an empty ledger and event store."""
    yield

    from protean import current_domain
    from supplychain.ledger import reset_ledger

    reset_ledger()
    current_domain.event_store.store._data_reset()
