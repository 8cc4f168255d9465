"""Ledger port — abstract interface for the shipment ledger substrate.

The transition executor programs against this port; adapters are swapped via
configuration (``LEDGER_ADAPTER``). Every call takes an optional timeout in
seconds and raises ``GatewayTimeout`` when it is exceeded. Transport-level
failures surface as ``GatewayUnavailable``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from supplychain.shipment.lifecycle import Transition
from supplychain.shipment.shipment import Shipment


@dataclass
class ShipmentPage:
    """One page of a shipment listing. ``bookmark`` is None on the last page."""

    shipments: list[Shipment] = field(default_factory=list)
    bookmark: str | None = None

    @property
    def count(self) -> int:
        return len(self.shipments)


class LedgerGateway(ABC):
    """Abstract interface for ledger adapters."""

    @abstractmethod
    def read_shipment(self, shipment_id: str, timeout: float | None = None) -> Shipment:
        """Return the current shipment state.

        Raises:
            ShipmentNotFound: no shipment with this id exists.
        """
        ...

    @abstractmethod
    def create_shipment(self, shipment: Shipment, timeout: float | None = None) -> Shipment:
        """Register a new shipment at version 1.

        Raises:
            Conflict: a shipment with this id already exists.
        """
        ...

    @abstractmethod
    def append_and_advance(
        self,
        shipment_id: str,
        expected_version: int,
        transition: Transition,
        shipment: Shipment,
        timeout: float | None = None,
    ) -> Shipment:
        """Atomically append ``transition`` to the history and store the advanced ``shipment``.

        Succeeds only if the stored version still equals ``expected_version``;
        the stored version is then incremented by one.

        Raises:
            ShipmentNotFound: the shipment does not exist.
            Conflict: the stored version moved on since it was read.
        """
        ...

    @abstractmethod
    def list_shipments(
        self,
        owner: str | None = None,
        page_size: int = 10,
        bookmark: str | None = None,
        timeout: float | None = None,
    ) -> ShipmentPage:
        """Page through shipments, optionally only those held by ``owner``."""
        ...

    @abstractmethod
    def history(self, shipment_id: str, timeout: float | None = None) -> list[dict]:
        """Ordered ledger entries for one shipment, oldest first."""
        ...
