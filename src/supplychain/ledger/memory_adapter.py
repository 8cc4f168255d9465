"""In-memory ledger — thread-safe, hash-chained shipment ledger for tests and development.

Stores one wire-format snapshot per shipment plus an append-only history of
entries. Each entry carries the SHA-256 hash of its content chained to the
previous entry's hash (the first entry chains to ``GENESIS_HASH``), so any
rewrite of history is detectable with ``verify_chain``.

Writes to one shipment are serialized by a per-shipment lock, acquired within
the caller's timeout. Different shipments proceed independently.

Fault injection for tests is available through ``configure()``.
"""

import threading
import time
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError

from supplychain.ledger.codec import (
    GENESIS_HASH,
    chain_hash,
    encode_record,
    event_names,
    shipment_from_dict,
    shipment_to_dict,
    transition_to_dict,
)
from supplychain.ledger.port import LedgerGateway, ShipmentPage
from supplychain.shipment.errors import Conflict, GatewayTimeout, GatewayUnavailable, ShipmentNotFound
from supplychain.shipment.lifecycle import ShipmentStatus, Transition
from supplychain.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """One immutable line of a shipment's history."""

    sequence: int
    content: dict
    previous_hash: str
    hash: str

    def to_dict(self) -> dict:
        return {"sequence": self.sequence, **self.content, "previousHash": self.previous_hash, "hash": self.hash}


@dataclass
class _Faults:
    unavailable_calls: int = 0
    timeout_reads: int = 0
    timeout_after_write: int = 0
    latency: float = 0.0


class InMemoryLedger(LedgerGateway):
    """Ledger held in process memory. Succeeds by default."""

    def __init__(self):
        self._registry_lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._snapshots: dict[str, dict] = {}
        self._entries: dict[str, list[LedgerEntry]] = {}
        self._order: list[str] = []
        self._faults = _Faults()
        self._write_count = 0

    def configure(
        self,
        unavailable_calls: int = 0,
        timeout_reads: int = 0,
        timeout_after_write: int = 0,
        latency: float = 0.0,
    ):
        """Configure injected faults for testing.

        Args:
            unavailable_calls: the next N calls raise GatewayUnavailable.
            timeout_reads: the next N reads raise GatewayTimeout.
            timeout_after_write: the next N appends are stored, then raise
                GatewayTimeout as if the acknowledgement was lost.
            latency: seconds to sleep inside every write while holding the lock.
        """
        self._faults = _Faults(
            unavailable_calls=unavailable_calls,
            timeout_reads=timeout_reads,
            timeout_after_write=timeout_after_write,
            latency=latency,
        )

    @property
    def write_count(self) -> int:
        """Number of successful writes (creations and appends) since construction."""
        return self._write_count

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _maybe_unavailable(self):
        if self._faults.unavailable_calls > 0:
            self._faults.unavailable_calls -= 1
            raise GatewayUnavailable("Ledger is unavailable")

    def _lock_for(self, shipment_id: str) -> threading.Lock:
        with self._registry_lock:
            return self._locks.setdefault(shipment_id, threading.Lock())

    def _acquire(self, lock: threading.Lock, shipment_id: str, timeout: float | None):
        acquired = lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise GatewayTimeout(
                f"Timed out waiting for the ledger lock on shipment {shipment_id}",
                shipment_id=shipment_id,
            )

    def _append_entry(self, shipment_id: str, content: dict) -> LedgerEntry:
        entries = self._entries.setdefault(shipment_id, [])
        previous_hash = entries[-1].hash if entries else GENESIS_HASH
        entry = LedgerEntry(
            sequence=len(entries) + 1,
            content=content,
            previous_hash=previous_hash,
            hash=chain_hash(previous_hash, content),
        )
        entries.append(entry)
        return entry

    # -------------------------------------------------------------------
    # LedgerGateway
    # -------------------------------------------------------------------
    def read_shipment(self, shipment_id: str, timeout: float | None = None) -> Shipment:
        self._maybe_unavailable()
        if self._faults.timeout_reads > 0:
            self._faults.timeout_reads -= 1
            raise GatewayTimeout(f"Timed out reading shipment {shipment_id}", shipment_id=shipment_id)

        snapshot = self._snapshots.get(shipment_id)
        if snapshot is None:
            raise ShipmentNotFound(f"Shipment {shipment_id} does not exist", shipment_id=shipment_id)
        return shipment_from_dict(snapshot)

    def create_shipment(self, shipment: Shipment, timeout: float | None = None) -> Shipment:
        self._maybe_unavailable()
        shipment_id = shipment.shipment_id
        lock = self._lock_for(shipment_id)
        self._acquire(lock, shipment_id, timeout)
        try:
            if shipment_id in self._snapshots:
                raise Conflict(f"Shipment {shipment_id} already exists", shipment_id=shipment_id)
            time.sleep(self._faults.latency)

            snapshot = shipment_to_dict(shipment)
            snapshot["version"] = 1
            self._append_entry(
                shipment_id,
                {
                    "transitionId": None,
                    "action": "create",
                    "actorAlias": shipment.created_by,
                    "actorRole": "farmer",
                    "fromStatus": None,
                    "toStatus": ShipmentStatus.CREATED.value,
                    "newOwner": shipment.current_owner_alias,
                    "recordField": "farmerData",
                    "record": encode_record(shipment.farmer_data),
                    "occurredAt": snapshot["createdAt"],
                    "events": event_names(shipment),
                    "version": 1,
                },
            )
            self._snapshots[shipment_id] = snapshot
            with self._registry_lock:
                self._order.append(shipment_id)
            self._write_count += 1
        finally:
            lock.release()

        return shipment_from_dict(snapshot)

    def append_and_advance(
        self,
        shipment_id: str,
        expected_version: int,
        transition: Transition,
        shipment: Shipment,
        timeout: float | None = None,
    ) -> Shipment:
        self._maybe_unavailable()
        lock = self._lock_for(shipment_id)
        self._acquire(lock, shipment_id, timeout)
        try:
            stored = self._snapshots.get(shipment_id)
            if stored is None:
                raise ShipmentNotFound(f"Shipment {shipment_id} does not exist", shipment_id=shipment_id)
            if stored["version"] != expected_version:
                logger.info(
                    "ledger_conflict",
                    shipment_id=shipment_id,
                    expected_version=expected_version,
                    actual_version=stored["version"],
                )
                raise Conflict(
                    f"Shipment {shipment_id} was modified concurrently",
                    shipment_id=shipment_id,
                    expected_version=expected_version,
                    actual_version=stored["version"],
                )
            time.sleep(self._faults.latency)

            snapshot = shipment_to_dict(shipment)
            snapshot["version"] = expected_version + 1
            self._append_entry(
                shipment_id,
                {
                    **transition_to_dict(transition),
                    "events": event_names(shipment),
                    "version": snapshot["version"],
                },
            )
            self._snapshots[shipment_id] = snapshot
            self._write_count += 1
        finally:
            lock.release()

        if self._faults.timeout_after_write > 0:
            self._faults.timeout_after_write -= 1
            raise GatewayTimeout(
                f"Timed out waiting for the ledger to acknowledge shipment {shipment_id}",
                shipment_id=shipment_id,
            )
        return shipment_from_dict(snapshot)

    def list_shipments(
        self,
        owner: str | None = None,
        page_size: int = 10,
        bookmark: str | None = None,
        timeout: float | None = None,
    ) -> ShipmentPage:
        self._maybe_unavailable()
        with self._registry_lock:
            ids = list(self._order)

        # Bookmark is the last shipment id served; resume after it in creation order
        if bookmark:
            try:
                ids = ids[ids.index(bookmark) + 1 :]
            except ValueError:
                raise ValidationError({"bookmark": ["Invalid bookmark"]}) from None

        snapshots = [self._snapshots[shipment_id] for shipment_id in ids]
        if owner is not None:
            snapshots = [s for s in snapshots if s["currentOwnerAlias"] == owner]

        page = snapshots[:page_size]
        next_bookmark = page[-1]["shipmentId"] if len(snapshots) > page_size else None
        return ShipmentPage(shipments=[shipment_from_dict(s) for s in page], bookmark=next_bookmark)

    def history(self, shipment_id: str, timeout: float | None = None) -> list[dict]:
        self._maybe_unavailable()
        if shipment_id not in self._snapshots:
            raise ShipmentNotFound(f"Shipment {shipment_id} does not exist", shipment_id=shipment_id)
        return [entry.to_dict() for entry in self._entries.get(shipment_id, [])]

    def verify_chain(self, shipment_id: str) -> bool:
        """Recompute every hash in the shipment's history. False if anything was rewritten."""
        previous_hash = GENESIS_HASH
        for sequence, entry in enumerate(self._entries.get(shipment_id, []), start=1):
            if entry.sequence != sequence or entry.previous_hash != previous_hash:
                return False
            if entry.hash != chain_hash(previous_hash, entry.content):
                return False
            previous_hash = entry.hash
        return True

    def snapshot(self, shipment_id: str) -> dict | None:
        """Raw stored wire dict, for inspection in tests."""
        return self._snapshots.get(shipment_id)
