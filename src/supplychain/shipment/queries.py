"""Read side — single shipment, pages, history and dashboard counts.

Every read goes through the same bounded retry as the executor's reads.
"""

from protean.exceptions import ValidationError

from supplychain.config import MAX_PAGE_SIZE, LedgerSettings, default_page_size, ledger_settings
from supplychain.ledger import get_ledger
from supplychain.ledger.port import LedgerGateway, ShipmentPage
from supplychain.ledger.retry import with_retries
from supplychain.shipment.shipment import Shipment, summarize


class ShipmentQueries:
    def __init__(self, ledger: LedgerGateway | None = None, settings: LedgerSettings | None = None):
        self.ledger = ledger or get_ledger()
        self.settings = settings or ledger_settings()

    def _read(self, operation: str, call, **context):
        return with_retries(
            call, self.settings.max_retries, operation, backoff=self.settings.retry_backoff_seconds, **context
        )

    def get(self, shipment_id: str) -> Shipment:
        return self._read(
            "read_shipment",
            lambda: self.ledger.read_shipment(shipment_id, timeout=self.settings.timeout_seconds),
            shipment_id=shipment_id,
        )

    def page(self, owner: str | None = None, page_size: int | None = None, bookmark: str | None = None) -> ShipmentPage:
        if page_size is None:
            page_size = default_page_size()
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationError({"pageSize": [f"Page size must be between 1 and {MAX_PAGE_SIZE}"]})
        return self._read(
            "list_shipments",
            lambda: self.ledger.list_shipments(
                owner=owner, page_size=page_size, bookmark=bookmark, timeout=self.settings.timeout_seconds
            ),
            owner=owner,
        )

    def all(self, owner: str | None = None) -> list[Shipment]:
        """Every shipment (optionally only ``owner``'s), walking all pages."""
        shipments: list[Shipment] = []
        bookmark = None
        while True:
            page = self.page(owner=owner, page_size=MAX_PAGE_SIZE, bookmark=bookmark)
            shipments.extend(page.shipments)
            if not page.bookmark:
                return shipments
            bookmark = page.bookmark

    def history(self, shipment_id: str) -> list[dict]:
        return self._read(
            "history",
            lambda: self.ledger.history(shipment_id, timeout=self.settings.timeout_seconds),
            shipment_id=shipment_id,
        )

    def stats(self, owner: str | None = None) -> dict:
        return summarize(self.all(owner=owner))
