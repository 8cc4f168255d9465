"""Supply-chain bounded context — shipment custody and traceability.

Tracks a product lot from the farm through certification, processing,
distribution and retail. Every custody change is an append to the shipment
ledger; the aggregate itself is never deleted.
"""

from protean.domain import Domain

from supplychain.utils.logging import configure_logging

configure_logging()

supplychain = Domain(name="supplychain")
