"""Order sync result models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from order_synthesizer.models import ReconciliationResult


class OrderSyncResult(BaseModel):
    """Outcome of syncing one storefront order.

    A skipped order was already present in the ERP; sales_order_id is then
    the existing one.
    """
    success: bool
    order_id: str
    customer_id: Optional[str] = None
    sales_order_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    skipped: bool = False
    reconciliation: Optional[ReconciliationResult] = None
    duration_ms: float = 0.0


class BatchSyncResult(BaseModel):
    """Outcome of a sequential batch."""
    batch_id: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    results: List[OrderSyncResult] = Field(default_factory=list)

    def add(self, result: OrderSyncResult) -> None:
        self.results.append(result)
        self.total += 1
        if result.skipped:
            self.skipped += 1
        elif result.success:
            self.succeeded += 1
        else:
            self.failed += 1
