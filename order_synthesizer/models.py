"""Order Synthesizer Data Models.

- ItemMatchType: How an order line's SKU was mapped to an ERP item
- ResolvedItem: Result of the item resolution chain for one line
- ReconciliationResult: Line totals vs. the storefront's amounts
- SynthesisResult: The built draft and the submission outcome
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from connectors.erp_base import SalesOrderDraft


class ItemMatchType(str, Enum):
    """How the item was resolved."""
    EXACT = "exact"          # itemId IS "<sku>"
    PARTIAL = "partial"      # itemId CONTAIN "<sku>"
    CREATED = "created"      # New item created for the SKU
    DEFAULT = "default"      # Configured fallback item


class ResolvedItem(BaseModel):
    """Result of resolving one order line's SKU."""
    sku: str
    item_id: int = Field(..., gt=0)
    match_type: ItemMatchType
    steps: List[str] = Field(default_factory=list, description="Steps tried, in order")


class ReconciliationResult(BaseModel):
    """Comparison of the built lines with the storefront's totals.

    target_subtotal = OrderAmount - SalesTax - ShippingCost. OrderAmount is
    already net of discount, so the discount is reported, not applied.
    """
    item_total: Decimal
    target_subtotal: Decimal
    difference: Decimal
    matches: bool
    tolerance: Decimal
    discount: Decimal = Decimal("0")

    class Config:
        json_encoders = {
            Decimal: lambda v: float(v)
        }


class SynthesisResult(BaseModel):
    """Outcome of building and submitting one sales order.

    sales_order_id is None when NetSuite accepted the order without saying
    which id it got.
    """
    order_id: str
    customer_id: str
    external_id: str
    sales_order_id: Optional[str] = None
    draft: SalesOrderDraft
    items: List[ResolvedItem] = Field(default_factory=list)
    reconciliation: Optional[ReconciliationResult] = None
