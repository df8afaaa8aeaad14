"""Total reconciliation for synthesized sales orders.

Compares the sum of the order-item lines with what the storefront says the
merchandise subtotal is. A mismatch is reported; whether it blocks the order
is the caller's decision (SyncSettings.fail_on_total_mismatch).
"""

from decimal import Decimal
from typing import Iterable, Optional

from connectors.erp_base import LineItemRequest, LineSource
from core.models import ExternalOrder
from order_synthesizer.models import ReconciliationResult


AMOUNT_TOLERANCE = Decimal("0.01")


# =============================================================================
# Utility Functions
# =============================================================================

def to_decimal(value) -> Optional[Decimal]:
    """Convert value to Decimal."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def amounts_match(
    a: Optional[Decimal],
    b: Optional[Decimal],
    tolerance: Decimal = AMOUNT_TOLERANCE,
) -> bool:
    """Check if two amounts match within tolerance."""
    if a is None or b is None:
        return False
    return abs(a - b) <= tolerance


def target_subtotal(order: ExternalOrder) -> Decimal:
    """OrderAmount (net of discount) minus tax and shipping."""
    return order.order_amount - order.sales_tax - order.shipping_cost


def item_total(lines: Iterable[LineItemRequest]) -> Decimal:
    """Sum of quantity x rate over order-item lines (tax/shipping lines excluded)."""
    total = Decimal("0")
    for line in lines:
        if line.source == LineSource.ORDER_ITEM:
            total += line.amount
    return total


# =============================================================================
# Reconciliation
# =============================================================================

def reconcile_totals(
    order: ExternalOrder,
    lines: Iterable[LineItemRequest],
    tolerance: Decimal = AMOUNT_TOLERANCE,
) -> ReconciliationResult:
    """Compare line totals with the order's target subtotal."""
    tolerance = to_decimal(tolerance)
    total = item_total(lines)
    target = target_subtotal(order)
    return ReconciliationResult(
        item_total=total,
        target_subtotal=target,
        difference=total - target,
        matches=amounts_match(total, target, tolerance),
        tolerance=tolerance,
        discount=order.order_discount,
    )
