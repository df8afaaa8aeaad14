"""Order Synthesizer - Builds ERP sales orders from storefront orders.

This package turns a storefront order plus a resolved customer into one
sales order submission:
- Item resolution chain (exact -> partial -> create -> default item)
- Rates as unit price plus option price
- Optional tax and shipping lines, only for usable items
- Reconciliation of line totals against OrderAmount - SalesTax - ShippingCost

Usage:
    from order_synthesizer import OrderSynthesizer

    synthesizer = OrderSynthesizer(connector, customer_resolver, settings)
    result = await synthesizer.synthesize(order, customer_id)
"""

from order_synthesizer.models import (
    ItemMatchType,
    ReconciliationResult,
    ResolvedItem,
    SynthesisResult,
)
from order_synthesizer.items import ItemCatalog, ItemResolver, parse_item_id
from order_synthesizer.reconcile import (
    AMOUNT_TOLERANCE,
    amounts_match,
    item_total,
    reconcile_totals,
    target_subtotal,
    to_decimal,
)
from order_synthesizer.synthesizer import (
    OrderSynthesizer,
    SalesOrderCatalog,
    build_shipping_address,
    parse_order_date,
)

__all__ = [
    # Models
    "ItemMatchType",
    "ReconciliationResult",
    "ResolvedItem",
    "SynthesisResult",
    # Items
    "ItemCatalog",
    "ItemResolver",
    "parse_item_id",
    # Reconciliation
    "AMOUNT_TOLERANCE",
    "amounts_match",
    "item_total",
    "reconcile_totals",
    "target_subtotal",
    "to_decimal",
    # Synthesizer
    "OrderSynthesizer",
    "SalesOrderCatalog",
    "build_shipping_address",
    "parse_order_date",
]
