"""Pre-flight checks for storefront orders.

Each check returns a list of problems; an empty list means the order may be
synced. Nothing here talks to the ERP.
"""

import re
from typing import List

from core.errors import OrderValidationError
from core.models import ExternalOrder, OrderItem, is_valid_email


TEST_ORDER_PREFIX = "TEST_"

_NUMERIC_ID = re.compile(r"^\d+$")


# =============================================================================
# Check Functions
# =============================================================================

def check_order_id(order: ExternalOrder) -> List[str]:
    """OrderID is present and either numeric or a TEST_ id."""
    order_id = order.order_id.strip()
    if not order_id:
        return ["Missing required field: OrderID"]
    if not _NUMERIC_ID.match(order_id) and not order_id.startswith(TEST_ORDER_PREFIX):
        return [f"OrderID must be numeric or a test ID starting with '{TEST_ORDER_PREFIX}'"]
    return []


def check_billing_contact(order: ExternalOrder) -> List[str]:
    problems = []
    if not order.billing_first_name.strip():
        problems.append("Missing required field: BillingFirstName")
    if not order.billing_last_name.strip():
        problems.append("Missing required field: BillingLastName")
    if order.billing_email.strip() and not is_valid_email(order.billing_email):
        problems.append(f"Invalid email format: {order.billing_email}")
    return problems


def check_item(item: OrderItem, index: int) -> List[str]:
    prefix = f"Item {index}: "
    problems = []
    if item.quantity <= 0:
        problems.append(prefix + "ItemQuantity must be a positive number")
    if item.unit_price < 0:
        problems.append(prefix + "ItemUnitPrice must not be negative")
    return problems


def check_items(order: ExternalOrder) -> List[str]:
    if not order.items:
        return ["Order must contain at least one item"]
    problems: List[str] = []
    for index, item in enumerate(order.items):
        problems.extend(check_item(item, index))
    return problems


# =============================================================================
# Entry Points
# =============================================================================

def validate_order(order: ExternalOrder) -> List[str]:
    """All problems with the order, in check order."""
    return check_order_id(order) + check_billing_contact(order) + check_items(order)


def ensure_valid(order: ExternalOrder) -> None:
    """Raise OrderValidationError when validate_order finds anything."""
    problems = validate_order(order)
    if problems:
        raise OrderValidationError(problems, order.order_id or None)
