"""Business-rule errors raised while syncing an order.

Transport failures are NSApiError subclasses (connectors/netsuite/ns_client.py).
These are the errors the engine itself raises; all of them are surfaced to
the caller as a failed OrderSyncResult.
"""

from typing import List, Optional


class OrderSyncError(Exception):
    """Base class for order sync business-rule failures."""

    def __init__(self, message: str, order_id: Optional[str] = None):
        super().__init__(message)
        self.order_id = order_id


class OrderValidationError(OrderSyncError):
    """The storefront order is missing required data."""

    def __init__(self, problems: List[str], order_id: Optional[str] = None):
        super().__init__("Order validation failed: " + "; ".join(problems), order_id)
        self.problems = list(problems)


class CustomerResolutionError(OrderSyncError):
    """No ERP customer could be found or created for the order."""
    pass


class ItemResolutionError(OrderSyncError):
    """An order line could not be mapped to an ERP item."""
    pass


class SalesOrderError(OrderSyncError):
    """The sales order could not be built or submitted."""
    pass


class TotalMismatchError(SalesOrderError):
    """Line totals disagree with the order amount (only when configured to fail)."""
    pass
