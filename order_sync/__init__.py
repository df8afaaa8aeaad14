"""Order Sync - Validation and orchestration of storefront order syncs.

Usage:
    from order_sync import OrderSyncService

    service = OrderSyncService(connector, settings)
    batch = await service.process_batch(orders)
"""

from order_sync.models import BatchSyncResult, OrderSyncResult
from order_sync.validator import (
    TEST_ORDER_PREFIX,
    check_billing_contact,
    check_item,
    check_items,
    check_order_id,
    ensure_valid,
    validate_order,
)
from order_sync.service import BATCH_DELAY_SECONDS, OrderSyncService

__all__ = [
    # Models
    "BatchSyncResult",
    "OrderSyncResult",
    # Validation
    "TEST_ORDER_PREFIX",
    "check_billing_contact",
    "check_item",
    "check_items",
    "check_order_id",
    "ensure_valid",
    "validate_order",
    # Service
    "BATCH_DELAY_SECONDS",
    "OrderSyncService",
]
