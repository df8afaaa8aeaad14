"""Order sync orchestration outside Temporal.

Per order: validate -> resolve customer -> synthesize sales order. Every step
awaits the previous one. Per-order failures come back as a failed
OrderSyncResult; process_order itself does not raise for them.

A failure after the customer was created leaves that customer in place. The
next attempt finds it again through the resolution chain.
"""

import asyncio
import time
import uuid
from typing import Iterable, Optional

from core.models import ExternalOrder, SyncSettings
from core.observability import (
    get_logger,
    record_order_failed,
    record_order_skipped,
    record_order_synced,
    with_correlation,
)
from customer_resolver import CustomerResolver
from order_sync.models import BatchSyncResult, OrderSyncResult
from order_sync.validator import ensure_valid
from order_synthesizer import OrderSynthesizer
from sync_status import SyncStatusChecker

logger = get_logger(__name__)


BATCH_DELAY_SECONDS = 0.5


class OrderSyncService:
    """Syncs storefront orders into NetSuite.

    Example:
        async with NetSuiteConnector(config) as connector:
            service = OrderSyncService(connector, SyncSettings.from_env())
            result = await service.process_order(order)
    """

    def __init__(self, connector, settings: Optional[SyncSettings] = None):
        self.connector = connector
        self.settings = settings or SyncSettings()
        self.customer_resolver = CustomerResolver(connector)
        self.synthesizer = OrderSynthesizer(connector, self.customer_resolver, self.settings)
        self.status_checker = SyncStatusChecker(connector)

    async def process_order(self, order: ExternalOrder) -> OrderSyncResult:
        """Validate, resolve the customer and create the sales order."""
        start_time = time.time()
        customer_id = None

        with with_correlation(order_id=order.order_id, stage="SYNC_ORDER"):
            try:
                ensure_valid(order)

                customer_id = await self.customer_resolver.resolve(order)
                logger.info(f"Order {order.order_id} resolved to customer {customer_id}")

                synthesis = await self.synthesizer.synthesize(order, customer_id)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                logger.error(f"Order {order.order_id} failed: {type(e).__name__}: {e}")
                record_order_failed(order.order_id, reason=type(e).__name__)
                return OrderSyncResult(
                    success=False,
                    order_id=order.order_id,
                    customer_id=customer_id,
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_ms=duration_ms,
                )

        duration_ms = (time.time() - start_time) * 1000
        record_order_synced(order.order_id, duration_ms)
        return OrderSyncResult(
            success=True,
            order_id=order.order_id,
            customer_id=synthesis.customer_id,
            sales_order_id=synthesis.sales_order_id,
            reconciliation=synthesis.reconciliation,
            duration_ms=duration_ms,
        )

    async def sync_if_needed(self, order: ExternalOrder) -> OrderSyncResult:
        """process_order, unless a sales order with this order's externalId exists."""
        status = await self.status_checker.check(order.order_id)
        if status.error:
            logger.warning(f"Sync status unknown for order {order.order_id} ({status.error}), syncing anyway")

        if status.synced:
            logger.info(f"Order {order.order_id} already synced as sales order {status.netsuite_id}, skipping")
            record_order_skipped(order.order_id)
            return OrderSyncResult(
                success=True,
                order_id=order.order_id,
                customer_id=status.customer_id,
                sales_order_id=status.netsuite_id,
                skipped=True,
            )

        return await self.process_order(order)

    async def process_batch(
        self,
        orders: Iterable[ExternalOrder],
        delay_seconds: float = BATCH_DELAY_SECONDS,
        skip_synced: bool = False,
    ) -> BatchSyncResult:
        """Sync orders one after another with a fixed delay between them."""
        batch = BatchSyncResult(batch_id=f"batch-{uuid.uuid4().hex[:12]}")
        orders = list(orders)

        with with_correlation(batch_id=batch.batch_id):
            logger.info(f"Starting batch of {len(orders)} orders")

            for index, order in enumerate(orders):
                if index > 0 and delay_seconds > 0:
                    await asyncio.sleep(delay_seconds)

                if skip_synced:
                    result = await self.sync_if_needed(order)
                else:
                    result = await self.process_order(order)
                batch.add(result)

            logger.info(
                f"Batch complete: {batch.succeeded} succeeded, "
                f"{batch.failed} failed, {batch.skipped} skipped"
            )

        return batch
