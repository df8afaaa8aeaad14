"""Sync status checks.

The ERP is the only record of what has been synced: an order is synced when
a sales order carrying its external id (3DCART_<OrderID>) exists. Nothing is
cached locally.
"""

from typing import Dict, List, Optional, Protocol

from connectors.erp_base import SalesOrderRef
from core.models import external_id_for
from core.observability import get_logger
from sync_status.models import SyncStatusEntry

logger = get_logger(__name__)


class SalesOrderLookup(Protocol):
    async def find_sales_orders_by_external_ids(self, external_ids: List[str]) -> List[SalesOrderRef]:
        ...


class SyncStatusChecker:
    """Batch sync-status lookup with one query per call.

    Example:
        checker = SyncStatusChecker(connector)
        statuses = await checker.check_batch(["5001", "5002"])
        if statuses["5001"].synced:
            print(statuses["5001"].netsuite_id)
    """

    def __init__(self, lookup: SalesOrderLookup):
        self.lookup = lookup

    async def check_batch(self, order_ids: List[str]) -> Dict[str, SyncStatusEntry]:
        """Status for every requested order id.

        A failed lookup marks every id unsynced with the error attached.
        """
        order_ids = [str(order_id) for order_id in order_ids]
        if not order_ids:
            return {}

        by_external_id = {external_id_for(order_id): order_id for order_id in order_ids}

        try:
            sales_orders = await self.lookup.find_sales_orders_by_external_ids(list(by_external_id))
        except Exception as e:
            logger.error(f"Sync status lookup failed for {len(order_ids)} orders: {e}")
            return {order_id: SyncStatusEntry(synced=False, error=str(e)) for order_id in order_ids}

        statuses: Dict[str, SyncStatusEntry] = {}
        for sales_order in sales_orders:
            order_id = by_external_id.get(sales_order.external_id or "")
            if order_id is None or order_id in statuses:
                continue
            statuses[order_id] = SyncStatusEntry(
                synced=True,
                netsuite_id=sales_order.id,
                tranid=sales_order.tran_id,
                status=sales_order.status,
                sync_date=sales_order.tran_date,
                customer_id=sales_order.customer_id,
            )

        for order_id in order_ids:
            statuses.setdefault(order_id, SyncStatusEntry(synced=False))

        logger.info(f"{sum(1 for s in statuses.values() if s.synced)}/{len(order_ids)} orders already synced")
        return statuses

    async def check(self, order_id: str) -> SyncStatusEntry:
        """Status of a single order."""
        statuses = await self.check_batch([order_id])
        return statuses[str(order_id)]
