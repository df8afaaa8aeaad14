"""Order sync endpoints.

Synchronous, in-request syncs through OrderSyncService. Large batches belong
on the Temporal workflow (scripts/start_order_sync.py) instead.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.dependencies import get_status_checker, get_sync_service
from core.models import ExternalOrder
from order_sync import BATCH_DELAY_SECONDS, BatchSyncResult, OrderSyncResult, OrderSyncService
from sync_status import SyncStatusChecker, SyncStatusEntry


router = APIRouter()


class SyncBatchRequest(BaseModel):
    """Orders to sync in one request, in order."""
    orders: List[ExternalOrder] = Field(..., min_length=1)
    delay_seconds: float = Field(default=BATCH_DELAY_SECONDS, ge=0, le=10)
    skip_synced: bool = False


class SyncStatusRequest(BaseModel):
    """Order ids to look up."""
    order_ids: List[str] = Field(default_factory=list)


class SyncStatusResponse(BaseModel):
    """Per-order sync status."""
    statuses: Dict[str, SyncStatusEntry]
    synced_count: int
    total: int


@router.post("/sync", response_model=OrderSyncResult)
async def sync_order(
    order: ExternalOrder,
    skip_synced: bool = False,
    service: OrderSyncService = Depends(get_sync_service),
) -> OrderSyncResult:
    """Sync one storefront order (3DCart field names).

    Per-order failures come back as success=false with the error; the
    response status stays 200.
    """
    if skip_synced:
        return await service.sync_if_needed(order)
    return await service.process_order(order)


@router.post("/sync-batch", response_model=BatchSyncResult)
async def sync_batch(
    request: SyncBatchRequest,
    service: OrderSyncService = Depends(get_sync_service),
) -> BatchSyncResult:
    """Sync orders sequentially with a delay between them."""
    return await service.process_batch(
        request.orders,
        delay_seconds=request.delay_seconds,
        skip_synced=request.skip_synced,
    )


@router.post("/sync-status", response_model=SyncStatusResponse)
async def sync_status(
    request: SyncStatusRequest,
    checker: SyncStatusChecker = Depends(get_status_checker),
) -> SyncStatusResponse:
    """Which orders already exist as NetSuite sales orders."""
    statuses = await checker.check_batch(request.order_ids)
    return SyncStatusResponse(
        statuses=statuses,
        synced_count=sum(1 for status in statuses.values() if status.synced),
        total=len(statuses),
    )
