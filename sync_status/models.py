"""Sync status models."""

from typing import Optional

from pydantic import BaseModel


class SyncStatusEntry(BaseModel):
    """Synchronization state of one storefront order, recomputed from the ERP."""
    synced: bool = False
    netsuite_id: Optional[str] = None
    tranid: Optional[str] = None
    status: Optional[str] = None
    sync_date: Optional[str] = None
    customer_id: Optional[str] = None
    error: Optional[str] = None
