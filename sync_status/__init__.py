"""Sync Status - Which storefront orders already exist as ERP sales orders."""

from sync_status.models import SyncStatusEntry
from sync_status.checker import SalesOrderLookup, SyncStatusChecker

__all__ = [
    "SyncStatusEntry",
    "SalesOrderLookup",
    "SyncStatusChecker",
]
