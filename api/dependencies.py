"""FastAPI dependencies.

One NetSuite session per request, opened and closed around the handler.
"""

from typing import AsyncIterator

from fastapi import Depends

from connectors.erp_base import ERPConnector
from connectors.netsuite import connector_from_env
from core.models import SyncSettings
from order_sync import OrderSyncService
from sync_status import SyncStatusChecker


def get_settings() -> SyncSettings:
    return SyncSettings.from_env()


async def get_connector(settings: SyncSettings = Depends(get_settings)) -> AsyncIterator[ERPConnector]:
    async with connector_from_env(settings=settings) as connector:
        yield connector


def get_sync_service(
    connector: ERPConnector = Depends(get_connector),
    settings: SyncSettings = Depends(get_settings),
) -> OrderSyncService:
    return OrderSyncService(connector, settings)


def get_status_checker(connector: ERPConnector = Depends(get_connector)) -> SyncStatusChecker:
    return SyncStatusChecker(connector)
