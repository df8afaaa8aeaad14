"""Connector endpoints.

Environment inspection and connection testing for NetSuite.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_connector
from connectors.erp_base import ERPConnector, list_available_connectors
from connectors.netsuite import get_environment_info


router = APIRouter()


class EnvironmentInfo(BaseModel):
    """Selected NetSuite environment, without secrets."""
    environment: str
    account_id: str
    base_url: str
    signature_method: str
    is_production: bool
    is_sandbox: bool
    available_environments: List[str]
    valid: bool
    issues: List[str]


class ConnectionTestResponse(BaseModel):
    """Result of a connection test."""
    success: bool
    message: str
    status_code: Optional[int] = None
    latency_ms: Optional[float] = None
    details: Dict[str, Any] = {}


@router.get("", response_model=List[str])
async def list_connectors() -> List[str]:
    """Registered connector types."""
    return list_available_connectors()


@router.get("/netsuite/environment", response_model=EnvironmentInfo)
async def netsuite_environment() -> EnvironmentInfo:
    """Selected environment and any credential problems."""
    return EnvironmentInfo(**get_environment_info())


@router.post("/netsuite/test", response_model=ConnectionTestResponse)
async def test_netsuite_connection(
    connector: ERPConnector = Depends(get_connector),
) -> ConnectionTestResponse:
    """Authenticated round trip to the NetSuite REST API."""
    result = await connector.test_connection()
    return ConnectionTestResponse(
        success=result.success,
        message="Connection successful" if result.success else (result.error or "Connection failed"),
        status_code=result.status_code,
        latency_ms=result.response_time_ms,
        details=result.details,
    )
