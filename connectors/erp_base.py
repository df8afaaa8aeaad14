"""Abstract ERP Connector Interface.

This module defines the abstract interface that ERP connectors implement for
order synchronization. It is intentionally ERP-agnostic - no NetSuite record
paths, SuiteQL or field names here.

Connectors implement this interface to:
1. Connect and authenticate with their ERP
2. Read and create customers
3. Create, read and delete sales orders
4. Look up sales orders by the deterministic external id

Key Design Principles:
- All methods return NORMALIZED objects (CustomerRef, SalesOrderRef, etc.)
- Drafts (CustomerDraft, SalesOrderDraft) are built ERP-neutral and
  transformed to the ERP's wire format inside the connector
- ERP-specific implementations live in connector subfolders
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class ERPEntityType(str, Enum):
    """Record types the sync engine touches."""
    CUSTOMER = "CUSTOMER"
    SALES_ORDER = "SALES_ORDER"
    ITEM = "ITEM"
    CAMPAIGN = "CAMPAIGN"
    LEAD = "LEAD"


class ERPConnectionStatus(str, Enum):
    """Connection status to ERP system."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"


class LineSource(str, Enum):
    """Where a sales order line came from."""
    ORDER_ITEM = "order_item"
    TAX = "tax"
    SHIPPING = "shipping"


# =============================================================================
# Normalized Reference Models (ERP-Agnostic)
# =============================================================================

class CustomerRef(BaseModel):
    """Normalized customer reference.

    A person-type customer can be attached to a sales order. A company-type
    customer is only ever the parent of a person.
    """
    id: str = Field(..., description="ERP internal id")
    is_person: bool = Field(..., description="Person-type (True) or company-type (False)")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    parent_id: Optional[str] = Field(default=None, description="Parent company id for person records")

    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        if self.is_person:
            return f"{self.first_name or ''} {self.last_name or ''}".strip()
        return self.company_name or ""


class ItemRef(BaseModel):
    """Normalized item reference."""
    id: str = Field(..., description="ERP internal id")
    code: Optional[str] = Field(default=None, description="SKU / item name")
    name: Optional[str] = None
    is_active: bool = True
    is_sale_item: bool = True

    model_config = ConfigDict(frozen=True)

    @property
    def usable(self) -> bool:
        return self.is_active and self.is_sale_item


class SalesOrderRef(BaseModel):
    """Normalized sales order reference."""
    id: str = Field(..., description="ERP internal id")
    tran_id: Optional[str] = Field(default=None, description="Document number shown to users")
    external_id: Optional[str] = None
    status: Optional[str] = None
    tran_date: Optional[str] = None
    customer_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CampaignRef(BaseModel):
    """Normalized marketing campaign reference."""
    id: str
    title: Optional[str] = None
    campaign_code: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CreatedRecordRef(BaseModel):
    """Result of a create call.

    id is None when the ERP accepted the record but did not say which id it
    assigned; callers decide how to recover.
    """
    record_type: ERPEntityType
    id: Optional[str] = None
    status_code: int = 0
    location: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ConnectionTestResult(BaseModel):
    """Outcome of a connectivity check."""
    success: bool
    status_code: Optional[int] = None
    response_time_ms: Optional[float] = None
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Normalized Drafts (built by resolvers, transformed by connectors)
# =============================================================================

class AddressBookEntry(BaseModel):
    """One address block attached to a customer at creation time."""
    addressee: str = ""
    addr1: str = ""
    addr2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""
    default_billing: bool = False
    default_shipping: bool = False


class CustomerDraft(BaseModel):
    """A customer about to be created."""
    is_person: bool
    first_name: str = ""
    last_name: str = ""
    company_name: str = ""
    email: str = ""
    phone: str = ""
    parent_id: Optional[str] = None
    second_email: Optional[str] = None
    default_address: Optional[str] = None
    addresses: List[AddressBookEntry] = Field(default_factory=list)


class LineItemRequest(BaseModel):
    """A resolved sales order line."""
    item_id: int = Field(..., gt=0, description="ERP item id")
    quantity: Decimal
    rate: Decimal
    is_taxable: bool = False
    description: Optional[str] = None
    source: LineSource = LineSource.ORDER_ITEM
    source_sku: Optional[str] = None

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.rate


class ShippingAddress(BaseModel):
    """Ship-to block on a sales order."""
    addressee: str = ""
    phone: str = ""
    addr1: str = ""
    addr2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "US"


class SalesOrderDraft(BaseModel):
    """A sales order ready for submission. Built once per attempt."""
    customer_id: str
    subsidiary_id: int
    department_id: int
    location_id: Optional[int] = None
    is_taxable: bool = False
    tran_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    memo: str
    external_id: str = Field(..., description="Idempotency key in the ERP")
    other_ref_num: Optional[str] = None
    customer_comments: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    items: List[LineItemRequest] = Field(default_factory=list)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def item_total(self) -> Decimal:
        return sum((line.amount for line in self.items), Decimal("0"))


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ERPConfig:
    """Configuration for an ERP connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "netsuite"
    environment: str = "sandbox"            # "production", "sandbox"
    base_url: Optional[str] = None          # ERP API endpoint
    account_id: Optional[str] = None        # Account / tenant identifier

    # Authentication (connector-specific)
    auth_config: Dict[str, Any] = field(default_factory=dict)

    # ERP-specific settings
    custom_settings: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class ERPConnector(ABC):
    """Abstract base class for order-sync ERP connectors.

    Implementations:
    - connectors/netsuite/ns_connector.py
    """

    def __init__(self, config: ERPConfig):
        """Initialize connector with configuration."""
        self.config = config
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    # =========================================================================
    # Connection Management
    # =========================================================================

    @abstractmethod
    async def connect(self) -> bool:
        """Establish connection to the ERP system."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the ERP system."""

    @abstractmethod
    async def test_connection(self) -> ConnectionTestResult:
        """Probe the ERP with a cheap authenticated read."""

    @property
    def connection_status(self) -> ERPConnectionStatus:
        """Get current connection status."""
        return self._connection_status

    # =========================================================================
    # Customers
    # =========================================================================

    @abstractmethod
    async def get_customer(self, customer_id: str) -> Optional[CustomerRef]:
        """Get a customer by id, or None if it does not exist."""

    @abstractmethod
    async def create_customer(self, draft: CustomerDraft) -> CreatedRecordRef:
        """Create a customer. The returned id may be None (see CreatedRecordRef)."""

    # =========================================================================
    # Sales Orders
    # =========================================================================

    @abstractmethod
    async def create_sales_order(self, draft: SalesOrderDraft) -> CreatedRecordRef:
        """Submit a sales order."""

    @abstractmethod
    async def get_sales_order(self, sales_order_id: str) -> Optional[SalesOrderRef]:
        """Get a sales order by id, or None if it does not exist."""

    @abstractmethod
    async def delete_sales_order(self, sales_order_id: str) -> bool:
        """Delete a sales order. Returns True when the ERP confirms."""

    @abstractmethod
    async def find_sales_orders_by_external_ids(self, external_ids: List[str]) -> List[SalesOrderRef]:
        """Batch lookup of sales orders by external id (one query)."""

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    def get_connector_name(self) -> str:
        """Get the name of this connector."""
        return self.config.connector_type

    def get_environment(self) -> str:
        """Get the environment (production/sandbox)."""
        return self.config.environment


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: ERPConfig) -> ERPConnector:
    """Create a connector instance from configuration.

    Args:
        config: ERPConfig with connector_type specified

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
