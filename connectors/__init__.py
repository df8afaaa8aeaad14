"""ERP Connectors - Pluggable ERP system integrations.

This package contains the abstract ERP interface and the NetSuite
implementation used by the order sync engine.

Storefront order models are ERP-neutral. This package handles:
- ERP-specific authentication (request signing)
- Data transformation (drafts -> ERP record bodies)
- API communication
- Lookups by deterministic external id

Key Design Principle:
- Temporal workflows and API routes depend on the ERPConnector interface
- All methods return NORMALIZED types (CustomerRef, SalesOrderRef, etc.)
- No NetSuite-specific types should leak through the interface

To add a new ERP:
1. Create a new folder (e.g., acumatica/)
2. Implement ERPConnector interface
3. Register using @register_connector decorator
"""

from connectors.erp_base import (
    # Core interface
    ERPConnector,
    ERPConfig,
    ERPConnectionStatus,
    ERPEntityType,
    LineSource,

    # Normalized reference types (ERP-agnostic)
    CustomerRef,
    ItemRef,
    SalesOrderRef,
    CampaignRef,
    CreatedRecordRef,
    ConnectionTestResult,

    # Drafts
    AddressBookEntry,
    CustomerDraft,
    LineItemRequest,
    ShippingAddress,
    SalesOrderDraft,

    # Factory functions
    create_connector,
    register_connector,
    list_available_connectors,
)

__all__ = [
    # Core interface
    "ERPConnector",
    "ERPConfig",
    "ERPConnectionStatus",
    "ERPEntityType",
    "LineSource",

    # Normalized reference types
    "CustomerRef",
    "ItemRef",
    "SalesOrderRef",
    "CampaignRef",
    "CreatedRecordRef",
    "ConnectionTestResult",

    # Drafts
    "AddressBookEntry",
    "CustomerDraft",
    "LineItemRequest",
    "ShippingAddress",
    "SalesOrderDraft",

    # Factory
    "create_connector",
    "register_connector",
    "list_available_connectors",
]
