"""Activity definitions module."""

from activities.sync import (
    check_sync_status,
    validate_order,
    resolve_customer,
    create_sales_order,
    CheckSyncStatusInput,
    CheckSyncStatusOutput,
    ValidateOrderInput,
    ValidateOrderOutput,
    ResolveCustomerInput,
    ResolveCustomerOutput,
    CreateSalesOrderInput,
    CreateSalesOrderOutput,
)

__all__ = [
    "check_sync_status",
    "validate_order",
    "resolve_customer",
    "create_sales_order",
    "CheckSyncStatusInput",
    "CheckSyncStatusOutput",
    "ValidateOrderInput",
    "ValidateOrderOutput",
    "ResolveCustomerInput",
    "ResolveCustomerOutput",
    "CreateSalesOrderInput",
    "CreateSalesOrderOutput",
]
