"""
Order Sync Activities

Temporal activities wrapping the sync engine, one NetSuite session each:
- check_sync_status: Batch lookup of already-synced orders (read-only)
- validate_order: Pre-flight checks, no ERP calls
- resolve_customer: Find or create the ERP customer (creates records)
- create_sales_order: Build and submit the sales order (creates records)

Orders travel as raw storefront dicts (3DCart field names) and are parsed
into ExternalOrder inside each activity.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from temporalio import activity

from connectors.netsuite import connector_from_env
from core.errors import OrderValidationError
from core.models import ExternalOrder, SyncSettings
from core.observability import with_correlation
from customer_resolver import CustomerResolver
from order_sync.validator import ensure_valid
from order_synthesizer import OrderSynthesizer
from sync_status import SyncStatusChecker


# =============================================================================
# Activity Input/Output Models
# =============================================================================

@dataclass
class CheckSyncStatusInput:
    """Input for check_sync_status activity"""
    order_ids: List[str]


@dataclass
class CheckSyncStatusOutput:
    """Output from check_sync_status activity"""
    statuses: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def synced_ids(self) -> List[str]:
        return [order_id for order_id, status in self.statuses.items() if status.get("synced")]


@dataclass
class ValidateOrderInput:
    """Input for validate_order activity"""
    order: Dict[str, Any]


@dataclass
class ValidateOrderOutput:
    """Output from validate_order activity"""
    order_id: str
    is_dropship: bool


@dataclass
class ResolveCustomerInput:
    """Input for resolve_customer activity"""
    order: Dict[str, Any]


@dataclass
class ResolveCustomerOutput:
    """Output from resolve_customer activity"""
    order_id: str
    customer_id: str
    strategy: str
    created: bool
    person_enforced: bool
    steps: List[str] = field(default_factory=list)


@dataclass
class CreateSalesOrderInput:
    """Input for create_sales_order activity"""
    order: Dict[str, Any]
    customer_id: str


@dataclass
class CreateSalesOrderOutput:
    """Output from create_sales_order activity"""
    order_id: str
    customer_id: str
    external_id: str
    sales_order_id: Optional[str] = None
    totals_match: Optional[bool] = None
    item_total: Optional[str] = None
    target_subtotal: Optional[str] = None


# =============================================================================
# Helper Functions
# =============================================================================

def parse_order(data: Dict[str, Any]) -> ExternalOrder:
    """Storefront order dict -> ExternalOrder.

    Raises OrderValidationError for payloads that do not parse.
    """
    try:
        return ExternalOrder.model_validate(data)
    except ValidationError as e:
        problems = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise OrderValidationError(problems, str(data.get("OrderID", "")) or None) from e


# =============================================================================
# check_sync_status Activity
# =============================================================================

@activity.defn
async def check_sync_status(input: CheckSyncStatusInput) -> CheckSyncStatusOutput:
    """Which of the given orders already exist as sales orders."""
    activity.logger.info(f"Checking sync status for {len(input.order_ids)} orders")

    async with connector_from_env() as connector:
        statuses = await SyncStatusChecker(connector).check_batch(input.order_ids)

    return CheckSyncStatusOutput(
        statuses={order_id: status.model_dump() for order_id, status in statuses.items()},
    )


# =============================================================================
# validate_order Activity
# =============================================================================

@activity.defn
async def validate_order(input: ValidateOrderInput) -> ValidateOrderOutput:
    """
    Pre-flight checks.

    Raises OrderValidationError, which the workflow does not retry.
    """
    order = parse_order(input.order)
    with with_correlation(order_id=order.order_id, activity_name="validate_order"):
        ensure_valid(order)
    return ValidateOrderOutput(order_id=order.order_id, is_dropship=order.is_dropship)


# =============================================================================
# resolve_customer Activity
# =============================================================================

@activity.defn
async def resolve_customer(input: ResolveCustomerInput) -> ResolveCustomerOutput:
    """Find or create the ERP customer for an order."""
    order = parse_order(input.order)
    activity.logger.info(f"Resolving customer for order {order.order_id}")

    with with_correlation(order_id=order.order_id, activity_name="resolve_customer"):
        async with connector_from_env() as connector:
            resolution = await CustomerResolver(connector).resolve_with_trace(order)

    activity.logger.info(
        f"Order {order.order_id} -> customer {resolution.customer_id} "
        f"({resolution.strategy.value}, created={resolution.created})"
    )

    return ResolveCustomerOutput(
        order_id=order.order_id,
        customer_id=resolution.customer_id,
        strategy=resolution.strategy.value,
        created=resolution.created,
        person_enforced=resolution.person_enforced,
        steps=resolution.step_names,
    )


# =============================================================================
# create_sales_order Activity
# =============================================================================

@activity.defn
async def create_sales_order(input: CreateSalesOrderInput) -> CreateSalesOrderOutput:
    """Build and submit the sales order for an already-resolved customer."""
    order = parse_order(input.order)
    activity.logger.info(f"Creating sales order for order {order.order_id}, customer {input.customer_id}")

    settings = SyncSettings.from_env()
    with with_correlation(order_id=order.order_id, activity_name="create_sales_order"):
        async with connector_from_env(settings=settings) as connector:
            synthesizer = OrderSynthesizer(connector, CustomerResolver(connector), settings)
            result = await synthesizer.synthesize(order, input.customer_id)

    reconciliation = result.reconciliation
    return CreateSalesOrderOutput(
        order_id=order.order_id,
        customer_id=result.customer_id,
        external_id=result.external_id,
        sales_order_id=result.sales_order_id,
        totals_match=reconciliation.matches if reconciliation else None,
        item_total=str(reconciliation.item_total) if reconciliation else None,
        target_subtotal=str(reconciliation.target_subtotal) if reconciliation else None,
    )
