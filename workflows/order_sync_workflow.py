"""
Order Sync Workflow

Batch workflow that syncs storefront orders into NetSuite one at a time:
CHECK_SYNC_STATUS → (per order) VALIDATE → RESOLVE_CUSTOMER → CREATE_SALES_ORDER

Orders are processed sequentially with a fixed delay between them. Activities
that create ERP records run exactly once; a retry could create a duplicate
customer. Read-only activities may retry.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

with workflow.unsafe.imports_passed_through():
    from activities.sync import (
        check_sync_status,
        validate_order,
        resolve_customer,
        create_sales_order,
        CheckSyncStatusInput,
        ValidateOrderInput,
        ResolveCustomerInput,
        CreateSalesOrderInput,
    )


TASK_QUEUE = "order-sync"
BATCH_DELAY_SECONDS = 0.5

NON_RETRYABLE_ERRORS = ["OrderValidationError", "NSValidationError", "NSAuthenticationError"]


# =============================================================================
# Workflow Input/Output
# =============================================================================

class OrderStage(str, Enum):
    """Per-order processing stages"""
    VALIDATE = "VALIDATE"
    RESOLVE_CUSTOMER = "RESOLVE_CUSTOMER"
    CREATE_SALES_ORDER = "CREATE_SALES_ORDER"
    COMPLETED = "COMPLETED"


@dataclass
class OrderSyncWorkflowInput:
    """Input for order sync workflow"""
    orders: List[Dict[str, Any]]
    skip_synced: bool = True
    delay_seconds: float = BATCH_DELAY_SECONDS


@dataclass
class OrderOutcome:
    """Result for one order in the batch"""
    order_id: str
    success: bool
    stage: str
    skipped: bool = False
    customer_id: Optional[str] = None
    sales_order_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None


@dataclass
class OrderSyncWorkflowOutput:
    """Output from order sync workflow"""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: List[OrderOutcome] = field(default_factory=list)


def _failure(error: Exception) -> ApplicationError:
    """Unwrap the activity's own exception from an ActivityError."""
    cause = error.cause if isinstance(error, ActivityError) else error
    if isinstance(cause, ApplicationError):
        return cause
    return ApplicationError(str(cause), type=type(cause).__name__)


# =============================================================================
# Order Sync Workflow
# =============================================================================

@workflow.defn
class OrderSyncWorkflow:
    """
    Sequential batch sync of storefront orders.

    A failed order does not stop the batch; its error is recorded on its
    outcome and the next order starts after the usual delay.
    """

    def __init__(self):
        self.completed = 0
        self.total = 0

    @workflow.query
    def progress(self) -> Dict[str, int]:
        return {"completed": self.completed, "total": self.total}

    @workflow.run
    async def run(self, input: OrderSyncWorkflowInput) -> OrderSyncWorkflowOutput:
        """Execute the batch."""
        self.total = len(input.orders)
        result = OrderSyncWorkflowOutput(total=self.total)
        workflow.logger.info(f"Starting order sync workflow for {self.total} orders")

        # Read-only: safe to retry
        read_activity_options = {
            "start_to_close_timeout": timedelta(minutes=1),
            "retry_policy": RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=2),
                backoff_coefficient=2.0,
                non_retryable_error_types=NON_RETRYABLE_ERRORS,
            ),
        }

        # Creates ERP records: run once
        create_activity_options = {
            "start_to_close_timeout": timedelta(minutes=2),
            "retry_policy": RetryPolicy(maximum_attempts=1),
        }

        synced: Dict[str, Dict[str, Any]] = {}
        if input.skip_synced and input.orders:
            order_ids = [str(order.get("OrderID", "")) for order in input.orders]
            status = await workflow.execute_activity(
                check_sync_status,
                CheckSyncStatusInput(order_ids=[order_id for order_id in order_ids if order_id]),
                **read_activity_options,
            )
            synced = {order_id: s for order_id, s in status.statuses.items() if s.get("synced")}

        for index, order in enumerate(input.orders):
            if index > 0 and input.delay_seconds > 0:
                await workflow.sleep(input.delay_seconds)

            order_id = str(order.get("OrderID", ""))
            if order_id in synced:
                workflow.logger.info(f"Order {order_id} already synced, skipping")
                outcome = OrderOutcome(
                    order_id=order_id,
                    success=True,
                    stage=OrderStage.COMPLETED.value,
                    skipped=True,
                    customer_id=synced[order_id].get("customer_id"),
                    sales_order_id=synced[order_id].get("netsuite_id"),
                )
            else:
                outcome = await self._sync_order(order_id, order, read_activity_options, create_activity_options)

            result.outcomes.append(outcome)
            if outcome.skipped:
                result.skipped += 1
            elif outcome.success:
                result.succeeded += 1
            else:
                result.failed += 1
            self.completed += 1

        workflow.logger.info(
            f"Order sync workflow completed: {result.succeeded} succeeded, "
            f"{result.failed} failed, {result.skipped} skipped"
        )
        return result

    async def _sync_order(
        self,
        order_id: str,
        order: Dict[str, Any],
        read_activity_options: Dict,
        create_activity_options: Dict,
    ) -> OrderOutcome:
        outcome = OrderOutcome(order_id=order_id, success=False, stage=OrderStage.VALIDATE.value)

        try:
            await workflow.execute_activity(
                validate_order,
                ValidateOrderInput(order=order),
                **read_activity_options,
            )

            outcome.stage = OrderStage.RESOLVE_CUSTOMER.value
            customer = await workflow.execute_activity(
                resolve_customer,
                ResolveCustomerInput(order=order),
                **create_activity_options,
            )
            outcome.customer_id = customer.customer_id

            outcome.stage = OrderStage.CREATE_SALES_ORDER.value
            sales_order = await workflow.execute_activity(
                create_sales_order,
                CreateSalesOrderInput(order=order, customer_id=customer.customer_id),
                **create_activity_options,
            )
            outcome.customer_id = sales_order.customer_id
            outcome.sales_order_id = sales_order.sales_order_id

        except ActivityError as e:
            failure = _failure(e)
            workflow.logger.error(f"Order {order_id} failed at {outcome.stage}: {failure.message}")
            outcome.error = failure.message
            outcome.error_type = failure.type
            return outcome

        outcome.success = True
        outcome.stage = OrderStage.COMPLETED.value
        return outcome
