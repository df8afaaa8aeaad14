"""
Order sync workflow and activity tests.

Activities run inside temporalio's ActivityEnvironment against the in-memory
NetSuite. The workflow module is checked for the retry rules that keep a
record-creating activity from running twice.
"""

import asyncio
import re
from pathlib import Path

import pytest
from temporalio.exceptions import ApplicationError
from temporalio.testing import ActivityEnvironment

from conftest import build_dropship_data, build_order_data
from core.errors import OrderValidationError


WORKFLOW_FILE = Path(__file__).parent / "workflows" / "order_sync_workflow.py"


class _Session:
    """Stands in for the connector_from_env() context manager."""

    def __init__(self, netsuite):
        self.netsuite = netsuite

    async def __aenter__(self):
        return self.netsuite

    async def __aexit__(self, exc_type, exc, tb):
        return None


@pytest.fixture
def fake_env(netsuite, monkeypatch):
    netsuite.add_item("101", "SKU1")
    monkeypatch.setattr(
        "activities.sync.connector_from_env",
        lambda environment=None, settings=None: _Session(netsuite),
    )
    return netsuite


def run_activity(fn, arg):
    return asyncio.run(ActivityEnvironment().run(fn, arg))


# =============================================================================
# Activities
# =============================================================================

class TestActivities:

    def test_validate_order(self):
        from activities.sync import ValidateOrderInput, validate_order

        output = run_activity(validate_order, ValidateOrderInput(order=build_dropship_data()))

        assert output.order_id == "5001"
        assert output.is_dropship is True

    def test_validate_order_rejects(self):
        from activities.sync import ValidateOrderInput, validate_order

        with pytest.raises(OrderValidationError):
            run_activity(validate_order, ValidateOrderInput(order=build_order_data(OrderItemList=[])))

    def test_validate_order_rejects_unparsable_amount(self):
        from activities.sync import ValidateOrderInput, validate_order

        with pytest.raises(OrderValidationError, match="Invalid amount") as exc_info:
            run_activity(validate_order, ValidateOrderInput(order=build_order_data(OrderAmount="N/A")))
        assert exc_info.value.order_id == "5001"

    def test_check_sync_status(self, fake_env):
        from activities.sync import CheckSyncStatusInput, check_sync_status

        fake_env.add_sales_order("5001", "9001")

        output = run_activity(check_sync_status, CheckSyncStatusInput(order_ids=["5001", "5002"]))

        assert output.synced_ids() == ["5001"]
        assert output.statuses["5001"]["netsuite_id"] == "9001"
        assert output.statuses["5002"]["synced"] is False

    def test_resolve_then_create(self, fake_env):
        from activities.sync import (
            CreateSalesOrderInput,
            ResolveCustomerInput,
            create_sales_order,
            resolve_customer,
        )

        order = build_order_data()
        customer = run_activity(resolve_customer, ResolveCustomerInput(order=order))

        assert customer.strategy == "regular"
        assert customer.created is True
        assert customer.steps[-1] == "ensure_person"

        sales_order = run_activity(
            create_sales_order,
            CreateSalesOrderInput(order=order, customer_id=customer.customer_id),
        )

        assert sales_order.external_id == "3DCART_5001"
        assert sales_order.sales_order_id == fake_env.sales_orders[-1].id
        assert sales_order.totals_match is True
        assert sales_order.item_total == "22"


# =============================================================================
# Workflow structure
# =============================================================================

class TestWorkflowDefinition:

    def test_non_retryable_errors(self):
        from workflows.order_sync_workflow import NON_RETRYABLE_ERRORS
        assert "OrderValidationError" in NON_RETRYABLE_ERRORS
        assert "NSValidationError" in NON_RETRYABLE_ERRORS
        assert "NSAuthenticationError" in NON_RETRYABLE_ERRORS

    def test_creating_activities_run_once(self):
        content = WORKFLOW_FILE.read_text(encoding="utf-8")

        for name in ("resolve_customer", "create_sales_order"):
            call = re.search(rf"execute_activity\(\s*{name},.*?\*\*(\w+)", content, re.DOTALL)
            assert call is not None, name
            assert call.group(1) == "create_activity_options"

        assert "RetryPolicy(maximum_attempts=1)" in content

    def test_every_activity_has_a_timeout(self):
        content = WORKFLOW_FILE.read_text(encoding="utf-8")
        assert content.count("workflow.execute_activity(") == 4
        assert content.count("start_to_close_timeout") == 2

    def test_delay_uses_workflow_timer(self):
        content = WORKFLOW_FILE.read_text(encoding="utf-8")
        assert "await workflow.sleep(input.delay_seconds)" in content
        assert "asyncio.sleep" not in content

    def test_failure_unwrapping(self):
        from workflows.order_sync_workflow import _failure

        app_error = ApplicationError("bad order", type="OrderValidationError")
        assert _failure(app_error) is app_error

        wrapped = _failure(ValueError("boom"))
        assert wrapped.message == "boom"
        assert wrapped.type == "ValueError"

    def test_worker_registers_everything(self):
        from workers.worker import ACTIVITIES, WORKFLOWS
        from workflows import OrderSyncWorkflow

        assert WORKFLOWS == [OrderSyncWorkflow]
        assert [fn.__name__ for fn in ACTIVITIES] == [
            "check_sync_status", "validate_order", "resolve_customer", "create_sales_order",
        ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
