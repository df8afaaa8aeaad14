"""Start an OrderSyncWorkflow.

Reads storefront orders (a JSON list, or an object with an "orders" list)
from a file, starts the batch workflow and prints the outcome per order.

    python scripts/start_order_sync.py orders.json [--resync]
"""

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from temporal_client import get_temporal_client
from core.observability import configure_logging, get_logger
from workflows.order_sync_workflow import (
    OrderSyncWorkflow,
    OrderSyncWorkflowInput,
    OrderSyncWorkflowOutput,
    TASK_QUEUE,
)


logger = get_logger(__name__)


def load_orders(path: Path) -> list:
    data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("orders", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list of orders")
    return data


async def start_order_sync_workflow(orders: list, skip_synced: bool = True) -> OrderSyncWorkflowOutput:
    """Start the batch workflow and wait for its result."""
    workflow_id = f"order-sync-{uuid.uuid4().hex[:8]}"

    client = await get_temporal_client()
    logger.info(f"Connected to Temporal: {client.namespace}")

    logger.info(f"Starting {workflow_id} with {len(orders)} orders on task queue '{TASK_QUEUE}'")
    handle = await client.start_workflow(
        OrderSyncWorkflow.run,
        OrderSyncWorkflowInput(orders=orders, skip_synced=skip_synced),
        id=workflow_id,
        task_queue=TASK_QUEUE,
    )
    return await handle.result()


def main():
    parser = argparse.ArgumentParser(description="Start an order sync batch")
    parser.add_argument("orders_file", type=Path, help="JSON file with storefront orders")
    parser.add_argument(
        "--resync",
        action="store_true",
        help="Sync orders even if a sales order already exists for them"
    )
    args = parser.parse_args()

    configure_logging()
    orders = load_orders(args.orders_file)
    result = asyncio.run(start_order_sync_workflow(orders, skip_synced=not args.resync))

    print(f"Total: {result.total}  succeeded: {result.succeeded}  failed: {result.failed}  skipped: {result.skipped}")
    for outcome in result.outcomes:
        if outcome.skipped:
            print(f"  {outcome.order_id}: skipped (sales order {outcome.sales_order_id})")
        elif outcome.success:
            print(f"  {outcome.order_id}: sales order {outcome.sales_order_id} for customer {outcome.customer_id}")
        else:
            print(f"  {outcome.order_id}: FAILED at {outcome.stage}: {outcome.error}")


if __name__ == "__main__":
    main()
