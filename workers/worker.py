"""Worker for the order sync engine.

Connects to Temporal, polls the order-sync task queue and runs the
batch workflow and its NetSuite activities.

Run with --queue <name> to poll a different queue.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from temporalio.worker import Worker

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from temporal_client import get_temporal_client
from core.observability import configure_logging, get_logger
from workflows.order_sync_workflow import OrderSyncWorkflow, TASK_QUEUE
from activities.sync import (
    check_sync_status,
    validate_order,
    resolve_customer,
    create_sales_order,
)


logger = get_logger(__name__)

WORKFLOWS = [OrderSyncWorkflow]

ACTIVITIES = [
    check_sync_status,
    validate_order,
    resolve_customer,
    create_sales_order,
]


async def run_worker(queue: str = TASK_QUEUE):
    """Start a worker listening on a task queue.

    Raises:
        Exception: If connection to Temporal fails
    """
    client = await get_temporal_client()
    logger.info(f"Connected to Temporal: {client.namespace}")

    worker = Worker(
        client,
        task_queue=queue,
        workflows=WORKFLOWS,
        activities=ACTIVITIES,
    )
    logger.info(f"Worker created for queue '{queue}': {len(WORKFLOWS)} workflows, {len(ACTIVITIES)} activities")

    try:
        logger.info("Worker running... (Ctrl+C to stop)")
        await worker.run()
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise


def main():
    """Entry point for worker with CLI args."""
    parser = argparse.ArgumentParser(description="Order Sync Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        default=TASK_QUEUE,
        help=f"Task queue to poll (default: {TASK_QUEUE})"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit structured JSON logs"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO)"
    )

    args = parser.parse_args()
    configure_logging(level=args.log_level, json_format=args.json_logs)

    try:
        asyncio.run(run_worker(queue=args.queue))
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")


if __name__ == "__main__":
    main()
