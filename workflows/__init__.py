"""Workflow definitions module."""

from workflows.order_sync_workflow import (
    OrderSyncWorkflow,
    OrderSyncWorkflowInput,
    OrderSyncWorkflowOutput,
    OrderOutcome,
    TASK_QUEUE,
)

__all__ = [
    "OrderSyncWorkflow",
    "OrderSyncWorkflowInput",
    "OrderSyncWorkflowOutput",
    "OrderOutcome",
    "TASK_QUEUE",
]
