"""
Observability Module for the Order Sync Engine

Provides:
- Structured logging with correlation IDs (order, batch, workflow)
- Metrics collection (order outcomes, ERP calls, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_order_synced,
    record_order_failed,
    record_order_skipped,
    record_api_call,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_order_synced",
    "record_order_failed",
    "record_order_skipped",
    "record_api_call",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
