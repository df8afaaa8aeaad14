"""API Routes Package."""

from api.routes import health, orders, connectors

__all__ = [
    "health",
    "orders",
    "connectors",
]
