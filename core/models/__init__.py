"""Core data models - the storefront order as seen by the sync engine.

ERP-specific record shapes live in /connectors/.
"""

from core.models.orders import (
    # Base
    OrderBase,
    Money,

    # Order parts
    QuestionAnswer,
    Shipment,
    OrderItem,
    ExternalOrder,

    # Identifiers
    EXTERNAL_ID_PREFIX,
    DROPSHIP_PAYMENT_METHOD,
    EMAIL_QUESTION_ID,
    REFERENCE_QUESTION_ID,
    external_id_for,

    # Validation
    EMAIL_MAX_LENGTH,
    is_valid_email,
)

from core.models.settings import SyncSettings

__all__ = [
    "OrderBase",
    "Money",
    "QuestionAnswer",
    "Shipment",
    "OrderItem",
    "ExternalOrder",
    "EXTERNAL_ID_PREFIX",
    "DROPSHIP_PAYMENT_METHOD",
    "EMAIL_QUESTION_ID",
    "REFERENCE_QUESTION_ID",
    "external_id_for",
    "EMAIL_MAX_LENGTH",
    "is_valid_email",
    "SyncSettings",
]
