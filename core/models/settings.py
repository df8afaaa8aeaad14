"""Business defaults for order synchronization.

Record ids here are NetSuite internal ids for the account the engine posts
to. Every value can be overridden from the environment:

    settings = SyncSettings.from_env()   # NETSUITE_DEFAULT_ITEM_ID=15001 etc.
"""

import os
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncSettings(BaseModel):
    """Defaults applied when customers, items and sales orders are created."""
    model_config = ConfigDict(frozen=True)

    default_subsidiary_id: int = 1
    default_location_id: int = 1
    default_department_id: int = 3
    default_item_id: int = Field(default=14238, gt=0)

    # Item resolution
    create_missing_items: bool = True
    item_type: str = "inventoryItem"

    sales_order_taxable: bool = False

    # Synthetic lines
    tax_item_id: int = 2
    shipping_item_id: int = 3
    discount_item_id: int = 4
    include_tax_as_line_item: bool = False
    include_shipping_as_line_item: bool = False
    include_discount_as_line_item: bool = False

    # Reconciliation
    validate_totals: bool = True
    total_tolerance: Decimal = Decimal("0.01")
    fail_on_total_mismatch: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncSettings":
        """Build settings from NETSUITE_<FIELD> variables, defaults for the rest."""
        environ = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(f"NETSUITE_{name.upper()}")
            if raw is not None and raw != "":
                overrides[name] = raw
        return cls.model_validate(overrides)
