"""Customer Resolver - Maps storefront orders to ERP customers.

This package decides which ERP customer an order belongs to:
- Dropship orders get a person record per ship-to party, under the
  reseller's company record when one matches the billing contact
- Regular orders use the company record keyed by the checkout email,
  created when missing
- The customer attached to a sales order is always a person; a company is
  replaced by (or given) a person child

Usage:
    from customer_resolver import CustomerResolver

    resolver = CustomerResolver(netsuite_connector)
    resolution = await resolver.resolve_with_trace(order)
    print(resolution.customer_id, resolution.step_names)
"""

from customer_resolver.models import (
    CustomerResolution,
    ResolutionStep,
    ResolutionStrategy,
    StepOutcome,
)
from customer_resolver.resolver import (
    CustomerDirectory,
    CustomerResolver,
    address_book,
    build_dropship_draft,
    build_person_draft,
    build_regular_draft,
    default_address,
    dropship_last_name,
)

__all__ = [
    # Models
    "CustomerResolution",
    "ResolutionStep",
    "ResolutionStrategy",
    "StepOutcome",
    # Resolver
    "CustomerDirectory",
    "CustomerResolver",
    # Draft builders
    "address_book",
    "build_dropship_draft",
    "build_person_draft",
    "build_regular_draft",
    "default_address",
    "dropship_last_name",
]
