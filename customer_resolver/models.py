"""Customer Resolver Data Models.

This module defines the models for customer resolution:
- ResolutionStrategy: Dropship vs. regular customer handling
- ResolutionStep: One entry in the fallback chain trace
- CustomerResolution: The result of resolving an order's customer
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from core.models import DROPSHIP_PAYMENT_METHOD


class ResolutionStrategy(str, Enum):
    """How the order's customer is found or created."""
    DROPSHIP = "dropship"   # Person record per ship-to, under the reseller company
    REGULAR = "regular"     # Company record keyed by the checkout email

    @classmethod
    def for_payment_method(cls, payment_method: Optional[str]) -> "ResolutionStrategy":
        """Exactly "Dropship to Customer" selects DROPSHIP; anything else REGULAR."""
        if payment_method == DROPSHIP_PAYMENT_METHOD:
            return cls.DROPSHIP
        return cls.REGULAR


class StepOutcome(str, Enum):
    RESOLVED = "resolved"
    NEXT = "next"


class ResolutionStep(BaseModel):
    """One executed step of the fallback chain."""
    name: str
    outcome: StepOutcome = StepOutcome.NEXT
    customer_id: Optional[str] = None
    detail: Optional[str] = None


class CustomerResolution(BaseModel):
    """Result of customer resolution.

    customer_id always refers to a person-type record unless person
    enforcement had to fall back to the company (see person_enforced).

    Attributes:
        customer_id: Customer to attach to the sales order
        strategy: Strategy chosen from the payment method
        is_person: Whether customer_id is a person-type record
        created: Whether the strategy created a new record
        parent_id: Parent company found for the order, if any
        email: Validated checkout email ("" when missing or invalid)
        person_enforced: False when a company record had to be kept
        steps: Executed steps, in order
    """
    customer_id: str
    strategy: ResolutionStrategy
    is_person: bool = True
    created: bool = False
    parent_id: Optional[str] = None
    email: str = ""
    person_enforced: bool = True
    steps: List[ResolutionStep] = Field(default_factory=list)
    resolution_time_ms: int = 0

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self.steps]
