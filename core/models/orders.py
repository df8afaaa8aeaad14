"""Storefront order models - the inbound side of the sync.

These models represent a 3DCart order after it has been parsed from the
webhook or polling payload. They are read-only to the sync engine.

Field names follow the storefront's PascalCase payload keys (used as aliases)
so a raw order dict validates directly:

    order = ExternalOrder.model_validate(raw_order_dict)
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


EXTERNAL_ID_PREFIX = "3DCART"

DROPSHIP_PAYMENT_METHOD = "Dropship to Customer"

EMAIL_QUESTION_ID = 1
REFERENCE_QUESTION_ID = 2

EMAIL_MAX_LENGTH = 254

_EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)


# =============================================================================
# Value Parsers (storefront payloads mix strings, ints and floats)
# =============================================================================

def _parse_decimal(value):
    """Parse decimal from various formats (string with $ or commas, floats, etc.)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        s = value.strip().replace("$", "").replace(",", "")
        if s == "":
            return Decimal("0")
        try:
            return Decimal(s)
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
    return value


def _parse_int(value):
    """Parse integer from various formats."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        return int(float(s))
    return value


def _parse_text(value):
    """Coerce ids and free text to str; None becomes empty."""
    if value is None:
        return ""
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


Money = Annotated[Decimal, BeforeValidator(_parse_decimal)]
OptionalInt = Annotated[Optional[int], BeforeValidator(_parse_int)]
Text = Annotated[str, BeforeValidator(_parse_text)]


def is_valid_email(value: Optional[str]) -> bool:
    """Format and length check used before an email is sent to the ERP."""
    if not value:
        return False
    value = value.strip()
    return len(value) <= EMAIL_MAX_LENGTH and bool(_EMAIL_PATTERN.match(value))


def external_id_for(order_id: str) -> str:
    """Deterministic ERP externalId for a storefront order."""
    return f"{EXTERNAL_ID_PREFIX}_{order_id}"


# =============================================================================
# Base Model
# =============================================================================

class OrderBase(BaseModel):
    """Base model for storefront order structures."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


# =============================================================================
# Order Parts
# =============================================================================

class QuestionAnswer(OrderBase):
    """One checkout question/answer pair."""
    question_id: OptionalInt = Field(default=None, alias="QuestionID")
    question_title: Text = Field(default="", alias="QuestionTitle")
    question_answer: Text = Field(default="", alias="QuestionAnswer")


class Shipment(OrderBase):
    """A shipment block (recipient name, address and phone)."""
    first_name: Text = Field(default="", alias="ShipmentFirstName")
    last_name: Text = Field(default="", alias="ShipmentLastName")
    company: Text = Field(default="", alias="ShipmentCompany")
    address: Text = Field(default="", alias="ShipmentAddress")
    address2: Text = Field(default="", alias="ShipmentAddress2")
    city: Text = Field(default="", alias="ShipmentCity")
    state: Text = Field(default="", alias="ShipmentState")
    zip_code: Text = Field(default="", alias="ShipmentZipCode")
    country: Text = Field(default="", alias="ShipmentCountry")
    phone: Text = Field(default="", alias="ShipmentPhone")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class OrderItem(OrderBase):
    """A purchased line item."""
    item_id: Text = Field(default="", alias="ItemID")
    order_item_id: Text = Field(default="", alias="OrderItemID")
    description: Text = Field(default="", alias="ItemDescription")
    quantity: Money = Field(default=Decimal("0"), alias="ItemQuantity")
    unit_price: Money = Field(default=Decimal("0"), alias="ItemUnitPrice")
    option_price: Money = Field(default=Decimal("0"), alias="ItemOptionPrice")

    @property
    def identifier(self) -> str:
        """SKU used for ERP item lookup: ItemID, falling back to OrderItemID."""
        return (self.item_id or self.order_item_id or "").strip()

    @property
    def rate(self) -> Decimal:
        """Per-unit rate sent to the ERP: unit price plus option price."""
        return self.unit_price + self.option_price


# =============================================================================
# External Order
# =============================================================================

class ExternalOrder(OrderBase):
    """A complete storefront order - immutable input to the sync engine."""
    order_id: Text = Field(default="", alias="OrderID")
    invoice_number_prefix: Text = Field(default="", alias="InvoiceNumberPrefix")
    invoice_number: Text = Field(default="", alias="InvoiceNumber")
    order_date: Text = Field(default="", alias="OrderDate")

    billing_first_name: Text = Field(default="", alias="BillingFirstName")
    billing_last_name: Text = Field(default="", alias="BillingLastName")
    billing_company: Text = Field(default="", alias="BillingCompany")
    billing_address: Text = Field(default="", alias="BillingAddress")
    billing_address2: Text = Field(default="", alias="BillingAddress2")
    billing_city: Text = Field(default="", alias="BillingCity")
    billing_state: Text = Field(default="", alias="BillingState")
    billing_zip_code: Text = Field(default="", alias="BillingZipCode")
    billing_country: Text = Field(default="", alias="BillingCountry")
    billing_phone: Text = Field(default="", alias="BillingPhoneNumber")
    billing_email: Text = Field(default="", alias="BillingEmail")
    billing_payment_method: Text = Field(default="", alias="BillingPaymentMethod")

    customer_comments: Text = Field(default="", alias="CustomerComments")

    questions: List[QuestionAnswer] = Field(default_factory=list, alias="QuestionList")
    shipments: List[Shipment] = Field(default_factory=list, alias="ShipmentList")
    items: List[OrderItem] = Field(default_factory=list, alias="OrderItemList")

    order_amount: Money = Field(default=Decimal("0"), alias="OrderAmount")
    order_discount: Money = Field(default=Decimal("0"), alias="OrderDiscount")
    sales_tax: Money = Field(default=Decimal("0"), alias="SalesTax")
    shipping_cost: Money = Field(default=Decimal("0"), alias="ShippingCost")

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def primary_shipment(self) -> Shipment:
        """First shipment block, or an empty one when the order has none."""
        return self.shipments[0] if self.shipments else Shipment()

    def question_answer(self, question_id: int) -> str:
        """Trimmed answer for a checkout question, empty when absent."""
        for question in self.questions:
            if question.question_id == question_id:
                return question.question_answer.strip()
        return ""

    @property
    def customer_email(self) -> str:
        """Authoritative customer email (checkout question 1). Not validated here."""
        return self.question_answer(EMAIL_QUESTION_ID)

    @property
    def other_ref_num(self) -> str:
        """Customer PO / reference number (checkout question 2)."""
        return self.question_answer(REFERENCE_QUESTION_ID)

    @property
    def is_dropship(self) -> bool:
        return self.billing_payment_method == DROPSHIP_PAYMENT_METHOD

    @property
    def billing_full_name(self) -> str:
        return f"{self.billing_first_name} {self.billing_last_name}".strip()

    @property
    def external_id(self) -> str:
        return external_id_for(self.order_id)
