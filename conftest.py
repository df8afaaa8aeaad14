"""Shared pytest fixtures.

FakeNetSuite is an in-memory stand-in for NetSuiteConnector: it implements
the lookups and creates the resolvers, the synthesizer and the status
checker call, and records every call by name.
"""

import sys
from copy import deepcopy
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from connectors.erp_base import (
    ConnectionTestResult,
    CreatedRecordRef,
    CustomerDraft,
    CustomerRef,
    ERPEntityType,
    ItemRef,
    SalesOrderDraft,
    SalesOrderRef,
)
from connectors.netsuite.ns_connector import ItemValidation
from core.models import ExternalOrder


# =============================================================================
# In-memory NetSuite
# =============================================================================

class FakeNetSuite:
    """In-memory customers, items and sales orders."""

    def __init__(self):
        self.customers: Dict[str, CustomerRef] = {}
        self.items: Dict[str, ItemRef] = {}
        self.sales_orders: List[SalesOrderRef] = []

        self.created_customers: List[CustomerDraft] = []
        self.created_items: List[str] = []
        self.submitted_orders: List[SalesOrderDraft] = []
        self.calls: List[str] = []

        # Simulate a 204 without a usable Location header on customer creation
        self.hide_created_customer_ids = False
        # Raised from the batch sales order lookup when set
        self.sales_order_lookup_error: Optional[Exception] = None
        # Raised from create_item when set
        self.create_item_error: Optional[Exception] = None

        self._next_id = 4520

    def _new_id(self) -> str:
        self._next_id += 1
        return str(self._next_id)

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def add_customer(self, **fields) -> CustomerRef:
        fields.setdefault("id", self._new_id())
        customer = CustomerRef(**fields)
        self.customers[customer.id] = customer
        return customer

    def add_item(self, item_id: str, code: str, is_active: bool = True, is_sale_item: bool = True) -> ItemRef:
        item = ItemRef(id=item_id, code=code, name=code, is_active=is_active, is_sale_item=is_sale_item)
        self.items[item_id] = item
        return item

    def add_sales_order(self, order_id: str, sales_order_id: str, customer_id: str = "4521") -> SalesOrderRef:
        sales_order = SalesOrderRef(
            id=sales_order_id,
            tran_id=f"SO{sales_order_id}",
            external_id=f"3DCART_{order_id}",
            status="Pending Fulfillment",
            tran_date="2024-01-15",
            customer_id=customer_id,
        )
        self.sales_orders.append(sales_order)
        return sales_order

    @property
    def persons(self) -> List[CustomerRef]:
        return [c for c in self.customers.values() if c.is_person]

    @property
    def companies(self) -> List[CustomerRef]:
        return [c for c in self.customers.values() if not c.is_person]

    # -------------------------------------------------------------------------
    # Customer lookups
    # -------------------------------------------------------------------------

    async def find_company_by_contact(self, email: str, phone: str) -> Optional[CustomerRef]:
        self.calls.append("find_company_by_contact")
        if not email and not phone:
            return None
        for company in self.companies:
            if email and (company.email or "").lower() == email.lower():
                return company
            if phone and company.phone == phone:
                return company
        return None

    async def find_company_by_email(self, email: str) -> Optional[CustomerRef]:
        self.calls.append("find_company_by_email")
        for company in self.companies:
            if email and (company.email or "").lower() == email.lower():
                return company
        return None

    async def find_person_by_name(self, first_name: str, last_name: str, parent_id: Optional[str] = None) -> Optional[CustomerRef]:
        self.calls.append("find_person_by_name")
        for person in self.persons:
            if (person.first_name or "").lower() != first_name.lower():
                continue
            if (person.last_name or "").lower() != last_name.lower():
                continue
            if parent_id and person.parent_id != parent_id:
                continue
            return person
        return None

    async def find_person_by_entity_id(self, entity_id: str, parent_id: str) -> Optional[CustomerRef]:
        self.calls.append("find_person_by_entity_id")
        for person in self.persons:
            if person.parent_id == parent_id and person.display_name.lower() == entity_id.lower():
                return person
        return None

    async def get_customer_row(self, customer_id: str) -> Optional[CustomerRef]:
        self.calls.append("get_customer_row")
        return self.customers.get(str(customer_id))

    async def create_customer(self, draft: CustomerDraft) -> CreatedRecordRef:
        self.calls.append("create_customer")
        self.created_customers.append(draft)
        customer = self.add_customer(
            is_person=draft.is_person,
            first_name=draft.first_name or None,
            last_name=draft.last_name or None,
            company_name=draft.company_name or None,
            email=draft.email or None,
            phone=draft.phone or None,
            parent_id=draft.parent_id,
        )
        if self.hide_created_customer_ids:
            return CreatedRecordRef(record_type=ERPEntityType.CUSTOMER, id=None, status_code=204)
        return CreatedRecordRef(
            record_type=ERPEntityType.CUSTOMER,
            id=customer.id,
            status_code=204,
            location=f"https://1234567.suitetalk.api.netsuite.com/services/rest/record/v1/customer/{customer.id}",
        )

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    async def search_items(self, identifier: str, exact: bool = True) -> Optional[ItemRef]:
        self.calls.append("search_items:exact" if exact else "search_items:partial")
        for item in self.items.values():
            code = item.code or ""
            if (exact and code == identifier) or (not exact and identifier in code):
                return item
        return None

    async def create_item(self, identifier: str, description: str, price: Decimal) -> CreatedRecordRef:
        self.calls.append("create_item")
        if self.create_item_error is not None:
            raise self.create_item_error
        item = self.add_item(self._new_id(), identifier)
        self.created_items.append(identifier)
        return CreatedRecordRef(record_type=ERPEntityType.ITEM, id=item.id, status_code=204)

    async def validate_item(self, item_id: str) -> ItemValidation:
        self.calls.append("validate_item")
        item = self.items.get(str(item_id))
        if item is None:
            return ItemValidation(item_id=str(item_id), exists=False, error="Item does not exist")
        return ItemValidation(item_id=item.id, exists=True, usable=item.usable, display_name=item.name)

    # -------------------------------------------------------------------------
    # Sales orders
    # -------------------------------------------------------------------------

    async def create_sales_order(self, draft: SalesOrderDraft) -> CreatedRecordRef:
        self.calls.append("create_sales_order")
        self.submitted_orders.append(draft)
        sales_order_id = self._new_id()
        self.sales_orders.append(SalesOrderRef(
            id=sales_order_id,
            tran_id=f"SO{sales_order_id}",
            external_id=draft.external_id,
            status="Pending Fulfillment",
            tran_date=draft.tran_date,
            customer_id=draft.customer_id,
        ))
        return CreatedRecordRef(record_type=ERPEntityType.SALES_ORDER, id=sales_order_id, status_code=204)

    async def find_sales_orders_by_external_ids(self, external_ids: List[str]) -> List[SalesOrderRef]:
        self.calls.append("find_sales_orders_by_external_ids")
        if self.sales_order_lookup_error is not None:
            raise self.sales_order_lookup_error
        return [so for so in self.sales_orders if so.external_id in external_ids]

    async def test_connection(self) -> ConnectionTestResult:
        self.calls.append("test_connection")
        return ConnectionTestResult(success=True, status_code=200, response_time_ms=12.5)


# =============================================================================
# Orders
# =============================================================================

ORDER_5001: Dict[str, Any] = {
    "OrderID": "5001",
    "InvoiceNumberPrefix": "",
    "InvoiceNumber": "",
    "OrderDate": "2024-01-15T10:30:00",
    "BillingFirstName": "Ann",
    "BillingLastName": "Smith",
    "BillingCompany": "Acme Supply",
    "BillingAddress": "1 Main St",
    "BillingAddress2": "",
    "BillingCity": "Austin",
    "BillingState": "TX",
    "BillingZipCode": "78701",
    "BillingCountry": "US",
    "BillingPhoneNumber": "512-555-0100",
    "BillingEmail": "a@x.com",
    "BillingPaymentMethod": "Credit Card",
    "CustomerComments": "Leave at the dock",
    "QuestionList": [
        {"QuestionID": 1, "QuestionTitle": "Email", "QuestionAnswer": " a@x.com "},
        {"QuestionID": 2, "QuestionTitle": "PO Number", "QuestionAnswer": "PO-99"},
    ],
    "ShipmentList": [
        {
            "ShipmentFirstName": "Ann",
            "ShipmentLastName": "Smith",
            "ShipmentCompany": "",
            "ShipmentAddress": "1 Main St",
            "ShipmentAddress2": "",
            "ShipmentCity": "Austin",
            "ShipmentState": "TX",
            "ShipmentZipCode": "78701",
            "ShipmentCountry": "US",
            "ShipmentPhone": "512-555-0101",
        }
    ],
    "OrderItemList": [
        {
            "ItemID": "SKU1",
            "ItemDescription": "Widget",
            "ItemQuantity": 2,
            "ItemUnitPrice": 10,
            "ItemOptionPrice": 1,
        }
    ],
    "OrderAmount": 22,
    "OrderDiscount": 0,
    "SalesTax": 0,
    "ShippingCost": 0,
}


def build_order_data(**overrides) -> Dict[str, Any]:
    data = deepcopy(ORDER_5001)
    data.update(overrides)
    return data


def build_dropship_data(**overrides) -> Dict[str, Any]:
    """Order 5001 as a dropship order for Jane Doe, invoice INV-77."""
    data = build_order_data(
        BillingPaymentMethod="Dropship to Customer",
        InvoiceNumberPrefix="INV-",
        InvoiceNumber="77",
    )
    data["ShipmentList"][0].update({
        "ShipmentFirstName": "Jane",
        "ShipmentLastName": "Doe",
        "ShipmentPhone": "555-0199",
    })
    data.update(overrides)
    return data


@pytest.fixture
def netsuite() -> FakeNetSuite:
    return FakeNetSuite()


@pytest.fixture
def order_data() -> Dict[str, Any]:
    return build_order_data()


@pytest.fixture
def order() -> ExternalOrder:
    return ExternalOrder.model_validate(build_order_data())


@pytest.fixture
def dropship_order() -> ExternalOrder:
    return ExternalOrder.model_validate(build_dropship_data())
