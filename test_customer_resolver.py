"""
Customer resolver tests.

Runs both strategies against the in-memory NetSuite from conftest.py:
dropship persons, regular companies, person enforcement, and recovery when
NetSuite does not report the id of a created customer.
"""

import asyncio

import pytest

from conftest import FakeNetSuite, build_dropship_data, build_order_data
from core.errors import CustomerResolutionError
from core.models import ExternalOrder
from customer_resolver import (
    CustomerResolver,
    ResolutionStrategy,
    StepOutcome,
    address_book,
    build_dropship_draft,
    build_person_draft,
    default_address,
    dropship_last_name,
)


def run(coro):
    return asyncio.run(coro)


def make_order(data) -> ExternalOrder:
    return ExternalOrder.model_validate(data)


# =============================================================================
# Draft builders
# =============================================================================

class TestDraftBuilders:

    def test_dropship_last_name_suffix(self, dropship_order):
        assert dropship_last_name(dropship_order) == "Doe: INV-77"

    def test_dropship_last_name_without_invoice_number(self):
        order = make_order(build_dropship_data(InvoiceNumberPrefix="", InvoiceNumber=""))
        assert dropship_last_name(order) == "Doe"

    def test_dropship_draft_never_has_email(self, dropship_order):
        draft = build_dropship_draft(dropship_order, parent_id="12")
        assert draft.is_person is True
        assert draft.first_name == "Jane"
        assert draft.last_name == "Doe: INV-77"
        assert draft.email == ""
        assert draft.phone == "555-0199"
        assert draft.parent_id == "12"

    def test_default_address(self, order):
        assert default_address(order) == "1 Main St, Austin, TX, 78701"

    def test_address_book_entries(self, order):
        billing, shipping = address_book(order)
        assert billing.default_billing and not billing.default_shipping
        assert billing.addressee == "Acme Supply"
        assert shipping.default_shipping and not shipping.default_billing
        assert shipping.addressee == "Ann Smith"

    def test_address_book_skips_billing_without_address(self):
        order = make_order(build_order_data(BillingAddress="", BillingCity=""))
        entries = address_book(order)
        assert len(entries) == 1
        assert entries[0].default_shipping

    def test_person_draft_from_company(self, order, netsuite):
        company = netsuite.add_customer(is_person=False, company_name="Acme", email="ap@acme.com", phone="")
        draft = build_person_draft(order, company)
        assert draft.is_person is True
        assert (draft.first_name, draft.last_name) == ("Ann", "Smith")
        assert draft.email == "ap@acme.com"
        assert draft.second_email == "ap@acme.com"
        assert draft.phone == "512-555-0100"
        assert draft.parent_id == company.id


# =============================================================================
# Dropship strategy
# =============================================================================

class TestDropshipStrategy:

    def test_creates_person_with_empty_email(self, netsuite, dropship_order):
        resolution = run(CustomerResolver(netsuite).resolve_with_trace(dropship_order))

        customer = netsuite.customers[resolution.customer_id]
        assert resolution.strategy == ResolutionStrategy.DROPSHIP
        assert resolution.created is True
        assert customer.is_person is True
        assert customer.last_name == "Doe: INV-77"
        assert netsuite.created_customers[0].email == ""
        assert resolution.step_names == ["find_parent_company", "find_dropship_person", "create_dropship_person"]

    def test_person_is_created_under_parent_company(self, netsuite, dropship_order):
        reseller = netsuite.add_customer(is_person=False, company_name="Reseller", email="a@x.com")

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(dropship_order))

        assert resolution.parent_id == reseller.id
        assert netsuite.customers[resolution.customer_id].parent_id == reseller.id

    def test_same_identity_resolves_to_same_customer(self, netsuite):
        resolver = CustomerResolver(netsuite)

        first = run(resolver.resolve(make_order(build_dropship_data())))
        second = run(resolver.resolve(make_order(build_dropship_data(OrderID="5002"))))

        assert first == second
        assert len(netsuite.created_customers) == 1

    def test_existing_person_is_found(self, netsuite, dropship_order):
        existing = netsuite.add_customer(is_person=True, first_name="jane", last_name="DOE: INV-77")

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(dropship_order))

        assert resolution.customer_id == existing.id
        assert resolution.created is False
        assert resolution.steps[1].outcome == StepOutcome.RESOLVED
        assert netsuite.created_customers == []

    def test_parent_lookup_skipped_without_contact(self, netsuite):
        order = make_order(build_dropship_data(BillingEmail="", BillingPhoneNumber=""))

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(order))

        assert "find_company_by_contact" not in netsuite.calls
        assert resolution.steps[0].detail == "no billing email or phone"

    def test_parent_lookup_error_is_not_fatal(self, netsuite, dropship_order):
        async def broken(email, phone):
            raise RuntimeError("SuiteQL unavailable")
        netsuite.find_company_by_contact = broken

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(dropship_order))

        assert resolution.parent_id is None
        assert netsuite.customers[resolution.customer_id].is_person


# =============================================================================
# Regular strategy
# =============================================================================

class TestRegularStrategy:

    def test_existing_company_is_replaced_by_person(self, netsuite, order):
        company = netsuite.add_customer(is_person=False, company_name="Acme Supply", email="A@X.com")

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(order))

        person = netsuite.customers[resolution.customer_id]
        assert resolution.customer_id != company.id
        assert person.is_person is True
        assert person.parent_id == company.id
        assert resolution.step_names == ["find_store_company", "ensure_person"]
        assert resolution.person_enforced is True

    def test_new_company_gets_a_person_child(self, netsuite, order):
        resolution = run(CustomerResolver(netsuite).resolve_with_trace(order))

        company_draft, person_draft = netsuite.created_customers
        assert company_draft.is_person is False
        assert company_draft.company_name == "Acme Supply"
        assert company_draft.email == "a@x.com"
        assert person_draft.is_person is True
        assert netsuite.customers[resolution.customer_id].is_person is True

    def test_existing_person_child_is_reused(self, netsuite, order):
        company = netsuite.add_customer(is_person=False, company_name="Acme Supply", email="a@x.com")
        child = netsuite.add_customer(is_person=True, first_name="Ann", last_name="Smith", parent_id=company.id)

        customer_id = run(CustomerResolver(netsuite).resolve(order))

        assert customer_id == child.id
        assert netsuite.created_customers == []

    def test_company_name_falls_back_to_shipment_name(self, netsuite):
        order = make_order(build_order_data(BillingCompany=""))
        run(CustomerResolver(netsuite).resolve(order))
        assert netsuite.created_customers[0].company_name == "Ann Smith"

    def test_invalid_checkout_email_is_ignored(self, netsuite):
        data = build_order_data()
        data["QuestionList"][0]["QuestionAnswer"] = "not an email"

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(make_order(data)))

        assert resolution.email == ""
        assert "find_company_by_email" not in netsuite.calls
        assert netsuite.created_customers[0].email == ""

    def test_company_kept_without_billing_name(self, netsuite):
        company = netsuite.add_customer(is_person=False, company_name="Acme", email="a@x.com")
        order = make_order(build_order_data(BillingFirstName="", BillingLastName=""))

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(order))

        assert resolution.customer_id == company.id
        assert resolution.person_enforced is False

    def test_company_kept_when_enforcement_fails(self, netsuite, order):
        company = netsuite.add_customer(is_person=False, company_name="Acme", email="a@x.com")

        async def broken(entity_id, parent_id):
            raise RuntimeError("timeout")
        netsuite.find_person_by_entity_id = broken

        assert run(CustomerResolver(netsuite).resolve(order)) == company.id


# =============================================================================
# Created customer without a known id
# =============================================================================

class TestCreatedIdRecovery:

    def test_location_id_is_used(self, netsuite, order):
        customer_id = run(CustomerResolver(netsuite).resolve(order))
        assert customer_id in netsuite.customers
        assert "find_person_by_name" not in netsuite.calls

    def test_lookup_when_location_missing(self, netsuite, order):
        netsuite.hide_created_customer_ids = True

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(order))

        company = netsuite.companies[0]
        person = netsuite.customers[resolution.customer_id]
        assert person.is_person is True
        assert person.parent_id == company.id
        assert resolution.is_person is True
        assert netsuite.calls.count("find_company_by_email") == 2
        assert netsuite.calls.count("find_person_by_name") == 1

    def test_person_child_is_not_confused_with_its_company(self, netsuite):
        netsuite.hide_created_customer_ids = True
        data = build_order_data()
        data["ShipmentList"][0].update({"ShipmentFirstName": "Bob", "ShipmentLastName": "Jones"})

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(make_order(data)))

        person = netsuite.customers[resolution.customer_id]
        assert person.is_person is True
        assert person.first_name == "Bob"
        assert person.parent_id == netsuite.companies[0].id
        assert len(netsuite.persons) == 1

    def test_dropship_person_found_by_name(self, netsuite, dropship_order):
        netsuite.hide_created_customer_ids = True

        resolution = run(CustomerResolver(netsuite).resolve_with_trace(dropship_order))

        person = netsuite.customers[resolution.customer_id]
        assert person.last_name == "Doe: INV-77"
        assert netsuite.calls.count("find_person_by_name") == 2

    def test_single_lookup_then_error(self, netsuite, dropship_order):
        netsuite.hide_created_customer_ids = True

        async def nobody(first_name, last_name, parent_id=None):
            netsuite.calls.append("find_person_by_name")
            return None
        netsuite.find_person_by_name = nobody

        with pytest.raises(CustomerResolutionError):
            run(CustomerResolver(netsuite).resolve(dropship_order))

        # once before creating, once after
        assert netsuite.calls.count("find_person_by_name") == 2

    def test_company_without_email_cannot_be_recovered(self, netsuite):
        netsuite.hide_created_customer_ids = True
        data = build_order_data(QuestionList=[])

        with pytest.raises(CustomerResolutionError):
            run(CustomerResolver(netsuite).resolve(make_order(data)))

        assert "find_company_by_email" not in netsuite.calls


class TestStepNames:

    def test_chains_are_inspectable(self):
        resolver = CustomerResolver(FakeNetSuite())
        assert resolver.step_names(ResolutionStrategy.DROPSHIP) == [
            "find_parent_company", "find_dropship_person", "create_dropship_person",
        ]
        assert resolver.step_names(ResolutionStrategy.REGULAR) == [
            "find_store_company", "find_parent_company", "create_store_company",
        ]

    def test_strategy_from_payment_method(self):
        assert ResolutionStrategy.for_payment_method("Dropship to Customer") == ResolutionStrategy.DROPSHIP
        assert ResolutionStrategy.for_payment_method("dropship to customer") == ResolutionStrategy.REGULAR
        assert ResolutionStrategy.for_payment_method(None) == ResolutionStrategy.REGULAR


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
