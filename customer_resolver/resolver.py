"""Customer Resolver Algorithm.

This module decides which ERP customer a storefront order belongs to:
1. Extracts and validates the checkout email (QuestionID 1)
2. Picks a strategy from the payment method (dropship or regular)
3. Runs that strategy's fallback chain until a step resolves a customer
4. Enforces that the customer attached to a sales order is a person

Each chain is an ordered list of named steps. A step returns a customer to
stop the chain or None to move on; preparatory steps (parent lookup) always
move on. The executed steps are returned in the resolution trace.
"""

import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from connectors.erp_base import (
    AddressBookEntry,
    CreatedRecordRef,
    CustomerDraft,
    CustomerRef,
)
from core.errors import CustomerResolutionError
from core.models import ExternalOrder, is_valid_email
from core.observability import get_logger, with_correlation
from customer_resolver.models import (
    CustomerResolution,
    ResolutionStep,
    ResolutionStrategy,
    StepOutcome,
)

logger = get_logger(__name__)


class CustomerDirectory(Protocol):
    """Customer lookups and creation the resolver needs.

    The NetSuite connector implements this. Every search returns the first
    match or None.
    """

    async def find_company_by_contact(self, email: str, phone: str) -> Optional[CustomerRef]:
        ...

    async def find_company_by_email(self, email: str) -> Optional[CustomerRef]:
        ...

    async def find_person_by_name(
        self,
        first_name: str,
        last_name: str,
        parent_id: Optional[str] = None,
    ) -> Optional[CustomerRef]:
        ...

    async def find_person_by_entity_id(self, entity_id: str, parent_id: str) -> Optional[CustomerRef]:
        ...

    async def create_customer(self, draft: CustomerDraft) -> CreatedRecordRef:
        ...


# =============================================================================
# Draft Builders
# =============================================================================

def default_address(order: ExternalOrder) -> str:
    """Billing address as "addr, city, state, zip" (empty parts skipped)."""
    parts = [order.billing_address, order.billing_city, order.billing_state, order.billing_zip_code]
    return ", ".join(part for part in parts if part)


def address_book(order: ExternalOrder) -> List[AddressBookEntry]:
    """Billing and shipping address blocks for a new customer.

    The billing block needs a billing address or city; the shipping block
    (first shipment) needs a shipment address or city.
    """
    entries = []

    if order.billing_address or order.billing_city:
        entries.append(AddressBookEntry(
            addressee=order.billing_company,
            addr1=order.billing_address,
            addr2=order.billing_address2,
            city=order.billing_city,
            state=order.billing_state,
            zip=order.billing_zip_code,
            country=order.billing_country or "US",
            default_billing=True,
            default_shipping=False,
        ))

    shipment = order.primary_shipment
    if shipment.address or shipment.city:
        entries.append(AddressBookEntry(
            addressee=shipment.company or shipment.full_name,
            addr1=shipment.address,
            addr2=shipment.address2,
            city=shipment.city,
            state=shipment.state,
            zip=shipment.zip_code,
            country=shipment.country,
            default_billing=False,
            default_shipping=True,
        ))

    return entries


def dropship_last_name(order: ExternalOrder) -> str:
    """Shipment last name suffixed with ": <prefix><number>" when either is set."""
    last_name = order.primary_shipment.last_name
    if order.invoice_number_prefix or order.invoice_number:
        last_name += f": {order.invoice_number_prefix}{order.invoice_number}"
    return last_name


def build_dropship_draft(order: ExternalOrder, parent_id: Optional[str]) -> CustomerDraft:
    """Person record for the ship-to party. Never carries an email."""
    shipment = order.primary_shipment
    return CustomerDraft(
        is_person=True,
        first_name=shipment.first_name,
        last_name=dropship_last_name(order),
        email="",
        phone=shipment.phone,
        parent_id=parent_id,
        default_address=default_address(order) or None,
        addresses=address_book(order),
    )


def build_regular_draft(order: ExternalOrder, email: str, parent_id: Optional[str]) -> CustomerDraft:
    """Company record named after the billing company, else the ship-to name."""
    shipment = order.primary_shipment
    return CustomerDraft(
        is_person=False,
        company_name=order.billing_company or shipment.full_name,
        email=email,
        phone=shipment.phone,
        parent_id=parent_id,
        default_address=default_address(order) or None,
        addresses=address_book(order),
    )


def build_person_draft(order: ExternalOrder, company: CustomerRef) -> CustomerDraft:
    """Person child of a company, named after the first shipment."""
    shipment = order.primary_shipment
    email = company.email or ""
    return CustomerDraft(
        is_person=True,
        first_name=shipment.first_name,
        last_name=shipment.last_name,
        email=email,
        phone=company.phone or order.billing_phone,
        parent_id=company.id,
        second_email=email,
        default_address=default_address(order) or None,
        addresses=address_book(order),
    )


# =============================================================================
# Resolver
# =============================================================================

@dataclass
class _ResolutionState:
    order: ExternalOrder
    email: str
    parent: Optional[CustomerRef] = None
    created: bool = False
    notes: Dict[str, str] = field(default_factory=dict)


Step = Callable[[_ResolutionState], Awaitable[Optional[CustomerRef]]]


class CustomerResolver:
    """Resolves a storefront order to an ERP customer id.

    Resolution strategy:
    - DROPSHIP: find_parent_company -> find_dropship_person -> create_dropship_person
    - REGULAR: find_store_company -> find_parent_company -> create_store_company
    - Then, always: the customer must be a person (company -> person child)

    Example:
        resolver = CustomerResolver(netsuite_connector)
        customer_id = await resolver.resolve(order)

        resolution = await resolver.resolve_with_trace(order)
        print(resolution.step_names)
    """

    def __init__(self, directory: CustomerDirectory):
        self.directory = directory
        self._chains: Dict[ResolutionStrategy, List[Tuple[str, Step]]] = {
            ResolutionStrategy.DROPSHIP: [
                ("find_parent_company", self._find_parent_company),
                ("find_dropship_person", self._find_dropship_person),
                ("create_dropship_person", self._create_dropship_person),
            ],
            ResolutionStrategy.REGULAR: [
                ("find_store_company", self._find_store_company),
                ("find_parent_company", self._find_parent_company),
                ("create_store_company", self._create_store_company),
            ],
        }

    def step_names(self, strategy: ResolutionStrategy) -> List[str]:
        """Names of a strategy's steps, in execution order."""
        return [name for name, _ in self._chains[strategy]]

    async def resolve(self, order: ExternalOrder) -> str:
        """Customer id to attach to the order's sales order."""
        resolution = await self.resolve_with_trace(order)
        return resolution.customer_id

    async def resolve_with_trace(self, order: ExternalOrder) -> CustomerResolution:
        """Resolve and return the full trace.

        Raises:
            CustomerResolutionError: No step produced a customer, or a created
                customer's id could not be determined
        """
        start_time = time.time()
        strategy = ResolutionStrategy.for_payment_method(order.billing_payment_method)

        email = order.customer_email
        if email and not is_valid_email(email):
            logger.warning(f"Checkout email {email!r} is invalid, ignoring it")
            email = ""

        state = _ResolutionState(order=order, email=email)
        steps: List[ResolutionStep] = []
        customer: Optional[CustomerRef] = None

        with with_correlation(order_id=order.order_id, stage="RESOLVE_CUSTOMER"):
            logger.info(f"Resolving customer with {strategy.value} strategy")

            for name, step in self._chains[strategy]:
                customer = await step(state)
                steps.append(ResolutionStep(
                    name=name,
                    outcome=StepOutcome.RESOLVED if customer else StepOutcome.NEXT,
                    customer_id=customer.id if customer else None,
                    detail=state.notes.get(name),
                ))
                if customer is not None:
                    break

            if customer is None:
                raise CustomerResolutionError(
                    f"No customer resolved for order {order.order_id} "
                    f"(steps: {', '.join(s.name for s in steps)})",
                    order.order_id,
                )

            resolved = await self.ensure_person(customer, order)
            if resolved.id != customer.id:
                steps.append(ResolutionStep(
                    name="ensure_person",
                    outcome=StepOutcome.RESOLVED,
                    customer_id=resolved.id,
                    detail=f"company {customer.id} replaced by person {resolved.id}",
                ))

        logger.info(f"Resolved order {order.order_id} to customer {resolved.id}")
        return CustomerResolution(
            customer_id=resolved.id,
            strategy=strategy,
            is_person=resolved.is_person,
            created=state.created,
            parent_id=state.parent.id if state.parent else None,
            email=email,
            person_enforced=resolved.is_person,
            steps=steps,
            resolution_time_ms=int((time.time() - start_time) * 1000),
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _find_parent_company(self, state: _ResolutionState) -> Optional[CustomerRef]:
        """Company matching the billing email or phone. Never resolves."""
        order = state.order
        if not order.billing_email and not order.billing_phone:
            state.notes["find_parent_company"] = "no billing email or phone"
            return None

        try:
            state.parent = await self.directory.find_company_by_contact(order.billing_email, order.billing_phone)
        except Exception as e:
            logger.error(f"Parent company lookup failed, continuing without parent: {e}")
            state.notes["find_parent_company"] = f"lookup failed: {e}"
            return None

        if state.parent:
            logger.info(f"Found parent company {state.parent.id}")
            state.notes["find_parent_company"] = f"parent {state.parent.id}"
        return None

    async def _find_dropship_person(self, state: _ResolutionState) -> Optional[CustomerRef]:
        draft = build_dropship_draft(state.order, self._parent_id(state))
        try:
            return await self.directory.find_person_by_name(draft.first_name, draft.last_name, draft.parent_id)
        except Exception as e:
            logger.error(f"Dropship person lookup failed: {e}")
            return None

    async def _create_dropship_person(self, state: _ResolutionState) -> Optional[CustomerRef]:
        draft = build_dropship_draft(state.order, self._parent_id(state))
        state.created = True
        return await self._create(draft, state.order)

    async def _find_store_company(self, state: _ResolutionState) -> Optional[CustomerRef]:
        if not state.email:
            state.notes["find_store_company"] = "no valid checkout email"
            return None
        try:
            return await self.directory.find_company_by_email(state.email)
        except Exception as e:
            logger.error(f"Store company lookup failed: {e}")
            return None

    async def _create_store_company(self, state: _ResolutionState) -> Optional[CustomerRef]:
        draft = build_regular_draft(state.order, state.email, self._parent_id(state))
        state.created = True
        return await self._create(draft, state.order)

    @staticmethod
    def _parent_id(state: _ResolutionState) -> Optional[str]:
        return state.parent.id if state.parent else None

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    async def _create(self, draft: CustomerDraft, order: ExternalOrder) -> CustomerRef:
        """Create a customer and make sure its id is known.

        When the ERP accepted the record without saying which id it got, the
        new record is looked up once: a person by its names under its parent,
        a company by its email.
        """
        created = await self.directory.create_customer(draft)

        if not created.id:
            logger.warning(f"Customer created without a usable id, looking it up again")
            found = await self._find_created(draft)
            if found is None or not found.id:
                raise CustomerResolutionError(
                    "Customer created but could not retrieve customer ID from Location header or lookup",
                    order.order_id,
                )
            return found

        return CustomerRef(
            id=created.id,
            is_person=draft.is_person,
            first_name=draft.first_name or None,
            last_name=draft.last_name or None,
            company_name=draft.company_name or None,
            email=draft.email or None,
            phone=draft.phone or None,
            parent_id=draft.parent_id,
        )

    async def _find_created(self, draft: CustomerDraft) -> Optional[CustomerRef]:
        if draft.is_person:
            return await self.directory.find_person_by_name(draft.first_name, draft.last_name, draft.parent_id)
        if draft.email:
            return await self.directory.find_company_by_email(draft.email)
        return None

    # -------------------------------------------------------------------------
    # Person Enforcement
    # -------------------------------------------------------------------------

    async def ensure_person(self, customer: CustomerRef, order: ExternalOrder) -> CustomerRef:
        """Return a person-type customer for the order.

        A company-type customer is replaced by its person child whose entityid
        is the billing name, created from the shipment names when missing.
        The company is returned unchanged when there is no billing name or
        anything fails.
        """
        if customer.is_person:
            return customer

        entity_id = f"{order.billing_first_name} {order.billing_last_name}".strip()
        if not entity_id:
            logger.warning(f"No billing name to find a person under company {customer.id}, keeping company")
            return customer

        try:
            person = await self.directory.find_person_by_entity_id(entity_id, customer.id)
            if person is not None:
                logger.info(f"Using person {person.id} under company {customer.id}")
                return person

            logger.info(f"No person {entity_id!r} under company {customer.id}, creating one")
            return await self._create(build_person_draft(order, customer), order)
        except Exception as e:
            logger.error(f"Person enforcement failed for company {customer.id}, keeping company: {e}")
            return customer
