"""Sales order synthesis.

Builds a SalesOrderDraft from a storefront order and a resolved customer,
then submits it once:

1. Re-validate the customer with a direct lookup (person enforcement again
   if it turned out to be a company)
2. Resolve every order line to an ERP item (see items.py)
3. Optionally add tax and shipping lines when their items validate
4. Reconcile line totals against the storefront's amounts
5. Submit

The synthesizer never checks for an existing order; the externalId
(3DCART_<OrderID>) is what makes a duplicate visible.
"""

import time
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, Tuple

from connectors.erp_base import (
    CreatedRecordRef,
    CustomerRef,
    LineItemRequest,
    LineSource,
    SalesOrderDraft,
    ShippingAddress,
)
from core.errors import CustomerResolutionError, SalesOrderError, TotalMismatchError
from core.models import ExternalOrder, SyncSettings
from core.observability import get_logger, record_processing_time, with_correlation
from customer_resolver import CustomerResolver
from order_synthesizer.items import ItemCatalog, ItemResolver
from order_synthesizer.models import ReconciliationResult, ResolvedItem, SynthesisResult
from order_synthesizer.reconcile import reconcile_totals

logger = get_logger(__name__)


INTEGRATION_SOURCE = "3DCart Integration"
SHIP_IMMEDIATE = 2

_ORDER_DATE_FORMATS = (
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


class SalesOrderCatalog(ItemCatalog, Protocol):
    """Everything the synthesizer needs from the ERP connector."""

    async def get_customer_row(self, customer_id: str) -> Optional[CustomerRef]:
        ...

    async def validate_item(self, item_id: str):
        ...

    async def create_sales_order(self, draft: SalesOrderDraft) -> CreatedRecordRef:
        ...


def parse_order_date(value: str) -> Optional[str]:
    """Storefront OrderDate -> YYYY-MM-DD, or None when unparsable."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        pass
    for fmt in _ORDER_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue
    logger.warning(f"Unrecognized OrderDate {value!r}, leaving tranDate unset")
    return None


def build_shipping_address(order: ExternalOrder) -> Optional[ShippingAddress]:
    """Ship-to block from the first shipment; addressee carries the company on its own line."""
    if not order.shipments:
        return None
    shipment = order.primary_shipment
    addressee = shipment.full_name
    if shipment.company:
        addressee = f"{addressee}\n{shipment.company}"
    return ShippingAddress(
        addressee=addressee,
        phone=shipment.phone,
        addr1=shipment.address,
        addr2=shipment.address2,
        city=shipment.city,
        state=shipment.state,
        zip=shipment.zip_code,
        country=shipment.country or "US",
    )


class OrderSynthesizer:
    """Builds and submits sales orders.

    Example:
        synthesizer = OrderSynthesizer(connector, CustomerResolver(connector), settings)
        result = await synthesizer.synthesize(order, customer_id)
        print(result.sales_order_id, result.reconciliation.matches)
    """

    def __init__(
        self,
        catalog: SalesOrderCatalog,
        customer_resolver: CustomerResolver,
        settings: Optional[SyncSettings] = None,
    ):
        self.catalog = catalog
        self.customer_resolver = customer_resolver
        self.settings = settings or SyncSettings()
        self.item_resolver = ItemResolver(catalog, self.settings)

    async def synthesize(self, order: ExternalOrder, customer_id: str) -> SynthesisResult:
        """Build the draft and submit it once.

        Raises:
            CustomerResolutionError: The customer does not exist
            ItemResolutionError: A line could not be mapped to an item
            SalesOrderError: No lines, or the totals disagree and
                fail_on_total_mismatch is set
            NSApiError: The submission was rejected
        """
        start_time = time.time()

        with with_correlation(order_id=order.order_id, stage="SYNTHESIZE_ORDER"):
            draft, resolved, reconciliation = await self.build_draft(order, customer_id)

            created = await self.catalog.create_sales_order(draft)
            if created.id:
                logger.info(f"Sales order {created.id} created for order {order.order_id}")
            else:
                logger.warning(f"Sales order for order {order.order_id} created but its id is unknown")

        record_processing_time("synthesize", (time.time() - start_time) * 1000)

        return SynthesisResult(
            order_id=order.order_id,
            customer_id=draft.customer_id,
            external_id=draft.external_id,
            sales_order_id=created.id,
            draft=draft,
            items=resolved,
            reconciliation=reconciliation,
        )

    async def build_draft(
        self,
        order: ExternalOrder,
        customer_id: str,
    ) -> Tuple[SalesOrderDraft, List[ResolvedItem], Optional[ReconciliationResult]]:
        """Everything up to, but not including, submission."""
        customer = await self._validated_customer(order, customer_id)

        lines: List[LineItemRequest] = []
        resolved: List[ResolvedItem] = []

        for item in order.items:
            resolution = await self.item_resolver.resolve(item)
            resolved.append(resolution)
            lines.append(LineItemRequest(
                item_id=resolution.item_id,
                quantity=item.quantity,
                rate=item.rate,
                is_taxable=self.settings.sales_order_taxable,
                description=item.description or None,
                source=LineSource.ORDER_ITEM,
                source_sku=resolution.sku,
            ))

        if self.settings.include_tax_as_line_item:
            tax_line = await self._charge_line(LineSource.TAX, self.settings.tax_item_id, order.sales_tax)
            if tax_line:
                lines.append(tax_line)

        if self.settings.include_shipping_as_line_item:
            shipping_line = await self._charge_line(LineSource.SHIPPING, self.settings.shipping_item_id, order.shipping_cost)
            if shipping_line:
                lines.append(shipping_line)

        if self.settings.include_discount_as_line_item and order.order_discount > 0:
            logger.warning(
                f"Discount {order.order_discount} not added as a line; "
                f"OrderAmount already reflects it"
            )

        reconciliation = None
        if self.settings.validate_totals:
            reconciliation = self._reconcile(order, lines)

        if not lines:
            raise SalesOrderError("No valid items found in order", order.order_id)

        draft = SalesOrderDraft(
            customer_id=customer.id,
            subsidiary_id=self.settings.default_subsidiary_id,
            department_id=self.settings.default_department_id,
            location_id=self.settings.default_location_id,
            is_taxable=self.settings.sales_order_taxable,
            tran_date=parse_order_date(order.order_date),
            memo=f"Order imported from 3DCart - Order #{order.order_id}",
            external_id=order.external_id,
            other_ref_num=order.other_ref_num or None,
            customer_comments=order.customer_comments or None,
            shipping_address=build_shipping_address(order),
            items=lines,
            custom_fields={
                "custbodycustbody4": INTEGRATION_SOURCE,
                "custbodyship_immediate": SHIP_IMMEDIATE,
            },
        )
        return draft, resolved, reconciliation

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _validated_customer(self, order: ExternalOrder, customer_id: str) -> CustomerRef:
        customer = await self.catalog.get_customer_row(customer_id)
        if customer is None:
            raise CustomerResolutionError(f"Customer {customer_id} not found in NetSuite", order.order_id)

        if not customer.is_person:
            logger.warning(f"Customer {customer_id} is a company, enforcing a person customer")
            customer = await self.customer_resolver.ensure_person(customer, order)
        return customer

    async def _charge_line(self, source: LineSource, item_id: int, amount: Decimal) -> Optional[LineItemRequest]:
        """Tax or shipping line, only for a positive amount and a usable item."""
        if amount <= 0:
            return None

        validation = await self.catalog.validate_item(str(item_id))
        if not (validation.exists and validation.usable):
            logger.warning(
                f"{source.value} item {item_id} is not usable "
                f"({validation.error or 'inactive or not a sale item'}), skipping {source.value} line of {amount}"
            )
            return None

        return LineItemRequest(
            item_id=item_id,
            quantity=Decimal("1"),
            rate=amount,
            is_taxable=False,
            source=source,
        )

    def _reconcile(self, order: ExternalOrder, lines: List[LineItemRequest]) -> ReconciliationResult:
        result = reconcile_totals(order, lines, self.settings.total_tolerance)

        if order.order_discount > 0:
            logger.info(f"Order discount {order.order_discount} is built into OrderAmount")

        if result.matches:
            logger.info(f"Line total {result.item_total} matches target subtotal {result.target_subtotal}")
            return result

        message = (
            f"Line total {result.item_total} differs from target subtotal "
            f"{result.target_subtotal} by {result.difference}"
        )
        if self.settings.fail_on_total_mismatch:
            raise TotalMismatchError(message, order.order_id)
        logger.warning(message + "; creating the order with line totals as-is")
        return result
