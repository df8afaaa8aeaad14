"""NetSuite ERP Connector.

Implements the ERPConnector interface for NetSuite (REST record API plus
SuiteQL). Also carries the NetSuite-only lookups the customer resolver and
order synthesizer need: company/person searches, item search and creation,
campaigns and leads.

All searches take the first matching row.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from connectors.erp_base import (
    ERPConnector,
    ERPConfig,
    ERPConnectionStatus,
    ERPEntityType,
    register_connector,
    # Normalized types
    AddressBookEntry,
    CampaignRef,
    ConnectionTestResult,
    CreatedRecordRef,
    CustomerDraft,
    CustomerRef,
    ItemRef,
    LineItemRequest,
    SalesOrderDraft,
    SalesOrderRef,
)
from connectors.netsuite import ns_fields
from connectors.netsuite.ns_auth import DEFAULT_SIGNATURE_METHOD, NSAuthConfig, RequestSigner
from connectors.netsuite.ns_client import (
    ApiGateway,
    NSApiConfig,
    NSApiError,
    NSNotFoundError,
    NormalizedResult,
    extract_id_from_location,
)
from connectors.netsuite.ns_fields import compact, truncate
from connectors.netsuite.ns_models import NSCampaign, NSCustomer, NSItem, NSSalesOrderRow
from connectors.netsuite.ns_query import QueryExecutor, SuiteQL, eq, ieq
from core.models import SyncSettings
from core.observability import get_logger

logger = get_logger(__name__)


CUSTOMER_COLUMNS = ("id", "firstName", "lastName", "email", "companyName", "phone", "isperson", "parent")
SALES_ORDER_COLUMNS = ("id", "tranid", "externalid", "status", "trandate", "entity")

# Record endpoints searched for an item SKU, most specific first
ITEM_SEARCH_ENDPOINTS = ("/inventoryItem", "/noninventoryItem", "/serviceItem", "/item")


@dataclass
class ItemValidation:
    """Outcome of checking an item id before it is put on a line."""
    item_id: str
    exists: bool
    usable: bool = False
    display_name: Optional[str] = None
    error: Optional[str] = None


# =============================================================================
# Payload Builders
# =============================================================================

def _number(value: Decimal):
    """JSON-safe number: int when integral, float otherwise."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _address_payload(entry: AddressBookEntry, label: str) -> Dict[str, Any]:
    return compact({
        "country": truncate(entry.country, ns_fields.COUNTRY_MAX, f"{label}_country"),
        "zip": truncate(entry.zip, ns_fields.ZIP_MAX, f"{label}_zip"),
        "addressee": truncate(entry.addressee, ns_fields.ADDRESSEE_MAX, f"{label}_addressee"),
        "addr1": truncate(entry.addr1, ns_fields.ADDR_MAX, f"{label}_addr1"),
        "addr2": truncate(entry.addr2, ns_fields.ADDR_MAX, f"{label}_addr2"),
        "city": truncate(entry.city, ns_fields.CITY_MAX, f"{label}_city"),
        "state": truncate(entry.state, ns_fields.STATE_MAX, f"{label}_state"),
    })


def build_customer_payload(draft: CustomerDraft, subsidiary_id: int) -> Dict[str, Any]:
    """Transform a CustomerDraft into a NetSuite customer record body."""
    payload: Dict[str, Any] = compact({
        "companyName": truncate(draft.company_name, ns_fields.COMPANY_NAME_MAX, "companyName"),
        "firstName": truncate(draft.first_name, ns_fields.FIRST_NAME_MAX, "firstName"),
        "lastName": truncate(draft.last_name, ns_fields.LAST_NAME_MAX, "lastName"),
        "phone": truncate(draft.phone, ns_fields.PHONE_MAX, "phone"),
    })
    payload["email"] = ns_fields.clean_email(draft.email)
    payload["isPerson"] = draft.is_person
    payload["subsidiary"] = {"id": subsidiary_id}

    if draft.parent_id:
        payload["parent"] = {"id": int(draft.parent_id)}
    if draft.second_email is not None:
        payload["custentity2nd_email_address"] = draft.second_email
    if draft.default_address:
        payload["defaultAddress"] = draft.default_address

    items = []
    for entry in draft.addresses:
        label = "billing" if entry.default_billing else "shipping"
        address = _address_payload(entry, label)
        if address:
            items.append({
                "defaultBilling": entry.default_billing,
                "defaultShipping": entry.default_shipping,
                "addressbookaddress": address,
            })
    if items:
        payload["addressbook"] = {"items": items}

    return payload


def _line_payload(line: LineItemRequest) -> Dict[str, Any]:
    return {
        "item": {"id": line.item_id},
        "quantity": _number(line.quantity),
        "rate": _number(line.rate),
        "istaxable": line.is_taxable,
    }


def build_sales_order_payload(draft: SalesOrderDraft) -> Dict[str, Any]:
    """Transform a SalesOrderDraft into a NetSuite salesOrder record body."""
    payload: Dict[str, Any] = {
        "entity": {"id": int(draft.customer_id)},
        "subsidiary": {"id": draft.subsidiary_id},
        "department": {"id": draft.department_id},
        "istaxable": draft.is_taxable,
        "memo": draft.memo,
        "externalId": draft.external_id,
    }
    if draft.location_id:
        payload["location"] = {"id": draft.location_id}
    if draft.tran_date:
        payload["tranDate"] = draft.tran_date
    if draft.other_ref_num:
        payload["otherrefnum"] = draft.other_ref_num
    if draft.customer_comments:
        payload["custbody2"] = draft.customer_comments

    if draft.shipping_address is not None:
        address = draft.shipping_address
        payload["shippingAddress"] = compact({
            "addressee": address.addressee,
            "addrphone": address.phone,
            "addr1": address.addr1,
            "addr2": address.addr2,
            "city": address.city,
            "state": address.state,
            "zip": address.zip,
            "country": address.country or "US",
        })

    payload.update(draft.custom_fields)
    payload["item"] = {"items": [_line_payload(line) for line in draft.items]}
    return payload


# =============================================================================
# Normalization
# =============================================================================

def _customer_ref(customer: NSCustomer) -> CustomerRef:
    return CustomerRef(
        id=customer.id or "",
        is_person=customer.is_person,
        first_name=customer.first_name,
        last_name=customer.last_name,
        company_name=customer.company_name,
        email=customer.email,
        phone=customer.phone,
        parent_id=customer.parent_id,
    )


def _sales_order_ref(row: NSSalesOrderRow) -> SalesOrderRef:
    return SalesOrderRef(
        id=row.id or "",
        tran_id=row.tran_id,
        external_id=row.external_id,
        status=row.status,
        tran_date=row.tran_date,
        customer_id=row.entity_id,
    )


def _item_ref(item: NSItem, code: Optional[str] = None) -> ItemRef:
    return ItemRef(
        id=item.id or "",
        code=item.item_id or code,
        name=item.display_name,
        is_active=not item.is_inactive,
        is_sale_item=item.is_sale_item,
    )


def _location_basename(location: Optional[str]) -> Optional[str]:
    if not location:
        return None
    return location.rstrip("/").rsplit("/", 1)[-1] or None


# =============================================================================
# Connector
# =============================================================================

@register_connector("netsuite")
class NetSuiteConnector(ERPConnector):
    """NetSuite connector implementation.

    Required configuration:
    - account_id: NetSuite account id (OAuth realm)
    - base_url: https://<account>.suitetalk.api.netsuite.com
    - auth_config.consumer_key / consumer_secret / token_id / token_secret

    Optional configuration:
    - auth_config.signature_method: "HMAC-SHA256" (default) or "HMAC-SHA1"
    - custom_settings: SyncSettings overrides (subsidiary, item type, ...)
    """

    def __init__(
        self,
        config: ERPConfig,
        gateway: Optional[ApiGateway] = None,
        settings: Optional[SyncSettings] = None,
    ):
        super().__init__(config)

        if gateway is None:
            auth_config = NSAuthConfig(
                account_id=config.account_id or "",
                consumer_key=config.auth_config.get("consumer_key", ""),
                consumer_secret=config.auth_config.get("consumer_secret", ""),
                token_id=config.auth_config.get("token_id", ""),
                token_secret=config.auth_config.get("token_secret", ""),
                signature_method=config.auth_config.get("signature_method", DEFAULT_SIGNATURE_METHOD.value),
            )
            gateway = ApiGateway(RequestSigner(auth_config), NSApiConfig(base_url=config.base_url or ""))

        self.gateway = gateway
        self.executor = QueryExecutor(gateway)
        self.settings = settings or SyncSettings.model_validate(config.custom_settings)

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def connect(self) -> bool:
        """Open the gateway session."""
        await self.gateway.connect()
        self._connection_status = ERPConnectionStatus.CONNECTED
        return True

    async def disconnect(self) -> None:
        """Close the gateway session."""
        await self.gateway.disconnect()
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    async def __aenter__(self) -> "NetSuiteConnector":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def test_connection(self) -> ConnectionTestResult:
        """GET /customer?limit=1 as an authenticated health check."""
        details = {"account_id": self.config.account_id, "environment": self.config.environment}
        try:
            result = await self.gateway.execute("GET", "/customer", query_params={"limit": 1})
        except NSApiError as e:
            logger.error(f"NetSuite connection test failed: {e}")
            self._connection_status = ERPConnectionStatus.FAILED
            return ConnectionTestResult(
                success=False,
                status_code=e.status_code or None,
                error=str(e),
                details=details,
            )

        return ConnectionTestResult(
            success=True,
            status_code=result.status_code,
            response_time_ms=round(result.duration_ms, 2),
            details=details,
        )

    # =========================================================================
    # Customers
    # =========================================================================

    async def get_customer(self, customer_id: str) -> Optional[CustomerRef]:
        """GET /customer/<id>; None when NetSuite answers 404."""
        try:
            result = await self.gateway.execute("GET", f"/customer/{customer_id}")
        except NSNotFoundError:
            return None
        return _customer_ref(NSCustomer.model_validate(result.body))

    async def get_customer_row(self, customer_id: str) -> Optional[CustomerRef]:
        """Customer by id through SuiteQL (includes the isperson flag)."""
        query = SuiteQL.select(*CUSTOMER_COLUMNS).from_("customer").where_id("id", customer_id)
        return await self._first_customer(query)

    async def find_customer_by_email(self, email: str) -> Optional[CustomerRef]:
        """Any customer whose email matches, case-insensitive."""
        if not email:
            return None
        query = SuiteQL.select(*CUSTOMER_COLUMNS).from_("customer").where_ieq("email", email)
        return await self._first_customer(query)

    async def find_customer_by_phone(self, phone: str) -> Optional[CustomerRef]:
        """Any customer with exactly this phone number."""
        if not phone:
            return None
        query = SuiteQL.select(*CUSTOMER_COLUMNS).from_("customer").where_eq("phone", phone)
        return await self._first_customer(query)

    async def find_company_by_contact(self, email: str, phone: str) -> Optional[CustomerRef]:
        """Company-type customer matching the email OR the phone.

        Returns None without querying when both are empty.
        """
        conditions = []
        if email:
            conditions.append(ieq("email", email))
        if phone:
            conditions.append(eq("phone", phone))
        if not conditions:
            return None

        query = (
            SuiteQL.select(*CUSTOMER_COLUMNS)
            .from_("customer")
            .where_any(*conditions)
            .where_eq("isperson", False)
        )
        return await self._first_customer(query)

    async def find_company_by_email(self, email: str) -> Optional[CustomerRef]:
        """Company-type customer with this email, case-insensitive."""
        if not email:
            return None
        query = (
            SuiteQL.select(*CUSTOMER_COLUMNS)
            .from_("customer")
            .where_ieq("email", email)
            .where_eq("isperson", False)
        )
        return await self._first_customer(query)

    async def find_person_by_name(
        self,
        first_name: str,
        last_name: str,
        parent_id: Optional[str] = None,
    ) -> Optional[CustomerRef]:
        """Person-type customer by first/last name (case-insensitive) under a parent."""
        if not first_name and not last_name:
            return None

        query = SuiteQL.select(*CUSTOMER_COLUMNS).from_("customer")
        if first_name:
            query.where_ieq("firstName", first_name)
        if last_name:
            query.where_ieq("lastName", last_name)
        query.where_eq("isperson", True)
        if parent_id:
            query.where_id("parent", parent_id)
        return await self._first_customer(query)

    async def find_person_by_entity_id(self, entity_id: str, parent_id: str) -> Optional[CustomerRef]:
        """Person child of a company, matched on entityid ("First Last")."""
        query = (
            SuiteQL.select(*CUSTOMER_COLUMNS)
            .from_("customer")
            .where_ieq("entityid", entity_id)
            .where_id("parent", parent_id)
        )
        return await self._first_customer(query)

    async def _first_customer(self, query: SuiteQL) -> Optional[CustomerRef]:
        row = await self.executor.first(query)
        if row is None:
            return None
        return _customer_ref(NSCustomer.model_validate(row))

    async def create_customer(self, draft: CustomerDraft) -> CreatedRecordRef:
        """POST /customer.

        200/201 must carry the id in the body. 204 points at the new record
        through Location; when that is missing or unparsable the returned
        id is None and the caller decides how to recover.
        """
        payload = build_customer_payload(draft, self.settings.default_subsidiary_id)
        logger.debug(f"Customer payload: {payload}")

        result = await self.gateway.execute("POST", "/customer", body=payload)

        if result.status_code == 204 or not result.has_body:
            customer_id = extract_id_from_location(result.location, "customer")
        else:
            customer_id = result.body.get("id")
            if customer_id in (None, ""):
                raise NSApiError(
                    "Invalid response format from NetSuite customer creation",
                    result.status_code,
                    str(result.body),
                )
            customer_id = str(customer_id)

        logger.info(
            f"Created {'person' if draft.is_person else 'company'} customer "
            f"{customer_id or '(id unknown)'} (parent={draft.parent_id}, status={result.status_code})"
        )
        return self._created(ERPEntityType.CUSTOMER, customer_id, result)

    # =========================================================================
    # Sales Orders
    # =========================================================================

    async def create_sales_order(self, draft: SalesOrderDraft) -> CreatedRecordRef:
        """POST /salesOrder. The id may be None when Location is unusable."""
        payload = build_sales_order_payload(draft)
        logger.debug(f"Sales order payload: {payload}")

        result = await self.gateway.execute("POST", "/salesOrder", body=payload)
        sales_order_id = result.record_id
        if not sales_order_id:
            logger.warning(
                f"Sales order {draft.external_id} accepted (status {result.status_code}) "
                f"but no id in body or Location: {result.location!r}"
            )
        else:
            logger.info(f"Created sales order {sales_order_id} for {draft.external_id}")

        return self._created(ERPEntityType.SALES_ORDER, sales_order_id, result)

    async def get_sales_order(self, sales_order_id: str) -> Optional[SalesOrderRef]:
        """GET /salesOrder/<id>; None when NetSuite answers 404."""
        try:
            result = await self.gateway.execute("GET", f"/salesOrder/{sales_order_id}")
        except NSNotFoundError:
            return None
        return _sales_order_ref(NSSalesOrderRow.model_validate(result.body))

    async def get_sales_order_by_external_id(self, external_id: str) -> Optional[SalesOrderRef]:
        """Sales order carrying this externalId, via SuiteQL."""
        query = (
            SuiteQL.select(*SALES_ORDER_COLUMNS)
            .from_("transaction")
            .where_eq("recordtype", "salesorder")
            .where_eq("externalid", external_id)
        )
        row = await self.executor.first(query)
        if row is None:
            return None
        return _sales_order_ref(NSSalesOrderRow.model_validate(row))

    async def find_sales_orders_by_external_ids(self, external_ids: List[str]) -> List[SalesOrderRef]:
        """All sales orders whose externalId is in the list, one query."""
        if not external_ids:
            return []
        query = (
            SuiteQL.select(*SALES_ORDER_COLUMNS)
            .from_("transaction")
            .where_eq("recordtype", "salesorder")
            .where_in("externalid", external_ids)
        )
        rows = await self.executor.fetch_all(query)
        return [_sales_order_ref(NSSalesOrderRow.model_validate(row)) for row in rows]

    async def delete_sales_order(self, sales_order_id: str) -> bool:
        """DELETE /salesOrder/<id>. True on 200/204."""
        logger.info(f"Deleting sales order {sales_order_id}")
        result = await self.gateway.execute("DELETE", f"/salesOrder/{sales_order_id}")
        if result.status_code in (200, 204):
            return True
        logger.warning(f"Unexpected status {result.status_code} deleting sales order {sales_order_id}")
        return False

    # =========================================================================
    # Items
    # =========================================================================

    async def get_item(self, item_id: str) -> Optional[ItemRef]:
        """GET /item/<id>; None when NetSuite answers 404."""
        try:
            result = await self.gateway.execute("GET", f"/item/{item_id}")
        except NSNotFoundError:
            return None
        item = NSItem.model_validate(result.body)
        if not item.id:
            item = item.model_copy(update={"id": str(item_id)})
        return _item_ref(item)

    async def validate_item(self, item_id: str) -> ItemValidation:
        """Check that an item exists and can be sold (active and a sale item)."""
        try:
            item = await self.get_item(item_id)
        except NSApiError as e:
            logger.warning(f"Item {item_id} could not be validated: {e}")
            return ItemValidation(item_id=str(item_id), exists=False, error=str(e))

        if item is None:
            return ItemValidation(item_id=str(item_id), exists=False, error="Item does not exist")
        return ItemValidation(
            item_id=item.id,
            exists=True,
            usable=item.usable,
            display_name=item.name,
        )

    async def search_items(self, identifier: str, exact: bool = True) -> Optional[ItemRef]:
        """Find an item by SKU across the item record endpoints.

        Exact search uses `itemId IS "X"`, partial search `itemId CONTAIN "X"`.
        An endpoint that errors is skipped.
        """
        operator = "IS" if exact else "CONTAIN"
        sku = identifier.replace('"', '\\"')
        params = {"q": f'itemId {operator} "{sku}"', "limit": 1}

        for endpoint in ITEM_SEARCH_ENDPOINTS:
            try:
                result = await self.gateway.execute("GET", endpoint, query_params=params)
            except NSApiError as e:
                logger.debug(f"Item search on {endpoint} failed, skipping: {e}")
                continue

            items = result.body.get("items") or []
            if items:
                item = NSItem.model_validate(items[0])
                logger.info(f"Found item {item.id} for SKU {identifier!r} on {endpoint} ({'exact' if exact else 'partial'})")
                return _item_ref(item, code=identifier)

        return None

    async def create_item(self, identifier: str, description: str, price: Decimal) -> CreatedRecordRef:
        """POST /<item_type> with the storefront SKU as itemId."""
        payload = {
            "itemId": identifier,
            "displayName": description or identifier,
            "basePrice": _number(price),
            "includeChildren": False,
            "isInactive": False,
        }
        endpoint = f"/{self.settings.item_type}"
        result = await self.gateway.execute("POST", endpoint, body=payload)
        item_id = result.record_id
        logger.info(f"Created {self.settings.item_type} {item_id or '(id unknown)'} for SKU {identifier!r}")
        return self._created(ERPEntityType.ITEM, item_id, result)

    # =========================================================================
    # Campaigns and Leads
    # =========================================================================

    async def search_campaign(self, title: str) -> List[CampaignRef]:
        """Campaigns whose title matches exactly."""
        query = SuiteQL.select("title", "campaignId", "id").from_("SearchCampaign").where_eq("title", title)
        page = await self.executor.execute(query)
        campaigns = [NSCampaign.model_validate(row) for row in page.items]
        logger.info(f"Campaign search for {title!r} found {len(campaigns)}")
        return [
            CampaignRef(id=c.id or "", title=c.title, campaign_code=c.campaign_id)
            for c in campaigns
        ]

    async def create_campaign(self, data: Dict[str, Any]) -> CreatedRecordRef:
        """POST /campaign."""
        result = await self.gateway.execute("POST", "/campaign", body=data)
        return self._created(ERPEntityType.CAMPAIGN, self._posted_id(result), result)

    async def create_lead(self, data: Dict[str, Any]) -> CreatedRecordRef:
        """POST /lead."""
        result = await self.gateway.execute("POST", "/lead", body=data)
        return self._created(ERPEntityType.LEAD, self._posted_id(result), result)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _posted_id(result: NormalizedResult) -> Optional[str]:
        body_id = result.body.get("id") if result.body else None
        if body_id not in (None, ""):
            return str(body_id)
        return _location_basename(result.location)

    @staticmethod
    def _created(record_type: ERPEntityType, record_id: Optional[str], result: NormalizedResult) -> CreatedRecordRef:
        return CreatedRecordRef(
            record_type=record_type,
            id=record_id,
            status_code=result.status_code,
            location=result.location,
        )
