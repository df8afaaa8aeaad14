"""Item resolution chain.

Maps a storefront SKU to an ERP item id. Steps, in order:
1. exact_match   - itemId IS "<sku>" across the item record types
2. partial_match - itemId CONTAIN "<sku>" (logged at warning)
3. create_item   - create a new item, when create_missing_items is on
4. default_item  - the configured fallback item (logged at warning)

The default step always resolves, so the chain never runs dry.
"""

from decimal import Decimal
from typing import Awaitable, Callable, List, Optional, Protocol, Tuple

from connectors.erp_base import CreatedRecordRef, ItemRef
from core.errors import ItemResolutionError
from core.models import OrderItem, SyncSettings
from core.observability import get_logger
from order_synthesizer.models import ItemMatchType, ResolvedItem

logger = get_logger(__name__)


class ItemCatalog(Protocol):
    """Item search and creation. The NetSuite connector implements this."""

    async def search_items(self, identifier: str, exact: bool = True) -> Optional[ItemRef]:
        ...

    async def create_item(self, identifier: str, description: str, price: Decimal) -> CreatedRecordRef:
        ...


ItemStep = Callable[[OrderItem, str], Awaitable[Optional[str]]]


def parse_item_id(value) -> Optional[int]:
    """Positive integer item id, or None."""
    try:
        item_id = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return item_id if item_id > 0 else None


class ItemResolver:
    """Runs the item resolution chain for order lines."""

    def __init__(self, catalog: ItemCatalog, settings: SyncSettings):
        self.catalog = catalog
        self.settings = settings
        self._steps: List[Tuple[str, ItemMatchType, ItemStep]] = [
            ("exact_match", ItemMatchType.EXACT, self._exact_match),
            ("partial_match", ItemMatchType.PARTIAL, self._partial_match),
            ("create_item", ItemMatchType.CREATED, self._create_item),
            ("default_item", ItemMatchType.DEFAULT, self._default_item),
        ]

    @property
    def step_names(self) -> List[str]:
        return [name for name, _, _ in self._steps]

    async def resolve(self, item: OrderItem) -> ResolvedItem:
        """Resolve one order line.

        Raises:
            ItemResolutionError: The line has no SKU, or the chain produced
                an id that is not a positive integer
        """
        sku = item.identifier
        if not sku:
            raise ItemResolutionError("No item identifier (ItemID or OrderItemID) found in order item")

        tried: List[str] = []
        for name, match_type, step in self._steps:
            tried.append(name)
            raw_id = await step(item, sku)
            if raw_id is None:
                continue

            item_id = parse_item_id(raw_id)
            if item_id is None:
                raise ItemResolutionError(
                    f"Invalid item ID '{raw_id}' for item '{sku}'. "
                    f"Check NetSuite default_item_id configuration."
                )
            logger.info(f"SKU {sku!r} -> item {item_id} ({match_type.value})")
            return ResolvedItem(sku=sku, item_id=item_id, match_type=match_type, steps=tried)

        raise ItemResolutionError(f"No item resolved for SKU '{sku}'")

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _exact_match(self, item: OrderItem, sku: str) -> Optional[str]:
        found = await self.catalog.search_items(sku, exact=True)
        return found.id if found else None

    async def _partial_match(self, item: OrderItem, sku: str) -> Optional[str]:
        found = await self.catalog.search_items(sku, exact=False)
        if found:
            logger.warning(f"SKU {sku!r} only matched item {found.id} ({found.code}) partially")
            return found.id
        return None

    async def _create_item(self, item: OrderItem, sku: str) -> Optional[str]:
        if not self.settings.create_missing_items:
            return None
        try:
            created = await self.catalog.create_item(sku, item.description, item.unit_price)
        except Exception as e:
            logger.error(f"Creating item for SKU {sku!r} failed, using default item: {e}")
            return None
        if not created.id:
            logger.warning(f"Item for SKU {sku!r} created without a usable id, using default item")
        return created.id

    async def _default_item(self, item: OrderItem, sku: str) -> Optional[str]:
        logger.warning(f"No item found for SKU {sku!r}, using default item {self.settings.default_item_id}")
        return str(self.settings.default_item_id)
