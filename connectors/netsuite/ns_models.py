"""NetSuite data models.

These are NetSuite-specific models that map to REST record and SuiteQL row
shapes. They are separate from the storefront models in /core/models/.

SuiteQL lowercases column names ("firstname") while record GETs use
camelCase ("firstName"), so each field accepts both spellings.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Value Parsers
# =============================================================================

_TRUE_FLAGS = {"t", "true", "1", "y", "yes"}


def parse_flag(value: Any) -> bool:
    """Normalize NetSuite boolean flags (true, 'T', 't', 1, '1')."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in _TRUE_FLAGS


def parse_ref_id(value: Any) -> Optional[str]:
    """Reference fields come back as 123, "123" or {"id": "123", ...}."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        value = value.get("id")
        if value is None or value == "":
            return None
    return str(value)


def _aliases(*names: str) -> AliasChoices:
    return AliasChoices(*names)


# =============================================================================
# NetSuite Record Models
# =============================================================================

class NSBaseModel(BaseModel):
    """Base model for NetSuite records."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NSCustomer(NSBaseModel):
    """NetSuite customer (person or company).

    Maps to: /record/v1/customer and SuiteQL table `customer`
    """
    id: Optional[str] = None
    entity_id: Optional[str] = Field(None, validation_alias=_aliases("entityid", "entityId", "entity_id"))
    first_name: Optional[str] = Field(None, validation_alias=_aliases("firstName", "firstname", "first_name"))
    last_name: Optional[str] = Field(None, validation_alias=_aliases("lastName", "lastname", "last_name"))
    company_name: Optional[str] = Field(None, validation_alias=_aliases("companyName", "companyname", "company_name"))
    email: Optional[str] = None
    phone: Optional[str] = None
    is_person: bool = Field(False, validation_alias=_aliases("isPerson", "isperson", "is_person"))
    parent_id: Optional[str] = Field(None, validation_alias=_aliases("parent", "parent_id"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return parse_ref_id(value)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _parent(cls, value):
        return parse_ref_id(value)

    @field_validator("is_person", mode="before")
    @classmethod
    def _flag(cls, value):
        return parse_flag(value)

    @property
    def display_name(self) -> str:
        if self.is_person:
            name = f"{self.first_name or ''} {self.last_name or ''}".strip()
            return name or (self.entity_id or "")
        return self.company_name or self.entity_id or ""


class NSItem(NSBaseModel):
    """NetSuite item (any item type).

    Maps to: /record/v1/{inventoryItem,noninventoryItem,serviceItem,item}
    """
    id: Optional[str] = None
    item_id: Optional[str] = Field(None, validation_alias=_aliases("itemId", "itemid", "item_id"))
    display_name: Optional[str] = Field(None, validation_alias=_aliases("displayName", "displayname", "display_name"))
    item_type: Optional[str] = Field(None, validation_alias=_aliases("itemType", "itemtype", "item_type"))
    is_inactive: bool = Field(False, validation_alias=_aliases("isInactive", "isinactive", "is_inactive"))
    is_sale_item: bool = Field(False, validation_alias=_aliases("isSaleItem", "issaleitem", "is_sale_item"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return parse_ref_id(value)

    @field_validator("is_inactive", "is_sale_item", mode="before")
    @classmethod
    def _flags(cls, value):
        return parse_flag(value)

    @property
    def usable(self) -> bool:
        """Can be put on a sales order line."""
        return not self.is_inactive and self.is_sale_item


class NSSalesOrderRow(NSBaseModel):
    """Sales order as returned by the transaction SuiteQL search."""
    id: Optional[str] = None
    tran_id: Optional[str] = Field(None, validation_alias=_aliases("tranid", "tranId", "tran_id"))
    external_id: Optional[str] = Field(None, validation_alias=_aliases("externalid", "externalId", "external_id"))
    status: Optional[str] = None
    tran_date: Optional[str] = Field(None, validation_alias=_aliases("trandate", "tranDate", "tran_date"))
    entity_id: Optional[str] = Field(None, validation_alias=_aliases("entity", "entity_id"))

    @field_validator("id", "entity_id", mode="before")
    @classmethod
    def _ids(cls, value):
        return parse_ref_id(value)

    @field_validator("tran_date", "status", mode="before")
    @classmethod
    def _text(cls, value):
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, dict):
            return value.get("refName") or value.get("id")
        return value


class NSCampaign(NSBaseModel):
    """NetSuite campaign (SuiteQL table `SearchCampaign`)."""
    id: Optional[str] = None
    title: Optional[str] = None
    campaign_id: Optional[str] = Field(None, validation_alias=_aliases("campaignId", "campaignid", "campaign_id"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return parse_ref_id(value)

    @field_validator("campaign_id", mode="before")
    @classmethod
    def _campaign_id(cls, value):
        return None if value is None else str(value)

