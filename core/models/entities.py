"""CRM entity models - the four tables mirrored from the remote service.

Each model maps a remote table to a local SQLite table:
- Remote JSON uses camelCase aliases (e.g., "accountId", "isOpen")
- Local columns use the snake_case field names
- `id` is None until the entity is first saved

The local tables are disposable projections of the remote service.
They are refreshed by pull operations and never pushed back.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional

from pydantic import BaseModel, Field, PlainSerializer
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


# =============================================================================
# Value Parsers (remote payloads are not always clean)
# =============================================================================

def to_utc(value: datetime) -> datetime:
    """Normalize to UTC. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_datetime(value: datetime) -> str:
    """Fixed-width UTC text, so stored values sort in time order."""
    return to_utc(value).isoformat(timespec="microseconds")


def _parse_datetime(value):
    """Parse a datetime into UTC, treating blank strings as missing."""
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        if s == "":
            return None
        # Mobile service timestamps carry a trailing Z
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        value = datetime.fromisoformat(s)
    if isinstance(value, datetime):
        return to_utc(value)
    return value


def _parse_optional_str(value):
    """Blank strings become None so that lookups on null work consistently."""
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


DateTimeValue = Annotated[
    Optional[datetime],
    BeforeValidator(_parse_datetime),
    PlainSerializer(format_datetime, return_type=str, when_used="json-unless-none"),
]
OptionalId = Annotated[Optional[str], BeforeValidator(_parse_optional_str)]


# =============================================================================
# Base
# =============================================================================

class SyncEntity(BaseModel):
    """Base class for all entities stored in a sync table.

    Subclasses set `table_name` to the remote table they mirror.
    """
    table_name: ClassVar[str] = ""

    id: OptionalId = Field(default=None, alias="id")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @classmethod
    def column_names(cls) -> list:
        """Local column names, `id` first."""
        names = list(cls.model_fields.keys())
        names.remove("id")
        return ["id"] + names

    def to_row(self) -> Dict[str, Any]:
        """Convert to a dict keyed by local column name."""
        return self.model_dump(mode="json", by_alias=False)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SyncEntity":
        """Build an entity from a local row or a remote payload."""
        return cls.model_validate(row)


# =============================================================================
# CRM Entities
# =============================================================================

class Account(SyncEntity):
    """A customer account or sales lead."""
    table_name: ClassVar[str] = "Account"

    company: Optional[str] = Field(default=None, alias="company")
    is_lead: bool = Field(default=False, alias="isLead")

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = Field(default=None, alias="email")
    phone: Optional[str] = Field(default=None, alias="phone")
    city: Optional[str] = Field(default=None, alias="city")
    state: Optional[str] = Field(default=None, alias="state")
    industry: Optional[str] = Field(default=None, alias="industry")
    opportunity_size: Optional[Decimal] = Field(default=None, alias="opportunitySize")


class Order(SyncEntity):
    """An order placed by an account. Open until closed."""
    table_name: ClassVar[str] = "Order"

    account_id: OptionalId = Field(default=None, alias="accountId")
    is_open: bool = Field(default=True, alias="isOpen")
    order_date: DateTimeValue = Field(default=None, alias="orderDate")
    due_date: DateTimeValue = Field(default=None, alias="dueDate")
    closed_date: DateTimeValue = Field(default=None, alias="closedDate")
    item: Optional[str] = Field(default=None, alias="item")
    price: Optional[Decimal] = Field(default=None, alias="price")


class Category(SyncEntity):
    """A node in the product catalog hierarchy.

    The single category with no parent is the root. Categories whose
    parent is the root are top-level categories. Categories without
    sub-categories are leaves and own the products.
    """
    table_name: ClassVar[str] = "CatalogCategory"

    parent_category_id: OptionalId = Field(default=None, alias="parentCategoryId")
    name: Optional[str] = Field(default=None, alias="name")
    description: Optional[str] = Field(default=None, alias="description")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    sequence: int = Field(default=0, alias="sequence")
    has_sub_categories: bool = Field(default=False, alias="hasSubCategories")


class Product(SyncEntity):
    """A catalog product, owned by exactly one leaf category."""
    table_name: ClassVar[str] = "CatalogProduct"

    category_id: OptionalId = Field(default=None, alias="categoryId")
    name: Optional[str] = Field(default=None, alias="name")
    description: Optional[str] = Field(default=None, alias="description")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    price: Optional[Decimal] = Field(default=None, alias="price")


ALL_ENTITIES = (Order, Account, Category, Product)
