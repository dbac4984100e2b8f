"""Core data models - the CRM entities mirrored into the local cache.

These models are independent of any specific remote service. Connectors
return plain dicts; the sync tables validate them into these types.
"""

from core.models.entities import (
    SyncEntity,
    Account,
    Order,
    Category,
    Product,
    ALL_ENTITIES,
)

__all__ = [
    "SyncEntity",
    "Account",
    "Order",
    "Category",
    "Product",
    "ALL_ENTITIES",
]
