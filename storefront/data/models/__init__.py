from .data_filters import (
    ItemFilters,
    UserFilters,
    OrderFilters,
)

from .base import DocumentModel, Money, new_object_id, utc_now
from .items import Item
from .users import Role, User
from .orders import (
    LineItem,
    LineItemRequest,
    Order,
    OrderRequest,
    OrderStatus,
)

__all__ = [
    # Filter classes
    "ItemFilters",
    "UserFilters",
    "OrderFilters",
    # Documents
    "DocumentModel",
    "Item",
    "User",
    "Order",
    "LineItem",
    # Requests
    "OrderRequest",
    "LineItemRequest",
    # Literals and helpers
    "Role",
    "OrderStatus",
    "Money",
    "new_object_id",
    "utc_now",
]
