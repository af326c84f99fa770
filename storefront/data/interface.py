from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

from .models import (
    # Filter classes
    ItemFilters,
    UserFilters,
    OrderFilters,
    # Documents
    Item,
    User,
    Order,
)


# ---- Store protocols ----

class ItemStore(Protocol):
    """
    Catalog store contract.

    IMPORTANT for order placement:
    - `reserve_stock` MUST be atomic with respect to every other write on the
      same item. Stock never goes below zero, whatever the interleaving.
    """

    def find_by_id(self, item_id: str) -> Optional[Item]:
        """Get an item by id, or None."""
        ...

    def find(self, filters: ItemFilters) -> List[Item]:
        """Get items matching the filters."""
        ...

    def save(self, item: Item) -> Item:
        """Insert or replace an item; returns it with timestamps set."""
        ...

    def delete_by_id(self, item_id: str) -> Optional[Item]:
        """Remove an item; returns the removed item, or None."""
        ...

    def reserve_stock(self, item_id: str, quantity: int) -> Optional[Item]:
        """Decrement stock by `quantity` only if stock >= quantity.

        Returns the updated item, or None when stock is short.
        Raises NotFoundError when the item does not exist.
        """
        ...

    def release_stock(self, item_id: str, quantity: int) -> Item:
        """Increment stock by `quantity` (undo of a reservation)."""
        ...


class UserStore(Protocol):
    """Account store contract."""

    def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    def find(self, filters: UserFilters) -> List[User]:
        ...

    def save(self, user: User) -> User:
        """Insert or replace a user. Emails are unique."""
        ...

    def delete_by_id(self, user_id: str) -> Optional[User]:
        ...


class OrderStore(Protocol):
    """Order store contract."""

    def find_by_id(self, order_id: str) -> Optional[Order]:
        ...

    def find(self, filters: OrderFilters) -> List[Order]:
        ...

    def save(self, order: Order) -> Order:
        ...

    def delete_by_id(self, order_id: str) -> Optional[Order]:
        ...


@dataclass
class Stores:
    """The three collections the service works against."""
    items: ItemStore
    users: UserStore
    orders: OrderStore
