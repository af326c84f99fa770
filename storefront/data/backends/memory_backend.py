from __future__ import annotations

import copy
import functools
import threading
from typing import Callable, Dict, List, Optional

from ..interface import ItemStore, OrderStore, UserStore
from ..models import (
    ItemFilters, UserFilters, OrderFilters, Item, User, Order, utc_now,
)
from ...errors import NotFoundError, StoreError, StorefrontError, ValidationError
from ...logging import get_logger


def _store_errors(method):
    """Surface anything unexpected from the backend as a StoreError."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except StorefrontError:
            raise
        except Exception as e:
            get_logger(__name__).opt(exception=True).error(
                f"{type(self).__name__}.{method.__name__} failed: {e}"
            )
            raise StoreError(f"Store operation failed: {method.__name__}") from e
    return wrapper


def _matches(value, wanted) -> bool:
    if isinstance(wanted, str):
        return value == wanted
    return value in wanted


class MemoryCollection:
    """
    In-process document collection.
    - Documents are plain dicts keyed by `_id`.
    - Reads hand out deep copies, so callers never alias stored state.
    - Every write runs under the collection lock; `update_if` is the
      compare-and-swap primitive the item store builds reservations on.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._docs: Dict[str, dict] = {}
        self._lock = threading.RLock()

    def get(self, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._docs.get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def all(self) -> List[dict]:
        with self._lock:
            return [copy.deepcopy(d) for d in self._docs.values()]

    def put(self, doc: dict) -> dict:
        with self._lock:
            now = utc_now()
            stored = copy.deepcopy(doc)
            existing = self._docs.get(stored["_id"])
            if existing is not None:
                stored["createdAt"] = existing.get("createdAt") or now
            elif stored.get("createdAt") is None:
                stored["createdAt"] = now
            stored["updatedAt"] = now
            self._docs[stored["_id"]] = stored
            return copy.deepcopy(stored)

    def put_unique(self, doc: dict, key: str) -> Optional[dict]:
        """Like `put`, but returns None if another document has the same `key` value."""
        with self._lock:
            for other in self._docs.values():
                if other[key] == doc[key] and other["_id"] != doc["_id"]:
                    return None
            return self.put(doc)

    def delete(self, doc_id: str) -> Optional[dict]:
        with self._lock:
            return self._docs.pop(doc_id, None)

    def update_if(
        self,
        doc_id: str,
        predicate: Callable[[dict], bool],
        mutate: Callable[[dict], None],
    ) -> Optional[dict]:
        """Apply `mutate` to the document only if `predicate` holds, atomically.

        Returns the updated copy, None when the predicate fails, and raises
        KeyError when the document is absent.
        """
        with self._lock:
            doc = self._docs[doc_id]
            if not predicate(doc):
                return None
            mutate(doc)
            doc["updatedAt"] = utc_now()
            return copy.deepcopy(doc)


class MemoryItemStore(ItemStore):
    def __init__(self, collection: Optional[MemoryCollection] = None) -> None:
        self.collection = collection or MemoryCollection("items")

    @_store_errors
    def find_by_id(self, item_id: str) -> Optional[Item]:
        doc = self.collection.get(item_id)
        return Item.model_validate(doc) if doc is not None else None

    @_store_errors
    def find(self, filters: ItemFilters) -> List[Item]:
        items = [Item.model_validate(d) for d in self.collection.all()]

        if filters.item_id:
            items = [i for i in items if _matches(i.id, filters.item_id)]
        if filters.name_contains and filters.name_contains.strip():
            s = filters.name_contains.strip().lower()
            items = [i for i in items if s in i.name.lower()]
        if filters.price_min is not None:
            items = [i for i in items if i.price >= filters.price_min]
        if filters.price_max is not None:
            items = [i for i in items if i.price <= filters.price_max]
        if filters.in_stock is not None:
            items = [i for i in items if (i.stock > 0) == filters.in_stock]

        return sorted(items, key=lambda i: i.name)

    @_store_errors
    def save(self, item: Item) -> Item:
        return Item.model_validate(self.collection.put(item.to_document()))

    @_store_errors
    def delete_by_id(self, item_id: str) -> Optional[Item]:
        doc = self.collection.delete(item_id)
        return Item.model_validate(doc) if doc is not None else None

    @_store_errors
    def reserve_stock(self, item_id: str, quantity: int) -> Optional[Item]:
        if quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")

        def decrement(doc: dict) -> None:
            doc["stock"] -= quantity

        try:
            doc = self.collection.update_if(item_id, lambda d: d["stock"] >= quantity, decrement)
        except KeyError:
            raise NotFoundError("item", item_id) from None
        return Item.model_validate(doc) if doc is not None else None

    @_store_errors
    def release_stock(self, item_id: str, quantity: int) -> Item:
        def increment(doc: dict) -> None:
            doc["stock"] += quantity

        try:
            doc = self.collection.update_if(item_id, lambda d: True, increment)
        except KeyError:
            raise NotFoundError("item", item_id) from None
        return Item.model_validate(doc)


class MemoryUserStore(UserStore):
    def __init__(self, collection: Optional[MemoryCollection] = None) -> None:
        self.collection = collection or MemoryCollection("users")

    @_store_errors
    def find_by_id(self, user_id: str) -> Optional[User]:
        doc = self.collection.get(user_id)
        return User.model_validate(doc) if doc is not None else None

    @_store_errors
    def find(self, filters: UserFilters) -> List[User]:
        users = [User.model_validate(d) for d in self.collection.all()]

        if filters.email:
            users = [u for u in users if u.email == filters.email]
        if filters.role:
            users = [u for u in users if _matches(u.role, filters.role)]

        return users

    @_store_errors
    def save(self, user: User) -> User:
        doc = self.collection.put_unique(user.to_document(), "email")
        if doc is None:
            raise ValidationError("User with this email already exists")
        return User.model_validate(doc)

    @_store_errors
    def delete_by_id(self, user_id: str) -> Optional[User]:
        doc = self.collection.delete(user_id)
        return User.model_validate(doc) if doc is not None else None


class MemoryOrderStore(OrderStore):
    def __init__(self, collection: Optional[MemoryCollection] = None) -> None:
        self.collection = collection or MemoryCollection("orders")

    @_store_errors
    def find_by_id(self, order_id: str) -> Optional[Order]:
        doc = self.collection.get(order_id)
        return Order.model_validate(doc) if doc is not None else None

    @_store_errors
    def find(self, filters: OrderFilters) -> List[Order]:
        orders = [Order.model_validate(d) for d in self.collection.all()]

        if filters.user_id:
            orders = [o for o in orders if _matches(o.user_id, filters.user_id)]
        if filters.status:
            orders = [o for o in orders if _matches(o.status, filters.status)]

        return sorted(orders, key=lambda o: o.created_at)

    @_store_errors
    def save(self, order: Order) -> Order:
        return Order.model_validate(self.collection.put(order.to_document()))

    @_store_errors
    def delete_by_id(self, order_id: str) -> Optional[Order]:
        doc = self.collection.delete(order_id)
        return Order.model_validate(doc) if doc is not None else None

