"""
Order placement.

Placing an order touches several documents: one stock decrement per line
item plus the order itself. The workflow keeps them consistent without a
multi-document transaction:

1. Every line is resolved and checked against a stock snapshot before any
   write, so missing items and obvious shortages fail with nothing changed.
2. Stock is then reserved line by line through the item store's atomic
   "decrement only if enough" operation, which closes the race between
   concurrent orders for the same item.
3. If a reservation loses that race, or the order write fails, every
   reservation already taken is released before the error propagates.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from storefront.auth.access import Identity, authorize_order_creation
from storefront.data.interface import Stores
from storefront.data.models import Item, LineItem, Order, OrderRequest
from storefront.errors import ForbiddenError, InsufficientStockError, NotFoundError, ValidationError
from storefront.logging import get_logger


def parse_order_request(payload: Union[OrderRequest, Mapping[str, Any], None]) -> OrderRequest:
    """Validate the request shape, reporting the first problem found."""
    if isinstance(payload, OrderRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return OrderRequest.model_validate(payload)
    except PydanticValidationError as e:
        err = e.errors()[0]
        location = ".".join(str(part) for part in err["loc"])
        raise ValidationError(f"{location}: {err['msg']}" if location else err["msg"]) from None


class OrderWorkflow:
    """Validates, prices, reserves stock for and persists new orders."""

    def __init__(self, stores: Stores) -> None:
        self.stores = stores
        self.logger = get_logger(__name__)

    def place_order(self, identity: Identity, order_request: Union[OrderRequest, Mapping[str, Any]]) -> Order:
        """Place an order on behalf of the authenticated caller.

        The client-supplied ``amount`` is ignored; the stored amount is the sum
        of catalog price times quantity. New orders always start as pending.

        Raises:
            ValidationError: malformed request.
            NotFoundError: user or an item does not exist.
            ForbiddenError: ``userId`` is not the caller.
            InsufficientStockError: a line asks for more than is in stock.
            StoreError: the store failed; reservations are released first.
        """
        request = parse_order_request(order_request)

        if self.stores.users.find_by_id(request.user_id) is None:
            raise NotFoundError("user", request.user_id)

        try:
            authorize_order_creation(identity, request.user_id)
        except ForbiddenError:
            self.logger.warning(f"Caller {identity.id} ({identity.role}) tried to order for user {request.user_id}")
            raise

        self._check_lines(request)

        reserved: List[Tuple[str, int]] = []
        try:
            lines = []
            for line in request.items:
                item = self.stores.items.reserve_stock(line.item_id, line.quantity)
                if item is None:
                    # lost a race with a concurrent order since the snapshot check
                    current = self.stores.items.find_by_id(line.item_id)
                    raise InsufficientStockError(
                        line.item_id,
                        current.name if current else line.item_id,
                        line.quantity,
                        current.stock if current else 0,
                    )
                reserved.append((line.item_id, line.quantity))
                lines.append(LineItem(item_id=item.id, quantity=line.quantity, name=item.name, price=item.price))

            amount = sum((line.subtotal for line in lines), Decimal("0"))
            order = self.stores.orders.save(
                Order(user_id=request.user_id, items=lines, amount=amount, status="pending")
            )
        except Exception:
            self._release(reserved)
            raise

        if request.amount is not None and request.amount != order.amount:
            self.logger.debug(f"Ignored client amount {request.amount} for order {order.id}")
        self.logger.info(
            f"Placed order {order.id} for user {order.user_id}: {len(order.items)} line(s), amount {order.amount}"
        )
        return order

    def _check_lines(self, request: OrderRequest) -> None:
        """Resolve every line in request order and check it against current stock.

        Quantities for an item listed more than once are added up.
        """
        items: Dict[str, Item] = {}
        wanted: Dict[str, int] = {}
        for line in request.items:
            item = items.get(line.item_id) or self.stores.items.find_by_id(line.item_id)
            if item is None:
                self.logger.warning(f"Order for user {request.user_id} references missing item {line.item_id}")
                raise NotFoundError("item", line.item_id)
            items[item.id] = item

            wanted[item.id] = wanted.get(item.id, 0) + line.quantity
            if item.stock < wanted[item.id]:
                self.logger.warning(
                    f"Insufficient stock for {item.name} ({item.id}): wanted {wanted[item.id]}, have {item.stock}"
                )
                raise InsufficientStockError(item.id, item.name, wanted[item.id], item.stock)

    def _release(self, reserved: List[Tuple[str, int]]) -> None:
        for item_id, quantity in reversed(reserved):
            try:
                self.stores.items.release_stock(item_id, quantity)
            except Exception:
                # keep releasing the rest; the triggering error still propagates
                self.logger.opt(exception=True).error(f"Failed to release {quantity} unit(s) of item {item_id}")
            else:
                self.logger.warning(f"Released {quantity} unit(s) of item {item_id}")
