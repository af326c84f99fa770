from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .base import DocumentModel, Money

OrderStatus = Literal["pending", "shipped", "delivered"]


class LineItem(BaseModel):
    """Ordered item, with the name and unit price captured when the order was placed."""
    model_config = ConfigDict(populate_by_name=True)

    item_id: str = Field(alias="itemId", description="Referenced item identifier")
    quantity: int = Field(gt=0, description="Units ordered")
    name: Optional[str] = Field(default=None, description="Item name at order time")
    price: Optional[Money] = Field(default=None, ge=0, description="Unit price at order time")

    @property
    def subtotal(self) -> Decimal:
        return (self.price or Decimal("0")) * self.quantity


class Order(DocumentModel):
    """Order document."""
    user_id: str = Field(alias="userId", description="Owning user identifier")
    items: List[LineItem] = Field(min_length=1, description="Line items in request order")
    amount: Money = Field(ge=0, description="Total computed from line item prices")
    status: OrderStatus = Field(default="pending", description="Fulfilment status")


class LineItemRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    item_id: str = Field(alias="itemId", min_length=1)
    quantity: int = Field(gt=0)


class OrderRequest(BaseModel):
    """Client payload for placing an order.

    ``amount`` is informational only; the placed order's amount is always
    recomputed from catalog prices.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    user_id: str = Field(alias="userId", min_length=1)
    items: List[LineItemRequest] = Field(min_length=1)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[OrderStatus] = None
