from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ItemFilters(BaseModel):
    """Filters for catalog items."""
    item_id: Optional[str | list[str]] = Field(default=None, description="Item ID filter (single id or list of ids)")
    name_contains: Optional[str] = Field(default=None, description="Case-insensitive substring of the item name")
    price_min: Optional[Decimal] = Field(default=None, description="Minimum unit price")
    price_max: Optional[Decimal] = Field(default=None, description="Maximum unit price")
    in_stock: Optional[bool] = Field(default=None, description="Only items with stock > 0 (True) or sold out (False)")


class UserFilters(BaseModel):
    """Filters for user accounts."""
    email: Optional[str] = Field(default=None, description="Exact email match")
    role: Optional[str | list[str]] = Field(default=None, description="Role filter (single role or list of roles)")


class OrderFilters(BaseModel):
    """Filters for orders."""
    user_id: Optional[str | list[str]] = Field(default=None, description="Owning user filter (single id or list of ids)")
    status: Optional[str | list[str]] = Field(default=None, description="Status filter (single status or list of statuses)")
