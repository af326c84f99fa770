from __future__ import annotations

from typing import Optional

from pydantic import Field

from .base import DocumentModel, Money


class Item(DocumentModel):
    """Catalog item document."""
    name: str = Field(min_length=1, description="Item name")
    price: Money = Field(ge=0, description="Unit price")
    description: Optional[str] = Field(default=None, description="Free-form item description")
    stock: int = Field(ge=0, description="Units available for ordering")
