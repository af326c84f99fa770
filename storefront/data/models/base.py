from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer


# Exact in storage and arithmetic, a plain number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def new_object_id() -> str:
    """Generate a document identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentModel(BaseModel):
    """Fields shared by every stored document."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_object_id, alias="_id", description="Unique document identifier")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt", description="Set on first save")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt", description="Set on every save")

    def to_document(self) -> dict:
        """Storage representation: aliased keys, native Python values."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> dict:
        """Wire representation: aliased keys, JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")
