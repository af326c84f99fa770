from __future__ import annotations

from typing import Optional


class StorefrontError(Exception):
    """Base class for errors that map onto an HTTP response."""
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Malformed or missing request fields."""
    status_code = 400


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds the stock available for an item."""

    def __init__(self, item_id: str, item_name: str, requested: int, available: int) -> None:
        super().__init__(f"Insufficient stock for item {item_name}")
        self.item_id = item_id
        self.item_name = item_name
        self.requested = requested
        self.available = available


class AuthError(StorefrontError):
    """Missing, malformed or expired credential."""
    status_code = 401


class ForbiddenError(StorefrontError):
    status_code = 403


class NotFoundError(StorefrontError):
    """A referenced user, item or order does not resolve."""
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[str] = None) -> None:
        super().__init__(f"{entity.capitalize()} not found")
        self.entity = entity
        self.entity_id = entity_id


class StoreError(StorefrontError):
    """The underlying document store failed."""
    status_code = 500
