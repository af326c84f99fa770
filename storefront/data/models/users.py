from __future__ import annotations

from typing import Literal

from pydantic import Field

from .base import DocumentModel

Role = Literal["user", "admin"]


class User(DocumentModel):
    """Account document."""
    first_name: str = Field(alias="firstName", min_length=2, max_length=30, description="Given name")
    last_name: str = Field(alias="lastName", min_length=2, max_length=30, description="Family name")
    email: str = Field(min_length=3, description="Login email, unique across accounts")
    password: str = Field(repr=False, description="Credential secret")
    role: Role = Field(default="user", description="Authorization role")
