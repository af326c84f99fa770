from __future__ import annotations

from typing import Literal

from .backends.memory_backend import MemoryItemStore, MemoryOrderStore, MemoryUserStore
from .interface import Stores


def get_stores(kind: Literal["memory"] = "memory") -> Stores:
    if kind == "memory":
        # Fresh, empty collections; seed them with backends.csv_seed if needed
        return Stores(
            items=MemoryItemStore(),
            users=MemoryUserStore(),
            orders=MemoryOrderStore(),
        )
    raise ValueError(f"Unknown store kind: {kind}")
