from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import pandas as pd

from ..interface import Stores
from ..models import Item, User
from ...logging import get_logger


def _read_records(path: Path) -> List[dict]:
    # Everything as text: pydantic does the typing, prices stay exact decimals
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = df.rename(columns={"id": "_id"})
    records = df.replace({"": None}).to_dict(orient="records")
    # Absent values fall back to model defaults (generated ids, default role)
    return [{k: v for k, v in rec.items() if v is not None} for rec in records]


def load_seed_data(data_dir: str | Path, stores: Stores) -> Dict[str, int]:
    """
    Load catalog and account documents from CSV files into the stores.
    - `items.csv` is required: name, price, stock and optionally id, description.
    - `users.csv` is optional: firstName, lastName, email, password and optionally id, role.
    Returns the number of documents saved per collection.
    """
    logger = get_logger(__name__)
    data_dir = Path(data_dir)

    if not data_dir.exists():
        raise FileNotFoundError(
            f"Seed directory not found: {data_dir}\n"
            f"Please either:\n"
            f"  1. Create it with an items.csv (and optionally users.csv)\n"
            f"  2. Set SEED_DIR environment variable to point to your seed directory\n"
            f"  3. Unset SEED_DIR to start with empty stores"
        )
    if not (data_dir / "items.csv").exists():
        raise FileNotFoundError(
            f"Required CSV file missing in {data_dir}: items.csv\n"
            f"  Expected columns: name, price, stock (id and description optional)"
        )

    try:
        item_rows = _read_records(data_dir / "items.csv")
        user_rows = _read_records(data_dir / "users.csv") if (data_dir / "users.csv").exists() else []
    except Exception as e:
        raise RuntimeError(
            f"Error reading CSV files from {data_dir}: {e}\n"
            f"Please check that the CSV files are valid and readable."
        ) from e

    for row in item_rows:
        stores.items.save(Item.model_validate(row))
    for row in user_rows:
        stores.users.save(User.model_validate(row))

    counts = {"items": len(item_rows), "users": len(user_rows)}
    logger.info(f"Seeded stores from {data_dir}: {counts}")
    return counts
