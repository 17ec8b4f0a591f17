from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class LineItem(BaseModel):
    name: str = ""
    quantity: Any = None
    price: Any = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "LineItem":
        name = row.get("name")
        return cls(
            name="" if name is None else str(name),
            quantity=row.get("quantity"),
            price=row.get("price"),
        )


class Receipt(BaseModel):
    """A stored receipt as read from the store.

    Values are kept as the store returned them; the CSV formatter decides how
    a missing or malformed value is rendered.
    """

    id: str
    owner_id: str
    merchant: Optional[str] = None
    purchase_date: Any = None
    total: Any = None
    currency: Optional[str] = None
    category: Optional[str] = None
    items: list[LineItem] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any], *, items_key: str) -> "Receipt":
        raw_items = row.get(items_key) or []
        return cls(
            id=str(row["id"]),
            owner_id=str(row.get("user_id") or ""),
            merchant=_optional_str(row.get("merchant")),
            purchase_date=row.get("purchase_date"),
            total=row.get("total"),
            currency=_optional_str(row.get("currency")),
            category=_optional_str(row.get("category")),
            items=[LineItem.from_row(item) for item in raw_items if isinstance(item, dict)],
        )


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
