"""Receipt analysis contracts.

The endpoint returns whatever JSON the model produced; these models document
the requested shape for the OpenAPI schema and are not used for validation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

RECEIPT_CATEGORIES = (
    "Food & Drink",
    "Travel",
    "Accommodation",
    "Office Supplies",
    "Utilities",
    "Entertainment",
    "Other",
)


class ExtractedLineItem(BaseModel):
    name: str
    quantity: Optional[float] = None
    price: Optional[float] = None


class ParsedReceiptExtraction(BaseModel):
    """Best-effort structured guess of a receipt's content."""

    merchant: Optional[str] = None
    date: Optional[str] = None
    total: Optional[float] = None
    currency: Optional[str] = None
    items: list[ExtractedLineItem] = Field(default_factory=list)
    category: Optional[str] = None
