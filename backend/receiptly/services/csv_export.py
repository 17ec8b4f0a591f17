"""CSV rendering for a single stored receipt.

All helpers are pure and never raise: a value that cannot be formatted is
rendered as an empty cell.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from receiptly.schemas.receipt import Receipt

_NEEDS_QUOTING = ('"', ",", "\n")
_CENTS = Decimal("0.01")
# fromisoformat before 3.11 only takes 3 or 6 fractional digits; PostgREST trims zeros.
_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def escape(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_amount(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and not math.isfinite(value):
        return ""
    raw = str(value).strip()
    if raw == "":
        return ""
    try:
        amount = Decimal(raw)
        if not amount.is_finite():
            return ""
        return str(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return ""


def _pad_fraction(match: re.Match) -> str:
    return f"{match.group(1)}.{match.group(2):0<6.6}"


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    raw = _FRACTION.sub(_pad_fraction, raw, count=1)
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def format_date(value: Any) -> str:
    parsed = _parse_datetime(value)
    if parsed is None:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d")


def build_receipt_csv(receipt: Receipt) -> str:
    lines = [
        f"Merchant,{escape(receipt.merchant)}",
        f"Purchase Date,{format_date(receipt.purchase_date)}",
        f"Total,{format_amount(receipt.total)}",
        f"Currency,{escape(receipt.currency)}",
        f"Category,{escape(receipt.category)}",
        f"Receipt ID,{escape(receipt.id)}",
        "",
        "Items",
        "Name,Quantity,Price",
    ]
    for item in receipt.items:
        lines.append(
            ",".join(
                [
                    escape(item.name),
                    escape(item.quantity),
                    format_amount(item.price),
                ]
            )
        )
    return "\n".join(lines)
