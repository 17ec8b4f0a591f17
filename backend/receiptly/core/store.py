import abc
import logging
from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from receiptly.core.config import get_settings
from receiptly.core.errors import StoreError
from receiptly.schemas.receipt import Receipt

logger = logging.getLogger(__name__)


class ReceiptStore(abc.ABC):
    """Read access to receipts owned by the external store."""

    @abc.abstractmethod
    def get_owned_receipt(self, receipt_id: str, owner_id: str) -> Optional[Receipt]:
        """Return the receipt with *receipt_id* if it belongs to *owner_id*.

        Existence and ownership are checked in the same query, so a receipt
        owned by someone else is indistinguishable from a missing one.
        Raises ``StoreError`` when the store cannot be queried.
        """


class SupabaseReceiptStore(ReceiptStore):
    def __init__(self, client: Client, *, receipts_table: str, items_table: str) -> None:
        self._client = client
        self._receipts_table = receipts_table
        self._items_table = items_table

    def get_owned_receipt(self, receipt_id: str, owner_id: str) -> Optional[Receipt]:
        columns = (
            "id, user_id, merchant, purchase_date, total, currency, category, "
            f"{self._items_table}(name, quantity, price)"
        )
        try:
            result = (
                self._client.table(self._receipts_table)
                .select(columns)
                .eq("id", receipt_id)
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            logger.exception("Receipt query failed for id=%s", receipt_id)
            raise StoreError() from exc

        rows = getattr(result, "data", None) or []
        if not rows:
            return None

        try:
            return Receipt.from_row(rows[0], items_key=self._items_table)
        except (KeyError, ValueError) as exc:
            logger.exception("Receipt row could not be read for id=%s", receipt_id)
            raise StoreError() from exc


@lru_cache
def get_receipt_store() -> Optional[ReceiptStore]:
    """Return the process-wide store, or ``None`` when it is not configured."""
    settings = get_settings()
    if not settings.store_configured:
        return None
    client = create_client(settings.supabase_url, settings.supabase_store_key)
    return SupabaseReceiptStore(
        client,
        receipts_table=settings.receipts_table,
        items_table=settings.receipt_items_table,
    )
