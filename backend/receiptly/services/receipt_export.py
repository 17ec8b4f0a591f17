"""Receipt CSV export: id check, owner-filtered fetch, CSV rendering."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from receiptly.core.auth import AuthenticatedSubject
from receiptly.core.errors import BadId, NotFound, ServerMisconfigured
from receiptly.core.store import ReceiptStore
from receiptly.services.csv_export import build_receipt_csv

logger = logging.getLogger(__name__)

RECEIPT_ID_RE = re.compile(r"^[0-9a-fA-F-]{32,36}$")
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: str


def is_valid_receipt_id(receipt_id: str) -> bool:
    return bool(RECEIPT_ID_RE.fullmatch(receipt_id or ""))


def export_receipt_csv(
    receipt_id: str,
    subject: AuthenticatedSubject,
    store: Optional[ReceiptStore],
) -> CsvExport:
    """Render the receipt *receipt_id* owned by *subject* as CSV.

    The caller is expected to have verified *subject* already.
    """
    if not is_valid_receipt_id(receipt_id):
        raise BadId()

    if store is None:
        raise ServerMisconfigured("Receipt store is not configured")

    receipt = store.get_owned_receipt(receipt_id, subject.id)
    if receipt is None:
        logger.info("Receipt %s not found for subject %s", receipt_id, subject.id)
        raise NotFound()

    content = build_receipt_csv(receipt)
    logger.info("Exported receipt %s (%d items)", receipt_id, len(receipt.items))
    return CsvExport(filename=f"receipt_{receipt_id}.csv", content=content)
