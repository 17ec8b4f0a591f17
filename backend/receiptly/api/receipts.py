import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile

from receiptly.core.auth import AuthenticatedSubject, get_current_subject
from receiptly.core.config import get_settings
from receiptly.core.errors import LengthRequired, NoFile, UploadTooLarge
from receiptly.core.store import ReceiptStore, get_receipt_store
from receiptly.services.ai.common.providers import BaseProvider, get_receipt_provider
from receiptly.services.ai.receipt_analysis.contracts import ParsedReceiptExtraction
from receiptly.services.ai.receipt_analysis.service import analyze_receipt_image, read_upload
from receiptly.services.receipt_export import CSV_MEDIA_TYPE, export_receipt_csv

logger = logging.getLogger(__name__)

router = APIRouter()

# Allowance for multipart boundaries and part headers on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _declared_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


_FORM_CONTENT_TYPES = ("multipart/", "application/x-www-form-urlencoded")


def _is_form_body(request: Request) -> bool:
    return request.headers.get("content-type", "").lower().startswith(_FORM_CONTENT_TYPES)


def _first_upload(form) -> Optional[UploadFile]:
    for _, value in form.multi_items():
        if isinstance(value, UploadFile):
            return value
    return None


@router.post(
    "/analyze-receipt",
    responses={200: {"model": ParsedReceiptExtraction}},
)
async def analyze_receipt(
    request: Request,
    provider: BaseProvider = Depends(get_receipt_provider),
):
    settings = get_settings()
    max_bytes = settings.max_upload_bytes

    declared = _declared_length(request)
    if declared is None and _is_form_body(request):
        # A chunked body would be parsed and spooled in full before any size check.
        raise LengthRequired()
    if declared is not None and declared > max_bytes + MULTIPART_OVERHEAD_BYTES:
        raise UploadTooLarge(max_bytes=max_bytes)

    form = await request.form()
    try:
        upload = _first_upload(form)
        if upload is None:
            raise NoFile()
        content = await read_upload(upload, max_bytes)
        mime_type = upload.content_type
        filename = upload.filename
    finally:
        await form.close()

    logger.info("Analyze receipt: file=%s  type=%s  len=%d", filename, mime_type, len(content))
    parsed = await analyze_receipt_image(
        content,
        mime_type,
        provider=provider,
        timeout_seconds=settings.ai_timeout_seconds,
    )
    return JSONResponse(content=parsed)


@router.get("/receipts/{receipt_id}/export/csv")
def export_receipt(
    receipt_id: str,
    subject: AuthenticatedSubject = Depends(get_current_subject),
    store: Optional[ReceiptStore] = Depends(get_receipt_store),
):
    export = export_receipt_csv(receipt_id, subject, store)
    return Response(
        content=export.content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={export.filename}"},
    )
