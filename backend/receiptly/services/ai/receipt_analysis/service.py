"""Receipt image analysis via a hosted multimodal model.

The uploaded image is sent inline (base64) together with a fixed prompt. The
prompt text is part of the API contract: changing it changes what callers get
back.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from starlette.datastructures import UploadFile

from receiptly.core.errors import AnalysisFailed, NoFile, ServerMisconfigured, UploadTooLarge
from receiptly.services.ai.common.json_tools import parse_json_payload
from receiptly.services.ai.common.providers import BaseProvider, InlineAttachment

from .contracts import RECEIPT_CATEGORIES

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"
READ_CHUNK_BYTES = 64 * 1024

_CATEGORY_LIST = ", ".join(RECEIPT_CATEGORIES)

RECEIPT_ANALYSIS_PROMPT = f"""You are given an image of a receipt. Extract the receipt information and return ONLY a single JSON object (no surrounding text) with the following shape:

{{
  "merchant": string or null,
  "date": string (ISO or human readable) or null,
  "total": number or null,
  "currency": string or null,
  "items": [
    {{
      "name": string,
      "quantity": number | null,
      "price": number | null
    }}
  ],
  "category": string (one of: {_CATEGORY_LIST})
}}

If a value cannot be determined, use null. Do not include extra commentary."""


async def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read *upload* fully, refusing anything larger than *max_bytes*.

    The declared part size is checked first; the stream is then read in
    chunks so an oversized upload is rejected before it is fully buffered.
    """
    if upload.size is not None and upload.size > max_bytes:
        raise UploadTooLarge(max_bytes=max_bytes)

    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLarge(max_bytes=max_bytes)
        chunks.append(chunk)

    content = b"".join(chunks)
    if not content:
        raise NoFile()
    return content


async def analyze_receipt_image(
    content: bytes,
    mime_type: Optional[str],
    *,
    provider: BaseProvider,
    timeout_seconds: float = 60.0,
) -> Any:
    """Ask *provider* to describe the receipt in *content* and return its JSON.

    The decoded JSON is returned as-is: no field validation, no coercion and
    no enforcement of the category set.
    """
    if not provider.is_configured:
        raise ServerMisconfigured("Server missing GEMINI_API_KEY environment variable")

    attachment = InlineAttachment(data=content, mime_type=mime_type or DEFAULT_MIME_TYPE)

    try:
        result = await provider.generate(
            RECEIPT_ANALYSIS_PROMPT,
            attachments=[attachment],
            response_mime_type="application/json",
            timeout_seconds=timeout_seconds,
        )
    except Exception as exc:
        logger.exception("Receipt analysis provider call failed")
        raise AnalysisFailed(details=str(exc) or exc.__class__.__name__) from exc

    logger.info(
        "Receipt analysed by %s:%s in %.0f ms (%d bytes, %s)",
        result.provider,
        result.model,
        result.latency_ms,
        len(content),
        attachment.mime_type,
    )
    return parse_json_payload(result.raw_text)
