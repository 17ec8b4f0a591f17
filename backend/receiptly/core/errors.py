"""Error taxonomy shared by the export and analysis pipelines.

Every error maps to exactly one HTTP status. The application renders them as
``{"error": <message>, "code": <code>, ...extra}`` through
``receiptly.main``'s exception handler.
"""

from __future__ import annotations

from typing import Any


class ReceiptlyError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        body.update(self.extra)
        return body


class MissingCredential(ReceiptlyError):
    status_code = 401
    code = "MISSING_CREDENTIAL"
    default_message = "Missing bearer token"


class InvalidCredential(ReceiptlyError):
    status_code = 401
    code = "INVALID_CREDENTIAL"
    default_message = "Invalid or expired token"


class ServerMisconfigured(ReceiptlyError):
    status_code = 500
    code = "SERVER_MISCONFIGURED"
    default_message = "Server is not configured"


class BadId(ReceiptlyError):
    status_code = 400
    code = "BAD_ID"
    default_message = "Invalid receipt id"


class NotFound(ReceiptlyError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Receipt not found"


class StoreError(ReceiptlyError):
    status_code = 500
    code = "STORE_ERROR"
    default_message = "Failed to load receipt"


class NoFile(ReceiptlyError):
    status_code = 400
    code = "NO_FILE"
    default_message = "No file provided. Send multipart form with an image file."


class UploadTooLarge(ReceiptlyError):
    status_code = 413
    code = "UPLOAD_TOO_LARGE"
    default_message = "Uploaded file is too large"


class LengthRequired(ReceiptlyError):
    status_code = 411
    code = "LENGTH_REQUIRED"
    default_message = "Multipart uploads must send a Content-Length header"


class AnalysisFailed(ReceiptlyError):
    status_code = 500
    code = "ANALYSIS_FAILED"
    default_message = "Failed to analyze receipt"


class ModelFormatError(ReceiptlyError):
    status_code = 502
    code = "MODEL_FORMAT_ERROR"
    default_message = "Model did not return JSON"


class ModelJsonInvalid(ReceiptlyError):
    status_code = 502
    code = "MODEL_JSON_INVALID"
    default_message = "Model returned malformed JSON"
