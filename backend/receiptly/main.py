import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from receiptly.api.receipts import router as receipts_router
from receiptly.core.config import get_settings
from receiptly.core.errors import ReceiptlyError

settings = get_settings()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Receiptly API",
    version="0.1.0",
)


@app.on_event("startup")
async def _startup_checks():
    current = get_settings()
    if not current.store_configured:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set – receipt export is disabled")

    errors = current.validate_required_config()
    if not errors:
        return
    if current.is_production:
        raise RuntimeError(
            "Configuration validation failed in production environment: " + "; ".join(errors)
        )
    for error in errors:
        logger.warning("Configuration problem: %s", error)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.include_router(receipts_router, tags=["receipts"])


@app.exception_handler(ReceiptlyError)
async def _receiptly_error_handler(request: Request, exc: ReceiptlyError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx unless explicitly enabled.
    if exc.status_code >= 500 and not get_settings().expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if get_settings().expose_error_details:
        return JSONResponse(status_code=500, content={"error": str(exc)})
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
async def root():
    return {"hello": "world"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}
