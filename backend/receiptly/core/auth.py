import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Header

from receiptly.core.config import get_settings
from receiptly.core.errors import InvalidCredential, MissingCredential, ServerMisconfigured

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthenticatedSubject:
    id: str


def verify_bearer(
    raw_header_value: Optional[str],
    secret: Optional[str],
    *,
    audience: Optional[str] = None,
) -> AuthenticatedSubject:
    """Verify an ``Authorization`` header value and return its subject.

    Raises ``MissingCredential`` when the header is absent or not a bearer
    header, ``ServerMisconfigured`` when no verification secret is set and
    ``InvalidCredential`` for anything wrong with the token itself. The reason
    for a rejected token is only logged.
    """
    if not raw_header_value or not raw_header_value.startswith(BEARER_PREFIX):
        raise MissingCredential()

    if not secret:
        logger.error("SUPABASE_JWT_SECRET is not configured; cannot verify bearer tokens")
        raise ServerMisconfigured("Server missing SUPABASE_JWT_SECRET environment variable")

    token = raw_header_value[len(BEARER_PREFIX):].strip()
    audience = (audience or "").strip() or None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except jwt.InvalidTokenError as exc:
        logger.info("Bearer token rejected: %s", exc)
        raise InvalidCredential() from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        logger.info("Bearer token rejected: missing sub claim")
        raise InvalidCredential()

    return AuthenticatedSubject(id=subject)


def get_current_subject(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> AuthenticatedSubject:
    settings = get_settings()
    return verify_bearer(
        authorization,
        settings.supabase_jwt_secret,
        audience=settings.supabase_jwt_audience,
    )
