"""
Identity token handling.

Tokens are issued by an external identity provider. This module only verifies
them and extracts the subject; ``create_access_token`` mints tokens with the
same key for local development and tests.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from .config.settings import Settings, get_settings
from .errors import Unauthorized

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> str:
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode: Dict[str, Any] = {"sub": subject, "exp": expire}
    if settings.auth_audience:
        to_encode["aud"] = settings.auth_audience
    if settings.auth_issuer:
        to_encode["iss"] = settings.auth_issuer
    to_encode.update(extra_claims or {})
    return jwt.encode(to_encode, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def verify_token(token: str, settings: Optional[Settings] = None) -> str:
    """
    Verify an identity token and return its subject (the caller's user id).

    Raises:
        Unauthorized: token is malformed, badly signed, expired or has no subject
    """
    settings = settings or get_settings()
    options = {"require_exp": True, "verify_aud": bool(settings.auth_audience)}
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_algorithm],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options=options,
        )
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except JWTError as e:
        logger.info("Rejected identity token: %s", e)
        raise Unauthorized("Invalid token")

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise Unauthorized("Token has no subject")
    return subject
