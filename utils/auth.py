"""Shared-password session cookie helpers."""
import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from starlette.responses import Response

from config import Settings, get_settings

logger = logging.getLogger(__name__)

COOKIE_NAME = "site_auth"
COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days
SESSION_MESSAGE = b"site_auth:v1"


def session_token(site_password: str) -> str:
    """Cookie value for a logged-in browser. Changes whenever the site password does."""
    return hmac.new(site_password.encode("utf-8"), SESSION_MESSAGE, hashlib.sha256).hexdigest()


def is_authenticated(request: Request, site_password: Optional[str]) -> bool:
    cookie = request.cookies.get(COOKIE_NAME)
    if not cookie or not site_password:
        return False
    return hmac.compare_digest(cookie.encode("utf-8"), session_token(site_password).encode("utf-8"))


def require_session(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Dependency guarding the data endpoints."""
    if not is_authenticated(request, settings.site_password):
        logger.info(f"Rejected unauthenticated request to {request.url.path}")
        raise HTTPException(status_code=401, detail="Unauthorized")


def password_matches(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def set_session_cookie(response: Response, token: str, secure: bool = True) -> None:
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=secure,
        samesite="strict",
    )


def clear_session_cookie(response: Response, secure: bool = True) -> None:
    # Expired cookie with the same attributes so the browser drops it
    response.set_cookie(
        COOKIE_NAME,
        "",
        max_age=0,
        expires=0,
        path="/",
        httponly=True,
        secure=secure,
        samesite="strict",
    )
