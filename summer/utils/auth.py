import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, HTTPException, status, Header
from google.oauth2 import id_token
from google.auth.exceptions import TransportError
from google.auth.transport import requests

from summer.utils.config import Settings


@dataclass
class CurrentUser:
    """The signed-in user. ``user_id`` partitions every store."""

    user_id: str
    email: Optional[str] = None


def _reject(status_code: int, detail: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail=detail)


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Sign-in required")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        logging.warning("Rejected Authorization header that is not 'Bearer <token>'")
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Malformed Authorization header")
    return token


async def get_current_user(
    request: Request,
    authorization: str = Header(None),
    x_user_id: str = Header(None),
) -> CurrentUser:
    """
    Resolves the caller from a Google ID token sent as a bearer token.

    With ``app_env=local`` no token is checked: the ``X-User-Id`` header, or
    ``local_user_id``, names the user.
    """
    settings: Settings = request.app.state.settings

    if settings.is_local:
        return CurrentUser(user_id=x_user_id or settings.local_user_id)

    if not settings.google_client_id:
        logging.error("GOOGLE_CLIENT_ID is not set; cannot verify sign-in tokens")
        raise _reject(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Sign-in is not configured"
        )

    token = _bearer_token(authorization)
    try:
        claims = await asyncio.to_thread(
            id_token.verify_oauth2_token,
            token,
            requests.Request(),
            audience=settings.google_client_id,
        )
    except TransportError as e:
        logging.error(f"Could not fetch Google signing certificates: {e}")
        raise _reject(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Sign-in verification unavailable"
        )
    except ValueError as e:
        logging.warning(f"Google ID token rejected: {e}")
        raise _reject(status.HTTP_401_UNAUTHORIZED, "Invalid sign-in token")

    email = claims.get("email")
    if not email:
        raise _reject(status.HTTP_403_FORBIDDEN, "Sign-in token has no email")
    if not claims.get("email_verified"):
        logging.warning(f"Unverified Google account attempted sign-in: {email}")
        raise _reject(status.HTTP_403_FORBIDDEN, "Email address is not verified")

    return CurrentUser(user_id=email, email=email)
