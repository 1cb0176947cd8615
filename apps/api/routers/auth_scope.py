"""Authentication dependencies backed by Clerk session tokens."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.clerk_auth import ClerkTokenError, verify_session_token

logger = logging.getLogger(__name__)

auth_scheme = HTTPBearer(auto_error=False)
SESSION_COOKIE = "__session"


@dataclass
class AuthContext:
    user_id: str
    session_id: Optional[str] = None


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(SESSION_COOKIE, "")


async def get_optional_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> Optional[AuthContext]:
    """Resolve the Clerk user if the request carries a valid session, else None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    try:
        claims = await verify_session_token(token)
    except ClerkTokenError as exc:
        logger.info("Rejected Clerk session token: %s", exc)
        return None
    return AuthContext(
        user_id=str(claims["sub"]),
        session_id=str(claims.get("sid") or "") or None,
    )


async def get_auth_context(
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> AuthContext:
    """Require an authenticated Clerk session."""
    if auth is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return auth
