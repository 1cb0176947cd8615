"""Clerk session token verification."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from jose import JWTError, jwt

from config import settings

logger = logging.getLogger(__name__)

CLERK_ALGORITHMS = ["RS256"]
JWKS_TIMEOUT_SECONDS = 10.0
JWKS_REFETCH_COOLDOWN_SECONDS = 60.0

_jwks_cache: Dict[str, Dict[str, Any]] = {}
_jwks_lock = asyncio.Lock()
_jwks_fetched_at: Optional[float] = None


class ClerkTokenError(ValueError):
    """Raised when a session token cannot be trusted."""


async def fetch_jwks() -> List[Dict[str, Any]]:
    """Download Clerk's signing keys for this instance."""
    secret = (settings.CLERK_SECRET_KEY or "").strip()
    if not secret:
        raise ClerkTokenError("CLERK_SECRET_KEY is not configured")

    async with httpx.AsyncClient(timeout=JWKS_TIMEOUT_SECONDS) as client:
        response = await client.get(
            settings.CLERK_JWKS_URL,
            headers={"Authorization": f"Bearer {secret}"},
        )
    if response.status_code != 200:
        raise ClerkTokenError(f"Clerk JWKS request failed with HTTP {response.status_code}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise ClerkTokenError("Clerk JWKS response was not JSON") from exc
    if not isinstance(payload, dict):
        raise ClerkTokenError("Clerk JWKS response was not an object")
    keys = payload.get("keys") or []
    return [key for key in keys if isinstance(key, dict) and key.get("kid")]


def _refetch_allowed() -> bool:
    if _jwks_fetched_at is None:
        return True
    return time.monotonic() - _jwks_fetched_at >= JWKS_REFETCH_COOLDOWN_SECONDS


async def _signing_key(kid: str) -> Dict[str, Any]:
    """Look up a signing key, refetching the JWKS at most once per cooldown."""
    global _jwks_fetched_at

    async with _jwks_lock:
        if kid not in _jwks_cache and _refetch_allowed():
            _jwks_fetched_at = time.monotonic()
            try:
                keys = await fetch_jwks()
            except httpx.HTTPError as exc:
                raise ClerkTokenError(f"Could not reach Clerk JWKS endpoint: {exc}") from exc
            _jwks_cache.clear()
            _jwks_cache.update({key["kid"]: key for key in keys})
        key = _jwks_cache.get(kid)
    if key is None:
        raise ClerkTokenError("Session token signed with an unknown key.")
    return key


def clear_jwks_cache() -> None:
    global _jwks_fetched_at

    _jwks_cache.clear()
    _jwks_fetched_at = None


async def verify_session_token(token: str) -> Dict[str, Any]:
    """Verify a Clerk session JWT and return its claims."""
    if not token:
        raise ClerkTokenError("Missing session token.")

    pem_key = (settings.CLERK_JWT_KEY or "").strip()
    if pem_key:
        key: Any = pem_key
    else:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise ClerkTokenError("Malformed session token.") from exc
        kid = str(header.get("kid") or "")
        if not kid:
            raise ClerkTokenError("Session token missing key id.")
        key = await _signing_key(kid)

    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=CLERK_ALGORITHMS,
            options={"verify_aud": False},
        )
    except JWTError as exc:
        raise ClerkTokenError("Invalid or expired session token.") from exc

    authorized_parties = [party for party in settings.CLERK_AUTHORIZED_PARTIES if party]
    azp: Optional[str] = claims.get("azp")
    if authorized_parties and azp and azp not in authorized_parties:
        raise ClerkTokenError("Session token issued for an unauthorized party.")

    if not str(claims.get("sub") or "").strip():
        raise ClerkTokenError("Session token missing subject.")
    return claims
