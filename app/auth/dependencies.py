# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Verifies Supabase access tokens.
#
# Supports both:
# - HS256 (legacy Supabase JWT secret)
# - asymmetric signing keys (ES256/RS256) published at the project's JWKS URL
#
# Tokens must carry aud="authenticated" and a "sub" claim.
# =============================================================================

import logging
import time
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser, TokenPayload

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _fetch_jwks() -> dict:
    """Fetch the project's JWKS, cached for JWKS_CACHE_TTL seconds."""
    global _jwks_cache, _jwks_cache_time

    now = time.time()
    if _jwks_cache and (now - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = now
        logger.debug(f"Fetched JWKS from {url}")
    except Exception as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Stale keys are better than none
        if not _jwks_cache:
            return {"keys": []}
    return _jwks_cache


def _get_signing_key(token: str) -> tuple[object, str]:
    """
    Pick the verification key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = header.get("alg", "HS256")
    kid = header.get("kid")
    if alg == "HS256":
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}, falling back to HS256")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def verify_token(token: str) -> TokenPayload:
    """
    Verify a Supabase access token and return its claims.

    Raises:
        HTTPException: 401 if the token is invalid, expired or lacks a subject
    """
    try:
        key, algorithm = _get_signing_key(token)
        claims = jwt.decode(token, key, algorithms=[algorithm], audience="authenticated")
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    if not claims.get("sub"):
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")

    return TokenPayload(**claims)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Extract and validate the user from the bearer token.

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_token(token)

    try:
        user_id = UUID(payload.sub)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {payload.sub}")
        raise _unauthorized("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {user_id}")
    return AuthUser(id=user_id, email=payload.email, access_token=token)
