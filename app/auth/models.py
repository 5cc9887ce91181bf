# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    The raw access token is kept so that metadata reads and user-level
    RPCs can run under Row Level Security as this user.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: Optional[str] = None
    access_token: str = ""


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    Supabase tokens include standard JWT claims plus custom claims.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience (must be "authenticated")
    exp: int  # Expiration timestamp
    iat: Optional[int] = None  # Issued at timestamp
    role: Optional[str] = None  # User role
