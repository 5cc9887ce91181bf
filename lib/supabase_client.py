# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module owns construction of Supabase clients:
# - a singleton service_role client (bypasses Row Level Security), used for
#   the privileged RPCs and for health checks
# - per-request clients bound to the caller's access token, so that reads
#   and user-level RPCs are evaluated under RLS as that user
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   admin = SupabaseClient.get_client()
#   user = SupabaseClient.for_user(access_token)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import Client, ClientOptions, create_client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClientError(Exception):
    """
    Error during Supabase client construction.

    Provides actionable error messages: errors should tell HOW to fix,
    not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Factory for Supabase clients.

    The service_role client is a process-wide singleton. User clients are
    cheap to build and are never shared between requests, because the
    caller's token is baked into their default headers.
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton service_role Supabase client.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def for_user(cls, access_token: str | None) -> Client:
        """
        Build a client that talks to PostgREST as the given user.

        Falls back to the anon role when no usable token is supplied.

        Raises:
            SupabaseClientError: If client creation fails
        """
        token = (access_token or "").strip()
        if not token or token == "0":
            token = settings.SUPABASE_ANON_KEY

        try:
            return create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_ANON_KEY,
                options=ClientOptions(headers={"Authorization": f"Bearer {token}"}),
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to create user-scoped Supabase client: {e}",
                code="USER_CLIENT_INIT_FAILED",
                suggestion="Check SUPABASE_URL and SUPABASE_ANON_KEY in your .env file"
            )

    @classmethod
    def reset(cls) -> None:
        """Drop the cached service_role client (used by tests)."""
        cls._instance = None
