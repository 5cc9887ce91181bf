# =============================================================================
# core/services/metadata_store.py - Metadata Store (Supabase RPC)
# =============================================================================
# Thin RPC-style interface over Supabase/PostgREST for asset and owner rows.
#
# Every method returns a StoreResult instead of raising: PostgREST errors and
# transport errors are both folded into ok=False with an HTTP-like status, so
# the coordinators only ever branch on `result.ok`.
#
# Two clients are involved:
# - the user client (caller's token, RLS applies) for reads and for the
#   create/update RPCs the user is allowed to run
# - the service_role client for update_user_asset_url and delete_user_asset,
#   which must also work while undoing a half-finished write
# =============================================================================

import logging
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from core.models.result import StoreResult

logger = logging.getLogger(__name__)

# PostgREST error codes that map to something other than 400
_POSTGREST_STATUS = {
    "PGRST116": 404,  # no rows for .single()
    "PGRST202": 404,  # function not found
    "PGRST301": 401,  # JWT invalid
    "PGRST302": 401,  # anonymous access disabled
    "42501": 403,     # insufficient privilege (RLS)
    "P0002": 404,     # no_data_found raised by a function
}


def _api_error_status(error: APIError) -> int:
    return _POSTGREST_STATUS.get(str(error.code or ""), 400)


def _api_error_body(error: APIError) -> dict[str, Any]:
    return {
        "message": error.message,
        "code": error.code,
        "details": error.details,
        "hint": error.hint,
    }


class MetadataStore:
    """
    Named remote procedures and row lookups used by the asset coordinators.

    Example:
        store = MetadataStore(SupabaseClient.for_user(token), SupabaseClient.get_client())
        result = store.get_user_asset("docs/report.pdf")
        if result.ok and result.first():
            ...
    """

    def __init__(self, client: Client, admin_client: Client):
        self.client = client
        self.admin_client = admin_client

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def rpc(self, name: str, params: dict[str, Any], admin: bool = False) -> StoreResult:
        """
        Call a Postgres function through PostgREST.

        Args:
            name: Function name (e.g. "create_user_asset")
            params: Named parameters
            admin: Use the service_role client

        Returns:
            StoreResult with the function's return value as data
        """
        client = self.admin_client if admin else self.client
        try:
            response = client.rpc(name, params).execute()
        except APIError as e:
            logger.warning(f"RPC {name} failed: [{e.code}] {e.message}")
            return StoreResult.failure(_api_error_status(e), _api_error_body(e))
        except Exception as e:
            logger.error(f"RPC {name} transport error: {e}")
            return StoreResult.failure(502, {"message": str(e)})

        return StoreResult.success(response.data)

    def select(self, table: str, column: str, value: str) -> StoreResult:
        """Select all columns of the rows where `column` equals `value`."""
        try:
            response = (
                self.client.table(table)
                .select("*")
                .eq(column, value)
                .execute()
            )
        except APIError as e:
            logger.warning(f"Select on {table} failed: [{e.code}] {e.message}")
            return StoreResult.failure(_api_error_status(e), _api_error_body(e))
        except Exception as e:
            logger.error(f"Select on {table} transport error: {e}")
            return StoreResult.failure(502, {"message": str(e)})

        return StoreResult.success(response.data or [])

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_user_asset(self, asset_name: str) -> StoreResult:
        return self.select("user_assets", "name", asset_name)

    def get_project(self, project_id: str) -> StoreResult:
        return self.select("projects", "id", project_id)

    def get_profile(self, profile_id: str) -> StoreResult:
        return self.select("profiles", "id", profile_id)

    # -------------------------------------------------------------------------
    # User asset writes
    # -------------------------------------------------------------------------

    def create_user_asset(
        self,
        asset_name: str,
        asset_url: str,
        asset_type: str,
        asset_size: int,
        project_id: str | None = None,
    ) -> StoreResult:
        """Insert a user asset row. New assets are private, non-resource."""
        params: dict[str, Any] = {
            "asset_is_private": True,
            "asset_is_resource": False,
            "asset_asset_type": asset_type,
            "asset_asset_url": asset_url,
            "asset_name": asset_name,
            "asset_size": asset_size,
        }
        if project_id:
            params["asset_project_id"] = project_id
        return self.rpc("create_user_asset", params)

    def update_user_asset_url(self, asset_name: str, asset_url: str, asset_size: int) -> StoreResult:
        return self.rpc(
            "update_user_asset_url",
            {
                "asset_asset_url": asset_url,
                "asset_name": asset_name,
                "asset_size": asset_size,
            },
            admin=True,
        )

    def delete_user_asset(self, asset_name: str) -> StoreResult:
        return self.rpc("delete_user_asset", {"asset_name": asset_name}, admin=True)

    # -------------------------------------------------------------------------
    # Owner poster/avatar writes
    # -------------------------------------------------------------------------

    def update_project_poster(self, project_id: str, poster_url: str) -> StoreResult:
        return self.rpc("update_project", {"project_id": project_id, "project_poster_url": poster_url})

    def update_profile_avatar(self, avatar_url: str) -> StoreResult:
        # update_profile always targets the caller's own profile (auth.uid())
        return self.rpc("update_profile", {"user_avatar_url": avatar_url})

    def update_user_asset_poster(self, asset_name: str, poster_url: str) -> StoreResult:
        return self.rpc("update_user_asset", {"asset_name": asset_name, "asset_poster_url": poster_url})
