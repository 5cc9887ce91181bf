# =============================================================================
# app/routers/user_assets.py - User Asset Endpoints
# =============================================================================
# /api/v1/user_asset/<path>
#   PUT     create  (?type=<mime>, ?project_id=<id>)
#   POST    replace bytes
#   DELETE  delete
#   GET     download
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Request
from fastapi.concurrency import run_in_threadpool

from app.dependencies import AssetCoordinatorDep, CurrentUser
from app.exceptions import InvalidAssetPathError
from app.responses import declared_length, to_response
from core.services.write_protocol import validate_size
from lib.utils import fix_user_asset_path

logger = logging.getLogger(__name__)

router = APIRouter()


def _asset_path(raw: str) -> str:
    path = fix_user_asset_path(raw)
    if not path:
        raise InvalidAssetPathError(raw)
    return path


@router.put("/user_asset/{asset_path:path}")
async def create_user_asset(
    asset_path: str,
    request: Request,
    user: CurrentUser,
    coordinator: AssetCoordinatorDep,
    asset_type: Annotated[str | None, Query(alias="type")] = None,
    project_id: Annotated[str | None, Query()] = None,
):
    """
    Create a user asset from the raw request body.

    The asset type is taken from ?type=, then the Content-Type header.
    """
    path = _asset_path(asset_path)
    length = declared_length(request)
    invalid = validate_size(length, coordinator.config.max_asset_size)
    if invalid:
        return to_response(invalid)

    body = await request.body()
    content_type = asset_type or request.headers.get("content-type")

    result = await run_in_threadpool(
        coordinator.create,
        str(user.id),
        path,
        body,
        content_type,
        length,
        project_id or None,
    )
    return to_response(result)


@router.post("/user_asset/{asset_path:path}")
async def update_user_asset(
    asset_path: str,
    request: Request,
    user: CurrentUser,
    coordinator: AssetCoordinatorDep,
):
    """Replace the bytes of an existing user asset."""
    path = _asset_path(asset_path)
    length = declared_length(request)
    invalid = validate_size(length, coordinator.config.max_asset_size)
    if invalid:
        return to_response(invalid)

    body = await request.body()

    result = await run_in_threadpool(
        coordinator.update,
        str(user.id),
        path,
        body,
        length,
        request.headers.get("content-type"),
    )
    return to_response(result)


@router.delete("/user_asset/{asset_path:path}")
async def delete_user_asset(
    asset_path: str,
    user: CurrentUser,
    coordinator: AssetCoordinatorDep,
):
    """Delete a user asset. Deleting a missing asset succeeds."""
    path = _asset_path(asset_path)
    result = await run_in_threadpool(coordinator.delete, str(user.id), path)
    return to_response(result)


@router.get("/user_asset/{asset_path:path}")
async def get_user_asset(
    asset_path: str,
    user: CurrentUser,
    coordinator: AssetCoordinatorDep,
):
    """Download a user asset's bytes."""
    path = _asset_path(asset_path)
    result = await run_in_threadpool(coordinator.get, str(user.id), path)
    return to_response(result)
