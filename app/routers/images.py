# =============================================================================
# app/routers/images.py - Poster/Avatar Image Endpoints
# =============================================================================
# /api/v1/(image|poster)/<path>
#   PUT, POST  upload a new image
#   DELETE     remove the image
#   GET        download
#
# <path> selects the owner:
#   .projects/<project_id>  -> project poster
#   .profiles/<user_id>     -> profile avatar
#   <asset name>            -> user asset poster
# =============================================================================

import logging

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool

from app.dependencies import CurrentUser, LinkedAssetCoordinatorDep
from app.exceptions import InvalidAssetPathError
from app.responses import declared_length, to_response
from core.models import OwnerRef
from core.services import resolve_owner
from core.services.write_protocol import validate_size
from lib.utils import fix_path

logger = logging.getLogger(__name__)

router = APIRouter()


def _owner(raw: str) -> OwnerRef:
    path = fix_path(raw)
    if not path:
        raise InvalidAssetPathError(raw)
    owner = resolve_owner(path)
    if not owner.owner_id:
        raise InvalidAssetPathError(raw)
    return owner


@router.put("/image/{asset_path:path}")
@router.post("/image/{asset_path:path}")
@router.put("/poster/{asset_path:path}")
@router.post("/poster/{asset_path:path}")
async def update_image(
    asset_path: str,
    request: Request,
    user: CurrentUser,
    coordinator: LinkedAssetCoordinatorDep,
):
    """Upload a jpeg/png/webp image and attach it to the owner."""
    owner = _owner(asset_path)
    length = declared_length(request)
    invalid = validate_size(length, coordinator.config.max_poster_size, label="poster")
    if invalid:
        return to_response(invalid)

    body = await request.body()

    result = await run_in_threadpool(
        coordinator.update,
        str(user.id),
        owner,
        body,
        request.headers.get("content-type"),
        length,
    )
    return to_response(result)


@router.delete("/image/{asset_path:path}")
@router.delete("/poster/{asset_path:path}")
async def delete_image(
    asset_path: str,
    user: CurrentUser,
    coordinator: LinkedAssetCoordinatorDep,
):
    """Detach and delete the owner's image."""
    owner = _owner(asset_path)
    result = await run_in_threadpool(coordinator.delete, owner, str(user.id))
    return to_response(result)


@router.get("/image/{asset_path:path}")
@router.get("/poster/{asset_path:path}")
async def get_image(
    asset_path: str,
    user: CurrentUser,
    coordinator: LinkedAssetCoordinatorDep,
):
    """Download the owner's image."""
    owner = _owner(asset_path)
    result = await run_in_threadpool(coordinator.get, owner)
    return to_response(result)
