# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for the stores and coordinators.
# These are injected into route handlers using Depends().
#
# Settings are read here and only here: the coordinators get an explicit
# CoordinatorConfig.
# =============================================================================

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.auth import AuthUser, get_current_user
from app.config import settings
from core.services import (
    AssetWriteCoordinator,
    CoordinatorConfig,
    LinkedAssetWriteCoordinator,
    MetadataStore,
    ObjectStore,
    build_object_store,
)
from lib.supabase_client import SupabaseClient


def get_coordinator_config() -> CoordinatorConfig:
    return CoordinatorConfig.from_settings(settings)


@lru_cache
def get_object_store() -> ObjectStore:
    """Process-wide object store backend (clients are thread-safe)."""
    return build_object_store(settings)


def get_metadata_store(user: AuthUser = Depends(get_current_user)) -> MetadataStore:
    """Metadata store bound to the caller's token, plus the service role."""
    return MetadataStore(
        SupabaseClient.for_user(user.access_token),
        SupabaseClient.get_client(),
    )


def get_asset_coordinator(
    metadata: MetadataStore = Depends(get_metadata_store),
    objects: ObjectStore = Depends(get_object_store),
    config: CoordinatorConfig = Depends(get_coordinator_config),
) -> AssetWriteCoordinator:
    return AssetWriteCoordinator(metadata, objects, config)


def get_linked_asset_coordinator(
    metadata: MetadataStore = Depends(get_metadata_store),
    objects: ObjectStore = Depends(get_object_store),
    config: CoordinatorConfig = Depends(get_coordinator_config),
) -> LinkedAssetWriteCoordinator:
    return LinkedAssetWriteCoordinator(metadata, objects, config)


# Type aliases for dependency injection
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
AssetCoordinatorDep = Annotated[AssetWriteCoordinator, Depends(get_asset_coordinator)]
LinkedAssetCoordinatorDep = Annotated[LinkedAssetWriteCoordinator, Depends(get_linked_asset_coordinator)]
