# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .metadata_store import MetadataStore
from .object_store import (
    ObjectStore,
    S3ObjectStore,
    SupabaseObjectStore,
    build_object_store,
)
from .write_protocol import CoordinatorConfig
from .asset_service import AssetWriteCoordinator
from .linked_asset_service import LinkedAssetWriteCoordinator, resolve_owner

__all__ = [
    "MetadataStore",
    "ObjectStore",
    "S3ObjectStore",
    "SupabaseObjectStore",
    "build_object_store",
    "CoordinatorConfig",
    "AssetWriteCoordinator",
    "LinkedAssetWriteCoordinator",
    "resolve_owner",
]
