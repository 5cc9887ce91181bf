# =============================================================================
# core/services/linked_asset_service.py - Poster/Avatar Image Coordinator
# =============================================================================
# Manages images stored as a URL field on another record:
#   project  -> projects.poster_url     (path ".projects/<id>")
#   profile  -> profiles.avatar_url     (path ".profiles/<id>")
#   asset    -> user_assets.poster_url  (path "<asset name>")
#
# The owner is resolved once into an OwnerRef by the router. Writes follow
# the same metadata-first ordering as user assets; the prior image is
# deleted only after the new URL is recorded and the upload succeeded.
# =============================================================================

from __future__ import annotations

import logging
from typing import BinaryIO

from core.models.asset import OwnerKind, OwnerRecord, OwnerRef
from core.models.result import ErrorKind, OperationResult, StoreResult
from core.services.metadata_store import MetadataStore
from core.services.object_store import ObjectStore
from core.services.write_protocol import (
    CoordinatorConfig,
    compensate,
    decode_key,
    foreign_url_failure,
    reclaim,
    validate_size,
)

logger = logging.getLogger(__name__)

# content type -> key extension
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpeg",
    "image/png": "png",
    "image/jpg": "jpeg",
    "image/webp": "webp",
}

# key extension -> content type, for backends that do not keep one
IMAGE_CONTENT_TYPES = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


def content_type_for_key(key: str) -> str | None:
    """
    Content type implied by a poster key's ".poster.<ext>" suffix.

    Example:
        content_type_for_key("3f7a.../65a4f1c0-9b1c/.projects/abc.poster.png")  # "image/png"
    """
    _, sep, extension = key.rpartition(".poster.")
    if not sep:
        return None
    return IMAGE_CONTENT_TYPES.get(extension)


def resolve_owner(path: str) -> OwnerRef:
    """Classify a normalised image path into an OwnerRef."""
    return OwnerRef.from_path(path)


class LinkedAssetWriteCoordinator:
    """
    Keeps owner poster/avatar URLs and object store contents consistent.

    Example:
        owner = resolve_owner(".projects/3b1f...")
        result = coordinator.update(user_id, owner, body, "image/png", len(body))
    """

    def __init__(self, metadata: MetadataStore, objects: ObjectStore, config: CoordinatorConfig):
        self.metadata = metadata
        self.objects = objects
        self.config = config
        self.codec = config.codec

    # -------------------------------------------------------------------------
    # Owner lookup and dispatch
    # -------------------------------------------------------------------------

    def _lookup(self, owner: OwnerRef) -> StoreResult:
        if owner.kind is OwnerKind.PROJECT:
            return self.metadata.get_project(owner.owner_id)
        if owner.kind is OwnerKind.PROFILE:
            return self.metadata.get_profile(owner.owner_id)
        return self.metadata.get_user_asset(owner.owner_id)

    def _write_url(self, owner: OwnerRef, url: str) -> StoreResult:
        if owner.kind is OwnerKind.PROJECT:
            return self.metadata.update_project_poster(owner.owner_id, url)
        if owner.kind is OwnerKind.PROFILE:
            return self.metadata.update_profile_avatar(url)
        return self.metadata.update_user_asset_poster(owner.owner_id, url)

    def fetch_owner(
        self,
        owner: OwnerRef,
        owner_identity: str | None = None,
    ) -> tuple[OwnerRecord | None, OperationResult | None]:
        """
        Load the owning record and check it matches the path.

        Profiles can only be written by their own user, so when
        owner_identity is given a profile owned by someone else is an
        ID_MISMATCH.
        """
        result = self._lookup(owner)
        if not result.ok:
            return None, OperationResult.from_store_failure(result, ErrorKind.NOT_FOUND)

        row = result.first()
        if not row:
            return None, OperationResult.failure(ErrorKind.NOT_FOUND, f"{owner.kind.value} not found")

        record = OwnerRecord.from_row(owner.kind, row)
        if not record.id:
            return None, OperationResult.failure(ErrorKind.NOT_FOUND, f"{owner.kind.value} id not found")
        if record.id != owner.owner_id:
            return None, OperationResult.failure(ErrorKind.ID_MISMATCH, f"{owner.kind.value} id mismatch")
        if owner.kind is OwnerKind.PROFILE and owner_identity and record.id != owner_identity:
            return None, OperationResult.failure(ErrorKind.ID_MISMATCH, "profile does not belong to caller")

        return record, None

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def update(
        self,
        owner_identity: str,
        owner: OwnerRef,
        body: bytes | BinaryIO,
        content_type: str | None,
        content_length: int | None,
    ) -> OperationResult:
        """
        Upload a new image and point the owner at it.

        Size and type are validated before any remote call.

        Returns:
            The owner update RPC's payload on success
        """
        invalid = validate_size(content_length, self.config.max_poster_size, label="poster")
        if invalid:
            return invalid

        image_type = (content_type or "").strip().lower()
        extension = ALLOWED_IMAGE_TYPES.get(image_type)
        if not extension:
            return OperationResult.failure(ErrorKind.INVALID_INPUT, "invalid poster type")

        record, failure = self.fetch_owner(owner, owner_identity)
        if failure:
            return failure

        key, url = self.codec.derive(owner_identity, owner.path, f".poster.{extension}")

        updated = self._write_url(owner, url)
        if not updated.ok:
            return OperationResult.from_store_failure(updated)

        try:
            self.objects.put(key, body, image_type, content_length)
        except Exception as e:
            return compensate(
                lambda: self._write_url(owner, record.url),
                e,
                operation="poster update",
                target=owner.path,
            )

        if record.url:
            reclaim(self.objects, decode_key(self.codec, record.url, target=owner.path))

        logger.info(f"Updated {owner.kind.value} image {owner.path} -> {key}")
        return OperationResult.success(updated.data, status_code=updated.status_code)

    def delete(self, owner: OwnerRef, owner_identity: str | None = None) -> OperationResult:
        """Clear the owner's image URL, then delete the image."""
        record, failure = self.fetch_owner(owner, owner_identity)
        if failure:
            return failure
        if not record.url:
            return OperationResult.success({})

        key = decode_key(self.codec, record.url, target=owner.path)
        if key is None:
            return foreign_url_failure(owner.path)

        updated = self._write_url(owner, "")
        if not updated.ok:
            return OperationResult.from_store_failure(updated)

        try:
            self.objects.delete(key)
        except Exception as e:
            return compensate(
                lambda: self._write_url(owner, record.url),
                e,
                operation="poster delete",
                target=owner.path,
            )

        logger.info(f"Deleted {owner.kind.value} image {owner.path} ({key})")
        return OperationResult.success(updated.data, status_code=updated.status_code)

    def get(self, owner: OwnerRef) -> OperationResult:
        """Fetch the owner's image. Data is a StoredObject on success."""
        record, failure = self.fetch_owner(owner)
        if failure:
            return failure
        if not record.url:
            return OperationResult.failure(ErrorKind.NOT_FOUND, "asset poster url not found")

        key = decode_key(self.codec, record.url, target=owner.path)
        if key is None:
            return foreign_url_failure(owner.path)

        stored = self.objects.get(key)
        if stored is None:
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"image missing: {owner.path}")

        if not stored.content_type:
            stored.content_type = content_type_for_key(key)
        return OperationResult.success(stored)
