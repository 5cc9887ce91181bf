# =============================================================================
# core/services/asset_service.py - User Asset Coordinator
# =============================================================================
# Create/update/delete/get for user assets: one metadata row in user_assets
# plus the bytes in the object store.
#
# Ordering (see write_protocol.py):
#   create: row -> upload            (undo: delete row)
#   update: row url -> upload        (undo: restore old url/size)
#   delete: delete row -> delete obj (undo: recreate row)
# Every upload goes to a freshly derived key; the previous version's bytes
# stay in place until the new ones are stored and referenced.
# =============================================================================

from __future__ import annotations

import logging
from typing import BinaryIO

from core.models.asset import AssetRecord
from core.models.result import ErrorKind, OperationResult
from core.services.metadata_store import MetadataStore
from core.services.object_store import DEFAULT_CONTENT_TYPE, ObjectStore
from core.services.write_protocol import (
    CoordinatorConfig,
    compensate,
    decode_key,
    foreign_url_failure,
    reclaim,
    validate_size,
)

logger = logging.getLogger(__name__)


class AssetWriteCoordinator:
    """
    Keeps user_assets rows and object store contents consistent.

    Example:
        coordinator = AssetWriteCoordinator(metadata, objects, config)
        result = coordinator.create(user_id, "docs/report.pdf", body,
                                    "application/pdf", len(body))
        if not result.ok:
            ...
    """

    def __init__(self, metadata: MetadataStore, objects: ObjectStore, config: CoordinatorConfig):
        self.metadata = metadata
        self.objects = objects
        self.config = config
        self.codec = config.codec

    def _fetch(self, logical_path: str) -> tuple[AssetRecord | None, OperationResult | None]:
        """Read the current row. Returns (record, None) or (None, failure)."""
        result = self.metadata.get_user_asset(logical_path)
        if not result.ok:
            return None, OperationResult.from_store_failure(result, ErrorKind.NOT_FOUND)
        row = result.first()
        if not row:
            return None, OperationResult.failure(ErrorKind.NOT_FOUND, f"asset not found: {logical_path}")
        return AssetRecord.from_row(row), None

    def create(
        self,
        owner_identity: str,
        logical_path: str,
        body: bytes | BinaryIO,
        content_type: str | None,
        content_length: int | None,
        project_id: str | None = None,
    ) -> OperationResult:
        """
        Create a new asset.

        Args:
            owner_identity: Caller's user id (hashed into the key)
            logical_path: Asset name
            body: Request body
            content_type: MIME type to record and store
            content_length: Declared body length
            project_id: Optional owning project

        Returns:
            The create RPC's payload on success
        """
        invalid = validate_size(content_length, self.config.max_asset_size)
        if invalid:
            return invalid

        asset_type = content_type or DEFAULT_CONTENT_TYPE
        key, url = self.codec.derive(owner_identity, logical_path)

        created = self.metadata.create_user_asset(
            asset_name=logical_path,
            asset_url=url,
            asset_type=asset_type,
            asset_size=content_length,
            project_id=project_id,
        )
        if not created.ok:
            return OperationResult.from_store_failure(created)

        try:
            self.objects.put(key, body, asset_type, content_length)
        except Exception as e:
            return compensate(
                lambda: self.metadata.delete_user_asset(logical_path),
                e,
                operation="create",
                target=logical_path,
            )

        logger.info(f"Created asset {logical_path} at {key}")
        return OperationResult.success(created.data, status_code=created.status_code)

    def update(
        self,
        owner_identity: str,
        logical_path: str,
        body: bytes | BinaryIO,
        content_length: int | None,
        content_type: str | None = None,
    ) -> OperationResult:
        """
        Replace an asset's bytes.

        The new bytes go to a new key; the old key is only deleted after
        the new URL is recorded and the upload has succeeded.
        """
        invalid = validate_size(content_length, self.config.max_asset_size)
        if invalid:
            return invalid

        current, failure = self._fetch(logical_path)
        if failure:
            return failure

        old_key = decode_key(self.codec, current.asset_url, target=logical_path) if current.asset_url else ""
        key, url = self.codec.derive(owner_identity, logical_path)

        updated = self.metadata.update_user_asset_url(
            asset_name=logical_path,
            asset_url=url,
            asset_size=content_length,
        )
        if not updated.ok:
            return OperationResult.from_store_failure(updated)

        try:
            self.objects.put(key, body, content_type or current.asset_type, content_length)
        except Exception as e:
            return compensate(
                lambda: self.metadata.update_user_asset_url(
                    asset_name=current.name,
                    asset_url=current.asset_url,
                    asset_size=current.size,
                ),
                e,
                operation="update",
                target=logical_path,
            )

        reclaim(self.objects, old_key)
        logger.info(f"Updated asset {logical_path}: {old_key or '-'} -> {key}")
        return OperationResult.success(updated.data, status_code=updated.status_code)

    def delete(self, owner_identity: str, logical_path: str) -> OperationResult:
        """
        Delete an asset row and its bytes.

        Deleting something that does not exist, or a row that has no bytes
        yet, succeeds without touching either store.
        """
        current, failure = self._fetch(logical_path)
        if failure:
            if failure.kind is ErrorKind.NOT_FOUND and not failure.passthrough:
                return OperationResult.success({})
            return failure

        if not current.asset_url:
            return OperationResult.success({})

        key = decode_key(self.codec, current.asset_url, target=logical_path)
        if key is None:
            return foreign_url_failure(logical_path)

        deleted = self.metadata.delete_user_asset(logical_path)
        if not deleted.ok:
            return OperationResult.from_store_failure(deleted)

        try:
            self.objects.delete(key)
        except Exception as e:
            return compensate(
                lambda: self.metadata.create_user_asset(
                    asset_name=current.name,
                    asset_url=current.asset_url,
                    asset_type=current.asset_type,
                    asset_size=current.size,
                    project_id=current.project_id,
                ),
                e,
                operation="delete",
                target=logical_path,
            )

        logger.info(f"Deleted asset {logical_path} ({key})")
        return OperationResult.success({})

    def get(self, owner_identity: str, logical_path: str) -> OperationResult:
        """Fetch an asset's bytes. Data is a StoredObject on success."""
        current, failure = self._fetch(logical_path)
        if failure:
            return failure
        if not current.asset_url:
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"asset has no content: {logical_path}")

        key = decode_key(self.codec, current.asset_url, target=logical_path)
        if key is None:
            return foreign_url_failure(logical_path)

        stored = self.objects.get(key)
        if stored is None:
            return OperationResult.failure(ErrorKind.NOT_FOUND, f"asset content missing: {logical_path}")

        if not stored.content_type:
            stored.content_type = current.asset_type
        return OperationResult.success(stored)
