# =============================================================================
# tests/test_asset_service.py - User Asset Coordinator Tests
# =============================================================================
# Covers the metadata-first write ordering and its rollbacks:
#   - create / update / delete / get happy paths
#   - object store failures with successful and failed rollback
#   - size validation before any store call
#   - idempotent delete
#
# Run with: pytest tests/test_asset_service.py -v
# =============================================================================

import pytest

from core.models import ErrorKind, StoredObject
from lib.key_codec import KeyCodec

from tests.conftest import BASE_URL, USER_ID

PATH = "docs/report.pdf"
BODY = b"%PDF-1.7 fake report"
codec = KeyCodec(BASE_URL)


def _create(coordinator, body=BODY, path=PATH, content_type="application/pdf"):
    return coordinator.create(USER_ID, path, body, content_type, len(body))


# =============================================================================
# Create
# =============================================================================

class TestCreate:
    """Tests for AssetWriteCoordinator.create."""

    def test_create_then_get_round_trip(self, coordinator):
        """Bytes and content type come back exactly as uploaded."""
        created = _create(coordinator)
        assert created.ok
        assert created.data["name"] == PATH

        fetched = coordinator.get(USER_ID, PATH)

        assert fetched.ok
        assert isinstance(fetched.data, StoredObject)
        assert fetched.data.body == BODY
        assert fetched.data.content_type == "application/pdf"

    def test_create_records_url_for_stored_key(self, coordinator, metadata, objects):
        """The stored URL decodes to the key that holds the bytes."""
        _create(coordinator)

        url = metadata.assets[PATH]["asset_url"]
        assert url.startswith(BASE_URL + "/")
        assert codec.url_to_key(url) in objects.objects
        assert metadata.assets[PATH]["size"] == len(BODY)

    def test_create_defaults_content_type(self, coordinator, metadata):
        coordinator.create(USER_ID, PATH, BODY, None, len(BODY))
        assert metadata.assets[PATH]["asset_type"] == "application/octet-stream"

    def test_create_passes_project_id(self, coordinator, metadata):
        coordinator.create(USER_ID, PATH, BODY, "application/pdf", len(BODY), project_id="proj-1")
        assert metadata.assets[PATH]["project_id"] == "proj-1"

    def test_metadata_failure_is_returned_verbatim(self, coordinator, metadata, objects):
        """A rejected metadata write returns its own status and never uploads."""
        _create(coordinator)

        duplicate = _create(coordinator)

        assert not duplicate.ok
        assert duplicate.kind is ErrorKind.METADATA_WRITE_FAILED
        assert duplicate.status_code == 409
        assert duplicate.data["code"] == "23505"
        assert sum(1 for c in objects.calls if c[0] == "put") == 1

    def test_upload_failure_rolls_back_metadata(self, coordinator, metadata, objects):
        """A failed upload deletes the new row; a later get is a clean NOT_FOUND."""
        objects.fail_put = True

        result = _create(coordinator)

        assert not result.ok
        assert result.kind is ErrorKind.OBJECT_STORE_WRITE_FAILED
        assert result.compensated
        assert "upload interrupted" in result.message
        assert PATH not in metadata.assets

        fetched = coordinator.get(USER_ID, PATH)
        assert fetched.kind is ErrorKind.NOT_FOUND

    def test_failed_rollback_leaves_visible_row(self, coordinator, metadata, objects, caplog):
        """If the rollback delete fails too, the dangling row stays and is logged."""
        objects.fail_put = True
        metadata.fail.add("delete_user_asset")

        with caplog.at_level("ERROR"):
            result = _create(coordinator)

        assert result.kind is ErrorKind.COMPENSATION_FAILED
        assert "upload interrupted" in result.message
        assert PATH in metadata.assets
        assert metadata.assets[PATH]["asset_url"]
        assert "Reconciliation failed" in caplog.text

        fetched = coordinator.get(USER_ID, PATH)
        assert fetched.kind is ErrorKind.NOT_FOUND

    def test_length_mismatch_is_an_upload_failure(self, coordinator, metadata):
        """A body shorter than its declared length is rejected and rolled back."""
        result = coordinator.create(USER_ID, PATH, BODY[:4], "application/pdf", len(BODY))

        assert result.kind is ErrorKind.OBJECT_STORE_WRITE_FAILED
        assert "content length mismatch" in result.message
        assert PATH not in metadata.assets

    def test_back_to_back_creates_use_distinct_keys(self, coordinator, metadata):
        _create(coordinator, path="a.bin")
        _create(coordinator, path="b.bin")

        key_a = codec.url_to_key(metadata.assets["a.bin"]["asset_url"])
        key_b = codec.url_to_key(metadata.assets["b.bin"]["asset_url"])
        assert key_a.split("/")[1] != key_b.split("/")[1]


# =============================================================================
# Size validation
# =============================================================================

class TestSizeValidation:
    """Invalid sizes are rejected before either store is contacted."""

    @pytest.mark.parametrize("length", [0, -1, None, 1025])
    def test_create_rejects_size(self, coordinator, metadata, objects, length):
        result = coordinator.create(USER_ID, PATH, BODY, "application/pdf", length)

        assert result.kind is ErrorKind.INVALID_INPUT
        assert metadata.calls == []
        assert objects.calls == []

    @pytest.mark.parametrize("length", [0, -5, None, 4096])
    def test_update_rejects_size(self, coordinator, metadata, objects, length):
        result = coordinator.update(USER_ID, PATH, BODY, length)

        assert result.kind is ErrorKind.INVALID_INPUT
        assert metadata.calls == []
        assert objects.calls == []

    def test_too_large_maps_to_413(self, coordinator):
        result = coordinator.create(USER_ID, PATH, BODY, "application/pdf", 2048)
        assert result.status_code == 413
        assert result.message == "asset size too large"

    def test_exact_maximum_is_allowed(self, coordinator):
        body = b"x" * 1024
        assert coordinator.create(USER_ID, PATH, body, None, len(body)).ok


# =============================================================================
# Update
# =============================================================================

class TestUpdate:
    """Tests for AssetWriteCoordinator.update."""

    def test_update_replaces_bytes_and_removes_old_key(self, coordinator, metadata, objects):
        _create(coordinator)
        old_key = codec.url_to_key(metadata.assets[PATH]["asset_url"])

        new_body = b"%PDF-1.7 revised"
        result = coordinator.update(USER_ID, PATH, new_body, len(new_body))

        assert result.ok
        new_key = codec.url_to_key(metadata.assets[PATH]["asset_url"])
        assert new_key != old_key
        assert old_key not in objects.objects
        assert metadata.assets[PATH]["size"] == len(new_body)
        assert coordinator.get(USER_ID, PATH).data.body == new_body

    def test_update_missing_asset_is_not_found(self, coordinator, objects):
        result = coordinator.update(USER_ID, "nope.bin", BODY, len(BODY))

        assert result.kind is ErrorKind.NOT_FOUND
        assert objects.calls == []

    def test_update_metadata_failure_leaves_everything(self, coordinator, metadata, objects):
        _create(coordinator)
        before = dict(metadata.assets[PATH])
        metadata.fail.add("update_user_asset_url")

        result = coordinator.update(USER_ID, PATH, b"new", 3)

        assert result.kind is ErrorKind.METADATA_WRITE_FAILED
        assert metadata.assets[PATH] == before
        assert coordinator.get(USER_ID, PATH).data.body == BODY

    def test_upload_failure_preserves_old_bytes(self, coordinator, metadata, objects):
        """The row is pointed back at the old key, which is never deleted."""
        _create(coordinator)
        old_url = metadata.assets[PATH]["asset_url"]
        old_key = codec.url_to_key(old_url)
        objects.fail_put = True

        result = coordinator.update(USER_ID, PATH, b"new bytes", 9)

        assert result.kind is ErrorKind.OBJECT_STORE_WRITE_FAILED
        assert metadata.assets[PATH]["asset_url"] == old_url
        assert metadata.assets[PATH]["size"] == len(BODY)
        assert ("delete", old_key) not in objects.calls

        objects.fail_put = False
        assert coordinator.get(USER_ID, PATH).data.body == BODY

    def test_update_failed_rollback_is_reported(self, coordinator, metadata, objects):
        _create(coordinator)
        objects.fail_put = True
        metadata.fail_calls["update_user_asset_url"] = {2}

        result = coordinator.update(USER_ID, PATH, b"new bytes", 9)

        assert result.kind is ErrorKind.COMPENSATION_FAILED
        assert not result.compensated

    def test_cleanup_failure_does_not_fail_update(self, coordinator, metadata, objects, caplog):
        """Deleting the superseded key is best effort."""
        _create(coordinator)
        objects.fail_delete = True

        with caplog.at_level("WARNING"):
            result = coordinator.update(USER_ID, PATH, b"new bytes", 9)

        assert result.ok
        assert coordinator.get(USER_ID, PATH).data.body == b"new bytes"
        assert "Could not delete superseded object" in caplog.text


# =============================================================================
# Delete
# =============================================================================

class TestDelete:
    """Tests for AssetWriteCoordinator.delete."""

    def test_delete_removes_row_and_bytes(self, coordinator, metadata, objects):
        _create(coordinator)
        key = codec.url_to_key(metadata.assets[PATH]["asset_url"])

        result = coordinator.delete(USER_ID, PATH)

        assert result.ok
        assert result.data == {}
        assert PATH not in metadata.assets
        assert key not in objects.objects

    def test_delete_missing_is_idempotent(self, coordinator, objects):
        result = coordinator.delete(USER_ID, "never-created.bin")

        assert result.ok
        assert objects.calls == []

    def test_delete_twice(self, coordinator, objects):
        _create(coordinator)
        assert coordinator.delete(USER_ID, PATH).ok
        calls_after_first = len(objects.calls)

        assert coordinator.delete(USER_ID, PATH).ok
        assert len(objects.calls) == calls_after_first

    def test_delete_row_without_url_touches_nothing(self, coordinator, metadata, objects):
        """A row with no bytes yet returns success straight after the read."""
        metadata.assets[PATH] = {"id": "1", "name": PATH, "asset_url": "", "size": 0}

        result = coordinator.delete(USER_ID, PATH)

        assert result.ok
        assert result.data == {}
        assert metadata.calls == ["get_user_asset"]
        assert objects.calls == []

    def test_object_delete_failure_recreates_row(self, coordinator, metadata, objects):
        _create(coordinator)
        original = dict(metadata.assets[PATH])
        objects.fail_delete = True

        result = coordinator.delete(USER_ID, PATH)

        assert result.kind is ErrorKind.OBJECT_STORE_WRITE_FAILED
        restored = metadata.assets[PATH]
        assert restored["asset_url"] == original["asset_url"]
        assert restored["size"] == original["size"]
        assert restored["asset_type"] == original["asset_type"]

    def test_object_delete_failure_with_failed_recreate(self, coordinator, metadata, objects):
        _create(coordinator)
        objects.fail_delete = True
        metadata.fail_calls["create_user_asset"] = {2}

        result = coordinator.delete(USER_ID, PATH)

        assert result.kind is ErrorKind.COMPENSATION_FAILED
        assert PATH not in metadata.assets

    def test_metadata_delete_failure_returned(self, coordinator, metadata, objects):
        _create(coordinator)
        metadata.fail.add("delete_user_asset")

        result = coordinator.delete(USER_ID, PATH)

        assert result.kind is ErrorKind.METADATA_WRITE_FAILED
        assert result.status_code == 500
        assert not any(c[0] == "delete" for c in objects.calls)


# =============================================================================
# Get
# =============================================================================

class TestGet:
    """Tests for AssetWriteCoordinator.get."""

    def test_get_missing_row(self, coordinator):
        assert coordinator.get(USER_ID, PATH).kind is ErrorKind.NOT_FOUND

    def test_get_missing_bytes(self, coordinator, metadata, objects):
        _create(coordinator)
        objects.objects.clear()

        assert coordinator.get(USER_ID, PATH).kind is ErrorKind.NOT_FOUND

    def test_get_read_failure_passes_through(self, coordinator, metadata):
        metadata.fail.add("get_user_asset")

        result = coordinator.get(USER_ID, PATH)

        assert not result.ok
        assert result.passthrough
        assert result.status_code == 500


# =============================================================================
# Rows pointing outside the asset base URL
# =============================================================================

FOREIGN_URL = "https://old-cdn.example/abc/def/docs/x.bin"


class TestForeignUrl:
    """A stored URL that does not decode to a key is never sent to the object store."""

    @pytest.fixture(autouse=True)
    def _foreign_row(self, metadata):
        metadata.assets[PATH] = {
            "id": "1",
            "name": PATH,
            "asset_url": FOREIGN_URL,
            "asset_type": "application/pdf",
            "size": 10,
        }

    def test_update_logs_and_skips_cleanup(self, coordinator, metadata, objects, caplog):
        with caplog.at_level("ERROR"):
            result = coordinator.update(USER_ID, PATH, b"new bytes", 9)

        assert result.ok
        assert codec.owns(metadata.assets[PATH]["asset_url"])
        assert not any(op == "delete" for op, _ in objects.calls)
        assert FOREIGN_URL in caplog.text
        assert "Data integrity" in caplog.text

    def test_delete_fails_without_touching_stores(self, coordinator, metadata, objects, caplog):
        with caplog.at_level("ERROR"):
            result = coordinator.delete(USER_ID, PATH)

        assert result.kind is ErrorKind.NOT_FOUND
        assert "outside the asset base url" in result.message
        assert PATH in metadata.assets
        assert "delete_user_asset" not in metadata.calls
        assert objects.calls == []
        assert FOREIGN_URL in caplog.text

    def test_get_is_not_found(self, coordinator, objects):
        result = coordinator.get(USER_ID, PATH)

        assert result.kind is ErrorKind.NOT_FOUND
        assert objects.calls == []
