# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory metadata and object stores with failure injection
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("USER_ASSET_BASE_URL", "https://assets.test")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from collections import Counter
from typing import Any

import pytest

from app.exceptions import ObjectStoreError
from core.models import StoredObject, StoreResult
from core.services import (
    AssetWriteCoordinator,
    CoordinatorConfig,
    LinkedAssetWriteCoordinator,
    ObjectStore,
)
from core.services.object_store import check_length, read_body

USER_ID = "5f0c6a1e-8a1e-4d3c-9d0b-1b2c3d4e5f60"
OTHER_USER_ID = "0a9b8c7d-6e5f-4a3b-2c1d-0e9f8a7b6c5d"
BASE_URL = "https://assets.test"


# =============================================================================
# Fake Stores
# =============================================================================

class FakeMetadataStore:
    """
    In-memory stand-in for MetadataStore.

    Failures are injected per method name:
        store.fail.add("create_user_asset")               # every call fails
        store.fail_calls["update_user_asset_url"] = {2}   # only the 2nd call fails
    """

    def __init__(self, current_user: str = USER_ID):
        self.current_user = current_user
        self.assets: dict[str, dict[str, Any]] = {}
        self.projects: dict[str, dict[str, Any]] = {}
        self.profiles: dict[str, dict[str, Any]] = {}
        self.fail: set[str] = set()
        self.fail_calls: dict[str, set[int]] = {}
        self.calls: list[str] = []
        self._counts: Counter = Counter()

    def _should_fail(self, name: str) -> bool:
        self.calls.append(name)
        self._counts[name] += 1
        return name in self.fail or self._counts[name] in self.fail_calls.get(name, set())

    @staticmethod
    def _rejected() -> StoreResult:
        return StoreResult.failure(500, {"message": "metadata store unavailable"})

    # Reads ---------------------------------------------------------------

    def get_user_asset(self, asset_name):
        if self._should_fail("get_user_asset"):
            return self._rejected()
        row = self.assets.get(asset_name)
        return StoreResult.success([dict(row)] if row else [])

    def get_project(self, project_id):
        if self._should_fail("get_project"):
            return self._rejected()
        row = self.projects.get(project_id)
        return StoreResult.success([dict(row)] if row else [])

    def get_profile(self, profile_id):
        if self._should_fail("get_profile"):
            return self._rejected()
        row = self.profiles.get(profile_id)
        return StoreResult.success([dict(row)] if row else [])

    # User asset writes ---------------------------------------------------

    def create_user_asset(self, asset_name, asset_url, asset_type, asset_size, project_id=None):
        if self._should_fail("create_user_asset"):
            return self._rejected()
        if asset_name in self.assets:
            return StoreResult.failure(409, {"message": "duplicate key value", "code": "23505"})
        row = {
            "id": f"id-{asset_name}",
            "name": asset_name,
            "asset_url": asset_url,
            "asset_type": asset_type,
            "size": asset_size,
            "project_id": project_id,
            "poster_url": None,
        }
        self.assets[asset_name] = row
        return StoreResult.success(dict(row))

    def update_user_asset_url(self, asset_name, asset_url, asset_size):
        if self._should_fail("update_user_asset_url"):
            return self._rejected()
        row = self.assets.get(asset_name)
        if row is None:
            return StoreResult.failure(404, {"message": "asset not found"})
        row.update(asset_url=asset_url, size=asset_size)
        return StoreResult.success(dict(row))

    def delete_user_asset(self, asset_name):
        if self._should_fail("delete_user_asset"):
            return self._rejected()
        row = self.assets.pop(asset_name, None)
        return StoreResult.success(dict(row) if row else {})

    # Owner writes --------------------------------------------------------

    def update_project_poster(self, project_id, poster_url):
        if self._should_fail("update_project_poster"):
            return self._rejected()
        self.projects[project_id]["poster_url"] = poster_url
        return StoreResult.success(dict(self.projects[project_id]))

    def update_profile_avatar(self, avatar_url):
        if self._should_fail("update_profile_avatar"):
            return self._rejected()
        self.profiles[self.current_user]["avatar_url"] = avatar_url
        return StoreResult.success(dict(self.profiles[self.current_user]))

    def update_user_asset_poster(self, asset_name, poster_url):
        if self._should_fail("update_user_asset_poster"):
            return self._rejected()
        self.assets[asset_name]["poster_url"] = poster_url
        return StoreResult.success(dict(self.assets[asset_name]))


class FakeObjectStore(ObjectStore):
    """In-memory object store; set fail_put / fail_delete to simulate outages."""

    def __init__(self):
        self.objects: dict[str, StoredObject] = {}
        self.fail_put = False
        self.fail_delete = False
        self.calls: list[tuple[str, str]] = []

    def put(self, key, body, content_type, content_length):
        self.calls.append(("put", key))
        payload = read_body(body)
        check_length(key, payload, content_length)
        if self.fail_put:
            raise ObjectStoreError("put", key, "upload interrupted")
        self.objects[key] = StoredObject(body=payload, content_type=content_type)

    def get(self, key):
        self.calls.append(("get", key))
        return self.objects.get(key)

    def delete(self, key):
        self.calls.append(("delete", key))
        if not key:
            return
        if self.fail_delete:
            raise ObjectStoreError("delete", key, "bucket unavailable")
        self.objects.pop(key, None)

    def ping(self):
        pass


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def metadata() -> FakeMetadataStore:
    return FakeMetadataStore()


@pytest.fixture
def objects() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def config() -> CoordinatorConfig:
    return CoordinatorConfig(
        asset_base_url=BASE_URL,
        max_asset_size=1024,
        max_poster_size=256,
    )


@pytest.fixture
def coordinator(metadata, objects, config) -> AssetWriteCoordinator:
    return AssetWriteCoordinator(metadata, objects, config)


@pytest.fixture
def linked_coordinator(metadata, objects, config) -> LinkedAssetWriteCoordinator:
    return LinkedAssetWriteCoordinator(metadata, objects, config)
