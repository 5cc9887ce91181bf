# =============================================================================
# core/models/asset.py - Asset and Owner Schemas
# =============================================================================
# These models describe the rows the coordinators read from the metadata
# store:
# - AssetRecord: one user asset (user_assets table)
# - OwnerKind / OwnerRef: which record a poster/avatar image belongs to,
#   resolved once from the request path
# - OwnerRecord: the project/profile/asset row carrying that image URL
# - StoredObject: bytes fetched from the object store
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AssetRecord(BaseModel):
    """
    Metadata for one binary asset.

    `asset_url` is empty until bytes have been stored; otherwise it encodes
    the storage key (see lib.key_codec.KeyCodec).

    Example:
        {
            "id": "8c7e...",
            "name": "docs/report.pdf",
            "asset_url": "https://assets.example.com/3f7a.../65a4f1c0-9b1c/docs/report.pdf",
            "asset_type": "application/pdf",
            "size": 48213,
            "project_id": null
        }
    """

    model_config = ConfigDict(extra="allow")

    id: str | None = Field(default=None, description="Row id")
    name: str = Field(..., description="Logical asset path, unique per owner")
    asset_url: str = Field(default="", description="Public URL of the current bytes")
    asset_type: str = Field(default="application/octet-stream", description="MIME type")
    size: int = Field(default=0, ge=0, description="Size in bytes")
    project_id: str | None = Field(default=None, description="Owning project, if any")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AssetRecord":
        """Build a record from a PostgREST row, tolerating nulls."""
        data = dict(row)
        data["asset_url"] = data.get("asset_url") or ""
        data["asset_type"] = data.get("asset_type") or "application/octet-stream"
        data["size"] = data.get("size") or 0
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        if data.get("project_id") is not None:
            data["project_id"] = str(data["project_id"])
        return cls.model_validate(data)


class OwnerKind(str, Enum):
    """
    Which kind of record owns a poster/avatar image.

    - project: projects.poster_url, path ".projects/<id>"
    - profile: profiles.avatar_url, path ".profiles/<id>"
    - asset: user_assets.poster_url, path "<asset name>"
    """
    PROJECT = "project"
    PROFILE = "profile"
    ASSET = "asset"

    @property
    def url_field(self) -> str:
        return "avatar_url" if self is OwnerKind.PROFILE else "poster_url"

    @property
    def id_field(self) -> str:
        return "name" if self is OwnerKind.ASSET else "id"


OWNER_PATH_PREFIXES = {
    ".projects/": OwnerKind.PROJECT,
    ".profiles/": OwnerKind.PROFILE,
}


class OwnerRef(BaseModel):
    """A resolved reference to the record that owns a linked image."""

    model_config = ConfigDict(frozen=True)

    kind: OwnerKind
    owner_id: str
    path: str

    @classmethod
    def from_path(cls, path: str) -> "OwnerRef":
        """
        Classify a normalised image path.

        Example:
            OwnerRef.from_path(".projects/abc")   # PROJECT, owner_id="abc"
            OwnerRef.from_path("docs/cover.png")  # ASSET, owner_id="docs/cover.png"
        """
        for prefix, kind in OWNER_PATH_PREFIXES.items():
            if path.startswith(prefix):
                return cls(kind=kind, owner_id=path.split("/")[1], path=path)
        return cls(kind=OwnerKind.ASSET, owner_id=path, path=path)


class OwnerRecord(BaseModel):
    """The owning row of a linked image, reduced to what the protocol needs."""

    kind: OwnerKind
    id: str
    url: str = ""

    @classmethod
    def from_row(cls, kind: OwnerKind, row: dict[str, Any]) -> "OwnerRecord":
        return cls(
            kind=kind,
            id=str(row.get(kind.id_field) or ""),
            url=row.get(kind.url_field) or "",
        )


@dataclass
class StoredObject:
    """Bytes and HTTP metadata returned by ObjectStore.get."""
    body: bytes
    content_type: str | None = None
    etag: str | None = None
    cache_control: str | None = None

    @property
    def size(self) -> int:
        return len(self.body)
