# =============================================================================
# core/services/write_protocol.py - Metadata-First Compensating Write
# =============================================================================
# Helpers shared by the asset coordinators.
#
# The metadata store and the object store have no common transaction, so
# every write runs in a fixed order:
#   1. write metadata (failure: return it, nothing to undo)
#   2. write/delete the object (failure: undo step 1, surface the error)
# A metadata row may briefly point at bytes that are not there yet, but
# bytes are never left behind without a row that references them.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from app.config import Settings
from core.models.result import ErrorKind, OperationResult, StoreResult
from core.services.object_store import ObjectStore
from lib.key_codec import KeyCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoordinatorConfig:
    """Limits and URL base handed to the coordinators at construction."""
    asset_base_url: str
    max_asset_size: int
    max_poster_size: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "CoordinatorConfig":
        return cls(
            asset_base_url=settings.USER_ASSET_BASE_URL,
            max_asset_size=settings.USER_ASSET_MAX_SIZE,
            max_poster_size=settings.POSTER_ASSET_MAX_SIZE,
        )

    @property
    def codec(self) -> KeyCodec:
        return KeyCodec(self.asset_base_url)


def validate_size(content_length: int | None, maximum: int, label: str = "asset") -> OperationResult | None:
    """
    Check a declared Content-Length against a limit.

    Returns:
        None when the size is acceptable, otherwise an INVALID_INPUT failure
    """
    if not content_length or content_length <= 0:
        return OperationResult.failure(ErrorKind.INVALID_INPUT, f"invalid {label} size")
    if content_length > maximum:
        return OperationResult.failure(
            ErrorKind.INVALID_INPUT,
            f"{label} size too large",
            status_code=413,
        )
    return None


def compensate(
    undo: Callable[[], StoreResult],
    error: Exception,
    *,
    operation: str,
    target: str,
) -> OperationResult:
    """
    Undo a metadata write after the object store step failed.

    The original object store error is always what gets surfaced. If the
    undo itself fails the stores are left inconsistent; that is logged at
    ERROR with enough context to reconcile by hand.

    Args:
        undo: Metadata call restoring the pre-operation state
        error: The object store exception that triggered the rollback
        operation: Name of the failed operation (for logs)
        target: Logical path being written (for logs)
    """
    try:
        outcome = undo()
    except Exception as undo_error:
        outcome = StoreResult.failure(500, {"message": str(undo_error)})

    if not outcome.ok:
        logger.error(
            f"Reconciliation failed: {operation} of {target} failed in the object store "
            f"({error}) and the metadata rollback was rejected "
            f"(status={outcome.status_code}, body={outcome.error})"
        )
        return OperationResult.failure(
            ErrorKind.COMPENSATION_FAILED,
            str(error),
            error=error,
        )

    logger.warning(f"{operation} of {target} failed in the object store, metadata rolled back: {error}")
    return OperationResult.failure(
        ErrorKind.OBJECT_STORE_WRITE_FAILED,
        str(error),
        error=error,
    )


def decode_key(codec: KeyCodec, url: str, *, target: str) -> str | None:
    """
    Map a stored URL back to its storage key.

    A URL outside the configured base URL means the row was written by
    something else (or the base URL changed). That is logged at ERROR and
    None is returned; the object store must not be touched for it.
    """
    key = codec.url_to_key(url)
    if key is None:
        logger.error(
            f"Data integrity: {target} references {url!r}, "
            f"which is outside the asset base URL {codec.prefix!r}"
        )
    return key


def foreign_url_failure(target: str) -> OperationResult:
    return OperationResult.failure(
        ErrorKind.NOT_FOUND,
        f"stored url for {target} is outside the asset base url",
    )


def reclaim(objects: ObjectStore, key: str | None) -> None:
    """Best-effort delete of a superseded object. Failures are only logged."""
    if not key:
        return
    try:
        objects.delete(key)
    except Exception as e:
        logger.warning(f"Could not delete superseded object {key}: {e}")
