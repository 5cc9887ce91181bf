# =============================================================================
# core/models/result.py - Store and Operation Results
# =============================================================================
# StoreResult is what every metadata store call returns: an ok flag, an
# HTTP-like status and either a payload or an error body. "not ok" is the
# only failure signal the coordinators look at.
#
# OperationResult is what every coordinator operation returns. Failures are
# tagged with an ErrorKind instead of being thrown, so the HTTP layer can
# tell a clean rejection from a write that needed compensation.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """
    Failure taxonomy for asset operations.

    - INVALID_INPUT: rejected before any remote call
    - NOT_FOUND / ID_MISMATCH: read-path failures, no side effects
    - METADATA_WRITE_FAILED: first write failed, nothing to undo
    - OBJECT_STORE_WRITE_FAILED: object step failed, metadata rolled back
    - COMPENSATION_FAILED: object step failed and the rollback failed too;
      stores are inconsistent until fixed by hand
    """
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    ID_MISMATCH = "ID_MISMATCH"
    METADATA_WRITE_FAILED = "METADATA_WRITE_FAILED"
    OBJECT_STORE_WRITE_FAILED = "OBJECT_STORE_WRITE_FAILED"
    COMPENSATION_FAILED = "COMPENSATION_FAILED"

    @property
    def default_status(self) -> int:
        return _DEFAULT_STATUS[self]


_DEFAULT_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.ID_MISMATCH: 400,
    ErrorKind.METADATA_WRITE_FAILED: 500,
    ErrorKind.OBJECT_STORE_WRITE_FAILED: 500,
    ErrorKind.COMPENSATION_FAILED: 500,
}


@dataclass
class StoreResult:
    """Outcome of one metadata store call."""
    ok: bool
    status_code: int = 200
    data: Any = None
    error: Any = None

    @classmethod
    def success(cls, data: Any, status_code: int = 200) -> "StoreResult":
        return cls(ok=True, status_code=status_code, data=data)

    @classmethod
    def failure(cls, status_code: int, error: Any) -> "StoreResult":
        return cls(ok=False, status_code=status_code, error=error)

    def first(self) -> dict[str, Any] | None:
        """First row of a list payload (or the payload itself if it is a row)."""
        if isinstance(self.data, list):
            return self.data[0] if self.data else None
        if isinstance(self.data, dict):
            return self.data
        return None


@dataclass
class OperationResult:
    """
    Outcome of a coordinator operation.

    On success `data` is the payload to return (the metadata write's
    result, a StoredObject for downloads, or {} for deletes). On failure
    `kind` says what went wrong and `error` keeps the original exception
    for object store failures.
    """
    ok: bool
    status_code: int = 200
    data: Any = None
    kind: ErrorKind | None = None
    message: str | None = None
    error: BaseException | None = None

    @classmethod
    def success(cls, data: Any = None, status_code: int = 200) -> "OperationResult":
        return cls(ok=True, status_code=status_code, data=data)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        status_code: int | None = None,
        data: Any = None,
        error: BaseException | None = None,
    ) -> "OperationResult":
        return cls(
            ok=False,
            status_code=status_code or kind.default_status,
            data=data,
            kind=kind,
            message=message,
            error=error,
        )

    @classmethod
    def from_store_failure(
        cls,
        result: StoreResult,
        kind: ErrorKind = ErrorKind.METADATA_WRITE_FAILED,
    ) -> "OperationResult":
        """Pass a failed metadata call through with its own status and body."""
        return cls.failure(
            kind,
            message="Metadata store request failed",
            status_code=result.status_code,
            data=result.error,
        )

    @property
    def passthrough(self) -> bool:
        """True when the failure body came verbatim from the metadata store."""
        return not self.ok and self.error is None and self.data is not None

    @property
    def compensated(self) -> bool:
        return self.kind is ErrorKind.OBJECT_STORE_WRITE_FAILED
