# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors carry a machine-readable code and a suggestion for the caller.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class AssetGateException(Exception):
    """
    Base exception for the AssetGate API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "ASSETGATE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Object Store Exceptions
# =============================================================================

class ObjectStoreError(AssetGateException):
    """Raised by an object store backend when a put/get/delete fails."""

    def __init__(self, operation: str, key: str, error: str):
        super().__init__(
            message=f"Object store {operation} failed: {error}",
            code="OBJECT_STORE_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"operation": operation, "key": key, "error": error}
        )
        self.operation = operation
        self.key = key


# =============================================================================
# Request Exceptions
# =============================================================================

class InvalidAssetPathError(AssetGateException):
    """Raised when the asset path is empty after normalisation."""

    def __init__(self, path: str):
        super().__init__(
            message=f"Invalid asset path: {path!r}",
            code="INVALID_ASSET_PATH",
            status_code=400,
            suggestion="Provide a non-empty asset path after the endpoint prefix",
            details={"path": path}
        )


class OperationFailedError(AssetGateException):
    """
    Raised by a router when a coordinator returns a failed OperationResult.

    The error kind becomes the response code so clients can tell a clean
    rejection from a failed upload that left metadata needing reconciliation.
    """

    SUGGESTIONS = {
        "INVALID_INPUT": "Send a non-empty body with a valid Content-Length and Content-Type",
        "NOT_FOUND": "Check that the asset path is correct",
        "ID_MISMATCH": "Check that the id in the path matches an owner you can modify",
        "OBJECT_STORE_WRITE_FAILED": "The change was rolled back; retry the request",
        "COMPENSATION_FAILED": "The change could not be rolled back; contact support",
    }

    def __init__(self, kind: str, message: str, status_code: int, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=kind,
            status_code=status_code,
            suggestion=self.SUGGESTIONS.get(kind),
            details=details,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def assetgate_exception_handler(
    request: Request,
    exc: AssetGateException
) -> JSONResponse:
    """
    Convert AssetGateException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle Pydantic/FastAPI request validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
