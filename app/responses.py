# =============================================================================
# app/responses.py - OperationResult -> HTTP
# =============================================================================
# Converts coordinator results into responses:
# - downloads stream the stored bytes with their content type
# - other successes return the metadata store's payload as JSON
# - metadata store failures are forwarded with their own status and body
# - everything else becomes an OperationFailedError for the central handler
# =============================================================================

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from app.exceptions import OperationFailedError
from core.models import OperationResult, StoredObject


def declared_length(request: Request) -> int:
    """Content-Length header as an int (0 when missing or malformed)."""
    try:
        return int(request.headers.get("content-length") or 0)
    except ValueError:
        return 0


def to_response(result: OperationResult) -> Response:
    if result.ok:
        if isinstance(result.data, StoredObject):
            return stored_object_response(result.data)
        content = result.data if result.data is not None else {}
        return JSONResponse(content=content, status_code=result.status_code)

    if result.passthrough:
        return JSONResponse(content=result.data, status_code=result.status_code)

    details = {"error": str(result.error)} if result.error is not None else None
    raise OperationFailedError(
        kind=result.kind.value,
        message=result.message or result.kind.value,
        status_code=result.status_code,
        details=details,
    )


def stored_object_response(stored: StoredObject) -> Response:
    headers = {}
    if stored.etag:
        headers["etag"] = stored.etag
    if stored.cache_control:
        headers["cache-control"] = stored.cache_control
    return Response(
        content=stored.body,
        media_type=stored.content_type or "application/octet-stream",
        headers=headers,
    )
