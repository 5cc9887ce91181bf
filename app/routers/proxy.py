# =============================================================================
# app/routers/proxy.py - Supabase Pass-Through
# =============================================================================
# /rest/... and /auth/... are forwarded to the Supabase project unchanged,
# so clients can use one origin for both the REST/auth APIs and the asset
# endpoints.
#
# The proxy adds the project's apikey header. Requests without a usable
# bearer token ("Bearer", "Bearer 0" or none) are sent with the anon key.
# =============================================================================

import logging
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

# Not forwarded in either direction
HOP_BY_HOP_HEADERS = {
    "host",
    "connection",
    "keep-alive",
    "content-length",
    "content-encoding",
    "transfer-encoding",
    "upgrade",
}


def build_proxy_headers(headers: dict[str, str], anon_key: str) -> dict[str, str]:
    """
    Prepare request headers for Supabase.

    Example:
        build_proxy_headers({"Authorization": "Bearer 0"}, "anon")
        # {"apikey": "anon", "authorization": "Bearer anon"}
    """
    out = {k.lower(): v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}
    out["apikey"] = anon_key

    auth = out.get("authorization", "")
    if not auth or auth.strip() == "Bearer" or auth == "Bearer 0":
        out["authorization"] = f"Bearer {anon_key}"
    return out


def filter_response_headers(headers: httpx.Headers) -> dict[str, str]:
    return {k: v for k, v in headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.PROXY_TIMEOUT_SECONDS) as client:
        yield client


async def _forward(request: Request, client: httpx.AsyncClient) -> Response:
    target = settings.SUPABASE_URL.rstrip("/") + request.url.path
    if request.url.query:
        target += "?" + request.url.query

    upstream = await client.request(
        request.method,
        target,
        headers=build_proxy_headers(dict(request.headers), settings.SUPABASE_ANON_KEY),
        content=await request.body(),
    )
    logger.debug(f"Proxied {request.method} {request.url.path} -> {upstream.status_code}")

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers=filter_response_headers(upstream.headers),
    )


PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


@router.api_route("/rest/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy_rest(path: str, request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    return await _forward(request, client)


@router.api_route("/auth/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def proxy_auth(path: str, request: Request, client: httpx.AsyncClient = Depends(get_http_client)):
    return await _forward(request, client)
