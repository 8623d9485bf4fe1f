"""
上游转发路由模块。

当配置了 upstream.base_url 时，/upstream/* 下的请求会通过共享的 httpx 客户端
转发到上游服务。转发期间请求由 ActivityTrackingMiddleware 计入活动。
"""

import logging
import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..dependencies import get_http_client

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/upstream",
    tags=["Upstream"],
)

# 逐跳头以及由 httpx 重新计算的头不转发
_SKIPPED_HEADERS = {
    "host", "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailers", "transfer-encoding", "upgrade", "content-length", "content-encoding",
}

def _forwardable_headers(headers) -> dict:
    return {k: v for k, v in headers.items() if k.lower() not in _SKIPPED_HEADERS}

@router.api_route("/{full_path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD"])
async def forward_to_upstream(
    request: Request,
    full_path: str,
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """将请求原样转发到上游并返回其响应。"""
    base_url = request.app.state.settings["upstream"]["base_url"]
    target_url = f"{base_url.rstrip('/')}/{full_path}"

    try:
        upstream_response = await client.request(
            request.method,
            target_url,
            params=list(request.query_params.multi_items()),
            content=await request.body(),
            headers=_forwardable_headers(request.headers),
        )
    except httpx.HTTPError as e:
        logger.warning(f"Upstream request failed: {request.method} {target_url}: {e}")
        raise HTTPException(status_code=502, detail=f"Upstream request failed: {e}")

    logger.debug(f"Upstream {request.method} {target_url} -> {upstream_response.status_code}")
    return Response(
        content=upstream_response.content,
        status_code=upstream_response.status_code,
        headers=_forwardable_headers(upstream_response.headers),
    )
