"""
中间件模块。

- RequestIdMiddleware：为每个请求添加唯一 ID 以便进行日志追踪。
- ActivityTrackingMiddleware：将每个 HTTP 请求的开始和结束报告给 ActivityTracker。
"""

import uuid
from contextvars import ContextVar
from typing import Optional
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..services.activity_tracker import ActivityTracker

REQUEST_ID_HEADER = "X-Request-ID"

# 使用 ContextVar 来在整个请求处理链路中安全地传递请求 ID
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    为每个进入的请求添加唯一 ID 的中间件。

    如果客户端已经携带了 X-Request-ID，则沿用该值。
    """
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

class ActivityTrackingMiddleware:
    """
    追踪在途 HTTP 请求的 ASGI 中间件。

    使用纯 ASGI 实现而不是 BaseHTTPMiddleware：请求在响应体完全发送
    （或应用抛出异常）之后才算结束，流式响应在传输期间保持计数。
    """
    def __init__(self, app: ASGIApp, tracker: ActivityTracker):
        self.app = app
        self.tracker = tracker

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        handle = self.tracker.start(
            method=scope["method"],
            url=str(request.url),
            headers=dict(Headers(scope=scope)),
        )
        status_code = 500

        async def send_wrapper(message: Message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        success = False
        try:
            await self.app(scope, receive, send_wrapper)
            success = status_code < 500
        finally:
            self.tracker.end(handle, success=success)
