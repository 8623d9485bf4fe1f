"""
全局异常处理模块：
- 未处理的异常统一转换为 500 JSON 响应，响应体带上出错的路径。
- 活动计数由 ActivityTrackingMiddleware 负责收尾，这里只负责记录与响应。
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

async def generic_exception_handler(request: Request, exc: Exception):
    path = request.url.path
    logger.error(
        f"Unhandled {type(exc).__name__} for {request.method} {path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "Internal error while handling the request.",
                "type": "internal_error",
                "path": path,
            }
        },
    )
