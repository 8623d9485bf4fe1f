"""
应用生命周期管理模块：
- 使用 FastAPI 的 lifespan 上下文管理器。
- 启动时创建共享的 httpx.AsyncClient（用于上游转发）。
- 关闭时停止去抖器的定时器并释放客户端。
"""

import logging
from contextlib import asynccontextmanager
import httpx
from fastapi import FastAPI

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理器。
    """
    # ===== 应用启动 =====
    logger.info("Application startup...")
    settings = app.state.settings

    timeouts = settings["upstream"]["timeouts"]
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(timeouts["read"], connect=timeouts["connect"]),
        # 测试中可以通过 app.state.upstream_transport 注入 MockTransport
        transport=getattr(app.state, "upstream_transport", None),
    )
    app.state.http_client = http_client

    timings = app.state.visibility_debouncer.timings
    logger.info(
        f"Indicator ready: debounce={timings.debounce_delay}ms, "
        f"min={timings.min_duration}ms, extra={timings.extra_duration}ms, "
        f"filters={app.state.activity_tracker.filters.to_dict()}"
    )
    base_url = settings["upstream"]["base_url"]
    if base_url:
        logger.info(f"Forwarding /upstream/* to {base_url}")

    logger.info("Application startup complete.")

    yield

    # ===== 应用关闭 =====
    logger.info("Application shutdown...")
    app.state.visibility_debouncer.close()
    await http_client.aclose()
    logger.info("Application shutdown complete.")
