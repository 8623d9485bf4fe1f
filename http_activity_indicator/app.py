"""
应用装配模块：
- 创建并配置 FastAPI 实例。
- 显式创建追踪器、强制可见性服务与去抖器，并存入 app.state。
- 注册中间件、路由和异常处理器。
"""

from typing import Optional
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import SettingsDict
from .core.lifespan import lifespan
from .core.middleware import ActivityTrackingMiddleware, RequestIdMiddleware
from .core.scheduler import AsyncioScheduler, Scheduler
from .core.types import IndicatorTimings
from .services.activity_tracker import ActivityTracker
from .services.debouncer import VisibilityDebouncer
from .services.filters import FilterSet
from .services.visibility import VisibilityService
from .api.routes import activity, proxy
from .api.exception_handlers import generic_exception_handler

def create_app(settings: SettingsDict, scheduler: Optional[Scheduler] = None) -> FastAPI:
    """
    创建并返回一个配置好的 FastAPI 应用实例。

    Args:
        settings: 已合并默认值的配置。
        scheduler: (可选) 去抖器使用的调度器，默认基于运行中的事件循环。
    """
    app = FastAPI(
        title="HTTP Activity Indicator",
        description="Tracks in-flight HTTP requests and exposes a debounced activity indicator.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # 将配置存储在应用状态中，以便在各处访问
    app.state.settings = settings

    # 服务实例由应用显式持有，不使用模块级单例
    tracker = ActivityTracker(FilterSet.from_settings(settings["filters"]))
    visibility_service = VisibilityService()
    debouncer = VisibilityDebouncer(
        status=tracker.status,
        scheduler=scheduler or AsyncioScheduler(),
        timings=IndicatorTimings.from_settings(settings["indicator"]),
        forced=visibility_service.visibility,
    )
    app.state.activity_tracker = tracker
    app.state.visibility_service = visibility_service
    app.state.visibility_debouncer = debouncer

    # 注意：后添加的中间件位于外层，请求 ID 需要先于活动追踪设置
    app.add_middleware(ActivityTrackingMiddleware, tracker=tracker)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 创建一个用于公开端点的路由器
    public_router = APIRouter()

    @public_router.get("/health", tags=["Public"])
    async def health_check():
        """公开的健康检查端点。"""
        return {"status": "healthy"}

    app.include_router(public_router)
    app.include_router(activity.router)
    if settings["upstream"]["base_url"]:
        app.include_router(proxy.router)

    # 注册全局异常处理器
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
