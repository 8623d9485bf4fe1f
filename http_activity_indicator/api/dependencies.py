"""
API 依赖注入模块。

提供用于 FastAPI 路由的依赖项，以便从应用状态中获取服务实例。
"""

import httpx
from fastapi import Request
from ..services.activity_tracker import ActivityTracker
from ..services.debouncer import VisibilityDebouncer
from ..services.visibility import VisibilityService

def get_activity_tracker(request: Request) -> ActivityTracker:
    """依赖项：从应用状态获取 ActivityTracker 实例。"""
    return request.app.state.activity_tracker

def get_visibility_service(request: Request) -> VisibilityService:
    """依赖项：从应用状态获取 VisibilityService 实例。"""
    return request.app.state.visibility_service

def get_visibility_debouncer(request: Request) -> VisibilityDebouncer:
    """依赖项：从应用状态获取 VisibilityDebouncer 实例。"""
    return request.app.state.visibility_debouncer

def get_http_client(request: Request) -> httpx.AsyncClient:
    """依赖项：从应用状态获取共享的 httpx 客户端。"""
    return request.app.state.http_client
