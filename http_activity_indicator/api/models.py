"""
API 数据模型模块。

定义活动状态端点的请求体和响应体（Pydantic 模型）。
"""

from typing import List
from pydantic import BaseModel, Field

class ActivityStatus(BaseModel):
    """指示器当前状态的快照。"""
    pending_requests: int
    busy: bool
    visible: bool
    state: str
    remaining_visible_ms: float

class VisibilityRequest(BaseModel):
    """强制显示或隐藏指示器。"""
    visible: bool

class FiltersPayload(BaseModel):
    """完整替换过滤器时使用的请求体，同时用于展示当前过滤器。"""
    methods: List[str] = Field(default_factory=list)
    headers: List[str] = Field(default_factory=list)
    url_patterns: List[str] = Field(default_factory=list)
    included_url_patterns: List[str] = Field(default_factory=list)

class TimingsPayload(BaseModel):
    debounce_delay_ms: float = Field(0, ge=0)
    min_duration_ms: float = Field(0, ge=0)
    extra_duration_ms: float = Field(0, ge=0)
