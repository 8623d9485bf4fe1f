"""
核心类型定义模块。

该文件包含了跨模块共享的数据类、枚举和异常类型：
- Operation / OperationHandle：一次被追踪的异步请求及其句柄。
- VisibilityState：指示器可见性状态机的四个状态。
- IndicatorTimings：去抖器的时间参数快照。
"""

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

# 句柄 ID 生成器，进程内唯一
_handle_ids = itertools.count(1)


# ===== 异常 =====

class SchedulerUnavailableError(RuntimeError):
    """宿主调度器不可用（例如没有正在运行的事件循环），去抖器无法继续工作。"""


# ===== 数据类 =====

@dataclass(frozen=True)
class Operation:
    """一次在途的异步请求，仅在开始时用于过滤判断。"""
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def has_header(self, name: str) -> bool:
        """按不区分大小写的方式判断请求是否带有某个头。"""
        wanted = name.lower()
        return any(key.lower() == wanted for key in self.headers)


@dataclass(frozen=True)
class OperationHandle:
    """
    record_start 返回的句柄。

    `counted` 缓存了开始时的过滤结果，结束时直接复用，不会重新评估过滤器。
    """
    operation: Operation
    counted: bool
    id: int = field(default_factory=lambda: next(_handle_ids))


class VisibilityState(str, Enum):
    """指示器可见性状态机的状态。"""
    HIDDEN = "hidden"
    PENDING_SHOW = "pending_show"
    VISIBLE = "visible"
    PENDING_HIDE = "pending_hide"


@dataclass(frozen=True)
class IndicatorTimings:
    """去抖器的时间参数（毫秒）。"""
    debounce_delay: float = 0
    min_duration: float = 0
    extra_duration: float = 0

    def __post_init__(self):
        for name in ("debounce_delay", "min_duration", "extra_duration"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @classmethod
    def from_settings(cls, indicator_settings: Optional[Mapping[str, float]]) -> "IndicatorTimings":
        """从配置中的 indicator 段构建时间参数。"""
        data = indicator_settings or {}
        return cls(
            debounce_delay=data.get("debounce_delay_ms", 0),
            min_duration=data.get("min_duration_ms", 0),
            extra_duration=data.get("extra_duration_ms", 0),
        )
