"""
调度器模块。

去抖器只通过 Scheduler 协议与时间交互：读取当前时间、安排一个可取消的回调。
生产环境使用 AsyncioScheduler（基于事件循环的 call_later），测试中可替换为手动推进的实现。
所有时间单位均为毫秒。
"""

import asyncio
import time
from typing import Callable, Optional, Protocol

from .types import SchedulerUnavailableError


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def now(self) -> float:
        """当前时间（毫秒，单调递增）。"""
        ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """在 delay_ms 毫秒后执行 callback，返回可取消的句柄。"""
        ...


class AsyncioScheduler:
    """
    Schedules callbacks on an asyncio event loop.

    If no loop is given, the running loop is resolved on every call, so the
    scheduler can be created before the server starts. Scheduling without a
    running (or with a closed) loop raises SchedulerUnavailableError.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise SchedulerUnavailableError("No running event loop to schedule timers on") from e
        if loop.is_closed():
            raise SchedulerUnavailableError("Event loop is closed")
        return loop

    def now(self) -> float:
        return time.monotonic() * 1000

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._get_loop()
        return loop.call_later(max(0.0, delay_ms) / 1000, callback)
