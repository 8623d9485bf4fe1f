"""
可重放的状态广播模块。

ReplayValue 是一个 "当前值 + 通知" 容器：
- 发布新值时同步通知所有订阅者。
- 新订阅者在订阅时立即收到最后一次发布的值，因此晚订阅者不会错过已经处于 True 的状态。
- 可选地对连续相同的值去重。
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Generic, List, TypeVar

from .types import SchedulerUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Unsubscribe = Callable[[], None]

_UNSET = object()


class ReplayValue(Generic[T]):
    """A broadcast that caches the last published value and replays it to new subscribers."""

    def __init__(self, initial=_UNSET, *, distinct: bool = False):
        self._value = initial
        self._distinct = distinct
        self._subscribers: List[Subscriber] = []

    @property
    def has_value(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> T:
        """返回最后发布的值；尚未发布过任何值时抛出 LookupError。"""
        if self._value is _UNSET:
            raise LookupError("No value has been published yet")
        return self._value

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        """
        注册订阅者并立即重放当前值（如果有）。

        Returns:
            一个取消订阅的函数，可重复调用。
        """
        self._subscribers.append(callback)
        if self._value is not _UNSET:
            try:
                self._notify(callback, self._value)
            except SchedulerUnavailableError:
                # 重放失败时订阅不成立，调用方拿不到取消订阅的函数
                self._subscribers.remove(callback)
                raise

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, value: T) -> bool:
        """发布新值。返回 False 表示该值因去重而被丢弃。"""
        if self._distinct and self._value is not _UNSET and self._value == value:
            return False
        self._value = value
        # 复制一份，允许订阅者在回调中取消订阅
        for callback in list(self._subscribers):
            self._notify(callback, value)
        return True

    def _notify(self, callback: Subscriber, value: T):
        try:
            callback(value)
        except SchedulerUnavailableError:
            # 调度器不可用需要向上传递
            raise
        except Exception as e:
            name = getattr(callback, "__qualname__", repr(callback))
            logger.error(f"Subscriber error in {name}: {e}", exc_info=True)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def stream(self) -> AsyncIterator[T]:
        """以异步迭代器的形式消费值，首先产出当前值（如果有）。"""
        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()
