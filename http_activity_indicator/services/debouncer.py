"""
可见性去抖模块：
- 将原始的 "有请求在途" 布尔流转换为平滑的指示器可见性流。
- 显示去抖：忙碌状态持续 debounce_delay 之后才显示，避免快速请求造成闪烁。
- 最短显示时长：一旦显示，至少保持 min_duration。
- 额外显示时长：活动结束后，至少再保持 extra_duration 才隐藏。
- 强制可见性：VisibilityService 发布的值直接覆盖当前状态。

实现为显式的有限状态机，每个阶段最多只有一个待执行的定时器，
被相反的边沿取代时会被取消（而不是忽略）。
"""

import logging
from typing import Callable, List, Optional

from ..core.observable import ReplayValue
from ..core.scheduler import Scheduler, TimerHandle
from ..core.types import IndicatorTimings, VisibilityState

logger = logging.getLogger(__name__)


class VisibilityDebouncer:
    """Turns busy/idle edges into a debounced, deduplicated visibility broadcast."""

    def __init__(
        self,
        status: ReplayValue[bool],
        scheduler: Scheduler,
        timings: Optional[IndicatorTimings] = None,
        forced: Optional[ReplayValue[bool]] = None,
    ):
        self._scheduler = scheduler
        self._timings = timings or IndicatorTimings()
        self._timer: Optional[TimerHandle] = None
        self.state = VisibilityState.HIDDEN
        self.visible_until = scheduler.now()
        self.visibility: ReplayValue[bool] = ReplayValue(False, distinct=True)

        # 订阅时会立即重放当前值，晚于请求开始创建的去抖器也能看到忙碌状态
        self._unsubscribers: List[Callable[[], None]] = []
        try:
            self._unsubscribers.append(status.subscribe(self._on_status))
            if forced is not None:
                self._unsubscribers.append(forced.subscribe(self._on_forced))
        except Exception:
            self.close()
            raise

    @property
    def timings(self) -> IndicatorTimings:
        return self._timings

    def update_timings(self, timings: IndicatorTimings):
        """替换时间参数。已经在运行的定时器不会被重新安排。"""
        self._timings = timings
        logger.info(
            f"Indicator timings updated: debounce={timings.debounce_delay}ms, "
            f"min={timings.min_duration}ms, extra={timings.extra_duration}ms"
        )

    @property
    def is_visible(self) -> bool:
        return self.visibility.value

    def remaining_visible_ms(self) -> float:
        """最短显示时长还剩多少毫秒；指示器未显示时为 0。"""
        if not self.is_visible:
            return 0.0
        return float(max(0, self.visible_until - self._scheduler.now()))

    # ===== 输入处理 =====

    def _on_status(self, busy: bool):
        if busy:
            self._on_busy()
        else:
            self._on_idle()

    def _on_busy(self):
        if self.state in (VisibilityState.HIDDEN, VisibilityState.PENDING_SHOW):
            # 每个忙碌边沿都会重新开始等待
            self._cancel_timer()
            delay = self._timings.debounce_delay
            if delay <= 0:
                self._show()
                return
            self._timer = self._scheduler.call_later(delay, self._on_show_timer)
            self.state = VisibilityState.PENDING_SHOW
        elif self.state == VisibilityState.PENDING_HIDE:
            self._cancel_timer()
            self.state = VisibilityState.VISIBLE
            logger.debug("Pending hide cancelled by new activity.")

    def _on_idle(self):
        if self.state == VisibilityState.PENDING_SHOW:
            self._cancel_timer()
            self.state = VisibilityState.HIDDEN
            logger.debug("Activity ended before debounce delay, indicator not shown.")
        elif self.state == VisibilityState.VISIBLE:
            remaining = self.visible_until - self._scheduler.now()
            # 两个约束取较大者，而不是相加
            delay = max(self._timings.extra_duration, remaining, 0)
            if delay <= 0:
                self._hide()
                return
            self._timer = self._scheduler.call_later(delay, self._on_hide_timer)
            self.state = VisibilityState.PENDING_HIDE

    def _on_forced(self, visible: bool):
        self._cancel_timer()
        if visible:
            self._show()
        else:
            self._hide()

    # ===== 定时器回调 =====

    def _on_show_timer(self):
        self._timer = None
        if self.state == VisibilityState.PENDING_SHOW:
            self._show()

    def _on_hide_timer(self):
        self._timer = None
        if self.state == VisibilityState.PENDING_HIDE:
            self._hide()

    # ===== 状态迁移 =====

    def _show(self):
        self.state = VisibilityState.VISIBLE
        self._emit(True)

    def _hide(self):
        self.state = VisibilityState.HIDDEN
        self._emit(False)

    def _emit(self, visible: bool):
        if self.visibility.value == visible:
            return
        if visible:
            self.visible_until = self._scheduler.now() + self._timings.min_duration
        logger.debug(f"Indicator visibility -> {visible}")
        self.visibility.publish(visible)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def close(self):
        """取消订阅所有输入并取消待执行的定时器。"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._cancel_timer()
