import logging
from typing import Dict, Mapping, Optional

from ..core.observable import ReplayValue
from ..core.types import Operation, OperationHandle, SchedulerUnavailableError
from .filters import FilterSet

logger = logging.getLogger(__name__)


class ActivityTracker:
    """
    A lightweight, non-blocking tracker for in-flight requests.

    Start/end notifications are expected to arrive one at a time from the
    event loop, so no locking is required. Only operations that pass the
    current FilterSet are counted, and the `status` broadcast publishes only
    on the 0 -> 1 and 1 -> 0 edges of the pending count.
    """

    def __init__(self, filters: Optional[FilterSet] = None):
        self._filters = filters or FilterSet()
        self._pending_requests = 0
        # 在途句柄 ID -> 开始时的过滤结果
        self._in_flight: Dict[int, bool] = {}
        self.status: ReplayValue[bool] = ReplayValue(False, distinct=True)

    @property
    def filters(self) -> FilterSet:
        return self._filters

    def set_filters(self, filters: FilterSet):
        """替换过滤器快照，只影响之后开始的请求。"""
        self._filters = filters
        logger.info(f"Activity filters replaced: {filters.to_dict()}")

    def record_start(self, operation: Operation) -> OperationHandle:
        """Evaluates the operation against the filters and counts it if eligible."""
        handle = OperationHandle(operation=operation, counted=self._filters.is_eligible(operation))
        self._in_flight[handle.id] = handle.counted

        if handle.counted:
            self._pending_requests += 1
            if self._pending_requests == 1:
                try:
                    self.status.publish(True)
                except SchedulerUnavailableError:
                    # 调用方拿不到句柄，回滚计数，避免指示器永远处于忙碌状态
                    self._in_flight.pop(handle.id, None)
                    self._pending_requests -= 1
                    self.status.publish(False)
                    raise
        else:
            logger.debug(f"Request bypassed by filters: {operation.method} {operation.url}")
        return handle

    def record_end(self, handle: OperationHandle, success: bool = True):
        """
        Ends an operation.

        Unknown or already-ended handles are ignored. Only a handle that was
        counted at start time decrements the count, regardless of any filter
        changes since.
        """
        counted = self._in_flight.pop(handle.id, None)
        if counted is None:
            logger.debug(f"Ignoring end of unknown or already ended operation #{handle.id}")
            return
        if not success:
            logger.debug(f"Operation #{handle.id} failed: {handle.operation.method} {handle.operation.url}")
        if not counted:
            return

        if self._pending_requests <= 0:
            logger.warning("Pending request count would become negative, clamping to zero.")
            self._pending_requests = 0
        else:
            self._pending_requests -= 1

        if self._pending_requests == 0:
            self.status.publish(False)

    def start(self, method: str, url: str, headers: Optional[Mapping[str, str]] = None) -> OperationHandle:
        return self.record_start(Operation(method=method, url=url, headers=dict(headers or {})))

    def end(self, handle: OperationHandle, success: bool = True):
        self.record_end(handle, success)

    @property
    def pending_count(self) -> int:
        """Returns the current number of counted in-flight requests."""
        return self._pending_requests

    @property
    def is_busy(self) -> bool:
        return self.status.value
