import logging

from ..core.observable import ReplayValue

logger = logging.getLogger(__name__)


class VisibilityService:
    """
    强制显示/隐藏指示器的服务。

    用于在请求追踪流程之外手动控制指示器，例如长时间的后台任务。
    发布的值会被去抖器直接合并到输出中。
    """

    def __init__(self):
        # 没有初始值：在第一次调用 show/hide 之前不会影响输出
        self.visibility: ReplayValue[bool] = ReplayValue()

    def show(self):
        logger.debug("Indicator forced visible.")
        self.visibility.publish(True)

    def hide(self):
        logger.debug("Indicator forced hidden.")
        self.visibility.publish(False)

    def set(self, visible: bool):
        if visible:
            self.show()
        else:
            self.hide()
