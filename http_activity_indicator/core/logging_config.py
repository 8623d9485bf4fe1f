"""
日志配置模块：
- 使用 dictConfig 提供结构化的日志配置。
- 统一应用日志和 uvicorn 访问日志的格式。
- 注入 request_id 以便追踪。
"""

import logging
from typing import Dict, Any

from .middleware import request_id_var

class RequestIdFilter(logging.Filter):
    """一个将请求 ID 注入日志记录的过滤器。不在请求上下文中时为 "-"。"""
    def filter(self, record):
        record.request_id = request_id_var.get() or "-"
        return True

def get_logging_config(log_level: str) -> Dict[str, Any]:
    """
    生成日志配置字典。
    """
    level = log_level.upper()
    handler = {
        "class": "logging.StreamHandler",
        "filters": ["request_id_filter"],
        "stream": "ext://sys.stdout",
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id_filter": {
                "()": RequestIdFilter,
            },
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "access": {
                "format": "%(asctime)s - [%(request_id)s] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "default": {**handler, "formatter": "default"},
            "access": {**handler, "formatter": "access"},
        },
        "loggers": {
            "http_activity_indicator": {
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
            # 移除 uvicorn 根 logger 的 handler，避免重复
            "uvicorn": {
                "handlers": [],
                "level": level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": ["default"],
                "level": level,
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["access"],
                "level": level,
                "propagate": False,
            },
        },
    }
