"""
配置模块：
- 定义了应用的所有配置项 (SettingsDict)。
- 提供 load_settings 函数，用于从 JSON 文件加载配置并与默认值合并。
"""

import json
import os
from typing import List, Optional, TypedDict


# ===== 类型定义 =====
class ServerSettings(TypedDict):
    host: str
    port: int

class IndicatorSettings(TypedDict):
    debounce_delay_ms: int
    min_duration_ms: int
    extra_duration_ms: int

class FilterSettings(TypedDict):
    methods: List[str]
    headers: List[str]
    url_patterns: List[str]
    included_url_patterns: List[str]

class TimeoutsSettings(TypedDict):
    connect: int
    read: int

class UpstreamSettings(TypedDict):
    base_url: Optional[str]
    timeouts: TimeoutsSettings

class SettingsDict(TypedDict):
    server: ServerSettings
    auth_keys: List[str]
    log_level: str
    indicator: IndicatorSettings
    filters: FilterSettings
    upstream: UpstreamSettings

# ===== 默认配置 =====
def _get_default_settings() -> SettingsDict:
    """生成默认配置。"""
    data: SettingsDict = {
        "server": {"host": "0.0.0.0", "port": 8890},
        # 为空时管理端点不做认证
        "auth_keys": [],
        "log_level": "info",
        "indicator": {"debounce_delay_ms": 0, "min_duration_ms": 0, "extra_duration_ms": 0},
        "filters": {
            "methods": [],
            "headers": [],
            # 指示器自身的端点不计入活动，否则 SSE 长连接会让指示器一直处于忙碌状态
            "url_patterns": [r"/activity(/|\?|$)", r"/health(\?|$)"],
            "included_url_patterns": [],
        },
        "upstream": {"base_url": None, "timeouts": {"connect": 10, "read": 60}},
    }
    return data

def _as_list(value) -> List[str]:
    return [value] if isinstance(value, str) else list(value or [])

def load_settings(config_path: Optional[str] = None) -> SettingsDict:
    """从指定路径读取配置文件，与默认值合并。"""
    settings = _get_default_settings()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)

        # 合并配置
        server_config = user_config.get("server", {})
        settings["server"]["host"] = server_config.get("host", settings["server"]["host"])
        settings["server"]["port"] = int(server_config.get("port", settings["server"]["port"]))

        if "auth_keys" in user_config:
            settings["auth_keys"] = _as_list(user_config["auth_keys"])

        if "log_level" in user_config:
            settings["log_level"] = user_config["log_level"]

        indicator_config = user_config.get("indicator", {})
        for key in ("debounce_delay_ms", "min_duration_ms", "extra_duration_ms"):
            if key in indicator_config:
                value = int(indicator_config[key])
                if value < 0:
                    raise ValueError(f"indicator.{key} must not be negative, got {value}")
                settings["indicator"][key] = value

        filters_config = user_config.get("filters", {})
        for key in ("methods", "headers", "url_patterns", "included_url_patterns"):
            if key in filters_config:
                settings["filters"][key] = _as_list(filters_config[key])

        upstream_config = user_config.get("upstream", {})
        if "base_url" in upstream_config:
            settings["upstream"]["base_url"] = upstream_config["base_url"]
        timeouts_config = upstream_config.get("timeouts", {})
        settings["upstream"]["timeouts"]["connect"] = timeouts_config.get("connect", settings["upstream"]["timeouts"]["connect"])
        settings["upstream"]["timeouts"]["read"] = timeouts_config.get("read", settings["upstream"]["timeouts"]["read"])

    return settings
