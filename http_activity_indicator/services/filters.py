"""
请求过滤器模块：
- 按 HTTP 方法、请求头、URL 正则排除请求。
- 可选的 URL 包含列表：非空时只有匹配其中之一的请求才会被计数。
- 排除规则总是优先于包含规则。
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Pattern, Tuple

from ..core.types import Operation


def _compile_all(patterns: Iterable[str], kind: str) -> Tuple[Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ValueError(f"Invalid {kind} pattern {pattern!r}: {e}") from e
    return tuple(compiled)


@dataclass(frozen=True)
class FilterSet:
    """不可变的过滤器快照。替换过滤器时构造一个新实例，而不是修改旧实例。"""
    methods: Tuple[str, ...] = ()
    headers: Tuple[str, ...] = ()
    url_patterns: Tuple[Pattern, ...] = ()
    included_url_patterns: Tuple[Pattern, ...] = ()

    @classmethod
    def from_patterns(
        cls,
        methods: Iterable[str] = (),
        headers: Iterable[str] = (),
        url_patterns: Iterable[str] = (),
        included_url_patterns: Iterable[str] = (),
    ) -> "FilterSet":
        """
        从字符串形式的规则构建过滤器。

        Raises:
            ValueError: 任一正则表达式无法编译。
        """
        return cls(
            methods=tuple(m.upper() for m in methods),
            headers=tuple(headers),
            url_patterns=_compile_all(url_patterns, "url"),
            included_url_patterns=_compile_all(included_url_patterns, "included url"),
        )

    @classmethod
    def from_settings(cls, filter_settings: Dict[str, Any]) -> "FilterSet":
        """从配置中的 filters 段构建过滤器。"""
        data = filter_settings or {}
        return cls.from_patterns(
            methods=data.get("methods", []),
            headers=data.get("headers", []),
            url_patterns=data.get("url_patterns", []),
            included_url_patterns=data.get("included_url_patterns", []),
        )

    def should_bypass_method(self, operation: Operation) -> bool:
        return operation.method.upper() in self.methods

    def should_bypass_header(self, operation: Operation) -> bool:
        return any(operation.has_header(name) for name in self.headers)

    def should_bypass_url(self, operation: Operation) -> bool:
        return any(p.search(operation.url) for p in self.url_patterns)

    def should_include_url(self, operation: Operation) -> bool:
        if not self.included_url_patterns:
            return True
        return any(p.search(operation.url) for p in self.included_url_patterns)

    def is_eligible(self, operation: Operation) -> bool:
        """判断一个请求是否应计入活动计数。"""
        if (
            self.should_bypass_method(operation)
            or self.should_bypass_header(operation)
            or self.should_bypass_url(operation)
        ):
            return False
        return self.should_include_url(operation)

    def to_dict(self) -> Dict[str, Any]:
        """以字符串形式导出规则，用于 API 展示。"""
        return {
            "methods": list(self.methods),
            "headers": list(self.headers),
            "url_patterns": [p.pattern for p in self.url_patterns],
            "included_url_patterns": [p.pattern for p in self.included_url_patterns],
        }
