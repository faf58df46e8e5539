from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class StringsSyncError(RuntimeError):
    pass


class ConfigError(StringsSyncError):
    """用于启动阶段的配置错误（更友好的报错与解决建议）"""
    pass


class FormatError(StringsSyncError):
    """.strings 文本无法解析：未闭合的字符串/注释，或无法匹配 "key" = "value"; 语句。"""

    def __init__(self, message: str, *, line: int, file: Optional[Union[str, Path]] = None):
        self.message = message
        self.line = line
        self.file = str(file) if file is not None else None
        super().__init__(f"line {line}: {message}")


class StringsIOError(StringsSyncError):
    """文件不存在 / 无权限 / 不是 UTF-8。"""

    def __init__(self, message: str, *, file: Union[str, Path]):
        self.file = str(file)
        super().__init__(message)


# 这些 kind 视为“配置类”失败：重试/换批次都没用
FATAL_PROVIDER_KINDS = frozenset({"auth", "unsupported"})


class ProviderError(StringsSyncError):
    """
    翻译后端失败。kind:
    - auth / quota / network / timeout / unsupported / invalid_response / unknown
    """

    def __init__(self, message: str, *, kind: str = "unknown"):
        self.kind = kind
        super().__init__(message)

    @property
    def fatal(self) -> bool:
        return self.kind in FATAL_PROVIDER_KINDS
