from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, TextIO, Union


class PrintLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    VERBOSE = "verbose"


_EMOJI = {
    PrintLevel.SUCCESS: "✅",
    PrintLevel.INFO: "ℹ️",
    PrintLevel.WARNING: "⚠️",
    PrintLevel.ERROR: "❌",
    PrintLevel.VERBOSE: "🗣",
}


@dataclass(frozen=True)
class Diagnostic:
    message: str
    level: PrintLevel
    file: Optional[str] = None
    line: Optional[int] = None

    def location(self) -> Optional[str]:
        if self.file is None:
            return None
        if self.line is None:
            return f"{self.file}:"
        return f"{self.file}:{self.line}:"


class DiagnosticSink:
    """
    所有用户可见输出的唯一出口（lint / merge / translate 共用）。

    - records：全部诊断（测试断言、exit code 判定）
    - stream：控制台输出；多线程写入用锁串行化，保证行原子
    - xcode_output：输出 Xcode 可识别的 `file:line: warning: ...` 格式
    """

    def __init__(
        self,
        *,
        stream: Optional[TextIO] = None,
        echo: bool = True,
        verbose: bool = False,
        xcode_output: bool = False,
    ) -> None:
        self.stream = stream or sys.stdout
        self.echo = echo
        self.verbose = verbose
        self.xcode_output = xcode_output
        self.records: List[Diagnostic] = []
        self._lock = threading.Lock()

    def emit(
        self,
        message: str,
        level: PrintLevel = PrintLevel.INFO,
        file: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
    ) -> None:
        d = Diagnostic(message=message, level=PrintLevel(level), file=str(file) if file is not None else None, line=line)
        self.extend([d])

    def extend(self, diagnostics: List[Diagnostic]) -> None:
        with self._lock:
            for d in diagnostics:
                self.records.append(d)
                if self.echo:
                    self._write(d)

    def buffer(self) -> "BufferedSink":
        return BufferedSink(self)

    # ---- 统计 ----
    def count(self, level: PrintLevel) -> int:
        return sum(1 for d in self.records if d.level == level)

    @property
    def has_errors(self) -> bool:
        return self.count(PrintLevel.ERROR) > 0

    # ---- 输出 ----
    def _write(self, d: Diagnostic) -> None:
        if d.level == PrintLevel.VERBOSE and not self.verbose:
            return
        text = self.format(d) + "\n"
        # key 里可能有单独的代理码位（\UD83D）：写成 \ud83d，避免 UTF-8 控制台直接抛错
        text = text.encode("utf-8", "backslashreplace").decode("utf-8")
        self.stream.write(text)
        self.stream.flush()

    def format(self, d: Diagnostic) -> str:
        loc = d.location()
        if self.xcode_output:
            head = f"{loc} " if loc else ""
            return f"{head}{d.level.value}: strings_sync: {d.message}"

        now = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        msg = f"{loc} {d.message}" if loc else d.message
        return f"{now}: {_EMOJI[d.level]} {msg}"


class BufferedSink:
    """
    一个 (locale, file) 处理单元的私有缓冲：单元结束后整体 flush 到父 sink，
    这样并发单元之间的输出不会交错，且按提交顺序输出。
    """

    def __init__(self, parent: DiagnosticSink) -> None:
        self.parent = parent
        self.records: List[Diagnostic] = []

    def emit(
        self,
        message: str,
        level: PrintLevel = PrintLevel.INFO,
        file: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
    ) -> None:
        self.records.append(
            Diagnostic(message=message, level=PrintLevel(level), file=str(file) if file is not None else None, line=line)
        )

    def flush(self) -> None:
        if self.records:
            self.parent.extend(self.records)
            self.records = []


class Sink(Protocol):
    def emit(
        self,
        message: str,
        level: PrintLevel = PrintLevel.INFO,
        file: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
    ) -> None:
        ...
