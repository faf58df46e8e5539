from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence

from . import codec
from .errors import FormatError, StringsIOError
from .models import Catalog
from .sink import BufferedSink, DiagnosticSink, PrintLevel

LPROJ_SUFFIX = ".lproj"
STRINGS_SUFFIX = ".strings"

# 依赖/构建产物目录：不扫描
EXCLUDED_DIRS = {".git", ".build", "build", "DerivedData", "Pods", "Carthage", "node_modules"}


@dataclass
class Loaded:
    catalog: Catalog
    text: str
    encoding: str = "utf-8"


@dataclass
class UnitResult:
    path: Path
    ok: bool
    changed: bool = False
    value: Any = None


Operation = Callable[[Loaded, BufferedSink], Any]


def compute_workers(max_workers_cfg: int, total_tasks: int) -> int:
    if total_tasks <= 0:
        return 1
    if max_workers_cfg and max_workers_cfg > 0:
        return max(1, min(max_workers_cfg, total_tasks))
    cpu = os.cpu_count() or 4
    guess = max(2, min(8, max(2, cpu // 2)))
    return min(guess, total_tasks)


def find_files(roots: Iterable[Path], suffixes: Sequence[str]) -> List[Path]:
    """递归查找指定后缀的文件（跳过 EXCLUDED_DIRS 与隐藏目录），去重后排序。"""
    found = set()
    for root in roots:
        if root.is_file():
            if root.suffix in suffixes:
                found.add(root.resolve())
            continue
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = [d for d in dirnames if d not in EXCLUDED_DIRS and not d.startswith(".")]
            for fn in filenames:
                if Path(fn).suffix in suffixes:
                    found.add((Path(dirpath) / fn).resolve())
    return sorted(found)


def _detect_encoding(raw: bytes) -> str:
    # Xcode 早期生成的 .strings 可能是 UTF-16（带 BOM）
    if raw.startswith(b"\xff\xfe") or raw.startswith(b"\xfe\xff"):
        return "utf-16"
    return "utf-8"


class CatalogRepository:
    """
    负责 *.lproj/*.strings 的定位与 load -> operate -> save。

    每个文件是一个独立单元：互不共享可变状态，可以放进线程池；
    单元的输出先写进私有 BufferedSink，结束后按提交顺序 flush。
    """

    def __init__(
        self,
        root: Path,
        *,
        sink: DiagnosticSink,
        max_workers: int = 0,
        dry_run: bool = False,
    ) -> None:
        self.root = Path(root).resolve()
        self.sink = sink
        self.max_workers = max_workers
        self.dry_run = dry_run

    # ----------------------------
    # 定位
    # ----------------------------
    @staticmethod
    def locale_of(path: Path) -> str:
        parent = Path(path).parent
        if parent.suffix != LPROJ_SUFFIX:
            return ""
        return parent.name[: -len(LPROJ_SUFFIX)]

    def find_strings_files(
        self,
        *,
        locale: Optional[str] = None,
        name: Optional[str] = None,
        roots: Optional[Iterable[Path]] = None,
    ) -> List[Path]:
        out: List[Path] = []
        for p in find_files(list(roots) if roots is not None else [self.root], [STRINGS_SUFFIX]):
            loc = self.locale_of(p)
            if not loc:
                continue
            if locale is not None and loc != locale:
                continue
            if name is not None and p.name != name:
                continue
            out.append(p)
        return out

    def sibling(self, path: Path, locale: str) -> Path:
        """同名文件在另一个语言目录下的路径：de.lproj/X.strings -> en.lproj/X.strings"""
        return path.parent.parent / f"{locale}{LPROJ_SUFFIX}" / path.name

    def siblings(self, path: Path, *, exclude: Iterable[str] = ()) -> List[Path]:
        """同一父目录下、其它 *.lproj 中已存在的同名文件（排序）。"""
        path = Path(path)
        skip = set(exclude) | {self.locale_of(path)}
        out: List[Path] = []
        for d in sorted(path.parent.parent.glob(f"*{LPROJ_SUFFIX}")):
            loc = d.name[: -len(LPROJ_SUFFIX)]
            candidate = d / path.name
            if loc in skip or not candidate.is_file():
                continue
            out.append(candidate.resolve())
        return out

    # ----------------------------
    # load / save
    # ----------------------------
    def load(self, path: Path) -> Loaded:
        path = Path(path)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise StringsIOError(f"File not found: {path}", file=path) from None
        except OSError as e:
            raise StringsIOError(f"Could not read file: {e.strerror or e}", file=path) from None

        encoding = _detect_encoding(raw)
        try:
            # bytes 解码：不做换行符转换，保证 round-trip 字节一致
            text = raw.decode(encoding)
        except UnicodeDecodeError as e:
            raise StringsIOError(f"File is not valid {encoding.upper()}: {e.reason}", file=path) from None

        catalog = codec.parse(text, locale=self.locale_of(path), file_path=path)
        return Loaded(catalog=catalog, text=text, encoding=encoding)

    def save(self, loaded: Loaded) -> bool:
        """只有内容变化才写回；返回是否（需要）写回。"""
        text = codec.serialize(loaded.catalog)
        if text == loaded.text:
            return False

        path = loaded.catalog.file_path
        try:
            # 单独的代理码位（如 \UD83D）无法编码：当作写入失败报告
            data = text.encode(loaded.encoding)
        except UnicodeEncodeError as e:
            raise StringsIOError(
                f"Could not write file: text is not encodable as {loaded.encoding.upper()} ({e.reason})",
                file=path,
            ) from None
        if self.dry_run:
            return True

        if path is None:
            raise ValueError("catalog.file_path is required to save")
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StringsIOError(f"Could not write file: {e.strerror or e}", file=path) from None
        loaded.text = text
        return True

    # ----------------------------
    # 批处理
    # ----------------------------
    def process(
        self,
        paths: Iterable[Path],
        operation: Operation,
        *,
        max_workers: Optional[int] = None,
    ) -> List[UnitResult]:
        """
        对每个文件执行 operation(loaded, sink)，随后按需写回。
        单个文件的 FormatError / StringsIOError 只报告，不影响其它文件。
        """
        paths = list(paths)
        if not paths:
            return []

        workers = compute_workers(self.max_workers if max_workers is None else max_workers, len(paths))
        buffers = [self.sink.buffer() for _ in paths]
        results: List[UnitResult] = []

        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = [ex.submit(self.run_unit, p, operation, buf) for p, buf in zip(paths, buffers)]
            # 按提交顺序收集 + flush，输出顺序稳定
            for fut, buf in zip(futures, buffers):
                try:
                    results.append(fut.result())
                finally:
                    buf.flush()

        return results

    def try_load(self, path: Path) -> Optional[Loaded]:
        """load 失败时直接报告到 self.sink，返回 None。"""
        try:
            return self.load(path)
        except FormatError as e:
            self.sink.emit(f"Could not parse Strings file: {e.message}", PrintLevel.ERROR, file=e.file or path, line=e.line)
        except StringsIOError as e:
            self.sink.emit(str(e), PrintLevel.ERROR, file=e.file)
        return None

    def run_unit(self, path: Path, operation: Operation, sink: BufferedSink) -> UnitResult:
        try:
            loaded = self.load(path)
            value = operation(loaded, sink)
            changed = self.save(loaded)
            return UnitResult(path=path, ok=True, changed=changed, value=value)
        except FormatError as e:
            sink.emit(f"Could not parse Strings file: {e.message}", PrintLevel.ERROR, file=e.file or path, line=e.line)
        except StringsIOError as e:
            sink.emit(str(e), PrintLevel.ERROR, file=e.file)
        return UnitResult(path=path, ok=False)
