from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple, Union

from ..languages import code_for_case, matches
from ..models import HarvestedEntry
from ..sink import PrintLevel, Sink

LOCALIZED_STRING = "NSLocalizedString"
TRANSLATE_CALL = "BartyCrouch.translate"

# translate 调用的改写目标
FOUNDATION = "foundation"
SWIFTGEN_STRUCTURED = "swiftgenStructured"
REWRITE_TARGETS = (FOUNDATION, SWIFTGEN_STRUCTURED)


# =========================================================
# Swift 源码的最小扫描：只认字符串字面量、注释、括号配对
# =========================================================

@dataclass
class Argument:
    label: Optional[str]
    text: str


@dataclass
class Call:
    name: str
    start: int
    end: int            # 右括号之后
    line: int
    args: List[Argument] = field(default_factory=list)

    def arg(self, label: Optional[str]) -> Optional[Argument]:
        for a in self.args:
            if a.label == label:
                return a
        return None


def _is_ident(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _skip_string(text: str, pos: int) -> int:
    """pos 指向开头的引号；返回字面量之后的位置（未闭合则返回文本末尾）。"""
    n = len(text)
    if text.startswith('"""', pos):
        end = text.find('"""', pos + 3)
        return n if end < 0 else end + 3
    i = pos + 1
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"' or ch == "\n":
            return i + 1
        i += 1
    return n


def _skip_comment(text: str, pos: int) -> int:
    if text.startswith("//", pos):
        end = text.find("\n", pos)
        return len(text) if end < 0 else end
    end = text.find("*/", pos + 2)
    return len(text) if end < 0 else end + 2


def _skip_noise(text: str, pos: int) -> Optional[int]:
    """字符串或注释起点：返回跳过后的位置；否则 None。"""
    ch = text[pos]
    if ch == '"':
        return _skip_string(text, pos)
    if text.startswith("//", pos) or text.startswith("/*", pos):
        return _skip_comment(text, pos)
    return None


def _match_paren(text: str, open_pos: int) -> int:
    """open_pos 指向 '('；返回配对 ')' 的下标，找不到返回 -1。"""
    depth = 0
    i = open_pos
    n = len(text)
    while i < n:
        nxt = _skip_noise(text, i)
        if nxt is not None:
            i = nxt
            continue
        ch = text[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _split_top_level(inner: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    last = 0
    i = 0
    n = len(inner)
    while i < n:
        nxt = _skip_noise(inner, i)
        if nxt is not None:
            i = nxt
            continue
        ch = inner[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(inner[last:i])
            last = i + 1
        i += 1
    tail = inner[last:]
    if tail.strip() or parts:
        parts.append(tail)
    return [p.strip() for p in parts]


_LABEL_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*:(?!:)\s*", re.S)


def _parse_args(inner: str) -> List[Argument]:
    out: List[Argument] = []
    for part in _split_top_level(inner):
        m = _LABEL_RE.match(part)
        if m:
            out.append(Argument(label=m.group(1), text=part[m.end():].strip()))
        else:
            out.append(Argument(label=None, text=part))
    return out


def iter_calls(text: str, names: Sequence[str]) -> Iterator[Call]:
    """
    按出现顺序产出 name(...) 调用；字符串/注释里的不算。
    匹配到一个调用后从它的右括号之后继续（调用之间不重叠）。
    """
    newlines = [i for i, ch in enumerate(text) if ch == "\n"]
    n = len(text)
    i = 0
    while i < n:
        nxt = _skip_noise(text, i)
        if nxt is not None:
            i = nxt
            continue

        prev = text[i - 1] if i > 0 else ""
        if _is_ident(prev) or prev == ".":
            i += 1
            continue

        name = next((nm for nm in names if text.startswith(nm, i)), None)
        if name is None:
            i += 1
            continue
        j = i + len(name)
        if j < n and _is_ident(text[j]):
            i = j
            continue
        while j < n and text[j] in " \t":
            j += 1
        if j >= n or text[j] != "(":
            i += 1
            continue

        close = _match_paren(text, j)
        if close < 0:
            i = j + 1
            continue

        yield Call(
            name=name,
            start=i,
            end=close + 1,
            line=bisect.bisect_left(newlines, i) + 1,
            args=_parse_args(text[j + 1:close]),
        )
        i = close + 1


# =========================================================
# 字面量
# =========================================================

_STRING_RE = re.compile(r'^"((?:[^"\\\n]|\\.)*)"$', re.S)
_SWIFT_ESCAPE_RE = re.compile(r"\\(u\{([0-9A-Fa-f]{1,8})\}|.)", re.S)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


def string_literal(expr: str) -> Optional[str]:
    """单个 "..." 字面量 -> 解码后的内容；拼接、插值、变量等返回 None。"""
    m = _STRING_RE.match(expr.strip())
    if not m:
        return None
    body = m.group(1)
    if "\\(" in body:
        return None

    def repl(mm: "re.Match[str]") -> str:
        if mm.group(2):
            return chr(int(mm.group(2), 16))
        return _SIMPLE_ESCAPES.get(mm.group(1), mm.group(1))

    return _SWIFT_ESCAPE_RE.sub(repl, body)


_CASE_RE = re.compile(r"^\.?([A-Za-z_][A-Za-z0-9_]*)\s*:(?!:)\s*", re.S)


def dictionary_literal(expr: str) -> Optional[List[Tuple[str, str]]]:
    """[.english: "Hello", .german: "Hallo"] -> [("english", '"Hello"'), ...]"""
    expr = expr.strip()
    if not (expr.startswith("[") and expr.endswith("]")):
        return None
    out: List[Tuple[str, str]] = []
    for part in _split_top_level(expr[1:-1]):
        m = _CASE_RE.match(part)
        if not m:
            return None
        out.append((m.group(1), part[m.end():].strip()))
    return out


_CASING_SEP_RE = re.compile(r"[-_]")


def swiftgen_accessor(key: str) -> str:
    """
    onboarding.first-page.header-title -> L10n.Onboarding.FirstPage.headerTitle
    ONBOARDING.FIRST_PAGE.HEADER_TITLE 得到同样结果。
    """
    parts = ["".join(w.capitalize() for w in _CASING_SEP_RE.split(kw)) for kw in key.split(".")]
    parts[-1] = parts[-1][:1].lower() + parts[-1][1:]
    return ".".join(["L10n"] + parts)


# =========================================================
# Visitor
# =========================================================

class CallVisitor(Protocol):
    names: Sequence[str]

    def visit(self, call: Call) -> Optional[str]:
        """返回替换文本；None 表示保持原样。"""
        ...


def transform(text: str, visitor: CallVisitor) -> str:
    out: List[str] = []
    last = 0
    for call in iter_calls(text, visitor.names):
        rep = visitor.visit(call)
        if rep is None:
            continue
        out.append(text[last:call.start])
        out.append(rep)
        last = call.end
    if not out:
        return text
    out.append(text[last:])
    return "".join(out)


class HarvestVisitor:
    """
    收集 NSLocalizedString / 自定义函数 / BartyCrouch.translate 的 key；
    rewrite=True 时把 translate 调用改写成 NSLocalizedString（foundation）
    或 SwiftGen 结构化访问器 L10n.Xxx.yyy（swiftgenStructured）。
    """

    def __init__(
        self,
        *,
        custom_function: Optional[str] = None,
        rewrite: bool = False,
        rewrite_target: str = FOUNDATION,
        source_locale: str = "en",
        sink: Optional[Sink] = None,
        file_path: Optional[Union[str, Path]] = None,
    ) -> None:
        names = [TRANSLATE_CALL, LOCALIZED_STRING]
        if custom_function and custom_function not in names:
            names.append(custom_function)
        self.names = names
        self.rewrite = rewrite
        self.rewrite_target = rewrite_target
        self.source_locale = source_locale
        self.sink = sink
        self.file_path = file_path
        self.entries: List[HarvestedEntry] = []

    def _warn(self, message: str, line: int) -> None:
        if self.sink is not None:
            self.sink.emit(message, PrintLevel.WARNING, file=self.file_path, line=line)

    def visit(self, call: Call) -> Optional[str]:
        if call.name == TRANSLATE_CALL:
            return self._visit_translate(call)
        self._visit_localized(call)
        return None

    def _visit_localized(self, call: Call) -> None:
        if not call.args or call.args[0].label is not None:
            return
        key = string_literal(call.args[0].text)
        if key is None:
            # 变量 / 插值：无法静态确定 key
            return
        if not key:
            self._warn(f"Found empty key in {call.name} call, skipping.", call.line)
            return

        table: Optional[str] = None
        table_arg = call.arg("tableName")
        if table_arg is not None:
            table = string_literal(table_arg.text)
            if table is None:
                # 表名是变量：不知道该写进哪个 .strings
                return

        value_arg = call.arg("value")
        value = string_literal(value_arg.text) if value_arg is not None else None
        comment_arg = call.arg("comment")
        comment = string_literal(comment_arg.text) if comment_arg is not None else None

        self.entries.append(
            HarvestedEntry(key=key, value=value or key, comment=comment or None, table=table or None)
        )

    def _visit_translate(self, call: Call) -> Optional[str]:
        key_arg = call.arg("key")
        key = string_literal(key_arg.text) if key_arg is not None else None
        if key_arg is None or key is None:
            return None
        if not key:
            self._warn(f"Found empty key in {TRANSLATE_CALL} call, skipping.", call.line)
            return None

        value = ""
        translations: List[Tuple[str, str]] = []
        trans_arg = call.arg("translations")
        pairs = dictionary_literal(trans_arg.text) if trans_arg is not None else None
        for case, expr in pairs or []:
            text = string_literal(expr)
            if text is None:
                continue
            if not text:
                self._warn(f"Translation for langCase '{case}' was empty.", call.line)
                continue
            code = code_for_case(case)
            if code is None:
                self._warn(f"Found unknown language case '.{case}' for key '{key}', ignoring.", call.line)
                continue
            translations.append((code, text))
            if not value and matches(self.source_locale, code):
                value = text

        comment_arg = call.arg("comment")
        comment = string_literal(comment_arg.text) if comment_arg is not None else None
        self.entries.append(
            HarvestedEntry(key=key, value=value, comment=comment or None, translations=tuple(translations))
        )

        if not self.rewrite:
            return None
        if self.rewrite_target == SWIFTGEN_STRUCTURED:
            return swiftgen_accessor(key)
        comment_src = comment_arg.text if comment_arg is not None and comment is not None else '""'
        return f"{LOCALIZED_STRING}({key_arg.text}, comment: {comment_src})"


def harvest_code(
    text: str,
    *,
    custom_function: Optional[str] = None,
    rewrite: bool = False,
    rewrite_target: str = FOUNDATION,
    source_locale: str = "en",
    sink: Optional[Sink] = None,
    file_path: Optional[Union[str, Path]] = None,
) -> Tuple[List[HarvestedEntry], str]:
    """Swift 源码 -> (提取到的条目, 改写后的源码)。rewrite=False 时源码原样返回。"""
    visitor = HarvestVisitor(
        custom_function=custom_function,
        rewrite=rewrite,
        rewrite_target=rewrite_target,
        source_locale=source_locale,
        sink=sink,
        file_path=file_path,
    )
    new_text = transform(text, visitor)
    return visitor.entries, new_text
