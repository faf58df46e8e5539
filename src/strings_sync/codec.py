"""
.strings 编解码（Apple Localizable.strings 文本格式）

格式：若干块 [空行 / // 注释 / /* */ 注释] + "key" = "value";

约定：
- 解析不去重：重复 key 保留为多条 entry（lint 负责报告）
- 每条 entry 记住原始语句文本与前置 trivia：未修改时 serialize(parse(text)) == text
- 紧贴在语句上方的最后一个注释提升为 entry.comment
"""

from __future__ import annotations

import bisect
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import FormatError
from .models import Catalog, CatalogEntry


_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
}

_HEX = set("0123456789abcdefABCDEF")

# (start, end, inner_text)
_Comment = Tuple[int, int, str]


def escape(s: str) -> str:
    # 顺序很重要：先转义反斜杠
    return (
        s.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
        .replace("\0", "\\0")
    )


def render_statement(key: str, value: str) -> str:
    return f'"{escape(key)}" = "{escape(value)}";'


class _Scanner:
    def __init__(self, text: str, file: Optional[Union[str, Path]] = None):
        self.text = text
        self.n = len(text)
        self.file = file
        self._newlines = [i for i, c in enumerate(text) if c == "\n"]

    def line_at(self, pos: int) -> int:
        return bisect.bisect_left(self._newlines, pos) + 1

    def fail(self, message: str, pos: int) -> FormatError:
        return FormatError(message, line=self.line_at(pos), file=self.file)

    def skip_trivia(self, pos: int) -> Tuple[int, Optional[_Comment]]:
        """跳过空白与注释，返回 (新位置, 最后一个注释)。"""
        text, n = self.text, self.n
        last: Optional[_Comment] = None
        while pos < n:
            c = text[pos]
            if c in " \t\r\n\ufeff":
                pos += 1
                continue
            if text.startswith("//", pos):
                end = text.find("\n", pos)
                end = n if end == -1 else end
                last = (pos, end, text[pos + 2:end])
                pos = end
                continue
            if text.startswith("/*", pos):
                end = text.find("*/", pos + 2)
                if end == -1:
                    raise self.fail("unterminated block comment", pos)
                last = (pos, end + 2, text[pos + 2:end])
                pos = end + 2
                continue
            break
        return pos, last

    def skip_spaces(self, pos: int) -> int:
        while pos < self.n and self.text[pos] in " \t\r\n":
            pos += 1
        return pos

    def expect(self, pos: int, ch: str, what: str) -> int:
        if pos >= self.n or self.text[pos] != ch:
            found = "end of file" if pos >= self.n else repr(self.text[pos])
            raise self.fail(f"expected '{ch}' {what}, found {found}", pos)
        return pos + 1

    def _hex_escape(self, i: int) -> Optional[int]:
        """text[i:] 是 \\uXXXX / \\UXXXX 时返回码位。"""
        text = self.text
        if not (text.startswith("\\", i) and text[i + 1:i + 2] in ("U", "u")):
            return None
        hex4 = text[i + 2:i + 6]
        if len(hex4) == 4 and all(h in _HEX for h in hex4):
            return int(hex4, 16)
        return None

    def read_literal(self, pos: int) -> Tuple[str, int]:
        """pos 指向开引号；返回 (解码后的文本, 闭引号之后的位置)。"""
        text, n = self.text, self.n
        start = pos
        out: List[str] = []
        i = pos + 1
        while i < n:
            c = text[i]
            if c == '"':
                return "".join(out), i + 1
            if c != "\\":
                out.append(c)
                i += 1
                continue
            if i + 1 >= n:
                break
            nxt = text[i + 1]
            if nxt in ("U", "u"):
                cp = self._hex_escape(i)
                if cp is not None:
                    i += 6
                    # UTF-16 代理对：\UD83D\UDE00 -> 一个码位
                    if 0xD800 <= cp <= 0xDBFF:
                        lo = self._hex_escape(i)
                        if lo is not None and 0xDC00 <= lo <= 0xDFFF:
                            cp = 0x10000 + ((cp - 0xD800) << 10) + (lo - 0xDC00)
                            i += 6
                    out.append(chr(cp))
                    continue
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
        raise self.fail("unterminated string literal", start)

    def trailing_end(self, pos: int) -> int:
        """语句后的行尾：空格/tab + 一个换行（或直到 EOF）；否则不吞任何字符。"""
        text, n = self.text, self.n
        t = pos
        while t < n and text[t] in " \t":
            t += 1
        if text.startswith("\r\n", t):
            return t + 2
        if t < n and text[t] == "\n":
            return t + 1
        if t >= n:
            return t
        return pos

    def promoted_comment(self, comment: Optional[_Comment], stmt_start: int) -> Optional[str]:
        if comment is None:
            return None
        c_start, c_end, inner = comment
        gap = self.text[c_end:stmt_start]
        if gap.strip() or gap.count("\n") > 1:
            return None
        line_start = self.text.rfind("\n", 0, c_start) + 1
        if self.text[line_start:c_start].strip(" \t\ufeff"):
            # 注释跟在上一条语句同一行，不属于当前条目
            return None
        return _clean_comment(inner)


def _clean_comment(inner: str) -> Optional[str]:
    lines = [ln.strip() for ln in inner.strip().splitlines()]
    lines = [ln[1:].strip() if ln.startswith("*") else ln for ln in lines]
    s = "\n".join(ln for ln in lines if ln).strip()
    return s or None


def parse(text: str, *, locale: str = "", file_path: Optional[Union[str, Path]] = None) -> Catalog:
    """解析 .strings 文本；语法错误抛 FormatError（带行号）。"""
    sc = _Scanner(text, file_path)
    entries: List[CatalogEntry] = []
    pos = 0

    while True:
        trivia_start = pos
        pos, last_comment = sc.skip_trivia(pos)
        if pos >= sc.n:
            trailing_trivia = text[trivia_start:]
            break

        if text[pos] != '"':
            raise sc.fail('expected a "key" = "value"; statement', pos)

        stmt_start = pos
        key, pos = sc.read_literal(pos)
        pos = sc.expect(sc.skip_spaces(pos), "=", "after key")
        pos = sc.skip_spaces(pos)
        if pos >= sc.n or text[pos] != '"':
            raise sc.fail("expected a quoted value after '='", pos)
        value, pos = sc.read_literal(pos)
        pos = sc.expect(sc.skip_spaces(pos), ";", "after value")
        stmt_end = pos
        pos = sc.trailing_end(stmt_end)

        entries.append(
            CatalogEntry(
                key=key,
                value=value,
                comment=sc.promoted_comment(last_comment, stmt_start),
                line=sc.line_at(stmt_start),
                raw_leading_trivia=text[trivia_start:stmt_start],
                raw_statement=text[stmt_start:stmt_end],
                raw_trailing=text[stmt_end:pos],
                parsed_key=key,
                parsed_value=value,
            )
        )

    path = Path(file_path) if file_path is not None else None
    return Catalog(locale=locale, file_path=path, entries=entries, trailing_trivia=trailing_trivia)


def serialize(catalog: Catalog) -> str:
    parts: List[str] = []
    for e in catalog.entries:
        parts.append(e.raw_leading_trivia)
        if e.is_modified:
            parts.append(render_statement(e.key, e.value))
        else:
            parts.append(e.raw_statement or "")
        parts.append(e.raw_trailing)
    parts.append(catalog.trailing_trivia)
    return "".join(parts)
