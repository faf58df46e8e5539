from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .languages import matches


# =========================
# Catalog Models
# =========================

@dataclass
class CatalogEntry:
    """
    一条 "key" = "value"; 语句。

    - line: 语句所在行（1-based，用于诊断定位）
    - raw_leading_trivia: 语句前的空行/注释原文（round-trip 用）
    - raw_statement / raw_trailing: 原始语句文本与其后的行尾；key/value 未改动时原样写回
    """
    key: str
    value: str
    comment: Optional[str] = None
    line: int = 0
    raw_leading_trivia: str = ""

    raw_statement: Optional[str] = field(default=None, repr=False)
    raw_trailing: str = field(default="\n", repr=False)
    parsed_key: Optional[str] = field(default=None, repr=False)
    parsed_value: Optional[str] = field(default=None, repr=False)

    @classmethod
    def new(cls, key: str, value: str, comment: Optional[str] = None) -> "CatalogEntry":
        """新建（未落盘）条目：注释渲染成 /* ... */ 放在语句上方。"""
        trivia = ""
        if comment:
            if "*/" in comment:
                trivia = "".join(f"// {ln}\n" for ln in comment.splitlines())
            else:
                trivia = f"/* {comment} */\n"
        return cls(key=key, value=value, comment=comment, raw_leading_trivia=trivia)

    @property
    def is_modified(self) -> bool:
        return self.raw_statement is None or self.key != self.parsed_key or self.value != self.parsed_value


@dataclass
class Catalog:
    """
    一个语言的一个 .strings 文件。

    key 不要求唯一（重复 key 是合法输入，由 lint 负责发现），
    因此 entries 是有序 list，key -> indices 索引按需推导。
    """
    locale: str
    file_path: Optional[Path] = None
    entries: List[CatalogEntry] = field(default_factory=list)
    trailing_trivia: str = ""

    _index: Optional[Dict[str, List[int]]] = field(default=None, init=False, repr=False, compare=False)
    _index_size: int = field(default=-1, init=False, repr=False, compare=False)

    def key_index(self) -> Dict[str, List[int]]:
        # entries 可能被外部直接 append；按长度判断失效
        if self._index is None or self._index_size != len(self.entries):
            idx: Dict[str, List[int]] = {}
            for i, e in enumerate(self.entries):
                idx.setdefault(e.key, []).append(i)
            self._index = idx
            self._index_size = len(self.entries)
        return self._index

    def keys(self) -> List[str]:
        return list(self.key_index().keys())

    def __contains__(self, key: object) -> bool:
        return key in self.key_index()

    def first(self, key: str) -> Optional[CatalogEntry]:
        ids = self.key_index().get(key)
        if not ids:
            return None
        return self.entries[ids[0]]

    def append(self, entry: CatalogEntry) -> None:
        """
        追加到文件末尾（trailing_trivia 之后）。
        已有内容保持不变；只保证新语句另起一行。
        带注释的新条目与前文隔一个空行；文件末尾的注释之后也隔一个空行，
        否则重新解析时它会被当成新条目的注释。
        """
        prefix = self.trailing_trivia
        self.trailing_trivia = ""

        if self.entries and not prefix and not self.entries[-1].raw_trailing.endswith("\n"):
            self.entries[-1].raw_trailing += "\n"
        if prefix and not prefix.endswith("\n"):
            prefix += "\n"

        tail = (self.entries[-1].raw_trailing if self.entries else "") + prefix
        has_comment = bool(prefix.strip(" \t\r\n\ufeff"))
        has_content = bool(self.entries) or has_comment
        needs_gap = bool(entry.raw_leading_trivia) and has_content
        if (needs_gap or has_comment) and not tail.endswith("\n\n"):
            prefix += "\n"

        entry.raw_leading_trivia = prefix + entry.raw_leading_trivia
        self.entries.append(entry)
        self._index = None


@dataclass(frozen=True)
class DuplicateGroup:
    key: str
    lines: Tuple[int, ...]

    def message_for(self, line: int) -> str:
        others = [ln for ln in self.lines if ln != line]
        return (
            f"Found {len(self.lines)} translations for key '{self.key}'. "
            f"Other entries at: [{', '.join(str(x) for x in others)}]"
        )


@dataclass(frozen=True)
class EmptyValue:
    key: str
    line: int

    @property
    def message(self) -> str:
        return f"Found empty value for key '{self.key}'."


# =========================
# Harvest Models
# =========================

@dataclass(frozen=True)
class HarvestedEntry:
    """
    从代码 / storyboard 提取出来、尚未落盘的条目（没有行号）。

    - table: NSLocalizedString(tableName:) 指定的表名；None 表示 Localizable
    - translations: BartyCrouch.translate 里写好的 (locale code, 译文)，追加到对应语言时使用
    """
    key: str
    value: str
    comment: Optional[str] = None
    table: Optional[str] = None
    translations: Tuple[Tuple[str, str], ...] = ()

    def translation_for(self, locale: str) -> str:
        for code, text in self.translations:
            if matches(locale, code):
                return text
        return ""


@dataclass
class ChangeReport:
    added_keys: List[str] = field(default_factory=list)
    updated_count: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added_keys) or self.updated_count > 0

    def message(self) -> str:
        return f"Adding missing keys {json.dumps(self.added_keys, ensure_ascii=False)}."
