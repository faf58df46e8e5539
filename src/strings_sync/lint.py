from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from .models import Catalog, DuplicateGroup, EmptyValue
from .sink import PrintLevel, Sink


@dataclass(frozen=True)
class LintOptions:
    duplicate_keys: bool = True
    empty_values: bool = True

    @property
    def check_count(self) -> int:
        return int(self.duplicate_keys) + int(self.empty_values)


def analyze_duplicates(catalog: Catalog) -> List[DuplicateGroup]:
    """按 key 分组，只保留出现 >=2 次的组；组内行号升序，组按首行排序。"""
    lines_by_key: Dict[str, List[int]] = {}
    for e in catalog.entries:
        lines_by_key.setdefault(e.key, []).append(e.line)

    groups = [DuplicateGroup(key=k, lines=tuple(sorted(v))) for k, v in lines_by_key.items() if len(v) > 1]
    groups.sort(key=lambda g: g.lines[0])
    return groups


def analyze_empty_values(catalog: Catalog) -> List[EmptyValue]:
    found = [EmptyValue(key=e.key, line=e.line) for e in catalog.entries if e.value == ""]
    return sorted(found, key=lambda x: x.line)


def lint_catalog(catalog: Catalog, options: LintOptions, sink: Sink) -> int:
    """只读检查；每个问题一条 warning（带文件与行号），返回问题数。"""
    issues = 0

    if options.duplicate_keys:
        for group in analyze_duplicates(catalog):
            for line in group.lines:
                sink.emit(group.message_for(line), PrintLevel.WARNING, file=catalog.file_path, line=line)
                issues += 1

    if options.empty_values:
        for ev in analyze_empty_values(catalog):
            sink.emit(ev.message, PrintLevel.WARNING, file=catalog.file_path, line=ev.line)
            issues += 1

    return issues


@dataclass
class LintSummary:
    issues: int = 0
    files_with_issues: int = 0
    checks: int = 0
    total_files: int = 0

    def add(self, issues: int) -> None:
        self.total_files += 1
        if issues:
            self.issues += issues
            self.files_with_issues += 1

    @property
    def level(self) -> PrintLevel:
        return PrintLevel.WARNING if self.issues else PrintLevel.SUCCESS

    def message(self) -> str:
        return (
            f"{self.issues} issue(s) found in {self.files_with_issues} file(s). "
            f"Executed {self.checks} checks in {self.total_files} Strings file(s) in total."
        )
