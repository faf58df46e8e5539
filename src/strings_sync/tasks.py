from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from . import config as cfg_mod
from .config import StringsSyncConfig
from .errors import FormatError
from .extract.code import harvest_code
from .extract.interfaces import INTERFACE_SUFFIXES, harvest_interface
from .fill import FillOutcome, fill
from .lint import LintSummary, lint_catalog
from .merge import harvest_from_catalog, merge
from .models import Catalog, HarvestedEntry
from .provider import TranslationProvider
from .repository import STRINGS_SUFFIX, CatalogRepository, Loaded, compute_workers, find_files
from .sink import BufferedSink, DiagnosticSink, PrintLevel

BASE_LOCALE = "Base"
LOCALIZABLE_TABLE = "Localizable"
SWIFT_SUFFIX = ".swift"


def _repository(cfg: StringsSyncConfig, sink: DiagnosticSink, *, dry_run: bool) -> CatalogRepository:
    return CatalogRepository(cfg.lang_root, sink=sink, max_workers=cfg.max_workers, dry_run=dry_run)


def _merge_operation(harvested: List[HarvestedEntry], source_locale: str):
    def op(loaded: Loaded, sink: BufferedSink) -> int:
        _, report = merge(loaded.catalog, harvested, source_locale=source_locale)
        if report.changed:
            sink.emit(report.message(), PrintLevel.INFO, file=loaded.catalog.file_path)
        return len(report.added_keys)

    return op


# =========================================================
# init
# =========================================================

def run_init(*, project_root: Path, cfg_path: Path, sink: DiagnosticSink) -> bool:
    created = cfg_mod.init_config(project_root, cfg_path)
    if created:
        sink.emit(f"Successfully created file {cfg_path.name}", PrintLevel.SUCCESS)
    else:
        sink.emit(f"Config file {cfg_path.name} already exists, validated.", PrintLevel.INFO)
    return created


# =========================================================
# lint
# =========================================================

def run_lint(cfg: StringsSyncConfig, sink: DiagnosticSink) -> LintSummary:
    repo = _repository(cfg, sink, dry_run=True)
    paths = repo.find_strings_files()

    summary = LintSummary(checks=cfg.lint.check_count)
    results = repo.process(paths, lambda loaded, s: lint_catalog(loaded.catalog, cfg.lint, s))
    for r in results:
        summary.add(int(r.value or 0) if r.ok else 0)

    sink.emit(summary.message(), summary.level)
    return summary


# =========================================================
# normalize：源语言 key -> 其它语言同名文件
# =========================================================

def run_normalize(cfg: StringsSyncConfig, sink: DiagnosticSink, *, dry_run: bool = False) -> int:
    repo = _repository(cfg, sink, dry_run=dry_run)
    roots = [cfg.resolve(p) for p in cfg.normalize.paths]

    added = 0
    for src_path in repo.find_strings_files(locale=cfg.source_locale, roots=roots):
        src = repo.try_load(src_path)
        if src is None:
            continue
        targets = repo.siblings(src_path, exclude=[BASE_LOCALE])
        if not targets:
            continue
        harvested = harvest_from_catalog(src.catalog)
        for r in repo.process(targets, _merge_operation(harvested, cfg.source_locale)):
            added += int(r.value or 0) if r.ok else 0

    sink.emit("Successfully normalized Strings files.", PrintLevel.SUCCESS)
    return added


# =========================================================
# code：*.swift -> Localizable.strings（或 tableName 指定的表）
# =========================================================

def run_code(cfg: StringsSyncConfig, sink: DiagnosticSink, *, dry_run: bool = False) -> int:
    repo = _repository(cfg, sink, dry_run=dry_run)
    opts = cfg.code

    # "<tableName>.strings" -> 条目（保持首次出现的顺序）
    by_table: Dict[str, List[HarvestedEntry]] = {}
    for swift in find_files([cfg.resolve(p) for p in opts.code_paths], [SWIFT_SUFFIX]):
        try:
            # bytes 解码：不做换行符转换，改写时 CRLF 原样保留
            text = swift.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            sink.emit(f"Could not read Swift file: {e}", PrintLevel.ERROR, file=swift)
            continue

        entries, new_text = harvest_code(
            text,
            custom_function=opts.custom_function,
            rewrite=opts.rewrite_translate_calls,
            rewrite_target=opts.rewrite_target,
            source_locale=cfg.source_locale,
            sink=sink,
            file_path=swift,
        )
        for h in entries:
            by_table.setdefault(f"{h.table or LOCALIZABLE_TABLE}{STRINGS_SUFFIX}", []).append(h)

        if new_text != text:
            sink.emit(f"Rewrote translate calls ({opts.rewrite_target}).", PrintLevel.VERBOSE, file=swift)
            if not dry_run:
                try:
                    swift.write_bytes(new_text.encode("utf-8"))
                except OSError as e:
                    sink.emit(f"Could not write Swift file: {e.strerror or e}", PrintLevel.ERROR, file=swift)

    roots = [cfg.resolve(p) for p in opts.localizable_paths]
    added = 0
    for file_name in sorted(by_table):
        targets = [p for p in repo.find_strings_files(name=file_name, roots=roots) if repo.locale_of(p) != BASE_LOCALE]
        for r in repo.process(targets, _merge_operation(by_table[file_name], cfg.source_locale)):
            added += int(r.value or 0) if r.ok else 0

    sink.emit("Successfully updated strings file(s) of Code files.", PrintLevel.SUCCESS)
    return added


# =========================================================
# interfaces：Base.lproj/*.storyboard|*.xib -> <locale>.lproj/<Name>.strings
# =========================================================

def _interface_files(roots: List[Path]) -> List[Path]:
    base_dir = f"{BASE_LOCALE}.lproj"
    return [p for p in find_files(roots, list(INTERFACE_SUFFIXES)) if p.parent.name == base_dir]


def run_interfaces(cfg: StringsSyncConfig, sink: DiagnosticSink, *, dry_run: bool = False) -> int:
    repo = _repository(cfg, sink, dry_run=dry_run)

    added = 0
    for layout in _interface_files([cfg.resolve(p) for p in cfg.interfaces.paths]):
        try:
            harvested = harvest_interface(layout.read_text(encoding="utf-8"), file_path=layout)
        except FormatError as e:
            sink.emit(f"Could not parse interface file: {e.message}", PrintLevel.ERROR, file=layout, line=e.line)
            continue
        except (OSError, UnicodeDecodeError) as e:
            sink.emit(f"Could not read interface file: {e}", PrintLevel.ERROR, file=layout)
            continue

        strings_path = layout.with_suffix(".strings")
        targets = repo.siblings(strings_path, exclude=[BASE_LOCALE])
        for r in repo.process(targets, _merge_operation(harvested, cfg.source_locale)):
            added += int(r.value or 0) if r.ok else 0

        sink.emit("Successfully updated strings file(s) of Storyboard or XIB file.", PrintLevel.SUCCESS, file=layout)
    return added


# =========================================================
# translate：源语言 -> 其它语言的空 value
# =========================================================

@dataclass
class LocaleResult:
    locale: str
    filled: int = 0
    files: int = 0
    failed_batches: int = 0


def _fill_operation(source_catalog: Catalog, provider: TranslationProvider, batch_size: int):
    def op(loaded: Loaded, sink: BufferedSink) -> FillOutcome:
        _, outcome = fill(loaded.catalog, source_catalog, provider, sink=sink, batch_size=batch_size)
        return outcome

    return op


def _translate_locale(
    repo: CatalogRepository,
    locale: str,
    jobs: List[Tuple[Path, Catalog]],
    provider: TranslationProvider,
    batch_size: int,
    buf: BufferedSink,
) -> LocaleResult:
    """一个目标语言：文件串行、批次串行；输出写进该语言自己的 buffer。"""
    result = LocaleResult(locale=locale)
    for path, source_catalog in jobs:
        unit = repo.run_unit(path, _fill_operation(source_catalog, provider, batch_size), buf)
        if not unit.ok or unit.value is None:
            continue
        result.failed_batches += unit.value.failed_batches
        if unit.value.filled:
            result.filled += unit.value.filled
            result.files += 1

    buf.emit(f"Successfully translated {result.filled} values in {result.files} files.", PrintLevel.SUCCESS)
    return result


def run_translate(
    cfg: StringsSyncConfig,
    sink: DiagnosticSink,
    provider: TranslationProvider,
    *,
    dry_run: bool = False,
) -> List[LocaleResult]:
    repo = _repository(cfg, sink, dry_run=dry_run)

    by_locale: Dict[str, List[Tuple[Path, Catalog]]] = {}
    for src_path in repo.find_strings_files(locale=cfg.source_locale):
        src = repo.try_load(src_path)
        if src is None:
            continue
        for target in repo.siblings(src_path, exclude=[BASE_LOCALE]):
            by_locale.setdefault(repo.locale_of(target), []).append((target, src.catalog))

    locales = sorted(by_locale)
    if not locales:
        sink.emit("No target Strings files found to translate.", PrintLevel.INFO)
        return []

    workers = compute_workers(cfg.max_workers, len(locales))
    buffers = [sink.buffer() for _ in locales]
    results: List[LocaleResult] = []
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [
            ex.submit(_translate_locale, repo, loc, by_locale[loc], provider, cfg.translate.batch_size, buf)
            for loc, buf in zip(locales, buffers)
        ]
        for fut, buf in zip(futures, buffers):
            try:
                results.append(fut.result())
            finally:
                buf.flush()
    return results


def translate_provider(cfg: StringsSyncConfig, *, api_key: Optional[str] = None, model: Optional[str] = None):
    """按配置构造 OpenAIProvider（CLI 的 --model 优先）。"""
    from .openai_provider import OpenAIProvider, ProviderOptions

    t = cfg.translate
    opt = ProviderOptions(
        model=model or t.model,
        timeout=t.timeout,
        retries=t.retries,
        prompt_en=t.prompt_en,
    )
    return OpenAIProvider(api_key=api_key, opt=opt)
