from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, TypeVar

from .errors import ProviderError
from .models import Catalog, CatalogEntry
from .provider import TranslationProvider
from .sink import PrintLevel, Sink

DEFAULT_BATCH_SIZE = 25

T = TypeVar("T")


@dataclass
class FillOutcome:
    filled: int = 0
    failed_batches: int = 0
    skipped_empty_source: int = 0


def _chunk(items: List[T], batch_size: int) -> List[List[T]]:
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]


def _effective_batch_size(batch_size: Optional[int], provider: TranslationProvider) -> int:
    size = batch_size or DEFAULT_BATCH_SIZE
    limit = getattr(provider, "max_batch_size", 0) or 0
    if limit > 0:
        size = min(size, limit)
    return max(1, size)


def fill(
    catalog: Catalog,
    source_catalog: Catalog,
    provider: TranslationProvider,
    *,
    sink: Sink,
    batch_size: Optional[int] = None,
) -> Tuple[Catalog, FillOutcome]:
    """
    给非源语言 catalog 的空 value 补翻译（原地写回，不新增、不重排）。

    - 源语言里找不到 key：跳过（verbose）
    - 源语言 value 为空：warning（定位到源文件行号），目标保持为空
    - 按批提交 provider，批与批串行；某批失败只影响该批（整批不落地，不重试）
    """
    outcome = FillOutcome()
    queue: List[Tuple[CatalogEntry, str]] = []

    for e in catalog.entries:
        if e.value != "":
            continue
        src = source_catalog.first(e.key)
        if src is None:
            sink.emit(
                f"Key '{e.key}' not found in source translations, skipping.",
                PrintLevel.VERBOSE,
                file=catalog.file_path,
                line=e.line or None,
            )
            continue
        if src.value == "":
            sink.emit(
                f"Value for key '{e.key}' in source translations is empty.",
                PrintLevel.WARNING,
                file=source_catalog.file_path,
                line=src.line or None,
            )
            outcome.skipped_empty_source += 1
            continue
        queue.append((e, src.value))

    if not queue:
        return catalog, outcome

    batches = _chunk(queue, _effective_batch_size(batch_size, provider))
    for bi, batch in enumerate(batches, start=1):
        texts = [text for _, text in batch]
        try:
            out = provider.translate(source_catalog.locale, catalog.locale, texts)
            if len(out) != len(texts):
                raise ProviderError(
                    f"expected {len(texts)} translations, got {len(out)}",
                    kind="invalid_response",
                )
        except ProviderError as e:
            outcome.failed_batches += 1
            sink.emit(
                f"Translation batch {bi}/{len(batches)} ({len(batch)} values, "
                f"{source_catalog.locale} -> {catalog.locale}) failed: {e}",
                PrintLevel.ERROR if e.fatal else PrintLevel.WARNING,
                file=catalog.file_path,
            )
            continue

        for (entry, _), translated in zip(batch, out):
            if isinstance(translated, str) and translated:
                entry.value = translated
                outcome.filled += 1

        sink.emit(
            f"Translated batch {bi}/{len(batches)} ({source_catalog.locale} -> {catalog.locale}).",
            PrintLevel.VERBOSE,
            file=catalog.file_path,
        )

    return catalog, outcome
