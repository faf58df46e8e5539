from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .models import Catalog, CatalogEntry, ChangeReport, HarvestedEntry


def merge(
    catalog: Catalog,
    harvested: Iterable[HarvestedEntry],
    *,
    source_locale: Optional[str],
) -> Tuple[Catalog, ChangeReport]:
    """
    把提取到的条目合并进 catalog（只追加缺失 key）。

    - 已存在的 key 一律不动（value / comment / 位置都不改），人工翻译优先
    - source_locale 的 catalog 用提取到的 value；其它语言用条目自带的对应译文（translate 调用里写好的），
      没有就追加空 value，等待 translate 或人工补齐
    - 同一批里重复的 key 只追加第一次
    """
    is_source = source_locale is not None and catalog.locale == source_locale
    existing = set(catalog.key_index().keys())
    report = ChangeReport()

    for h in harvested:
        if h.key in existing:
            continue
        value = h.value if is_source else h.translation_for(catalog.locale)
        catalog.append(CatalogEntry.new(h.key, value, h.comment))
        existing.add(h.key)
        report.added_keys.append(h.key)

    return catalog, report


def harvest_from_catalog(catalog: Catalog) -> List[HarvestedEntry]:
    """source catalog -> HarvestedEntry 列表（normalize：把源语言的 key 同步到其它语言）。"""
    out: List[HarvestedEntry] = []
    for e in catalog.entries:
        out.append(HarvestedEntry(key=e.key, value=e.value, comment=e.comment))
    return out
