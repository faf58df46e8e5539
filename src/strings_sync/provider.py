from __future__ import annotations

from typing import List, Protocol


class TranslationProvider(Protocol):
    """
    翻译后端：输入一批源文本，返回等长、同序的译文列表；失败抛 ProviderError。
    重试策略（如果有）属于 provider 自己，调用方不重试。
    """

    # 单次请求最多多少条
    max_batch_size: int

    def translate(self, source_locale: str, target_locale: str, texts: List[str]) -> List[str]:
        ...
