from __future__ import annotations

import json
import os
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from .errors import ConfigError, ProviderError
from .languages import language_name


# =========================================================
# Options
# =========================================================

@dataclass(frozen=True)
class ProviderOptions:
    model: str = "gpt-4o-mini"
    timeout: float = 60.0
    retries: int = 2
    temperature: float = 0.0
    backoff_base: float = 1.6
    backoff_jitter: float = 0.25
    max_batch_size: int = 40
    prompt_en: str = ""


def resolve_api_key(api_key: Optional[str] = None) -> str:
    key = (api_key or "").strip() or os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        raise ConfigError(
            "未检测到 OpenAI API Key。\n"
            "请先在终端配置环境变量：\n"
            '  export OPENAI_API_KEY="sk-***"\n'
            "或通过 --api-key 传入。"
        )
    return key


# =========================================================
# Placeholder protection
# =========================================================

_PLACEHOLDER_RE = re.compile(
    r"(?:"
    r"{{\s*[A-Za-z0-9_.-]+\s*}}"                     # {{name}}
    r"|{[A-Za-z0-9_.-]+}"                            # {name}
    r"|%(?:\d+\$)?[#0+\-]*\d*(?:\.\d+)?(?:ll|l|h)?[a-zA-Z@]"  # %1$@, %d, %.2f, %lld ...
    r"|%%"
    r")"
)


def _placeholders(text: str) -> List[str]:
    return [m.group(0) for m in _PLACEHOLDER_RE.finditer(text or "")]


def _compatible(src: str, tgt: str) -> bool:
    return sorted(_placeholders(src)) == sorted(_placeholders(tgt))


def guard_placeholders(src_items: List[str], out_items: List[str]) -> List[str]:
    """
    模型改名/打乱的占位符按顺序换回源文本的占位符；
    仍然对不上（比如被删掉了）的条目置空，交给人工或下次增量翻译。
    """
    fixed: List[str] = []
    for src, tgt in zip(src_items, out_items):
        src_ph = _placeholders(src)
        if _compatible(src, tgt):
            fixed.append(tgt)
            continue
        if src_ph:
            it = iter(src_ph)
            tgt = _PLACEHOLDER_RE.sub(lambda m: next(it, m.group(0)), tgt)
        fixed.append(tgt if _compatible(src, tgt) else "")
    return fixed


# =========================================================
# Prompt & payload
# =========================================================

def _system_prompt(*, src_lang: str, tgt_lang: str, prompt_en: str) -> str:
    base = (
        "You are a professional localization translator for iOS/macOS app UI strings.\n"
        f"Translate from {src_lang} to {tgt_lang}.\n\n"
        "OUTPUT (STRICT):\n"
        '- Return ONLY valid JSON: {"translations":[...]}.\n'
        "- The array length and order MUST exactly match the input list (1:1).\n"
        "- No extra text, keys, or formatting.\n\n"
        "RULES:\n"
        "- Preserve ALL placeholders/format tokens exactly as-is (e.g. %@, %1$@, %d, %.2f, %%, {name}).\n"
        "- Preserve URLs and brand/proper nouns verbatim.\n"
        "- Keep line breaks (\\n) where the source has them.\n"
        "- Do not return empty strings.\n"
    )
    extra = (prompt_en or "").strip()
    return base if not extra else f"{base}\nAdditional instructions:\n{extra}\n"


def _parse_translations(text: str) -> List[str]:
    obj = json.loads(text)
    if not isinstance(obj, dict):
        raise ValueError("Model output is not a JSON object")
    arr = obj.get("translations")
    if not isinstance(arr, list):
        raise ValueError("Invalid output: 'translations' must be an array")
    out: List[str] = []
    for v in arr:
        if v is None:
            out.append("")
        elif isinstance(v, str):
            out.append(v)
        else:
            raise ValueError("Invalid output: each translation must be a string or null")
    return out


def _classify(e: Exception) -> ProviderError:
    if isinstance(e, ProviderError):
        return e
    if isinstance(e, openai.AuthenticationError) or isinstance(e, openai.PermissionDeniedError):
        return ProviderError(f"authentication failed: {e}", kind="auth")
    if isinstance(e, openai.RateLimitError):
        return ProviderError(f"rate limit / quota exceeded: {e}", kind="quota")
    if isinstance(e, openai.APITimeoutError):
        return ProviderError(f"request timed out: {e}", kind="timeout")
    if isinstance(e, openai.APIConnectionError):
        return ProviderError(f"network failure: {e}", kind="network")
    if isinstance(e, (openai.NotFoundError, openai.BadRequestError)):
        return ProviderError(f"request rejected: {e}", kind="unsupported")
    if isinstance(e, (ValueError, json.JSONDecodeError)):
        return ProviderError(f"invalid model output: {e}", kind="invalid_response")
    return ProviderError(str(e), kind="unknown")


# =========================================================
# Provider
# =========================================================

class OpenAIProvider:
    """
    translate(source, target, texts) -> 等长译文列表。

    - 一批一次 chat.completions 调用（JSON 输出）
    - 瞬时错误（限流/网络/超时/输出格式不对）按指数退避重试；auth 等直接失败
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        opt: Optional[ProviderOptions] = None,
        client: Any = None,
    ) -> None:
        self.opt = opt or ProviderOptions()
        self.max_batch_size = self.opt.max_batch_size
        if client is None:
            client = OpenAI(api_key=resolve_api_key(api_key), timeout=self.opt.timeout)
        self.client = client

    def _complete(self, system_prompt: str, user_content: str) -> str:
        kwargs: Dict[str, Any] = dict(
            model=self.opt.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            temperature=self.opt.temperature,
            response_format={"type": "json_object"},
        )
        resp = self.client.chat.completions.create(**kwargs)
        return (resp.choices[0].message.content or "").strip()

    def _sleep_backoff(self, attempt: int) -> None:
        time.sleep((self.opt.backoff_base ** attempt) + random.uniform(0, self.opt.backoff_jitter))

    def translate(self, source_locale: str, target_locale: str, texts: List[str]) -> List[str]:
        if not texts:
            return []
        if source_locale == target_locale:
            raise ProviderError(f"unsupported language pair: {source_locale} -> {target_locale}", kind="unsupported")

        system_prompt = _system_prompt(
            src_lang=language_name(source_locale),
            tgt_lang=language_name(target_locale),
            prompt_en=self.opt.prompt_en,
        )
        user_content = json.dumps(texts, ensure_ascii=False, separators=(",", ":"))

        last = ProviderError("no attempt was made", kind="unknown")
        total_attempts = self.opt.retries + 1
        for attempt in range(total_attempts):
            try:
                out = _parse_translations(self._complete(system_prompt, user_content))
                if len(out) != len(texts):
                    raise ProviderError(
                        f"length mismatch: input {len(texts)} items, output {len(out)} translations",
                        kind="invalid_response",
                    )
                return guard_placeholders(texts, out)
            except Exception as e:  # noqa: BLE001 - 统一映射成 ProviderError
                last = _classify(e)
                if last.fatal:
                    raise last from e
                if attempt < total_attempts - 1:
                    self._sleep_backoff(attempt)

        raise last
