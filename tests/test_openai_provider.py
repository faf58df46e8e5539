# tests/test_openai_provider.py
from __future__ import annotations

import json
import types

import httpx
import openai
import pytest

from strings_sync import openai_provider as op
from strings_sync.errors import ConfigError, ProviderError


# ---------------------------
# Fake OpenAI client plumbing
# ---------------------------

class _FakeResp:
    def __init__(self, content: str):
        self.choices = [types.SimpleNamespace(message=types.SimpleNamespace(content=content))]


class _FakeClient:
    """
    模拟 openai.OpenAI().chat.completions.create()
    handler(messages, kwargs) -> content；handler 抛出的异常原样透出。
    """
    def __init__(self, handler):
        self._handler = handler
        self.calls = 0

        class _Completions:
            def __init__(self, outer):
                self._outer = outer

            def create(self, **kwargs):
                self._outer.calls += 1
                return _FakeResp(self._outer._handler(kwargs.get("messages", []), kwargs))

        class _Chat:
            def __init__(self, outer):
                self.completions = _Completions(outer)

        self.chat = _Chat(self)


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(op.time, "sleep", lambda _s: None)


def _provider(handler, **opts):
    client = _FakeClient(handler)
    return op.OpenAIProvider(opt=op.ProviderOptions(**opts), client=client), client


def _user_payload(messages):
    user = next(m for m in messages if m["role"] == "user")["content"]
    return json.loads(user)


def _system(messages):
    return next(m for m in messages if m["role"] == "system")["content"]


def _request():
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


# ---------------------------
# Tests
# ---------------------------

def test_translate_success_uses_json_payload_and_language_names():
    seen = {}

    def handler(messages, kwargs):
        seen["payload"] = _user_payload(messages)
        seen["system"] = _system(messages)
        seen["kwargs"] = kwargs
        return json.dumps({"translations": [f"DE:{t}" for t in seen["payload"]]})

    provider, _ = _provider(handler, model="gpt-x", prompt_en="Use informal tone.")
    out = provider.translate("en", "de", ["Hello", "Bye"])

    assert out == ["DE:Hello", "DE:Bye"]
    assert seen["payload"] == ["Hello", "Bye"]
    assert "from English to German" in seen["system"]
    assert "Use informal tone." in seen["system"]
    assert seen["kwargs"]["model"] == "gpt-x"
    assert seen["kwargs"]["response_format"] == {"type": "json_object"}


def test_empty_input_makes_no_call():
    provider, client = _provider(lambda m, k: "{}")
    assert provider.translate("en", "de", []) == []
    assert client.calls == 0


def test_placeholder_guard_repairs_or_blanks():
    def handler(messages, kwargs):
        return json.dumps({"translations": ["Hallo %d", "Hallo", "Ok {name}"]})

    provider, _ = _provider(handler)
    out = provider.translate("en", "de", ["Hello %@", "Hi %@", "Ok {name}"])
    assert out == ["Hallo %@", "", "Ok {name}"]


def test_length_mismatch_retries_then_raises_invalid_response():
    provider, client = _provider(lambda m, k: json.dumps({"translations": ["only one"]}), retries=2)

    with pytest.raises(ProviderError) as ei:
        provider.translate("en", "fr", ["a", "b"])
    assert ei.value.kind == "invalid_response"
    assert not ei.value.fatal
    assert client.calls == 3


def test_invalid_json_then_success():
    replies = iter(["not json", json.dumps({"translations": ["Bonjour"]})])
    provider, client = _provider(lambda m, k: next(replies), retries=1)

    assert provider.translate("en", "fr", ["Hello"]) == ["Bonjour"]
    assert client.calls == 2


def test_null_translation_becomes_empty_string():
    provider, _ = _provider(lambda m, k: json.dumps({"translations": [None]}))
    assert provider.translate("en", "fr", ["Hello"]) == [""]


def test_auth_error_is_fatal_and_not_retried():
    def handler(messages, kwargs):
        raise openai.AuthenticationError(
            "bad key", response=httpx.Response(401, request=_request()), body=None
        )

    provider, client = _provider(handler, retries=3)
    with pytest.raises(ProviderError) as ei:
        provider.translate("en", "de", ["Hello"])
    assert ei.value.kind == "auth"
    assert ei.value.fatal
    assert client.calls == 1


def test_timeout_is_retried_then_reported():
    def handler(messages, kwargs):
        raise openai.APITimeoutError(request=_request())

    provider, client = _provider(handler, retries=1)
    with pytest.raises(ProviderError) as ei:
        provider.translate("en", "de", ["Hello"])
    assert ei.value.kind == "timeout"
    assert client.calls == 2


def test_rate_limit_maps_to_quota():
    def handler(messages, kwargs):
        raise openai.RateLimitError("slow down", response=httpx.Response(429, request=_request()), body=None)

    provider, _ = _provider(handler, retries=0)
    with pytest.raises(ProviderError) as ei:
        provider.translate("en", "de", ["Hello"])
    assert ei.value.kind == "quota"


def test_same_language_pair_is_unsupported():
    provider, client = _provider(lambda m, k: "{}")
    with pytest.raises(ProviderError) as ei:
        provider.translate("en", "en", ["Hello"])
    assert ei.value.kind == "unsupported"
    assert client.calls == 0


def test_resolve_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigError):
        op.resolve_api_key(None)

    assert op.resolve_api_key("sk-cli") == "sk-cli"
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert op.resolve_api_key(None) == "sk-env"


def test_guard_ignores_plain_percent_text():
    assert op.guard_placeholders(["50% off", "100%%"], ["50 % de réduction", "100%%"]) == [
        "50 % de réduction",
        "100%%",
    ]


def test_single_attempt_failure_raises_last_error():
    provider, client = _provider(lambda m, k: "not json", retries=0)
    with pytest.raises(ProviderError) as ei:
        provider.translate("en", "de", ["Hello"])
    assert ei.value.kind == "invalid_response"
    assert client.calls == 1
