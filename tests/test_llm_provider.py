from __future__ import annotations

import json
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from douar_watch.llm_provider import (
    LLMProvider,
    OpenAIResponsesProvider,
    extract_json_object,
    extract_responses_text,
    get_provider,
    register_provider,
)


@pytest.fixture(autouse=True)
def restore_default_provider():
    yield
    get_provider(reset=True, api_key="")


class MockedOpenAIProvider(OpenAIResponsesProvider):
    def __init__(self, handler, **kwargs):
        super().__init__(**kwargs)
        self._handler = handler

    def _build_client(self, timeout: float) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self._handler), timeout=timeout)


def test_get_provider_returns_openai_default():
    with patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}):
        p = get_provider(reset=True)
        assert isinstance(p, OpenAIResponsesProvider)
        assert "openai" in p.name()


def test_get_provider_singleton():
    with patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}):
        p1 = get_provider(reset=True)
        p2 = get_provider()
        assert p1 is p2


def test_get_provider_unknown_raises():
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        get_provider(provider_name="nonexistent_provider", reset=True)


def test_register_custom_provider():
    class DummyProvider(LLMProvider):
        def name(self) -> str:
            return "dummy"

        def complete(self, **kwargs: Any) -> None:
            return None

    register_provider("dummy", DummyProvider)
    p = get_provider(provider_name="dummy", reset=True)
    assert p.name() == "dummy"


def test_no_key_returns_none():
    provider = OpenAIResponsesProvider(api_key="", model="test-model")
    assert provider.complete(system="s", user="u", json_schema={"type": "object"}) is None


def test_strict_schema_request_and_parse():
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"output_text": '```json\n{"summary": "ok"}\n```'})

    provider = MockedOpenAIProvider(handler, api_key="k", model="m")
    result = provider.complete(system="s", user="u", json_schema={"type": "object"}, schema_name="relief")

    assert result == {"summary": "ok"}
    assert seen["auth"] == "Bearer k"
    assert seen["body"]["model"] == "m"
    assert seen["body"]["text"]["format"]["name"] == "relief"
    assert seen["body"]["text"]["format"]["strict"] is True


def test_http_error_returns_none():
    provider = MockedOpenAIProvider(lambda request: httpx.Response(429, json={}), api_key="k", model="m")
    assert provider.complete(system="s", user="u", json_schema={}) is None


def test_extract_responses_text():
    assert extract_responses_text({"output_text": "hello world"}) == "hello world"
    assert extract_responses_text({"output": [{"content": [{"text": "  block text  "}]}]}) == "block text"
    assert extract_responses_text({}) == ""


def test_extract_json_object():
    assert extract_json_object('noise {"a": 1} trailing') == {"a": 1}
    assert extract_json_object("[1, 2]") is None
    assert extract_json_object("") is None
