"""LLM provider abstraction used by the report analysis.

Selection is driven by the ``LLM_PROVIDER`` environment variable
(default ``"openai_responses"``); ``get_provider()`` returns a shared
instance. Providers return parsed JSON (``dict``) or ``None`` on any
failure and leave the error policy to the caller.
"""

from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

_log = logging.getLogger(__name__)


class LLMProvider(ABC):
    """Abstract base for structured LLM completions."""

    @abstractmethod
    def complete(
        self,
        *,
        system: str,
        user: str,
        json_schema: dict[str, Any],
        schema_name: str = "response",
        timeout: float = 45.0,
    ) -> dict[str, Any] | None:
        """Return the parsed JSON object matching *json_schema*, or ``None``."""

    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""


class OpenAIResponsesProvider(LLMProvider):
    """Provider backed by OpenAI ``/v1/responses`` with strict JSON output."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str = "https://api.openai.com",
    ) -> None:
        from .settings import get_openai_api_key, get_openai_model

        self._api_key = api_key if api_key is not None else get_openai_api_key()
        self._model = model or get_openai_model()
        self._endpoint = f"{base_url.rstrip('/')}/v1/responses"

    def name(self) -> str:
        return f"openai_responses ({self._model})"

    def _build_client(self, timeout: float) -> httpx.Client:
        return httpx.Client(timeout=timeout)

    def complete(
        self,
        *,
        system: str,
        user: str,
        json_schema: dict[str, Any],
        schema_name: str = "response",
        timeout: float = 45.0,
    ) -> dict[str, Any] | None:
        if not self._api_key:
            _log.warning("No OpenAI API key configured; skipping LLM call")
            return None

        body: dict[str, Any] = {
            "model": self._model,
            "input": [
                {"role": "system", "content": [{"type": "input_text", "text": system}]},
                {"role": "user", "content": [{"type": "input_text", "text": user}]},
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "schema": json_schema,
                    "strict": True,
                }
            },
        }

        try:
            with self._build_client(timeout) as client:
                r = client.post(
                    self._endpoint,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json=body,
                )
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            _log.warning("LLM call failed: %s", exc)
            return None

        return extract_json_object(extract_responses_text(data))


def extract_responses_text(payload: dict[str, Any]) -> str:
    """Text of a Responses API payload (``output_text`` or ``output[].content[]``)."""
    output_text = payload.get("output_text")
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()
    chunks: list[str] = []
    for out in payload.get("output", []) or []:
        for content in out.get("content", []) or []:
            text = content.get("text")
            if isinstance(text, str) and text.strip():
                chunks.append(text.strip())
    return "\n\n".join(chunks)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Parse a JSON object, tolerating ```json fences and surrounding prose."""
    if not text:
        return None
    raw = text.strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?", "", raw, flags=re.IGNORECASE).strip()
        raw = re.sub(r"```$", "", raw).strip()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", raw, flags=re.DOTALL)
        if not match:
            return None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


_PROVIDERS: dict[str, type[LLMProvider]] = {
    "openai_responses": OpenAIResponsesProvider,
}

_provider_instance: LLMProvider | None = None


def get_provider(*, provider_name: str | None = None, reset: bool = False, **kwargs: Any) -> LLMProvider:
    """Return the configured provider, creating it on first use or when ``reset``."""
    global _provider_instance

    if _provider_instance is not None and not reset:
        return _provider_instance

    name = provider_name or os.environ.get("LLM_PROVIDER", "openai_responses")
    cls = _PROVIDERS.get(name)
    if cls is None:
        raise ValueError(f"Unknown LLM provider {name!r}. Available: {', '.join(sorted(_PROVIDERS))}")

    _provider_instance = cls(**kwargs)
    _log.info("LLM provider initialised: %s", _provider_instance.name())
    return _provider_instance


def register_provider(name: str, cls: type[LLMProvider]) -> None:
    _PROVIDERS[name] = cls
    _log.info("Registered LLM provider: %s -> %s", name, cls.__name__)
