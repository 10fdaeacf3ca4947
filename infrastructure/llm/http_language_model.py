"""Chat-completion adapter for OpenAI, Azure OpenAI and Ollama endpoints."""
from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal

import requests

from domain.errors import ServiceError
from domain.interfaces import LanguageModel, SchemaT

logger = logging.getLogger(__name__)

LLMProvider = Literal["openai", "azure", "ollama"]

_DEFAULT_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "ollama": "http://localhost:11434",
}
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL)


@dataclass(slots=True)
class LLMConfig:
    provider: LLMProvider = "openai"
    model: str = "gpt-4o-mini"
    base_url: str | None = None
    api_key: str | None = None
    api_version: str = "2024-06-01"
    temperature: float = 0.0
    timeout: float = 60.0


def _extract_json(raw: str) -> str:
    cleaned = raw.strip()
    fenced = _CODE_FENCE_RE.match(cleaned)
    if fenced:
        cleaned = fenced.group("body")
    if not cleaned.startswith("{"):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start != -1 and end > start:
            cleaned = cleaned[start : end + 1]
    return cleaned


class HttpLanguageModel(LanguageModel):
    """Blocking ``requests`` calls moved off the event loop with ``asyncio.to_thread``."""

    def __init__(self, config: LLMConfig) -> None:
        if config.provider not in ("openai", "azure", "ollama"):
            raise ValueError(f"Unknown LLM provider '{config.provider}'")
        if config.provider == "azure" and not config.base_url:
            raise ValueError("Azure provider requires a base URL")
        self._config = config

    @property
    def model(self) -> str:
        return self._config.model

    async def generate_text(self, prompt: str, *, system: str | None = None) -> str:
        messages = self._messages(prompt, system)
        return await asyncio.to_thread(self._complete, messages, False)

    async def generate_structured(
        self,
        prompt: str,
        schema: type[SchemaT],
        *,
        system: str | None = None,
    ) -> SchemaT:
        instructions = (
            "Respond only with a JSON object that matches this JSON schema:\n"
            f"{json.dumps(schema.model_json_schema())}"
        )
        system_prompt = f"{system}\n\n{instructions}" if system else instructions
        raw = await asyncio.to_thread(self._complete, self._messages(prompt, system_prompt), True)
        return schema.model_validate_json(_extract_json(raw))

    @staticmethod
    def _messages(prompt: str, system: str | None) -> list[dict[str, str]]:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _complete(self, messages: list[dict[str, str]], json_mode: bool) -> str:
        url, headers, body = self._request(messages, json_mode)
        logger.debug("Calling %s model %s (json_mode=%s)", self._config.provider, self._config.model, json_mode)
        try:
            response = requests.post(url, headers=headers, json=body, timeout=self._config.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise ServiceError(f"LLM request failed with status {status}: {exc}", status_code=status) from exc
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise ServiceError(f"LLM request failed: {exc}", retryable=True) from exc

        payload = response.json()
        if self._config.provider == "ollama":
            return payload.get("message", {}).get("content", "")
        return payload["choices"][0]["message"]["content"] or ""

    def _request(self, messages: list[dict[str, str]], json_mode: bool) -> tuple[str, dict[str, str], dict[str, Any]]:
        cfg = self._config
        base_url = (cfg.base_url or _DEFAULT_BASE_URLS.get(cfg.provider, "")).rstrip("/")

        if cfg.provider == "ollama":
            body: dict[str, Any] = {
                "model": cfg.model,
                "messages": messages,
                "stream": False,
                "options": {"temperature": cfg.temperature},
            }
            if json_mode:
                body["format"] = "json"
            return f"{base_url}/api/chat", {}, body

        body = {"messages": messages, "temperature": cfg.temperature}
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        if cfg.provider == "azure":
            if not cfg.api_key:
                raise ServiceError("Missing Azure OpenAI API key.", retryable=False)
            url = f"{base_url}/openai/deployments/{cfg.model}/chat/completions?api-version={cfg.api_version}"
            return url, {"api-key": cfg.api_key}, body

        if not cfg.api_key:
            raise ServiceError("Missing OpenAI API key.", retryable=False)
        body["model"] = cfg.model
        return f"{base_url}/chat/completions", {"Authorization": f"Bearer {cfg.api_key}"}, body


__all__ = ["HttpLanguageModel", "LLMConfig", "LLMProvider"]
