from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from .config_loader import ModelConfig
from . import observability


_RAW_RESPONSE_MAX_CHARS = 3000


@dataclass(frozen=True)
class LLMRuntime:
    api_url: str
    api_key: str
    timeout_seconds: int = 120


class GatewayError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, raw_response: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.raw_response = raw_response


def _extract_text(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0] if isinstance(choices[0], dict) else {}
    message = choice.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if isinstance(content, str):
        return content
    # some compatible gateways return content parts
    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict):
                parts.append(str(part.get("text") or ""))
        return "".join(parts)
    return None


class ModelInvoker:
    """One chat-completion round trip per call, no retry."""

    def __init__(self, runtime: LLMRuntime, *, transport: httpx.AsyncBaseTransport | None = None):
        self._runtime = runtime
        self._transport = transport

    def _build_payload(self, model_config: ModelConfig, prompt: str) -> dict[str, Any]:
        return {
            "model": model_config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": float(model_config.temperature),
            "max_tokens": int(model_config.max_tokens),
            "stream": False,
        }

    async def invoke(self, model_config: ModelConfig, prompt: str) -> str:
        model = model_config.model
        url = f"{self._runtime.api_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._runtime.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(model_config, prompt)

        started = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self._runtime.timeout_seconds, transport=self._transport) as client:
                res = await client.post(url, headers=headers, json=payload)
        except httpx.TimeoutException:
            observability.llm_call_failed(model=model, reason="timeout")
            raise GatewayError(f"{model} request timed out")
        except httpx.HTTPError as e:
            observability.llm_call_failed(model=model, reason=type(e).__name__)
            raise GatewayError(f"{model} request failed: {e}")

        raw = (res.text or "")[:_RAW_RESPONSE_MAX_CHARS]

        if res.status_code != 200:
            observability.llm_call_failed(model=model, reason="http_error", status_code=res.status_code)
            raise GatewayError(f"{model} API error: {res.status_code}", status_code=res.status_code, raw_response=raw)

        try:
            data = res.json()
        except ValueError:
            observability.llm_call_failed(model=model, reason="non_json", status_code=res.status_code)
            raise GatewayError(f"{model} returned non-JSON body", status_code=res.status_code, raw_response=raw)

        text = _extract_text(data)
        if text is None:
            observability.llm_call_failed(model=model, reason="no_content", status_code=res.status_code)
            raise GatewayError(f"{model} returned no message content", status_code=res.status_code, raw_response=raw)

        observability.llm_call(
            model=model,
            status_code=res.status_code,
            duration_ms=(time.monotonic() - started) * 1000,
            prompt_chars=len(prompt),
            completion_chars=len(text),
        )
        return text
