from __future__ import annotations

import os
from typing import Any

import requests

from .schemas import DEFAULT_LANGUAGE, AnalysisResult


DEFAULT_PROXY_URL = "http://localhost:3001"


class AIClientError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AIClient:
    """Blocking client for the reader AI proxy."""

    def __init__(self, base_url: str | None = None, *, timeout: int = 180):
        url = base_url or os.getenv("READER_AI_BASE_URL", "") or DEFAULT_PROXY_URL
        self._base_url = url.strip().rstrip("/")
        self._timeout = timeout

    def _post(self, path: str, payload: dict[str, Any], *, action: str) -> dict[str, Any]:
        try:
            res = requests.post(
                f"{self._base_url}{path}",
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise AIClientError(f"{action} failed: {e}")

        if not res.ok:
            raise AIClientError(
                f"{action} failed: {res.status_code} {res.reason or ''}".rstrip(),
                status_code=res.status_code,
                body=(res.text or "")[:3000],
            )

        try:
            data = res.json()
        except ValueError:
            raise AIClientError(f"{action} failed: response is not JSON", status_code=res.status_code)
        if not isinstance(data, dict):
            raise AIClientError(f"{action} failed: response is not an object", status_code=res.status_code)
        return data

    def analyze_content(self, content: str) -> AnalysisResult:
        data = self._post("/api/ai/analyze", {"content": content}, action="AI analysis")
        return AnalysisResult.model_validate(data)

    def generate_code(self, description: str, language: str = DEFAULT_LANGUAGE) -> str:
        data = self._post(
            "/api/ai/code/generate",
            {"description": description, "language": language},
            action="Code generation",
        )
        return str(data.get("code") or "")

    def explain_code(self, code: str, language: str = DEFAULT_LANGUAGE) -> str:
        data = self._post("/api/ai/code/explain", {"code": code, "language": language}, action="Code explanation")
        return str(data.get("explanation") or "")

    def review_code(self, code: str, language: str = DEFAULT_LANGUAGE) -> str:
        data = self._post("/api/ai/code/review", {"code": code, "language": language}, action="Code review")
        return str(data.get("review") or "")
