from __future__ import annotations

import sys
from pathlib import Path
from types import MappingProxyType

import pytest
from fastapi.testclient import TestClient


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
for p in (SRC_DIR, REPO_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


import backend
from reader_ai.config_loader import GatewayConfig, LLMConfig, ModelConfig, TaskType
from reader_ai.llm_client import GatewayError
from reader_ai.schemas import AnalysisResult


class _FakeAnalyzer:
    def __init__(self, *, error: Exception | None = None):
        self.error = error
        self.contents: list[str] = []

    async def analyze(self, content: str) -> AnalysisResult:
        self.contents.append(content)
        if self.error is not None:
            raise self.error
        return AnalysisResult(summary="S", insights=["i1"], questions=["q1", "q2"], connections=["c1"])


class _FakeCodeTasks:
    def __init__(self):
        self.calls: list[tuple[str, str, str]] = []

    async def generate_code(self, description: str, language: str | None = None) -> str:
        self.calls.append(("generate", description, language))
        return "CODE"

    async def explain_code(self, code: str, language: str | None = None) -> str:
        self.calls.append(("explain", code, language))
        return "EXPLANATION"

    async def review_code(self, code: str, language: str | None = None) -> str:
        self.calls.append(("review", code, language))
        return "REVIEW"


def _fake_cfg() -> LLMConfig:
    model = ModelConfig(model="m", temperature=0.7, max_tokens=4000)
    return LLMConfig(
        gateway=GatewayConfig(base_url="http://example.com/v1", timeout_seconds=5),
        models=MappingProxyType({TaskType.GENERAL: model, TaskType.COMPLEX: model, TaskType.CODER: model}),
        templates=MappingProxyType({}),
    )


@pytest.fixture
def client():
    yield TestClient(backend.app, raise_server_exceptions=False)
    backend.app.dependency_overrides.clear()


def test_analyze_returns_result(client):
    fake = _FakeAnalyzer()
    backend.app.dependency_overrides[backend.get_analyzer] = lambda: fake

    res = client.post("/api/ai/analyze", json={"content": "hello"})

    assert res.status_code == 200
    assert res.json() == {"summary": "S", "insights": ["i1"], "questions": ["q1", "q2"], "connections": ["c1"]}
    assert fake.contents == ["hello"]
    assert res.headers["X-Content-Type-Options"] == "nosniff"


def test_analyze_failure_maps_to_500(client):
    fake = _FakeAnalyzer(error=GatewayError("qwen-plus API error: 503", status_code=503))
    backend.app.dependency_overrides[backend.get_analyzer] = lambda: fake

    res = client.post("/api/ai/analyze", json={"content": "hello"})

    assert res.status_code == 500
    body = res.json()
    assert body["statusCode"] == 500
    assert body["error"] == "Internal Server Error"
    assert "message" in body


def test_malformed_body_maps_to_400(client):
    backend.app.dependency_overrides[backend.get_analyzer] = lambda: _FakeAnalyzer()

    res = client.post("/api/ai/analyze", json={"text": "wrong key"})

    assert res.status_code == 400
    body = res.json()
    assert body["statusCode"] == 400
    assert body["error"] == "Bad Request"
    assert body["message"]


def test_code_routes_wrap_text(client):
    fake = _FakeCodeTasks()
    backend.app.dependency_overrides[backend.get_code_tasks] = lambda: fake

    gen = client.post("/api/ai/code/generate", json={"description": "add two numbers"})
    exp = client.post("/api/ai/code/explain", json={"code": "x = 1", "language": "python"})
    rev = client.post("/api/ai/code/review", json={"code": "let x", "language": None})

    assert gen.json() == {"code": "CODE"}
    assert exp.json() == {"explanation": "EXPLANATION"}
    assert rev.json() == {"review": "REVIEW"}
    assert fake.calls == [
        ("generate", "add two numbers", "typescript"),
        ("explain", "x = 1", "python"),
        ("review", "let x", "typescript"),
    ]


def test_missing_api_key_maps_to_500(client, monkeypatch):
    monkeypatch.delenv("DASHSCOPE_API_KEY", raising=False)
    backend.app.dependency_overrides[backend.get_llm_config] = _fake_cfg

    res = client.post("/api/ai/code/generate", json={"description": "x"})

    assert res.status_code == 500
    body = res.json()
    assert body["statusCode"] == 500
    assert body["message"] == "API is not configured on the server (set DASHSCOPE_API_KEY in .env)"


def test_server_config_hides_api_key(client, monkeypatch):
    monkeypatch.setenv("DASHSCOPE_API_KEY", "sk-secret")
    backend.app.dependency_overrides[backend.get_llm_config] = _fake_cfg

    res = client.get("/api/config")

    assert res.status_code == 200
    data = res.json()
    assert data["api_url"] == "http://example.com/v1"
    assert data["models"] == {"general": "m", "complex": "m", "coder": "m"}
    assert "sk-secret" not in res.text


def test_connection_check_uses_small_token_cap(client):
    seen: list[ModelConfig] = []

    class _TinyInvoker:
        async def invoke(self, model_config: ModelConfig, prompt: str) -> str:
            seen.append(model_config)
            return "hello"

    backend.app.dependency_overrides[backend.get_llm_config] = _fake_cfg
    backend.app.dependency_overrides[backend.get_invoker] = lambda: _TinyInvoker()

    res = client.get("/api/test-connection")

    assert res.status_code == 200
    assert res.json()["status"] == "success"
    assert seen[0].max_tokens == 10
    assert seen[0].model == "m"


def test_unexpected_error_keeps_security_headers(client):
    fake = _FakeAnalyzer(error=RuntimeError("boom"))
    backend.app.dependency_overrides[backend.get_analyzer] = lambda: fake

    res = client.post("/api/ai/analyze", json={"content": "hello"})

    assert res.status_code == 500
    assert res.headers["X-Content-Type-Options"] == "nosniff"
    assert res.headers["X-Frame-Options"] == "DENY"
    assert res.headers["Referrer-Policy"] == "no-referrer"
