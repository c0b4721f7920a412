from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml


CONFIG_REL_PATH = Path("config") / "llm.yaml"

DEFAULT_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"

REQUIRED_TEMPLATES = (
    "summary",
    "insights",
    "questions",
    "connections",
    "code_generate",
    "code_explain",
    "code_review",
)


class TaskType(str, enum.Enum):
    GENERAL = "general"
    COMPLEX = "complex"
    CODER = "coder"


_MODEL_ENV = {
    TaskType.GENERAL: "LLM_MODEL_GENERAL",
    TaskType.COMPLEX: "LLM_MODEL_COMPLEX",
    TaskType.CODER: "LLM_MODEL_CODER",
}


@dataclass(frozen=True)
class ModelConfig:
    model: str
    temperature: float
    max_tokens: int


@dataclass(frozen=True)
class GatewayConfig:
    base_url: str
    timeout_seconds: int


@dataclass(frozen=True)
class LLMConfig:
    gateway: GatewayConfig
    models: Mapping[TaskType, ModelConfig]
    templates: Mapping[str, str]

    def model_for(self, task: TaskType) -> ModelConfig:
        return self.models[task]


def _require_dict(obj: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(obj, dict):
        raise ValueError(f"config error: {ctx} is not a mapping")
    return obj


def _require_str(obj: Any, ctx: str) -> str:
    if not isinstance(obj, str) or not obj.strip():
        raise ValueError(f"config error: {ctx} is not a non-empty string")
    return obj


def _require_int(obj: Any, ctx: str) -> int:
    try:
        return int(obj)
    except Exception as e:
        raise ValueError(f"config error: {ctx} is not an integer") from e


def _require_float(obj: Any, ctx: str) -> float:
    try:
        return float(obj)
    except Exception as e:
        raise ValueError(f"config error: {ctx} is not a number") from e


def _read_text(path: Path, ctx: str) -> str:
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"config error: missing file for {ctx}: {path}")
    return path.read_text(encoding="utf-8")


def _env_str(name: str) -> str | None:
    raw = (os.getenv(name) or "").strip()
    return raw or None


def _env_int(name: str) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except Exception:
        return None


def normalize_base_url(api_url: str) -> str:
    url = (api_url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"base url must be http/https with a host, got: {api_url!r}")
    return url.rstrip("/")


def _load_model(raw: Any, task: TaskType, *, temperature: float, max_tokens: int) -> ModelConfig:
    ctx = f"models.{task.value}"
    model_raw = _require_dict(raw, ctx)
    model = _require_str(model_raw.get("model"), f"{ctx}.model").strip()
    env_model = _env_str(_MODEL_ENV[task])
    if env_model is not None:
        model = env_model

    temp = _require_float(model_raw.get("temperature", temperature), f"{ctx}.temperature")
    if not 0.0 <= temp <= 1.0:
        raise ValueError(f"config error: {ctx}.temperature must be within [0, 1]")
    tokens = _require_int(model_raw.get("max_tokens", max_tokens), f"{ctx}.max_tokens")
    if tokens <= 0:
        raise ValueError(f"config error: {ctx}.max_tokens must be positive")

    return ModelConfig(model=model, temperature=temp, max_tokens=tokens)


def load_llm_config(repo_root: Path) -> LLMConfig:
    config_path = (repo_root / CONFIG_REL_PATH).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"missing config file: {config_path}")

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    root = _require_dict(raw, "root")

    gateway_raw = _require_dict(root.get("gateway") or {}, "gateway")
    defaults_raw = _require_dict(root.get("defaults"), "defaults")

    base_url = _env_str("DASHSCOPE_BASE_URL") or gateway_raw.get("base_url") or DEFAULT_BASE_URL
    timeout_seconds = _require_int(defaults_raw.get("timeout_seconds"), "defaults.timeout_seconds")
    env_timeout = _env_int("LLM_TIMEOUT_SECONDS")
    if env_timeout is not None:
        timeout_seconds = env_timeout
    if timeout_seconds <= 0:
        raise ValueError("config error: defaults.timeout_seconds must be positive")

    gateway = GatewayConfig(
        base_url=normalize_base_url(_require_str(base_url, "gateway.base_url")),
        timeout_seconds=timeout_seconds,
    )

    temperature = _require_float(defaults_raw.get("temperature", 0.7), "defaults.temperature")
    max_tokens = _require_int(defaults_raw.get("max_tokens", 4000), "defaults.max_tokens")

    models_raw = _require_dict(root.get("models"), "models")
    models = {
        task: _load_model(models_raw.get(task.value), task, temperature=temperature, max_tokens=max_tokens)
        for task in TaskType
    }

    templates_raw = _require_dict(root.get("templates"), "templates")
    config_dir = config_path.parent

    templates: dict[str, str] = {}
    for name in REQUIRED_TEMPLATES:
        tpl_raw = _require_dict(templates_raw.get(name), f"templates.{name}")
        prompt_file = Path(_require_str(tpl_raw.get("prompt_file"), f"templates.{name}.prompt_file"))
        templates[name] = _read_text(config_dir / prompt_file, f"templates.{name}.prompt_file")

    return LLMConfig(
        gateway=gateway,
        models=MappingProxyType(models),
        templates=MappingProxyType(templates),
    )
