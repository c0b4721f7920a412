from __future__ import annotations

from typing import Mapping

from .config_loader import ModelConfig, TaskType
from .llm_client import ModelInvoker
from .prompts import PromptBuilder
from .schemas import DEFAULT_LANGUAGE


class CodeTaskDispatcher:
    """Single-shot code prompts answered by the coder model, returned verbatim."""

    def __init__(self, invoker: ModelInvoker, prompts: PromptBuilder, models: Mapping[TaskType, ModelConfig]):
        self._invoker = invoker
        self._prompts = prompts
        self._model = models[TaskType.CODER]

    async def _run(self, template_id: str, **variables: str) -> str:
        prompt = self._prompts.build(template_id, **variables)
        return await self._invoker.invoke(self._model, prompt)

    async def generate_code(self, description: str, language: str | None = None) -> str:
        return await self._run("code_generate", description=description, language=language or DEFAULT_LANGUAGE)

    async def explain_code(self, code: str, language: str | None = None) -> str:
        return await self._run("code_explain", code=code, language=language or DEFAULT_LANGUAGE)

    async def review_code(self, code: str, language: str | None = None) -> str:
        return await self._run("code_review", code=code, language=language or DEFAULT_LANGUAGE)
