from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping

from .config_loader import ModelConfig, TaskType
from .list_parser import parse_list
from .llm_client import ModelInvoker
from . import observability
from .prompts import PromptBuilder
from .schemas import AnalysisResult


@dataclass(frozen=True)
class Chain:
    """A prompt template bound to the model tier that answers it."""

    name: str
    template_id: str
    task: TaskType


SUMMARY = Chain(name="summary", template_id="summary", task=TaskType.GENERAL)
INSIGHTS = Chain(name="insights", template_id="insights", task=TaskType.GENERAL)
QUESTIONS = Chain(name="questions", template_id="questions", task=TaskType.GENERAL)
CONNECTIONS = Chain(name="connections", template_id="connections", task=TaskType.COMPLEX)

# independent of each other; connections depends on the insights text
_FAN_OUT = (SUMMARY, INSIGHTS, QUESTIONS)


class ContentAnalyzer:
    def __init__(self, invoker: ModelInvoker, prompts: PromptBuilder, models: Mapping[TaskType, ModelConfig]):
        self._invoker = invoker
        self._prompts = prompts
        self._models = models

    async def run_chain(self, chain: Chain, **variables: Any) -> str:
        prompt = self._prompts.build(chain.template_id, **variables)
        return await self._invoker.invoke(self._models[chain.task], prompt)

    async def _run_branch(self, chain: Chain, **variables: Any) -> str:
        try:
            return await self.run_chain(chain, **variables)
        except Exception as e:
            observability.analysis_branch_failed(branch=chain.name, error=str(e))
            raise

    async def analyze(self, content: str) -> AnalysisResult:
        tasks = [asyncio.create_task(self._run_branch(chain, content=content)) for chain in _FAN_OUT]
        try:
            summary, insights_text, questions_text = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        connections_text = await self._run_branch(CONNECTIONS, content=content, insights=insights_text)

        return AnalysisResult(
            summary=summary,
            insights=parse_list(insights_text),
            questions=parse_list(questions_text),
            connections=parse_list(connections_text),
        )
