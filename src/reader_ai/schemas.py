from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_LANGUAGE = "typescript"


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str


class AnalysisResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    summary: str
    insights: list[str] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    connections: list[str] = Field(default_factory=list)


class _CodeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: str = DEFAULT_LANGUAGE

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_LANGUAGE
        return value


class GenerateCodeRequest(_CodeRequest):
    description: str


class ExplainCodeRequest(_CodeRequest):
    code: str


class ReviewCodeRequest(_CodeRequest):
    code: str


class GenerateCodeResponse(BaseModel):
    code: str


class ExplainCodeResponse(BaseModel):
    explanation: str


class ReviewCodeResponse(BaseModel):
    review: str
