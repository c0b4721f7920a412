# -*- coding: utf-8 -*-
"""
Reader AI backend
Lightweight FastAPI proxy: content analysis + code assistance
"""

import logging
import os
from dataclasses import replace
from functools import lru_cache
from http import HTTPStatus
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reader_ai.analysis import ContentAnalyzer
from reader_ai.code_tasks import CodeTaskDispatcher
from reader_ai.config_loader import LLMConfig, TaskType, load_llm_config
from reader_ai.llm_client import LLMRuntime, ModelInvoker
from reader_ai.prompts import PromptBuilder
from reader_ai.schemas import (
    AnalysisResult,
    AnalyzeRequest,
    ExplainCodeRequest,
    ExplainCodeResponse,
    GenerateCodeRequest,
    GenerateCodeResponse,
    ReviewCodeRequest,
    ReviewCodeResponse,
)

load_dotenv()

DEBUG = os.getenv("DEBUG", "").strip().lower() in {"1", "true", "yes", "y"}

BASE_DIR = Path(__file__).resolve().parent

logger = logging.getLogger("reader_ai.backend")

app = FastAPI(
    title="Reader AI",
    description="LLM reading assistant - summaries, insights, questions, connections and code help",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "http://localhost:5173")],
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
)


@lru_cache(maxsize=1)
def get_llm_config() -> LLMConfig:
    return load_llm_config(BASE_DIR)


def get_invoker(cfg: LLMConfig = Depends(get_llm_config)) -> ModelInvoker:
    api_key = os.getenv("DASHSCOPE_API_KEY", "").strip()
    if not api_key:
        raise HTTPException(status_code=500, detail="API is not configured on the server (set DASHSCOPE_API_KEY in .env)")
    runtime = LLMRuntime(
        api_url=cfg.gateway.base_url,
        api_key=api_key,
        timeout_seconds=cfg.gateway.timeout_seconds,
    )
    return ModelInvoker(runtime)


def get_analyzer(
    cfg: LLMConfig = Depends(get_llm_config),
    invoker: ModelInvoker = Depends(get_invoker),
) -> ContentAnalyzer:
    return ContentAnalyzer(invoker, PromptBuilder(cfg.templates), cfg.models)


def get_code_tasks(
    cfg: LLMConfig = Depends(get_llm_config),
    invoker: ModelInvoker = Depends(get_invoker),
) -> CodeTaskDispatcher:
    return CodeTaskDispatcher(invoker, PromptBuilder(cfg.templates), cfg.models)


_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "X-Frame-Options": "DENY",
}


def _error_body(status_code: int, message, error: str) -> dict:
    return {"statusCode": status_code, "message": message, "error": error}


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    messages = []
    for item in exc.errors():
        loc = ".".join(str(p) for p in (item.get("loc") or []) if p != "body")
        msg = str(item.get("msg") or "")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return JSONResponse(status_code=400, content=_error_body(400, messages, "Bad Request"))


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    try:
        error = HTTPStatus(exc.status_code).phrase
    except ValueError:
        error = "Error"
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, exc.detail, error))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("AI request failed: %s %s", request.method, request.url.path)
    message = str(exc) if DEBUG else "Internal server error"
    # sent by ServerErrorMiddleware, outside add_security_headers
    return JSONResponse(
        status_code=500,
        content=_error_body(500, message, "Internal Server Error"),
        headers=_SECURITY_HEADERS,
    )


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(_SECURITY_HEADERS)
    return response


@app.get("/api/config")
def get_server_config(cfg: LLMConfig = Depends(get_llm_config)):
    return {
        "api_url": cfg.gateway.base_url,
        "models": {task.value: cfg.model_for(task).model for task in TaskType},
    }


@app.get("/api/test-connection")
async def test_connection(
    cfg: LLMConfig = Depends(get_llm_config),
    invoker: ModelInvoker = Depends(get_invoker),
):
    """Check that the gateway accepts our key and URL."""
    ping = replace(cfg.model_for(TaskType.GENERAL), max_tokens=10)
    await invoker.invoke(ping, "Hi")
    return {"status": "success", "message": "Connection OK"}


@app.post("/api/ai/analyze", response_model=AnalysisResult)
async def analyze_content(req: AnalyzeRequest, analyzer: ContentAnalyzer = Depends(get_analyzer)):
    """Summary, insights and questions in parallel, then connections built on the insights."""
    return await analyzer.analyze(req.content)


@app.post("/api/ai/code/generate", response_model=GenerateCodeResponse)
async def generate_code(req: GenerateCodeRequest, tasks: CodeTaskDispatcher = Depends(get_code_tasks)):
    code = await tasks.generate_code(req.description, req.language)
    return GenerateCodeResponse(code=code)


@app.post("/api/ai/code/explain", response_model=ExplainCodeResponse)
async def explain_code(req: ExplainCodeRequest, tasks: CodeTaskDispatcher = Depends(get_code_tasks)):
    explanation = await tasks.explain_code(req.code, req.language)
    return ExplainCodeResponse(explanation=explanation)


@app.post("/api/ai/code/review", response_model=ReviewCodeResponse)
async def review_code(req: ReviewCodeRequest, tasks: CodeTaskDispatcher = Depends(get_code_tasks)):
    review = await tasks.review_code(req.code, req.language)
    return ReviewCodeResponse(review=review)


if __name__ == "__main__":
    import uvicorn
    host = os.getenv("HOST", "127.0.0.1").strip() or "127.0.0.1"
    port = int(os.getenv("PORT", "3001"))
    log_level = os.getenv("LOG_LEVEL", "info")
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    display_host = "localhost" if host in {"0.0.0.0", "::"} else host
    print(f"\n  ➜  Local:   http://{display_host}:{port}\n")
    uvicorn.run(app, host=host, port=port, log_level=log_level)
