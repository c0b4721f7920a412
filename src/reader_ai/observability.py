from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any


_logger = logging.getLogger("reader_ai.llm")


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _emit(level: int, payload: dict[str, Any]) -> None:
    try:
        payload = dict(payload)
        payload.setdefault("ts", _utc_iso())
        _logger.log(level, json.dumps(payload, ensure_ascii=False))
    except Exception:
        return


def llm_call(*, model: str, status_code: int, duration_ms: float, prompt_chars: int, completion_chars: int) -> None:
    _emit(
        logging.INFO,
        {
            "event": "llm_call",
            "model": model,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 1),
            "prompt_chars": prompt_chars,
            "completion_chars": completion_chars,
        },
    )


def llm_call_failed(*, model: str, reason: str, status_code: int | None = None) -> None:
    _emit(
        logging.WARNING,
        {
            "event": "llm_call_failed",
            "model": model,
            "reason": reason,
            "status_code": status_code,
        },
    )


def analysis_branch_failed(*, branch: str, error: str) -> None:
    _emit(
        logging.ERROR,
        {
            "event": "analysis_branch_failed",
            "branch": branch,
            "error": error,
        },
    )
