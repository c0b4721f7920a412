from __future__ import annotations

import json
import logging
import sys
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


from reader_ai import observability


def test_llm_call_emits_json(caplog):
    caplog.set_level(logging.INFO, logger="reader_ai.llm")

    observability.llm_call(model="qwen-plus", status_code=200, duration_ms=12.34, prompt_chars=10, completion_chars=5)

    assert caplog.records
    payload = json.loads(caplog.records[-1].message)
    assert payload["event"] == "llm_call"
    assert payload["model"] == "qwen-plus"
    assert payload["duration_ms"] == 12.3
    assert "ts" in payload


def test_branch_failure_is_logged_as_error(caplog):
    caplog.set_level(logging.INFO, logger="reader_ai.llm")

    observability.analysis_branch_failed(branch="summary", error="boom")

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    payload = json.loads(record.message)
    assert payload["event"] == "analysis_branch_failed"
    assert payload["branch"] == "summary"
