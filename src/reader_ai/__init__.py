"""Internal package for the reader AI proxy: prompts, LLM calls and analysis."""

__all__ = [
    "analysis",
    "client",
    "code_tasks",
    "config_loader",
    "list_parser",
    "llm_client",
    "observability",
    "prompts",
    "schemas",
]
