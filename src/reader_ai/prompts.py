from __future__ import annotations

from typing import Any, Mapping

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError


_ENV = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


class TemplateError(ValueError):
    """Raised when a prompt cannot be built from its template."""


def render(template_text: str, **context: Any) -> str:
    try:
        template = _ENV.from_string(template_text)
        return template.render(**context)
    except UndefinedError as e:
        raise TemplateError(f"missing template variable: {e.message}") from e
    except TemplateSyntaxError as e:
        raise TemplateError(f"invalid template: {e.message}") from e


class PromptBuilder:
    def __init__(self, templates: Mapping[str, str]):
        self._templates = templates

    def build(self, template_id: str, **variables: Any) -> str:
        if template_id not in self._templates:
            raise TemplateError(f"unknown template: {template_id}")
        return render(self._templates[template_id], **variables)
