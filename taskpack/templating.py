"""
Template substitution for step params.

Placeholders look like `{{ inputs.query }}` or `{{ vars.page | urlencode }}`.
Only inline strings are rendered: there is no loader (so no include/import of
other templates), no custom filters, and undefined references raise instead
of rendering as an empty string. A null value raises too; booleans render as
`true`/`false`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, TypeVar

from jinja2 import StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from .errors import TemplateResolutionError
from .models import VariableContext

T = TypeVar("T")

TEMPLATE_MARKERS = ("{{", "{%", "{#")


class TemplateRenderer(Protocol):
    def render(self, template: str, variables: Mapping[str, Any]) -> str: ...


class _KeyFirstEnvironment(SandboxedEnvironment):
    """
    `a.b` on a mapping looks up the key `b` and nothing else, so `inputs.items`
    is the input named "items" and `inputs.values` on an empty mapping is
    undefined rather than the bound dict method.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (KeyError, TypeError):
                return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


def _finalize(value: Any) -> Any:
    if value is None:
        raise ValueError("expression evaluated to null")
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class JinjaTemplateRenderer:
    """Sandboxed Jinja2 `from_string` rendering with strict undefined handling."""

    def __init__(self) -> None:
        self._env = _KeyFirstEnvironment(
            loader=None,
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            finalize=_finalize,
        )

    def render(self, template: str, variables: Mapping[str, Any]) -> str:
        return self._env.from_string(template).render(**variables)


_default_renderer = JinjaTemplateRenderer()


def has_template(value: Any) -> bool:
    """True for strings carrying any template syntax (expression, statement or comment)."""
    return isinstance(value, str) and any(marker in value for marker in TEMPLATE_MARKERS)


def resolve_template(
    template: str,
    context: VariableContext,
    renderer: TemplateRenderer | None = None,
) -> str:
    """Render one template string against the run's inputs/vars. Plain strings are returned as-is."""
    if not has_template(template):
        return template
    renderer = renderer or _default_renderer
    try:
        return renderer.render(template, context.as_template_vars())
    except Exception as e:
        raise TemplateResolutionError(f"Template resolution failed: {e}") from e


def resolve_templates(value: T, context: VariableContext, renderer: TemplateRenderer | None = None) -> T:
    """
    Resolve every string inside `value`, depth-first.

    Lists/tuples are mapped element-wise, dicts rebuilt key by key; numbers,
    booleans and None pass through unchanged.
    """
    if isinstance(value, str):
        return resolve_template(value, context, renderer)  # type: ignore[return-value]
    if isinstance(value, list):
        return [resolve_templates(item, context, renderer) for item in value]  # type: ignore[return-value]
    if isinstance(value, tuple):
        return tuple(resolve_templates(item, context, renderer) for item in value)  # type: ignore[return-value]
    if isinstance(value, dict):
        return {key: resolve_templates(item, context, renderer) for key, item in value.items()}  # type: ignore[return-value]
    return value
