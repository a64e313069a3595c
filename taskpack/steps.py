"""
Step handlers: one coroutine per DSL step type.

`execute_step()` templates the step's params against the run's variables,
re-parses them, and dispatches on the step model's class.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .constants import DEFAULT_TIMEOUT_MS
from .errors import AssertionFailedError
from .models import (
    AssertStep,
    ClickStep,
    ExtractAttributeStep,
    ExtractTextStep,
    ExtractTitleStep,
    FillStep,
    NavigateStep,
    SetVarStep,
    SleepStep,
    UrlPattern,
    VariableContext,
    WaitForStep,
)
from .target import DocumentRoot, TargetMatch, describe_target, resolve_target_with_fallback
from .templating import TemplateRenderer, resolve_templates

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    page: DocumentRoot
    variables: VariableContext
    collectibles: dict[str, Any] = field(default_factory=dict)
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    renderer: TemplateRenderer | None = None


def _step_name(step: Any) -> str:
    return f"{step.type}:{step.id}" if step.id else step.type


async def _resolve(ctx: StepContext, step: Any) -> TargetMatch:
    params = step.params
    match = await resolve_target_with_fallback(ctx.page, params.resolved_target(), params.scope)
    if params.hint:
        logger.info(
            "[%s] matched %s (count=%d, hint=%r)",
            _step_name(step),
            describe_target(match.matched_target),
            match.matched_count,
            params.hint,
        )
    else:
        logger.debug(
            "[%s] matched %s (count=%d)",
            _step_name(step),
            describe_target(match.matched_target),
            match.matched_count,
        )
    return match


def _step_timeout(ctx: StepContext, step: Any) -> int:
    return step.timeout_ms if step.timeout_ms is not None else ctx.default_timeout_ms


async def _execute_navigate(ctx: StepContext, step: NavigateStep) -> None:
    await ctx.page.goto(
        step.params.url,
        wait_until=step.params.wait_until or "networkidle",
        timeout=_step_timeout(ctx, step),
    )


async def _execute_extract_title(ctx: StepContext, step: ExtractTitleStep) -> None:
    ctx.collectibles[step.params.out] = await ctx.page.title()


def _clean_text(text: str | None, trim: bool) -> str:
    if text is None:
        return ""
    return text.strip() if trim else text


async def _execute_extract_text(ctx: StepContext, step: ExtractTextStep) -> None:
    params = step.params
    match = await _resolve(ctx, step)

    if match.matched_count == 0:
        ctx.collectibles[params.out] = params.default if params.default is not None else ""
        return

    if params.first:
        text = await match.locator.first.text_content()
        ctx.collectibles[params.out] = _clean_text(text, params.trim)
        return

    texts = []
    for i in range(match.matched_count):
        texts.append(_clean_text(await match.locator.nth(i).text_content(), params.trim))
    ctx.collectibles[params.out] = texts


async def _execute_extract_attribute(ctx: StepContext, step: ExtractAttributeStep) -> None:
    params = step.params
    fallback = params.default if params.default is not None else ""
    match = await _resolve(ctx, step)

    if match.matched_count == 0:
        ctx.collectibles[params.out] = fallback
        return

    if params.first:
        value = await match.locator.first.get_attribute(params.attribute)
        ctx.collectibles[params.out] = value if value is not None else fallback
        return

    values = []
    for i in range(match.matched_count):
        values.append(await match.locator.nth(i).get_attribute(params.attribute))
    ctx.collectibles[params.out] = values


async def _execute_sleep(ctx: StepContext, step: SleepStep) -> None:
    await asyncio.sleep(step.params.duration_ms / 1000)


async def _execute_wait_for(ctx: StepContext, step: WaitForStep) -> None:
    params = step.params
    timeout = step.timeout_ms if step.timeout_ms is not None else params.timeout_ms
    if timeout is None:
        timeout = ctx.default_timeout_ms

    if params.resolved_target() is not None:
        match = await _resolve(ctx, step)
        state = "visible" if params.visible else "attached"
        await match.locator.first.wait_for(state=state, timeout=timeout)
    elif isinstance(params.url, UrlPattern):
        pattern = params.url

        def _url_matches(url: str) -> bool:
            return url == pattern.pattern if pattern.exact else pattern.pattern in url

        await ctx.page.wait_for_url(_url_matches, timeout=timeout)
    elif params.url:
        await ctx.page.wait_for_url(params.url, timeout=timeout)
    else:
        await ctx.page.wait_for_load_state(params.load_state, timeout=timeout)


async def _execute_click(ctx: StepContext, step: ClickStep) -> None:
    match = await _resolve(ctx, step)
    target = match.locator.first if step.params.first else match.locator
    timeout = _step_timeout(ctx, step)
    if step.params.wait_for_visible:
        await target.wait_for(state="visible", timeout=timeout)
    await target.click(timeout=timeout)


async def _execute_fill(ctx: StepContext, step: FillStep) -> None:
    match = await _resolve(ctx, step)
    target = match.locator.first if step.params.first else match.locator
    timeout = _step_timeout(ctx, step)
    await target.wait_for(state="visible", timeout=timeout)
    if step.params.clear:
        await target.fill(step.params.value, timeout=timeout)
    else:
        await target.press_sequentially(step.params.value, timeout=timeout)


async def _execute_assert(ctx: StepContext, step: AssertStep) -> None:
    params = step.params
    errors: list[str] = []

    if params.resolved_target() is not None:
        match = await _resolve(ctx, step)
        described = describe_target(match.matched_target)

        if match.matched_count == 0:
            errors.append(f"Element not found: {described}")
        elif params.visible is not None:
            is_visible = await match.locator.first.is_visible()
            if params.visible and not is_visible:
                errors.append(f"Element not visible: {described}")
            elif not params.visible and is_visible:
                errors.append(f"Element should not be visible: {described}")

        if params.text_includes:
            text = await match.locator.first.text_content() if match.matched_count else None
            if not text or params.text_includes not in text:
                errors.append(f'Element text does not include "{params.text_includes}": {described}')

    if params.url_includes:
        url = ctx.page.url
        if params.url_includes not in url:
            errors.append(f'URL does not include "{params.url_includes}": {url}')

    if errors:
        raise AssertionFailedError(f"Assertion failed: {params.message or '; '.join(errors)}")


async def _execute_set_var(ctx: StepContext, step: SetVarStep) -> None:
    # params were templated before dispatch
    ctx.variables.vars[step.params.name] = step.params.value


_HANDLERS: dict[type, Callable[[StepContext, Any], Awaitable[None]]] = {
    NavigateStep: _execute_navigate,
    ExtractTitleStep: _execute_extract_title,
    ExtractTextStep: _execute_extract_text,
    ExtractAttributeStep: _execute_extract_attribute,
    SleepStep: _execute_sleep,
    WaitForStep: _execute_wait_for,
    ClickStep: _execute_click,
    FillStep: _execute_fill,
    AssertStep: _execute_assert,
    SetVarStep: _execute_set_var,
}


def template_step(step: Any, variables: VariableContext, renderer: TemplateRenderer | None = None) -> Any:
    """Return a copy of `step` whose params have every template resolved."""
    resolved = resolve_templates(step.params.to_doc(), variables, renderer)
    params = type(step.params).model_validate(resolved)
    return step.model_copy(update={"params": params})


async def execute_step(ctx: StepContext, step: Any) -> None:
    handler = _HANDLERS.get(type(step))
    if handler is None:
        raise TypeError(f"Unknown step type: {getattr(step, 'type', type(step).__name__)!r}")
    await handler(ctx, template_step(step, ctx.variables, ctx.renderer))
