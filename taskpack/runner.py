"""
Sequential task-pack execution.

Example:
    from playwright.async_api import async_playwright
    from taskpack import parse_task_pack, run_task_pack

    pack = parse_task_pack(doc)
    async with async_playwright() as p:
        browser = await p.chromium.launch()
        page = await browser.new_page()
        result = await run_task_pack(pack, {"query": "widgets"}, page)
        print(result.collectibles)

Steps run strictly one after another; a step's effect on `vars` is visible
to every later step. A run can be aborted between steps by setting
`cancel_event`; it is never interrupted mid-step.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any

from .artifacts import ArtifactManager
from .config import RunnerConfig
from .errors import RunCancelledError, StepExecutionError
from .inputs import InputValidator
from .models import RunMeta, RunResult, TaskPack, VariableContext
from .steps import StepContext, execute_step
from .target import DocumentRoot
from .templating import TemplateRenderer
from .validation import validate_task_pack

logger = logging.getLogger(__name__)


def _describe_step(index: int, step: Any) -> str:
    if step.id:
        return f"Step {index} ({step.id}, {step.type})"
    return f"Step {index} ({step.type})"


async def run_task_pack(
    pack: TaskPack,
    inputs: Mapping[str, Any],
    page: DocumentRoot,
    *,
    config: RunnerConfig | None = None,
    cancel_event: asyncio.Event | None = None,
    renderer: TemplateRenderer | None = None,
    artifacts: ArtifactManager | None = None,
) -> RunResult:
    """
    Validate `pack` and `inputs`, then execute the flow against `page`.

    Raises:
        ValidationError / InputValidationError: before any step runs.
        StepExecutionError: a non-optional step failed; the original error is
            chained as `__cause__`.
        RunCancelledError: `cancel_event` was set before a step started.
    """
    config = config or RunnerConfig()

    validate_task_pack(pack)
    InputValidator.validate(inputs, pack.inputs)
    variables = VariableContext(inputs=InputValidator.apply_defaults(inputs, pack.inputs))

    ctx = StepContext(
        page=page,
        variables=variables,
        default_timeout_ms=config.default_timeout_ms,
        renderer=renderer,
    )

    total = len(pack.flow)
    executed = 0
    started = time.monotonic()
    logger.info("running pack %s@%s (%d steps)", pack.metadata.id, pack.metadata.version, total)

    for index, step in enumerate(pack.flow):
        described = _describe_step(index, step)
        if cancel_event is not None and cancel_event.is_set():
            raise RunCancelledError(
                f"Run cancelled before {described} ({executed}/{total} steps executed)",
                steps_executed=executed,
            )

        logger.debug("%s started", described)
        try:
            await execute_step(ctx, step)
        except Exception as e:
            if step.continues_on_error:
                logger.warning("%s failed, continuing: %s", described, e)
            else:
                if artifacts is not None:
                    await artifacts.capture_failure(
                        page, step_index=index, step_id=step.id, step_type=step.type, reason=str(e)
                    )
                raise StepExecutionError(
                    f"{described} failed: {e}",
                    step_id=step.id,
                    step_type=step.type,
                    step_index=index,
                ) from e
        executed += 1
        logger.debug("%s finished", described)

    duration_ms = int((time.monotonic() - started) * 1000)
    return RunResult(
        collectibles=dict(ctx.collectibles),
        meta=RunMeta(
            url=page.url,
            duration_ms=duration_ms,
            steps_executed=executed,
            steps_total=total,
        ),
    )
