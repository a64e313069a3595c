"""
Expose task packs as callable tools.

Each `PackTool` wraps one pack: a name, a description that lists the
collectibles it produces, a pydantic input model derived from the pack's
input schema, and `invoke()`, which waits for a slot on the shared limiter,
runs the pack on a fresh page, and stores the result under its deterministic
key.

Example:
    limiter = ConcurrencyLimiter(config.max_concurrency)
    store = InMemoryResultStore()
    tool = PackTool(pack, "search_widgets", limiter, browser_page_factory(browser), store=store)
    out = await tool.invoke({"query": "widgets"})
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr, create_model

from .artifacts import ArtifactManager
from .concurrency import ConcurrencyLimiter
from .config import RunnerConfig
from .keys import generate_result_key
from .models import CollectibleSchemaField, RunMeta, StoredResult, TaskPack
from .proxy import ResolvedProxy
from .runner import run_task_pack
from .storage import ResultStore, utc_now_iso
from .target import DocumentRoot

logger = logging.getLogger(__name__)

PageFactory = Callable[[], AbstractAsyncContextManager[DocumentRoot]]

_PY_TYPES: dict[str, Any] = {
    "string": StrictStr,
    "number": Union[StrictInt, StrictFloat],
    "boolean": StrictBool,
}


class ToolResult(BaseModel):
    key: str
    collectibles: dict[str, Any]
    meta: RunMeta
    stored: bool = False


def build_tool_description(pack: TaskPack) -> str:
    meta = pack.metadata
    desc = f"{meta.description or meta.name} (v{meta.version})"
    if pack.collectibles:
        lines = [
            f"  - {c.name} ({c.type})" + (f": {c.description}" if c.description else "")
            for c in pack.collectibles
        ]
        desc += "\n\nCollectibles:\n" + "\n".join(lines)
    return desc


def pack_to_schema(pack: TaskPack) -> list[CollectibleSchemaField]:
    return [
        CollectibleSchemaField(name=c.name, type=c.type, description=c.description)
        for c in pack.collectibles
    ]


def input_model_for_pack(pack: TaskPack) -> type[BaseModel]:
    """
    Build a pydantic model mirroring the pack's input schema.

    Optional fields default to None so they can be omitted; declared defaults
    are applied later by the runner. Types are strict: "1" is not a number
    and True is not a number.
    """
    fields: dict[str, Any] = {}
    for name, definition in pack.inputs.items():
        py_type: Any = _PY_TYPES[definition.type]
        info = Field(..., description=definition.description)
        if not definition.required:
            py_type = Optional[py_type]
            info = Field(None, description=definition.description)
        fields[name] = (py_type, info)

    model_name = "".join(part.capitalize() for part in pack.metadata.id.replace("-", "_").split("_")) or "Pack"
    return create_model(
        f"{model_name}Inputs",
        __config__=ConfigDict(extra="forbid"),
        **fields,
    )


def browser_page_factory(browser: Any, proxy: ResolvedProxy | None = None) -> PageFactory:
    """
    Page factory over a Playwright `Browser`: each call opens a new context
    (with `proxy` applied, if any) and closes it when the run finishes.
    """

    @asynccontextmanager
    async def _open() -> AsyncIterator[DocumentRoot]:
        kwargs: dict[str, Any] = {}
        if proxy is not None:
            kwargs["proxy"] = proxy.to_playwright()
        context = await browser.new_context(**kwargs)
        try:
            yield await context.new_page()
        finally:
            await context.close()

    return _open


class PackTool:
    def __init__(
        self,
        pack: TaskPack,
        tool_name: str,
        limiter: ConcurrencyLimiter,
        page_factory: PageFactory,
        *,
        store: ResultStore | None = None,
        config: RunnerConfig | None = None,
    ) -> None:
        self.pack = pack
        self.name = tool_name
        self.limiter = limiter
        self.page_factory = page_factory
        self.store = store
        self.config = config or RunnerConfig()
        self.description = build_tool_description(pack)
        self.input_model = input_model_for_pack(pack)
        self.collectible_schema = pack_to_schema(pack)

    def llm_tool(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.pack.metadata.name,
            "description": self.description,
            "parameters": self.input_model.model_json_schema(),
        }

    def _artifacts_for_run(self, run_id: str) -> ArtifactManager | None:
        if not self.config.artifacts_dir:
            return None
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
        return ArtifactManager(Path(self.config.artifacts_dir) / f"{self.name}-{stamp}-{run_id[:8]}")

    async def invoke(self, inputs: Mapping[str, Any]) -> ToolResult:
        """
        Validate `inputs`, run the pack once a slot is free, and store the result.

        Raises pydantic.ValidationError for inputs that don't match the model,
        and whatever `run_task_pack` raises for a failed run. A failure to
        store is logged; the run's result is still returned.
        """
        validated = self.input_model.model_validate(dict(inputs))
        # explicit nulls mean "not provided" so declared defaults still apply
        run_inputs = {k: v for k, v in validated.model_dump(exclude_unset=True).items() if v is not None}

        run_id = uuid.uuid4().hex
        ran_at = utc_now_iso()
        logger.info(
            "%s queued (run %s, %d running, %d waiting)",
            self.name,
            run_id[:8],
            self.limiter.running_count,
            self.limiter.queue_length,
        )

        async with self.limiter.slot():
            async with self.page_factory() as page:
                result = await run_task_pack(
                    self.pack,
                    run_inputs,
                    page,
                    config=self.config,
                    artifacts=self._artifacts_for_run(run_id),
                )

        key = generate_result_key(self.pack.metadata.id, run_inputs)
        logger.info("%s completed (run %s, key %s)", self.name, run_id[:8], key)

        stored = False
        if self.store is not None:
            try:
                await self.store.store(
                    StoredResult(
                        key=key,
                        pack_id=self.pack.metadata.id,
                        tool_name=self.name,
                        inputs=run_inputs,
                        collectibles=result.collectibles,
                        meta=result.meta,
                        collectible_schema=self.collectible_schema,
                        stored_at=ran_at,
                        ran_at=ran_at,
                    )
                )
                stored = True
            except Exception as e:
                logger.warning("failed to store result for %s: %s", self.name, e)

        return ToolResult(key=key, collectibles=result.collectibles, meta=result.meta, stored=stored)
