"""
Result storage boundary.

Stores declare their capabilities so callers know which optional operations
they may use. Storing under an existing key overwrites the previous result:
`version` is incremented and `stored_at` refreshed, while `ran_at` keeps the
time the run actually executed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Literal, Protocol, runtime_checkable

from .models import ResultSummary, StoredResult

StorageCapability = Literal["get", "store", "list", "delete", "filter", "search", "aggregate"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@runtime_checkable
class ResultStore(Protocol):
    def capabilities(self) -> list[StorageCapability]: ...

    async def store(self, result: StoredResult) -> StoredResult: ...

    async def get(self, key: str) -> StoredResult | None: ...


class InMemoryResultStore:
    """Process-local store for tests and ephemeral servers."""

    def __init__(self, clock: Callable[[], str] | None = None) -> None:
        self._data: dict[str, StoredResult] = {}
        self._clock = clock or utc_now_iso

    def capabilities(self) -> list[StorageCapability]:
        return ["get", "store", "list", "delete"]

    async def store(self, result: StoredResult) -> StoredResult:
        existing = self._data.get(result.key)
        saved = result.model_copy(
            update={
                "version": existing.version + 1 if existing else 1,
                "stored_at": self._clock(),
            }
        )
        self._data[result.key] = saved
        return saved

    async def get(self, key: str) -> StoredResult | None:
        return self._data.get(key)

    async def list(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        sort_by: Literal["stored_at", "ran_at"] = "stored_at",
        sort_dir: Literal["asc", "desc"] = "desc",
    ) -> tuple[list[ResultSummary], int]:
        entries = sorted(
            self._data.values(),
            key=lambda r: r.ran_at if sort_by == "ran_at" else r.stored_at,
            reverse=sort_dir == "desc",
        )
        page = entries[offset : offset + limit]
        summaries = [
            ResultSummary(
                key=r.key,
                pack_id=r.pack_id,
                tool_name=r.tool_name,
                stored_at=r.stored_at,
                version=r.version,
                field_count=len(r.collectibles),
            )
            for r in page
        ]
        return summaries, len(entries)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def close(self) -> None:
        self._data.clear()
