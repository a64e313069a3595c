from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ArtifactManager:
    """Writes per-run debugging artifacts (screenshots, HTML, manifest) under one directory."""

    def __init__(self, run_dir: str | Path) -> None:
        self.run_dir = Path(run_dir)

    def _path(self, name: str, suffix: str) -> Path:
        self.run_dir.mkdir(parents=True, exist_ok=True)
        return self.run_dir / f"{name}{suffix}"

    async def save_screenshot(self, page: Any, name: str) -> Path:
        path = self._path(name, ".png")
        await page.screenshot(path=str(path), full_page=True)
        return path

    def save_html(self, name: str, html: str) -> Path:
        path = self._path(name, ".html")
        path.write_text(html, encoding="utf-8")
        return path

    def write_manifest(self, data: dict[str, Any]) -> Path:
        path = self._path("manifest", ".json")
        path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        return path

    async def capture_failure(
        self,
        page: Any,
        *,
        step_index: int,
        step_id: str | None,
        step_type: str,
        reason: str,
    ) -> Path | None:
        """
        Best-effort screenshot + HTML dump for a failed step.

        Capture problems are logged, never raised: the step's own error is the
        one the caller needs to see.
        """
        name = f"step-{step_index:03d}-failure"
        files: dict[str, str] = {}
        try:
            files["screenshot"] = (await self.save_screenshot(page, name)).name
        except Exception as e:
            logger.warning("failed to capture screenshot for step %d: %s", step_index, e)
        try:
            files["html"] = self.save_html(name, await page.content()).name
        except Exception as e:
            logger.warning("failed to capture HTML for step %d: %s", step_index, e)
        try:
            return self.write_manifest(
                {
                    "step_index": step_index,
                    "step_id": step_id,
                    "step_type": step_type,
                    "reason": reason,
                    "url": getattr(page, "url", None),
                    "captured_at": time.time(),
                    "files": files,
                }
            )
        except OSError as e:
            logger.warning("failed to write failure manifest: %s", e)
            return None
