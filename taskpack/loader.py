"""
Load task packs from disk.

A pack directory holds two files:

    taskpack.json   manifest: id, name, version, description, kind, browser
    flow.json       inputs, collectibles, flow

Only `"kind": "json-dsl"` packs are supported.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .errors import PackLoadError
from .models import TaskPack
from .validation import parse_task_pack

logger = logging.getLogger(__name__)

MANIFEST_FILE = "taskpack.json"
FLOW_FILE = "flow.json"


def _read_json(path: Path, label: str) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise PackLoadError(f"{label} not found: {path}") from e
    except OSError as e:
        raise PackLoadError(f"Failed to read {path.name}: {e}") from e
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise PackLoadError(f"Failed to parse {path.name}: {e}") from e


class TaskPackLoader:
    @staticmethod
    def load_manifest(pack_path: str | Path) -> dict[str, Any]:
        manifest = _read_json(Path(pack_path) / MANIFEST_FILE, "Task pack manifest")
        if not isinstance(manifest, dict):
            raise PackLoadError(f"{MANIFEST_FILE} must contain a JSON object")
        if not (manifest.get("id") and manifest.get("name") and manifest.get("version")):
            raise PackLoadError(f"{MANIFEST_FILE} missing required fields: id, name, version")
        if manifest.get("kind") != "json-dsl":
            raise PackLoadError(f'{MANIFEST_FILE} must have "kind": "json-dsl"')
        return manifest

    @classmethod
    def load_task_pack(cls, pack_path: str | Path) -> TaskPack:
        """
        Read and validate the pack at `pack_path`.

        Raises PackLoadError for missing/unreadable files and ValidationError
        for structural problems in the assembled pack.
        """
        pack_path = Path(pack_path)
        manifest = cls.load_manifest(pack_path)
        flow_doc = _read_json(pack_path / FLOW_FILE, f"{FLOW_FILE} for json-dsl pack")
        if not isinstance(flow_doc, dict) or not isinstance(flow_doc.get("flow"), list):
            raise PackLoadError(f'{FLOW_FILE} must have a "flow" array')

        metadata = {k: manifest[k] for k in ("id", "name", "version", "description") if k in manifest}
        doc: dict[str, Any] = {
            "metadata": metadata,
            "inputs": flow_doc.get("inputs") or {},
            "collectibles": flow_doc.get("collectibles") or [],
            "flow": flow_doc["flow"],
        }
        if manifest.get("browser") is not None:
            doc["browser"] = manifest["browser"]

        pack = parse_task_pack(doc)
        logger.info("loaded task pack %s@%s from %s", metadata["id"], metadata["version"], pack_path)
        return pack
