from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .constants import DEFAULT_MAX_CONCURRENCY, DEFAULT_TIMEOUT_MS, ENV_PREFIX


def _env_bool(value: str) -> bool:
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class RunnerConfig:
    """
    Process-level settings for running task packs.

    `max_concurrency` sizes the admission limiter shared by every pack tool;
    it is fixed once the limiter is built.
    """

    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    headless: bool = True
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    artifacts_dir: str | None = None

    def __post_init__(self) -> None:
        if int(self.max_concurrency) < 1:
            raise ValueError("max_concurrency must be at least 1")
        if int(self.default_timeout_ms) < 0:
            raise ValueError("default_timeout_ms must be non-negative")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> RunnerConfig:
        """Read TASKPACK_MAX_CONCURRENCY / _HEADLESS / _DEFAULT_TIMEOUT_MS / _ARTIFACTS_DIR."""
        env = os.environ if env is None else env
        defaults = cls()

        max_concurrency = env.get(f"{ENV_PREFIX}MAX_CONCURRENCY")
        headless = env.get(f"{ENV_PREFIX}HEADLESS")
        timeout_ms = env.get(f"{ENV_PREFIX}DEFAULT_TIMEOUT_MS")
        artifacts_dir = env.get(f"{ENV_PREFIX}ARTIFACTS_DIR")

        return cls(
            max_concurrency=int(max_concurrency) if max_concurrency else defaults.max_concurrency,
            headless=_env_bool(headless) if headless is not None else defaults.headless,
            default_timeout_ms=int(timeout_ms) if timeout_ms else defaults.default_timeout_ms,
            artifacts_dir=artifacts_dir or defaults.artifacts_dir,
        )
