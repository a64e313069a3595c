from __future__ import annotations

import pytest

from taskpack.config import RunnerConfig


def test_defaults() -> None:
    config = RunnerConfig()
    assert config.max_concurrency == 4
    assert config.headless is True
    assert config.default_timeout_ms == 30_000
    assert config.artifacts_dir is None


def test_from_env_reads_prefixed_variables() -> None:
    config = RunnerConfig.from_env(
        {
            "TASKPACK_MAX_CONCURRENCY": "2",
            "TASKPACK_HEADLESS": "false",
            "TASKPACK_DEFAULT_TIMEOUT_MS": "5000",
            "TASKPACK_ARTIFACTS_DIR": "/tmp/runs",
        }
    )
    assert config == RunnerConfig(max_concurrency=2, headless=False, default_timeout_ms=5000, artifacts_dir="/tmp/runs")


def test_from_env_uses_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKPACK_MAX_CONCURRENCY", "8")
    monkeypatch.delenv("TASKPACK_HEADLESS", raising=False)
    config = RunnerConfig.from_env()
    assert config.max_concurrency == 8
    assert config.headless is True


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValueError, match="max_concurrency"):
        RunnerConfig(max_concurrency=0)
    with pytest.raises(ValueError):
        RunnerConfig.from_env({"TASKPACK_MAX_CONCURRENCY": "0"})
    with pytest.raises(ValueError, match="default_timeout_ms"):
        RunnerConfig(default_timeout_ms=-1)
