"""
Tests for the config module.
"""

import pytest

from async_worker.config import (
    DEFAULT_FALLBACK_DELAY_MS,
    DEFAULT_INACTIVE_MULTIPLIER,
    WorkerConfig,
    coerce_bool,
    load_config,
)


class TestWorkerConfig:
    """Tests for WorkerConfig validation."""

    def test_defaults(self):
        config = WorkerConfig()

        assert config.jobs_per_tick == 1
        assert config.inactive_multiplier == DEFAULT_INACTIVE_MULTIPLIER
        assert config.work_on_inactive is True
        assert config.fallback_delay_ms == DEFAULT_FALLBACK_DELAY_MS

    @pytest.mark.parametrize("value", [0, -5, 0.5, "abc", None])
    def test_jobs_per_tick_clamps_to_one(self, value):
        assert WorkerConfig(jobs_per_tick=value).jobs_per_tick == 1

    def test_jobs_per_tick_accepts_numeric_strings(self):
        assert WorkerConfig(jobs_per_tick="12").jobs_per_tick == 12

    def test_assignment_is_validated(self):
        config = WorkerConfig(jobs_per_tick=5)

        config.jobs_per_tick = "nonsense"

        assert config.jobs_per_tick == 1

    def test_inactive_multiplier_clamps_to_one(self):
        assert WorkerConfig(inactive_multiplier=0).inactive_multiplier == 1

    def test_negative_delay_clamps_to_zero(self):
        assert WorkerConfig(fallback_delay_ms=-3).fallback_delay_ms == 0

    @pytest.mark.parametrize("value,expected", [
        ("false", False),
        ("0", False),
        ("off", False),
        ("yes", True),
        ("TRUE", True),
        (0, False),
        (1, True),
    ])
    def test_work_on_inactive_coerced(self, value, expected):
        assert WorkerConfig(work_on_inactive=value).work_on_inactive is expected


class TestCoerceBool:
    def test_unknown_strings_use_truthiness(self):
        assert coerce_bool("maybe") is True
        assert coerce_bool("") is False


class TestLoadConfig:
    """Tests for environment loading."""

    def test_reads_prefixed_variables(self):
        config = load_config(env={
            "ASYNC_WORKER_JOBS_PER_TICK": "8",
            "ASYNC_WORKER_INACTIVE_MULTIPLIER": "25",
            "ASYNC_WORKER_WORK_ON_INACTIVE": "false",
            "ASYNC_WORKER_FALLBACK_DELAY_MS": "40",
        })

        assert config.jobs_per_tick == 8
        assert config.inactive_multiplier == 25
        assert config.work_on_inactive is False
        assert config.fallback_delay_ms == 40

    def test_missing_variables_keep_defaults(self):
        config = load_config(env={"UNRELATED": "1"})

        assert config == WorkerConfig()

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("ASYNC_WORKER_JOBS_PER_TICK", "3")

        config = load_config(dotenv=False)

        assert config.jobs_per_tick == 3

    def test_loads_dotenv_file(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("ASYNC_WORKER_INACTIVE_MULTIPLIER=30\n")
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.inactive_multiplier == 30
