"""
Worker configuration.

Values are clamped rather than rejected: a bad jobs-per-tick setting falls
back to 1, the same way a bad job weight falls back to a whole unit.
Environment overrides are read after load_dotenv() so a local .env file
can tune a worker without code changes.
"""

import math
import os
from typing import Any, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_JOBS_PER_TICK = 1.0

# Background hosts collapse fallback timers to roughly one per second,
# against ~50 frame callbacks per second in the foreground.
DEFAULT_INACTIVE_MULTIPLIER = 60.0

DEFAULT_FALLBACK_DELAY_MS = 20.0

ENV_PREFIX = "ASYNC_WORKER_"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _to_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def coerce_bool(value: Any) -> bool:
    """Coerce env-style strings and other values to bool."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    return bool(value)


class WorkerConfig(BaseModel):
    """
    Tunables for one worker.

    Assignment is validated, so `config.jobs_per_tick = "abc"` clamps to 1
    instead of storing garbage.
    """

    model_config = ConfigDict(validate_assignment=True)

    jobs_per_tick: float = Field(
        default=DEFAULT_JOBS_PER_TICK,
        description="Weight units executed per tick while the host is foregrounded",
    )
    inactive_multiplier: float = Field(
        default=DEFAULT_INACTIVE_MULTIPLIER,
        description="Budget multiplier while the host is backgrounded",
    )
    work_on_inactive: bool = Field(
        default=True,
        description="Apply inactive_multiplier while the host is backgrounded",
    )
    fallback_delay_ms: float = Field(
        default=DEFAULT_FALLBACK_DELAY_MS,
        description="Delay of the fallback timer when frame callbacks are unavailable",
    )

    @field_validator("jobs_per_tick", "inactive_multiplier", mode="before")
    @classmethod
    def _clamp_at_least_one(cls, value: Any) -> float:
        return max(_to_float(value, 0.0), 1.0)

    @field_validator("fallback_delay_ms", mode="before")
    @classmethod
    def _clamp_delay(cls, value: Any) -> float:
        return max(_to_float(value, DEFAULT_FALLBACK_DELAY_MS), 0.0)

    @field_validator("work_on_inactive", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return coerce_bool(value)


def load_config(env: Optional[dict] = None, dotenv: bool = True) -> WorkerConfig:
    """
    Build a WorkerConfig from environment variables.

    Recognized variables:
        ASYNC_WORKER_JOBS_PER_TICK
        ASYNC_WORKER_INACTIVE_MULTIPLIER
        ASYNC_WORKER_WORK_ON_INACTIVE
        ASYNC_WORKER_FALLBACK_DELAY_MS

    Args:
        env: Mapping to read instead of os.environ
        dotenv: Load a .env file into os.environ first

    Returns:
        WorkerConfig with unset values left at their defaults
    """
    if dotenv and env is None:
        load_dotenv(find_dotenv(usecwd=True))
    source = os.environ if env is None else env

    values = {}
    for field_name in WorkerConfig.model_fields:
        raw = source.get(ENV_PREFIX + field_name.upper())
        if raw is not None:
            values[field_name] = raw

    return WorkerConfig(**values)
