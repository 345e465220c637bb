"""
Pytest configuration and shared fixtures.
"""

import logging
import os

import pytest

from async_worker.config import ENV_PREFIX


@pytest.fixture(autouse=True, scope="function")
def isolate_worker_env():
    """
    Strip ASYNC_WORKER_* variables before each test.

    Tests that exercise environment loading set their own values; the
    originals are restored afterwards.
    """
    original = {key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIX)}
    for key in original:
        del os.environ[key]

    yield

    for key in [key for key in os.environ if key.startswith(ENV_PREFIX)]:
        del os.environ[key]
    os.environ.update(original)


@pytest.fixture(autouse=True, scope="function")
def reset_package_logger():
    """Leave the package logger as the tests found it."""
    logger = logging.getLogger("async_worker")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate

    yield

    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
