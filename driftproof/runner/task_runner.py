"""Bounded retries with optional exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from driftproof.errors import ConfigError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to run an operation and how long to wait in between.

    ``max_attempts`` counts every call, the first one included.
    ``base_delay`` is in seconds.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff_enabled: bool = True

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ConfigError(f"base_delay must be >= 0, got {self.base_delay}")

    def delay_for(self, failure_index: int) -> float:
        """Seconds to wait after the failure with 0-based index *failure_index*."""
        if self.backoff_enabled:
            return self.base_delay * (2 ** failure_index)
        return self.base_delay

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> RetryPolicy:
        """Build a policy from a config mapping.

        ``retries`` counts retries after the first call, so it maps to
        ``retries + 1`` attempts. ``delay``/``baseDelay`` are milliseconds;
        ``base_delay`` is seconds.
        """
        kwargs: dict[str, Any] = {}

        if "max_attempts" in config:
            kwargs["max_attempts"] = int(config["max_attempts"])
        elif "maxAttempts" in config:
            kwargs["max_attempts"] = int(config["maxAttempts"])
        elif "retries" in config:
            kwargs["max_attempts"] = int(config["retries"]) + 1

        if "base_delay" in config:
            kwargs["base_delay"] = float(config["base_delay"])
        elif "baseDelay" in config:
            kwargs["base_delay"] = float(config["baseDelay"]) / 1000
        elif "delay" in config:
            kwargs["base_delay"] = float(config["delay"]) / 1000

        for key in ("backoff_enabled", "backoffEnabled", "backoff"):
            if key in config:
                kwargs["backoff_enabled"] = bool(config[key])
                break

        return cls(**kwargs)


# 1 initial call + 3 retries, 2s doubling.
CRITICAL_TASK_POLICY = RetryPolicy(max_attempts=4, base_delay=2.0, backoff_enabled=True)


async def execute_with_retries(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
) -> T:
    """Run *operation* until it succeeds or the policy is exhausted.

    The last exception is re-raised as-is once every attempt has failed.
    """
    last_error: BaseException | None = None

    for attempt in range(policy.max_attempts):
        try:
            logger.info(f"Running task - attempt {attempt + 1}/{policy.max_attempts}")
            result = await operation()
            if attempt > 0:
                logger.info(f"Task succeeded after {attempt + 1} attempts")
            return result
        except Exception as e:
            last_error = e
            if attempt == policy.max_attempts - 1:
                logger.error(f"Task failed after {policy.max_attempts} attempts: {e}")
                break

            wait = policy.delay_for(attempt)
            logger.warning(f"Attempt {attempt + 1} failed. Retrying in {wait:.2f}s...")
            logger.debug(f"Error on attempt {attempt + 1}", exc_info=e)
            await asyncio.sleep(wait)

    raise last_error


async def run_critical_task(
    task_name: str,
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = CRITICAL_TASK_POLICY,
) -> T:
    logger.info(f"Starting critical task: {task_name}")
    try:
        result = await execute_with_retries(operation, policy)
    except Exception as e:
        logger.error(f"Critical task failed: {task_name} ({e})")
        raise
    logger.info(f"Critical task completed: {task_name}")
    return result
