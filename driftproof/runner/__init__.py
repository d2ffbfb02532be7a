"""Retry, progress tracking and interactive fallback for automation runs."""

from __future__ import annotations

from driftproof.runner.interactive import InteractiveFallbackController, log_recorded_action
from driftproof.runner.step_tracker import (
    Progress,
    ProgressTracker,
    StepDefinition,
    StepRecord,
    StepStatus,
)
from driftproof.runner.task_runner import (
    CRITICAL_TASK_POLICY,
    RetryPolicy,
    execute_with_retries,
    run_critical_task,
)

__all__ = [
    "CRITICAL_TASK_POLICY",
    "InteractiveFallbackController",
    "Progress",
    "ProgressTracker",
    "RetryPolicy",
    "StepDefinition",
    "StepRecord",
    "StepStatus",
    "execute_with_retries",
    "log_recorded_action",
    "run_critical_task",
]
