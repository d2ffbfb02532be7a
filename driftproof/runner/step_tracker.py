"""Progress tracking over a fixed catalog of declared steps.

The tracker is an explicit object owned by the top-level run and handed to
whoever needs to record progress; there is no module-level instance.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, NamedTuple

from driftproof.errors import ConfigError

logger = logging.getLogger(__name__)


class StepStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    ERROR = "error"


_ALLOWED_TRANSITIONS: dict[StepStatus, frozenset[StepStatus]] = {
    StepStatus.PENDING: frozenset({StepStatus.IN_PROGRESS}),
    StepStatus.IN_PROGRESS: frozenset({StepStatus.SUCCESS, StepStatus.ERROR}),
    StepStatus.SUCCESS: frozenset({StepStatus.IN_PROGRESS}),
    StepStatus.ERROR: frozenset({StepStatus.IN_PROGRESS}),
}

STATUS_ICONS: dict[StepStatus, str] = {
    StepStatus.SUCCESS: "✅",
    StepStatus.ERROR: "❌",
    StepStatus.IN_PROGRESS: "🔄",
    StepStatus.PENDING: "⏳",
}


@dataclass(frozen=True)
class StepDefinition:
    number: int
    name: str
    description: str
    required: bool = True
    retryable: bool = True
    group: str | None = None


@dataclass
class StepRecord:
    number: int
    name: str
    description: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    ended_at: datetime | None = None
    strategy_used: str | None = None
    error_message: str | None = None

    @property
    def elapsed_seconds(self) -> float | None:
        if self.started_at is None or self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds()


class Progress(NamedTuple):
    completed: int
    total: int
    percentage: int


class ProgressTracker:
    """Status of every declared step, mutated in place as the run advances."""

    def __init__(self, catalog: Iterable[StepDefinition]):
        self.catalog: tuple[StepDefinition, ...] = tuple(catalog)
        self._records: dict[int, StepRecord] = {}
        for definition in self.catalog:
            if definition.number in self._records:
                raise ConfigError(f"Duplicate step number in catalog: {definition.number}")
            self._records[definition.number] = self._new_record(definition)

    @staticmethod
    def _new_record(definition: StepDefinition) -> StepRecord:
        return StepRecord(
            number=definition.number,
            name=definition.name,
            description=definition.description,
        )

    @property
    def total(self) -> int:
        return len(self.catalog)

    @property
    def steps(self) -> tuple[StepRecord, ...]:
        return tuple(self._records.values())

    def get_step(self, number: int) -> StepRecord | None:
        return self._records.get(number)

    def steps_in_group(self, group: str) -> list[StepDefinition]:
        return [d for d in self.catalog if d.group == group]

    def required_steps(self) -> list[StepDefinition]:
        return [d for d in self.catalog if d.required]

    def _transition(self, number: int, new_status: StepStatus) -> StepRecord | None:
        record = self._records.get(number)
        if record is None:
            logger.warning(f"Step {number} is not declared in the step catalog")
            return None
        if new_status not in _ALLOWED_TRANSITIONS[record.status]:
            logger.warning(
                f"Ignoring step {number} transition {record.status.value} -> {new_status.value}"
            )
            return None
        record.status = new_status
        return record

    def start_step(self, number: int) -> None:
        record = self._transition(number, StepStatus.IN_PROGRESS)
        if record is None:
            return
        record.started_at = datetime.now()
        record.ended_at = None
        record.strategy_used = None
        record.error_message = None

        logger.info("=" * 60)
        logger.info(f"STEP {number}/{self.total}: {record.description}")
        logger.info("=" * 60)

    def log_success(self, number: int, strategy: str | None = None) -> None:
        record = self._transition(number, StepStatus.SUCCESS)
        if record is None:
            return
        record.ended_at = datetime.now()
        record.strategy_used = strategy

        if strategy:
            logger.info(f'STEP {number} COMPLETED - winning strategy: "{strategy}"')
        else:
            logger.info(f"STEP {number} COMPLETED")

    def log_error(self, number: int, message: str) -> None:
        record = self._transition(number, StepStatus.ERROR)
        if record is None:
            return
        record.ended_at = datetime.now()
        record.error_message = message
        logger.error(f"STEP {number} FAILED: {message}")

    def get_progress(self) -> Progress:
        completed = sum(1 for r in self._records.values() if r.status is StepStatus.SUCCESS)
        total = self.total
        # Half-up rounding (12.5 -> 13), not banker's rounding.
        percentage = math.floor(completed / total * 100 + 0.5) if total else 0
        return Progress(completed=completed, total=total, percentage=percentage)

    def generate_summary(self) -> str:
        progress = self.get_progress()
        lines = [
            "",
            f"🎯 RUN SUMMARY - {progress.completed}/{progress.total} steps ({progress.percentage}%)",
            "=" * 50,
        ]
        for record in self._records.values():
            lines.append(f"{STATUS_ICONS[record.status]} Step {record.number}: {record.description}")
            if record.strategy_used:
                lines.append(f"   └─ Strategy: {record.strategy_used}")
            if record.error_message:
                lines.append(f"   └─ Error: {record.error_message}")
        return "\n".join(lines) + "\n"

    def reset(self) -> None:
        """Put every step back to pending."""
        for definition in self.catalog:
            self._records[definition.number] = self._new_record(definition)
