"""Exception types shared across the engine."""

from __future__ import annotations


class DriftproofError(Exception):
    """Base class for engine errors."""


class StrategyExhaustion(DriftproofError):
    """Every strategy of one action request failed.

    Carried inside a failed ``ActionOutcome``; the resolver never raises it.
    """

    def __init__(self, action: str, strategy_names: list[str] | tuple[str, ...]):
        self.action = action
        self.strategy_names = tuple(strategy_names)
        if self.strategy_names:
            msg = f"All {len(self.strategy_names)} strategies failed for action '{action}'"
        else:
            msg = f"No strategies supplied for action '{action}'"
        super().__init__(msg)


class ConfigError(DriftproofError):
    """Invalid step catalog or retry policy."""
