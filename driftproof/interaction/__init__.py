"""Strategy-based action resolution against drifting pages."""

from __future__ import annotations

from driftproof.interaction.resolver import (
    ActionKind,
    ActionOutcome,
    ActionRequest,
    AttemptResult,
    StrategyAttempt,
    StrategyResolver,
)
from driftproof.interaction.selector_memory import SelectorMemory, SelectorPattern
from driftproof.interaction.strategies import (
    Strategy,
    build_button_strategies,
    build_dynamic_id_strategy,
    build_form_field_strategies,
    build_option_text_strategies,
    build_strategies,
)

__all__ = [
    "ActionKind",
    "ActionOutcome",
    "ActionRequest",
    "AttemptResult",
    "SelectorMemory",
    "SelectorPattern",
    "Strategy",
    "StrategyAttempt",
    "StrategyResolver",
    "build_button_strategies",
    "build_dynamic_id_strategy",
    "build_form_field_strategies",
    "build_option_text_strategies",
    "build_strategies",
]
