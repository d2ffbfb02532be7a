"""Remember which selector worked for a logical target.

Generated ids drift between sessions, but within a session (or across runs,
if the caller persists ``learned``) the selector that last worked is the best
first guess. ``SelectorMemory`` puts it ahead of the pattern strategies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from driftproof.interaction.strategies import Strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorPattern:
    name: str
    patterns: tuple[str, ...] = ()
    attributes: tuple[str, ...] = ()
    text_matches: tuple[str, ...] = ()


@dataclass
class SelectorMemory:
    learned: dict[str, str] = field(default_factory=dict)

    def record_success(self, key: str, selector: str) -> None:
        self.learned[key] = selector
        logger.debug(f"Learned selector for {key}: {selector}")

    def get(self, key: str) -> str | None:
        return self.learned.get(key)

    def forget(self, key: str) -> None:
        self.learned.pop(key, None)

    def strategies_for(self, pattern: SelectorPattern) -> list[Strategy]:
        strategies: list[Strategy] = []

        cached = self.get(pattern.name)
        if cached:
            strategies.append(Strategy(f"Cached: {pattern.name}", lambda page: page.locator(cached)))

        for i, selector in enumerate(pattern.patterns, start=1):
            strategies.append(Strategy(
                f"Pattern {i}: {selector}", lambda page, s=selector: page.locator(s)
            ))

        for attr in pattern.attributes:
            strategies.append(Strategy(
                f"Attribute: {attr}", lambda page, a=attr: page.locator(f"[{a}]")
            ))

        for text in pattern.text_matches:
            strategies.append(Strategy(
                f"Text match: {text}", lambda page, t=text: page.locator(f'text="{t}"')
            ))
            strategies.append(Strategy(
                f"Text contains: {text}", lambda page, t=text: page.locator(f'*:has-text("{t}")')
            ))

        return strategies

    def selector_for_strategy(self, pattern: SelectorPattern, strategy_name: str) -> str | None:
        """Map a winning strategy name back to the raw selector it used."""
        if strategy_name == f"Cached: {pattern.name}":
            return self.get(pattern.name)
        for i, selector in enumerate(pattern.patterns, start=1):
            if strategy_name == f"Pattern {i}: {selector}":
                return selector
        for attr in pattern.attributes:
            if strategy_name == f"Attribute: {attr}":
                return f"[{attr}]"
        for text in pattern.text_matches:
            if strategy_name == f"Text match: {text}":
                return f'text="{text}"'
            if strategy_name == f"Text contains: {text}":
                return f'*:has-text("{text}")'
        return None

    def learn_from(self, pattern: SelectorPattern, strategy_name: str | None) -> bool:
        """Record the selector behind a successful outcome's strategy."""
        if not strategy_name:
            return False
        selector = self.selector_for_strategy(pattern, strategy_name)
        if selector is None:
            return False
        self.record_success(pattern.name, selector)
        return True
