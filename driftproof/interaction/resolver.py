"""Resolve a logical action against a page through ordered strategies.

Each strategy is tried in declared order and yields one ``AttemptResult``:

  NO_MATCH        the locator matched nothing (or could not be built)
  NOT_ACTIONABLE  something matched but never became visible in time
  ACTION_FAILED   the click/fill/select/check itself raised
  ACTED           the action went through; resolution stops here

Misses are expected on drifting pages, so they are logged at DEBUG and the
resolver moves on. Only exhaustion is reported, as a failed ``ActionOutcome``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from driftproof.errors import StrategyExhaustion
from driftproof.interaction.strategies import Strategy, build_option_text_strategies
from driftproof.matching.similarity import DEFAULT_MIN_SIMILARITY, find_most_similar
from driftproof.runner.step_tracker import ProgressTracker, StepStatus

logger = logging.getLogger(__name__)

DEFAULT_ACTIONABILITY_TIMEOUT = 5.0
DEFAULT_NAVIGATION_TIMEOUT = 30.0
NAVIGATION_FALLBACK_DELAY = 1.0
SCROLL_SETTLE_DELAY = 0.5


class ActionKind(Enum):
    CLICK = "click"
    FILL = "fill"
    SELECT = "select"
    CHECK = "check"


class AttemptResult(Enum):
    NO_MATCH = "no_match"
    NOT_ACTIONABLE = "not_actionable"
    ACTION_FAILED = "action_failed"
    ACTED = "acted"


@dataclass(frozen=True)
class ActionRequest:
    kind: ActionKind
    strategies: tuple[Strategy, ...] = ()
    value: str | None = None
    step_id: int | None = None

    def __post_init__(self):
        if isinstance(self.kind, str):
            object.__setattr__(self, "kind", ActionKind(self.kind))
        object.__setattr__(self, "strategies", tuple(self.strategies))
        if self.kind in (ActionKind.FILL, ActionKind.SELECT) and self.value is None:
            raise ValueError(f"A value is required for the {self.kind.value} action")


@dataclass(frozen=True)
class StrategyAttempt:
    strategy_name: str
    result: AttemptResult
    error: str | None = None


@dataclass(frozen=True)
class ActionOutcome:
    success: bool
    strategy_name: str | None = None
    error: Exception | None = None
    attempts: tuple[StrategyAttempt, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.success and not self.strategy_name:
            raise ValueError("A successful outcome must name its strategy")


class StrategyResolver:
    """Runs action requests against one Playwright page."""

    def __init__(
        self,
        page,
        actionability_timeout: float = DEFAULT_ACTIONABILITY_TIMEOUT,
        tracker: ProgressTracker | None = None,
    ):
        self.page = page
        self.actionability_timeout = actionability_timeout
        self.tracker = tracker

    async def resolve(self, request: ActionRequest) -> ActionOutcome:
        action = request.kind.value
        logger.debug(f"Trying {action} with {len(request.strategies)} strategies")
        self._begin(request)

        attempts: list[StrategyAttempt] = []
        for strategy in request.strategies:
            attempt = await self._attempt(strategy, request)
            attempts.append(attempt)
            if attempt.result is AttemptResult.ACTED:
                logger.info(f"SUCCESS_STRATEGY: {strategy.name} - {action} completed")
                outcome = ActionOutcome(
                    success=True, strategy_name=strategy.name, attempts=tuple(attempts)
                )
                self._record(request, outcome)
                return outcome

        error = StrategyExhaustion(action, [s.name for s in request.strategies])
        logger.error(str(error))
        outcome = ActionOutcome(success=False, error=error, attempts=tuple(attempts))
        self._record(request, outcome)
        return outcome

    async def _attempt(self, strategy: Strategy, request: ActionRequest) -> StrategyAttempt:
        logger.debug(f"Trying strategy: {strategy.name}")

        try:
            locator = strategy.resolve(self.page)
            count = await locator.count()
        except Exception as e:
            logger.debug(f"Strategy {strategy.name}: could not locate ({e})")
            return StrategyAttempt(strategy.name, AttemptResult.NO_MATCH, str(e))
        if count == 0:
            logger.debug(f"Strategy {strategy.name}: element not found")
            return StrategyAttempt(strategy.name, AttemptResult.NO_MATCH)

        target = locator.first
        try:
            await target.wait_for(state="visible", timeout=self.actionability_timeout * 1000)
        except PlaywrightTimeoutError as e:
            logger.debug(
                f"Strategy {strategy.name}: not visible after {self.actionability_timeout:.1f}s"
            )
            return StrategyAttempt(strategy.name, AttemptResult.NOT_ACTIONABLE, str(e))
        except Exception as e:
            logger.debug(f"Strategy {strategy.name}: not actionable ({e})")
            return StrategyAttempt(strategy.name, AttemptResult.NOT_ACTIONABLE, str(e))

        try:
            await self._perform(target, request)
        except Exception as e:
            logger.debug(f"Strategy {strategy.name} failed: {e}")
            return StrategyAttempt(strategy.name, AttemptResult.ACTION_FAILED, str(e))

        return StrategyAttempt(strategy.name, AttemptResult.ACTED)

    async def _perform(self, target, request: ActionRequest) -> None:
        kind = request.kind
        if kind is ActionKind.CLICK:
            await target.click()
        elif kind is ActionKind.FILL:
            await target.fill(request.value)
        elif kind is ActionKind.SELECT:
            await target.select_option(request.value)
        elif kind is ActionKind.CHECK:
            await target.check()
        else:
            raise AssertionError(f"Unhandled action kind: {kind!r}")

    def _begin(self, request: ActionRequest) -> None:
        if self.tracker is None or request.step_id is None:
            return
        record = self.tracker.get_step(request.step_id)
        if record is None or record.status is not StepStatus.IN_PROGRESS:
            # Undeclared steps only produce the tracker's warning.
            self.tracker.start_step(request.step_id)

    def _record(self, request: ActionRequest, outcome: ActionOutcome) -> None:
        if self.tracker is None or request.step_id is None:
            return
        if outcome.success:
            self.tracker.log_success(request.step_id, outcome.strategy_name)
        else:
            self.tracker.log_error(request.step_id, str(outcome.error))

    # ------------------------------------------------------------------
    # Helpers built on resolve()
    # ------------------------------------------------------------------

    async def click(
        self, strategies: Sequence[Strategy], step_id: int | None = None
    ) -> ActionOutcome:
        return await self.resolve(ActionRequest(ActionKind.CLICK, tuple(strategies), step_id=step_id))

    async def wait_for_element_and_click(
        self,
        strategies: Sequence[Strategy],
        delay: float | None = None,
        step_id: int | None = None,
    ) -> ActionOutcome:
        outcome = await self.click(strategies, step_id=step_id)
        if outcome.success and delay:
            await asyncio.sleep(delay)
        return outcome

    async def fill_form_field(
        self,
        strategies: Sequence[Strategy],
        value: str,
        clear: bool = False,
        delay: float | None = None,
        step_id: int | None = None,
    ) -> ActionOutcome:
        """Fill a field, optionally clearing it first.

        The clear step is best effort: it runs on the first strategy that
        matches anything and its failure does not stop the fill.
        """
        if clear:
            await self._clear_first_match(strategies)

        outcome = await self.resolve(
            ActionRequest(ActionKind.FILL, tuple(strategies), value=value, step_id=step_id)
        )
        if outcome.success and delay:
            await asyncio.sleep(delay)
        return outcome

    async def _clear_first_match(self, strategies: Sequence[Strategy]) -> None:
        for strategy in strategies:
            try:
                locator = strategy.resolve(self.page)
                if await locator.count() > 0:
                    await locator.first.clear()
                    return
            except Exception as e:
                logger.debug(f"Clear via {strategy.name} failed: {e}")

    async def scroll_to_element(self, locator) -> None:
        try:
            await locator.scroll_into_view_if_needed()
            await asyncio.sleep(SCROLL_SETTLE_DELAY)
        except Exception as e:
            logger.warning(f"Could not scroll to element: {e}")

    async def wait_for_navigation(self, timeout: float = DEFAULT_NAVIGATION_TIMEOUT) -> None:
        """Wait for the page to settle after a navigation.

        DOM ready with the full budget, then network idle with half of it,
        then a fixed delay if the network never went idle. Never raises.
        """
        try:
            await self.page.wait_for_load_state("domcontentloaded", timeout=timeout * 1000)
        except Exception as e:
            logger.warning(f"DOM not ready after {timeout:.1f}s, continuing: {e}")

        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout * 500)
        except Exception as e:
            logger.warning(
                f"Network not idle after {timeout / 2:.1f}s, "
                f"waiting {NAVIGATION_FALLBACK_DELAY:.1f}s instead: {e}"
            )
            await asyncio.sleep(NAVIGATION_FALLBACK_DELAY)

    async def select_similar_option(
        self,
        target: str,
        option_query: str,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        step_id: int | None = None,
    ) -> ActionOutcome:
        """Click the on-screen option whose text best matches *target*.

        Options are read from every element matching *option_query*. When
        no option is close enough the request fails without clicking.
        """
        try:
            texts = await self.page.locator(option_query).all_text_contents()
        except Exception as e:
            logger.warning(f"Could not read options from {option_query}: {e}")
            texts = []
        candidates = [t.strip() for t in texts]

        match = find_most_similar(target, candidates, min_similarity)
        if match is None:
            logger.warning(
                f"No option similar enough to {target!r} among {len(candidates)} candidates"
            )
            for text in candidates:
                logger.info(f"  available option: {text!r}")
            request = ActionRequest(ActionKind.CLICK, (), step_id=step_id)
            error = StrategyExhaustion(f"select similar to {target!r}", [])
            self._begin(request)
            outcome = ActionOutcome(success=False, error=error)
            self._record(request, outcome)
            return outcome

        logger.info(
            f"Approximate match ({match.similarity * 100:.1f}%) for {target!r}: {match.text!r}"
        )
        return await self.click(build_option_text_strategies(match.text), step_id=step_id)
