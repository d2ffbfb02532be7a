from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from driftproof.errors import StrategyExhaustion
from driftproof.interaction.resolver import (
    ActionKind,
    ActionOutcome,
    ActionRequest,
    AttemptResult,
    StrategyResolver,
)
from driftproof.interaction.strategies import Strategy
from driftproof.runner.step_tracker import ProgressTracker, StepStatus

from conftest import make_locator, strategy_for


@pytest.mark.asyncio
async def test_empty_strategy_list_fails_without_raising(page):
    outcome = await StrategyResolver(page).resolve(ActionRequest(ActionKind.CLICK))

    assert outcome.success is False
    assert outcome.strategy_name is None
    assert isinstance(outcome.error, StrategyExhaustion)
    assert outcome.attempts == ()


@pytest.mark.asyncio
async def test_scenario_a_skips_strategy_without_matches(page):
    missing = make_locator(count=0)
    present = make_locator(count=1)
    request = ActionRequest(
        ActionKind.CLICK, (strategy_for("A", missing), strategy_for("B", present))
    )

    outcome = await StrategyResolver(page).resolve(request)

    assert outcome.success is True
    assert outcome.strategy_name == "B"
    missing.first.click.assert_not_awaited()
    present.first.click.assert_awaited_once()
    assert [a.result for a in outcome.attempts] == [AttemptResult.NO_MATCH, AttemptResult.ACTED]


@pytest.mark.asyncio
async def test_no_action_after_the_winner(page):
    winner = make_locator()
    later = make_locator()
    resolve_later = MagicMock(return_value=later)
    request = ActionRequest(
        ActionKind.CLICK,
        (strategy_for("first", winner), Strategy("second", resolve_later)),
    )

    outcome = await StrategyResolver(page).resolve(request)

    assert outcome.strategy_name == "first"
    winner.first.click.assert_awaited_once()
    resolve_later.assert_not_called()
    later.first.click.assert_not_awaited()


@pytest.mark.asyncio
async def test_actionability_timeout_moves_to_next_strategy(page):
    hidden = make_locator(wait_error=PlaywrightTimeoutError("Timeout 5000ms exceeded"))
    visible = make_locator()
    request = ActionRequest(
        ActionKind.CLICK, (strategy_for("hidden", hidden), strategy_for("visible", visible))
    )

    outcome = await StrategyResolver(page, actionability_timeout=0.25).resolve(request)

    assert outcome.strategy_name == "visible"
    hidden.first.wait_for.assert_awaited_once_with(state="visible", timeout=250)
    hidden.first.click.assert_not_awaited()
    assert outcome.attempts[0].result is AttemptResult.NOT_ACTIONABLE


@pytest.mark.asyncio
async def test_action_error_is_local_to_the_strategy(page):
    stale = make_locator(action_error=RuntimeError("element is detached"))
    fresh = make_locator()
    request = ActionRequest(
        ActionKind.CLICK, (strategy_for("stale", stale), strategy_for("fresh", fresh))
    )

    outcome = await StrategyResolver(page).resolve(request)

    assert outcome.strategy_name == "fresh"
    assert outcome.attempts[0].result is AttemptResult.ACTION_FAILED
    assert "detached" in outcome.attempts[0].error


@pytest.mark.asyncio
async def test_locator_construction_error_counts_as_no_match(page):
    def broken(_page):
        raise ValueError("bad selector")

    fallback = make_locator()
    request = ActionRequest(
        ActionKind.CLICK, (Strategy("broken", broken), strategy_for("fallback", fallback))
    )

    outcome = await StrategyResolver(page).resolve(request)

    assert outcome.strategy_name == "fallback"
    assert outcome.attempts[0].result is AttemptResult.NO_MATCH


@pytest.mark.asyncio
async def test_exhaustion_reports_every_attempt(page):
    request = ActionRequest(
        ActionKind.CHECK,
        (
            strategy_for("none", make_locator(count=0)),
            strategy_for("broken", make_locator(action_error=RuntimeError("nope"))),
        ),
    )

    outcome = await StrategyResolver(page).resolve(request)

    assert outcome.success is False
    assert outcome.error.strategy_names == ("none", "broken")
    assert len(outcome.attempts) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind, value, method, args",
    [
        (ActionKind.CLICK, None, "click", ()),
        (ActionKind.FILL, "Jane", "fill", ("Jane",)),
        (ActionKind.SELECT, "AR", "select_option", ("AR",)),
        (ActionKind.CHECK, None, "check", ()),
    ],
)
async def test_dispatches_on_action_kind(page, kind, value, method, args):
    locator = make_locator()
    request = ActionRequest(kind, (strategy_for("only", locator),), value=value)

    outcome = await StrategyResolver(page).resolve(request)

    assert outcome.success
    getattr(locator.first, method).assert_awaited_once_with(*args)


def test_kind_accepts_plain_strings():
    assert ActionRequest("click").kind is ActionKind.CLICK


@pytest.mark.parametrize("kind", [ActionKind.FILL, ActionKind.SELECT])
def test_value_required_for_fill_and_select(kind):
    with pytest.raises(ValueError):
        ActionRequest(kind, ())


def test_successful_outcome_requires_strategy_name():
    with pytest.raises(ValueError):
        ActionOutcome(success=True)


@pytest.mark.asyncio
async def test_outcome_feeds_the_tracker(page, catalog):
    tracker = ProgressTracker(catalog)
    resolver = StrategyResolver(page, tracker=tracker)

    await resolver.click([strategy_for("Login button", make_locator())], step_id=2)
    await resolver.click([strategy_for("nothing", make_locator(count=0))], step_id=3)

    login = tracker.get_step(2)
    assert login.status is StepStatus.SUCCESS
    assert login.strategy_used == "Login button"
    submit = tracker.get_step(3)
    assert submit.status is StepStatus.ERROR
    assert "strategies failed" in submit.error_message


@pytest.mark.asyncio
async def test_fill_clears_first_matching_field(page):
    missing = make_locator(count=0)
    field = make_locator()
    strategies = [strategy_for("missing", missing), strategy_for("field", field)]

    outcome = await StrategyResolver(page).fill_form_field(strategies, "20-12345678-9", clear=True)

    assert outcome.strategy_name == "field"
    field.first.clear.assert_awaited_once()
    field.first.fill.assert_awaited_once_with("20-12345678-9")
    missing.first.clear.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_clear_does_not_block_fill(page):
    field = make_locator()
    field.first.clear.side_effect = RuntimeError("readonly")

    outcome = await StrategyResolver(page).fill_form_field(
        [strategy_for("field", field)], "value", clear=True
    )

    assert outcome.success


@pytest.mark.asyncio
async def test_scroll_to_element_never_raises(page):
    locator = MagicMock()
    locator.scroll_into_view_if_needed = AsyncMock(side_effect=RuntimeError("detached"))

    await StrategyResolver(page).scroll_to_element(locator)

    locator.scroll_into_view_if_needed.assert_awaited_once()


@pytest.mark.asyncio
async def test_navigation_wait_degrades_gracefully(page, monkeypatch):
    page.wait_for_load_state = AsyncMock(side_effect=PlaywrightTimeoutError("timeout"))
    monkeypatch.setattr("driftproof.interaction.resolver.NAVIGATION_FALLBACK_DELAY", 0.0)

    await StrategyResolver(page).wait_for_navigation(timeout=2.0)

    states = [c.args[0] for c in page.wait_for_load_state.await_args_list]
    assert states == ["domcontentloaded", "networkidle"]
    assert page.wait_for_load_state.await_args_list[1].kwargs["timeout"] == 1000


@pytest.mark.asyncio
async def test_select_similar_option_clicks_best_match(page):
    options = MagicMock()
    options.all_text_contents = AsyncMock(
        return_value=[" OTRA EMPRESA S.A. ", "EPSA PUBLISHING S.A."]
    )
    option = make_locator()
    page.locator = MagicMock(return_value=options)
    page.get_by_text = MagicMock(return_value=option)

    outcome = await StrategyResolver(page).select_similar_option(
        "EPSA PUBLISHING S A", '[role="option"]'
    )

    assert outcome.success
    page.get_by_text.assert_called_once_with("EPSA PUBLISHING S.A.", exact=True)
    option.first.click.assert_awaited_once()


@pytest.mark.asyncio
async def test_select_similar_option_refuses_weak_matches(page, catalog):
    options = MagicMock()
    options.all_text_contents = AsyncMock(return_value=["Completely different"])
    page.locator = MagicMock(return_value=options)
    page.get_by_text = MagicMock()
    tracker = ProgressTracker(catalog)

    outcome = await StrategyResolver(page, tracker=tracker).select_similar_option(
        "EPSA PUBLISHING S A", "option", step_id=2
    )

    assert outcome.success is False
    page.get_by_text.assert_not_called()
    assert tracker.get_step(2).status is StepStatus.ERROR


@pytest.mark.asyncio
async def test_winning_strategy_is_logged(page, caplog):
    request = ActionRequest(ActionKind.CLICK, (strategy_for("Text: Save", make_locator()),))

    with caplog.at_level("INFO", logger="driftproof.interaction.resolver"):
        await StrategyResolver(page).resolve(request)

    assert "SUCCESS_STRATEGY: Text: Save - click completed" in caplog.text
