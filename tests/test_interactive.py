import time
from unittest.mock import AsyncMock

import pytest

from driftproof.runner.interactive import InteractiveFallbackController, log_recorded_action


class Failing:
    def __init__(self, failures: int, result="done"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return self.result


@pytest.mark.asyncio
async def test_returns_on_first_success():
    controller = InteractiveFallbackController(interactive=True, delay_unit=0.001)
    op = Failing(0)
    assert await controller.execute_with_interactive_support("login", op) == "done"
    assert op.calls == 1


@pytest.mark.asyncio
async def test_retries_before_succeeding():
    controller = InteractiveFallbackController(interactive=False, delay_unit=0.001)
    op = Failing(2)
    assert await controller.execute_with_interactive_support("login", op, retries=3) == "done"
    assert op.calls == 3


@pytest.mark.asyncio
async def test_linear_delays():
    times = []

    async def op():
        times.append(time.monotonic())
        raise RuntimeError("still broken")

    controller = InteractiveFallbackController(interactive=False, delay_unit=0.01)
    with pytest.raises(RuntimeError):
        await controller.execute_with_interactive_support("login", op, retries=3)

    gaps = [b - a for a, b in zip(times, times[1:])]
    assert gaps[0] >= 0.01 - 0.002
    assert gaps[1] >= 0.02 - 0.002


@pytest.mark.asyncio
async def test_unattended_run_rethrows_without_pausing():
    pauser = AsyncMock()
    snapshotter = AsyncMock()
    controller = InteractiveFallbackController(
        interactive=False, snapshotter=snapshotter, pauser=pauser, delay_unit=0.001
    )
    op = Failing(10)

    with pytest.raises(RuntimeError, match="failure 3"):
        await controller.execute_with_interactive_support("login", op, retries=3)

    assert op.calls == 3
    pauser.assert_not_awaited()
    snapshotter.assert_not_awaited()


@pytest.mark.asyncio
async def test_attended_run_pauses_then_retries_once():
    pauser = AsyncMock()
    snapshotter = AsyncMock(return_value="output/screenshots/debug/x.png")
    controller = InteractiveFallbackController(
        interactive=True, snapshotter=snapshotter, pauser=pauser, delay_unit=0.001
    )
    op = Failing(3, result="fixed by hand")

    result = await controller.execute_with_interactive_support("select account", op, retries=3)

    assert result == "fixed by hand"
    assert op.calls == 4
    pauser.assert_awaited_once()
    snapshotter.assert_awaited_once_with("interactive_mode_select_account")


@pytest.mark.asyncio
async def test_failure_after_intervention_is_rethrown(caplog):
    controller = InteractiveFallbackController(
        interactive=True, pauser=AsyncMock(), delay_unit=0.001
    )
    op = Failing(10)

    with pytest.raises(RuntimeError, match="failure 4"):
        await controller.execute_with_interactive_support("submit", op, retries=3)

    assert op.calls == 4
    assert any(r.levelname == "CRITICAL" for r in caplog.records)


@pytest.mark.asyncio
async def test_snapshot_failure_does_not_block_the_pause():
    pauser = AsyncMock()
    controller = InteractiveFallbackController(
        interactive=True, snapshotter=AsyncMock(side_effect=OSError("disk full")), pauser=pauser
    )

    assert await controller.enter_interactive_mode("task", RuntimeError("x")) is True
    pauser.assert_awaited_once()


@pytest.mark.asyncio
async def test_for_page_uses_inspector_pause(page):
    snapshots = AsyncMock()
    snapshots.screenshot = AsyncMock(return_value="shot.png")
    controller = InteractiveFallbackController.for_page(page, True, snapshots=snapshots)

    await controller.enter_interactive_mode("login", RuntimeError("x"))

    page.pause.assert_awaited_once()
    snapshots.screenshot.assert_awaited_once_with(page, "interactive_mode_login", kind="debug")


@pytest.mark.asyncio
async def test_enter_interactive_mode_disabled():
    controller = InteractiveFallbackController(interactive=False, pauser=AsyncMock())
    assert await controller.enter_interactive_mode("task", RuntimeError("x")) is False


@pytest.mark.asyncio
async def test_zero_retries_rejected():
    controller = InteractiveFallbackController(interactive=False)
    with pytest.raises(ValueError):
        await controller.execute_with_interactive_support("t", Failing(0), retries=0)


def test_log_recorded_action(caplog):
    with caplog.at_level("INFO"):
        log_recorded_action("click", "#save")
    assert "#save" in caplog.text
