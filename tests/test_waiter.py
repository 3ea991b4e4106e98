"""Tests for waiting on service convergence."""

from unittest.mock import MagicMock

import pytest

from ecs_task_deploy.core.errors import RemoteCallError
from ecs_task_deploy.core.waiter import wait_for_convergence
from tests.consts import CLUSTER, NEW_ARN, ORIGINAL_ARN, SERVICE, running_task


@pytest.mark.asyncio
async def test_returns_matching_task(client: MagicMock) -> None:
    """A task running the expected definition ends the wait."""
    result = await wait_for_convergence(client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=5)

    assert result.converged
    assert result.task == running_task(NEW_ARN)
    client.list_tasks.assert_called_once_with(CLUSTER, SERVICE, desired_status="RUNNING")
    client.describe_tasks.assert_called_once_with(CLUSTER, ["task-1"])


@pytest.mark.asyncio
async def test_picks_task_running_expected_definition(client: MagicMock) -> None:
    """Tasks of other definitions are ignored."""
    client.list_tasks.return_value = ["task-1", "task-2"]
    client.describe_tasks.return_value = [
        running_task(ORIGINAL_ARN, "task-1"),
        running_task(NEW_ARN, "task-2"),
    ]

    result = await wait_for_convergence(client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=5)

    assert result.task is not None
    assert result.task["taskArn"] == "task-2"


@pytest.mark.asyncio
async def test_keeps_polling_until_task_appears(client: MagicMock) -> None:
    """Empty listings and old tasks are retried until the new task runs."""
    client.list_tasks.side_effect = [[], ["task-1"], ["task-1", "task-2"]]
    client.describe_tasks.side_effect = [
        [running_task(ORIGINAL_ARN, "task-1")],
        [running_task(ORIGINAL_ARN, "task-1"), running_task(NEW_ARN, "task-2")],
    ]

    result = await wait_for_convergence(
        client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=30, poll_interval_seconds=0
    )

    assert result.converged
    assert client.list_tasks.call_count == 3
    assert client.describe_tasks.call_count == 2


@pytest.mark.asyncio
async def test_zero_timeout_checks_once(client: MagicMock) -> None:
    """A zero timeout performs exactly one check before timing out."""
    client.describe_tasks.return_value = [running_task(ORIGINAL_ARN)]

    result = await wait_for_convergence(client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=0)

    assert result.timed_out
    assert not result.converged
    assert result.error is None
    assert client.list_tasks.call_count == 1


@pytest.mark.asyncio
async def test_times_out_when_no_tasks_run(client: MagicMock) -> None:
    """An empty service times out."""
    client.list_tasks.return_value = []

    result = await wait_for_convergence(client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=0)

    assert result.timed_out
    client.describe_tasks.assert_not_called()


@pytest.mark.asyncio
async def test_sleeps_between_checks(client: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
    """The wait yields with asyncio.sleep between checks."""
    client.list_tasks.side_effect = [[], ["task-1"]]
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr("ecs_task_deploy.core.waiter.asyncio.sleep", fake_sleep)

    result = await wait_for_convergence(
        client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=30, poll_interval_seconds=2.5
    )

    assert result.converged
    assert delays == [2.5]


@pytest.mark.asyncio
async def test_api_error_ends_wait(client: MagicMock) -> None:
    """A failed call is returned as the outcome instead of being retried."""
    error = RemoteCallError("describe tasks", "throttled")
    client.describe_tasks.side_effect = error

    result = await wait_for_convergence(client, CLUSTER, SERVICE, NEW_ARN, timeout_seconds=30)

    assert result.error is error
    assert not result.timed_out
    assert not result.converged
    assert client.list_tasks.call_count == 1
