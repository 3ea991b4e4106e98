"""Wait for a service to run a task definition."""

import asyncio
import logging
import time
from typing import Any

from ecs_task_deploy.core.ecs import EcsClient
from ecs_task_deploy.core.errors import RemoteCallError
from ecs_task_deploy.core.models import ConvergenceResult, task_definition_arn

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 1.0


async def wait_for_convergence(
    client: EcsClient,
    cluster: str,
    service: str,
    expected_task_definition_arn: str,
    timeout_seconds: float,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> ConvergenceResult:
    """Poll running tasks until one runs the expected task definition.

    The running tasks are checked at least once, so a timeout of zero performs
    a single check. A failed API call ends the wait with that error.

    Args:
        client: ECS API client.
        cluster: Cluster name or ARN.
        service: Service name.
        expected_task_definition_arn: Task definition the service should run.
        timeout_seconds: How long to keep polling.
        poll_interval_seconds: Pause between checks.

    Returns:
        The matching task, a timeout, or the error that ended the wait.
    """
    deadline = time.monotonic() + timeout_seconds

    while True:
        remaining = deadline - time.monotonic()
        logger.debug(f"Waiting for service update, {max(round(remaining), 0)}s remaining...")

        try:
            task = _find_running_task(client, cluster, service, expected_task_definition_arn)
        except RemoteCallError as exc:
            logger.error(f"Stopped waiting for service '{service}': {exc}")
            return ConvergenceResult(error=exc)

        if task is not None:
            logger.info(f"Task '{task.get('taskArn')}' is running '{expected_task_definition_arn}'")
            return ConvergenceResult(task=task)

        if time.monotonic() >= deadline:
            logger.warning(
                f"Timed out after {timeout_seconds:g}s waiting for '{expected_task_definition_arn}'"
            )
            return ConvergenceResult(timed_out=True)

        await asyncio.sleep(poll_interval_seconds)


def _find_running_task(
    client: EcsClient,
    cluster: str,
    service: str,
    expected_task_definition_arn: str,
) -> dict[str, Any] | None:
    task_arns = client.list_tasks(cluster, service, desired_status="RUNNING")
    if not task_arns:
        return None

    for task in client.describe_tasks(cluster, task_arns):
        if task_definition_arn(task) == expected_task_definition_arn:
            return task
    return None
