"""Deploy an image to an ECS service, rolling back when it does not start."""

import logging

from ecs_task_deploy.core.ecs import EcsClient
from ecs_task_deploy.core.errors import (
    ConvergenceError,
    ConvergenceTimeoutError,
    DeploymentError,
    RemoteCallError,
    RollbackFailedError,
    ServiceNotFoundError,
)
from ecs_task_deploy.core.images import ImageReference, parse_image
from ecs_task_deploy.core.models import ConvergenceResult, DeploymentContext, task_definition_arn
from ecs_task_deploy.core.settings import DeploySettings
from ecs_task_deploy.core.task_definitions import build_task_definition
from ecs_task_deploy.core.waiter import DEFAULT_POLL_INTERVAL_SECONDS, wait_for_convergence

logger = logging.getLogger(__name__)

KILL_TASK_REASON = "Making room for blue/green deployment"


async def deploy(
    client: EcsClient,
    settings: DeploySettings,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> DeploymentContext:
    """Deploy the configured image and verify that the service runs it.

    Failures before the service is updated are raised. Once the service has been
    pointed at the new task definition, failures are collected in the returned
    context's ``errors`` and the previous task definition is restored.

    Args:
        client: ECS API client.
        settings: Deployment settings.
        poll_interval_seconds: Pause between convergence checks.

    Returns:
        The deployment context. ``succeeded`` is true when the new task
        definition is running.

    Raises:
        ServiceNotFoundError: The service does not exist in the cluster.
        NoMatchingContainerError: No container runs the image's repository.
        RemoteCallError: A call failed before the service was updated.
    """
    image = parse_image(settings.task_image)
    ctx = DeploymentContext()

    get_service(client, ctx, settings)
    get_active_task_definition(client, ctx)
    add_new_task_definition(client, ctx, image, settings)

    update_service(client, ctx, settings)
    await roll_out(client, ctx, settings, poll_interval_seconds)

    if ctx.errors:
        await roll_back(client, ctx, settings, poll_interval_seconds)
    return ctx


def get_service(client: EcsClient, ctx: DeploymentContext, settings: DeploySettings) -> None:
    """Find the service being deployed."""
    cluster, service_name = _target(settings)
    service = client.find_service(cluster, service_name)
    if service is None:
        raise ServiceNotFoundError(cluster, service_name)
    ctx.service = service


def get_active_task_definition(client: EcsClient, ctx: DeploymentContext) -> None:
    """Fetch the task definition the service is currently running."""
    if ctx.service is None:
        raise DeploymentError("The service must be found before reading its task definition.")
    logger.debug(f"Getting active task definition '{ctx.service.get('taskDefinition')}'")
    ctx.original_task_def = client.get_task_definition(str(ctx.service["taskDefinition"]))


def add_new_task_definition(
    client: EcsClient,
    ctx: DeploymentContext,
    image: ImageReference,
    settings: DeploySettings,
) -> None:
    """Register a copy of the active task definition that runs ``image``."""
    if ctx.original_task_def is None:
        raise DeploymentError(
            "The active task definition must be fetched before registering a new one."
        )
    draft = build_task_definition(ctx.original_task_def, image, settings.environment)
    logger.info(f"Registering new task definition with image '{image.raw}'")
    registered = client.register_task_definition(draft)
    logger.info(f"Registered task definition '{task_definition_arn(registered)}'")
    ctx.new_task_def = registered
    ctx.target_task_def = registered


def update_service(client: EcsClient, ctx: DeploymentContext, settings: DeploySettings) -> None:
    """Point the service at the target task definition."""
    cluster, service_name = _target(settings)
    arn = task_definition_arn(ctx.target_task_def)
    logger.info(f"Updating service '{service_name}' with task definition '{arn}'")
    ctx.updated_service = client.update_service(
        cluster,
        service_name,
        arn,
        desired_count=settings.desired_count,
        min_healthy_percent=settings.min_healthy_percent,
        max_percent=settings.max_percent,
    )


async def roll_out(
    client: EcsClient,
    ctx: DeploymentContext,
    settings: DeploySettings,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> ConvergenceResult:
    """Make room for the target task definition and wait for it to run.

    A forward deployment records a failed wait in ``ctx.errors``. During a
    rollback the outcome is judged by ``check_rollback_outcome`` instead.
    """
    if settings.kill_task:
        stop_running_task(client, settings)

    cluster, service_name = _target(settings)
    arn = task_definition_arn(ctx.target_task_def)
    result = await wait_for_convergence(
        client,
        cluster,
        service_name,
        arn,
        timeout_seconds=settings.timeout,
        poll_interval_seconds=poll_interval_seconds,
    )
    if result.converged:
        ctx.new_task = result.task
    elif not ctx.rollback:
        ctx.errors.append(_convergence_error(arn, settings, result))
    return result


def stop_running_task(client: EcsClient, settings: DeploySettings) -> None:
    """Stop one running task of the service. Failures are only logged."""
    cluster, service_name = _target(settings)
    logger.debug("Searching for running task to stop")
    try:
        task_arns = client.list_tasks(cluster, service_name)
    except RemoteCallError as exc:
        logger.warning(
            f"Failed to list tasks under service '{service_name}' in cluster '{cluster}': {exc}"
        )
        return

    if not task_arns:
        logger.info("Failed to find a running task to stop")
        return

    task_arn = task_arns[0]
    logger.info(f"Stopping task '{task_arn}'")
    try:
        client.stop_task(cluster, task_arn, KILL_TASK_REASON)
    except RemoteCallError as exc:
        logger.warning(f"Failed to stop task '{task_arn}': {exc}")
        return
    logger.debug(f"Task '{task_arn}' stopped")


async def roll_back(
    client: EcsClient,
    ctx: DeploymentContext,
    settings: DeploySettings,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
) -> None:
    """Return the service to its original task definition and verify it."""
    logger.warning(
        "Service update failed using new task definition, "
        "rolling back to previous task definition"
    )
    ctx.rollback = True
    ctx.target_task_def = ctx.original_task_def
    ctx.new_task = None

    try:
        update_service(client, ctx, settings)
    except RemoteCallError as exc:
        error = RollbackFailedError(task_definition_arn(ctx.original_task_def), str(exc))
        error.__cause__ = exc
        logger.error(str(error))
        ctx.errors.append(error)
        return

    result = await roll_out(client, ctx, settings, poll_interval_seconds)
    check_rollback_outcome(ctx, result)


def check_rollback_outcome(
    ctx: DeploymentContext,
    result: ConvergenceResult | None = None,
) -> None:
    """Record a rollback failure unless the original task definition is running."""
    if not ctx.rollback:
        return

    original_arn = task_definition_arn(ctx.original_task_def)
    if ctx.rolled_back:
        logger.info(f"Rollback to task definition '{original_arn}' successful")
        return

    reason = None
    if result is not None and result.error is not None:
        reason = str(result.error)
    elif result is not None and result.timed_out:
        reason = "timed out waiting for the service to run it"
    logger.error(f"Rollback to task definition '{original_arn}' failed")
    error = RollbackFailedError(original_arn, reason)
    if result is not None and result.error is not None:
        error.__cause__ = result.error
    ctx.errors.append(error)


def _convergence_error(
    arn: str,
    settings: DeploySettings,
    result: ConvergenceResult,
) -> ConvergenceError:
    if result.error is not None:
        error = ConvergenceError(f"Failed waiting for task definition '{arn}': {result.error}")
        error.__cause__ = result.error
        return error
    return ConvergenceTimeoutError(arn, settings.timeout)


def _target(settings: DeploySettings) -> tuple[str, str]:
    return str(settings.cluster), str(settings.service_name)
