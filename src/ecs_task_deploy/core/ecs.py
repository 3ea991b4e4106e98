"""ECS API calls used by the deployment."""

import logging
from typing import Any, cast

from botocore.exceptions import BotoCoreError, ClientError

from ecs_task_deploy.core.errors import RemoteCallError

logger = logging.getLogger(__name__)

DESCRIBE_TASKS_BATCH_SIZE = 100


class EcsClient:
    """Thin wrapper over a boto3 ECS client.

    Every botocore failure is re-raised as ``RemoteCallError`` so callers only
    deal with one kind of remote error.
    """

    def __init__(self, ecs: Any) -> None:
        """Initialise with a boto3 ECS client."""
        self._ecs = ecs

    def find_service(self, cluster: str, service: str) -> dict[str, Any] | None:
        """Return the service with exactly this name, or None."""
        response = self._call(
            f"describe service '{service}' in cluster '{cluster}'",
            "describe_services",
            cluster=cluster,
            services=[service],
        )
        for item in response.get("services", []):
            if item.get("serviceName") == service:
                return cast(dict[str, Any], item)
        return None

    def get_task_definition(self, task_definition: str) -> dict[str, Any]:
        """Describe a task definition by ARN or family:revision."""
        response = self._call(
            f"describe task definition '{task_definition}'",
            "describe_task_definition",
            taskDefinition=task_definition,
        )
        return cast(dict[str, Any], response["taskDefinition"])

    def register_task_definition(self, draft: dict[str, Any]) -> dict[str, Any]:
        """Register a task definition and return it with its new ARN."""
        response = self._call(
            f"register task definition for family '{draft.get('family')}'",
            "register_task_definition",
            **draft,
        )
        return cast(dict[str, Any], response["taskDefinition"])

    def update_service(
        self,
        cluster: str,
        service: str,
        task_definition_arn: str,
        desired_count: int | None = None,
        min_healthy_percent: int | None = None,
        max_percent: int | None = None,
    ) -> dict[str, Any]:
        """Point a service at a task definition.

        Counts and percentages left as None are not sent, so the service keeps
        its current values.
        """
        request = service_update_request(
            cluster,
            service,
            task_definition_arn,
            desired_count=desired_count,
            min_healthy_percent=min_healthy_percent,
            max_percent=max_percent,
        )
        response = self._call(f"update service '{service}'", "update_service", **request)
        return cast(dict[str, Any], response["service"])

    def list_tasks(
        self,
        cluster: str,
        service: str,
        desired_status: str | None = None,
    ) -> list[str]:
        """Return the task ARNs of a service."""
        request: dict[str, Any] = {"cluster": cluster, "serviceName": service}
        if desired_status:
            request["desiredStatus"] = desired_status

        task_arns: list[str] = []
        while True:
            response = self._call(
                f"list tasks under service '{service}' in cluster '{cluster}'",
                "list_tasks",
                **request,
            )
            task_arns.extend(response.get("taskArns", []))
            next_token = response.get("nextToken")
            if not next_token:
                return task_arns
            request["nextToken"] = next_token

    def describe_tasks(self, cluster: str, task_arns: list[str]) -> list[dict[str, Any]]:
        """Return task details, batching requests to the API limit."""
        tasks: list[dict[str, Any]] = []
        for start in range(0, len(task_arns), DESCRIBE_TASKS_BATCH_SIZE):
            batch = task_arns[start : start + DESCRIBE_TASKS_BATCH_SIZE]
            response = self._call(
                f"describe tasks in cluster '{cluster}'",
                "describe_tasks",
                cluster=cluster,
                tasks=batch,
            )
            tasks.extend(response.get("tasks", []))
        return tasks

    def stop_task(self, cluster: str, task_arn: str, reason: str) -> dict[str, Any]:
        """Stop a running task."""
        response = self._call(
            f"stop task '{task_arn}'",
            "stop_task",
            cluster=cluster,
            task=task_arn,
            reason=reason,
        )
        return cast(dict[str, Any], response.get("task", {}))

    def _call(self, operation: str, method: str, **kwargs: Any) -> dict[str, Any]:
        logger.debug(f"ECS {method}: {kwargs}")
        try:
            return cast(dict[str, Any], getattr(self._ecs, method)(**kwargs))
        except (ClientError, BotoCoreError) as exc:
            raise RemoteCallError(operation, exc) from exc


def service_update_request(
    cluster: str,
    service: str,
    task_definition_arn: str,
    desired_count: int | None = None,
    min_healthy_percent: int | None = None,
    max_percent: int | None = None,
) -> dict[str, Any]:
    """Build ``update_service`` keyword arguments."""
    request: dict[str, Any] = {
        "cluster": cluster,
        "service": service,
        "taskDefinition": task_definition_arn,
    }
    if desired_count is not None:
        request["desiredCount"] = desired_count

    deployment_configuration: dict[str, int] = {}
    if min_healthy_percent is not None:
        deployment_configuration["minimumHealthyPercent"] = min_healthy_percent
    if max_percent is not None:
        deployment_configuration["maximumPercent"] = max_percent
    if deployment_configuration:
        request["deploymentConfiguration"] = deployment_configuration
    return request
