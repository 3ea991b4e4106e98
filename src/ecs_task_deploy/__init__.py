"""ecs-task-deploy - deploy an image to an ECS service with automatic rollback."""

from ecs_task_deploy.core import (
    DeploymentContext,
    DeploySettings,
    EcsClient,
    create_client,
    deploy,
    get_settings,
)

__all__ = [
    "DeploymentContext",
    "DeploySettings",
    "EcsClient",
    "create_client",
    "deploy",
    "get_settings",
]
