"""Task definition deployment core."""

from ecs_task_deploy.core.deploy import deploy
from ecs_task_deploy.core.ecs import EcsClient
from ecs_task_deploy.core.errors import (
    ConfigurationError,
    ConvergenceError,
    ConvergenceTimeoutError,
    DeploymentError,
    NoMatchingContainerError,
    RemoteCallError,
    RollbackFailedError,
    ServiceNotFoundError,
)
from ecs_task_deploy.core.images import ImageReference, parse_image
from ecs_task_deploy.core.models import ConvergenceResult, DeploymentContext, EnvOverride
from ecs_task_deploy.core.session import create_client, create_session
from ecs_task_deploy.core.settings import AWSSettings, DeploySettings, get_settings
from ecs_task_deploy.core.task_definitions import (
    build_task_definition,
    merge_environment,
    parse_env_overrides,
)
from ecs_task_deploy.core.waiter import wait_for_convergence

__all__ = [
    "AWSSettings",
    "ConfigurationError",
    "ConvergenceError",
    "ConvergenceResult",
    "ConvergenceTimeoutError",
    "DeploymentContext",
    "DeploymentError",
    "DeploySettings",
    "EcsClient",
    "EnvOverride",
    "ImageReference",
    "NoMatchingContainerError",
    "RemoteCallError",
    "RollbackFailedError",
    "ServiceNotFoundError",
    "build_task_definition",
    "create_client",
    "create_session",
    "deploy",
    "get_settings",
    "merge_environment",
    "parse_env_overrides",
    "parse_image",
    "wait_for_convergence",
]
