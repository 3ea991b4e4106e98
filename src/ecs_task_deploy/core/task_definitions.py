"""Build new task definitions from the active one."""

import copy
import logging
from collections.abc import Iterable
from typing import Any

from ecs_task_deploy.core.errors import ConfigurationError, NoMatchingContainerError
from ecs_task_deploy.core.images import ImageReference, parse_image
from ecs_task_deploy.core.models import EnvOverride

logger = logging.getLogger(__name__)

# Attributes of a described task definition that can be sent back to
# register_task_definition. Describe-only fields such as the ARN, revision and
# status are left out.
REGISTER_ATTRIBUTES = (
    "taskRoleArn",
    "executionRoleArn",
    "networkMode",
    "requiresCompatibilities",
    "cpu",
    "memory",
    "placementConstraints",
    "runtimePlatform",
    "pidMode",
    "ipcMode",
    "proxyConfiguration",
    "ephemeralStorage",
)


def build_task_definition(
    template: dict[str, Any],
    image: ImageReference,
    env_overrides: Iterable[EnvOverride] = (),
) -> dict[str, Any]:
    """Return a registration payload that runs ``image``.

    Every container whose image belongs to the same repository as ``image`` is
    switched to the new image and receives the environment overrides. Other
    containers are copied unchanged. The template is not modified.

    Args:
        template: The currently active task definition.
        image: The image to deploy.
        env_overrides: Environment variables to set on the updated containers.

    Returns:
        The new task definition payload.

    Raises:
        NoMatchingContainerError: No container runs an image of the same repository.
    """
    overrides = dedupe_env_overrides(env_overrides)
    containers = [copy.deepcopy(c) for c in template.get("containerDefinitions", [])]
    matching = [c for c in containers if parse_image(c.get("image")).same_family(image)]
    if not matching:
        raise NoMatchingContainerError(image.identity)

    for container in matching:
        logger.debug(f"Container '{container.get('name')}': {container.get('image')} -> {image.raw}")
        container["image"] = image.raw
        if overrides:
            container["environment"] = merge_environment(container.get("environment", []), overrides)

    draft: dict[str, Any] = {
        "family": template.get("family"),
        "volumes": copy.deepcopy(template.get("volumes", [])),
        "containerDefinitions": containers,
    }
    for attribute in REGISTER_ATTRIBUTES:
        value = template.get(attribute)
        if value is not None:
            draft[attribute] = copy.deepcopy(value)
    return draft


def merge_environment(
    environment: list[dict[str, str]],
    overrides: Iterable[EnvOverride],
) -> list[dict[str, str]]:
    """Upsert overrides into an ECS environment list by name."""
    merged = [dict(entry) for entry in environment]
    for override in overrides:
        for entry in merged:
            if entry.get("name") == override.name:
                entry["value"] = override.value
                break
        else:
            merged.append(override.as_entry())
    return merged


def dedupe_env_overrides(overrides: Iterable[EnvOverride]) -> list[EnvOverride]:
    """Keep the last override for each name, in first-seen order."""
    by_name: dict[str, EnvOverride] = {}
    for override in overrides:
        by_name[override.name] = override
    return list(by_name.values())


def parse_env_overrides(pairs: Iterable[str]) -> list[EnvOverride]:
    """Parse ``NAME=value`` pairs into overrides.

    Raises:
        ConfigurationError: A pair has no ``=`` or an empty name.
    """
    overrides = []
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ConfigurationError(f"Invalid environment override '{pair}'. Use NAME=value.")
        overrides.append(EnvOverride(name=name, value=value))
    return dedupe_env_overrides(overrides)
