"""Data models for task definition deployments."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EnvOverride:
    """An environment variable to set on the deployed containers."""

    name: str
    value: str

    def as_entry(self) -> dict[str, str]:
        """Return the ECS ``environment`` entry for this override."""
        return {"name": self.name, "value": self.value}


@dataclass
class ConvergenceResult:
    """Outcome of waiting for a service to run a task definition."""

    task: dict[str, Any] | None = None
    timed_out: bool = False
    error: Exception | None = None

    @property
    def converged(self) -> bool:
        """Return true when a task running the expected definition was seen."""
        return self.task is not None


@dataclass
class DeploymentContext:
    """State carried through a single deployment."""

    service: dict[str, Any] | None = None
    original_task_def: dict[str, Any] | None = None
    new_task_def: dict[str, Any] | None = None
    target_task_def: dict[str, Any] | None = None
    updated_service: dict[str, Any] | None = None
    new_task: dict[str, Any] | None = None
    rollback: bool = False
    errors: list[Exception] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Return true when the new task definition is running."""
        return not self.errors and self.new_task is not None

    @property
    def rolled_back(self) -> bool:
        """Return true when the service is running the original task definition again."""
        if not self.rollback or self.new_task is None or self.original_task_def is None:
            return False
        return task_definition_arn(self.new_task) == task_definition_arn(self.original_task_def)


def task_definition_arn(resource: dict[str, Any] | None) -> str:
    """Return the task definition ARN of a task or task definition."""
    if not resource:
        return ""
    return str(resource.get("taskDefinitionArn", ""))
