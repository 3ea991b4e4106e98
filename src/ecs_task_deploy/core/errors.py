"""Errors raised or recorded while deploying a task definition."""


class DeploymentError(RuntimeError):
    """Base class for deployment failures."""


class ConfigurationError(DeploymentError):
    """Deployment options are missing or invalid."""


class ServiceNotFoundError(DeploymentError):
    """The named service does not exist in the cluster."""

    def __init__(self, cluster: str, service: str) -> None:
        """Initialise the error for a cluster/service pair."""
        super().__init__(f'Failed to find ECS service with name "{service}" in cluster "{cluster}"')
        self.cluster = cluster
        self.service = service


class NoMatchingContainerError(DeploymentError):
    """No container in the template runs the requested image."""

    def __init__(self, identity: str) -> None:
        """Initialise the error for an image identity."""
        super().__init__(f"No container definitions found with image '{identity}', aborting.")
        self.identity = identity


class RemoteCallError(DeploymentError):
    """A call to the ECS API failed."""

    def __init__(self, operation: str, reason: object) -> None:
        """Initialise the error for a failed API operation."""
        super().__init__(f"Failed to {operation}: {reason}")
        self.operation = operation


class ConvergenceError(DeploymentError):
    """The service did not converge on the expected task definition."""


class ConvergenceTimeoutError(ConvergenceError):
    """Timed out waiting for a task running the expected task definition."""

    def __init__(self, task_definition_arn: str, timeout_seconds: float) -> None:
        """Initialise the error for a task definition and timeout."""
        super().__init__(
            "timeout waiting for service to launch new task definition "
            f"'{task_definition_arn}' after {timeout_seconds:g}s"
        )
        self.task_definition_arn = task_definition_arn
        self.timeout_seconds = timeout_seconds


class RollbackFailedError(DeploymentError):
    """The service could not be returned to its previous task definition.

    The service may be left in a degraded state and needs manual attention.
    """

    def __init__(self, task_definition_arn: str, reason: str | None = None) -> None:
        """Initialise the error for the task definition that was restored."""
        message = f'failed rollback to previous task definition "{task_definition_arn}"'
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.task_definition_arn = task_definition_arn
