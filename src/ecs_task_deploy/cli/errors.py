"""Deployment error reporting for the CLI."""

from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)
from rich.markup import escape

from ecs_task_deploy.cli.ui import console
from ecs_task_deploy.core.errors import ConfigurationError, RollbackFailedError
from ecs_task_deploy.core.models import DeploymentContext, task_definition_arn

AUTH_ERROR_CODES = {
    "ExpiredToken",
    "ExpiredTokenException",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "InvalidSignatureException",
    "AccessDenied",
    "AccessDeniedException",
}


def report_deployment_error(exc: Exception) -> None:
    """Render an error that stopped the deployment with actionable guidance.

    Args:
        exc: Raised exception from the deployment.
    """
    if isinstance(exc, ConfigurationError):
        console.print(f"[red]{escape(str(exc))}[/red]")
        console.print("[dim]Run with --help to see the options and environment variables.[/dim]")
        return

    if is_aws_auth_error(exc):
        console.print(
            "[red]AWS authentication failed. Your credentials are missing, invalid, "
            "or expired.[/red]"
        )
        console.print(
            "[dim]Check the access key and secret key, or refresh AWS_SESSION_TOKEN "
            "and retry.[/dim]"
        )
        return

    if is_aws_endpoint_error(exc):
        console.print("[red]Could not reach AWS endpoint from this environment.[/red]")
        console.print("[dim]Check network connectivity and AWS region configuration.[/dim]")
        return

    console.print(f"[red]Deployment failed: {escape(str(exc))}[/red]")


def report_outcome(ctx: DeploymentContext) -> None:
    """Render the result of a deployment.

    Args:
        ctx: The finished deployment context.
    """
    if ctx.succeeded:
        arn = task_definition_arn(ctx.new_task)
        console.print(
            f"[bold cyan]Task '{escape(arn)}' created and deployed[/bold cyan]",
            soft_wrap=True,
        )
        return

    for error in ctx.errors:
        console.print(f"[red]{escape(str(error))}[/red]", soft_wrap=True)

    original_arn = task_definition_arn(ctx.original_task_def)
    if ctx.rolled_back:
        console.print(
            f"[yellow]Service rolled back to task definition '{escape(original_arn)}'[/yellow]",
            soft_wrap=True,
        )
    if any(isinstance(error, RollbackFailedError) for error in ctx.errors):
        console.print(
            "[bold red]The service may be in a degraded state and needs manual "
            "intervention.[/bold red]"
        )


def is_aws_auth_error(exc: Exception) -> bool:
    """Return true when an exception chain indicates AWS auth issues.

    Args:
        exc: Raised exception from the deployment.

    Returns:
        True when the chain contains an auth-related error.
    """
    for item in exception_chain(exc):
        if isinstance(item, (NoCredentialsError, ProfileNotFound)):
            return True
        if isinstance(item, ClientError):
            code = str(item.response.get("Error", {}).get("Code", ""))
            if code in AUTH_ERROR_CODES:
                return True
        if "security token included in the request is expired" in str(item).lower():
            return True
    return False


def is_aws_endpoint_error(exc: Exception) -> bool:
    """Return true when an exception chain indicates endpoint or region errors."""
    return any(
        isinstance(item, (EndpointConnectionError, NoRegionError)) for item in exception_chain(exc)
    )


def exception_chain(exc: BaseException) -> list[BaseException]:
    """Return exceptions in cause/context chain.

    Args:
        exc: Root exception.

    Returns:
        Ordered exception chain from root to cause/context.
    """
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        chain.append(current)
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return chain
