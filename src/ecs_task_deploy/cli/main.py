"""CLI entrypoint for deploying an image to an ECS service."""

import asyncio
import logging

import click
from botocore.exceptions import BotoCoreError

from ecs_task_deploy.cli.errors import report_deployment_error, report_outcome
from ecs_task_deploy.core.deploy import deploy
from ecs_task_deploy.core.errors import DeploymentError
from ecs_task_deploy.core.session import create_client
from ecs_task_deploy.core.settings import DEFAULT_TIMEOUT_SECONDS, DeploySettings, get_settings
from ecs_task_deploy.core.task_definitions import parse_env_overrides


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="ecs-task-deploy")
@click.option(
    "-k", "--aws-access-key", help="AWS access key. Can be defined via AWS_ACCESS_KEY_ID."
)
@click.option(
    "-s", "--aws-secret-key", help="AWS secret key. Can be defined via AWS_SECRET_ACCESS_KEY."
)
@click.option("--aws-session-token", help="AWS session token. Can be defined via AWS_SESSION_TOKEN.")
@click.option("-p", "--profile", help="AWS named profile. Can be defined via AWS_PROFILE.")
@click.option("-r", "--region", help="AWS region. Can be defined via AWS_DEFAULT_REGION.")
@click.option("-c", "--cluster", help="ECS cluster. Can be defined via AWS_ECS_CLUSTER.")
@click.option(
    "-n", "--service-name", help="ECS service. Can be defined via AWS_ECS_SERVICE_NAME."
)
@click.option(
    "-i",
    "--image",
    help="Docker image to use in the new task definition, e.g. user/image:tag. "
    "Can be defined via AWS_ECS_TASK_IMAGE.",
)
@click.option(
    "-e",
    "--env",
    "env_pairs",
    multiple=True,
    metavar="NAME=value",
    help="Environment variable to set on the updated containers. Repeatable; "
    "later values win.",
)
@click.option(
    "-t",
    "--timeout",
    type=click.IntRange(min=0),
    help="Seconds to wait for the service to launch the new task. "
    f"Defaults to {DEFAULT_TIMEOUT_SECONDS}.",
)
@click.option("-d", "--desired-count", type=click.IntRange(min=0), help="Service desired count.")
@click.option(
    "--min", "min_healthy_percent", type=click.IntRange(min=0), help="Minimum healthy percent."
)
@click.option("--max", "max_percent", type=click.IntRange(min=0), help="Maximum percent.")
@click.option(
    "--kill-task",
    is_flag=True,
    help="Stop a running task to make room for the new one.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging.")
def cli(
    aws_access_key: str | None,
    aws_secret_key: str | None,
    aws_session_token: str | None,
    profile: str | None,
    region: str | None,
    cluster: str | None,
    service_name: str | None,
    image: str | None,
    env_pairs: tuple[str, ...],
    timeout: int | None,
    desired_count: int | None,
    min_healthy_percent: int | None,
    max_percent: int | None,
    kill_task: bool,
    verbose: bool,
) -> None:
    """Deploy an image to an ECS service and roll back if it fails to start."""
    try:
        settings = get_settings(
            aws={
                "access_key_id": aws_access_key,
                "secret_access_key": aws_secret_key,
                "session_token": aws_session_token,
                "profile": profile,
                "default_region": region,
            },
            cluster=cluster,
            service_name=service_name,
            task_image=image,
            environment=parse_env_overrides(env_pairs) or None,
            timeout=timeout,
            desired_count=desired_count,
            min_healthy_percent=min_healthy_percent,
            max_percent=max_percent,
            kill_task=kill_task or None,
            verbose=verbose or None,
        )
    except DeploymentError as exc:
        report_deployment_error(exc)
        raise SystemExit(1) from exc

    configure_logging(settings.verbose)
    if not run_deployment(settings):
        raise SystemExit(1)


def run_deployment(settings: DeploySettings) -> bool:
    """Run a deployment and report its outcome.

    Args:
        settings: Deployment settings.

    Returns:
        True when the new task definition is running.
    """
    try:
        client = create_client(settings)
        ctx = asyncio.run(deploy(client, settings))
    except (DeploymentError, BotoCoreError) as exc:
        report_deployment_error(exc)
        return False

    report_outcome(ctx)
    return ctx.succeeded


def configure_logging(verbose: bool) -> None:
    """Configure logging for a CLI run."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # boto3 debug output includes request signing details.
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)


def main() -> None:
    """Run the CLI."""
    cli()
