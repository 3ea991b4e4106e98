"""AWS session helpers."""

import boto3

from ecs_task_deploy.core.ecs import EcsClient
from ecs_task_deploy.core.settings import AWSSettings, DeploySettings


def create_session(aws: AWSSettings) -> boto3.session.Session:
    """Create a boto3 session."""
    if aws.profile:
        return boto3.session.Session(
            profile_name=aws.profile,
            region_name=aws.default_region,
        )

    return boto3.session.Session(
        aws_access_key_id=aws.access_key_id,
        aws_secret_access_key=aws.secret_access_key,
        aws_session_token=aws.session_token,
        region_name=aws.default_region,
    )


def create_client(settings: DeploySettings) -> EcsClient:
    """Create an ECS client for the configured account and region."""
    session = create_session(settings.aws)
    return EcsClient(session.client("ecs"))
