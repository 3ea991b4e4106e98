"""Shared fixtures for deployment tests."""

import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from ecs_task_deploy.core.ecs import EcsClient
from ecs_task_deploy.core.settings import AWSSettings, DeploySettings
from tests.consts import CLUSTER, NEW_ARN, ORIGINAL_ARN, SERVICE, running_task


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep AWS variables and .env files of the host out of the tests."""
    for name in list(os.environ):
        if name.startswith("AWS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def settings() -> DeploySettings:
    """Return complete deployment settings with a zero timeout."""
    return DeploySettings(
        aws=AWSSettings(
            access_key_id="key",
            secret_access_key="secret",
            default_region="eu-west-2",
        ),
        cluster=CLUSTER,
        service_name=SERVICE,
        task_image="stead/ecs-task-deploy:1.0.0",
        timeout=0,
    )


@pytest.fixture
def template() -> dict[str, Any]:
    """Return an active task definition with two webapp containers and nginx."""
    return {
        "taskDefinitionArn": ORIGINAL_ARN,
        "family": "webapp",
        "revision": 1,
        "status": "ACTIVE",
        "taskRoleArn": "arn:aws:iam::123456789012:role/webapp",
        "volumes": [],
        "containerDefinitions": [
            {
                "name": "webapp",
                "image": "stead/ecs-task-deploy:0.0.1",
                "environment": [{"name": "LOG_LEVEL", "value": "info"}],
                "memory": 512,
                "cpu": 300,
                "portMappings": [{"hostPort": 0, "containerPort": 80, "protocol": "tcp"}],
            },
            {"name": "nginx", "image": "nginx:2.5.1"},
            {
                "name": "worker",
                "image": "stead/ecs-task-deploy:0.0.1",
                "environment": [],
            },
        ],
    }


@pytest.fixture
def client(template: dict[str, Any]) -> MagicMock:
    """Return an ECS client stand-in for a service running ``template``."""
    ecs = MagicMock(spec=EcsClient)
    ecs.find_service.return_value = {
        "serviceName": SERVICE,
        "clusterArn": "arn:aws:ecs:eu-west-2:123456789012:cluster/cluster",
        "taskDefinition": ORIGINAL_ARN,
    }
    ecs.get_task_definition.return_value = template
    ecs.register_task_definition.side_effect = lambda draft: {
        **draft,
        "taskDefinitionArn": NEW_ARN,
        "revision": 2,
    }
    ecs.update_service.side_effect = lambda cluster, service, arn, **_: {
        "serviceName": service,
        "taskDefinition": arn,
    }
    ecs.list_tasks.return_value = ["task-1"]
    ecs.describe_tasks.return_value = [running_task(NEW_ARN)]
    return ecs
