"""Runtime settings for a deployment."""

from typing import Self

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from ecs_task_deploy.core.errors import ConfigurationError
from ecs_task_deploy.core.models import EnvOverride
from ecs_task_deploy.core.task_definitions import dedupe_env_overrides

ENV_FILE_PATH = ".env"
DEFAULT_TIMEOUT_SECONDS = 180


class AWSSettings(BaseSettings):
    """AWS credentials and region."""

    model_config = SettingsConfigDict(env_prefix="AWS_", env_file=ENV_FILE_PATH, extra="ignore")

    access_key_id: str | None = Field(default=None, description="AWS access key ID")
    secret_access_key: str | None = Field(default=None, description="AWS secret access key")
    session_token: str | None = Field(default=None, description="AWS session token")
    default_region: str | None = Field(default=None, description="AWS region")
    profile: str | None = Field(default=None, description="AWS named profile")

    @property
    def has_credentials(self) -> bool:
        """Return true when a key pair or a named profile is configured."""
        return bool(self.profile or (self.access_key_id and self.secret_access_key))


class DeploySettings(BaseSettings):
    """Options for deploying an image to an ECS service."""

    model_config = SettingsConfigDict(
        env_prefix="AWS_ECS_",
        env_file=ENV_FILE_PATH,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cluster: str | None = Field(default=None, description="ECS cluster name or ARN")
    service_name: str | None = Field(default=None, description="ECS service name")
    task_image: str | None = Field(default=None, description="Image to deploy, e.g. user/image:tag")
    environment: list[EnvOverride] = Field(
        default_factory=list,
        description="Environment variables to set on the updated containers",
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        ge=0,
        description="Seconds to wait for the service to run the new task definition",
    )
    desired_count: int | None = Field(default=None, ge=0, description="Service desired count")
    min_healthy_percent: int | None = Field(
        default=None, ge=0, description="Minimum healthy percent during deployment"
    )
    max_percent: int | None = Field(
        default=None, ge=0, description="Maximum percent during deployment"
    )
    kill_task: bool = Field(
        default=False,
        description="Stop one running task to make room for the new one",
    )
    verbose: bool = Field(default=False, description="Enable verbose logging")

    aws: AWSSettings = Field(default_factory=AWSSettings)

    @field_validator("environment")
    @classmethod
    def _last_override_wins(cls, value: list[EnvOverride]) -> list[EnvOverride]:
        return dedupe_env_overrides(value)

    @model_validator(mode="after")
    def _require_deployment_target(self) -> Self:
        missing = []
        if not self.aws.has_credentials:
            missing.append("AWS access key and secret key (or profile)")
        if not self.aws.default_region:
            missing.append("AWS region")
        if not self.cluster:
            missing.append("ECS cluster name")
        if not self.service_name:
            missing.append("ECS service name")
        if not self.task_image:
            missing.append("ECS image name")
        if missing:
            raise ValueError(f"Missing {', '.join(missing)}")
        return self


def get_settings(aws: dict[str, object] | None = None, **values: object) -> DeploySettings:
    """Load deployment settings.

    Keyword values take precedence over the environment and the ``.env`` file.
    Values left as None are ignored so the environment can supply them.

    Raises:
        ConfigurationError: Options are missing or invalid.
    """
    aws_values = {key: value for key, value in (aws or {}).items() if value is not None}
    deploy_values = {key: value for key, value in values.items() if value is not None}
    try:
        return DeploySettings(aws=AWSSettings(**aws_values), **deploy_values)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise ConfigurationError(describe_validation_error(exc)) from exc
    except SettingsError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def describe_validation_error(exc: ValidationError) -> str:
    """Return a one-line summary of a settings validation error."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = str(error.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
