import logging
from enum import StrEnum
from functools import cached_property
from typing import Annotated, Any

from pydantic import AliasChoices, Field, PositiveFloat, SecretStr, field_validator
from pydantic_settings import SettingsConfigDict

from .constants import DEFAULT_DOCKER_API_VERSION, DEFAULT_DOCKER_HOST
from .registry_auth import encode_registry_auth
from .settings_base import BaseCustomSettings, create_settings_from_env


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class RegistryAuthSettings(BaseCustomSettings):
    REGISTRY_USER: str = Field(..., description="username to access the docker registry")
    REGISTRY_PW: SecretStr = Field(
        ..., description="password to access the docker registry"
    )
    # NOTE: name is missleading, http or https protocol are not included
    REGISTRY_URL: str = Field(
        ...,
        description="hostname of docker registry (without protocol but with port if available)",
        min_length=1,
    )

    @cached_property
    def encoded_registry_auth(self) -> str:
        return encode_registry_auth(
            username=self.REGISTRY_USER,
            password=self.REGISTRY_PW.get_secret_value(),
            server_address=self.REGISTRY_URL,
        )

    model_config = SettingsConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "REGISTRY_USER": "theregistryuser",
                    "REGISTRY_PW": "some_secret_value",
                    "REGISTRY_URL": "registry.example.com",
                }
            ],
        }
    )


class ClientSettings(BaseCustomSettings):
    SWARM_CLIENT_DOCKER_HOST: Annotated[
        str,
        Field(
            validation_alias=AliasChoices("SWARM_CLIENT_DOCKER_HOST", "DOCKER_HOST"),
            description="docker engine endpoint: unix:// socket, tcp:// or http(s):// url",
            min_length=1,
        ),
    ] = DEFAULT_DOCKER_HOST

    SWARM_CLIENT_API_VERSION: Annotated[
        str,
        Field(
            validation_alias=AliasChoices(
                "SWARM_CLIENT_API_VERSION", "DOCKER_API_VERSION"
            ),
            pattern=r"^\d+\.\d+$",
            description="docker engine API version, sent with every request",
        ),
    ] = DEFAULT_DOCKER_API_VERSION

    SWARM_CLIENT_REQUEST_TIMEOUT: Annotated[
        PositiveFloat, Field(description="timeout in seconds of any engine request")
    ] = 30.0

    SWARM_CLIENT_LOGLEVEL: Annotated[
        LogLevel,
        Field(
            validation_alias=AliasChoices(
                "SWARM_CLIENT_LOGLEVEL", "LOG_LEVEL", "LOGLEVEL"
            ),
        ),
    ] = LogLevel.INFO

    SWARM_CLIENT_LOG_FORMAT_LOCAL_DEV_ENABLED: Annotated[
        bool,
        Field(
            validation_alias=AliasChoices(
                "SWARM_CLIENT_LOG_FORMAT_LOCAL_DEV_ENABLED",
                "LOG_FORMAT_LOCAL_DEV_ENABLED",
            ),
            description="Enables local development log format. WARNING: make sure it is disabled if you want to have structured logs!",
        ),
    ] = False

    SWARM_CLIENT_REGISTRY: Annotated[
        RegistryAuthSettings | None,
        Field(
            default_factory=create_settings_from_env(RegistryAuthSettings),
            description="credentials used when none are passed explicitly",
        ),
    ]

    model_config = SettingsConfigDict(populate_by_name=True)

    @cached_property
    def log_level(self) -> int:
        level: int = logging.getLevelName(self.SWARM_CLIENT_LOGLEVEL.value)
        return level

    @field_validator("SWARM_CLIENT_LOGLEVEL", mode="before")
    @classmethod
    def _validate_loglevel(cls, value: Any) -> str:
        return f"{value}".upper()

    @field_validator("SWARM_CLIENT_DOCKER_HOST", mode="after")
    @classmethod
    def _check_docker_host_scheme(cls, value: str) -> str:
        if not value.startswith(("unix://", "tcp://", "http://", "https://")):
            msg = f"Unsupported docker host {value!r}: expected unix://, tcp://, http:// or https://"
            raise ValueError(msg)
        return value
