""" Models of the docker engine API objects used to create swarm services

Only the fields handled by this client are declared. Any other field is kept
as-is and sent back to the engine untouched.

SEE https://docs.docker.com/engine/api/v1.41/#tag/Service/operation/ServiceCreate
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _DockerApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_docker_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Platform(_DockerApiModel):
    architecture: str | None = Field(
        default=None, alias="Architecture", examples=["x86_64", "arm64"]
    )
    os: str | None = Field(default=None, alias="OS", examples=["linux"])


class Placement(_DockerApiModel):
    constraints: list[str] | None = Field(
        default=None,
        alias="Constraints",
        examples=[["node.hostname!=node3.corp.example.com", "node.role==manager"]],
    )
    preferences: list[dict[str, Any]] | None = Field(default=None, alias="Preferences")
    max_replicas: int | None = Field(
        default=None, alias="MaxReplicas", description="max replicas per node"
    )
    platforms: list[Platform] | None = Field(
        default=None,
        alias="Platforms",
        description="Platforms stores all the platforms that the service's image can run on",
    )


class ContainerSpec(_DockerApiModel):
    image: str | None = Field(
        default=None,
        alias="Image",
        description="The image name to use for the container",
    )


class TaskSpec(_DockerApiModel):
    container_spec: ContainerSpec = Field(
        default_factory=ContainerSpec, alias="ContainerSpec"
    )
    placement: Placement | None = Field(default=None, alias="Placement")


class ServiceSpec(_DockerApiModel):
    name: str | None = Field(default=None, alias="Name")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    task_template: TaskSpec = Field(default_factory=TaskSpec, alias="TaskTemplate")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "Name": "web",
                    "TaskTemplate": {
                        "ContainerSpec": {"Image": "nginx:1.25"},
                        "Placement": {"Constraints": ["node.role==worker"]},
                    },
                    "Mode": {"Replicated": {"Replicas": 2}},
                }
            ]
        }
    )


#
# Registry distribution information (OCI naming)
#


class OCIPlatform(_DockerApiModel):
    architecture: str = ""
    os: str = ""
    os_version: str | None = Field(default=None, alias="os.version")
    os_features: list[str] | None = Field(default=None, alias="os.features")
    variant: str | None = None
    features: list[str] | None = None


class Descriptor(_DockerApiModel):
    media_type: str | None = Field(default=None, alias="mediaType")
    digest: str
    size: int | None = None
    urls: list[str] | None = None
    annotations: dict[str, str] | None = None
    platform: OCIPlatform | None = None


class DistributionInspect(_DockerApiModel):
    descriptor: Descriptor = Field(..., alias="Descriptor")
    platforms: list[OCIPlatform] = Field(default_factory=list, alias="Platforms")

    @field_validator("platforms", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return [] if v is None else v

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "Descriptor": {
                        "mediaType": "application/vnd.docker.distribution.manifest.list.v2+json",
                        "digest": "sha256:c0537ff6a5218ef531ece93d4984efc99bbf3f7497c0a7726c88e2bb7584dc96",
                        "size": 3987495,
                    },
                    "Platforms": [
                        {"architecture": "amd64", "os": "linux"},
                        {"architecture": "arm64", "os": "linux", "variant": "v8"},
                    ],
                }
            ]
        }
    )


#
# Service creation
#


class ServiceCreateOptions(BaseModel):
    encoded_registry_auth: str | None = Field(
        default=None,
        description="base64url-encoded auth configuration for the registry hosting the image",
    )
    query_registry: bool = Field(
        default=False,
        description="contacts the registry to pin the image by digest and to resolve its platforms",
    )

    model_config = ConfigDict(frozen=True)


class ServiceCreateResponse(_DockerApiModel):
    id: str = Field(default="", alias="ID")
    warnings: list[str] = Field(default_factory=list, alias="Warnings")

    @field_validator("warnings", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return [] if v is None else v
