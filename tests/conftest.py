# pylint: disable=redefined-outer-name
# pylint: disable=unused-argument
# pylint: disable=unused-variable

from collections.abc import AsyncIterator, Iterator
from copy import deepcopy
from typing import Any

import pytest
import respx
from faker import Faker
from helpers.monkeypatch_envs import EnvVarsDict, delenvs_from_dict, setenvs_from_dict
from swarm_client.docker_api import DockerApiClient
from swarm_client.models import DistributionInspect, ServiceSpec
from swarm_client.settings import ClientSettings
from typer.testing import CliRunner

# envs that would leak into the settings from the host running the tests
_HOST_ENVS: list[str] = [
    "DOCKER_HOST",
    "DOCKER_API_VERSION",
    "LOG_LEVEL",
    "LOGLEVEL",
    "LOG_FORMAT_LOCAL_DEV_ENABLED",
    "REGISTRY_USER",
    "REGISTRY_PW",
    "REGISTRY_URL",
]


@pytest.fixture
def docker_host() -> str:
    return "http://swarm-manager.test:2375"


@pytest.fixture
def api_version() -> str:
    return "1.41"


@pytest.fixture
def app_environment(
    monkeypatch: pytest.MonkeyPatch, docker_host: str, api_version: str
) -> EnvVarsDict:
    delenvs_from_dict(monkeypatch, _HOST_ENVS, raising=False)
    return setenvs_from_dict(
        monkeypatch,
        {
            "SWARM_CLIENT_DOCKER_HOST": docker_host,
            "SWARM_CLIENT_API_VERSION": api_version,
            "SWARM_CLIENT_REQUEST_TIMEOUT": 5,
        },
    )


@pytest.fixture
def client_settings(app_environment: EnvVarsDict) -> ClientSettings:
    return ClientSettings.create_from_envs()


@pytest.fixture
async def docker_api_client(
    client_settings: ClientSettings,
) -> AsyncIterator[DockerApiClient]:
    async with DockerApiClient.create(client_settings) as client:
        yield client


@pytest.fixture
def mock_docker_api(docker_host: str, api_version: str) -> Iterator[respx.MockRouter]:
    with respx.mock(
        base_url=f"{docker_host}/v{api_version}",
        assert_all_called=False,
        assert_all_mocked=True,  # IMPORTANT: KEEP always True!
    ) as mock:
        yield mock


@pytest.fixture
def image_digest(faker: Faker) -> str:
    return f"sha256:{faker.sha256()}"


@pytest.fixture
def distribution_inspect_payload(image_digest: str) -> dict[str, Any]:
    example = deepcopy(
        DistributionInspect.model_config["json_schema_extra"]["examples"][0]  # type: ignore[index]
    )
    example["Descriptor"]["digest"] = image_digest
    return example


@pytest.fixture
def service_spec() -> ServiceSpec:
    return ServiceSpec.model_validate(
        ServiceSpec.model_config["json_schema_extra"]["examples"][0]  # type: ignore[index]
    )


@pytest.fixture
def service_id(faker: Faker) -> str:
    return faker.pystr(min_chars=25, max_chars=25).lower()


@pytest.fixture
def cli_runner() -> CliRunner:
    # SEE https://typer.tiangolo.com/tutorial/testing/
    return CliRunner()
