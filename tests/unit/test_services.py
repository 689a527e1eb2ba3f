# pylint: disable=redefined-outer-name
# pylint: disable=unused-argument
# pylint: disable=unused-variable

import asyncio
import json
from typing import Any

import httpx
import pytest
import respx
from pytest_mock import MockerFixture
from swarm_client.constants import API_VERSION_HEADER, X_REGISTRY_AUTH_HEADER
from swarm_client.docker_api import DockerApiClient
from swarm_client.errors import (
    DockerApiError,
    DockerConnectionError,
    ResponseDecodeError,
)
from swarm_client.models import (
    DistributionInspect,
    Placement,
    Platform,
    ServiceCreateOptions,
    ServiceCreateResponse,
    ServiceSpec,
)
from swarm_client.services import (
    create_service,
    digest_warning,
    update_service_platforms,
)


@pytest.fixture
def image() -> str:
    return "nginx:1.25"


@pytest.fixture
def mock_distribution_inspect(
    mock_docker_api: respx.MockRouter,
    image: str,
    distribution_inspect_payload: dict[str, Any],
) -> respx.Route:
    return mock_docker_api.get(f"/distribution/{image}/json").respond(
        httpx.codes.OK, json=distribution_inspect_payload
    )


@pytest.fixture
def mock_distribution_inspect_failure(
    mock_docker_api: respx.MockRouter, image: str
) -> respx.Route:
    return mock_docker_api.get(f"/distribution/{image}/json").respond(
        httpx.codes.FORBIDDEN,
        json={"message": "errors: denied: requested access to the resource is denied"},
    )


@pytest.fixture
def mock_services_create(
    mock_docker_api: respx.MockRouter, service_id: str
) -> respx.Route:
    return mock_docker_api.post("/services/create").respond(
        httpx.codes.CREATED, json={"ID": service_id, "Warnings": None}
    )


def _get_submitted_spec(route: respx.Route) -> dict[str, Any]:
    assert route.called
    return json.loads(route.calls.last.request.content)


def test_update_service_platforms_creates_placement(
    distribution_inspect_payload: dict[str, Any],
):
    distribution = DistributionInspect.model_validate(distribution_inspect_payload)

    placement = update_service_platforms(None, distribution)

    assert placement.platforms == [
        Platform(architecture="amd64", os="linux"),
        Platform(architecture="arm64", os="linux"),
    ]


def test_update_service_platforms_appends_to_existing_platforms(
    distribution_inspect_payload: dict[str, Any],
):
    distribution = DistributionInspect.model_validate(distribution_inspect_payload)
    assert len(distribution.platforms) == 2

    existing_platforms = [
        Platform(architecture="amd64", os="linux"),
        Platform(architecture="s390x", os="linux"),
    ]
    placement = Placement(
        constraints=["node.role==worker"], platforms=list(existing_platforms)
    )

    updated_placement = update_service_platforms(placement, distribution)

    assert updated_placement is placement
    assert updated_placement.constraints == ["node.role==worker"]
    assert updated_placement.platforms == [
        *existing_platforms,
        Platform(architecture="amd64", os="linux"),
        Platform(architecture="arm64", os="linux"),
    ]


def test_update_service_platforms_without_platforms(image_digest: str):
    distribution = DistributionInspect.model_validate(
        {"Descriptor": {"digest": image_digest}, "Platforms": None}
    )

    placement = update_service_platforms(None, distribution)

    assert placement == Placement()
    assert placement.to_docker_json() == {}


def test_digest_warning(image: str):
    assert digest_warning(image) == (
        "image nginx:1.25 could not be accessed on a registry to record\n"
        "its digest. Each node will access nginx:1.25 independently,\n"
        "possibly leading to different nodes running different\n"
        "versions of the image.\n"
    )


async def test_create_service_without_registry_query(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
    mock_distribution_inspect: respx.Route,
    service_spec: ServiceSpec,
    service_id: str,
    api_version: str,
    image: str,
):
    response = await create_service(docker_api_client, service_spec)

    assert response == ServiceCreateResponse(id=service_id, warnings=[])
    assert not mock_distribution_inspect.called

    request = mock_services_create.calls.last.request
    assert request.headers[API_VERSION_HEADER] == api_version
    assert X_REGISTRY_AUTH_HEADER not in request.headers

    submitted_spec = _get_submitted_spec(mock_services_create)
    assert submitted_spec["TaskTemplate"]["ContainerSpec"]["Image"] == image
    # unknown fields are passed through
    assert submitted_spec["Mode"] == {"Replicated": {"Replicas": 2}}


async def test_create_service_forwards_registry_auth(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
    mock_distribution_inspect: respx.Route,
    service_spec: ServiceSpec,
):
    encoded_registry_auth = "eyJ1c2VybmFtZSI6ICJqb2huIn0="

    await create_service(
        docker_api_client,
        service_spec,
        ServiceCreateOptions(
            encoded_registry_auth=encoded_registry_auth, query_registry=True
        ),
    )

    for route in (mock_distribution_inspect, mock_services_create):
        assert (
            route.calls.last.request.headers[X_REGISTRY_AUTH_HEADER]
            == encoded_registry_auth
        )


async def test_create_service_pins_image_and_adds_platforms(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
    mock_distribution_inspect: respx.Route,
    service_spec: ServiceSpec,
    service_id: str,
    image_digest: str,
):
    response = await create_service(
        docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
    )

    assert mock_distribution_inspect.called
    assert response.id == service_id
    assert response.warnings == []

    expected_image = f"docker.io/library/nginx:1.25@{image_digest}"
    assert service_spec.task_template.container_spec.image == expected_image

    submitted_spec = _get_submitted_spec(mock_services_create)
    assert submitted_spec["TaskTemplate"]["ContainerSpec"]["Image"] == expected_image
    assert submitted_spec["TaskTemplate"]["Placement"] == {
        "Constraints": ["node.role==worker"],
        "Platforms": [
            {"Architecture": "amd64", "OS": "linux"},
            {"Architecture": "arm64", "OS": "linux"},
        ],
    }


async def test_create_service_keeps_image_already_pinned(
    docker_api_client: DockerApiClient,
    mock_docker_api: respx.MockRouter,
    mock_services_create: respx.Route,
    distribution_inspect_payload: dict[str, Any],
    service_spec: ServiceSpec,
    faker,
):
    pinned_image = f"nginx@sha256:{faker.sha256()}"
    service_spec.task_template.container_spec.image = pinned_image
    mock_docker_api.get(f"/distribution/{pinned_image}/json").respond(
        httpx.codes.OK, json=distribution_inspect_payload
    )

    response = await create_service(
        docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
    )

    assert response.warnings == []
    submitted_spec = _get_submitted_spec(mock_services_create)
    assert submitted_spec["TaskTemplate"]["ContainerSpec"]["Image"] == pinned_image
    assert len(submitted_spec["TaskTemplate"]["Placement"]["Platforms"]) == 2


async def test_create_service_warns_when_registry_lookup_fails(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
    mock_distribution_inspect_failure: respx.Route,
    service_spec: ServiceSpec,
    service_id: str,
    image: str,
    caplog: pytest.LogCaptureFixture,
):
    response = await create_service(
        docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
    )

    assert mock_distribution_inspect_failure.called
    assert response.id == service_id
    assert len(response.warnings) == 1
    assert image in response.warnings[0]
    assert response.warnings[0] == digest_warning(image)

    # image and placement are left untouched
    assert service_spec.task_template.container_spec.image == image
    submitted_spec = _get_submitted_spec(mock_services_create)
    assert submitted_spec["TaskTemplate"]["ContainerSpec"]["Image"] == image
    assert "Platforms" not in submitted_spec["TaskTemplate"]["Placement"]

    assert "Could not retrieve digest of image" in caplog.text


async def test_create_service_warns_when_registry_unreachable(
    docker_api_client: DockerApiClient,
    mock_docker_api: respx.MockRouter,
    mock_services_create: respx.Route,
    service_spec: ServiceSpec,
    image: str,
):
    mock_docker_api.get(f"/distribution/{image}/json").mock(
        side_effect=httpx.ReadTimeout("took too long")
    )

    response = await create_service(
        docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
    )

    assert response.warnings == [digest_warning(image)]


@pytest.mark.parametrize("unaddressable_image", ["nginx\x7f", "nginx:1.25\x00"])
async def test_create_service_warns_when_image_is_not_addressable(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
    service_id: str,
    unaddressable_image: str,
):
    service = ServiceSpec.model_validate(
        {"TaskTemplate": {"ContainerSpec": {"Image": unaddressable_image}}}
    )

    response = await create_service(
        docker_api_client, service, ServiceCreateOptions(query_registry=True)
    )

    assert response.id == service_id
    assert response.warnings == [digest_warning(unaddressable_image)]
    submitted_spec = _get_submitted_spec(mock_services_create)
    assert (
        submitted_spec["TaskTemplate"]["ContainerSpec"]["Image"] == unaddressable_image
    )


async def test_create_service_warns_when_image_is_missing(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
):
    response = await create_service(
        docker_api_client,
        ServiceSpec(name="no-image"),
        ServiceCreateOptions(query_registry=True),
    )

    assert response.warnings == [digest_warning("")]


async def test_create_service_transport_failure_skips_decoding(
    docker_api_client: DockerApiClient,
    mock_docker_api: respx.MockRouter,
    mock_distribution_inspect_failure: respx.Route,
    service_spec: ServiceSpec,
    mocker: MockerFixture,
):
    mock_docker_api.post("/services/create").mock(
        side_effect=httpx.ConnectError("connection refused")
    )
    spy_decode = mocker.spy(ServiceCreateResponse, "model_validate_json")

    with pytest.raises(DockerConnectionError):
        await create_service(
            docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
        )

    assert not spy_decode.called


async def test_create_service_engine_error_is_raised(
    docker_api_client: DockerApiClient,
    mock_docker_api: respx.MockRouter,
    service_spec: ServiceSpec,
    mocker: MockerFixture,
):
    mock_docker_api.post("/services/create").respond(
        httpx.codes.CONFLICT, json={"message": "name conflicts with an existing object"}
    )
    spy_decode = mocker.spy(ServiceCreateResponse, "model_validate_json")

    with pytest.raises(DockerApiError) as exc_info:
        await create_service(docker_api_client, service_spec)

    assert exc_info.value.status_code == httpx.codes.CONFLICT
    assert exc_info.value.details == "name conflicts with an existing object"
    assert not spy_decode.called


async def test_create_service_decode_failure_after_successful_lookup(
    docker_api_client: DockerApiClient,
    mock_docker_api: respx.MockRouter,
    mock_distribution_inspect: respx.Route,
    service_spec: ServiceSpec,
):
    mock_docker_api.post("/services/create").respond(
        httpx.codes.CREATED, content=b"this is not json"
    )

    with pytest.raises(ResponseDecodeError) as exc_info:
        await create_service(
            docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
        )

    assert exc_info.value.response == ServiceCreateResponse()
    assert exc_info.value.response.warnings == []


async def test_create_service_decode_failure_keeps_registry_warning(
    docker_api_client: DockerApiClient,
    mock_docker_api: respx.MockRouter,
    mock_distribution_inspect_failure: respx.Route,
    service_spec: ServiceSpec,
    image: str,
):
    mock_docker_api.post("/services/create").respond(
        httpx.codes.CREATED, json={"ID": 42, "Warnings": "not-a-list"}
    )

    with pytest.raises(ResponseDecodeError) as exc_info:
        await create_service(
            docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
        )

    assert exc_info.value.response.warnings == [digest_warning(image)]


async def test_create_service_can_be_cancelled(
    docker_api_client: DockerApiClient,
    mock_services_create: respx.Route,
    service_spec: ServiceSpec,
    mocker: MockerFixture,
):
    registry_called = asyncio.Event()

    async def _slow_distribution_inspect(*args, **kwargs):
        registry_called.set()
        await asyncio.sleep(60)

    mocker.patch(
        "swarm_client.services.distribution_inspect",
        side_effect=_slow_distribution_inspect,
    )

    task = asyncio.create_task(
        create_service(
            docker_api_client, service_spec, ServiceCreateOptions(query_registry=True)
        )
    )
    await asyncio.wait_for(registry_called.wait(), timeout=5)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert not mock_services_create.called
