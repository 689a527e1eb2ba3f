import logging

import httpx
from pydantic import ValidationError

from .constants import API_VERSION_HEADER, SERVICES_CREATE_PATH, X_REGISTRY_AUTH_HEADER
from .distribution import distribution_inspect
from .docker_api import DockerApiClient
from .errors import ResponseDecodeError, SwarmClientError
from .image_reference import image_with_digest
from .logging_utils import log_context
from .models import (
    DistributionInspect,
    Placement,
    Platform,
    ServiceCreateOptions,
    ServiceCreateResponse,
    ServiceSpec,
)

_logger = logging.getLogger(__name__)


def update_service_platforms(
    placement: Placement | None, distribution: DistributionInspect
) -> Placement:
    """Adds every platform supported by the image to the placement

    Existing platforms are kept (and kept first); nothing is de-duplicated
    """
    if placement is None:
        placement = Placement()

    new_platforms = [
        Platform(architecture=p.architecture, os=p.os)
        for p in distribution.platforms
    ]
    if new_platforms:
        if placement.platforms is None:
            placement.platforms = new_platforms
        else:
            placement.platforms.extend(new_platforms)
    return placement


def digest_warning(image: str) -> str:
    return (
        f"image {image} could not be accessed on a registry to record\n"
        f"its digest. Each node will access {image} independently,\n"
        "possibly leading to different nodes running different\n"
        "versions of the image.\n"
    )


async def create_service(
    client: DockerApiClient,
    service: ServiceSpec,
    options: ServiceCreateOptions | None = None,
) -> ServiceCreateResponse:
    """Creates a new swarm service

    With `options.query_registry`, the registry is asked for the image digest and
    platforms first: the image gets pinned by digest (unless it already is) and the
    platforms are added to the placement. `service` is modified in place.
    This lookup is best-effort: if it fails, the service is created with the
    original image and a warning is added to the response.

    Raises:
        DockerConnectionError: engine is not reachable
        DockerApiError: engine refused to create the service
        ResponseDecodeError: service was created but the reply could not be decoded.
            The response built so far (incl. warnings) is in `.response`
    """
    options = options or ServiceCreateOptions()
    container_spec = service.task_template.container_spec

    headers: dict[str, str] = {API_VERSION_HEADER: client.api_version}
    if options.encoded_registry_auth:
        headers[X_REGISTRY_AUTH_HEADER] = options.encoded_registry_auth

    distribution_error: Exception | None = None
    if options.query_registry:
        image = container_spec.image or ""
        try:
            distribution = await distribution_inspect(
                client, image, options.encoded_registry_auth
            )
        except (SwarmClientError, httpx.HTTPError) as err:
            distribution_error = err
            _logger.warning(
                "Could not retrieve digest of image %s from registry: %s", image, err
            )
        else:
            if pinned_image := image_with_digest(
                image, distribution.descriptor.digest
            ):
                _logger.debug("Pinning image %s to %s", image, pinned_image)
                container_spec.image = pinned_image
            service.task_template.placement = update_service_platforms(
                service.task_template.placement, distribution
            )

    response = ServiceCreateResponse()
    decode_error: Exception | None = None
    with log_context(_logger, logging.DEBUG, msg=f"creating service {service.name}"):
        async with client.post(
            SERVICES_CREATE_PATH, json=service.to_docker_json(), headers=headers
        ) as http_response:
            try:
                response = ServiceCreateResponse.model_validate_json(
                    await http_response.aread()
                )
            except (ValidationError, httpx.HTTPError) as err:
                decode_error = err

    if distribution_error is not None:
        response.warnings.append(digest_warning(container_spec.image or ""))

    if decode_error is not None:
        raise ResponseDecodeError(response=response, error=decode_error) from decode_error

    return response
