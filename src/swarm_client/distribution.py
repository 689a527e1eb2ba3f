import logging

from pydantic import ValidationError

from .constants import X_REGISTRY_AUTH_HEADER
from .docker_api import DockerApiClient
from .errors import InvalidImageReferenceError, ResponseDecodeError
from .logging_utils import log_context
from .models import DistributionInspect

_logger = logging.getLogger(__name__)


async def distribution_inspect(
    client: DockerApiClient, image: str, encoded_registry_auth: str | None = None
) -> DistributionInspect:
    """Returns the image digest and platforms as resolved by the registry

    The engine contacts the registry on behalf of the client, using the given
    credentials if any

    Raises:
        InvalidImageReferenceError: if image is empty
        DockerConnectionError: engine is not reachable
        DockerApiError: engine or registry replied with an error
        ResponseDecodeError: reply could not be decoded
    """
    if not image:
        raise InvalidImageReferenceError(image=image, reason="value is empty")

    headers: dict[str, str] = {}
    if encoded_registry_auth:
        headers[X_REGISTRY_AUTH_HEADER] = encoded_registry_auth

    with log_context(_logger, logging.DEBUG, msg=f"distribution inspect of {image}"):
        data = await client.get_json(f"/distribution/{image}/json", headers=headers)

    try:
        return DistributionInspect.model_validate(data)
    except ValidationError as err:
        raise ResponseDecodeError(response=None, error=err) from err
