from ._meta import __version__
from .distribution import distribution_inspect
from .docker_api import DockerApiClient
from .image_reference import image_with_digest, parse_image_reference
from .models import (
    DistributionInspect,
    Placement,
    Platform,
    ServiceCreateOptions,
    ServiceCreateResponse,
    ServiceSpec,
)
from .registry_auth import encode_registry_auth
from .services import create_service, digest_warning, update_service_platforms

__all__: tuple[str, ...] = (
    "__version__",
    "create_service",
    "digest_warning",
    "distribution_inspect",
    "DistributionInspect",
    "DockerApiClient",
    "encode_registry_auth",
    "image_with_digest",
    "parse_image_reference",
    "Placement",
    "Platform",
    "ServiceCreateOptions",
    "ServiceCreateResponse",
    "ServiceSpec",
    "update_service_platforms",
)
