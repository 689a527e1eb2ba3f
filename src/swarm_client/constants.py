from typing import Final

DEFAULT_DOCKER_HOST: Final[str] = "unix:///var/run/docker.sock"
DEFAULT_DOCKER_API_VERSION: Final[str] = "1.41"

# NOTE: host used in the url when talking to the engine over a unix socket
UNIX_SOCKET_BASE_URL: Final[str] = "http://docker"

X_REGISTRY_AUTH_HEADER: Final[str] = "X-Registry-Auth"
API_VERSION_HEADER: Final[str] = "version"

SERVICES_CREATE_PATH: Final[str] = "/services/create"
