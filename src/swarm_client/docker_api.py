import json
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx

from .constants import UNIX_SOCKET_BASE_URL
from .errors import (
    DockerApiError,
    DockerConnectionError,
    InvalidRequestError,
    ResponseDecodeError,
)
from .settings import ClientSettings

_logger = logging.getLogger(__name__)


def create_transport(docker_host: str) -> tuple[httpx.AsyncBaseTransport, str]:
    """Returns the transport and the base url to reach the engine at docker_host

    e.g. 'unix:///var/run/docker.sock', 'tcp://127.0.0.1:2375' or 'https://manager:2376'
    """
    if docker_host.startswith("unix://"):
        socket_path = docker_host.removeprefix("unix://")
        return httpx.AsyncHTTPTransport(uds=socket_path), UNIX_SOCKET_BASE_URL
    if docker_host.startswith("tcp://"):
        return httpx.AsyncHTTPTransport(), f"http://{docker_host.removeprefix('tcp://')}"
    return httpx.AsyncHTTPTransport(), docker_host.rstrip("/")


def _get_error_message(response: httpx.Response) -> str:
    # NOTE: the engine replies errors as {"message": "..."}
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text
    if isinstance(payload, dict) and "message" in payload:
        return f"{payload['message']}"
    return response.text


async def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    await response.aread()
    raise DockerApiError(
        status_code=response.status_code,
        details=_get_error_message(response),
        method=response.request.method,
        url=f"{response.request.url}",
    )


class DockerApiClient:
    """Thin client on top of the docker engine REST API

    Every path is versioned, i.e. '/services/create' is requested
    as '/v1.41/services/create'
    """

    def __init__(self, client: httpx.AsyncClient, *, api_version: str) -> None:
        self._client = client
        self._api_version = api_version

    @classmethod
    def create(cls, settings: ClientSettings) -> "DockerApiClient":
        transport, base_url = create_transport(settings.SWARM_CLIENT_DOCKER_HOST)
        return cls(
            httpx.AsyncClient(
                base_url=base_url,
                transport=transport,
                timeout=httpx.Timeout(settings.SWARM_CLIENT_REQUEST_TIMEOUT),
            ),
            api_version=settings.SWARM_CLIENT_API_VERSION,
        )

    @property
    def api_version(self) -> str:
        return self._api_version

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def _versioned(self, path: str) -> str:
        return f"/v{self._api_version}/{path.lstrip('/')}"

    def _build_request(self, method: str, path: str, **kwargs) -> httpx.Request:
        try:
            return self._client.build_request(method, self._versioned(path), **kwargs)
        except httpx.InvalidURL as err:
            raise InvalidRequestError(method=method, url=path, error=err) from err

    async def _send(
        self, request: httpx.Request, *, stream: bool = False
    ) -> httpx.Response:
        try:
            return await self._client.send(request, stream=stream)
        except httpx.TransportError as err:
            raise DockerConnectionError(url=f"{request.url}", error=err) from err

    @asynccontextmanager
    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[httpx.Response]:
        """Posts to the engine and yields the streamed response

        The response is closed when leaving the context, also on errors

        Raises:
            InvalidRequestError: path cannot be sent as an url
            DockerConnectionError: engine is not reachable
            DockerApiError: engine replied with an error status
        """
        request = self._build_request("POST", path, json=json, headers=headers)
        _logger.debug("%s %s", request.method, request.url)
        response = await self._send(request, stream=True)
        try:
            await _raise_for_status(response)
            yield response
        finally:
            await response.aclose()

    async def get_json(
        self, path: str, *, headers: Mapping[str, str] | None = None
    ) -> Any:
        """
        Raises:
            InvalidRequestError: path cannot be sent as an url
            DockerConnectionError: engine is not reachable
            DockerApiError: engine replied with an error status
            ResponseDecodeError: reply is not json
        """
        request = self._build_request("GET", path, headers=headers)
        _logger.debug("%s %s", request.method, request.url)
        response = await self._send(request)
        await _raise_for_status(response)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as err:
            raise ResponseDecodeError(response=None, error=err) from err

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DockerApiClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
