import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import rich
import typer
from pydantic import ValidationError

from ._meta import PROJECT_NAME, __version__
from .distribution import distribution_inspect
from .docker_api import DockerApiClient
from .errors import ResponseDecodeError, SwarmClientError
from .logging_utils import log_catch, setup_logging
from .models import ServiceCreateOptions, ServiceCreateResponse, ServiceSpec
from .registry_auth import decode_registry_auth
from .services import create_service as create_swarm_service
from .settings import ClientSettings

_logger = logging.getLogger(__name__)

main = typer.Typer(name=PROJECT_NAME)


def _version_callback(value: bool):  # noqa: FBT001
    if value:
        rich.print(__version__)
        raise typer.Exit


@main.callback()
def version(
    ctx: typer.Context,
    *,
    version: bool = (  # noqa: ARG001 # pylint: disable=unused-argument
        typer.Option(
            None,
            "--version",
            callback=_version_callback,
            is_eager=True,
        )
    ),
):
    """current version"""
    assert ctx  # nosec


def _load_settings() -> ClientSettings:
    try:
        settings = ClientSettings.create_from_envs()
    except ValidationError as err:
        typer.secho(f"Invalid settings:\n{err}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from err

    setup_logging(
        log_level=settings.log_level,
        log_format_local_dev_enabled=settings.SWARM_CLIENT_LOG_FORMAT_LOCAL_DEV_ENABLED,
    )
    return settings


def _resolve_registry_auth(
    settings: ClientSettings, registry_auth: str | None
) -> str | None:
    if registry_auth:
        return registry_auth
    if settings.SWARM_CLIENT_REGISTRY:
        _logger.debug(
            "Using registry credentials for %s",
            decode_registry_auth(
                settings.SWARM_CLIENT_REGISTRY.encoded_registry_auth
            ).get("serveraddress"),
        )
        return settings.SWARM_CLIENT_REGISTRY.encoded_registry_auth
    return None


def _print_warnings(response: ServiceCreateResponse) -> None:
    for warning in response.warnings:
        typer.secho(warning, fg=typer.colors.YELLOW, err=True)


@main.command()
def settings(
    as_json: bool = False,  # noqa: FBT001, FBT002
):
    """Resolves settings and prints envfile (secrets are masked)"""
    client_settings = _load_settings()
    if as_json:
        typer.echo(client_settings.model_dump_json(indent=2))
        return

    for name, value in client_settings.model_dump(mode="json").items():
        if value is None or isinstance(value, dict):
            value = json.dumps(value)
        typer.echo(f"{name}={value}")


async def _create_service(
    settings: ClientSettings, service: ServiceSpec, options: ServiceCreateOptions
) -> ServiceCreateResponse:
    async with DockerApiClient.create(settings) as client:
        return await create_swarm_service(client, service, options)


@main.command()
def create_service(
    spec_file: Annotated[
        Path,
        typer.Argument(
            exists=True, dir_okay=False, help="JSON file with the service spec"
        ),
    ],
    query_registry: Annotated[
        bool,
        typer.Option(
            help="pins the image by digest and resolves its platforms via the registry"
        ),
    ] = True,
    registry_auth: Annotated[
        str | None,
        typer.Option(help="base64url-encoded registry credentials"),
    ] = None,
):
    """Creates a swarm service and prints the engine's response"""
    settings = _load_settings()
    try:
        service = ServiceSpec.model_validate_json(spec_file.read_text())
    except ValidationError as err:
        typer.secho(f"Invalid service spec:\n{err}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from err

    options = ServiceCreateOptions(
        encoded_registry_auth=_resolve_registry_auth(settings, registry_auth),
        query_registry=query_registry,
    )

    try:
        with log_catch(_logger):
            response = asyncio.run(_create_service(settings, service, options))
    except ResponseDecodeError as err:
        _print_warnings(err.response)
        typer.secho(f"{err}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from err
    except SwarmClientError as err:
        typer.secho(f"{err}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from err

    _print_warnings(response)
    rich.print_json(response.model_dump_json(by_alias=True))


async def _inspect(
    settings: ClientSettings, image: str, encoded_registry_auth: str | None
):
    async with DockerApiClient.create(settings) as client:
        return await distribution_inspect(client, image, encoded_registry_auth)


@main.command()
def inspect(
    image: Annotated[str, typer.Argument(help="image reference, e.g. nginx:1.25")],
    registry_auth: Annotated[
        str | None,
        typer.Option(help="base64url-encoded registry credentials"),
    ] = None,
):
    """Prints digest and platforms of an image as resolved by the registry"""
    settings = _load_settings()
    try:
        with log_catch(_logger):
            distribution = asyncio.run(
                _inspect(
                    settings, image, _resolve_registry_auth(settings, registry_auth)
                )
            )
    except SwarmClientError as err:
        typer.secho(f"{err}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from err

    rich.print_json(distribution.model_dump_json(by_alias=True, exclude_none=True))
