import logging
from collections.abc import Callable
from functools import cached_property
from types import UnionType
from typing import Annotated, Any, Final, TypeVar, Union, get_args, get_origin

from pydantic import ValidationInfo, field_validator
from pydantic.fields import FieldInfo
from pydantic_core import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

_logger = logging.getLogger(__name__)

_AUTO_DEFAULT_FACTORY_RESOLVES_TO_NONE_FSTRING: Final[str] = (
    "{settings_cls} could not be created from environs, defaulting to None"
)

NoneType: type = type(None)


def _unwrap_annotation(ann):
    """Peel off Annotated wrappers until reaching the core type."""
    while get_origin(ann) is Annotated:
        ann = get_args(ann)[0]
    return ann


def is_nullable(info: FieldInfo) -> bool:
    """Checks whether a field allows None as a value."""
    ann = _unwrap_annotation(info.annotation)
    origin = get_origin(ann)  # X | None or Optional[X] will return Union

    if origin in (Union, UnionType):
        return any(arg is NoneType or arg is Any for arg in get_args(ann))

    return ann is NoneType or ann is Any


class DefaultFromEnvFactoryError(ValueError):
    def __init__(self, errors):
        super().__init__("Default could not be constructed")
        self.errors = errors


class BaseCustomSettings(BaseSettings):
    """
    - Customized configuration for all settings
    - Sub-settings can be created from env vars with `create_settings_from_env`

    SEE tests for details.
    """

    @field_validator("*", mode="before")
    @classmethod
    def _parse_none(cls, v, info: ValidationInfo):
        # WARNING: In nullable fields, envs equal to null or none are parsed as None !!
        if (
            info.field_name
            and is_nullable(cls.model_fields[info.field_name])
            and isinstance(v, str)
            and v.lower() in ("none",)
        ):
            return None
        return v

    model_config = SettingsConfigDict(
        case_sensitive=True,  # All must be capitalized
        extra="forbid",
        frozen=True,
        validate_default=True,
        ignored_types=(cached_property,),
        env_parse_none_str="null",
    )

    @classmethod
    def create_from_envs(cls, **overrides):
        # Identical to the constructor. More explicit when reading the code
        return cls(**overrides)


_S = TypeVar("_S", bound=BaseCustomSettings)


def create_settings_from_env(
    settings_cls: type[_S], *, nullable: bool = True
) -> Callable[[], _S | None]:
    """Builds a default factory for a sub-settings field

    Usage:
        REGISTRY: RegistrySettings | None = Field(
            default_factory=create_settings_from_env(RegistrySettings)
        )
    """

    def _default_factory() -> _S | None:
        try:
            return settings_cls()

        except ValidationError as err:
            if nullable:
                _logger.debug(
                    _AUTO_DEFAULT_FACTORY_RESOLVES_TO_NONE_FSTRING.format(
                        settings_cls=settings_cls.__name__
                    )
                )
                return None
            _logger.warning("Validation errors=%s", err.errors())
            raise DefaultFromEnvFactoryError(errors=err.errors()) from err

    return _default_factory
