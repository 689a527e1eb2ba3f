""" Defines the different exceptions that may arise in the swarm client

All of them carry the context they were raised with as attributes, e.g.

    try:
        ...
    except DockerApiError as err:
        assert err.status_code == 404
"""

from typing import Any

from pydantic.errors import PydanticErrorMixin


class _DefaultDict(dict):
    def __missing__(self, key):
        return f"'{key}=?'"


class SwarmClientErrorMixin(PydanticErrorMixin):
    code: str  # type: ignore[assignment]
    msg_template: str

    def __new__(cls, *_args, **_kwargs):
        if "code" not in cls.__dict__:
            cls.code = cls._get_full_class_name()
        return super().__new__(cls)

    def __init__(self, **ctx: Any) -> None:
        self.__dict__ = ctx
        super().__init__(message=self._build_message(), code=self.code)  # type: ignore[arg-type]

    def __str__(self) -> str:
        return self._build_message()

    def _build_message(self) -> str:
        # NOTE: safe. Does not raise KeyError
        return self.msg_template.format_map(_DefaultDict(**self.__dict__))

    @classmethod
    def _get_full_class_name(cls) -> str:
        relevant_classes = [
            c.__name__
            for c in cls.__mro__[:-1]
            if c.__name__
            not in (
                "PydanticErrorMixin",
                "SwarmClientErrorMixin",
                "Exception",
                "BaseException",
            )
        ]
        return ".".join(reversed(relevant_classes))

    def error_context(self) -> dict[str, Any]:
        """Returns context in which error occurred and stored within the exception"""
        return dict(**self.__dict__)


class SwarmClientError(SwarmClientErrorMixin, Exception):
    msg_template = "Unexpected error in swarm client"


class InvalidImageReferenceError(SwarmClientError, ValueError):
    msg_template = "Invalid image reference '{image}': {reason}"


class DockerConnectionError(SwarmClientError):
    msg_template = "Could not reach docker engine at {url}: {error}"


class DockerApiError(SwarmClientError):
    msg_template = "Docker engine replied with {status_code}: {details}"


class ResponseDecodeError(SwarmClientError):
    """Raised when a reply from the engine cannot be decoded

    The partially built response (if any) is available as `response`
    """

    msg_template = "Could not decode response from docker engine: {error}"


class InvalidRequestError(SwarmClientError):
    msg_template = "Could not build request {method} {url}: {error}"
