""" Parsing of docker image references

A reference is parsed into one of three variants:

- NamedReference: a repository name with an optional tag, e.g. 'nginx:1.25'
- CanonicalReference: a name pinned to a content digest, e.g. 'nginx@sha256:...'
- ImageIdReference: a bare image id or digest, i.e. no repository name

Names are normalized the way the docker engine does it, i.e. 'nginx' resolves to
'docker.io/library/nginx'.
"""

import logging
from typing import Annotated, Final, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from .basic_regex import (
    ANCHORED_DIGEST_RE,
    DOCKER_DIGEST_RE,
    DOCKER_IMAGE_ID_RE,
    DOCKER_REFERENCE_RE,
    NAME_TOTAL_LENGTH_MAX,
)
from .errors import InvalidImageReferenceError

_logger = logging.getLogger(__name__)

DEFAULT_DOMAIN: Final[str] = "docker.io"
_LEGACY_DEFAULT_DOMAIN: Final[str] = "index.docker.io"
_OFFICIAL_REPOSITORY_PREFIX: Final[str] = "library/"

_KNOWN_DIGEST_HEX_LENGTHS: Final[dict[str, int]] = {
    "sha256": 64,
    "sha384": 96,
    "sha512": 128,
}


class _BaseReference(BaseModel):
    model_config = ConfigDict(frozen=True)


class NamedReference(_BaseReference):
    kind: Literal["named"] = "named"
    domain: str
    path: str
    tag: str | None = None

    @property
    def name(self) -> str:
        return f"{self.domain}/{self.path}"

    def with_digest(self, digest: str) -> "CanonicalReference":
        if not ANCHORED_DIGEST_RE.match(digest):
            raise InvalidImageReferenceError(
                image=f"{self}@{digest}", reason="invalid digest format"
            )
        return CanonicalReference(
            domain=self.domain, path=self.path, tag=self.tag, digest=digest
        )

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}" if self.tag else self.name


class CanonicalReference(_BaseReference):
    kind: Literal["canonical"] = "canonical"
    domain: str
    path: str
    tag: str | None = None
    digest: str

    @property
    def name(self) -> str:
        return f"{self.domain}/{self.path}"

    def __str__(self) -> str:
        tag_suffix = f":{self.tag}" if self.tag else ""
        return f"{self.name}{tag_suffix}@{self.digest}"


class ImageIdReference(_BaseReference):
    kind: Literal["image-id"] = "image-id"
    digest: str

    def __str__(self) -> str:
        return self.digest


ImageReference: TypeAlias = Annotated[
    NamedReference | CanonicalReference | ImageIdReference,
    Field(discriminator="kind"),
]


def is_valid_digest(value: str) -> bool:
    """True if value is 'algorithm:encoded' and the encoded part fits the algorithm"""
    match = DOCKER_DIGEST_RE.match(value)
    if match is None:
        return False
    expected_length = _KNOWN_DIGEST_HEX_LENGTHS.get(match["algorithm"])
    if expected_length is None:
        return False
    encoded = match["encoded"]
    return len(encoded) == expected_length and all(
        c in "0123456789abcdef" for c in encoded
    )


def _split_docker_domain(image: str) -> tuple[str, str]:
    first, sep, remainder = image.partition("/")
    if not sep or (
        "." not in first and ":" not in first and first != "localhost"
    ):
        domain, remainder = DEFAULT_DOMAIN, image
    else:
        domain = first

    if domain == _LEGACY_DEFAULT_DOMAIN:
        domain = DEFAULT_DOMAIN
    if domain == DEFAULT_DOMAIN and "/" not in remainder:
        remainder = f"{_OFFICIAL_REPOSITORY_PREFIX}{remainder}"
    return domain, remainder


def parse_image_reference(image: str) -> ImageReference:
    """Parses any image reference, including image ids

    Raises:
        InvalidImageReferenceError: if the reference is malformed
    """
    if not image:
        raise InvalidImageReferenceError(image=image, reason="value is empty")

    if DOCKER_IMAGE_ID_RE.match(image):
        return ImageIdReference(digest=f"sha256:{image}")
    if is_valid_digest(image):
        return ImageIdReference(digest=image)

    domain, remainder = _split_docker_domain(image)
    remote_name = remainder.split("@", maxsplit=1)[0].split(":", maxsplit=1)[0]
    if remote_name.lower() != remote_name:
        raise InvalidImageReferenceError(
            image=image, reason="repository name must be lowercase"
        )

    match = DOCKER_REFERENCE_RE.match(f"{domain}/{remainder}")
    if match is None:
        raise InvalidImageReferenceError(image=image, reason="invalid reference format")

    name = f"{match['domain']}/{match['path']}"
    if len(name) > NAME_TOTAL_LENGTH_MAX:
        raise InvalidImageReferenceError(
            image=image,
            reason=f"repository name must not be more than {NAME_TOTAL_LENGTH_MAX} characters",
        )

    if match["digest"]:
        return CanonicalReference(
            domain=match["domain"],
            path=match["path"],
            tag=match["tag"],
            digest=match["digest"],
        )
    return NamedReference(domain=match["domain"], path=match["path"], tag=match["tag"])


def image_with_digest(image: str, digest: str) -> str | None:
    """Pins image to digest

    Returns None when the image cannot or shall not be rewritten, i.e. if it cannot
    be parsed, if it is an image id or if it already names a digest
    """
    try:
        reference = parse_image_reference(image)
    except InvalidImageReferenceError:
        _logger.debug("Cannot parse %s, not pinning it to a digest", image)
        return None

    match reference:
        case NamedReference():
            try:
                return f"{reference.with_digest(digest)}"
            except InvalidImageReferenceError:
                _logger.debug("Cannot pin %s to invalid digest %s", image, digest)
                return None
        case CanonicalReference() | ImageIdReference():
            return None
