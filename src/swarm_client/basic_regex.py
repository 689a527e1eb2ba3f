""" Regular expressions for docker image references

SEE https://github.com/distribution/reference/blob/main/regexp.go
"""

import re
from typing import Final

# a single path component of a repository name, e.g. 'library' or 'my_app'
_ALPHA_NUMERIC_RE: Final[str] = r"[a-z0-9]+"
_SEPARATOR_RE: Final[str] = r"(?:[._]|__|[-]+)"
PATH_COMPONENT_RE: Final[str] = rf"{_ALPHA_NUMERIC_RE}(?:{_SEPARATOR_RE}{_ALPHA_NUMERIC_RE})*"

# e.g. 'registry.example.com', 'localhost:5000'
_DOMAIN_COMPONENT_RE: Final[str] = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
DOMAIN_RE: Final[str] = rf"{_DOMAIN_COMPONENT_RE}(?:\.{_DOMAIN_COMPONENT_RE})*(?::[0-9]+)?"

TAG_RE: Final[str] = r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}"

# e.g. 'sha256:6c3c624b58dbbcd3c0dd82b4c53f04194d1247c6eebdaab7c610cf7d66709b3b'
DIGEST_RE: Final[str] = (
    r"[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*[:][0-9a-fA-F]{32,}"
)

NAME_RE: Final[str] = (
    rf"(?:(?P<domain>{DOMAIN_RE})/)?"
    rf"(?P<path>{PATH_COMPONENT_RE}(?:/{PATH_COMPONENT_RE})*)"
)

DOCKER_REFERENCE_RE: Final[re.Pattern] = re.compile(
    rf"^{NAME_RE}(?::(?P<tag>{TAG_RE}))?(?:@(?P<digest>{DIGEST_RE}))?\Z"
)

DOCKER_DIGEST_RE: Final[re.Pattern] = re.compile(
    r"^(?P<algorithm>[a-z0-9]+(?:[.+_-][a-z0-9]+)*):(?P<encoded>[a-zA-Z0-9=_-]+)\Z"
)
ANCHORED_DIGEST_RE: Final[re.Pattern] = re.compile(rf"^{DIGEST_RE}\Z")

# an image id, i.e. the hex part of a sha256 digest
DOCKER_IMAGE_ID_RE: Final[re.Pattern] = re.compile(r"^[a-f0-9]{64}\Z")

NAME_TOTAL_LENGTH_MAX: Final[int] = 255
