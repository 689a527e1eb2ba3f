""" Package's metadata

"""

from importlib.metadata import distribution
from typing import Final

from packaging.version import Version

_distribution: Final = distribution("swarm-client")

PROJECT_NAME: Final[str] = _distribution.metadata["Name"]
__version__: Final[str] = _distribution.version
VERSION: Final[Version] = Version(__version__)
SUMMARY: Final[str] = _distribution.metadata.get_all("Summary", [""])[-1]
