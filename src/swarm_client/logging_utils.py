"""
This codes originates from this article
    https://medium.com/swlh/add-log-decorators-to-your-python-project-84094f832181
"""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Final, TypeAlias

BOLDYELLOW = "\033[1;33m"
GREEN = "\033[0;32m"
GRAY = "\033[0;37m"
ORANGE = "\033[48;2;255;165;0m"
RED = "\033[0;31m"

NORMAL = "\033[0m"

COLORS = {
    "WARNING": BOLDYELLOW,
    "INFO": GREEN,
    "DEBUG": GRAY,
    "CRITICAL": ORANGE,
    "ERROR": RED,
}


class CustomFormatter(logging.Formatter):
    """Custom Formatter does these 2 things:
    1. Colors the level name in local development mode
    2. Escapes new lines otherwise, so that each record stays in one line
    """

    def __init__(self, fmt: str, *, log_format_local_dev_enabled: bool) -> None:
        super().__init__(fmt)
        self.log_format_local_dev_enabled = log_format_local_dev_enabled

    def format(self, record) -> str:
        if self.log_format_local_dev_enabled:
            levelname = record.levelname
            if levelname in COLORS:
                levelname_color = COLORS[levelname] + levelname + NORMAL
                record.levelname = levelname_color
            return super().format(record)

        return super().format(record).replace("\n", "\\n")


# SEE https://docs.python.org/3/library/logging.html#logrecord-attributes
_DEFAULT_FORMATTING: Final[str] = " | ".join(
    [
        "log_level=%(levelname)s",
        "log_timestamp=%(asctime)s",
        "log_source=%(name)s:%(funcName)s(%(lineno)d)",
        "log_msg=%(message)s",
    ]
)

_LOCAL_FORMATTING: Final[str] = (
    "%(levelname)s: [%(asctime)s/%(processName)s] [%(name)s:%(funcName)s(%(lineno)d)]  -  %(message)s"
)


def setup_logging(*, log_level: int, log_format_local_dev_enabled: bool) -> None:
    """Configures the root logger and formats all its handlers"""
    fmt = _LOCAL_FORMATTING if log_format_local_dev_enabled else _DEFAULT_FORMATTING

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(logging.StreamHandler())
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers:
        handler.setFormatter(
            CustomFormatter(
                fmt, log_format_local_dev_enabled=log_format_local_dev_enabled
            )
        )


@contextmanager
def log_catch(logger: logging.Logger, *, reraise: bool = True) -> Iterator[None]:
    try:
        yield
    except asyncio.CancelledError:
        logger.debug("call was cancelled")
        raise
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unhandled exception:")
        if reraise:
            raise exc from exc


LogLevelInt: TypeAlias = int
LogMessageStr: TypeAlias = str


def _un_capitalize(s: str) -> str:
    return s[:1].lower() + s[1:] if s else ""


@contextmanager
def log_context(
    logger: logging.Logger,
    level: LogLevelInt,
    msg: LogMessageStr,
    *args,
    log_duration: bool = False,
):
    # NOTE: preserves original signature https://docs.python.org/3/library/logging.html#logging.Logger.log
    start = datetime.now()  # noqa: DTZ005
    msg = _un_capitalize(msg.strip())

    log_msg = f"Starting {msg} ..."

    stackelvel = 3  # NOTE: 1 => log_context, 2 => contextlib, 3 => caller
    logger.log(level, log_msg, *args, stacklevel=stackelvel)
    yield
    duration = (
        f" in {(datetime.now() - start).total_seconds()}s"  # noqa: DTZ005
        if log_duration
        else ""
    )
    log_msg = f"Finished {msg}{duration}"
    logger.log(level, log_msg, *args, stacklevel=stackelvel)
