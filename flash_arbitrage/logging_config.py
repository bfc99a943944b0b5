"""
Console logging for the flash-arb command.

Usage:
    from flash_arbitrage import logging_config
    logging_config.setup("INFO")
"""

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Client libraries web3 pulls in; request-level chatter stays at WARNING
QUIET_LOGGERS = ("urllib3", "web3", "asyncio")


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return logging.getLevelName(level.upper())
    return level


def setup(level: Union[str, int] = logging.INFO):
    """
    Route every record to stdout with a short HH:MM:SS timestamp.

    Calling it again replaces the previous handler rather than adding one.
    """
    level = _resolve_level(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("flash_arbitrage").setLevel(level)


def setup_minimal():
    """Warnings and errors only."""
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging, including solver search sizes and execution state
    transitions.
    """
    setup(level=logging.DEBUG)
