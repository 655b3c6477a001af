from __future__ import annotations

import logging
import sys
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# The OpenAI SDK logs every HTTP round trip through httpx at INFO
_CHATTY_LOGGERS = ("httpx", "openai")


def setup_logging(level: LogLevel = "INFO") -> None:
    """
    Configure the console logger used by the CLI.
    """
    numeric = getattr(logging, level)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,  # replace handlers installed by an earlier call
    )

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))
