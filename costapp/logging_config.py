"""Logging setup for the cost app."""
import logging
import sys

_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the `costapp` logger once; repeated calls only adjust the level."""
    logger = logging.getLogger("costapp")
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not any(getattr(h, "_costapp", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._costapp = True
        logger.addHandler(handler)
