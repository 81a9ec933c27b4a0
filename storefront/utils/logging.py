# storefront/utils/logging.py
import logging
import os

from rich.logging import RichHandler


def get_logger(name=None) -> logging.Logger:
    """
    Logger z RichHandlerem, poziom DEBUG gdy ustawiona zmienna DEBUG.
    """
    if name is None:
        name = "storefront"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
