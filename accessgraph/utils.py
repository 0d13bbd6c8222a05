"""
Shared helpers.
"""
import logging

from accessgraph.core import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger("accessgraph")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger under the accessgraph hierarchy.

    Usage:
        from accessgraph.utils import get_logger

        log = get_logger(__name__)
        log.info("Role created")
    """
    _configure_root()
    if not name.startswith("accessgraph"):
        name = f"accessgraph.{name}"
    return logging.getLogger(name)
