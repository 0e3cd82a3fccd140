"""
Shared helpers.
"""
import logging
import sys

from rolegate.core import config

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    root = logging.getLogger("rolegate")
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``rolegate`` hierarchy.

    Usage:
        log = get_logger(__name__)
        log.info("Loaded %d roles", len(roles))
    """
    _configure_root()
    if not name.startswith("rolegate"):
        name = f"rolegate.{name}"
    return logging.getLogger(name)
