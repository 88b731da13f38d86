import logging
import sys

from config.env import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """
    Configure the root logger once per process.
    Module code only ever calls logging.getLogger(__name__).
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel((level or LOG_LEVEL or "INFO").upper())

    # pymongo heartbeat chatter
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    _configured = True
