"""
Logging setup

Application modules log through `logging.getLogger(__name__)`. Audit entries
are mirrored to the dedicated "audit" logger with the entry attached as
`extra={"audit": {...}}` so a JSON handler can ship them as-is.
"""
import logging
import sys

from justchiro.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(debug: bool = None) -> None:
    debug = settings.DEBUG if debug is None else debug
    level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("audit").setLevel(logging.INFO)
    # SQL echo is controlled by the engine, keep the logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
