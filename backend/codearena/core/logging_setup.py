"""Root logger setup shared by the API process and the standalone worker"""

import logging
from pathlib import Path

from codearena.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(to_file: bool = True) -> None:
    """Send records to stderr and, unless disabled, to the judge log file."""
    handlers = [logging.StreamHandler()]
    if to_file:
        log_file = Path(settings.get_log_file())
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
    # Per-statement engine logging is only wanted with DEBUG on.
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
