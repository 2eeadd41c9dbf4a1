import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Configure logging for the application.

    Lines are appended to the log file and mirrored to stdout.
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format=log_format,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    if log_file:
        logger.info(f"Logging initialized. Log file: {log_file}")

    return logger
