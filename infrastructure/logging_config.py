import logging
from typing import Optional

from infrastructure.config import settings


def configure_logging(level: Optional[str] = None) -> None:
    """Install the root handler once, at application start"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=settings.LOG_FORMAT,
    )
