"""
Centralized logging configuration for the application.
"""

import logging
import sys

from quickcafe.config import settings


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Logging level name. Defaults to settings.log_level.
    """
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
