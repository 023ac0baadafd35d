"""Logging configuration.

Library modules only create `logging.getLogger(__name__)` loggers; call
setup_logging() from scripts or notebooks to see their output.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "WGQED_LOG_LEVEL"
LOG_FORMAT = "%(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> int:
    """Configure logging from an explicit level or the environment.

    Control the level via the WGQED_LOG_LEVEL environment variable.

    Examples:
        # Default (WARNING level)
        python run.py

        # Jump-by-jump trajectory output
        WGQED_LOG_LEVEL=DEBUG python run.py

        # Start/end of each evolution
        WGQED_LOG_LEVEL=INFO python run.py

    Returns the numeric level that was applied.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV, "WARNING")).upper()
    numeric = getattr(logging, level_name, logging.WARNING)
    if not isinstance(numeric, int):
        numeric = logging.WARNING

    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("wgqed").setLevel(numeric)
    return numeric
