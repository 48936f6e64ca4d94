# logging_config.py
from __future__ import annotations

import logging
import os
from typing import Optional


def setup_logging(level: Optional[str] = None) -> None:
    """Console logging for the daemon; level from the argument, BT_AUTOSWITCH_LOG_LEVEL, or INFO."""

    effective_level = (level or os.environ.get("BT_AUTOSWITCH_LOG_LEVEL") or "INFO").upper()

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=effective_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        root.setLevel(effective_level)
