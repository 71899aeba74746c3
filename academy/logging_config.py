"""
Logging setup shared by the dashboard and the HTTP handlers.
"""

import logging
import os
from typing import Optional

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "twilio.http_client")

_configured = False


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure the root logger once; later calls are no-ops."""
    global _configured
    if _configured:
        return

    level = (log_level or os.getenv("ACADEMY_LOG_LEVEL", "INFO")).upper()
    fmt = log_format or os.getenv("ACADEMY_LOG_FORMAT", "detailed")

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=SIMPLE_FORMAT if fmt == "simple" else DETAILED_FORMAT,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
