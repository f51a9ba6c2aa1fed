from __future__ import annotations

import logging
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the project log format on the root logger.

    Noisy third-party loggers (selenium, urllib3) are held at WARNING so tier
    failures stay readable.
    """
    logging.basicConfig(level=(level or "INFO").upper(), format=LOG_FORMAT)
    for name in ("selenium", "urllib3", "scrapy"):
        logging.getLogger(name).setLevel(logging.WARNING)
