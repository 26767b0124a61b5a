# src/socialprice/shared/logging_conf.py
"""
Logging Configuration - Session, Store and Rate-Loop Logging

A running product page logs from a handful of areas: the market session
(intents, accept/sell flow), the entity stores (optimistic writes, rollbacks,
realtime merges), the realtime channel, and the rate loop (provider fetches
and fallbacks). This module sets up the shared handlers for all of them and
lets each area be turned up to DEBUG on its own.

Every record is tagged with the product the process is serving, so the lines
of several product pages writing to one log file can be told apart.

Environment:
- SOCIALPRICE_LOG_STDOUT: "false" to drop the stdout handler (default "true")
- SOCIALPRICE_LOG_DEBUG: comma separated areas logged at DEBUG,
  e.g. "stores,realtime" (see LOG_AREAS)

Files that USE this module:
- socialprice.app (setup_logging function for logging initialization)
- tests.test_logging_conf (unit tests)

Files that this module USES:
- None (pure configuration module)
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s [product=%(product_id)s] %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "socialprice.log"

LOG_AREAS = {
    "session": "socialprice.application.market_session",
    "stores": "socialprice.application.stores",
    "rates": "socialprice.application.rates_service",
    "providers": "socialprice.adapters.providers",
    "backend": "socialprice.adapters.backend.postgrest",
    "realtime": "socialprice.adapters.backend.realtime",
}

# Every rate refresh and backend call goes through requests
QUIET_LOGGERS = ("urllib3", "requests")


class ProductContextFilter(logging.Filter):
    """Stamps product_id on every record that does not carry one."""

    def __init__(self, product_id: Optional[int] = None):
        super().__init__()
        self.product_id = "-" if product_id is None else product_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "product_id"):
            record.product_id = self.product_id
        return True


def debug_areas_from_env() -> list[str]:
    """Known areas named in SOCIALPRICE_LOG_DEBUG, in the order given."""
    raw = os.environ.get("SOCIALPRICE_LOG_DEBUG", "")
    names = [name.strip().lower() for name in raw.split(",") if name.strip()]
    return [name for name in names if name in LOG_AREAS]


def _handler(handler: logging.Handler, context: ProductContextFilter) -> logging.Handler:
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.addFilter(context)
    return handler


def setup_logging(
    level=logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    log_dir: Optional[Union[str, Path]] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    product_id: Optional[int] = None,
) -> None:
    """
    Configure logging for a product page process.

    Args:
        level: Root logging level (default: logging.INFO)
        log_file: Optional path to log file (enables file logging)
        log_dir: Optional directory for log files (file is named socialprice.log)
        max_bytes: Maximum size per log file before rotation (default: 10MB)
        backup_count: Number of backup log files to keep (default: 5)
        product_id: Product served by this process, stamped on every line
    """
    context = ProductContextFilter(product_id)
    handlers = []

    if os.environ.get("SOCIALPRICE_LOG_STDOUT", "true").lower() == "true":
        handlers.append(_handler(logging.StreamHandler(sys.stdout), context))

    log_file_path = None
    if log_file or log_dir:
        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file_path = log_dir / LOG_FILE_NAME
        else:
            log_file_path = Path(log_file)
            log_file_path.parent.mkdir(parents=True, exist_ok=True)

        handlers.append(_handler(
            RotatingFileHandler(log_file_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"),
            context,
        ))

    if not handlers:
        handlers = [_handler(logging.StreamHandler(sys.stdout), context)]

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, level))

    # Areas reset to inherit the root level unless asked for DEBUG
    debug_areas = debug_areas_from_env()
    for area, name in LOG_AREAS.items():
        logging.getLogger(name).setLevel(logging.DEBUG if area in debug_areas else logging.NOTSET)

    logger = logging.getLogger(__name__)
    if debug_areas:
        logger.info("Debug logging for: %s", ", ".join(debug_areas))
    if log_file_path:
        logger.info("Logging configured: file=%s, level=%s", log_file_path, logging.getLevelName(level))
    else:
        logger.info("Logging configured: stdout, level=%s", logging.getLevelName(level))
