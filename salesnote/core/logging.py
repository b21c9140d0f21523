"""Logging configuration."""
import logging
import sys
from typing import Optional

from salesnote.core.config import settings

QUIET_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure application logging; `level` overrides LOG_LEVEL."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQL statements are logged only on request
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.log_sql else logging.WARNING
    )
    logging.getLogger(__name__).debug(f"[LOGGING] Configured at {level_name}")
