import logging
import sys
from typing import Optional

from .config import ObservabilityConfig, get_config


class _ColoredFormatter(logging.Formatter):
    _COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    _RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelname, '')
        if color:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self._RESET}"
        return super().format(record)


def configure_logging(config: Optional[ObservabilityConfig] = None) -> None:
    """Send travel-ops logs to stdout with the configured level and format."""
    config = config or get_config().observability
    level = getattr(logging, config.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter_cls = _ColoredFormatter if sys.stdout.isatty() else logging.Formatter
    handler.setFormatter(formatter_cls(config.format, datefmt=config.date_format))
    root_logger.addHandler(handler)
