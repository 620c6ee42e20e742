import logging
import sys
from datetime import datetime, timezone

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "persona-api"

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("aiosqlite", "passlib", "httpx", "asyncio")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record['level'] = (log_record.get('level') or record.levelname).upper()
        log_record.setdefault('service', SERVICE_NAME)
        log_record['module'] = record.module
        log_record['lineno'] = record.lineno


def setup_logging(log_level_str: str = "INFO"):
    """
    Configures structured JSON logging on the root logger.
    Safe to call more than once; the JSON handler is only added the first time.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    if any(isinstance(h.formatter, CustomJsonFormatter) for h in root_logger.handlers):
        root_logger.debug(f"JSON logging already configured. Level: {logging.getLevelName(log_level)}")
        return

    log_handler = logging.StreamHandler(sys.stdout)
    log_handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
    root_logger.addHandler(log_handler)
    root_logger.info(f"Structured JSON logging configured with level: {logging.getLevelName(log_level)}")
