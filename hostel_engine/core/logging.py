"""
Logging Configuration and Utilities

Structured logging for the engine: stdlib handlers with a JSON formatter
from python-json-logger, structlog processors for bound context, and a
small adapter that merges per-call context into ``extra``.
"""

import logging
import logging.handlers
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import structlog
from pythonjsonlogger import jsonlogger

from hostel_engine.config.settings import Settings

# Context variables for the caller of the current unit of work
actor_id: ContextVar[Optional[str]] = ContextVar('actor_id', default=None)
hostel_scope: ContextVar[Optional[str]] = ContextVar('hostel_scope', default=None)

SENSITIVE_KEYS = ('password', 'token', 'secret', 'credential', 'authorization')


class CallerContextProcessor:
    """Add caller context to structlog event dicts"""

    def __init__(self, environment: str):
        self.environment = environment

    def __call__(self, logger, method_name, event_dict):
        uid = actor_id.get()
        if uid:
            event_dict['actor_id'] = uid

        scope = hostel_scope.get()
        if scope:
            event_dict['hostel_scope'] = scope

        event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
        event_dict['service'] = 'hostel-occupancy-engine'
        event_dict['environment'] = self.environment
        return event_dict


class SecretRedactionProcessor:
    """Mask credentials before they reach any renderer"""

    def __call__(self, logger, method_name, event_dict):
        self._sanitize(event_dict)
        return event_dict

    def _sanitize(self, event_dict: Dict[str, Any]) -> None:
        for key in list(event_dict.keys()):
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                event_dict[key] = '[REDACTED]'
            elif isinstance(event_dict[key], dict):
                self._sanitize(event_dict[key])


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter carrying caller context and source location"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        uid = actor_id.get()
        if uid:
            log_record['actor_id'] = uid
        scope = hostel_scope.get()
        if scope:
            log_record['hostel_scope'] = scope

        for key in list(log_record.keys()):
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                log_record[key] = '[REDACTED]'


class LoggingConfig:
    """Centralized logging configuration"""

    @staticmethod
    def configure_structured_logging(settings: Settings) -> None:
        """Configure structured logging with structlog"""
        processors = [
            CallerContextProcessor(settings.ENVIRONMENT),
            SecretRedactionProcessor(),
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if settings.LOG_FORMAT == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.processors.KeyValueRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging(settings: Settings) -> None:
        """Configure standard Python logging"""
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        if settings.LOG_FORMAT == "json":
            formatter: logging.Formatter = CustomJsonFormatter(
                '%(asctime)s %(name)s %(levelname)s %(message)s'
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if settings.LOG_FILE:
            log_path = Path(settings.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        if settings.LOG_SQL_QUERIES:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
        else:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

        logging.getLogger("celery").setLevel(logging.INFO)
        logging.getLogger("redis").setLevel(logging.WARNING)


class LoggerAdapter:
    """Logger adapter with context management"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._context: Dict[str, Any] = {}

    def add_context(self, **kwargs) -> "LoggerAdapter":
        """Add context to all log messages"""
        self._context.update(kwargs)
        return self

    def clear_context(self) -> "LoggerAdapter":
        self._context.clear()
        return self

    def _log(self, level: int, message: str, *args, **kwargs) -> None:
        extra = dict(self._context)
        extra.update(kwargs.get('extra') or {})
        kwargs['extra'] = extra
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        kwargs.setdefault('exc_info', True)
        self._log(logging.ERROR, message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self._log(logging.CRITICAL, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Get configured logger instance.

    Args:
        name: Logger name (defaults to the package logger)

    Returns:
        Logger adapter
    """
    return LoggerAdapter(logging.getLogger(name or 'hostel_engine'))


@contextmanager
def bind_caller(acting_user_id: Optional[str], scope: Optional[str]) -> Iterator[None]:
    """Bind caller identity to every record logged inside the block"""
    actor_token = actor_id.set(acting_user_id)
    scope_token = hostel_scope.set(scope)
    try:
        yield
    finally:
        actor_id.reset(actor_token)
        hostel_scope.reset(scope_token)


def setup_logging(settings: Settings) -> None:
    """Initialize logging configuration"""
    if settings.ENABLE_STRUCTURED_LOGGING:
        LoggingConfig.configure_structured_logging(settings)

    LoggingConfig.configure_standard_logging(settings)

    get_logger(__name__).info("Logging system initialized", extra={
        'log_level': settings.LOG_LEVEL,
        'log_format': settings.LOG_FORMAT,
        'structured_logging': settings.ENABLE_STRUCTURED_LOGGING,
    })


__all__ = [
    'get_logger',
    'setup_logging',
    'bind_caller',
    'LoggerAdapter',
    'LoggingConfig',
    'actor_id',
    'hostel_scope',
]
