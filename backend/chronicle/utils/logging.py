# backend/chronicle/utils/logging.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from ..config import Settings, settings

# Create formatters
verbose_formatter = logging.Formatter(
    '\033[1;36m%(asctime)s\033[0m - \033[1;33m%(name)s\033[0m - \033[1;35m%(levelname)s\033[0m [\033[1;34m%(module)s:%(lineno)d\033[0m] - %(message)s'
)
file_formatter = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s [%(module)s:%(lineno)d] - %(message)s'
)

class ChronicleLogger:
    """Custom logger class that protects reserved LogRecord attributes"""
    def __init__(self, name: str):
        self.logger = logging.getLogger(f"chronicle.{name}")

        # List of reserved LogRecord attributes that shouldn't be overwritten
        self.reserved_attrs = {
            'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
            'funcName', 'levelname', 'levelno', 'lineno', 'module', 'msecs',
            'message', 'msg', 'name', 'pathname', 'process', 'processName',
            'relativeCreated', 'stack_info', 'thread', 'threadName', 'taskName'
        }
        self.configure(settings)

    def configure(self, config: Settings):
        """Apply level and handlers from config, replacing any set up before"""
        self.logger.setLevel(config.LOG_LEVEL)
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.setup_handlers(config)

    def setup_handlers(self, config: Settings):
        """Set up file and console handlers"""
        if config.LOG_TO_FILE:
            # File handler with rotation
            config.LOG_DIR.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                config.LOG_DIR / f"{self.logger.name}.log",
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

        # Console handler with colors
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(verbose_formatter)
        self.logger.addHandler(console_handler)

    def _sanitize_extra(self, extra):
        """Sanitize extra fields to avoid conflicts with reserved attributes"""
        if extra is None:
            return None

        sanitized = {}
        for key, value in extra.items():
            if key in self.reserved_attrs:
                safe_key = f"extra_{key}"
                sanitized[safe_key] = value
            else:
                sanitized[key] = value
        return sanitized

    def debug(self, msg, extra=None, exc_info=None):
        self.logger.debug(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def info(self, msg, extra=None, exc_info=None):
        self.logger.info(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def warning(self, msg, extra=None, exc_info=None):
        self.logger.warning(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def error(self, msg, extra=None, exc_info=None):
        self.logger.error(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

    def critical(self, msg, extra=None, exc_info=None):
        self.logger.critical(msg, extra=self._sanitize_extra(extra), exc_info=exc_info)

# Create loggers for different components
api_logger = ChronicleLogger("api")
db_logger = ChronicleLogger("database")
storage_logger = ChronicleLogger("storage")
service_logger = ChronicleLogger("service")


def configure_logging(config: Settings) -> None:
    """Reconfigure every component logger from an explicit settings object"""
    for component_logger in (api_logger, db_logger, storage_logger, service_logger):
        component_logger.configure(config)

# Make loggers available at module level
__all__ = ["api_logger", "db_logger", "storage_logger", "service_logger", "configure_logging"]
