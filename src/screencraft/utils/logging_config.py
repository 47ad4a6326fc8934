"""
Centralized Logging Configuration
=================================

Provides a unified logging setup for the application with proper log
levels, colored console output and rotating file logs.
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional
from logging.handlers import RotatingFileHandler

from colorama import init, Fore, Style

from screencraft.paths import LOGS_DIR

init(autoreset=True)

APP_LOGGER_NAME = "Screencraft"


class ColoredFormatter(logging.Formatter):
    """Formatter with per-level and per-service color coding."""

    def __init__(self, include_function: bool = False, use_colors: bool = True):
        self.include_function = include_function
        self.use_colors = use_colors
        super().__init__()

        self.level_colors = {
            logging.DEBUG: Fore.CYAN,
            logging.INFO: Fore.GREEN,
            logging.WARNING: Fore.YELLOW,
            logging.ERROR: Fore.RED,
            logging.CRITICAL: Fore.RED + Style.BRIGHT
        }

        self.service_colors = {
            'factory': Fore.BLUE,
            'strategies': Fore.MAGENTA,
            'api_client': Fore.CYAN,
            'response_parser': Fore.YELLOW,
            'assembler': Fore.GREEN,
            'design_import': Fore.MAGENTA,
        }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color coding."""
        timestamp = self.formatTime(record, '%H:%M:%S')
        level = record.levelname
        name = self._clean_logger_name(record.name)
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if self.use_colors:
            level_color = self.level_colors.get(record.levelno, "")
            colored_level = f"{level_color}{level:8}{Style.RESET_ALL}"
            colored_name = f"{self._get_service_color(name)}{name:20}{Style.RESET_ALL}"
        else:
            colored_level = f"{level:8}"
            colored_name = f"{name:20}"

        if self.include_function and record.levelno >= logging.WARNING:
            location = f"{record.funcName}:{record.lineno}"
            if self.use_colors:
                location = f"{Fore.WHITE}{Style.DIM}[{location}]{Style.RESET_ALL}"
            else:
                location = f"[{location}]"
            return f"[{timestamp}] {colored_level} {colored_name} {location} {message}"
        return f"[{timestamp}] {colored_level} {colored_name} {message}"

    def _clean_logger_name(self, name: str) -> str:
        """Shorten logger names for readability."""
        replacements = {
            f'{APP_LOGGER_NAME}.': '',
            'screencraft.services.generation.': 'gen.',
            'screencraft.services.': 'svc.',
            'screencraft.routes.': 'route.',
            'screencraft.utils.': 'util.',
            'screencraft.': '',
        }
        for old, new in replacements.items():
            if name.startswith(old):
                name = new + name[len(old):]
                break

        if len(name) > 20:
            name = name[:17] + "..."
        return name

    def _get_service_color(self, service_name: str) -> str:
        name_lower = service_name.lower()
        for service, color in self.service_colors.items():
            if service in name_lower:
                return color
        return Fore.WHITE


class LoggingConfig:
    """Centralized logging configuration for the application."""

    def __init__(self, app_name: str = APP_LOGGER_NAME, log_dir: Optional[Path] = None):
        self.app_name = app_name
        self.log_dir = log_dir or LOGS_DIR
        self.log_level = self._get_log_level()
        self.is_development = os.environ.get('FLASK_ENV', 'development') == 'development'

    def setup_logging(self) -> logging.Logger:
        """Attach console and file handlers to the root logger.

        Only handlers previously attached by this class are replaced, so
        repeated calls are safe and pytest's capture handler survives.
        """
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            if getattr(handler, "_screencraft", False):
                root_logger.removeHandler(handler)
        root_logger.setLevel(self.log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(ColoredFormatter(include_function=self.is_development, use_colors=True))
        console_handler._screencraft = True  # type: ignore[attr-defined]
        root_logger.addHandler(console_handler)

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_dir / "app.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(ColoredFormatter(include_function=True, use_colors=False))
            file_handler._screencraft = True  # type: ignore[attr-defined]
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"File logging disabled: {e}")

        self._configure_specific_loggers()

        app_logger = logging.getLogger(self.app_name)
        app_logger.info(f"Logging configured - Level: {logging.getLevelName(self.log_level)}")
        return app_logger

    def _get_log_level(self) -> int:
        """Get log level from environment or default."""
        level_str = os.environ.get('LOG_LEVEL', 'INFO').upper()
        return getattr(logging, level_str, logging.INFO)

    def _configure_specific_loggers(self):
        """Quiet chatty third-party loggers."""
        for noisy in ('werkzeug', 'aiohttp.access', 'urllib3'):
            logging.getLogger(noisy).setLevel(logging.WARNING)


_logging_config: Optional[LoggingConfig] = None


def get_logging_config() -> LoggingConfig:
    """Get the global logging configuration instance."""
    global _logging_config
    if _logging_config is None:
        _logging_config = LoggingConfig()
    return _logging_config


def setup_application_logging() -> logging.Logger:
    """Setup application logging - call this once at startup."""
    return get_logging_config().setup_logging()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
