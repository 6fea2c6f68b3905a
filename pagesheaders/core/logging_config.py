"""Centralized logging configuration for PagesHeaders.

Every module logs structured events through structlog. Records are routed to
a rotating JSON log file and, optionally, to a rich console handler.

Environment Variables:
    LOG_LEVEL: File logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO
    CONSOLE_LOG_LEVEL: Console logging level. Unset disables console logging.
    LOG_FORMAT: Output format (json, console). Default: console
    LOG_FILE: Log file path. Default: pagesheaders/logs/pagesheaders_log.json
    LOG_MAX_BYTES: Maximum log file size in bytes. Default: 10485760 (10MB)
    LOG_BACKUP_COUNT: Number of backup files to keep. Default: 5
    LOG_TIMEZONE: Timezone for log timestamps (e.g., UTC, Europe/London). Default: UTC

Example JSON Log:
    {
        "timestamp": "2025-04-30T12:00:00+00:00",
        "level": "warning",
        "event": "No headers configuration found. Skipping _headers generation.",
        "logger": "pagesheaders.core.integration",
        "error_code": "NO_HEADERS_CONFIG",
        "operation": "build_done"
    }
"""

import dataclasses
import enum
import logging
import logging.handlers
import os
import sys
import zoneinfo
from datetime import datetime
from pathlib import Path
from typing import Any, List, MutableMapping, Optional, Set

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.processors import JSONRenderer
from structlog.stdlib import ProcessorFormatter
from structlog.types import Processor

console = Console()

DEFAULT_TIMEZONE = "UTC"


class TimestampProcessor:
    """Timestamp processor bound to the timezone of the active logging config."""

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        self.tz_name = tz_name

    def __call__(self, logger, name, event_dict):
        tz = zoneinfo.ZoneInfo(self.tz_name)
        local_now = datetime.now(zoneinfo.ZoneInfo("UTC")).astimezone(tz)

        event_dict["timestamp"] = local_now.isoformat()
        event_dict["timezone"] = str(tz)
        event_dict["timezone_offset"] = local_now.strftime("%z")
        return event_dict


@dataclasses.dataclass
class LoggingConfig:
    """Centralized logging configuration with validation."""

    VALID_LOG_LEVELS: Set[str] = dataclasses.field(
        default_factory=lambda: {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    )
    VALID_LOG_FORMATS: Set[str] = dataclasses.field(
        default_factory=lambda: {"json", "console"}
    )

    level: str = "INFO"  # File logging level
    console_level: Optional[str] = None  # None = no console logging
    format: str = "console"
    file: str = ""  # Resolved in __post_init__
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    package_name: str = "pagesheaders"
    timezone: str = DEFAULT_TIMEZONE

    def __post_init__(self):
        """Validate and normalize configuration after initialization."""
        self.level = self.level.upper()
        if self.level not in self.VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.level}. Must be one of {self.VALID_LOG_LEVELS}"
            )

        if self.console_level is not None:
            self.console_level = self.console_level.upper()
            if self.console_level not in self.VALID_LOG_LEVELS:
                raise ValueError(
                    f"Invalid console_level: {self.console_level}. Must be one of {self.VALID_LOG_LEVELS}"
                )

        self.format = self.format.lower()
        if self.format not in self.VALID_LOG_FORMATS:
            raise ValueError(
                f"Invalid LOG_FORMAT: {self.format}. Must be one of {self.VALID_LOG_FORMATS}"
            )

        if not self.file:
            package_root = Path(__file__).parent.parent
            self.file = str(package_root / "logs" / f"{self.package_name}_log.json")

        if self.max_bytes <= 0:
            raise ValueError("LOG_MAX_BYTES must be positive")
        if self.backup_count <= 0:
            raise ValueError("LOG_BACKUP_COUNT must be positive")

        try:
            zoneinfo.ZoneInfo(self.timezone)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid timezone: {self.timezone}")

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Create configuration from environment variables with validation."""
        return cls(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            console_level=os.environ.get("CONSOLE_LOG_LEVEL"),
            format=os.environ.get("LOG_FORMAT", "console"),
            file=os.environ.get("LOG_FILE", ""),
            max_bytes=int(os.environ.get("LOG_MAX_BYTES", 10 * 1024 * 1024)),
            backup_count=int(os.environ.get("LOG_BACKUP_COUNT", 5)),
            timezone=os.environ.get("LOG_TIMEZONE", DEFAULT_TIMEZONE),
        )


_timestamp_processor = TimestampProcessor()


class ErrorCodes(str, enum.Enum):
    """Standardized error codes for logging."""

    # File operations
    FILE_PROCESSING_ERROR = "FILE_PROCESSING_ERROR"
    FILE_WRITE_ERROR = "FILE_WRITE_ERROR"

    # Configuration
    INVALID_JSON = "INVALID_JSON"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_HEADERS_CONFIG = "NO_HEADERS_CONFIG"

    # CSP patching
    CSP_PATCH_ERROR = "CSP_PATCH_ERROR"
    HEADER_OVERFLOW = "HEADER_OVERFLOW"


def sanitize_log_record(
    logger: Any, name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Redact sensitive data from log records.

    Args:
        logger: Logger name
        name: Logging method name
        event_dict: Log event dictionary

    Returns:
        Dict: Sanitized log event dictionary
    """
    sensitive_keys = {"password", "token", "secret", "key", "auth"}
    sensitive_patterns = {"password=", "token=", "secret=", "key=", "auth="}

    def redact_value(value: Any, key: str = "") -> Any:
        if any(sensitive in key.lower() for sensitive in sensitive_keys):
            return "***REDACTED***"

        if isinstance(value, dict):
            return {k: redact_value(v, k) for k, v in value.items()}
        elif isinstance(value, (list, tuple)):
            return [redact_value(v) for v in value]
        elif isinstance(value, str):
            if any(pattern in value.lower() for pattern in sensitive_patterns):
                return "***REDACTED***"
            return value
        return value

    return {k: redact_value(v, k) for k, v in event_dict.items()}


def normalize_event_dict(
    logger: Any, name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Normalize the event dictionary for consistent output.

    Args:
        logger: Logger name
        name: Logging method name
        event_dict: Log event dictionary

    Returns:
        Dict: Normalized log event dictionary
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].lower()
    elif name:
        event_dict["level"] = name.lower()

    if "event" not in event_dict:
        if "_" in event_dict:
            event_dict["event"] = event_dict.pop("_")
        elif "msg" in event_dict:
            event_dict["event"] = event_dict.pop("msg")

    return event_dict


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure the logging system with a JSON file handler and optional console handler.

    Args:
        config: Optional logging configuration. If not provided, loads from environment.

    Raises:
        OSError: If log directory creation fails
        PermissionError: If log file creation fails
        ValueError: If configuration validation fails
    """
    try:
        config = config or LoggingConfig.from_env()
        _timestamp_processor.tz_name = config.timezone

        log_dir = os.path.dirname(config.file)
        try:
            os.makedirs(log_dir, mode=0o755, exist_ok=True)
        except (OSError, PermissionError) as e:
            console.print(f"[red]Error creating log directory {log_dir}: {e}[/red]")
            raise

        root_logger = logging.getLogger()
        root_logger.handlers = []

        # Root level is the lowest of file and console levels
        min_level = logging.getLevelName(config.level)
        if config.console_level:
            min_level = min(min_level, logging.getLevelName(config.console_level))
        root_logger.setLevel(min_level)

        processors: List[Processor] = [
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _timestamp_processor,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            normalize_event_dict,
            sanitize_log_record,
        ]

        structlog.configure(
            processors=processors
            + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
            context_class=dict,
        )

        json_formatter = ProcessorFormatter(
            processor=JSONRenderer(sort_keys=True),
            foreign_pre_chain=processors,
        )

        try:
            file_handler = logging.handlers.RotatingFileHandler(
                config.file,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
                mode="a",
            )
            file_handler.setFormatter(json_formatter)
            file_handler.setLevel(config.level)
            root_logger.addHandler(file_handler)
        except (PermissionError, OSError) as e:
            console.print(f"[red]Error creating log file {config.file}: {e}[/red]")
            raise

        if config.console_level is not None:
            console_handler = RichHandler(
                console=console,
                show_time=True,
                show_path=True,
                rich_tracebacks=True,
                level=config.console_level,
            )
            console_handler.setFormatter(
                ProcessorFormatter(
                    processor=structlog.dev.ConsoleRenderer(),
                    foreign_pre_chain=processors,
                )
            )
            root_logger.addHandler(console_handler)

        logger = get_logger(__name__)
        logger.info(
            "Logging system initialized",
            level=config.level,
            console_level=config.console_level,
            format=config.format,
            log_file=config.file,
            max_bytes=config.max_bytes,
            backup_count=config.backup_count,
            timezone=config.timezone,
            operation="setup_logging",
        )

    except Exception as e:
        console.print(f"[red]Failed to initialize logging: {e}[/red]")
        raise


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with the specified name.

    Args:
        name: The name of the logger (typically __name__)

    Returns:
        A configured structlog logger instance
    """
    return structlog.get_logger(name)


try:
    setup_logging()
except Exception as e:
    console.print(f"[red]Critical error during logging setup: {e}[/red]")
    sys.exit(1)
