"""Unit tests for pagesheaders.core.logging_config.

Tests cover configuration validation, initialization, sanitization,
and error handling in the logging system.
"""

import json
import logging
import logging.handlers
from pathlib import Path

import pytest
import structlog
from structlog.stdlib import ProcessorFormatter

from pagesheaders.core.logging_config import (
    LoggingConfig,
    TimestampProcessor,
    normalize_event_dict,
    sanitize_log_record,
    setup_logging,
)


@pytest.fixture
def temp_log_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for log files."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


@pytest.fixture
def valid_config(temp_log_dir: Path) -> LoggingConfig:
    """Create a valid logging configuration."""
    return LoggingConfig(
        level="INFO",
        format="json",
        file=str(temp_log_dir / "test.log"),
        max_bytes=1024,
        backup_count=2,
    )


# Test LoggingConfig
def test_logging_config_defaults():
    """Test default values in LoggingConfig."""
    config = LoggingConfig()
    assert config.level == "INFO"
    assert config.console_level is None
    assert config.format == "console"
    assert config.max_bytes == 10 * 1024 * 1024
    assert config.backup_count == 5
    assert config.timezone == "UTC"
    assert "pagesheaders_log.json" in config.file


def test_logging_config_normalizes_case():
    config = LoggingConfig(level="debug", console_level="warning", format="JSON")
    assert config.level == "DEBUG"
    assert config.console_level == "WARNING"
    assert config.format == "json"


def test_logging_config_validation():
    """Test validation of logging configuration values."""
    with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
        LoggingConfig(level="INVALID")

    with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
        LoggingConfig(format="INVALID")

    with pytest.raises(ValueError, match="LOG_MAX_BYTES must be positive"):
        LoggingConfig(max_bytes=0)

    with pytest.raises(ValueError, match="LOG_BACKUP_COUNT must be positive"):
        LoggingConfig(backup_count=0)

    with pytest.raises(ValueError, match="Invalid timezone"):
        LoggingConfig(timezone="Mars/Olympus_Mons")


def test_logging_config_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Test loading configuration from environment variables."""
    env_vars = {
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "json",
        "LOG_FILE": str(tmp_path / "env.log"),
        "LOG_MAX_BYTES": "2048",
        "LOG_BACKUP_COUNT": "3",
        "LOG_TIMEZONE": "Europe/London",
    }
    for name, value in env_vars.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("CONSOLE_LOG_LEVEL", raising=False)

    config = LoggingConfig.from_env()
    assert config.level == "DEBUG"
    assert config.console_level is None
    assert config.format == "json"
    assert config.file == env_vars["LOG_FILE"]
    assert config.max_bytes == 2048
    assert config.backup_count == 3
    assert config.timezone == "Europe/London"


# Test setup_logging
def test_setup_logging_creates_handlers(valid_config: LoggingConfig):
    """Test that setup_logging creates the expected handlers."""
    setup_logging(valid_config)
    root_logger = logging.getLogger()

    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0], logging.handlers.RotatingFileHandler)
    assert root_logger.level == logging.INFO


def test_setup_logging_console_handler(valid_config: LoggingConfig):
    """Test a console level adds a second handler and lowers the root level."""
    valid_config.console_level = "DEBUG"
    setup_logging(valid_config)
    root_logger = logging.getLogger()

    assert len(root_logger.handlers) == 2
    assert any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        for h in root_logger.handlers
    )
    assert all(isinstance(h.formatter, ProcessorFormatter) for h in root_logger.handlers)
    assert root_logger.level == logging.DEBUG


def test_setup_logging_invalid_directory(tmp_path: Path):
    """Test handling of a log directory that cannot be created."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    config = LoggingConfig(file=str(blocker / "dir" / "test.log"))
    with pytest.raises(OSError):
        setup_logging(config)


def test_setup_logging_creates_log_file(valid_config: LoggingConfig):
    """Test that log file is created."""
    setup_logging(valid_config)
    assert Path(valid_config.file).exists()


# Test processors
def test_timestamp_processor_uses_timezone():
    event_dict = TimestampProcessor("Asia/Tokyo")(None, "info", {})
    assert event_dict["timezone"] == "Asia/Tokyo"
    assert event_dict["timezone_offset"] == "+0900"
    assert event_dict["timestamp"].endswith("+09:00")


def test_normalize_event_dict():
    assert normalize_event_dict(None, "WARNING", {"msg": "hello"}) == {
        "level": "warning",
        "event": "hello",
    }
    assert normalize_event_dict(None, "info", {"level": "ERROR", "event": "x"}) == {
        "level": "error",
        "event": "x",
    }


def test_sanitize_log_record_sensitive_keys():
    """Test sanitization of sensitive data in log records."""
    test_cases = [
        (
            {"password": "secret123"},
            {"password": "***REDACTED***"},
        ),
        (
            {"api_key": "abc123", "route": "/*"},
            {"api_key": "***REDACTED***", "route": "/*"},
        ),
        (
            {"auth_token": "xyz789", "level": "INFO"},
            {"auth_token": "***REDACTED***", "level": "INFO"},
        ),
    ]

    for input_dict, expected in test_cases:
        result = sanitize_log_record("test_logger", "info", input_dict)
        assert result == expected


def test_sanitize_log_record_sensitive_patterns():
    """Test sanitization of sensitive patterns in values."""
    test_cases = [
        (
            {"message": "password=secret123"},
            {"message": "***REDACTED***"},
        ),
        (
            {"error": "Failed with token=abc123"},
            {"error": "***REDACTED***"},
        ),
        (
            {"event": "Content-Security-Policy: default-src 'self'"},
            {"event": "Content-Security-Policy: default-src 'self'"},
        ),
    ]

    for input_dict, expected in test_cases:
        result = sanitize_log_record("test_logger", "info", input_dict)
        assert result == expected


def test_sanitize_log_record_nested_content():
    """Test sanitization of nested structures."""
    input_dict = {
        "outer": {"inner": {"password": "secret", "safe": "value"}},
        "message": "test",
    }
    result = sanitize_log_record("test_logger", "info", input_dict)
    assert result["outer"]["inner"]["password"] == "***REDACTED***"
    assert result["outer"]["inner"]["safe"] == "value"
    assert result["message"] == "test"


# Integration tests
def test_logging_output_format(valid_config: LoggingConfig):
    """Test the format of logged output."""
    setup_logging(valid_config)
    logger = structlog.get_logger("test")

    logger.info("Test log message", custom_param="test_value", operation="test")

    with open(valid_config.file, encoding="utf-8") as f:
        log_line = f.readlines()[-1]

    log_entry = json.loads(log_line)
    assert log_entry["event"] == "Test log message"
    assert log_entry["level"] == "info"
    assert log_entry["custom_param"] == "test_value"
    assert log_entry["operation"] == "test"
    assert log_entry["timezone"] == "UTC"
    assert "timestamp" in log_entry


def test_logging_rotation(valid_config: LoggingConfig):
    """Test log file rotation."""
    valid_config.max_bytes = 100
    setup_logging(valid_config)
    logger = structlog.get_logger("test")

    for _ in range(10):
        logger.info("Test message " * 5)

    log_file = Path(valid_config.file)
    assert log_file.exists()
    assert (log_file.parent / f"{log_file.name}.1").exists()


def test_error_logging(valid_config: LoggingConfig):
    """Test error logging with stack traces."""
    setup_logging(valid_config)
    logger = structlog.get_logger("test")

    try:
        raise ValueError("Test error")
    except ValueError:
        logger.error("Error occurred", exc_info=True)

    with open(valid_config.file, encoding="utf-8") as f:
        log_line = f.readlines()[-1]

    log_entry = json.loads(log_line)
    assert log_entry["level"] == "error"
    assert "exception" in log_entry
    assert "ValueError: Test error" in log_entry["exception"]
