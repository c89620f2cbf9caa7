"""
Logging configuration for InterviewAce API.

Console logging always; a rotating file log when a log directory is set.
Session payloads carry candidate answers and job descriptions, so anything
logged from a request body goes through sanitize_log_data first.
"""
import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = [
    "password", "token", "secret", "key", "authorization",
    "database_url",
    "cv_data", "job_description", "responses_data",
]

# Free-text fields are cut to this many characters in logs
MAX_LOGGED_TEXT = 200


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs"):
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for interviewace.log; None or "" logs to the console only
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    root.addHandler(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / "interviewace.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        root.addHandler(file_handler)

    # Quieten third-party libraries
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root.debug(f"Logging configured: level={logging.getLevelName(level)}, log_dir={log_dir or '-'}")


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and any(s in key.lower() for s in SENSITIVE_KEYS)


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_log_data(value)
    if isinstance(value, list):
        return [_sanitize_value(item) for item in value]
    if isinstance(value, str) and len(value) > MAX_LOGGED_TEXT:
        return f"{value[:MAX_LOGGED_TEXT]}... ({len(value)} chars)"
    return value


def sanitize_log_data(data: dict) -> dict:
    """
    Sanitize log data to remove sensitive information.

    Nested dictionaries and lists are walked; long strings are truncated.

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized copy with secrets and candidate documents redacted
    """
    return {
        key: REDACTED if _is_sensitive(key) else _sanitize_value(value)
        for key, value in data.items()
    }
