"""
Logging utilities for redacting tokens and secrets from logs.

Example:
    from withings_client.utils.logging_utils import redact_sensitive_data
    safe = redact_sensitive_data({'access_token': 'abc', 'action': 'getmeas'})
    # safe == {'access_token': '***REDACTED***', 'action': 'getmeas'}
"""

import json
import logging
from datetime import datetime, timezone

SENSITIVE_KEYS = {'password', 'api_key', 'token', 'secret', 'client_secret', 'access_token', 'refresh_token', 'code'}

REDACTED = '***REDACTED***'

TEXT_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def redact_sensitive_data(obj):
    """
    Recursively redacts sensitive fields in dicts/lists.
    Keys matched (case-insensitive): password, api_key, token, secret, client_secret,
    access_token, refresh_token, code
    """
    if isinstance(obj, dict):
        return {
            k: (REDACTED if str(k).lower() in SENSITIVE_KEYS else redact_sensitive_data(v))
            for k, v in obj.items()
        }
    elif isinstance(obj, list):
        return [redact_sensitive_data(i) for i in obj]
    else:
        return obj


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON with standard fields.
    """
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        # Add extra fields if present
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            log_record.update(redact_sensitive_data(record.extra))
        return json.dumps(log_record)


def setup_logging(level=logging.INFO, fmt='text', file_path=None):
    """
    Set up logging for the client.
    Args:
        level: Logging level name or number (default: INFO)
        fmt: 'text' or 'json'
        file_path: Path to a log file; logs go to stderr when omitted
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)
    # Remove existing handlers
    for h in list(logger.handlers):
        logger.removeHandler(h)
    if file_path:
        handler = logging.FileHandler(file_path)
    else:
        handler = logging.StreamHandler()
    if fmt == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
