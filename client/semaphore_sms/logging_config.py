"""
Logging configuration for the Semaphore SMS client

The library itself only creates loggers. Applications (and the bundled CLI)
call setup_logging() once at start-up to decide where records go.
"""

import logging
import os
import sys
from datetime import datetime, timezone

PACKAGE_LOGGER_NAME = "semaphore_sms"
API_LOGGER_NAME = "semaphore_sms.api"


def setup_logging(verbose=False, log_file=None):
    """
    Attach a handler to the package logger for command line use.

    Args:
        verbose: Log DEBUG records; otherwise LOG_LEVEL from the environment,
                 WARNING by default
        log_file: Append to this file instead of stderr (default: LOG_FILE)
    """
    level = "DEBUG" if verbose else os.environ.get('LOG_LEVEL', 'WARNING').upper()
    log_file = log_file or os.environ.get('LOG_FILE')

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, level))
    for old in list(package_logger.handlers):
        package_logger.removeHandler(old)
        old.close()

    # stdout carries the JSON responses printed by the CLI
    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    package_logger.addHandler(handler)
    return package_logger


def get_logger(name):
    """Get a logger instance for a specific module."""
    return logging.getLogger(name)


def log_api_event(event_type, method, path, success=True, status=None, error=None, cached=False):
    """
    Log a Semaphore API call with structured information.

    Args:
        event_type: Type of event (e.g., 'api_request', 'api_error')
        method: HTTP method of the call
        path: Endpoint path relative to the base URI
        success: Whether the call succeeded
        status: HTTP status code, if a response was received
        error: Error message if applicable
        cached: Whether the result was served from the cache
    """
    logger = logging.getLogger(API_LOGGER_NAME)

    log_data = {
        'event_type': event_type,
        'method': method,
        'path': path,
        'success': success,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }

    if status is not None:
        log_data['status'] = status
    if cached:
        log_data['cached'] = True
    if error:
        log_data['error'] = error

    # key=value pairs for easy parsing
    log_message = ' '.join([f"{k}={v}" for k, v in log_data.items()])

    if success:
        logger.info(f"API: {log_message}")
    else:
        logger.error(f"API: {log_message}")
