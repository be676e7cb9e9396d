"""
Logging configuration.

On Cloud Run, logs go through google-cloud-logging so structured fields
survive. Locally, records are written to stdout and any ``json_fields``
passed via ``extra`` are appended as indented JSON.
"""

import json
import logging
import os
import sys

_logging_configured = False

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("urllib3", "google.auth", "google.cloud.sql.connector")


class LocalFormatter(logging.Formatter):
    """Formatter that renders json_fields from the extra dict."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        json_fields = getattr(record, "json_fields", None)
        if json_fields:
            fields_str = json.dumps(json_fields, indent=2, default=str)
            message = f"{message}\n{fields_str}"

        return message


def setup_logging(service_name: str = "todocal", level: str = "INFO"):
    """
    Configure root logging once per process.

    Args:
        service_name: Name of the service for log identification
        level: Root log level name (e.g. "INFO", "DEBUG")
    """
    global _logging_configured

    if _logging_configured:
        return

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    if os.getenv("K_SERVICE"):
        _setup_cloud_logging(service_name, log_level)
    else:
        _setup_local_logging(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    _logging_configured = True


def _setup_cloud_logging(service_name: str, log_level: int):
    """Route the root logger to Cloud Logging."""
    try:
        import google.cloud.logging

        client = google.cloud.logging.Client()
        client.setup_logging(log_level=log_level)

        logging.info(f"Cloud Logging configured for service: {service_name}")
    except Exception as e:
        _setup_local_logging(log_level)
        logging.warning(f"Failed to setup Cloud Logging, using local logging: {e}")


def _setup_local_logging(log_level: int):
    """Write log records to stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        LocalFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)
