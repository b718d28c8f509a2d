"""Utilities package for the xlsx decoder.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from xlsx_decoder.utils.exceptions import (
    ArchiveError,
    DocumentError,
    ErrorCode,
    ExtractionError,
    XlsxDecoderError,
    XmlError,
)
from xlsx_decoder.utils.logging import (
    LogContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    timed_operation,
)

__all__ = [
    # Exceptions
    "ArchiveError",
    "DocumentError",
    "ErrorCode",
    "ExtractionError",
    "XlsxDecoderError",
    "XmlError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
    "timed_operation",
]
