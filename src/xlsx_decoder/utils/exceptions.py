"""Centralized exception classes for the xlsx decoder.

This module provides a hierarchy of custom exceptions with error codes and
structured error details for consistent error handling throughout the
decoding pipeline.

Exception Hierarchy:
    XlsxDecoderError (base)
    ├── ArchiveError
    │   ├── ArchiveOpenError
    │   ├── ArchiveMemberNotFoundError
    │   ├── ArchiveMetadataError
    │   │   └── MemberTooLargeError
    │   └── ArchiveReadError
    ├── XmlError
    │   ├── XmlParseError
    │   └── XmlLookupError
    │       ├── AttributeNotFoundError
    │       └── ElementNotFoundError
    ├── DocumentError
    │   ├── DocumentNotOpenError
    │   ├── SheetNotFoundError
    │   ├── SharedStringIndexNotFoundError
    │   ├── CellNotFoundError
    │   └── WorkbookReadError
    └── ExtractionError
        ├── SharedStringEntryError
        ├── SheetExtractionError
        ├── RowExtractionError
        └── CellExtractionError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.

Recoverability:
    Extraction errors are raised and caught inside a single part of the
    pipeline and end up as issues on the parse report. Everything else is
    propagated to the caller of the registry.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the package.

    Error codes are grouped by category:
    - E1xxx: Archive (zip container) errors
    - E2xxx: XML errors
    - E3xxx: Document registry errors
    - E4xxx: Extraction errors absorbed while decoding
    - E9xxx: Internal/unexpected errors
    """

    # Archive errors (E1xxx)
    ARCHIVE_OPEN_FAILED = "E1001"
    ARCHIVE_MEMBER_NOT_FOUND = "E1002"
    ARCHIVE_METADATA_INVALID = "E1003"
    ARCHIVE_MEMBER_TOO_LARGE = "E1004"
    ARCHIVE_READ_FAILED = "E1005"

    # XML errors (E2xxx)
    XML_PARSE_FAILED = "E2001"
    XML_ATTRIBUTE_NOT_FOUND = "E2002"
    XML_ELEMENT_NOT_FOUND = "E2003"

    # Document errors (E3xxx)
    DOCUMENT_NOT_OPEN = "E3001"
    SHEET_NOT_FOUND = "E3002"
    SHARED_STRING_NOT_FOUND = "E3003"
    CELL_NOT_FOUND = "E3004"
    WORKBOOK_READ_FAILED = "E3005"

    # Extraction errors (E4xxx)
    EXTRACTION_FAILED = "E4001"
    SHARED_STRING_ENTRY_INVALID = "E4002"
    SHEET_EXTRACTION_FAILED = "E4003"
    ROW_EXTRACTION_FAILED = "E4004"
    CELL_EXTRACTION_FAILED = "E4005"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class XlsxDecoderError(Exception):
    """Base exception for all xlsx decoder errors.

    All custom exceptions in the package inherit from this class.
    It provides:
    - Unique error codes for programmatic handling
    - A recoverability flag separating absorbed from propagated failures
    - Structured error details for logging and debugging

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        recoverable: Whether the pipeline absorbs this error locally.
    """

    recoverable: bool = False

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
            "recoverable": self.recoverable,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Archive Errors (E1xxx)
# =============================================================================


class ArchiveError(XlsxDecoderError):
    """Base class for zip container errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.ARCHIVE_READ_FAILED,
        archive_path: str | None = None,
        member_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with archive location information.

        Args:
            message: Error message.
            error_code: Error code.
            archive_path: Path of the package being read.
            member_name: Name of the member involved, if any.
            details: Additional details.
        """
        details = details or {}
        if archive_path:
            details["archive_path"] = archive_path
        if member_name:
            details["member_name"] = member_name
        super().__init__(message, error_code, details)
        self.archive_path = archive_path
        self.member_name = member_name


class ArchiveOpenError(ArchiveError):
    """Raised when the package cannot be opened as a zip container."""

    def __init__(
        self,
        archive_path: str,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = f"Cannot open spreadsheet archive: {archive_path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message=message,
            error_code=ErrorCode.ARCHIVE_OPEN_FAILED,
            archive_path=archive_path,
            details=details,
        )
        self.reason = reason


class ArchiveMemberNotFoundError(ArchiveError):
    """Raised when no member with the requested base name exists."""

    def __init__(
        self,
        member_name: str,
        archive_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Cannot find member in archive: {member_name}",
            error_code=ErrorCode.ARCHIVE_MEMBER_NOT_FOUND,
            archive_path=archive_path,
            member_name=member_name,
            details=details,
        )


class ArchiveMetadataError(ArchiveError):
    """Raised when a member's name or size metadata is invalid."""

    def __init__(
        self,
        message: str,
        member_name: str | None = None,
        archive_path: str | None = None,
        error_code: ErrorCode = ErrorCode.ARCHIVE_METADATA_INVALID,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            archive_path=archive_path,
            member_name=member_name,
            details=details,
        )


class MemberTooLargeError(ArchiveMetadataError):
    """Raised when a member's declared size exceeds the configured limit."""

    def __init__(
        self,
        member_name: str,
        member_size: int,
        max_size: int,
        archive_path: str | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            member_name: Name of the oversized member.
            member_size: Declared uncompressed size in bytes.
            max_size: Maximum allowed size in bytes.
            archive_path: Optional package path.
        """
        details = {"member_size_bytes": member_size, "max_size_bytes": max_size}
        super().__init__(
            message=(
                f"Member {member_name} uncompressed size ({member_size} bytes) "
                f"exceeds maximum allowed size ({max_size} bytes)"
            ),
            member_name=member_name,
            archive_path=archive_path,
            error_code=ErrorCode.ARCHIVE_MEMBER_TOO_LARGE,
            details=details,
        )
        self.member_size = member_size
        self.max_size = max_size


class ArchiveReadError(ArchiveError):
    """Raised when a member cannot be fully decompressed."""

    def __init__(
        self,
        member_name: str,
        reason: str | None = None,
        archive_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = f"Error reading member {member_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            error_code=ErrorCode.ARCHIVE_READ_FAILED,
            archive_path=archive_path,
            member_name=member_name,
            details=details,
        )
        self.reason = reason


# =============================================================================
# XML Errors (E2xxx)
# =============================================================================


class XmlError(XlsxDecoderError):
    """Base class for XML errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.XML_PARSE_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class XmlParseError(XmlError):
    """Raised when a part is not well-formed (or not safe) XML.

    Attributes:
        part_name: Name of the archive member being parsed, if known.
        line: 1-based line of the error, if reported by the parser.
        column: 0-based column of the error, if reported by the parser.
    """

    def __init__(
        self,
        reason: str,
        part_name: str | None = None,
        line: int | None = None,
        column: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        location = ""
        if part_name:
            details["part_name"] = part_name
            location = f" in {part_name}"
        if line is not None:
            details["line"] = line
            location = f"{location} at line {line}"
            if column is not None:
                details["column"] = column
                location = f"{location}, column {column}"
        super().__init__(
            message=f"Error parsing XML{location}: {reason}",
            error_code=ErrorCode.XML_PARSE_FAILED,
            details=details,
        )
        self.part_name = part_name
        self.line = line
        self.column = column


class XmlLookupError(XmlError):
    """Base class for structural lookups that miss in a parsed tree."""


class AttributeNotFoundError(XmlLookupError):
    """Raised when a node does not carry the requested attribute."""

    def __init__(self, node_name: str, attribute: str) -> None:
        super().__init__(
            message=f"Attribute '{attribute}' not found on <{node_name}>",
            error_code=ErrorCode.XML_ATTRIBUTE_NOT_FOUND,
            details={"node": node_name, "attribute": attribute},
        )
        self.node_name = node_name
        self.attribute = attribute


class ElementNotFoundError(XmlLookupError):
    """Raised when a child path does not exist below a node."""

    def __init__(self, node_name: str, path: str) -> None:
        super().__init__(
            message=f"Element '{path}' not found below <{node_name}>",
            error_code=ErrorCode.XML_ELEMENT_NOT_FOUND,
            details={"node": node_name, "path": path},
        )
        self.node_name = node_name
        self.path = path


# =============================================================================
# Document Errors (E3xxx)
# =============================================================================


class DocumentError(XlsxDecoderError):
    """Base class for registry lookups and document-level failures."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        document_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if document_path:
            details["document_path"] = document_path
        super().__init__(message, error_code, details)
        self.document_path = document_path


class DocumentNotOpenError(DocumentError):
    """Raised when querying a path that was never opened or was closed."""

    def __init__(self, document_path: str) -> None:
        super().__init__(
            message=f"Spreadsheet is not open: {document_path}",
            error_code=ErrorCode.DOCUMENT_NOT_OPEN,
            document_path=document_path,
        )


class SheetNotFoundError(DocumentError):
    """Raised when an open document has no sheet with the given name."""

    def __init__(self, document_path: str, sheet_name: str) -> None:
        super().__init__(
            message=f'Sheet "{sheet_name}" not found in {document_path}',
            error_code=ErrorCode.SHEET_NOT_FOUND,
            document_path=document_path,
            details={"sheet_name": sheet_name},
        )
        self.sheet_name = sheet_name


class SharedStringIndexNotFoundError(DocumentError):
    """Raised when an open document has no shared string at an index."""

    def __init__(self, document_path: str, index: int | str) -> None:
        super().__init__(
            message=(
                f"Shared string with index {index!r} not found in {document_path}"
            ),
            error_code=ErrorCode.SHARED_STRING_NOT_FOUND,
            document_path=document_path,
            details={"index": index},
        )
        self.index = index


class CellNotFoundError(DocumentError):
    """Raised when a sheet has no cell at the requested row and column."""

    def __init__(
        self, document_path: str, sheet_name: str, row: int, column: str
    ) -> None:
        super().__init__(
            message=(
                f'Cell {column}{row} not found in sheet "{sheet_name}" '
                f"of {document_path}"
            ),
            error_code=ErrorCode.CELL_NOT_FOUND,
            document_path=document_path,
            details={"sheet_name": sheet_name, "row": row, "column": column},
        )
        self.sheet_name = sheet_name
        self.row = row
        self.column = column


class WorkbookReadError(DocumentError):
    """Raised when the workbook part is missing, unreadable or malformed."""

    def __init__(
        self,
        reason: str,
        document_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Error reading the workbook: {reason}",
            error_code=ErrorCode.WORKBOOK_READ_FAILED,
            document_path=document_path,
            details=details,
        )
        self.reason = reason


# =============================================================================
# Extraction Errors (E4xxx)
# =============================================================================


class ExtractionError(XlsxDecoderError):
    """Base class for failures absorbed while decoding a part.

    These are caught at the scope of a single shared string, sheet, row
    or cell, logged, and recorded on the parse report.
    """

    recoverable: bool = True

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTRACTION_FAILED,
        part: str | None = None,
        location: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if part:
            details["part"] = part
        if location:
            details["location"] = location
        super().__init__(message, error_code, details)
        self.part = part
        self.location = location


class SharedStringEntryError(ExtractionError):
    """Raised when a single shared-strings entry cannot be decoded."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(
            message=f"Error decoding the shared string at index {index}: {reason}",
            error_code=ErrorCode.SHARED_STRING_ENTRY_INVALID,
            location=f"si[{index}]",
            details={"index": index},
        )
        self.index = index


class SheetExtractionError(ExtractionError):
    """Raised when a whole sheet part cannot be decoded."""

    def __init__(self, sheet_name: str, reason: str, part: str | None = None) -> None:
        super().__init__(
            message=f'Error decoding sheet "{sheet_name}": {reason}',
            error_code=ErrorCode.SHEET_EXTRACTION_FAILED,
            part=part,
            location=sheet_name,
        )
        self.sheet_name = sheet_name


class RowExtractionError(ExtractionError):
    """Raised when a row element cannot be decoded."""

    def __init__(self, reason: str, location: str) -> None:
        super().__init__(
            message=f"Error decoding row: {reason}",
            error_code=ErrorCode.ROW_EXTRACTION_FAILED,
            location=location,
        )


class CellExtractionError(ExtractionError):
    """Raised when a cell element cannot be decoded."""

    def __init__(self, reason: str, location: str) -> None:
        super().__init__(
            message=f"Error decoding cell: {reason}",
            error_code=ErrorCode.CELL_EXTRACTION_FAILED,
            location=location,
        )
