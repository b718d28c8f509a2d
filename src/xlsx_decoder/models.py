"""Dataclasses representing a decoded spreadsheet package."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from xlsx_decoder.utils.exceptions import XlsxDecoderError


class CellType(str, Enum):
    """Kind of value a cell holds.

    Only NUMBER and SHARED_STRING are produced in the default ``binary``
    cell type mode; the others require ``cell_type_mode="typed"``.
    """

    NUMBER = "number"
    SHARED_STRING = "shared_string"
    STRING = "string"
    BOOLEAN = "boolean"
    ERROR = "error"
    DATE = "date"


@dataclass(frozen=True)
class Cell:
    """A single cell value exactly as stored in the sheet part.

    Attributes:
        value: Raw text of the value; for shared strings, the table index.
        cell_type: Kind of value.
        type_code: Raw ``t`` attribute, or None when absent.
        reference: Original ``r`` attribute (e.g. ``B12``).
    """

    value: str
    cell_type: CellType
    type_code: str | None = None
    reference: str | None = None

    @property
    def is_shared_string(self) -> bool:
        return self.cell_type is CellType.SHARED_STRING

    @property
    def shared_string_index(self) -> int:
        """Index of this cell's text in the shared strings table.

        Raises:
            ValueError: If the cell is not a shared string reference or its
                value is not an integer.
        """
        if not self.is_shared_string:
            raise ValueError(
                f"Cell {self.reference or ''} is {self.cell_type.value}, "
                "not a shared string reference"
            )
        return int(self.value)


Row = dict[str, Cell]
"""Cells of a row keyed by column letters ("A", "BC")."""

Sheet = dict[int, Row]
"""Rows of a sheet keyed by the declared 1-based row number."""

SharedStringsTable = dict[int, str]
"""Shared strings keyed by their position in the shared strings part."""


@dataclass(frozen=True)
class ParseIssue:
    """One failure absorbed while decoding a document."""

    part: str
    location: str | None
    message: str
    error_code: str

    @classmethod
    def from_error(
        cls, error: XlsxDecoderError, part: str, location: str | None = None
    ) -> ParseIssue:
        """Build an issue from a caught decoder error."""
        return cls(
            part=part,
            location=location or error.details.get("location"),
            message=error.message,
            error_code=error.error_code.value,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "part": self.part,
            "location": self.location,
            "message": self.message,
            "error_code": self.error_code,
        }


@dataclass
class ParseReport:
    """Summary of what was skipped while decoding a document.

    A document that decodes with issues is still registered; callers use
    the report to detect partially populated documents.
    """

    shared_strings_total: int = 0
    shared_strings_skipped: int = 0
    shared_strings_missing: bool = False
    sheets_declared: int = 0
    sheets_skipped: int = 0
    rows_skipped: int = 0
    cells_skipped: int = 0
    issues: list[ParseIssue] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True when nothing was skipped."""
        return not self.issues

    def add_issue(self, issue: ParseIssue) -> None:
        self.issues.append(issue)

    def to_dict(self) -> dict[str, Any]:
        """Convert the report to a dictionary for logging or serialization."""
        return {
            "shared_strings_total": self.shared_strings_total,
            "shared_strings_skipped": self.shared_strings_skipped,
            "shared_strings_missing": self.shared_strings_missing,
            "sheets_declared": self.sheets_declared,
            "sheets_skipped": self.sheets_skipped,
            "rows_skipped": self.rows_skipped,
            "cells_skipped": self.cells_skipped,
            "is_clean": self.is_clean,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class Document:
    """A decoded package: its shared strings and sheets, plus the report.

    ``sheets`` preserves workbook declaration order.
    """

    path: str
    shared_strings: SharedStringsTable
    sheets: dict[str, Sheet]
    report: ParseReport

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)
