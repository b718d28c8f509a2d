"""Thread-safe cache of decoded spreadsheet documents.

A registry keeps one decoded Document per file path. A single lock
serializes every operation, decoding included, so a slow ``open`` blocks
all other callers of the same registry until it completes. Independent
registries share nothing; ``get_default_registry`` provides a process-wide
instance for callers that want one.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from functools import lru_cache

import pandas as pd

from xlsx_decoder.config import Settings, get_settings
from xlsx_decoder.models import Cell, Document, ParseReport, Sheet
from xlsx_decoder.services.document_loader import load_document
from xlsx_decoder.services.frame_export import sheet_to_frame
from xlsx_decoder.utils.exceptions import (
    CellNotFoundError,
    DocumentNotOpenError,
    SharedStringIndexNotFoundError,
    SheetNotFoundError,
)
from xlsx_decoder.utils.logging import get_logger

logger = get_logger(__name__)

PathLike = str | os.PathLike[str]
DocumentLoader = Callable[[str, Settings], Document]


class DocumentRegistry:
    """Open, query and close spreadsheet documents by path."""

    def __init__(
        self,
        settings: Settings | None = None,
        loader: DocumentLoader = load_document,
    ) -> None:
        """Initialize an empty registry.

        Args:
            settings: Decoder settings; the process settings when omitted.
            loader: Function decoding a path into a Document.
        """
        self._settings = settings or get_settings()
        self._loader = loader
        self._lock = threading.Lock()
        self._documents: dict[str, Document] = {}
        logger.debug("Created spreadsheet registry", **self._settings.to_safe_dict())

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self, path: PathLike) -> ParseReport:
        """Decode a package and register it under its path.

        Opening a path that is already registered does nothing and returns
        the report of the existing document. When decoding fails nothing is
        registered and documents under other paths are untouched.

        Returns:
            The document's parse report.

        Raises:
            ArchiveOpenError: If the package cannot be opened.
            WorkbookReadError: If the workbook part cannot be used.
        """
        key = os.fspath(path)
        with self._lock:
            existing = self._documents.get(key)
            if existing is not None:
                logger.debug("Spreadsheet already open", document=key)
                return existing.report

            document = self._loader(key, self._settings)
            self._documents[key] = document
            logger.info(
                "Opened spreadsheet",
                document=key,
                sheets=len(document.sheets),
                shared_strings=len(document.shared_strings),
            )
            return document.report

    def close(self, path: PathLike) -> None:
        """Discard a document; closing an unknown path does nothing."""
        key = os.fspath(path)
        with self._lock:
            if self._documents.pop(key, None) is not None:
                logger.info("Closed spreadsheet", document=key)

    def clear(self) -> None:
        """Discard every document."""
        with self._lock:
            self._documents.clear()

    def is_open(self, path: PathLike) -> bool:
        with self._lock:
            return os.fspath(path) in self._documents

    def open_paths(self) -> list[str]:
        """Paths of all registered documents, in opening order."""
        with self._lock:
            return list(self._documents)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_sheet(self, path: PathLike, sheet_name: str) -> Sheet:
        """Return a copy of a sheet of an open document.

        Raises:
            DocumentNotOpenError: If the path is not registered.
            SheetNotFoundError: If the document has no such sheet.
        """
        with self._lock:
            sheet = self._sheet(os.fspath(path), sheet_name)
            return {number: dict(row) for number, row in sheet.items()}

    def get_shared_string(self, path: PathLike, index: int) -> str:
        """Return the shared string at an index of an open document.

        Raises:
            DocumentNotOpenError: If the path is not registered.
            SharedStringIndexNotFoundError: If the table has no such index.
        """
        key = os.fspath(path)
        with self._lock:
            return self._shared_string(self._document(key), index)

    def get_sheet_names(self, path: PathLike) -> list[str]:
        """Return sheet names of an open document in workbook order.

        Raises:
            DocumentNotOpenError: If the path is not registered.
        """
        with self._lock:
            return self._document(os.fspath(path)).sheet_names

    def get_report(self, path: PathLike) -> ParseReport:
        """Return the parse report of an open document.

        Raises:
            DocumentNotOpenError: If the path is not registered.
        """
        with self._lock:
            return self._document(os.fspath(path)).report

    def get_cell_text(
        self, path: PathLike, sheet_name: str, row: int, column: str
    ) -> str:
        """Return a cell's text, resolving shared string references.

        Only cells typed ``t="s"`` are looked up in the shared strings table;
        booleans, formula strings, errors and numbers are returned as stored.

        Raises:
            DocumentNotOpenError: If the path is not registered.
            SheetNotFoundError: If the document has no such sheet.
            CellNotFoundError: If the sheet has no cell at that position.
            SharedStringIndexNotFoundError: If the referenced string is missing.
        """
        key = os.fspath(path)
        with self._lock:
            document = self._document(key)
            sheet = self._sheet(key, sheet_name)
            cell = sheet.get(row, {}).get(column)
            if cell is None:
                raise CellNotFoundError(key, sheet_name, row, column)
            return self._cell_text(document, cell)

    def get_sheet_frame(
        self, path: PathLike, sheet_name: str, resolve_strings: bool = True
    ) -> pd.DataFrame:
        """Return a sheet as a DataFrame indexed by row number.

        Args:
            path: Path of an open document.
            sheet_name: Sheet to export.
            resolve_strings: Replace ``t="s"`` references by their text; other
                values stay as stored.

        Raises:
            DocumentNotOpenError: If the path is not registered.
            SheetNotFoundError: If the document has no such sheet.
            SharedStringIndexNotFoundError: If a referenced string is missing.
        """
        key = os.fspath(path)
        with self._lock:
            document = self._document(key)
            sheet = self._sheet(key, sheet_name)
            if not resolve_strings:
                return sheet_to_frame(sheet)
            return sheet_to_frame(sheet, lambda cell: self._cell_text(document, cell))

    # ------------------------------------------------------------------ #
    # Internal helpers (lock held by caller)
    # ------------------------------------------------------------------ #

    def _document(self, key: str) -> Document:
        document = self._documents.get(key)
        if document is None:
            raise DocumentNotOpenError(key)
        return document

    def _sheet(self, key: str, sheet_name: str) -> Sheet:
        sheets = self._document(key).sheets
        if sheet_name not in sheets:
            raise SheetNotFoundError(key, sheet_name)
        return sheets[sheet_name]

    @staticmethod
    def _shared_string(document: Document, index: int) -> str:
        try:
            return document.shared_strings[index]
        except KeyError:
            raise SharedStringIndexNotFoundError(document.path, index) from None

    def _cell_text(self, document: Document, cell: Cell) -> str:
        # Only t="s" indexes the table; b, str, e and others hold their value.
        if cell.type_code != "s":
            return cell.value
        try:
            index = int(cell.value)
        except ValueError:
            raise SharedStringIndexNotFoundError(document.path, cell.value) from None
        return self._shared_string(document, index)


@lru_cache(maxsize=1)
def get_default_registry() -> DocumentRegistry:
    """Get the process-wide registry, created on first use."""
    return DocumentRegistry()
