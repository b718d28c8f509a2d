"""Row and cell extraction from a parsed sheet part."""

from __future__ import annotations

import re

from xlsx_decoder.config import Settings, get_settings
from xlsx_decoder.models import Cell, CellType, ParseIssue, ParseReport, Row, Sheet
from xlsx_decoder.services.xml_parser import XmlNode
from xlsx_decoder.utils.exceptions import (
    CellExtractionError,
    ElementNotFoundError,
    RowExtractionError,
)
from xlsx_decoder.utils.logging import get_logger

logger = get_logger(__name__)

_NON_LETTERS = re.compile(r"[^A-Za-z]")

TYPE_CODES: dict[str, CellType] = {
    "n": CellType.NUMBER,
    "s": CellType.SHARED_STRING,
    "str": CellType.STRING,
    "inlineStr": CellType.STRING,
    "b": CellType.BOOLEAN,
    "e": CellType.ERROR,
    "d": CellType.DATE,
}
"""Cell types selected by the ``t`` attribute in typed mode."""


def column_key(reference: str) -> str:
    """Column letters of a cell reference: ``"B12"`` gives ``"B"``."""
    return _NON_LETTERS.sub("", reference)


def extract_sheet(
    tree: XmlNode,
    report: ParseReport | None = None,
    settings: Settings | None = None,
    part_name: str = "sheet",
) -> Sheet:
    """Build the row to column to cell mapping of a sheet part.

    Rows and cells that cannot be decoded are logged, counted on
    ``report`` and skipped; the rest of the sheet is still extracted. A row
    number declared twice keeps its first row; the later one is skipped.

    Raises:
        ElementNotFoundError: If the part has no ``worksheet.sheetData``.
    """
    settings = settings or get_settings()
    report = report if report is not None else ParseReport()
    if tree.name != "worksheet":
        raise ElementNotFoundError(tree.name, "worksheet")
    sheet_data = tree.child("sheetData")

    sheet: Sheet = {}
    for position, row_node in enumerate(sheet_data.iter_children("row")):
        try:
            row_index, row = _extract_row(
                row_node, position, report, settings, part_name
            )
            if row_index in sheet:
                raise RowExtractionError(
                    f"row {row_index} declared again, keeping the first",
                    f"row[{position}]",
                )
        except RowExtractionError as exc:
            report.rows_skipped += 1
            report.add_issue(ParseIssue.from_error(exc, part=part_name))
            logger.warning("Skipping row", location=exc.location, error=exc.message)
            continue

        sheet[row_index] = row
    return sheet


def _extract_row(
    row_node: XmlNode,
    position: int,
    report: ParseReport,
    settings: Settings,
    part_name: str,
) -> tuple[int, Row]:
    raw_index = row_node.get("r")
    if raw_index is None:
        raise RowExtractionError("row has no r attribute", f"row[{position}]")
    try:
        row_index = int(raw_index)
    except ValueError:
        raise RowExtractionError(
            f"row index {raw_index!r} is not a number", f"row[{position}]"
        ) from None

    row: Row = {}
    for cell_position, cell_node in enumerate(row_node.iter_children("c")):
        location = f"row {row_index} c[{cell_position}]"
        try:
            key, cell = extract_cell(cell_node, location, settings)
        except CellExtractionError as exc:
            report.cells_skipped += 1
            report.add_issue(ParseIssue.from_error(exc, part=part_name))
            logger.warning("Skipping cell", location=location, error=exc.message)
            continue
        row[key] = cell
    return row_index, row


def extract_cell(
    cell_node: XmlNode, location: str, settings: Settings | None = None
) -> tuple[str, Cell]:
    """Decode one ``c`` element into its column key and cell.

    Raises:
        CellExtractionError: If the cell has no value, no reference, a
            reference without column letters, or (typed mode) an unknown
            type code.
    """
    settings = settings or get_settings()
    reference = cell_node.get("r")
    if reference is None:
        raise CellExtractionError("cell has no r attribute", location)
    key = column_key(reference)
    if not key:
        raise CellExtractionError(
            f"reference {reference!r} has no column letters", location
        )
    location = reference

    type_code = cell_node.get("t")
    if settings.cell_type_mode == "binary":
        cell_type = CellType.NUMBER if type_code is None else CellType.SHARED_STRING
    elif type_code is None:
        cell_type = CellType.NUMBER
    elif type_code in TYPE_CODES:
        cell_type = TYPE_CODES[type_code]
    else:
        raise CellExtractionError(f"unknown cell type {type_code!r}", location)

    if settings.cell_type_mode == "typed" and type_code == "inlineStr":
        value = _inline_text(cell_node, location)
    else:
        value_node = cell_node.find("v")
        if value_node is None:
            raise CellExtractionError("cell has no value", location)
        value = value_node.text

    return key, Cell(
        value=value, cell_type=cell_type, type_code=type_code, reference=reference
    )


def _inline_text(cell_node: XmlNode, location: str) -> str:
    inline = cell_node.find("is")
    if inline is None:
        raise CellExtractionError("inline string cell has no is element", location)
    runs = list(inline.iter_children("r"))
    if runs:
        texts = (run.find("t") for run in runs)
        return "".join(text.text for text in texts if text is not None)
    text = inline.find("t")
    if text is None:
        raise CellExtractionError("inline string has no text", location)
    return text.text
