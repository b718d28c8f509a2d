"""Decoding pipeline from a package path to a Document."""

from __future__ import annotations

import os
import zipfile

from xlsx_decoder.config import Settings, get_settings
from xlsx_decoder.models import (
    Document,
    ParseIssue,
    ParseReport,
    SharedStringsTable,
    Sheet,
)
from xlsx_decoder.services.archive_reader import open_archive, read_member
from xlsx_decoder.services.shared_strings import build_shared_strings
from xlsx_decoder.services.sheet_extractor import extract_sheet
from xlsx_decoder.services.workbook_resolver import resolve_sheets
from xlsx_decoder.services.xml_parser import parse_xml
from xlsx_decoder.utils.exceptions import (
    ArchiveError,
    ArchiveMemberNotFoundError,
    SheetExtractionError,
    XmlError,
)
from xlsx_decoder.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)


def load_document(
    path: str | os.PathLike[str], settings: Settings | None = None
) -> Document:
    """Open a package, decode its shared strings and sheets, and close it.

    Failures inside the shared strings part, a sheet part, a row or a cell
    are absorbed and recorded on the document's report.

    Raises:
        ArchiveOpenError: If the package cannot be opened.
        WorkbookReadError: If the workbook part cannot be used.
    """
    settings = settings or get_settings()
    document_path = os.fspath(path)
    report = ParseReport()

    with LogContext(document=document_path):
        with timed_operation(logger, "load_document") as metrics:
            with open_archive(document_path) as archive:
                shared_strings = load_shared_strings(archive, report, settings)
                trees = resolve_sheets(archive, report, settings)

            sheets: dict[str, Sheet] = {}
            for name, tree in trees.items():
                with LogContext(sheet=name):
                    try:
                        sheets[name] = extract_sheet(
                            tree, report, settings, part_name=name
                        )
                    except XmlError as exc:
                        error = SheetExtractionError(name, exc.message, part=name)
                        report.sheets_skipped += 1
                        report.add_issue(ParseIssue.from_error(error, part=name))
                        logger.error(
                            "Error extracting sheet", sheet=name, error=exc.message
                        )

            metrics.parts_parsed = len(trees) + 1
            if not report.shared_strings_missing:
                metrics.parts_parsed += 1
            metrics.rows_extracted = sum(len(sheet) for sheet in sheets.values())
            metrics.custom_metrics = {
                "sheets": len(sheets),
                "shared_strings": len(shared_strings),
                "issues": len(report.issues),
            }

        if not report.is_clean:
            logger.warning(
                "Spreadsheet decoded with skipped content",
                issues=len(report.issues),
                sheets_skipped=report.sheets_skipped,
                rows_skipped=report.rows_skipped,
                cells_skipped=report.cells_skipped,
                shared_strings_skipped=report.shared_strings_skipped,
            )

    return Document(
        path=document_path,
        shared_strings=shared_strings,
        sheets=sheets,
        report=report,
    )


def load_shared_strings(
    archive: zipfile.ZipFile,
    report: ParseReport,
    settings: Settings | None = None,
) -> SharedStringsTable:
    """Read the shared strings part into a table.

    A package without the part (a workbook with no text cells) yields an
    empty table. An unreadable or malformed part also yields an empty
    table, with an issue on the report.
    """
    settings = settings or get_settings()
    part = settings.shared_strings_member

    with LogContext(part=part):
        try:
            tree = parse_xml(read_member(archive, part, settings), part_name=part)
            return build_shared_strings(tree, report, settings, part_name=part)
        except ArchiveMemberNotFoundError:
            report.shared_strings_missing = True
            logger.info("Package has no shared strings part")
        except (ArchiveError, XmlError) as exc:
            report.add_issue(ParseIssue.from_error(exc, part=part))
            logger.error(
                "Error reading the shared strings",
                error=exc.message,
                exc_info=settings.debug,
            )
    return {}
