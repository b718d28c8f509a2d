"""Shared strings table construction."""

from __future__ import annotations

from xlsx_decoder.config import Settings, get_settings
from xlsx_decoder.models import ParseIssue, ParseReport, SharedStringsTable
from xlsx_decoder.services.xml_parser import XmlNode
from xlsx_decoder.utils.exceptions import ElementNotFoundError, SharedStringEntryError
from xlsx_decoder.utils.logging import get_logger

logger = get_logger(__name__)


def build_shared_strings(
    tree: XmlNode,
    report: ParseReport | None = None,
    settings: Settings | None = None,
    part_name: str = "sharedStrings.xml",
) -> SharedStringsTable:
    """Build the index to text table from a parsed shared strings part.

    Entries are read in document order. A rich text entry is the
    concatenation of its runs' text; a plain entry is its single ``t``.
    Entries that cannot be decoded are logged, recorded on ``report`` and
    left out of the table. With positional indexing they still consume
    their index, so later entries keep the position cells refer to.

    Args:
        tree: Root node of the shared strings part.
        report: Report that receives counters and issues.
        settings: Decoder settings; the process settings when omitted.
        part_name: Member name used in issues.

    Raises:
        ElementNotFoundError: If the root element is not ``sst``.
    """
    settings = settings or get_settings()
    report = report if report is not None else ParseReport()
    if tree.name != "sst":
        raise ElementNotFoundError(tree.name, "sst")

    positional = settings.shared_string_indexing == "positional"
    table: SharedStringsTable = {}
    index = 0
    for position, entry in enumerate(tree.iter_children("si")):
        report.shared_strings_total += 1
        if positional:
            index = position
        try:
            table[index] = _entry_text(entry, index)
        except SharedStringEntryError as exc:
            report.shared_strings_skipped += 1
            report.add_issue(ParseIssue.from_error(exc, part=part_name))
            logger.warning(
                "Skipping shared string entry",
                index=index,
                error=exc.message,
            )
            continue
        if not positional:
            index += 1

    logger.debug(
        "Built shared strings table",
        entries=len(table),
        skipped=report.shared_strings_skipped,
    )
    return table


def _entry_text(entry: XmlNode, index: int) -> str:
    runs = list(entry.iter_children("r"))
    if runs:
        pieces = []
        for run_number, run in enumerate(runs):
            text = run.find("t")
            if text is None:
                raise SharedStringEntryError(index, f"run {run_number} has no text")
            pieces.append(text.text)
        return "".join(pieces)

    text = entry.find("t")
    if text is None:
        raise SharedStringEntryError(index, "entry has neither text nor runs")
    return text.text
