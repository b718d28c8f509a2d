"""Workbook parsing and sheet part resolution.

The workbook part lists each sheet's display name and the relationship id
of its part. By default the part name is derived from the id itself:
``rId3`` loses its three-character prefix and becomes ``sheet3.xml``.
With ``sheet_resolution="relationships"`` the workbook relationships part
is consulted instead, which also handles packages whose sheet parts are
not numbered after their relationship ids.
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath

from xlsx_decoder.config import Settings, get_settings
from xlsx_decoder.models import ParseIssue, ParseReport
from xlsx_decoder.services.archive_reader import read_member
from xlsx_decoder.services.xml_parser import XmlNode, parse_xml
from xlsx_decoder.utils.exceptions import (
    ArchiveError,
    ErrorCode,
    SheetExtractionError,
    WorkbookReadError,
    XmlError,
)
from xlsx_decoder.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SheetDeclaration:
    """A sheet as declared in the workbook part."""

    name: str
    relationship_id: str
    member_name: str


def read_workbook(archive: zipfile.ZipFile, settings: Settings | None = None) -> XmlNode:
    """Read and parse the workbook part.

    Raises:
        WorkbookReadError: If the part is missing, unreadable, malformed,
            or its root element is not ``workbook``.
    """
    settings = settings or get_settings()
    try:
        tree = parse_xml(
            read_member(archive, settings.workbook_member, settings),
            part_name=settings.workbook_member,
        )
    except (ArchiveError, XmlError) as exc:
        raise WorkbookReadError(
            exc.message, document_path=archive.filename, details=dict(exc.details)
        ) from exc
    if tree.name != "workbook":
        raise WorkbookReadError(
            f"unexpected root element <{tree.name}>", document_path=archive.filename
        )
    return tree


def declared_sheets(
    workbook: XmlNode,
    archive: zipfile.ZipFile,
    report: ParseReport | None = None,
    settings: Settings | None = None,
) -> list[SheetDeclaration]:
    """List the sheets of a workbook with the part each one lives in.

    Sheets whose part cannot be determined are recorded on ``report`` and
    left out. When two sheets resolve to the same part or share a display
    name, the first declaration wins.
    """
    settings = settings or get_settings()
    report = report if report is not None else ParseReport()
    part = settings.workbook_member

    sheets = workbook.find("sheets")
    if sheets is None:
        logger.error("Workbook declares no sheets element")
        report.add_issue(
            ParseIssue(
                part=part,
                location="workbook",
                message="Workbook declares no sheets element",
                error_code=ErrorCode.SHEET_EXTRACTION_FAILED.value,
            )
        )
        return []

    targets = None
    if settings.sheet_resolution == "relationships":
        targets = _relationship_targets(archive, settings)

    declarations: list[SheetDeclaration] = []
    seen_members: set[str] = set()
    seen_names: set[str] = set()
    for position, sheet in enumerate(sheets.iter_children("sheet")):
        report.sheets_declared += 1
        location = f"sheets/sheet[{position}]"
        try:
            declaration = _declaration(sheet, location, targets, settings)
            if declaration.name in seen_names:
                raise SheetExtractionError(
                    declaration.name, "duplicate sheet name", part=part
                )
            if declaration.member_name in seen_members:
                raise SheetExtractionError(
                    declaration.name,
                    f"part {declaration.member_name} already used by another sheet",
                    part=part,
                )
        except SheetExtractionError as exc:
            report.sheets_skipped += 1
            report.add_issue(ParseIssue.from_error(exc, part=part, location=location))
            logger.warning(
                "Skipping sheet declaration", location=location, error=exc.message
            )
            continue

        seen_names.add(declaration.name)
        seen_members.add(declaration.member_name)
        declarations.append(declaration)
    return declarations


def resolve_sheets(
    archive: zipfile.ZipFile,
    report: ParseReport | None = None,
    settings: Settings | None = None,
) -> dict[str, XmlNode]:
    """Map each declared sheet name to the parsed tree of its part.

    The result follows workbook declaration order. A sheet whose part is
    missing, unreadable or malformed is skipped and recorded on ``report``;
    the other sheets are still resolved.

    Raises:
        WorkbookReadError: If the workbook part itself cannot be used.
    """
    settings = settings or get_settings()
    report = report if report is not None else ParseReport()

    workbook = read_workbook(archive, settings)
    trees: dict[str, XmlNode] = {}
    for declaration in declared_sheets(workbook, archive, report, settings):
        with LogContext(part=declaration.member_name, sheet=declaration.name):
            try:
                trees[declaration.name] = parse_xml(
                    read_member(archive, declaration.member_name, settings),
                    part_name=declaration.member_name,
                )
            except (ArchiveError, XmlError) as exc:
                error = SheetExtractionError(
                    declaration.name, exc.message, part=declaration.member_name
                )
                report.sheets_skipped += 1
                report.add_issue(
                    ParseIssue.from_error(error, part=declaration.member_name)
                )
                logger.error(
                    "Error reading sheet",
                    sheet=declaration.name,
                    error=exc.message,
                    exc_info=settings.debug,
                )
    return trees


def _declaration(
    sheet: XmlNode,
    location: str,
    targets: dict[str, str] | None,
    settings: Settings,
) -> SheetDeclaration:
    name = sheet.get("name")
    if name is None:
        raise SheetExtractionError(location, "sheet has no name attribute")

    relationship_id = sheet.get("r:id")
    if relationship_id is None:
        found = sheet.attribute_by_local_name("id")
        if found is None:
            raise SheetExtractionError(name, "sheet has no relationship id")
        relationship_id = found[1]

    if targets is not None:
        member_name = targets.get(relationship_id)
        if member_name is None:
            raise SheetExtractionError(
                name, f"relationship {relationship_id} has no target"
            )
        return SheetDeclaration(name, relationship_id, member_name)

    ordinal_text = relationship_id[settings.relationship_id_prefix_length :]
    try:
        ordinal = int(ordinal_text)
    except ValueError:
        raise SheetExtractionError(
            name, f"relationship id {relationship_id!r} has no sheet ordinal"
        ) from None
    return SheetDeclaration(name, relationship_id, settings.sheet_member_name(ordinal))


def _relationship_targets(
    archive: zipfile.ZipFile, settings: Settings
) -> dict[str, str] | None:
    """Relationship ids of the workbook mapped to target base names.

    Returns None, after logging, when the relationships part is unusable;
    the caller then falls back to ordinal resolution.
    """
    try:
        tree = parse_xml(
            read_member(archive, settings.workbook_rels_member, settings),
            part_name=settings.workbook_rels_member,
        )
    except (ArchiveError, XmlError) as exc:
        logger.warning(
            "Workbook relationships unavailable, using sheet ordinals",
            error=exc.message,
        )
        return None

    targets: dict[str, str] = {}
    for relationship in tree.iter_children("Relationship"):
        relationship_id = relationship.get("Id")
        target = relationship.get("Target")
        if relationship_id and target:
            targets[relationship_id] = PurePosixPath(target).name
    return targets
