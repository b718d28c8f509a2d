from __future__ import annotations

import zipfile
from collections.abc import Iterator, Sequence
from pathlib import Path

import pytest

from xlsx_decoder.config import Settings
from xlsx_decoder.utils.logging import clear_context

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
WORKSHEET_REL_TYPE = REL_NS + "/worksheet"


class PackageBuilder:
    """Writes spreadsheet packages part by part into a temporary directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    @staticmethod
    def workbook(sheets: Sequence[tuple[str, str]]) -> str:
        """Workbook part declaring (name, relationship id) pairs."""
        entries = "".join(
            f'<sheet name="{name}" sheetId="{position + 1}" r:id="{rid}"/>'
            for position, (name, rid) in enumerate(sheets)
        )
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
            f"<sheets>{entries}</sheets></workbook>"
        )

    @staticmethod
    def workbook_rels(targets: Sequence[tuple[str, str]]) -> str:
        """Workbook relationships part mapping ids to targets."""
        entries = "".join(
            f'<Relationship Id="{rid}" Type="{WORKSHEET_REL_TYPE}" Target="{target}"/>'
            for rid, target in targets
        )
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f'<Relationships xmlns="{PKG_REL_NS}">{entries}</Relationships>'
        )

    @staticmethod
    def shared_strings(entries: Sequence[str]) -> str:
        """Shared strings part; each entry is the inner XML of an ``si``."""
        items = "".join(f"<si>{entry}</si>" for entry in entries)
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f'<sst xmlns="{MAIN_NS}" count="{len(entries)}" '
            f'uniqueCount="{len(entries)}">{items}</sst>'
        )

    @staticmethod
    def worksheet(rows: str) -> str:
        """Sheet part around the raw XML of its rows."""
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f'<worksheet xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
            f"<sheetData>{rows}</sheetData></worksheet>"
        )

    def write(self, name: str, parts: dict[str, str | bytes]) -> Path:
        """Write a package whose members are ``parts`` (name -> content)."""
        path = self.directory / name
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for member, content in parts.items():
                archive.writestr(member, content)
        return path


@pytest.fixture(autouse=True)
def _clear_log_context() -> Iterator[None]:
    clear_context()
    yield
    clear_context()


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def package_builder(tmp_path: Path) -> PackageBuilder:
    return PackageBuilder(tmp_path)


@pytest.fixture
def test_book(package_builder: PackageBuilder) -> Path:
    """Two-sheet package modelled on a small hand-made workbook.

    Sheet "sheet" holds a header row and two data rows; sheet
    "2sheetOrNot2sheet" holds numbers only.
    """
    b = package_builder
    return b.write(
        "TestBook.xlsx",
        {
            "[Content_Types].xml": "<Types/>",
            "xl/workbook.xml": b.workbook(
                [("sheet", "rId1"), ("2sheetOrNot2sheet", "rId2")]
            ),
            "xl/_rels/workbook.xml.rels": b.workbook_rels(
                [("rId1", "worksheets/sheet1.xml"), ("rId2", "worksheets/sheet2.xml")]
            ),
            "xl/sharedStrings.xml": b.shared_strings(
                [
                    "<t>TestColum</t>",
                    "<t>row 1</t>",
                    '<r><t>Bold</t></r><r><rPr><b/></rPr><t xml:space="preserve"> part</t></r>',
                    "<t>row 2</t>",
                ]
            ),
            "xl/worksheets/sheet1.xml": b.worksheet(
                '<row r="1"><c r="A1" t="s"><v>0</v></c><c r="B1" t="s"><v>2</v></c></row>'
                '<row r="2"><c r="A2" t="s"><v>1</v></c><c r="B2"><v>12.50</v></c></row>'
                '<row r="3"><c r="A3" t="s"><v>3</v></c><c r="B3"><v>7</v></c></row>'
            ),
            "xl/worksheets/sheet2.xml": b.worksheet(
                '<row r="1"><c r="A1"><v>1</v></c><c r="C1"><v>3</v></c></row>'
                '<row r="10"><c r="AB10"><v>1E-3</v></c></row>'
            ),
        },
    )
