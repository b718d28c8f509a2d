"""xlsx decoder - read cell data out of OOXML spreadsheet packages."""

from xlsx_decoder.models import Cell, CellType, Document, ParseIssue, ParseReport
from xlsx_decoder.services.document_registry import (
    DocumentRegistry,
    get_default_registry,
)
from xlsx_decoder.utils.exceptions import XlsxDecoderError

__all__ = [
    "Cell",
    "CellType",
    "Document",
    "DocumentRegistry",
    "ParseIssue",
    "ParseReport",
    "XlsxDecoderError",
    "get_default_registry",
]
__version__ = "0.1.0"
