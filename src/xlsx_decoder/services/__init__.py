"""Services decoding spreadsheet packages."""

from xlsx_decoder.services.document_registry import (
    DocumentRegistry,
    get_default_registry,
)

__all__ = ["DocumentRegistry", "get_default_registry"]
