"""Configuration management for the xlsx decoder.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
XLSX_DECODER_ prefix, or via a .env file in the working directory.

Environment Variables:
    XLSX_DECODER_LOG_LEVEL: Logging level (default: INFO)
    XLSX_DECODER_DEBUG: Enable debug mode (default: false)
    XLSX_DECODER_MAX_MEMBER_SIZE_MB: Largest member that will be decompressed
        (default: 256)
    XLSX_DECODER_SHARED_STRINGS_MEMBER: Shared strings part name
        (default: sharedStrings.xml)
    XLSX_DECODER_WORKBOOK_MEMBER: Workbook part name (default: workbook.xml)
    XLSX_DECODER_WORKBOOK_RELS_MEMBER: Workbook relationships part name
        (default: workbook.xml.rels)
    XLSX_DECODER_SHEET_MEMBER_TEMPLATE: Sheet part name template
        (default: sheet{ordinal}.xml)
    XLSX_DECODER_RELATIONSHIP_ID_PREFIX_LENGTH: Characters stripped from a
        relationship id before reading the sheet ordinal (default: 3)
    XLSX_DECODER_SHARED_STRING_INDEXING: positional or compact
        (default: positional)
    XLSX_DECODER_SHEET_RESOLUTION: ordinal or relationships (default: ordinal)
    XLSX_DECODER_CELL_TYPE_MODE: binary or typed (default: binary)
"""

import logging
from functools import lru_cache
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SharedStringIndexing = Literal["positional", "compact"]
SheetResolution = Literal["ordinal", "relationships"]
CellTypeMode = Literal["binary", "typed"]


class Settings(BaseSettings):
    """Decoder settings loaded from environment variables.

    Example .env file:
        XLSX_DECODER_LOG_LEVEL=DEBUG
        XLSX_DECODER_SHEET_RESOLUTION=relationships
    """

    model_config = SettingsConfigDict(
        env_prefix="XLSX_DECODER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Log every absorbed failure with its traceback."""

    # =========================================================================
    # Archive Settings
    # =========================================================================

    max_member_size_mb: int = 256
    """Largest declared uncompressed member size that will be read."""

    shared_strings_member: str = "sharedStrings.xml"
    """Base name of the shared strings part."""

    workbook_member: str = "workbook.xml"
    """Base name of the workbook part."""

    workbook_rels_member: str = "workbook.xml.rels"
    """Base name of the workbook relationships part."""

    sheet_member_template: str = "sheet{ordinal}.xml"
    """Base name of a sheet part; ``{ordinal}`` is the sheet ordinal."""

    # =========================================================================
    # Decoding Settings
    # =========================================================================

    relationship_id_prefix_length: int = 3
    """Characters stripped from ``r:id`` (``rId``) before the ordinal."""

    shared_string_indexing: SharedStringIndexing = "positional"
    """positional: every ``si`` consumes an index, even when it is skipped.
    compact: only successfully decoded entries consume an index."""

    sheet_resolution: SheetResolution = "ordinal"
    """ordinal: sheet part is ``sheet{N}.xml`` with N taken from ``r:id``.
    relationships: sheet part is the target named in the workbook rels."""

    cell_type_mode: CellTypeMode = "binary"
    """binary: any ``t`` attribute marks a shared string reference.
    typed: the ``t`` code selects the cell type."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_member_size_mb")
    @classmethod
    def validate_member_size(cls, v: int) -> int:
        """Validate member size limit is positive and reasonable."""
        if not 1 <= v <= 2048:
            raise ValueError(f"max_member_size_mb must be between 1 and 2048, got {v}")
        return v

    @field_validator("sheet_member_template")
    @classmethod
    def validate_sheet_template(cls, v: str) -> str:
        """Validate the template names the ordinal exactly once."""
        if v.count("{ordinal}") != 1:
            raise ValueError(
                f"sheet_member_template must contain '{{ordinal}}' once, got {v!r}"
            )
        return v

    @field_validator(
        "shared_strings_member", "workbook_member", "workbook_rels_member"
    )
    @classmethod
    def validate_member_name(cls, v: str) -> str:
        """Validate part names are bare base names."""
        v = v.strip()
        if not v or "/" in v:
            raise ValueError(f"Member names must be non-empty base names, got {v!r}")
        return v

    @field_validator("relationship_id_prefix_length")
    @classmethod
    def validate_prefix_length(cls, v: int) -> int:
        if v < 0:
            raise ValueError(
                f"relationship_id_prefix_length must be at least 0, got {v}"
            )
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_member_size_bytes(self) -> int:
        """Get the member size limit in bytes."""
        return self.max_member_size_mb * 1024 * 1024

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def sheet_member_name(self, ordinal: int) -> str:
        """Build the sheet part name for a sheet ordinal."""
        return self.sheet_member_template.format(ordinal=ordinal)

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging."""
        return self.model_dump()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached process-wide settings instance."""
    return Settings()
