"""Zip container access for spreadsheet packages."""

from __future__ import annotations

import os
import zipfile
import zlib
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import PurePosixPath

from xlsx_decoder.config import Settings, get_settings
from xlsx_decoder.utils.exceptions import (
    ArchiveMemberNotFoundError,
    ArchiveMetadataError,
    ArchiveOpenError,
    ArchiveReadError,
    MemberTooLargeError,
)
from xlsx_decoder.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def open_archive(path: str | os.PathLike[str]) -> Generator[zipfile.ZipFile, None, None]:
    """Open a package for reading and close it when the block exits.

    Raises:
        ArchiveOpenError: If the file is missing, unreadable, or not a zip.
    """
    archive_path = os.fspath(path)
    try:
        archive = zipfile.ZipFile(archive_path, mode="r")
    except zipfile.BadZipFile as exc:
        raise ArchiveOpenError(archive_path, reason=f"not a zip file: {exc}") from exc
    except OSError as exc:
        raise ArchiveOpenError(archive_path, reason=exc.strerror or str(exc)) from exc

    try:
        yield archive
    finally:
        archive.close()


def find_member(archive: zipfile.ZipFile, member_name: str) -> zipfile.ZipInfo:
    """Locate a member by base name, ignoring its directory.

    The first entry of the central directory whose base name matches wins.

    Raises:
        ArchiveMemberNotFoundError: If no entry has that base name.
    """
    for info in archive.infolist():
        if PurePosixPath(info.filename).name == member_name:
            return info
    raise ArchiveMemberNotFoundError(member_name, archive_path=archive.filename)


def read_member(
    archive: zipfile.ZipFile,
    member_name: str,
    settings: Settings | None = None,
) -> bytes:
    """Read the full decompressed content of a member.

    The archive is owned by the caller and is left open.

    Args:
        archive: An open package.
        member_name: Base name of the member, e.g. ``workbook.xml``.
        settings: Decoder settings; the process settings when omitted.

    Returns:
        Exactly the member's declared uncompressed size in bytes.

    Raises:
        ArchiveMemberNotFoundError: No member has that base name.
        ArchiveMetadataError: The entry has no usable name or size.
        MemberTooLargeError: The declared size exceeds the configured limit.
        ArchiveReadError: Decompression failed or returned a short read.
    """
    settings = settings or get_settings()
    info = find_member(archive, member_name)
    _validate_metadata(archive, info, member_name, settings)

    try:
        with archive.open(info, mode="r") as handle:
            data = handle.read()
    except (zipfile.BadZipFile, zlib.error, EOFError, OSError) as exc:
        raise ArchiveReadError(
            member_name, reason=str(exc), archive_path=archive.filename
        ) from exc
    except (NotImplementedError, RuntimeError) as exc:
        # Unsupported compression methods and encrypted members.
        raise ArchiveReadError(
            member_name, reason=str(exc), archive_path=archive.filename
        ) from exc

    if len(data) != info.file_size:
        raise ArchiveReadError(
            member_name,
            reason=f"read {len(data)} of {info.file_size} bytes",
            archive_path=archive.filename,
        )

    logger.debug(
        "Read archive member",
        member=info.filename,
        bytes=len(data),
        compressed_bytes=info.compress_size,
    )
    return data


def _validate_metadata(
    archive: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    member_name: str,
    settings: Settings,
) -> None:
    if not info.filename or info.is_dir():
        raise ArchiveMetadataError(
            f"Error retrieving metadata for {member_name}: entry has no file name",
            member_name=member_name,
            archive_path=archive.filename,
        )
    if not isinstance(info.file_size, int) or info.file_size < 0:
        raise ArchiveMetadataError(
            f"Error retrieving metadata for {member_name}: "
            f"invalid size {info.file_size!r}",
            member_name=member_name,
            archive_path=archive.filename,
        )
    if info.file_size > settings.max_member_size_bytes:
        raise MemberTooLargeError(
            member_name,
            member_size=info.file_size,
            max_size=settings.max_member_size_bytes,
            archive_path=archive.filename,
        )
