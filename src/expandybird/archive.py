# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Decode packaged template bundles (tar, optionally compressed) into named entries."""

from __future__ import annotations

import io
import logging
import tarfile
from dataclasses import dataclass
from typing import BinaryIO, Union

from expandybird.errors import ArchiveFormatError, EmptyContentError, MissingPrimaryEntryError

logger = logging.getLogger(__name__)

ArchiveSource = Union[bytes, bytearray, BinaryIO]


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    body: bytes


def _read_source(archive: ArchiveSource) -> bytes:
    if isinstance(archive, (bytes, bytearray)):
        return bytes(archive)
    return archive.read()


def load_archive(archive: ArchiveSource) -> list[ArchiveEntry]:
    """
    Decode every regular file in a tar bundle.

    Args:
        archive: Raw archive bytes or a binary stream positioned at the archive start.
            A stream is read to the end but not closed.

    Returns:
        Entries in archive order. Only regular files become entries: directories carry
        no body and are skipped, as are links whose target is a member of the bundle
        (the target itself is already an entry).

    Raises:
        ArchiveFormatError: If the data is not a readable tar archive, or a link member
            points outside the bundle.
        EmptyContentError: If any file member has a zero-length body.
    """
    data = _read_source(archive)
    if not data:
        raise ArchiveFormatError("archive is empty")

    entries: list[ArchiveEntry] = []
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as tar:
            for member in tar:
                if member.issym() or member.islnk():
                    try:
                        tar.extractfile(member)
                    except KeyError as exc:
                        raise ArchiveFormatError(
                            f"archive link {member.name} points to {member.linkname}, which is not in the archive"
                        ) from exc
                    logger.debug("Skipping archive link %s -> %s", member.name, member.linkname)
                    continue
                if not member.isfile():
                    logger.debug("Skipping non-file archive member %s", member.name)
                    continue
                fh = tar.extractfile(member)
                body = fh.read() if fh is not None else b""
                if not body:
                    raise EmptyContentError(f"archive entry {member.name} is empty")
                entries.append(ArchiveEntry(name=member.name, body=body))
    except (tarfile.TarError, EOFError) as exc:
        raise ArchiveFormatError(f"cannot decode archive: {exc}") from exc

    logger.debug("Decoded %d entries from archive (%d bytes)", len(entries), len(data))
    return entries


def split_archive(entries: list[ArchiveEntry], base_name: str) -> tuple[ArchiveEntry, list[ArchiveEntry]]:
    """Return the entry named exactly ``base_name`` and all remaining entries."""
    primary = None
    rest: list[ArchiveEntry] = []
    for entry in entries:
        if primary is None and entry.name == base_name:
            primary = entry
        else:
            rest.append(entry)
    if primary is None:
        names = ", ".join(entry.name for entry in entries) or "none"
        raise MissingPrimaryEntryError(f"archive has no entry named '{base_name}' (entries: {names})")
    return primary, rest
