# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Templates and their imports.

A Template is the primary resource-definition content plus a name -> Import
mapping. It can be built from a byte stream, from file names, or from a tar
archive; all three produce the same shape, so the backend cannot tell how a
template was assembled.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import BinaryIO, Optional, Union

from expandybird.archive import ArchiveSource, load_archive, split_archive
from expandybird.errors import EmptyContentError, ImportLoadError, TemplateFileNotFoundError

logger = logging.getLogger(__name__)

StreamSource = Union[bytes, bytearray, str, BinaryIO]


@dataclass(frozen=True)
class Import:
    name: str
    content: bytes


def build_import_set(imports: Optional[Union[Iterable[Import], Mapping[str, Import]]]) -> dict[str, Import]:
    """Key imports by name. A later import with the same name replaces the earlier one."""
    if imports is None:
        return {}
    if isinstance(imports, Mapping):
        imports = imports.values()
    import_set: dict[str, Import] = {}
    for imp in imports:
        if imp.name in import_set:
            logger.debug("Import %s given more than once, keeping the last one", imp.name)
        import_set[imp.name] = imp
    return import_set


def _read_file(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def load_imports(file_names: Optional[Iterable[str]], base_dir: Optional[str] = None) -> list[Import]:
    """
    Read import files from disk.

    Args:
        file_names: Paths of the import files; each import is named by the file's base name.
        base_dir: Directory relative paths are resolved against (defaults to the working directory).

    Raises:
        ImportLoadError: If any file cannot be read.
    """
    imports: list[Import] = []
    for file_name in file_names or []:
        path = os.path.join(base_dir, file_name) if base_dir else file_name
        try:
            content = _read_file(path)
        except OSError as exc:
            raise ImportLoadError(path, exc.strerror or str(exc)) from exc
        imports.append(Import(name=os.path.basename(file_name), content=content))
    return imports


@dataclass(frozen=True, init=False)
class Template:
    """Primary template content plus its import set. Immutable once built."""

    name: str
    content: bytes
    imports: Mapping[str, Import]

    def __init__(
        self,
        name: str,
        content: bytes,
        imports: Optional[Union[Iterable[Import], Mapping[str, Import]]] = None,
    ):
        if not content:
            raise EmptyContentError(f"template {name} has no content")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "content", bytes(content))
        object.__setattr__(self, "imports", MappingProxyType(build_import_set(imports)))

    @classmethod
    def from_stream(
        cls,
        name: str,
        stream: StreamSource,
        import_names: Optional[Iterable[str]] = None,
        base_dir: Optional[str] = None,
    ) -> "Template":
        """
        Build a template from a byte stream plus import files on disk.

        The stream is read to the end but not closed. Empty content is rejected
        before any import is read.
        """
        if isinstance(stream, (bytes, bytearray)):
            content = bytes(stream)
        elif isinstance(stream, str):
            content = stream.encode("utf-8")
        else:
            content = stream.read()
        if not content:
            raise EmptyContentError(f"template {name} has no content")
        return cls(name, content, load_imports(import_names, base_dir))

    @classmethod
    def from_file_names(cls, file_name: str, import_file_names: Optional[Iterable[str]] = None) -> "Template":
        """Build a template named after ``file_name``'s base name from files on disk."""
        try:
            content = _read_file(file_name)
        except OSError as exc:
            raise TemplateFileNotFoundError(file_name, exc.strerror or str(exc)) from exc
        return cls.from_stream(os.path.basename(file_name), content, import_file_names)

    @classmethod
    def from_archive(
        cls,
        base_name: str,
        archive: ArchiveSource,
        import_file_names: Optional[Iterable[str]] = None,
    ) -> "Template":
        """
        Build a template from a tar bundle.

        The member named ``base_name`` becomes the primary content and every other
        member becomes an import. Extra import files, if any, are read from disk and
        added after the archive members.
        """
        primary, others = split_archive(load_archive(archive), base_name)
        imports = [Import(name=entry.name, content=entry.body) for entry in others]
        imports.extend(load_imports(import_file_names))
        return cls(base_name, primary.body, imports)

    def import_names(self) -> list[str]:
        return sorted(self.imports)
