# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for template loading, backend expansion and output parsing.

Loading errors also derive from the matching builtin (FileNotFoundError,
ValueError, LookupError) so callers that only know the builtins still catch them.
"""

from __future__ import annotations

from typing import Optional


class ExpandybirdError(Exception):
    """Base class for every error raised by expandybird."""


class TemplateFileNotFoundError(ExpandybirdError, FileNotFoundError):
    """The primary template file cannot be opened or read."""

    kind = "template"

    def __init__(self, path: str, detail: Optional[str] = None):
        self.path = path
        message = f"cannot read {self.kind} file {path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ImportLoadError(TemplateFileNotFoundError):
    """An import file named by the caller cannot be opened or read."""

    kind = "import"


class EmptyContentError(ExpandybirdError, ValueError):
    """Primary template content, or an archive member, has zero length."""


class ArchiveFormatError(ExpandybirdError, ValueError):
    """Input bytes cannot be decoded as a tar archive."""


class MissingPrimaryEntryError(ExpandybirdError, LookupError):
    """No archive member matches the requested template name."""


class ExpansionError(ExpandybirdError):
    """
    The rendering backend reported a failure.

    The message is the backend diagnostic, kept verbatim: callers match on
    substrings such as "Resource does not have a name".
    """

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.returncode = returncode

    def __str__(self) -> str:
        return self.message


class ExpansionTimeoutError(ExpansionError):
    """The rendering backend did not finish before its deadline."""


class ParseError(ExpandybirdError):
    """Rendered output is not a valid structured document."""


class ResourceValidationError(ExpandybirdError):
    """A rendered resource violates a per-resource invariant."""

    def __init__(self, message: str, resource: object = None):
        super().__init__(message)
        self.resource = resource


class MissingResourceNameError(ResourceValidationError):
    """A rendered resource has no name."""


class MissingResourceTypeError(ResourceValidationError):
    """A rendered resource has no type."""
