# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
expandybird: turn a resource template and its imports into an ordered list of resources.

Python API usage:
    from expandybird import Expander, Template

    template = Template.from_file_names("config.yaml", ["replicatedservice.py"])
    result = Expander().expand(template)
    for resource in result.resources:
        print(resource.name, resource.type)
"""

from expandybird.config import ExpanderConfig, load_config
from expandybird.errors import (
    ArchiveFormatError,
    EmptyContentError,
    ExpandybirdError,
    ExpansionError,
    ExpansionTimeoutError,
    ImportLoadError,
    MissingPrimaryEntryError,
    MissingResourceNameError,
    MissingResourceTypeError,
    ParseError,
    ResourceValidationError,
    TemplateFileNotFoundError,
)
from expandybird.expander import Expander
from expandybird.result import ExpansionResult, Resource
from expandybird.template import Import, Template

__version__ = "0.1.0"

__all__ = [
    "ArchiveFormatError",
    "EmptyContentError",
    "Expander",
    "ExpanderConfig",
    "ExpandybirdError",
    "ExpansionError",
    "ExpansionResult",
    "ExpansionTimeoutError",
    "Import",
    "ImportLoadError",
    "MissingPrimaryEntryError",
    "MissingResourceNameError",
    "MissingResourceTypeError",
    "ParseError",
    "Resource",
    "ResourceValidationError",
    "Template",
    "TemplateFileNotFoundError",
    "load_config",
]
