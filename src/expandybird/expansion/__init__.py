# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Bundled rendering backend.

Run as a separate process (``python -m expandybird.expansion <name>``) by
expandybird.expander.Expander; see expandybird.protocol for the wire format.
"""

from .engine import MISSING_NAME, MISSING_TYPE, ConfigExpander, TemplateContext, expand

__all__ = [
    "MISSING_NAME",
    "MISSING_TYPE",
    "ConfigExpander",
    "TemplateContext",
    "expand",
]
