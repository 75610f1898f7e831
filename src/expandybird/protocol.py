# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Wire format between the expander and a rendering backend process.

The backend is started as ``<backend command> <template name>`` and reads one
JSON document from stdin::

    {
      "template": {"name": "ValidContent.yaml", "content": "<base64>"},
      "imports": {"replicatedservice.py": "<base64>"},
      "env": {"deployment": "...", "project": "..."}
    }

Contents are base64 so the payload carries the template bytes exactly.

On success the backend writes the rendered YAML document to stdout and exits 0.
On failure it writes ``ExpansionError: <message>`` to stderr and exits non-zero.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from expandybird.template import Template

ERROR_PREFIX = "ExpansionError: "


@dataclass(frozen=True)
class ExpansionRequest:
    """A decoded backend request. Contents are UTF-8 text."""

    name: str
    content: str
    imports: dict[str, str] = field(default_factory=dict)
    env: dict[str, str] = field(default_factory=dict)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{what} must be a base64 string")
    try:
        raw = base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError(f"{what} is not valid base64: {exc}") from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"{what} is not valid UTF-8: {exc}") from exc


def encode_request(template: Template, env: Optional[Mapping[str, str]] = None) -> str:
    payload = {
        "template": {"name": template.name, "content": _b64(template.content)},
        "imports": {name: _b64(imp.content) for name, imp in sorted(template.imports.items())},
        "env": dict(env or {}),
    }
    return json.dumps(payload)


def decode_request(text: str) -> ExpansionRequest:
    """Parse a request document; any malformed field raises ValueError."""
    payload = json.loads(text)
    if not isinstance(payload, dict):
        raise ValueError("request must be a JSON object")
    template = payload.get("template")
    if not isinstance(template, dict) or not isinstance(template.get("name"), str):
        raise ValueError("request has no template name")
    imports = payload.get("imports") or {}
    if not isinstance(imports, dict):
        raise ValueError("request imports must be an object")
    env = payload.get("env") or {}
    if not isinstance(env, dict):
        raise ValueError("request env must be an object")
    return ExpansionRequest(
        name=template["name"],
        content=_unb64(template.get("content"), f"template {template['name']}"),
        imports={str(name): _unb64(value, f"import {name}") for name, value in imports.items()},
        env={str(key): str(value) for key, value in env.items()},
    )
