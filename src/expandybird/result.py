# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Parse rendered backend output into an ordered, validated list of resources.

Accepted document shapes:

- a top-level list of resource mappings;
- a mapping with a ``resources`` list;
- the bundled backend shape ``{config: {resources: [...]}, layout: {resources: [...]}}``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

import yaml

from expandybird.errors import MissingResourceNameError, MissingResourceTypeError, ParseError

_RESERVED_KEYS = ("name", "type", "properties")


@dataclass(frozen=True)
class Resource:
    name: str
    type: str
    properties: dict[str, Any] = field(default_factory=dict)
    # Any other top-level keys the backend emitted (metadata, dependsOn, ...)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Resource":
        """Validate one resource mapping. Name is checked before type."""
        name = data.get("name")
        if name is None or name == "":
            raise MissingResourceNameError(f"Resource does not have a name Resource: {data}", data)
        rtype = data.get("type")
        if rtype is None or rtype == "":
            raise MissingResourceTypeError(f"Resource does not have type defined Resource: {data}", data)
        properties = data.get("properties")
        if properties is None:
            properties = {}
        if not isinstance(properties, dict):
            raise ParseError(f"properties of resource {name} must be a mapping, got {type(properties).__name__}")
        extra = {k: v for k, v in data.items() if k not in _RESERVED_KEYS}
        return cls(name=str(name), type=str(rtype), properties=properties, extra=extra)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "type": self.type}
        if self.properties:
            out["properties"] = self.properties
        out.update(self.extra)
        return out


def _split_document(document: Any) -> tuple[Any, dict[str, Any]]:
    if document is None:
        raise ParseError("expansion output is empty")
    if isinstance(document, list):
        return document, {}
    if not isinstance(document, dict):
        raise ParseError(f"expansion output must be a list or mapping, got {type(document).__name__}")
    if "config" in document:
        config = document["config"]
        if not isinstance(config, dict):
            raise ParseError("expansion output 'config' must be a mapping")
        layout = document.get("layout") or {}
        if not isinstance(layout, dict):
            raise ParseError("expansion output 'layout' must be a mapping")
        return config.get("resources"), layout
    if "resources" in document:
        return document["resources"], {}
    raise ParseError("expansion output has no 'resources' list")


@dataclass(frozen=True)
class ExpansionResult:
    """
    Resources produced by one expansion, in document order.

    Two results are equal when their resource sequences are deeply equal; the
    layout tree is informational and does not take part in comparisons.
    """

    resources: tuple[Resource, ...] = ()
    layout: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_text(cls, text: Union[str, bytes]) -> "ExpansionResult":
        if isinstance(text, bytes):
            try:
                text = text.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"expansion output is not valid UTF-8: {exc}") from exc
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ParseError(f"Error parsing YAML: {exc}") from exc
        return cls.from_document(document)

    @classmethod
    def from_document(cls, document: Any) -> "ExpansionResult":
        items, layout = _split_document(document)
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ParseError(f"expansion output 'resources' must be a list, got {type(items).__name__}")
        resources = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise ParseError(f"resource #{index} must be a mapping, got {type(item).__name__}")
            resources.append(Resource.from_mapping(item))
        return cls(resources=tuple(resources), layout=layout)

    def __len__(self) -> int:
        return len(self.resources)

    def __iter__(self):
        return iter(self.resources)

    def as_dict(self) -> dict[str, Any]:
        return {
            "config": {"resources": [r.as_dict() for r in self.resources]},
            "layout": self.layout or {"resources": []},
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.as_dict(), default_flow_style=False, sort_keys=False)
