# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Reference expansion engine.

Expands a YAML config whose resources may reference template imports:

- ``*.jinja`` / ``*.jinja2`` / ``*.j2`` imports are rendered with Jinja2;
- ``*.py`` imports are executed and their ``GenerateConfig(context)`` is called.

Template output is itself a config with a ``resources`` list and is expanded
recursively. Any other resource type is a leaf and is emitted unchanged.

Failure messages are part of the backend contract and are matched on by
callers; keep their wording stable.
"""

from __future__ import annotations

import logging
import types
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml
from jinja2 import DictLoader, Environment, StrictUndefined

from expandybird.errors import ExpansionError

logger = logging.getLogger(__name__)

JINJA_SUFFIXES = (".jinja", ".jinja2", ".j2")
PYTHON_SUFFIX = ".py"
TEMPLATE_SUFFIXES = JINJA_SUFFIXES + (PYTHON_SUFFIX,)

MISSING_NAME = "Resource does not have a name"
MISSING_TYPE = "Resource does not have type defined"


class _NoAliasDumper(yaml.SafeDumper):
    # templates often reuse one dict (e.g. labels) in several places
    def ignore_aliases(self, data):
        return True


def _dump(data: Any) -> str:
    return yaml.dump(data, Dumper=_NoAliasDumper, default_flow_style=False)


@dataclass
class TemplateContext:
    """What a template sees: ``properties``, ``env`` and ``imports``."""

    properties: dict[str, Any] = field(default_factory=dict)
    env: dict[str, Any] = field(default_factory=dict)
    imports: dict[str, str] = field(default_factory=dict)


def _with_resource(message: str, resource: Any) -> str:
    return f"{message} Resource: {resource}"


def _failure(source: str, detail: str, resource: Any = None) -> ExpansionError:
    message = f"Exception in {source}: {detail}"
    if resource is not None:
        message = _with_resource(message, resource)
    return ExpansionError(message)


def _load_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ExpansionError(f"Error parsing YAML: {exc}") from exc


def is_template_name(resource_type: str) -> bool:
    return resource_type.endswith(TEMPLATE_SUFFIXES)


def _declared_imports(config: dict[str, Any], supplied: Mapping[str, str], source: str) -> dict[str, str]:
    """
    Resolve the config's ``imports`` section against the supplied import contents.

    Entries are ``{path: ..., name: ...}`` mappings or bare paths; ``name``
    defaults to ``path``. Only declared imports are visible to resources.
    """
    declared = config.get("imports") or []
    if not isinstance(declared, list):
        raise _failure(source, "'imports' must be a list")
    visible: dict[str, str] = {}
    for entry in declared:
        if isinstance(entry, str):
            path, alias = entry, entry
        elif isinstance(entry, dict) and entry.get("path"):
            path = str(entry["path"])
            alias = str(entry.get("name") or path)
        else:
            raise _failure(source, f"invalid import entry {entry!r}")
        if path not in supplied:
            raise _failure(source, f"import {path} was not supplied")
        visible[alias] = supplied[path]
    return visible


def _resource_list(config: Any, source: str) -> list[Any]:
    if config is None:
        raise _failure(source, "config is empty")
    if not isinstance(config, dict):
        raise _failure(source, f"config must be a mapping, got {type(config).__name__}")
    resources = config.get("resources")
    if resources is None:
        raise _failure(source, "config has no 'resources' list")
    if not isinstance(resources, list):
        raise _failure(source, "'resources' must be a list")
    return resources


def _validate_unique_names(resources: list[Any], source: str) -> None:
    seen: set[Any] = set()
    for resource in resources:
        if not isinstance(resource, dict) or "name" not in resource:
            continue
        name = resource["name"]
        if not isinstance(name, Hashable):
            raise _failure(source, f"resource name must be a scalar, got {type(name).__name__}", resource)
        if name in seen:
            raise _failure(source, f"duplicate resource name {name}", resource)
        seen.add(name)


class ConfigExpander:
    """Expands one config against a fixed set of imports and environment."""

    def __init__(self, imports: Mapping[str, str], env: Optional[Mapping[str, Any]] = None):
        self.imports = dict(imports)
        self.env = dict(env or {})
        self._jinja = Environment(
            loader=DictLoader(self.imports),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def expand_resources(self, resources: list[Any], stack: tuple[str, ...]) -> tuple[list[Any], list[Any]]:
        source = stack[-1]
        _validate_unique_names(resources, source)
        expanded: list[Any] = []
        layout: list[Any] = []
        for resource in resources:
            leaves, node = self.process_resource(resource, stack)
            expanded.extend(leaves)
            layout.append(node)
        return expanded, layout

    def process_resource(self, resource: Any, stack: tuple[str, ...]) -> tuple[list[Any], dict[str, Any]]:
        source = stack[-1]
        if not isinstance(resource, dict):
            raise _failure(source, f"resource must be a mapping, got {type(resource).__name__}", resource)
        if not resource.get("name"):
            raise ExpansionError(_with_resource(MISSING_NAME, resource))
        if not resource.get("type"):
            raise ExpansionError(_with_resource(MISSING_TYPE, resource))

        name = resource["name"]
        rtype = str(resource["type"])
        node: dict[str, Any] = {"name": name, "type": rtype}

        if rtype not in self.imports:
            if is_template_name(rtype):
                raise _failure(name, f"template {rtype} is not declared in imports", resource)
            return [resource], node

        if rtype in stack:
            raise _failure(rtype, "template expands into itself", resource)
        rendered = self.render(resource)
        config = _load_yaml(rendered)
        children = _resource_list(config, rtype)
        if "properties" in resource:
            node["properties"] = resource["properties"]
        logger.debug("Template %s for %s produced %d resources", rtype, name, len(children))
        expanded, node["resources"] = self.expand_resources(children, stack + (rtype,))
        return expanded, node

    def render(self, resource: dict[str, Any]) -> str:
        rtype = str(resource["type"])
        properties = resource.get("properties") or {}
        if not isinstance(properties, dict):
            raise _failure(rtype, "properties must be a mapping", resource)
        context = TemplateContext(
            properties=properties,
            env={**self.env, "name": resource["name"], "type": rtype},
            imports=self.imports,
        )
        try:
            if rtype.endswith(PYTHON_SUFFIX):
                return self._render_python(rtype, context)
            if rtype.endswith(JINJA_SUFFIXES):
                return self._jinja.get_template(rtype).render(
                    properties=context.properties, env=context.env, imports=context.imports
                )
        except ExpansionError:
            raise
        except Exception as exc:
            raise _failure(rtype, f"{type(exc).__name__}: {exc}", resource) from exc
        raise _failure(rtype, "unsupported template type", resource)

    def _render_python(self, source: str, context: TemplateContext) -> str:
        module = types.ModuleType(source[: -len(PYTHON_SUFFIX)].replace("/", "."))
        module.__file__ = source
        exec(compile(self.imports[source], source, "exec"), module.__dict__)
        generate = getattr(module, "GenerateConfig", None)
        if not callable(generate):
            raise _failure(source, "template does not define GenerateConfig(context)")
        output = generate(context)
        if isinstance(output, (dict, list)):
            return _dump(output)
        if not isinstance(output, str):
            raise _failure(source, f"GenerateConfig returned {type(output).__name__}, expected str or dict")
        return output


def expand(
    content: str,
    imports: Optional[Mapping[str, str]] = None,
    env: Optional[Mapping[str, Any]] = None,
    name: str = "config",
) -> str:
    """
    Expand a config into ``{config: {resources}, layout: {resources}}`` YAML.

    Raises:
        ExpansionError: With one of the contract messages.
    """
    config = _load_yaml(content)
    resources = _resource_list(config, name)
    visible = _declared_imports(config, imports or {}, name)
    expander = ConfigExpander(visible, env)
    expanded, layout = expander.expand_resources(resources, (name,))
    logger.debug("Expanded %s into %d resources", name, len(expanded))
    return _dump({"config": {"resources": expanded}, "layout": {"resources": layout}})
