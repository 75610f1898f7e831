# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Expander configuration: defaults, then a YAML file, then env vars, then explicit overrides."""

from __future__ import annotations

import dataclasses
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

DEFAULT_TIMEOUT_S = 60.0

ENV_EXPANSION_BINARY = "EXPANDYBIRD_EXPANSION_BINARY"
ENV_TIMEOUT = "EXPANDYBIRD_TIMEOUT"
# Passed through to templates as env["deployment"] / env["project"].
ENV_DEPLOYMENT_NAME = "DEPLOYMENT_NAME"
ENV_PROJECT = "PROJECT"


def _coerce_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"timeout_s must be a number, got {value!r}") from exc
    if timeout <= 0:
        raise ValueError(f"timeout_s must be positive, got {timeout}")
    return timeout


@dataclass
class ExpanderConfig:
    """
    Settings for invoking the rendering backend.
    """

    expansion_binary: Optional[str] = None  # None runs the bundled backend
    timeout_s: float = DEFAULT_TIMEOUT_S
    env: dict[str, str] = field(default_factory=dict)
    python_executable: str = sys.executable

    def __post_init__(self):
        self.timeout_s = _coerce_timeout(self.timeout_s)
        if not isinstance(self.env, Mapping):
            raise ValueError(f"env must be a mapping, got {type(self.env).__name__}")
        self.env = {str(k): str(v) for k, v in self.env.items()}
        if self.expansion_binary is not None:
            self.expansion_binary = str(self.expansion_binary).strip() or None

    @classmethod
    def from_yaml(cls, path: str) -> "ExpanderConfig":
        with open(path, encoding="utf-8") as fh:
            payload = yaml.safe_load(fh) or {}
        if not isinstance(payload, dict):
            raise ValueError(f"Expander config must be a YAML mapping: {path}")
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown expander config keys in {path}: {', '.join(unknown)}")
        return cls(**payload)

    def with_overrides(self, **overrides: Any) -> "ExpanderConfig":
        """Return a copy with every non-None override applied. ``env`` entries are merged."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "env" in values:
            values["env"] = {**self.env, **values["env"]}
        return dataclasses.replace(self, **values)

    def with_environ(self, environ: Optional[Mapping[str, str]] = None) -> "ExpanderConfig":
        environ = os.environ if environ is None else environ
        env: dict[str, str] = {}
        if environ.get(ENV_DEPLOYMENT_NAME):
            env["deployment"] = environ[ENV_DEPLOYMENT_NAME]
        if environ.get(ENV_PROJECT):
            env["project"] = environ[ENV_PROJECT]
        return self.with_overrides(
            expansion_binary=environ.get(ENV_EXPANSION_BINARY) or None,
            timeout_s=environ.get(ENV_TIMEOUT) or None,
            env=env or None,
        )


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ExpanderConfig:
    """
    Resolve the expander configuration.

    Args:
        path: Optional YAML file with ExpanderConfig keys.
        environ: Environment to read EXPANDYBIRD_* / DEPLOYMENT_NAME / PROJECT from
            (defaults to os.environ).
        **overrides: Explicit values (e.g. from CLI flags); None means "not given".

    Raises:
        ValueError: If any source holds an invalid value or an unknown key.
        OSError: If the config file cannot be read.
    """
    config = ExpanderConfig.from_yaml(path) if path else ExpanderConfig()
    return config.with_environ(environ).with_overrides(**overrides)
