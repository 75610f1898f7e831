# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Global pytest configuration and fixtures.

Template files used by the end-to-end tests live in tests/data/.
"""

from __future__ import annotations

import io
import tarfile
from pathlib import Path

import pytest

from expandybird.config import ExpanderConfig

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture
def data_dir() -> Path:
    """Directory holding the template fixtures and golden output."""
    return DATA_DIR


@pytest.fixture
def make_archive():
    """Factory building an in-memory tar archive from (name, body) pairs."""

    def _factory(files: list[tuple[str, bytes | str]]) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w") as tar:
            for name, body in files:
                data = body.encode("utf-8") if isinstance(body, str) else body
                info = tarfile.TarInfo(name=name)
                info.size = len(data)
                info.mode = 0o600
                tar.addfile(info, io.BytesIO(data))
        return buffer.getvalue()

    return _factory


@pytest.fixture
def expander_config() -> ExpanderConfig:
    """Config for the bundled backend with a fixed, short deadline."""
    return ExpanderConfig(timeout_s=30, env={"deployment": "test-deployment", "project": "test-project"})
