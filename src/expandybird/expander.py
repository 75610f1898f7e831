# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Rendering backend client.

Each expand call starts its own backend process, feeds it the template over
stdin (see expandybird.protocol) and waits for it under a deadline. Nothing is
shared between calls, so one Expander can serve concurrent requests.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Optional

from expandybird.config import ExpanderConfig
from expandybird.errors import ExpansionError, ExpansionTimeoutError
from expandybird.protocol import encode_request
from expandybird.result import ExpansionResult
from expandybird.template import Template

logger = logging.getLogger(__name__)

BUNDLED_BACKEND_MODULE = "expandybird.expansion"
_PACKAGE_ROOT = Path(__file__).resolve().parent.parent


class Expander:
    def __init__(self, config: Optional[ExpanderConfig] = None):
        self.config = config or ExpanderConfig()

    @property
    def uses_bundled_backend(self) -> bool:
        return not self.config.expansion_binary

    def backend_command(self) -> list[str]:
        binary = self.config.expansion_binary
        if not binary:
            return [self.config.python_executable, "-m", BUNDLED_BACKEND_MODULE]
        if binary.endswith(".py"):
            return [self.config.python_executable, binary]
        return [binary]

    def _backend_env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self.uses_bundled_backend:
            # inherited PYTHONPATH entries keep precedence
            paths = [p for p in env.get("PYTHONPATH", "").split(os.pathsep) if p]
            if str(_PACKAGE_ROOT) not in paths:
                paths.append(str(_PACKAGE_ROOT))
            env["PYTHONPATH"] = os.pathsep.join(paths)
        return env

    def expand_template(self, template: Template) -> bytes:
        """
        Run the backend once for ``template`` and return its rendered output bytes unchanged.

        Raises:
            ExpansionTimeoutError: If the backend does not finish within ``config.timeout_s``.
            ExpansionError: If the backend cannot be started, exits non-zero or prints nothing.
                The message is the backend's stderr, verbatim.
        """
        cmd = self.backend_command() + [template.name]
        payload = encode_request(template, self.config.env).encode("utf-8")
        logger.debug(
            "Exec: %s (imports=%s, payload=%d bytes)", " ".join(cmd), template.import_names(), len(payload)
        )

        t0 = time.time()
        try:
            res = subprocess.run(
                cmd,
                input=payload,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=self._backend_env(),
                timeout=self.config.timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("Expansion of %s timed out after %ss", template.name, self.config.timeout_s)
            raise ExpansionTimeoutError(
                f"expansion of {template.name} did not finish within {self.config.timeout_s}s"
            ) from exc
        except OSError as exc:
            raise ExpansionError(f"cannot start expansion backend {cmd[0]}: {exc}") from exc

        elapsed_ms = int((time.time() - t0) * 1000)
        if res.returncode != 0:
            stderr = (res.stderr or b"").decode("utf-8", errors="replace").strip()
            diagnostic = stderr or f"expansion backend exited with status {res.returncode}"
            logger.error(
                "Expansion of %s failed (rc=%s, %dms)\nSTDERR:\n%s", template.name, res.returncode, elapsed_ms, diagnostic
            )
            raise ExpansionError(diagnostic, returncode=res.returncode)
        if not (res.stdout or b"").strip():
            raise ExpansionError(f"expansion backend produced no output for {template.name}", returncode=0)

        logger.debug("Expansion of %s finished in %dms (%d bytes)", template.name, elapsed_ms, len(res.stdout))
        return res.stdout

    def expand(self, template: Template) -> ExpansionResult:
        """Expand ``template`` and parse the output into an ExpansionResult."""
        result = ExpansionResult.from_text(self.expand_template(template))
        logger.info("Expanded %s into %d resources", template.name, len(result))
        return result
