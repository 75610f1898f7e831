# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""Backend process entry point: request on stdin, rendered YAML on stdout, diagnostic on stderr."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from expandybird.errors import ExpansionError
from expandybird.expansion.engine import expand
from expandybird.protocol import ERROR_PREFIX, decode_request


def main(
    argv: Optional[list[str]] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    argv = sys.argv[1:] if argv is None else argv
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    try:
        request = decode_request(stdin.read())
    except ValueError as exc:
        stderr.write(f"{ERROR_PREFIX}Exception in request: {exc}\n")
        return 1

    # argv name takes precedence over the payload name
    name = argv[0] if argv else request.name
    env = dict(request.env)
    env.setdefault("deployment", "")
    env.setdefault("project", "")
    try:
        output = expand(request.content, request.imports, env, name=name)
    except ExpansionError as exc:
        stderr.write(f"{ERROR_PREFIX}{exc}\n")
        return 1
    except Exception as exc:
        # every failure leaves the process as a prefixed diagnostic
        stderr.write(f"{ERROR_PREFIX}Exception in {name}: {type(exc).__name__}: {exc}\n")
        return 1

    stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
