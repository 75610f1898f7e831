# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
expandybird command line.

    expandybird expand config.yaml --import replicatedservice.py
    expandybird expand --archive bundle.tar --base-name config.yaml
    cat config.yaml | expandybird expand - --name config.yaml --import replicatedservice.py
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from expandybird import __version__
from expandybird.config import load_config
from expandybird.errors import (
    ArchiveFormatError,
    EmptyContentError,
    ExpandybirdError,
    MissingPrimaryEntryError,
    TemplateFileNotFoundError,
)
from expandybird.expander import Expander
from expandybird.template import Template

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EXPANSION_FAILED = 1
EXIT_BAD_INPUT = 2

_LOADING_ERRORS = (TemplateFileNotFoundError, EmptyContentError, ArchiveFormatError, MissingPrimaryEntryError)


def parse_env_assignments(items: list[str]) -> dict[str, str]:
    """Parse KEY=VALUE strings; raises ValueError on an item without '='."""
    env: dict[str, str] = {}
    for item in items:
        if "=" not in item:
            raise ValueError(f"Expected KEY=VALUE, got '{item}'")
        key, value = item.split("=", 1)
        env[key.strip()] = value
    return env


def configure_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="cmd", required=True)

    p_expand = subparsers.add_parser("expand", help="Expand a template and print the resulting resources.")
    p_expand.add_argument(
        "template",
        nargs="?",
        default=None,
        help="Template file to expand, or '-' to read it from stdin. Omit when using --archive.",
    )
    p_expand.add_argument("--name", help="Template name when reading from stdin (default: 'config').")
    p_expand.add_argument("--archive", help="Tar bundle holding the template and its imports.")
    p_expand.add_argument("--base-name", help="Archive member to use as the template (required with --archive).")
    p_expand.add_argument(
        "--import",
        dest="imports",
        action="append",
        default=[],
        metavar="FILE",
        help="Import file made available to the template (repeatable).",
    )
    p_expand.add_argument("--config", help="Path to an expander config YAML file.")
    p_expand.add_argument("--expansion-binary", help="Rendering backend to run instead of the bundled one.")
    p_expand.add_argument("--timeout", type=float, default=None, help="Backend deadline in seconds.")
    p_expand.add_argument(
        "--env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Environment value exposed to templates (e.g. deployment=prod). Repeatable.",
    )
    p_expand.add_argument("--output", help="Write the result YAML to this file instead of stdout.")
    p_expand.add_argument("--debug", action="store_true", help="Enable debug logging.")


def _build_template(args: argparse.Namespace, parser: argparse.ArgumentParser) -> Template:
    if args.archive:
        if args.template:
            parser.error("give either a template file or --archive, not both")
        if not args.base_name:
            parser.error("--archive requires --base-name")
        with open(args.archive, "rb") as fh:
            return Template.from_archive(args.base_name, fh, args.imports)
    if not args.template:
        parser.error("a template file, '-' or --archive is required")
    if args.template == "-":
        return Template.from_stream(args.name or "config", sys.stdin.buffer, args.imports)
    return Template.from_file_names(args.template, args.imports)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="expandybird",
        description="Expand resource templates through a rendering backend.",
    )
    configure_parser(parser)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(
            args.config,
            expansion_binary=args.expansion_binary,
            timeout_s=args.timeout,
            env=parse_env_assignments(args.env) or None,
        )
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_BAD_INPUT

    try:
        template = _build_template(args, parser)
    except _LOADING_ERRORS as exc:
        logger.error("%s", exc)
        return EXIT_BAD_INPUT
    except OSError as exc:
        logger.error("Cannot read archive %s: %s", args.archive, exc)
        return EXIT_BAD_INPUT

    try:
        result = Expander(config).expand(template)
    except ExpandybirdError as exc:
        logger.error("%s", exc)
        return EXIT_EXPANSION_FAILED

    text = result.to_yaml()
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        logger.info("Wrote %d resources to %s", len(result), args.output)
    else:
        sys.stdout.write(text)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
