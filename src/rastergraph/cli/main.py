from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from rastergraph.cli.commands import (
    doctor_cmd,
    files_cmd,
    graph_cmd,
    init_cmd,
    resources_cmd,
)
from rastergraph.cli.context import CLIContext
from rastergraph.core.config import load_paths
from rastergraph.core.errors import GraphError
from rastergraph.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rastergraph",
        description="Raster file repository CLI",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .rastergraph data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    resources_cmd.register(subparsers)
    files_cmd.register(subparsers)
    graph_cmd.register(subparsers)
    doctor_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except GraphError as exc:
        logger.error(str(exc))
        return 1

