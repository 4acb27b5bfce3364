from __future__ import annotations

import argparse
import mimetypes
from pathlib import Path

from rastergraph.cli.commands.common import load_resource, open_graph
from rastergraph.cli.context import CLIContext
from rastergraph.core.errors import ValidationError
from rastergraph.domain.models.file_attachment import ROLE_ORIGINAL_FILE, ROLES


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("attach", help="Attach a local file to a resource")
    parser.add_argument("resource_id")
    parser.add_argument("path", help="Local file path")
    parser.add_argument("--role", choices=sorted(ROLES) + ["preview"], default=ROLE_ORIGINAL_FILE)
    parser.add_argument("--type-tag", action="append", default=[], help="Additional RDF type URI (repeatable)")
    parser.add_argument("--mime-type", help="Override the guessed media type")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    path = Path(args.path).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise ValidationError(f"File not found: {path}")

    graph = open_graph(ctx)
    resource = load_resource(graph, args.resource_id)
    registry = graph.resources.files(resource)

    attachment = registry.build(args.role)
    for tag in args.type_tag:
        registry.add_type(attachment, tag)
    mime_type = args.mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    registry.attach_content(attachment, path.read_bytes(), mime_type=mime_type, original_name=path.name)
    registry.save(attachment)

    ctx.console.print(
        f"[green]Attached[/green] {path.name} as {attachment.role} "
        f"({attachment.size_bytes} bytes, sha256 {attachment.digest_sha256})"
    )
    return 0
