from __future__ import annotations

import argparse

from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from rastergraph.cli.commands.common import load_resource, open_graph
from rastergraph.cli.context import CLIContext
from rastergraph.domain.models.resource import MODEL_FIELDS, RASTER_FILE


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("resources", help="Create, list and inspect resources")
    resources_subparsers = parser.add_subparsers(dest="resources_command", required=True)

    create = resources_subparsers.add_parser("create", help="Create and save a resource")
    create.add_argument("--model", choices=sorted(MODEL_FIELDS), default=RASTER_FILE)
    create.add_argument("--title", action="append", default=[], help="Title (repeatable)")
    create.add_argument("--georss-box", help="Bounding box as 'lat1 lon1 lat2 lon2'")
    create.add_argument("--crs", help="Coordinate reference system URI")
    create.add_argument("--depositor", help="Depositor identifier")
    create.set_defaults(handler=run_create)

    list_parser = resources_subparsers.add_parser("list", help="List resources")
    list_parser.add_argument("--model", choices=sorted(MODEL_FIELDS))
    list_parser.add_argument("--limit", type=int, default=50)
    list_parser.set_defaults(handler=run_list)

    show = resources_subparsers.add_parser("show", help="Show fields, files and index document of a resource")
    show.add_argument("resource_id")
    show.set_defaults(handler=run_show)


def run_create(args: argparse.Namespace, ctx: CLIContext) -> int:
    graph = open_graph(ctx)

    resource = graph.resources.new(
        args.model,
        {"title": args.title, "georss_box": args.georss_box, "crs": args.crs},
    )
    if args.depositor:
        resource.apply_depositor_metadata(args.depositor)
    graph.resources.save(resource)

    ctx.console.print(f"[green]Created[/green] {resource.model} {resource.id}")
    return 0


def run_list(args: argparse.Namespace, ctx: CLIContext) -> int:
    graph = open_graph(ctx)
    resources = graph.resources.list(model=args.model, limit=args.limit)

    table = Table(title=f"Resources ({len(resources)})")
    table.add_column("ID")
    table.add_column("Model")
    table.add_column("Title", overflow="fold")
    table.add_column("CRS", overflow="fold")

    for r in resources:
        table.add_row(r.id, r.model, "; ".join(r.title), r.crs or "")

    ctx.console.print(table)
    return 0


def run_show(args: argparse.Namespace, ctx: CLIContext) -> int:
    graph = open_graph(ctx)
    resource = load_resource(graph, args.resource_id)
    registry = graph.resources.files(resource)

    fields = Table(title=f"{resource.model} {resource.id}")
    fields.add_column("Field")
    fields.add_column("Value", overflow="fold")
    for spec in resource.populated_fields():
        value = resource.get(spec.name)
        fields.add_row(spec.name, "; ".join(value) if isinstance(value, list) else str(value))
    ctx.console.print(fields)

    attachments = Table(title="Files")
    attachments.add_column("Role")
    attachments.add_column("ID")
    attachments.add_column("Size")
    attachments.add_column("Types", overflow="fold")
    for role in ("original_file", "thumbnail"):
        attachment = registry.get(role)
        if attachment is not None:
            attachments.add_row(role, attachment.id, str(attachment.size_bytes), "\n".join(attachment.type_tags))
    for attachment in registry.files:
        attachments.add_row("files", attachment.id, str(attachment.size_bytes), "\n".join(attachment.type_tags))
    ctx.console.print(attachments)

    document = graph.resources.reindex(resource)
    ctx.console.print(Panel.fit(JSON.from_data(document), title="Index Document"))
    return 0
