from __future__ import annotations

import argparse

from rich.table import Table

from rastergraph.cli.commands.common import load_resource, open_graph
from rastergraph.cli.context import CLIContext
from rastergraph.domain.models.resource import Resource


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    link = subparsers.add_parser("link", help="Add a resource as a member of an aggregation")
    link.add_argument("aggregation_id")
    link.add_argument("member_ids", nargs="+")
    link.set_defaults(handler=run_link)

    members = subparsers.add_parser("members", help="List members of an aggregation")
    members.add_argument("aggregation_id")
    members.set_defaults(handler=run_members)

    related = subparsers.add_parser("related", help="List sibling resources sharing a parent aggregation")
    related.add_argument("resource_id")
    related.set_defaults(handler=run_related)


def _resource_table(title: str, resources: list[Resource]) -> Table:
    table = Table(title=f"{title} ({len(resources)})")
    table.add_column("ID")
    table.add_column("Model")
    table.add_column("Title", overflow="fold")
    for r in resources:
        table.add_row(r.id, r.model, "; ".join(r.title))
    return table


def run_link(args: argparse.Namespace, ctx: CLIContext) -> int:
    graph = open_graph(ctx)
    aggregation = load_resource(graph, args.aggregation_id)

    for member_id in args.member_ids:
        member = load_resource(graph, member_id)
        created = graph.containment.add_member(aggregation, member)
        status = "[green]Linked[/green]" if created else "[yellow]Already linked[/yellow]"
        ctx.console.print(f"{status} {member.id} -> {aggregation.id}")
    return 0


def run_members(args: argparse.Namespace, ctx: CLIContext) -> int:
    graph = open_graph(ctx)
    aggregation = load_resource(graph, args.aggregation_id)
    members = list(graph.containment.members_of(aggregation))
    ctx.console.print(_resource_table("Members", members))
    return 0


def run_related(args: argparse.Namespace, ctx: CLIContext) -> int:
    graph = open_graph(ctx)
    resource = load_resource(graph, args.resource_id)

    parent = graph.containment.parent_of(resource)
    if parent is None:
        ctx.console.print("[yellow]Resource is not contained in any aggregation[/yellow]")
    related = graph.containment.related_of(resource)
    ctx.console.print(_resource_table("Related files", related))
    return 0
