"""Discovery commands -- ``list``, ``describe`` and ``tree``.

Read-only views of the command tree. None of them needs an API token or
touches the network. With ``--json`` results go to stdout as JSON, and so do
errors, as ``{"error": {"type", "message", "exit_code"}}``.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from cloudflare_cli.discovery import (
    describe_operation,
    find_resource,
    list_operations,
    list_resources,
    tree_outline,
)
from cloudflare_cli.dispatch import fail, get_tree
from cloudflare_cli.exceptions import CloudflareCliError, UsageError
from cloudflare_cli.models import CommandTree, ResourceNode
from cloudflare_cli.output import print_data, print_json, print_table


def _json_option() -> Any:
    return typer.Option(False, "--json", help="Print JSON instead of text.")


def _pretty_option() -> Any:
    return typer.Option(False, "--pretty", help="Indent JSON output.")


def _resource_lines(node: ResourceNode, ops: bool, indent: str = "") -> list[str]:
    lines = [f"{indent}{node.slug} ({node.display_name})"]
    if ops:
        for op in node.operations:
            lines.append(f"{indent}  {op.slug} ({op.display_name})")
    for child in node.resources:
        lines.extend(_resource_lines(child, ops, indent + "  "))
    return lines


def _outline_lines(tree: CommandTree, ops: bool) -> list[str]:
    lines: list[str] = []
    for node in tree.resources:
        lines.extend(_resource_lines(node, ops))
    return lines


def list_command(
    ctx: typer.Context,
    resource: Optional[str] = typer.Argument(
        None, help="Resource slug (nested resources as parent/child)."
    ),
    ops: bool = typer.Option(
        False, "--ops", help="Include each resource's operations."
    ),
    json_output: bool = _json_option(),
    pretty: bool = _pretty_option(),
) -> None:
    """List resources, or the operations of RESOURCE.

    Example::

        cloudflare list
        cloudflare list zones
        cloudflare list --ops --json
    """
    try:
        tree = get_tree(ctx)
        if resource:
            operations = list_operations(tree, resource)
            if json_output:
                print_json(operations, pretty=pretty)
                return
            print_table(
                ["Operation", "Method", "Path", "Summary"],
                [
                    [o["operation"], o["method"], o["path"], o.get("summary", "")]
                    for o in operations
                ],
                title=find_resource(tree, resource).display_name,
            )
            return

        if json_output:
            print_json(list_resources(tree, include_operations=ops), pretty=pretty)
            return
        for line in _outline_lines(tree, ops):
            print_data(line)
    except CloudflareCliError as exc:
        raise fail(
            exc, hint="cloudflare list", json_output=json_output, pretty=pretty
        ) from None


def describe_command(
    ctx: typer.Context,
    resource: str = typer.Argument(..., help="Resource slug."),
    operation: str = typer.Argument(..., help="Operation slug."),
    json_output: bool = _json_option(),
    pretty: bool = _pretty_option(),
) -> None:
    """Show the method, path, parameters and body of an operation."""
    try:
        data = describe_operation(get_tree(ctx), resource, operation)
    except UsageError as exc:
        hint = f"cloudflare list {resource} --ops" if exc.suggestions else "cloudflare list"
        raise fail(exc, hint=hint, json_output=json_output, pretty=pretty) from None
    except CloudflareCliError as exc:
        raise fail(exc, json_output=json_output, pretty=pretty) from None

    if json_output:
        print_json(data, pretty=pretty)
        return

    print_data(f"{data['method']} {data['path']}")
    print_data(f"name: {data['display_name']}")
    if data.get("summary"):
        print_data(f"summary: {data['summary']}")
    if data["deprecated"]:
        print_data("deprecated: true")
    print_data("params:")
    for param in data["parameters"]:
        print_data(
            f"  {param['flag']} ({param['location']}, "
            f"required: {str(param['required']).lower()})"
        )
    body = data["body"]
    if body["accepted"]:
        print_data(f"body: json (required: {str(body['required']).lower()})")
        for field in body["fields"]:
            marker = ", required" if field.get("required") else ""
            print_data(f"  {field['name']} ({field['type']}{marker})")
    print_data(f"usage: {data['usage']}")


def tree_command(
    ctx: typer.Context,
    json_output: bool = _json_option(),
    pretty: bool = _pretty_option(),
) -> None:
    """Print every resource and operation in the command tree."""
    try:
        tree = get_tree(ctx)
    except CloudflareCliError as exc:
        raise fail(exc, json_output=json_output, pretty=pretty) from None

    if json_output:
        print_json(tree_outline(tree), pretty=pretty)
        return
    print_data(f"{tree.title} (v{tree.version}, {tree.endpoint})")
    for line in _outline_lines(tree, ops=True):
        print_data(line)
