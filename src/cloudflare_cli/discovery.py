"""Discovery engine -- read-only projections over the command tree.

These functions back ``cloudflare list``, ``describe`` and ``tree``. They
return plain dicts and lists (ready for ``--json``) and never touch the
network. Lookups that fail raise
:class:`~cloudflare_cli.exceptions.UnknownResource` or
:class:`~cloudflare_cli.exceptions.UnknownOperation` carrying close-match
suggestions.

A resource is addressed by its slug, or by a ``/``-separated path of slugs
for nested resources (``zones/settings``).
"""

from __future__ import annotations

import difflib
from typing import Any, Sequence, Union

from cloudflare_cli.exceptions import UnknownOperation, UnknownResource
from cloudflare_cli.models import CommandTree, OperationNode, ParamDef, ResourceNode

ResourcePath = Union[str, Sequence[str]]


def suggestions(name: str, candidates: Sequence[str], limit: int = 3) -> list[str]:
    """Return up to *limit* candidates resembling *name*.

    Candidates that contain *name* come first, then fuzzy matches.
    """
    lowered = name.lower()
    found = [c for c in candidates if lowered and lowered in c]
    for match in difflib.get_close_matches(lowered, candidates, n=limit, cutoff=0.6):
        if match not in found:
            found.append(match)
    return found[:limit]


def _split(path: ResourcePath) -> list[str]:
    if isinstance(path, str):
        return [part for part in path.split("/") if part]
    return list(path)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_resource(tree: CommandTree, path: ResourcePath) -> ResourceNode:
    """Return the resource addressed by *path*.

    Raises:
        UnknownResource: If any segment does not match.
    """
    parts = _split(path)
    if not parts:
        raise UnknownResource("")

    siblings = tree.resources
    walked: list[str] = []
    for index, part in enumerate(parts):
        node = next((r for r in siblings if r.slug == part), None)
        if node is None:
            name = "/".join(walked + [part])
            prefix = "/".join(walked)
            matches = suggestions(part, [r.slug for r in siblings])
            if prefix:
                matches = [f"{prefix}/{m}" for m in matches]
            raise UnknownResource(name, matches)
        if index == len(parts) - 1:
            return node
        walked.append(part)
        siblings = node.resources
    raise UnknownResource("/".join(parts))


def find_operation(tree: CommandTree, resource: ResourcePath, op: str) -> OperationNode:
    """Return operation *op* of *resource*.

    Raises:
        UnknownResource: If the resource does not exist.
        UnknownOperation: If the resource has no such operation.
    """
    node = find_resource(tree, resource)
    found = node.operation(op)
    if found is None:
        label = "/".join(_split(resource))
        raise UnknownOperation(
            label, op, suggestions(op, [o.slug for o in node.operations])
        )
    return found


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


def _operation_summary(op: OperationNode) -> dict[str, Any]:
    data: dict[str, Any] = {
        "operation": op.slug,
        "method": op.method.value,
        "path": op.path,
    }
    if op.summary:
        data["summary"] = op.summary
    if op.deprecated:
        data["deprecated"] = True
    return data


def _resource_summary(node: ResourceNode, include_operations: bool) -> dict[str, Any]:
    data: dict[str, Any] = {"resource": node.slug, "display_name": node.display_name}
    if include_operations:
        data["operations"] = [op.slug for op in node.operations]
    if node.resources:
        data["resources"] = [
            _resource_summary(child, include_operations) for child in node.resources
        ]
    return data


def list_resources(
    tree: CommandTree, include_operations: bool = False
) -> Union[list[str], list[dict[str, Any]]]:
    """List top-level resources in slug order.

    Returns:
        The slugs, or with *include_operations* one object per resource:
        ``{"resource", "display_name", "operations": [...]}``.
    """
    if not include_operations:
        return [r.slug for r in tree.resources]
    return [_resource_summary(r, True) for r in tree.resources]


def list_operations(tree: CommandTree, resource: ResourcePath) -> list[dict[str, Any]]:
    """List the operations of *resource* with method, path and summary."""
    node = find_resource(tree, resource)
    return [_operation_summary(op) for op in node.operations]


def describe_parameter(param: ParamDef) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": param.name,
        "flag": f"--{param.flag}",
        "location": param.location.value,
        "required": param.required,
        "type": param.type.value,
    }
    if param.items is not None:
        data["items"] = param.items.value
    if param.enum:
        data["enum"] = list(param.enum)
    if param.description:
        data["description"] = param.description
    return data


def usage_line(resource: str, op: OperationNode) -> str:
    """Build an example invocation listing the required flags."""
    parts = ["cloudflare", resource, op.slug]
    for param in op.parameters:
        if param.required:
            parts.append(f"--{param.flag} <{param.type.value}>")
    if op.body_required:
        parts.append("--body '<json>'")
    return " ".join(parts)


def describe_operation(
    tree: CommandTree, resource: ResourcePath, op: str
) -> dict[str, Any]:
    """Describe one operation in full.

    Includes method, path, summary, description, every parameter with its
    location, requiredness and type, and the request body fields.
    """
    node = find_operation(tree, resource, op)
    label = "/".join(_split(resource))
    data: dict[str, Any] = {
        "resource": label,
        "operation": node.slug,
        "display_name": node.display_name,
        "method": node.method.value,
        "path": node.path,
        "deprecated": node.deprecated,
        "parameters": [describe_parameter(p) for p in node.parameters],
        "body": {
            "accepted": node.has_body,
            "required": node.body_required,
            "fields": [
                f.model_dump(exclude_none=True) for f in node.body_fields
            ],
        },
        "usage": usage_line(label.replace("/", " "), node),
    }
    if node.summary:
        data["summary"] = node.summary
    if node.description:
        data["description"] = node.description
    return data


def tree_outline(tree: CommandTree) -> dict[str, Any]:
    """Return the whole command tree as plain data.

    Every resource, operation, parameter and body field is included, in the
    same shape as the tree artifact.
    """
    return tree.model_dump(mode="json", exclude_none=True)
