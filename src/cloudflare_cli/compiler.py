"""Compile a :class:`~cloudflare_cli.models.SchemaModel` into a command tree.

This is the core algorithm of cloudflare-cli. It takes a parsed OpenAPI
document and produces a :class:`~cloudflare_cli.models.CommandTree`: a flat
list of resources, each holding the operations that can be invoked as
``cloudflare <resource> <operation>``.

**Algorithm summary**

1. Check that every ``$ref`` in the document resolves.
2. Group operations by their first tag, else by the first static path
   segment, else under ``root``.
3. Derive a kebab-case slug for every group, operation and parameter,
   appending path-derived suffixes (then a counter) until each slug is
   unique among its siblings and clear of the built-in names.
4. Resolve parameter and request body schemas down to primitive types.
5. Emit everything sorted by slug.

The output depends only on the input document, so compiling the same
document twice yields the same tree.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Any, Iterable, Optional

from cloudflare_cli.exceptions import SchemaError
from cloudflare_cli.models import (
    DEFAULT_API_URL,
    BodyField,
    CommandTree,
    OperationNode,
    ParamDef,
    ParameterLocation,
    PrimitiveType,
    ResourceNode,
    SchemaModel,
    SourceOperation,
)
from cloudflare_cli.parser.resolver import RefTable

logger = logging.getLogger(__name__)

RESERVED_COMMANDS = frozenset({"list", "describe", "tree", "api", "help"})
"""Top-level command names a resource slug may never take."""

RESERVED_FLAGS = frozenset({"body", "body-file", "header", "raw", "pretty", "dry-run", "help"})
"""Flags handled by the runtime itself; parameter flags are kept clear of them."""

DEFAULT_VERSION = 4
ROOT_GROUP = "root"

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")

_PRIMITIVES = {
    "string": PrimitiveType.STRING,
    "integer": PrimitiveType.INTEGER,
    "number": PrimitiveType.NUMBER,
    "boolean": PrimitiveType.BOOLEAN,
    "array": PrimitiveType.ARRAY,
}


# ---------------------------------------------------------------------------
# Naming helpers
# ---------------------------------------------------------------------------


def kebab(text: str) -> str:
    """Convert *text* to a lowercase, dash-separated slug.

    CamelCase boundaries are split, and every run of characters other than
    ASCII letters and digits collapses to a single dash.

    Example::

        >>> kebab("listDNSRecords")
        'list-dns-records'
        >>> kebab("DNS Records for a Zone")
        'dns-records-for-a-zone'
        >>> kebab("zone_identifier")
        'zone-identifier'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", text)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1-\2", result)
    result = re.sub(r"[^a-z0-9]+", "-", result.lower())
    return result.strip("-")


def path_placeholders(path: str) -> list[str]:
    """Return the ``{placeholder}`` names in *path*, in template order."""
    return _PLACEHOLDER_RE.findall(path)


def _segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def _static_segments(path: str) -> list[str]:
    return [s for s in _segments(path) if not _PLACEHOLDER_RE.fullmatch(s)]


def _unique(base: str, suffixes: Iterable[str], taken: set[str]) -> str:
    """Append *suffixes* one at a time, then a counter, until clear of *taken*."""
    candidate = base
    for suffix in suffixes:
        if candidate not in taken:
            return candidate
        if suffix:
            candidate = f"{candidate}-{suffix}" if candidate else suffix
    if candidate not in taken:
        return candidate
    counter = 2
    while f"{candidate}-{counter}" in taken:
        counter += 1
    return f"{candidate}-{counter}"


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def compile_tree(schema: SchemaModel) -> CommandTree:
    """Compile *schema* into a :class:`~cloudflare_cli.models.CommandTree`.

    Args:
        schema: A model built by
            :func:`~cloudflare_cli.parser.extractor.extract_schema`.

    Returns:
        The command tree, with resources and operations sorted by slug.

    Raises:
        SchemaError: If a ``$ref`` is unresolved or external, a path
            placeholder has no matching path parameter, an ``operationId``
            normalizes to an empty slug, or a request body schema is cyclic
            without ever reaching a concrete type.
    """
    refs = schema.refs
    refs.validate_all()

    groups: dict[str, list[SourceOperation]] = defaultdict(list)
    for op in schema.operations():
        groups[_group_label(op)].append(op)

    taken: set[str] = set(RESERVED_COMMANDS)
    resources: list[ResourceNode] = []
    for label in sorted(groups):
        ops = groups[label]
        first_path = ops[0].path
        base = kebab(label) or ROOT_GROUP
        suffixes = [kebab(s) for s in _static_segments(first_path)]
        slug = _unique(base, suffixes, taken)
        taken.add(slug)

        resources.append(
            ResourceNode(
                slug=slug,
                display_name=label,
                description=schema.tag_descriptions.get(label),
                operations=_compile_operations(ops, refs),
            )
        )
        if slug != base:
            logger.debug("Resource '%s' renamed to '%s' to stay unique", label, slug)

    resources.sort(key=lambda r: r.slug)
    tree = CommandTree(
        version=_major_version(schema.version),
        endpoint=schema.servers[0] if schema.servers else DEFAULT_API_URL,
        title=schema.title,
        resources=resources,
    )
    logger.info(
        "Compiled %d resources, %d operations",
        len(resources),
        sum(len(r.operations) for r in resources),
    )
    return tree


def _group_label(op: SourceOperation) -> str:
    if op.tags:
        return op.tags[0]
    static = _static_segments(op.path)
    return static[0] if static else ROOT_GROUP


def _major_version(version: str) -> int:
    match = re.match(r"\s*v?(\d+)", version)
    return int(match.group(1)) if match else DEFAULT_VERSION


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def _compile_operations(ops: list[SourceOperation], refs: RefTable) -> list[OperationNode]:
    """Compile the operations of one resource, in ``(path, method)`` order."""
    taken: set[str] = set()
    nodes: list[OperationNode] = []
    for op in ops:
        method = op.method.value
        if op.operation_id is not None:
            base = kebab(op.operation_id)
            if not base:
                raise SchemaError(
                    f"operationId '{op.operation_id}' ({method} {op.path}) "
                    "does not produce a usable command name"
                )
            display_name = op.operation_id
        else:
            base = kebab(f"{method} {op.path}")
            display_name = f"{method} {op.path}"

        suffixes = [kebab(s) for s in reversed(_segments(op.path))]
        suffixes.append(method.lower())
        slug = _unique(base, suffixes, taken)
        taken.add(slug)

        has_body, body_required, body_fields = _compile_body(op, refs)
        nodes.append(
            OperationNode(
                slug=slug,
                display_name=display_name,
                method=op.method,
                path=op.path,
                summary=op.summary,
                description=op.description,
                deprecated=op.deprecated,
                parameters=_compile_parameters(op, refs),
                has_body=has_body,
                body_required=body_required,
                body_fields=body_fields,
            )
        )

    nodes.sort(key=lambda n: n.slug)
    return nodes


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def _compile_parameters(op: SourceOperation, refs: RefTable) -> list[ParamDef]:
    placeholders = path_placeholders(op.path)
    declared: list[tuple[str, ParameterLocation, dict[str, Any]]] = []
    for raw in op.parameters:
        name = raw.get("name")
        try:
            location = ParameterLocation(raw.get("in"))
        except ValueError:
            logger.debug("Skipping parameter %r with location %r", name, raw.get("in"))
            continue
        if not name:
            continue
        if location == ParameterLocation.PATH and name not in placeholders:
            logger.debug("Dropping path parameter '%s' absent from %s", name, op.path)
            continue
        declared.append((str(name), location, raw))

    path_names = {name for name, loc, _ in declared if loc == ParameterLocation.PATH}
    for placeholder in placeholders:
        if placeholder not in path_names:
            raise SchemaError(
                f"Path placeholder '{{{placeholder}}}' in {op.method.value} {op.path} "
                "has no matching path parameter"
            )

    taken: set[str] = set(RESERVED_FLAGS)
    params: list[ParamDef] = []
    for name, location, raw in declared:
        base = kebab(name) or location.value
        if base in taken:
            base = f"{location.value}-{base}"
        flag = _unique(base, [], taken)
        taken.add(flag)

        param_type, items, enum = _parameter_type(raw.get("schema"), refs)
        params.append(
            ParamDef(
                name=name,
                flag=flag,
                location=location,
                required=location == ParameterLocation.PATH or bool(raw.get("required")),
                type=param_type,
                items=items,
                enum=enum,
                description=_clean_text(raw.get("description")),
            )
        )
    return params


def _parameter_type(
    schema: Any, refs: RefTable
) -> tuple[PrimitiveType, Optional[PrimitiveType], Optional[list[str]]]:
    """Reduce a parameter schema to ``(type, items, enum)``."""
    if not isinstance(schema, dict):
        return PrimitiveType.STRING, None, None

    param_type = _PRIMITIVES.get(refs.concrete_type(schema), PrimitiveType.STRING)
    resolved = refs.deref(schema)
    if param_type != PrimitiveType.ARRAY:
        return param_type, None, _enum_values(resolved)

    items_schema = resolved.get("items") if isinstance(resolved, dict) else None
    items = _PRIMITIVES.get(refs.concrete_type(items_schema), PrimitiveType.STRING)
    if items == PrimitiveType.ARRAY:
        items = PrimitiveType.STRING
    return param_type, items, _enum_values(refs.deref(items_schema))


def _enum_values(schema: Any) -> Optional[list[str]]:
    if not isinstance(schema, dict) or not isinstance(schema.get("enum"), list):
        return None
    values = []
    for value in schema["enum"]:
        if value is None:
            continue
        if isinstance(value, bool):
            values.append("true" if value else "false")
        else:
            values.append(str(value))
    return values or None


# ---------------------------------------------------------------------------
# Request body
# ---------------------------------------------------------------------------


def _compile_body(
    op: SourceOperation, refs: RefTable
) -> tuple[bool, bool, list[BodyField]]:
    body = op.request_body
    if body is None:
        return False, False, []

    required = bool(body.get("required", False))
    schema = _json_schema(body.get("content") or {})
    if schema is None:
        return True, required, []

    try:
        body_type = refs.concrete_type(schema)
    except SchemaError as exc:
        raise SchemaError(
            f"Request body of {op.method.value} {op.path}: {exc}"
        ) from exc
    if body_type != "object":
        return True, required, []

    properties, required_names = refs.object_properties(schema)
    fields = []
    for name, prop in properties.items():
        resolved = refs.deref(prop)
        fields.append(
            BodyField(
                name=name,
                type=refs.concrete_type(prop),
                required=name in required_names,
                description=_clean_text(
                    resolved.get("description") if isinstance(resolved, dict) else None
                ),
            )
        )
    return True, required, fields


def _json_schema(content: dict[str, Any]) -> Optional[Any]:
    """Pick the request schema, preferring ``application/json``."""
    media = content.get("application/json")
    if isinstance(media, dict) and "schema" in media:
        return media["schema"]
    for content_type in sorted(content):
        media = content[content_type]
        if "json" in content_type and isinstance(media, dict) and "schema" in media:
            return media["schema"]
    return None


def _clean_text(text: Any) -> Optional[str]:
    if not isinstance(text, str):
        return None
    text = text.strip()
    return text or None
