"""Build a :class:`~cloudflare_cli.models.SchemaModel` from a raw OpenAPI dict.

The document is walked once: ``info``, ``servers``, top-level ``tags`` and
every path + method combination. Nothing is inlined; parameter and request
body objects are dereferenced one level so they can be keyed and merged,
while the schemas nested inside them keep their ``$ref`` pointers for the
compiler to resolve through :attr:`SchemaModel.refs`.

Parameter merging follows OpenAPI: path-item parameters provide defaults,
and operation parameters override them when they share ``name`` and ``in``.
"""

from __future__ import annotations

import logging
from typing import Any

from cloudflare_cli.models import HTTPMethod, SchemaModel, SourceOperation
from cloudflare_cli.parser.loader import validate_openapi_version
from cloudflare_cli.parser.resolver import RefTable

logger = logging.getLogger(__name__)

_HTTP_METHODS = tuple(m.value.lower() for m in HTTPMethod)


def extract_schema(raw: dict[str, Any]) -> SchemaModel:
    """Extract a :class:`~cloudflare_cli.models.SchemaModel` from *raw*.

    Args:
        raw: The document as returned by
            :func:`~cloudflare_cli.parser.loader.load_spec`.

    Raises:
        SchemaError: If the document is not OpenAPI 3.x, or a path item,
            parameter or request body ``$ref`` cannot be resolved.

    Example::

        schema = extract_schema(load_spec("schemas/openapi.yaml"))
        for op in schema.operations():
            print(op.method.value, op.path)
    """
    openapi_version = validate_openapi_version(raw)
    refs = RefTable(raw)
    info = raw.get("info") or {}

    model = SchemaModel(
        title=str(info.get("title") or "API"),
        version=str(info.get("version") or "0.0.0"),
        openapi_version=openapi_version,
        servers=[
            str(server["url"])
            for server in raw.get("servers") or []
            if isinstance(server, dict) and server.get("url")
        ],
        tag_descriptions={
            str(tag["name"]): str(tag["description"])
            for tag in raw.get("tags") or []
            if isinstance(tag, dict) and tag.get("name") and tag.get("description")
        },
        paths=_extract_paths(raw.get("paths") or {}, refs),
        document=raw,
    )
    # Reuse the warmed-up cache.
    model._refs = refs
    logger.debug(
        "Extracted %d operations across %d paths",
        sum(len(ops) for ops in model.paths.values()),
        len(model.paths),
    )
    return model


def _extract_paths(
    paths: dict[str, Any], refs: RefTable
) -> dict[str, dict[HTTPMethod, SourceOperation]]:
    extracted: dict[str, dict[HTTPMethod, SourceOperation]] = {}
    for path, path_item in paths.items():
        path_item = refs.deref(path_item)
        if not isinstance(path_item, dict):
            continue

        shared_params = path_item.get("parameters") or []
        by_method: dict[HTTPMethod, SourceOperation] = {}
        for method in _HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue

            body = refs.deref(operation.get("requestBody"))
            by_method[HTTPMethod(method.upper())] = SourceOperation(
                path=str(path),
                method=HTTPMethod(method.upper()),
                operation_id=operation.get("operationId") or None,
                summary=operation.get("summary"),
                description=operation.get("description"),
                tags=[str(tag) for tag in operation.get("tags") or []],
                parameters=_merge_parameters(
                    shared_params, operation.get("parameters") or [], refs
                ),
                request_body=body if isinstance(body, dict) else None,
                deprecated=bool(operation.get("deprecated", False)),
            )
        if by_method:
            extracted[str(path)] = by_method
    return extracted


def _merge_parameters(
    path_params: list[Any],
    op_params: list[Any],
    refs: RefTable,
) -> list[dict[str, Any]]:
    """Merge path-item and operation parameters, keyed by ``(name, in)``.

    Order is preserved: surviving path-item parameters first, then the
    operation's own.
    """
    resolved_op = [p for p in (refs.deref(p) for p in op_params) if isinstance(p, dict)]
    overridden = {(p.get("name", ""), p.get("in", "")) for p in resolved_op}

    merged: list[dict[str, Any]] = []
    for param in path_params:
        param = refs.deref(param)
        if not isinstance(param, dict):
            continue
        if (param.get("name", ""), param.get("in", "")) not in overridden:
            merged.append(param)
    merged.extend(resolved_op)
    return merged
