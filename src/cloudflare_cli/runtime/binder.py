"""Bind command-line arguments to an operation's declared parameters.

The binder is parametrized over an :class:`~cloudflare_cli.models.OperationNode`
from the command tree; no per-operation code exists. It understands:

* ``--flag value`` and ``--flag=value``; a bare ``--flag`` for booleans.
* ``--zone_id`` as an alias of ``--zone-id``.
* Bare positional values, which fill path parameters in template order.
* Repeated or comma-separated values for array parameters.
* ``--body <json>``, ``--body @file.json`` and ``--body-file <path>`` for
  operations that accept a body.

Runtime flags that shape the call rather than the request data
(``--header``, ``--raw``, ``--pretty``, ``--dry-run``) are separated first
by :func:`split_runtime_flags`.
"""

from __future__ import annotations

import difflib
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from cloudflare_cli.compiler import path_placeholders
from cloudflare_cli.exceptions import (
    BindError,
    DuplicateParameter,
    InvalidBody,
    MissingRequiredParameter,
    TypeMismatch,
    UnexpectedArgument,
    UnknownParameter,
)
from cloudflare_cli.models import (
    BoundParameter,
    BoundParameters,
    OperationNode,
    ParamDef,
    ParameterLocation,
    PrimitiveType,
    RuntimeFlags,
)
from cloudflare_cli.runtime.request import ACCOUNT_ID_ALIASES, ZONE_ID_ALIASES, parse_header

logger = logging.getLogger(__name__)

_BODY_FLAGS = ("body", "body-file")
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def _split_flag(token: str) -> tuple[str, bool, str]:
    """Split ``--name=value`` into name, whether ``=`` was present, and value.

    Underscores are normalized to dashes in the name only.
    """
    name, eq, inline = token[2:].partition("=")
    return name.replace("_", "-"), bool(eq), inline


def default_values(
    account_id: Optional[str] = None, zone_id: Optional[str] = None
) -> dict[str, str]:
    """Map the account and zone identifier parameter names to fallback values.

    The result is passed as ``defaults`` to :func:`bind` so that
    ``CLOUDFLARE_ACCOUNT_ID`` and ``CLOUDFLARE_ZONE_ID`` satisfy required
    identifier parameters.
    """
    defaults: dict[str, str] = {}
    if account_id:
        defaults.update(dict.fromkeys(ACCOUNT_ID_ALIASES, account_id))
    if zone_id:
        defaults.update(dict.fromkeys(ZONE_ID_ALIASES, zone_id))
    return defaults


def split_runtime_flags(args: Sequence[str]) -> tuple[list[str], RuntimeFlags]:
    """Separate ``--header``, ``--raw``, ``--pretty`` and ``--dry-run``.

    Everything after a literal ``--`` is left untouched.

    Returns:
        The remaining arguments, in order, and the parsed flags.

    Raises:
        InvalidHeader: If a ``--header`` value is malformed.
        BindError: If ``--header`` has no value.
    """
    remaining: list[str] = []
    flags = RuntimeFlags()
    tokens = list(args)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token == "--":
            remaining.extend(tokens[i:])
            break
        if not token.startswith("--"):
            remaining.append(token)
            i += 1
            continue

        name, eq, inline = _split_flag(token)
        if name == "header":
            if eq:
                value = inline
            elif i + 1 < len(tokens):
                i += 1
                value = tokens[i]
            else:
                raise BindError("Option '--header' requires a value")
            flags.headers.append(parse_header(value))
        elif name in ("raw", "pretty", "dry-run") and not eq:
            setattr(flags, name.replace("-", "_"), True)
        else:
            remaining.append(token)
        i += 1
    return remaining, flags


def bind(
    node: OperationNode,
    args: Sequence[str],
    defaults: Optional[Mapping[str, Any]] = None,
) -> BoundParameters:
    """Bind *args* to the parameters of *node*.

    Args:
        node: The operation being invoked.
        args: Command-line arguments after ``<resource> <operation>``, with
            runtime flags already removed.
        defaults: Fallback values keyed by parameter name, applied to
            parameters that were not given.

    Returns:
        The typed values in declaration order, each tagged with its
        location, plus the raw request body text if one was given.

    Raises:
        UnknownParameter: For undeclared flags (with close-match
            suggestions), and for body flags on operations without a body.
        DuplicateParameter: When a single-valued flag is repeated.
        UnexpectedArgument: For surplus positional values.
        MissingRequiredParameter: When a required parameter has no value.
        TypeMismatch: When a value cannot be coerced or is outside the enum.
        InvalidBody: When a body file cannot be read.
    """
    by_flag = {p.flag: p for p in node.parameters}
    raw: dict[str, list[str]] = {}
    positionals: list[str] = []
    body: Optional[str] = None

    tokens = list(args)
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if token == "--":
            positionals.extend(tokens[i:])
            break
        if not token.startswith("--"):
            positionals.append(token)
            continue

        name, eq, inline = _split_flag(token)

        if name in _BODY_FLAGS:
            if not node.has_body:
                raise UnknownParameter(name, _suggest(name, by_flag))
            if eq:
                value = inline
            elif i < len(tokens):
                value = tokens[i]
                i += 1
            else:
                raise BindError(f"Option '--{name}' requires a value")
            if body is not None:
                raise DuplicateParameter("body")
            body = read_body(value, from_file=name == "body-file")
            continue

        param = by_flag.get(name)
        if param is None:
            raise UnknownParameter(name, _suggest(name, by_flag))

        if eq:
            value = inline
        elif param.type == PrimitiveType.BOOLEAN:
            if i < len(tokens) and tokens[i].lower() in _TRUE | _FALSE:
                value = tokens[i]
                i += 1
            else:
                value = "true"
        elif i < len(tokens) and not tokens[i].startswith("--"):
            value = tokens[i]
            i += 1
        else:
            raise BindError(f"Option '--{param.flag}' requires a value")

        if param.name in raw and not param.is_list:
            raise DuplicateParameter(param.flag)
        raw.setdefault(param.name, []).append(value)

    _assign_positionals(node, raw, positionals)

    for param in node.parameters:
        if param.name not in raw and defaults and defaults.get(param.name):
            logger.debug("Using default value for '%s'", param.name)
            raw[param.name] = [str(defaults[param.name])]

    values: list[BoundParameter] = []
    for param in node.parameters:
        if param.name not in raw:
            if param.required:
                raise MissingRequiredParameter(param.name, param.flag)
            continue
        values.append(
            BoundParameter(
                name=param.name,
                location=param.location,
                value=_coerce_param(param, raw[param.name]),
            )
        )
    return BoundParameters(values=values, body=body)


def _assign_positionals(
    node: OperationNode, raw: dict[str, list[str]], positionals: list[str]
) -> None:
    if not positionals:
        return
    path_params = {
        p.name: p for p in node.parameters if p.location == ParameterLocation.PATH
    }
    open_slots = [
        name
        for name in path_placeholders(node.path)
        if name in path_params and name not in raw
    ]
    for index, value in enumerate(positionals):
        if index >= len(open_slots):
            raise UnexpectedArgument(value)
        raw[open_slots[index]] = [value]


def read_body(value: str, from_file: bool) -> str:
    """Return body text from an inline value, ``@path``, or a ``--body-file`` path."""
    if not from_file and not value.startswith("@"):
        return value
    source = value if from_file else value[1:]
    if source == "-":
        return sys.stdin.read()
    path = Path(source).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidBody(f"Cannot read body file {path}: {exc}") from exc


def _suggest(name: str, by_flag: Mapping[str, ParamDef]) -> list[str]:
    return [f"--{m}" for m in difflib.get_close_matches(name, list(by_flag), n=3, cutoff=0.6)]


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def _coerce_param(param: ParamDef, values: list[str]) -> Any:
    if param.is_list:
        items = [
            part.strip()
            for value in values
            for part in value.split(",")
            if part.strip()
        ]
        item_type = param.items or PrimitiveType.STRING
        return [_coerce(param, item, item_type) for item in items]
    return _coerce(param, values[0], param.type)


def _coerce(param: ParamDef, value: str, target: PrimitiveType) -> Any:
    if target == PrimitiveType.INTEGER:
        try:
            result: Any = int(value)
        except ValueError:
            raise TypeMismatch(param.name, "integer", value) from None
    elif target == PrimitiveType.NUMBER:
        try:
            result = float(value)
        except ValueError:
            raise TypeMismatch(param.name, "number", value) from None
    elif target == PrimitiveType.BOOLEAN:
        lowered = value.lower()
        if lowered in _TRUE:
            result = True
        elif lowered in _FALSE:
            result = False
        else:
            raise TypeMismatch(param.name, "boolean", value)
    else:
        result = value

    if param.enum and _canonical(result) not in param.enum and value not in param.enum:
        raise TypeMismatch(param.name, "one of " + ", ".join(param.enum), value)
    return result


def _canonical(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
