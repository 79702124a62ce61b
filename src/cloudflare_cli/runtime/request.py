"""Assemble HTTP requests from an operation and its bound parameters.

:func:`build_request` is the step between the Arg Binder and the HTTP
Executor for tree-backed commands; :func:`build_raw_request` backs the
``cloudflare api`` escape hatch. Both produce an immutable
:class:`~cloudflare_cli.models.BoundRequest` with an absolute URL.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx

from cloudflare_cli import __version__
from cloudflare_cli.compiler import path_placeholders
from cloudflare_cli.exceptions import (
    InvalidBody,
    InvalidHeader,
    MissingBody,
    UnboundPathParameter,
    UsageError,
)
from cloudflare_cli.models import (
    BoundParameters,
    BoundRequest,
    HTTPMethod,
    OperationNode,
    ParameterLocation,
    RequestOverrides,
)

logger = logging.getLogger(__name__)

USER_AGENT = f"cloudflare-cli/{__version__}"

ACCOUNT_ID_ALIASES = ("account_id", "account_identifier", "accountId")
ZONE_ID_ALIASES = ("zone_id", "zone_identifier", "zoneId")

REDACTED = "<redacted>"


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def render_value(value: Any) -> str:
    """Render a bound value the way it goes on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(render_value(v) for v in value)
    return str(value)


def parse_header(text: str) -> tuple[str, str]:
    """Parse a ``--header`` value of the form ``name:value`` or ``name=value``.

    Whichever separator comes first wins, so ``X-Filter:a=b`` keeps ``a=b``
    as the value.

    Raises:
        InvalidHeader: If there is no separator or the name is empty.
    """
    positions = [i for i in (text.find(":"), text.find("=")) if i >= 0]
    if not positions:
        raise InvalidHeader(f"Invalid header '{text}'. Expected 'name:value'")
    cut = min(positions)
    name, value = text[:cut].strip(), text[cut + 1 :].strip()
    if not name:
        raise InvalidHeader(f"Invalid header '{text}'. Header name is empty")
    return name, value


def parse_query(text: str) -> tuple[str, str]:
    """Parse an ``api --query`` value of the form ``key=value``."""
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise UsageError(f"Invalid query '{text}'. Expected 'key=value'")
    return key.strip(), value


def parse_body(text: str) -> Any:
    """Parse a JSON request body.

    Raises:
        InvalidBody: If *text* is not valid JSON.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidBody(f"Request body is not valid JSON: {exc}") from exc


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set *name*, replacing any existing header that differs only in case."""
    for existing in [k for k in headers if k.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


def _base_headers(overrides: RequestOverrides) -> dict[str, str]:
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if overrides.api_token:
        headers["Authorization"] = f"Bearer {overrides.api_token}"
    return headers


def _join_url(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def _same_origin(url: str, base_url: str) -> bool:
    target, base = httpx.URL(url), httpx.URL(base_url)
    return (target.scheme, target.host, target.port) == (base.scheme, base.host, base.port)


def _with_query(url: str, query: Sequence[tuple[str, str]]) -> str:
    if not query:
        return url
    return str(httpx.URL(url).copy_merge_params(list(query)))


def _fallback_id(name: str, overrides: RequestOverrides) -> Optional[str]:
    if name in ACCOUNT_ID_ALIASES:
        return overrides.account_id
    if name in ZONE_ID_ALIASES:
        return overrides.zone_id
    return None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_request(
    op: OperationNode,
    params: BoundParameters,
    overrides: RequestOverrides,
) -> BoundRequest:
    """Build the HTTP request for *op*.

    Path placeholders are replaced with percent-encoded values. Account and
    zone identifiers that were not bound fall back to *overrides*.

    Headers are layered in this order, later layers winning
    case-insensitively: ``Accept``, ``User-Agent``, ``Authorization`` (when
    a token is set), header parameters, ``Content-Type`` for a JSON body,
    then the user's ``--header`` values.

    Raises:
        UnboundPathParameter: If a placeholder has no value.
        InvalidBody: If ``--body`` is not valid JSON.
        MissingBody: If the operation requires a body and none was given.
    """
    path_values = {
        b.name: b.value for b in params.by_location(ParameterLocation.PATH)
    }
    path = op.path
    for placeholder in path_placeholders(op.path):
        value = path_values.get(placeholder)
        if value is None:
            value = _fallback_id(placeholder, overrides)
        if value is None:
            raise UnboundPathParameter(placeholder, op.path)
        path = path.replace(
            "{" + placeholder + "}", quote(render_value(value), safe=""), 1
        )

    query: list[tuple[str, str]] = []
    for bound in params.by_location(ParameterLocation.QUERY):
        if bound.value is None:
            continue
        values = bound.value if isinstance(bound.value, list) else [bound.value]
        query.extend((bound.name, render_value(v)) for v in values)

    headers = _base_headers(overrides)
    for bound in params.by_location(ParameterLocation.HEADER):
        if bound.value is not None:
            _set_header(headers, bound.name, render_value(bound.value))
    cookies = [
        f"{b.name}={render_value(b.value)}"
        for b in params.by_location(ParameterLocation.COOKIE)
        if b.value is not None
    ]
    if cookies:
        _set_header(headers, "Cookie", "; ".join(cookies))

    body: Any = None
    has_body = params.body is not None
    if has_body:
        body = parse_body(params.body)
        _set_header(headers, "Content-Type", "application/json")
    elif op.body_required:
        raise MissingBody(op.slug)

    for name, value in overrides.headers:
        _set_header(headers, name, value)

    url = _with_query(_join_url(overrides.base_url, path), query)
    logger.debug("Built %s %s", op.method.value, url)
    return BoundRequest(
        method=op.method, url=url, headers=headers, body=body, has_body=has_body
    )


def build_raw_request(
    method: str,
    path: str,
    query: Sequence[tuple[str, str]],
    body: Optional[str],
    overrides: RequestOverrides,
) -> BoundRequest:
    """Build a request for an arbitrary *method* and *path*.

    *path* is joined to ``overrides.base_url`` unless it is already an
    absolute ``http(s)://`` URL. The API token is only attached when the
    absolute URL has the same scheme, host and port as the base URL; an
    explicit ``Authorization`` header in ``overrides.headers`` is always sent.

    Raises:
        UsageError: If *method* is not an HTTP method.
        InvalidBody: If *body* is not valid JSON.
    """
    try:
        http_method = HTTPMethod(method.upper())
    except ValueError:
        allowed = ", ".join(m.value for m in HTTPMethod)
        raise UsageError(
            f"Unsupported HTTP method '{method}'. Expected one of: {allowed}"
        ) from None

    headers = _base_headers(overrides)
    if path.startswith(("http://", "https://")):
        url = path
        if "Authorization" in headers and not _same_origin(url, overrides.base_url):
            del headers["Authorization"]
            logger.warning(
                "Not sending the API token to %s; it is outside %s",
                httpx.URL(url).host,
                overrides.base_url,
            )
    else:
        url = _join_url(overrides.base_url, path)

    parsed: Any = None
    if body is not None:
        parsed = parse_body(body)
        _set_header(headers, "Content-Type", "application/json")
    for name, value in overrides.headers:
        _set_header(headers, name, value)

    return BoundRequest(
        method=http_method,
        url=_with_query(url, query),
        headers=headers,
        body=parsed,
        has_body=body is not None,
    )


def describe_request(request: BoundRequest) -> dict[str, Any]:
    """Return a printable view of *request* with credentials redacted."""
    headers = {
        name: (REDACTED if name.lower() == "authorization" else value)
        for name, value in request.headers.items()
    }
    data: dict[str, Any] = {
        "method": request.method.value,
        "url": request.url,
        "headers": headers,
    }
    if request.has_body:
        data["body"] = request.body
    return data
