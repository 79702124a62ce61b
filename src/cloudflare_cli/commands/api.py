"""``cloudflare api`` -- call any endpoint, including ones missing from the tree.

The path is joined to the API base URL unless it is already absolute, and the
request goes through the same executor and formatter as tree operations::

    cloudflare api GET /zones --query name=example.com
    cloudflare api POST /zones/abc/purge_cache --body '{"purge_everything":true}'
"""

from __future__ import annotations

from typing import Optional

import typer

from cloudflare_cli.dispatch import (
    TOKEN_HINT,
    fail,
    get_settings,
    get_tree,
    request_overrides,
    send,
)
from cloudflare_cli.exceptions import (
    AuthError,
    CloudflareCliError,
    TransportError,
    UsageError,
)
from cloudflare_cli.models import RuntimeFlags
from cloudflare_cli.runtime import build_raw_request
from cloudflare_cli.runtime.binder import read_body
from cloudflare_cli.runtime.request import parse_header, parse_query


def api_command(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method, e.g. GET or POST."),
    path: str = typer.Argument(..., help="API path such as /zones, or a full URL."),
    query: list[str] = typer.Option(
        [], "--query", help="Query parameter as key=value (repeatable)."
    ),
    body: Optional[str] = typer.Option(
        None, "--body", help="JSON request body, or @file to read it from a file."
    ),
    body_file: Optional[str] = typer.Option(
        None, "--body-file", help="Read the JSON request body from a file ('-' for stdin)."
    ),
    header: list[str] = typer.Option(
        [], "--header", help="Extra request header as name:value (repeatable)."
    ),
    raw: bool = typer.Option(False, "--raw", help="Print the full response envelope."),
    pretty: bool = typer.Option(False, "--pretty", help="Indent JSON output."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the request instead of sending it."
    ),
) -> None:
    """Send METHOD PATH and print the response."""
    try:
        if body is not None and body_file is not None:
            raise UsageError("Pass either --body or --body-file, not both")
        text: Optional[str] = None
        if body_file is not None:
            text = read_body(body_file, from_file=True)
        elif body is not None:
            text = read_body(body, from_file=False)

        flags = RuntimeFlags(
            headers=[parse_header(h) for h in header],
            raw=raw,
            pretty=pretty,
            dry_run=dry_run,
        )
        settings = get_settings(ctx)
        request = build_raw_request(
            method,
            path,
            [parse_query(q) for q in query],
            text,
            request_overrides(settings, get_tree(ctx), flags.headers),
        )
        send(request, flags, settings)
    except AuthError as exc:
        raise fail(exc, hint=TOKEN_HINT) from None
    except TransportError as exc:
        raise fail(exc) from None
    except CloudflareCliError as exc:
        raise fail(exc, hint="cloudflare api --help") from None
