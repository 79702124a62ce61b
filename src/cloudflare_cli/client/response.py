"""Response formatting -- turn a :class:`~cloudflare_cli.models.RawResponse` into output text.

Cloudflare wraps every payload in an envelope::

    {"success": true, "errors": [], "messages": [], "result": {...}}

By default only ``result`` is printed; ``--raw`` keeps the envelope. Output is
compact single-line JSON unless ``--pretty`` is given. Bodies that are not
JSON are passed through verbatim with a warning on stderr.
"""

from __future__ import annotations

import json
from typing import Any

from cloudflare_cli.exceptions import FormatError
from cloudflare_cli.models import RawResponse
from cloudflare_cli.output import dumps_json, warning


def decode_json(response: RawResponse) -> Any:
    """Decode the response body as JSON.

    Raises:
        FormatError: If the body is not JSON.
    """
    try:
        return json.loads(response.text)
    except ValueError as exc:
        content_type = response.headers.get("content-type", "unknown content type")
        raise FormatError(
            f"Response body is not JSON ({content_type}); printing it verbatim"
        ) from exc


def format_response(response: RawResponse, raw: bool = False, pretty: bool = False) -> str:
    """Render *response* for stdout.

    Args:
        response: The response to render.
        raw: Keep the full envelope instead of extracting ``result``.
        pretty: Indent with two spaces instead of compact output.

    Returns:
        The text to print; empty for an empty body.
    """
    if not response.content.strip():
        return ""
    try:
        data = decode_json(response)
    except FormatError as exc:
        warning(str(exc))
        return response.text

    if not raw and isinstance(data, dict) and "result" in data:
        data = data["result"]
    return dumps_json(data, pretty=pretty)
