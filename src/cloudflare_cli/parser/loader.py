"""Load OpenAPI documents from a local file, an HTTP(S) URL, or stdin.

Cloudflare publishes its schema as a single large YAML file, so YAML is the
primary format here; JSON is detected from the file extension, the response
content type or the first non-blank character. Parsing uses the libyaml
``CSafeLoader`` when PyYAML was built with it, since the upstream document
is tens of megabytes.

The two public functions are:

* :func:`load_spec` -- Load and parse a document from any supported source.
* :func:`validate_openapi_version` -- Check and return the ``openapi``
  version string, rejecting Swagger 2.x.

The resulting dict is handed to
:func:`~cloudflare_cli.parser.extractor.extract_schema`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from cloudflare_cli.exceptions import SchemaError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_URL = (
    "https://raw.githubusercontent.com/cloudflare/api-schemas/main/openapi.yaml"
)
"""Upstream location of Cloudflare's published OpenAPI document."""

_YAML_LOADER = getattr(yaml, "CSafeLoader", yaml.SafeLoader)


def load_spec(source: str, timeout: float = 60.0) -> dict[str, Any]:
    """Load an OpenAPI document from a URL, file path, or stdin (``-``).

    Args:
        source: An ``http(s)://`` URL, a file path, or ``-`` for stdin.
        timeout: Network timeout in seconds when *source* is a URL.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SchemaError: If the source cannot be read or parsed.
    """
    if source == "-":
        content = sys.stdin.read()
        if not content.strip():
            raise SchemaError("No input received from stdin")
        return _parse_content(content, hint="")
    if source.startswith(("http://", "https://")):
        return _load_from_url(source, timeout)
    return _load_from_file(Path(source))


def _load_from_url(url: str, timeout: float) -> dict[str, Any]:
    """Fetch and parse a document over HTTP."""
    logger.debug("Fetching OpenAPI document from %s", url)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SchemaError(
            f"HTTP {exc.response.status_code} fetching OpenAPI document from {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise SchemaError(f"Failed to fetch OpenAPI document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = "json" if "json" in content_type else ""
    return _parse_content(response.text, hint=hint)


def _load_from_file(path: Path) -> dict[str, Any]:
    """Read and parse a local document; ``.json`` files skip YAML parsing."""
    if not path.is_file():
        raise SchemaError(f"OpenAPI document not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaError(f"Failed to read OpenAPI document {path}: {exc}") from exc
    if not content.strip():
        raise SchemaError(f"OpenAPI document is empty: {path}")

    hint = "json" if path.suffix.lower() == ".json" else ""
    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON (when hinted or obviously JSON) or YAML.

    Valid JSON is also valid YAML, so anything not clearly JSON goes
    through the YAML loader.

    Raises:
        SchemaError: If the content cannot be parsed or is not a mapping.
    """
    looks_like_json = hint == "json" or content.lstrip().startswith("{")
    if looks_like_json:
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SchemaError(f"Invalid JSON: {exc}") from exc
            result = _parse_yaml(content)
    else:
        result = _parse_yaml(content)

    if not isinstance(result, dict):
        found = type(result).__name__ if result is not None else "empty document"
        raise SchemaError(f"OpenAPI document must be a mapping (got {found})")
    return result


def _parse_yaml(content: str) -> Any:
    try:
        return yaml.load(content, Loader=_YAML_LOADER)  # noqa: S506 -- safe loader
    except yaml.YAMLError as exc:
        raise SchemaError(f"Invalid YAML: {exc}") from exc


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Accepts any ``3.x`` version. Swagger 2.x documents and documents without
    an ``openapi`` field are rejected.

    Raises:
        SchemaError: If the version is missing or unsupported.
    """
    if "swagger" in spec:
        raise SchemaError(
            f"Swagger {spec['swagger']} is not supported; "
            "only OpenAPI 3.x documents can be compiled"
        )

    version = spec.get("openapi")
    if version is None:
        raise SchemaError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SchemaError(f"Unsupported OpenAPI version: {version_str}")
    return version_str
