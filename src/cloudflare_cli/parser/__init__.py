"""OpenAPI parser -- load a document and build the in-memory schema model.

This sub-package is the compile-time front end: it turns a raw OpenAPI 3.x
document (YAML or JSON, local file, URL or stdin) into a
:class:`~cloudflare_cli.models.SchemaModel` that
:func:`~cloudflare_cli.compiler.compile_tree` can consume.

Typical usage::

    from cloudflare_cli.parser import extract_schema, load_spec

    schema = extract_schema(load_spec("schemas/openapi.yaml"))

Sub-modules:

* :mod:`~cloudflare_cli.parser.loader` -- I/O, format detection and OpenAPI
  version validation.
* :mod:`~cloudflare_cli.parser.resolver` -- Memoized ``$ref`` lookups with
  cycle guards.
* :mod:`~cloudflare_cli.parser.extractor` -- Walks ``paths`` and merges
  path-item parameters into each operation.
"""

from cloudflare_cli.parser.extractor import extract_schema
from cloudflare_cli.parser.loader import load_spec, validate_openapi_version
from cloudflare_cli.parser.resolver import RefTable

__all__ = ["load_spec", "validate_openapi_version", "extract_schema", "RefTable"]
