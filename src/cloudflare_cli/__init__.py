"""cloudflare-cli -- an OpenAPI-driven command line for the Cloudflare API.

The package compiles an OpenAPI document into a stable *command tree*
(resource -> operation -> parameter bindings) and ships that tree as a JSON
artifact. At run time the ``cloudflare`` command loads the artifact, binds
command-line flags to the selected operation, issues the HTTP request, and
prints the response as JSON.

Typical workflow::

    cloudflare-gen-tree --openapi schemas/openapi.yaml --out command_tree.json
    cloudflare list
    cloudflare describe dns-records-for-a-zone dns-records-for-a-zone-list-dns-records
    cloudflare dns-records-for-a-zone dns-records-for-a-zone-list-dns-records --zone-id Z1

Modules:
    app: Typer application and ``cloudflare`` entry point.
    compiler: OpenAPI -> command tree compiler.
    tree: Loading and writing the command tree artifact.
    discovery: Read-only queries behind ``list``, ``describe`` and ``tree``.
    runtime: Argument binding and request building.
    client: HTTP execution and response formatting.
    models: Pydantic models shared across the package.
    config: Settings resolution from flags, environment and config file.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.3.0"
