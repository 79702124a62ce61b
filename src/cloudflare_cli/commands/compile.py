"""``cloudflare-gen-tree`` -- compile an OpenAPI document into a command tree.

Run offline, typically to refresh the tree shipped with the package::

    cloudflare-gen-tree --openapi schemas/openapi.yaml \\
        --out src/cloudflare_cli/schemas/command_tree.json

``--check`` compiles without writing and exits 1 when the existing artifact
is stale, for use in CI.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from cloudflare_cli.compiler import compile_tree
from cloudflare_cli.exceptions import CloudflareCliError
from cloudflare_cli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from cloudflare_cli.output import (
    OutputManager,
    configure_logging,
    error,
    info,
    set_output,
    success,
    suggest,
)
from cloudflare_cli.parser import extract_schema, load_spec
from cloudflare_cli.parser.loader import DEFAULT_SCHEMA_URL
from cloudflare_cli.tree import dumps_tree, write_command_tree


gen_app = typer.Typer(
    name="cloudflare-gen-tree",
    add_completion=False,
    rich_markup_mode="rich",
)


@gen_app.command()
def compile_command(
    openapi: str = typer.Option(
        DEFAULT_SCHEMA_URL,
        "--openapi",
        help="OpenAPI document: a file path, an http(s) URL, or '-' for stdin.",
    ),
    out: Path = typer.Option(..., "--out", help="Where to write the command tree."),
    check: bool = typer.Option(
        False, "--check", help="Do not write; exit 1 if OUT differs from a fresh compile."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
) -> None:
    """Compile an OpenAPI document into a command tree artifact."""
    set_output(OutputManager(quiet=quiet))
    configure_logging(verbose=verbose)

    try:
        info(f"Loading {openapi}")
        tree = compile_tree(extract_schema(load_spec(openapi)))
    except CloudflareCliError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    operations = sum(len(r.operations) for r in tree.resources)
    if check:
        fresh = dumps_tree(tree)
        try:
            current = out.read_text(encoding="utf-8")
        except OSError:
            current = None
        if current != fresh:
            error(f"{out} is out of date")
            suggest(f"Run: cloudflare-gen-tree --openapi {openapi} --out {out}")
            raise typer.Exit(code=EXIT_GENERIC_FAILURE)
        success(f"{out} is up to date")
        return

    try:
        write_command_tree(tree, out)
    except OSError as exc:
        error(f"Cannot write {out}: {exc}")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE) from None
    success(f"Wrote {len(tree.resources)} resources, {operations} operations to {out}")


def main() -> None:
    """Entry point for the ``cloudflare-gen-tree`` console script."""
    try:
        gen_app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
