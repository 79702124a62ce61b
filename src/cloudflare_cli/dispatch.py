"""Expose the command tree as click commands and run operations.

The root Typer app uses :class:`CommandTreeGroup`, which lists the built-in
commands registered with decorators followed by one :class:`ResourceGroup`
per resource in the tree. Groups and commands are created lazily on lookup,
so only the invoked branch of a tree with thousands of operations is ever
materialised. An :class:`OperationCommand` accepts arbitrary arguments and
forwards them to the Arg Binder.

The pipeline for ``cloudflare <resource> <operation> ...`` is::

    split_runtime_flags -> bind -> build_request -> HttpExecutor -> format_response
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import click
import typer
from typer.core import TyperGroup

from cloudflare_cli.client import HttpExecutor, format_response, raise_for_status
from cloudflare_cli.config import load_settings
from cloudflare_cli.discovery import suggestions
from cloudflare_cli.exceptions import (
    AuthError,
    CloudflareCliError,
    TransportError,
    UnknownOperation,
    UnknownResource,
)
from cloudflare_cli.models import (
    BoundRequest,
    CommandTree,
    OperationNode,
    RequestOverrides,
    ResourceNode,
    RuntimeFlags,
    Settings,
)
from cloudflare_cli.output import (
    OutputManager,
    configure_logging,
    error,
    print_data,
    print_json,
    set_output,
    suggest,
    warning,
)
from cloudflare_cli.runtime import bind, build_request, default_values, split_runtime_flags
from cloudflare_cli.runtime.request import describe_request
from cloudflare_cli.tree import load_command_tree

logger = logging.getLogger(__name__)

RESOURCES_PANEL = "Resources"
TOKEN_HINT = "Create an API token in the Cloudflare dashboard and export CLOUDFLARE_API_TOKEN"

_OPERATION_CONTEXT = {
    "ignore_unknown_options": True,
    "allow_extra_args": True,
    "help_option_names": ["--help"],
}


# ---------------------------------------------------------------------------
# Invocation state
# ---------------------------------------------------------------------------
#
# Click resolves the sub-command before running the root callback, so the
# state below is built on first use from the root context's parsed params
# and cached in its ``obj`` dict.


def _state(ctx: click.Context) -> dict[str, Any]:
    root = ctx.find_root()
    root.ensure_object(dict)
    return root.obj


def configure(ctx: click.Context) -> None:
    """Install output and logging from the global flags, once per invocation."""
    state = _state(ctx)
    if state.get("configured"):
        return
    params = ctx.find_root().params
    no_color = bool(params.get("no_color"))
    verbose = bool(params.get("verbose"))
    set_output(
        OutputManager(no_color=no_color, quiet=bool(params.get("quiet")))
    )
    configure_logging(verbose=verbose, no_color=no_color)
    state["configured"] = True


def get_settings(ctx: click.Context) -> Settings:
    state = _state(ctx)
    if "settings" not in state:
        params = ctx.find_root().params
        state["settings"] = load_settings(
            cli_tree=params.get("tree"), cli_timeout=params.get("timeout")
        )
    return state["settings"]


def get_tree(ctx: click.Context) -> CommandTree:
    state = _state(ctx)
    if "tree" not in state:
        state["tree"] = load_command_tree(get_settings(ctx).tree_path)
    return state["tree"]


def request_overrides(
    settings: Settings, tree: CommandTree, headers: Sequence[tuple[str, str]] = ()
) -> RequestOverrides:
    """Build request overrides; ``CLOUDFLARE_API_URL`` beats the tree's endpoint."""
    return RequestOverrides(
        base_url=settings.api_url or tree.endpoint,
        headers=list(headers),
        api_token=settings.api_token,
        account_id=settings.account_id,
        zone_id=settings.zone_id,
    )


def fail(
    exc: CloudflareCliError,
    hint: Optional[str] = None,
    json_output: bool = False,
    pretty: bool = False,
) -> typer.Exit:
    """Report *exc* and return the :class:`typer.Exit` to raise.

    With *json_output* the structured error goes to stdout as
    ``{"error": {...}}``; otherwise a message (plus suggestions and *hint*)
    goes to stderr.
    """
    if json_output:
        print_json({"error": exc.to_dict()}, pretty=pretty)
    else:
        error(str(exc))
        candidates = getattr(exc, "suggestions", None)
        if candidates:
            suggest("Did you mean: " + ", ".join(candidates) + "?")
        if hint:
            suggest(hint)
    return typer.Exit(code=exc.exit_code)


# ---------------------------------------------------------------------------
# Request execution (shared with ``cloudflare api``)
# ---------------------------------------------------------------------------


def send(request: BoundRequest, flags: RuntimeFlags, settings: Settings) -> None:
    """Execute *request* and print the formatted response.

    With ``--dry-run`` the request is printed instead (credentials
    redacted) and no token is needed. The body of an error response is
    printed, unmodified, before :class:`~cloudflare_cli.exceptions.ApiError`
    is raised.

    Raises:
        AuthError: If no API token is configured.
        TransportError: If the call fails or returns a non-2xx status.
    """
    if flags.dry_run:
        print_json(describe_request(request), pretty=flags.pretty)
        return
    if not settings.api_token:
        raise AuthError("CLOUDFLARE_API_TOKEN is not set")

    with HttpExecutor(timeout=settings.timeout) as executor:
        response = executor.execute(request)

    text = format_response(
        response, raw=flags.raw or not response.is_success, pretty=flags.pretty
    )
    if text:
        print_data(text)
    raise_for_status(response)


def run_operation(
    ctx: click.Context, resource: str, node: OperationNode, args: Sequence[str]
) -> None:
    """Bind *args* to *node*, then build, send and print the request."""
    hint = f"cloudflare describe {resource} {node.slug}"
    try:
        settings = get_settings(ctx)
        remaining, flags = split_runtime_flags(args)
        params = bind(node, remaining, default_values(settings.account_id, settings.zone_id))
        request = build_request(
            node, params, request_overrides(settings, get_tree(ctx), flags.headers)
        )
        send(request, flags, settings)
    except AuthError as exc:
        raise fail(exc, hint=TOKEN_HINT) from None
    except TransportError as exc:
        raise fail(exc) from None
    except CloudflareCliError as exc:
        raise fail(exc, hint=hint) from None


# ---------------------------------------------------------------------------
# Click command classes
# ---------------------------------------------------------------------------


class OperationCommand(click.Command):
    """A tree operation; all arguments are passed through to the binder."""

    def __init__(self, resource: str, node: OperationNode) -> None:
        summary = node.summary or node.display_name
        super().__init__(
            name=node.slug,
            help=node.description or summary,
            short_help=summary,
            context_settings=dict(_OPERATION_CONTEXT),
            deprecated=node.deprecated,
            add_help_option=True,
        )
        self.resource = resource
        self.node = node

    def invoke(self, ctx: click.Context) -> None:
        if self.node.deprecated:
            warning(f"'{self.resource} {self.node.slug}' is deprecated")
        run_operation(ctx, self.resource, self.node, list(ctx.args))

    def collect_usage_pieces(self, ctx: click.Context) -> list[str]:
        pieces = [f"[{p.name.upper()}]" for p in self.node.path_parameters()]
        return pieces + ["[OPTIONS]"]

    def format_help_text(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        formatter.write_paragraph()
        with formatter.indentation():
            formatter.write_text(f"{self.node.method.value} {self.node.path}")
            if self.node.deprecated:
                formatter.write_text("(Deprecated)")
            if self.node.summary:
                formatter.write_paragraph()
                formatter.write_text(self.node.summary)
            if self.node.description and self.node.description != self.node.summary:
                formatter.write_paragraph()
                formatter.write_text(self.node.description)

    def format_options(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        rows = []
        for param in self.node.parameters:
            label = f"--{param.flag} <{param.type.value}>"
            notes = [param.location.value]
            if param.required:
                notes.append("required")
            text = f"[{', '.join(notes)}]"
            if param.enum:
                text += f" one of: {', '.join(param.enum)}."
            if param.description:
                text += f" {param.description}"
            rows.append((label, text))
        if rows:
            with formatter.section("Parameters"):
                formatter.write_dl(rows)

        if self.node.has_body:
            body = [
                ("--body <json|@file>", "JSON request body"
                 + (" (required)" if self.node.body_required else "")),
                ("--body-file <path>", "Read the JSON request body from a file"),
            ]
            for field in self.node.body_fields:
                marker = ", required" if field.required else ""
                body.append((f"  {field.name}", f"[{field.type}{marker}] {field.description or ''}".rstrip()))
            with formatter.section("Request body"):
                formatter.write_dl(body)

        with formatter.section("Options"):
            formatter.write_dl(
                [
                    ("--header <name:value>", "Extra request header (repeatable)"),
                    ("--raw", "Print the full response envelope"),
                    ("--pretty", "Indent JSON output"),
                    ("--dry-run", "Print the request instead of sending it"),
                    ("--help", "Show this message and exit."),
                ]
            )


class ResourceGroup(TyperGroup):
    """A resource from the tree; its operations and child resources are commands."""

    def __init__(self, node: ResourceNode, path: Sequence[str] = ()) -> None:
        super().__init__(
            name=node.slug,
            help=node.description or node.display_name,
            short_help=node.display_name,
            no_args_is_help=True,
            rich_help_panel=RESOURCES_PANEL,
        )
        self.node = node
        self.path = list(path) or [node.slug]

    @property
    def label(self) -> str:
        return " ".join(self.path)

    def list_commands(self, ctx: click.Context) -> list[str]:
        names = [op.slug for op in self.node.operations]
        names.extend(child.slug for child in self.node.resources)
        return sorted(names)

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        op = self.node.operation(cmd_name)
        if op is not None:
            return OperationCommand(self.label, op)
        child = self.node.resource(cmd_name)
        if child is not None:
            return ResourceGroup(child, self.path + [child.slug])
        return None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[Optional[str], Optional[click.Command], list[str]]:
        name = args[0]
        if (
            not ctx.resilient_parsing
            and not name.startswith("-")
            and self.get_command(ctx, name) is None
        ):
            exc = UnknownOperation(
                "/".join(self.path), name, suggestions(name, self.list_commands(ctx))
            )
            raise fail(exc, hint=f"cloudflare list {'/'.join(self.path)} --ops")
        return super().resolve_command(ctx, args)


class CommandTreeGroup(TyperGroup):
    """Root group: built-in commands plus one group per tree resource."""

    def _tree(self, ctx: click.Context) -> CommandTree:
        configure(ctx)
        return get_tree(ctx)

    def list_commands(self, ctx: click.Context) -> list[str]:
        builtins = super().list_commands(ctx)
        try:
            tree = self._tree(ctx)
        except CloudflareCliError as exc:
            logger.warning("Command tree unavailable: %s", exc)
            return builtins
        return builtins + [r.slug for r in tree.resources if r.slug not in builtins]

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        try:
            node = self._tree(ctx).resource(cmd_name)
        except CloudflareCliError as exc:
            raise fail(exc) from None
        return ResourceGroup(node) if node is not None else None

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[Optional[str], Optional[click.Command], list[str]]:
        configure(ctx)
        name = args[0]
        if (
            not ctx.resilient_parsing
            and not name.startswith("-")
            and self.get_command(ctx, name) is None
        ):
            exc = UnknownResource(name, suggestions(name, self.list_commands(ctx)))
            raise fail(exc, hint="cloudflare list")
        return super().resolve_command(ctx, args)
