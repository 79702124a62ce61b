"""Shared test fixtures for cloudflare-cli.

Provides the Cloudflare OpenAPI subset under ``tests/fixtures``, its parsed
and compiled forms, isolated config environments, and helpers for running
the CLI against a tree written to a temporary file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from cloudflare_cli.models import (
    CommandTree,
    HTTPMethod,
    OperationNode,
    ParamDef,
    ParameterLocation,
    ResourceNode,
    SchemaModel,
)
from cloudflare_cli.output import reset_output
from cloudflare_cli.tree import dumps_tree


FIXTURES_DIR = Path(__file__).parent / "fixtures"
SUBSET_PATH = FIXTURES_DIR / "cloudflare_subset.yaml"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager holds Rich consoles bound to the streams that were
    current when it was created. CliRunner swaps those streams per
    invocation, so a manager left behind by one test must not leak into
    the next.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# OpenAPI fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def subset_raw() -> dict[str, Any]:
    """The Cloudflare API subset as a plain dict."""
    with open(SUBSET_PATH, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def subset_schema(subset_raw: dict[str, Any]) -> SchemaModel:
    from cloudflare_cli.parser import extract_schema

    return extract_schema(subset_raw)


@pytest.fixture
def subset_tree(subset_schema: SchemaModel) -> CommandTree:
    """The subset compiled into a command tree."""
    from cloudflare_cli.compiler import compile_tree

    return compile_tree(subset_schema)


# ---------------------------------------------------------------------------
# Command tree fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def dns_record_operation() -> OperationNode:
    """``GET /zones/{zone_id}/dns_records/{id}`` with two path parameters."""
    return OperationNode(
        slug="get",
        display_name="dns-records-get",
        method=HTTPMethod.GET,
        path="/zones/{zone_id}/dns_records/{id}",
        parameters=[
            ParamDef(
                name="zone_id",
                flag="zone-id",
                location=ParameterLocation.PATH,
                required=True,
            ),
            ParamDef(
                name="id",
                flag="id",
                location=ParameterLocation.PATH,
                required=True,
            ),
        ],
    )


@pytest.fixture
def two_resource_tree() -> CommandTree:
    """A tree with two resources holding one operation each."""
    return CommandTree(
        title="Test API",
        resources=[
            ResourceNode(
                slug="accounts",
                display_name="Accounts",
                operations=[
                    OperationNode(
                        slug="list",
                        display_name="accounts-list",
                        method=HTTPMethod.GET,
                        path="/accounts",
                    )
                ],
            ),
            ResourceNode(
                slug="zones",
                display_name="Zones",
                operations=[
                    OperationNode(
                        slug="get",
                        display_name="zones-get",
                        method=HTTPMethod.GET,
                        path="/zones/{zone_id}",
                        parameters=[
                            ParamDef(
                                name="zone_id",
                                flag="zone-id",
                                location=ParameterLocation.PATH,
                                required=True,
                            )
                        ],
                    )
                ],
            ),
        ],
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG base directories into *tmp_path* and clears every
    ``CLOUDFLARE_*`` variable so that tests never read real credentials.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("cloudflare_cli.config._is_xdg_platform", lambda: True)
    for var in [
        "CLOUDFLARE_API_TOKEN",
        "CLOUDFLARE_API_URL",
        "CLOUDFLARE_ACCOUNT_ID",
        "CLOUDFLARE_ZONE_ID",
        "CLOUDFLARE_CLI_TREE",
        "CLOUDFLARE_CLI_TIMEOUT",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def use_tree(isolated_config: Path, monkeypatch: pytest.MonkeyPatch):
    """Return a function that installs a tree for CLI invocations.

    The tree is written to a temporary file and selected through
    ``CLOUDFLARE_CLI_TREE``.
    """

    def _install(tree: CommandTree) -> Path:
        path = isolated_config / "command_tree.json"
        path.write_text(dumps_tree(tree), encoding="utf-8")
        monkeypatch.setenv("CLOUDFLARE_CLI_TREE", str(path))
        return path

    return _install


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner; ``result.stdout`` and ``result.stderr`` are separate."""
    from typer.testing import CliRunner

    return CliRunner()
