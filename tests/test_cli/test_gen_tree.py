"""Tests for the ``cloudflare-gen-tree`` command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cloudflare_cli.commands.compile import gen_app
from cloudflare_cli.models import CommandTree
from cloudflare_cli.tree import dumps_tree

SUBSET_PATH = Path(__file__).parent.parent / "fixtures" / "cloudflare_subset.yaml"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner(env={"NO_COLOR": "1"})


class TestWrite:
    def test_writes_tree(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "command_tree.json"
        result = runner.invoke(gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out)])
        assert result.exit_code == 0
        assert "Wrote 3 resources, 10 operations" in result.stderr
        assert result.stdout == ""

        data = json.loads(out.read_text(encoding="utf-8"))
        assert [r["slug"] for r in data["resources"]] == ["dns-records-for-a-zone", "user", "zone"]

    def test_output_matches_compiled_tree(
        self, runner: CliRunner, tmp_path: Path, subset_tree: CommandTree
    ) -> None:
        out = tmp_path / "command_tree.json"
        runner.invoke(gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out)])
        assert out.read_text(encoding="utf-8") == dumps_tree(subset_tree)

    def test_rerun_is_byte_identical(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "command_tree.json"
        runner.invoke(gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out)])
        first = out.read_bytes()
        runner.invoke(gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out)])
        assert out.read_bytes() == first

    def test_quiet(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "command_tree.json"
        result = runner.invoke(
            gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out), "--quiet"]
        )
        assert result.exit_code == 0
        assert result.stderr == ""

    def test_missing_document(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            gen_app,
            ["--openapi", str(tmp_path / "missing.yaml"), "--out", str(tmp_path / "t.json")],
        )
        assert result.exit_code != 0
        assert "Error:" in result.stderr
        assert not (tmp_path / "t.json").exists()

    def test_schema_error_exit_code(self, runner: CliRunner, tmp_path: Path) -> None:
        document = tmp_path / "broken.yaml"
        document.write_text(
            "openapi: 3.0.0\n"
            "info: {title: Broken, version: '1'}\n"
            "paths:\n"
            "  /zones/{zone_id}:\n"
            "    get:\n"
            "      operationId: zones-get\n"
            "      tags: [Zone]\n",
            encoding="utf-8",
        )
        result = runner.invoke(
            gen_app, ["--openapi", str(document), "--out", str(tmp_path / "t.json")]
        )
        assert result.exit_code == 7


class TestCheck:
    def test_up_to_date(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "command_tree.json"
        runner.invoke(gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out)])
        result = runner.invoke(
            gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out), "--check"]
        )
        assert result.exit_code == 0
        assert "is up to date" in result.stderr

    def test_stale(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "command_tree.json"
        out.write_text("{}\n", encoding="utf-8")
        result = runner.invoke(
            gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out), "--check"]
        )
        assert result.exit_code == 1
        assert "is out of date" in result.stderr
        assert out.read_text(encoding="utf-8") == "{}\n"

    def test_missing_artifact_is_stale(self, runner: CliRunner, tmp_path: Path) -> None:
        out = tmp_path / "command_tree.json"
        result = runner.invoke(
            gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(out), "--check"]
        )
        assert result.exit_code == 1
        assert not out.exists()

    def test_packaged_tree_is_current(self, runner: CliRunner) -> None:
        packaged = (
            Path(__file__).parent.parent.parent
            / "src"
            / "cloudflare_cli"
            / "schemas"
            / "command_tree.json"
        )
        result = runner.invoke(
            gen_app, ["--openapi", str(SUBSET_PATH), "--out", str(packaged), "--check"]
        )
        assert result.exit_code == 0
