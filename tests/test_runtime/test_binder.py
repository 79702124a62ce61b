"""Tests for cloudflare_cli.runtime.binder -- the Arg Binder."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import patch

import pytest

from cloudflare_cli.exceptions import (
    BindError,
    DuplicateParameter,
    InvalidBody,
    InvalidHeader,
    MissingRequiredParameter,
    TypeMismatch,
    UnexpectedArgument,
    UnknownParameter,
)
from cloudflare_cli.models import (
    HTTPMethod,
    OperationNode,
    ParamDef,
    ParameterLocation,
    PrimitiveType,
)
from cloudflare_cli.runtime.binder import bind, default_values, split_runtime_flags


@pytest.fixture
def list_records() -> OperationNode:
    """``GET /zones/{zone_id}/dns_records`` with typed query parameters."""
    return OperationNode(
        slug="list",
        display_name="list-dns-records",
        method=HTTPMethod.GET,
        path="/zones/{zone_id}/dns_records",
        parameters=[
            ParamDef(name="zone_id", flag="zone-id", location=ParameterLocation.PATH, required=True),
            ParamDef(
                name="type",
                flag="type",
                location=ParameterLocation.QUERY,
                enum=["A", "AAAA", "CNAME"],
            ),
            ParamDef(
                name="proxied",
                flag="proxied",
                location=ParameterLocation.QUERY,
                type=PrimitiveType.BOOLEAN,
            ),
            ParamDef(
                name="per_page",
                flag="per-page",
                location=ParameterLocation.QUERY,
                type=PrimitiveType.INTEGER,
            ),
            ParamDef(
                name="ttl",
                flag="ttl",
                location=ParameterLocation.QUERY,
                type=PrimitiveType.NUMBER,
            ),
            ParamDef(
                name="tag",
                flag="tag",
                location=ParameterLocation.QUERY,
                type=PrimitiveType.ARRAY,
                items=PrimitiveType.STRING,
            ),
        ],
    )


@pytest.fixture
def create_record() -> OperationNode:
    return OperationNode(
        slug="create",
        display_name="create-dns-record",
        method=HTTPMethod.POST,
        path="/zones/{zone_id}/dns_records",
        parameters=[
            ParamDef(name="zone_id", flag="zone-id", location=ParameterLocation.PATH, required=True),
        ],
        has_body=True,
        body_required=True,
    )


# ---------------------------------------------------------------------------
# Flag parsing
# ---------------------------------------------------------------------------


class TestFlags:
    def test_space_and_equals_forms(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--zone-id", "Z1", "--type=CNAME"])
        assert params.get("zone_id") == "Z1"
        assert params.get("type") == "CNAME"

    def test_underscore_alias(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--zone_id", "Z1", "--per_page", "50"])
        assert params.get("zone_id") == "Z1"
        assert params.get("per_page") == 50

    def test_values_keep_declaration_order_and_location(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--per-page", "5", "--zone-id", "Z1"])
        assert [(b.name, b.location) for b in params.values] == [
            ("zone_id", ParameterLocation.PATH),
            ("per_page", ParameterLocation.QUERY),
        ]

    def test_value_that_looks_negative(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--zone-id", "Z1", "--ttl", "-1.5"])
        assert params.get("ttl") == -1.5

    def test_missing_value(self, list_records: OperationNode) -> None:
        with pytest.raises(BindError, match="requires a value"):
            bind(list_records, ["--zone-id"])

    def test_duplicate(self, list_records: OperationNode) -> None:
        with pytest.raises(DuplicateParameter):
            bind(list_records, ["--zone-id", "Z1", "--zone-id", "Z2"])

    def test_inline_value_keeps_underscores(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--zone_id=Z_1", "--type=A", "--tag=my_tag,other_tag"])
        assert params.get("zone_id") == "Z_1"
        assert params.get("tag") == ["my_tag", "other_tag"]

    def test_unknown_with_suggestion(self, list_records: OperationNode) -> None:
        with pytest.raises(UnknownParameter) as exc_info:
            bind(list_records, ["--zone-id", "Z1", "--proxy", "true"])
        assert exc_info.value.name == "proxy"
        assert "--proxied" in exc_info.value.suggestions


# ---------------------------------------------------------------------------
# Booleans, numbers, enums, arrays
# ---------------------------------------------------------------------------


class TestCoercion:
    def test_bare_boolean(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--zone-id", "Z1", "--proxied"])
        assert params.get("proxied") is True

    @pytest.mark.parametrize(
        "literal, expected",
        [("true", True), ("false", False), ("1", True), ("0", False), ("yes", True), ("no", False)],
    )
    def test_explicit_boolean(
        self, list_records: OperationNode, literal: str, expected: bool
    ) -> None:
        params = bind(list_records, ["--zone-id", "Z1", "--proxied", literal])
        assert params.get("proxied") is expected

    def test_bare_boolean_followed_by_positional(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--proxied", "Z1"])
        assert params.get("proxied") is True
        assert params.get("zone_id") == "Z1"

    def test_bad_boolean(self, list_records: OperationNode) -> None:
        with pytest.raises(TypeMismatch, match="boolean"):
            bind(list_records, ["--zone-id", "Z1", "--proxied=maybe"])

    def test_bad_integer(self, list_records: OperationNode) -> None:
        with pytest.raises(TypeMismatch) as exc_info:
            bind(list_records, ["--zone-id", "Z1", "--per-page", "many"])
        assert exc_info.value.expected == "integer"
        assert exc_info.value.got == "many"

    def test_bad_number(self, list_records: OperationNode) -> None:
        with pytest.raises(TypeMismatch, match="number"):
            bind(list_records, ["--zone-id", "Z1", "--ttl", "soon"])

    def test_enum_violation(self, list_records: OperationNode) -> None:
        with pytest.raises(TypeMismatch, match="one of A, AAAA, CNAME"):
            bind(list_records, ["--zone-id", "Z1", "--type", "MX"])

    def test_array_repeated_and_comma_separated(self, list_records: OperationNode) -> None:
        params = bind(list_records, ["--zone-id", "Z1", "--tag", "a,b", "--tag", "c"])
        assert params.get("tag") == ["a", "b", "c"]


# ---------------------------------------------------------------------------
# Positionals and defaults
# ---------------------------------------------------------------------------


class TestPositionalsAndDefaults:
    def test_positionals_fill_path_in_template_order(
        self, dns_record_operation: OperationNode
    ) -> None:
        params = bind(dns_record_operation, ["Z1", "R1"])
        assert params.get("zone_id") == "Z1"
        assert params.get("id") == "R1"

    def test_positional_fills_remaining_slot(self, dns_record_operation: OperationNode) -> None:
        params = bind(dns_record_operation, ["--zone-id", "Z1", "R1"])
        assert params.get("id") == "R1"

    def test_surplus_positional(self, dns_record_operation: OperationNode) -> None:
        with pytest.raises(UnexpectedArgument, match="extra"):
            bind(dns_record_operation, ["Z1", "R1", "extra"])

    def test_missing_required(self, dns_record_operation: OperationNode) -> None:
        with pytest.raises(MissingRequiredParameter) as exc_info:
            bind(dns_record_operation, ["--zone-id", "Z1"])
        assert exc_info.value.name == "id"
        assert exc_info.value.exit_code == 2

    def test_zone_default(self, dns_record_operation: OperationNode) -> None:
        params = bind(dns_record_operation, ["--id", "R1"], default_values(zone_id="Z9"))
        assert params.get("zone_id") == "Z9"

    def test_explicit_value_beats_default(self, dns_record_operation: OperationNode) -> None:
        params = bind(
            dns_record_operation, ["--zone-id", "Z1", "--id", "R1"], default_values(zone_id="Z9")
        )
        assert params.get("zone_id") == "Z1"

    def test_default_values_aliases(self) -> None:
        defaults = default_values(account_id="A1", zone_id="Z1")
        assert defaults["account_identifier"] == "A1"
        assert defaults["zone_identifier"] == "Z1"
        assert default_values() == {}


# ---------------------------------------------------------------------------
# Request body
# ---------------------------------------------------------------------------


class TestBody:
    def test_inline(self, create_record: OperationNode) -> None:
        params = bind(create_record, ["Z1", "--body", '{"type":"A"}'])
        assert params.body == '{"type":"A"}'

    def test_inline_json_keeps_underscores(self, create_record: OperationNode) -> None:
        params = bind(create_record, ["Z1", '--body={"purge_everything":true}'])
        assert params.body == '{"purge_everything":true}'

    def test_at_file_path_with_underscores(
        self, create_record: OperationNode, tmp_path: Path
    ) -> None:
        body_file = tmp_path / "dns_record.json"
        body_file.write_text('{"zone_id":"Z1"}', encoding="utf-8")
        params = bind(create_record, ["Z1", f"--body=@{body_file}"])
        assert params.body == '{"zone_id":"Z1"}'

    def test_at_file(self, create_record: OperationNode, tmp_path: Path) -> None:
        body_file = tmp_path / "record.json"
        body_file.write_text('{"type":"TXT"}', encoding="utf-8")
        params = bind(create_record, ["Z1", f"--body=@{body_file}"])
        assert params.body == '{"type":"TXT"}'

    def test_body_file_flag(self, create_record: OperationNode, tmp_path: Path) -> None:
        body_file = tmp_path / "record.json"
        body_file.write_text("{}", encoding="utf-8")
        params = bind(create_record, ["Z1", "--body-file", str(body_file)])
        assert params.body == "{}"

    def test_stdin(self, create_record: OperationNode) -> None:
        with patch("sys.stdin", io.StringIO('{"a":1}')):
            params = bind(create_record, ["Z1", "--body", "@-"])
        assert params.body == '{"a":1}'

    def test_unreadable_file(self, create_record: OperationNode, tmp_path: Path) -> None:
        with pytest.raises(InvalidBody, match="Cannot read"):
            bind(create_record, ["Z1", "--body-file", str(tmp_path / "missing.json")])

    def test_body_given_twice(self, create_record: OperationNode) -> None:
        with pytest.raises(DuplicateParameter):
            bind(create_record, ["Z1", "--body", "{}", "--body", "{}"])

    def test_body_on_operation_without_body(self, list_records: OperationNode) -> None:
        with pytest.raises(UnknownParameter):
            bind(list_records, ["Z1", "--body", "{}"])

    def test_body_not_validated_here(self, create_record: OperationNode) -> None:
        assert bind(create_record, ["Z1", "--body", "not json"]).body == "not json"


# ---------------------------------------------------------------------------
# split_runtime_flags
# ---------------------------------------------------------------------------


class TestSplitRuntimeFlags:
    def test_separates_runtime_flags(self) -> None:
        remaining, flags = split_runtime_flags(
            ["--zone-id", "Z1", "--raw", "--header", "X-A: 1", "--pretty", "--header=X-B=2", "--dry-run"]
        )
        assert remaining == ["--zone-id", "Z1"]
        assert flags.raw and flags.pretty and flags.dry_run
        assert flags.headers == [("X-A", "1"), ("X-B", "2")]

    def test_defaults(self) -> None:
        remaining, flags = split_runtime_flags(["Z1"])
        assert remaining == ["Z1"]
        assert not flags.raw and not flags.pretty and not flags.dry_run
        assert flags.headers == []

    def test_stops_at_double_dash(self) -> None:
        remaining, flags = split_runtime_flags(["--", "--raw"])
        assert remaining == ["--", "--raw"]
        assert flags.raw is False

    def test_inline_header_keeps_underscores(self) -> None:
        _, flags = split_runtime_flags(["--header=X-Trace:a_b"])
        assert flags.headers == [("X-Trace", "a_b")]

    def test_header_without_value(self) -> None:
        with pytest.raises(BindError, match="--header"):
            split_runtime_flags(["--header"])

    def test_malformed_header(self) -> None:
        with pytest.raises(InvalidHeader):
            split_runtime_flags(["--header", "no-separator"])
