"""Tests for cloudflare_cli.parser.extractor."""

from __future__ import annotations

from typing import Any

import pytest

from cloudflare_cli.exceptions import SchemaError
from cloudflare_cli.models import HTTPMethod, SchemaModel
from cloudflare_cli.parser import extract_schema


class TestExtractSchema:
    def test_metadata(self, subset_schema: SchemaModel) -> None:
        assert subset_schema.title == "Cloudflare API"
        assert subset_schema.version == "4.0.0"
        assert subset_schema.openapi_version == "3.0.3"
        assert subset_schema.servers == ["https://api.cloudflare.com/client/v4"]
        assert subset_schema.tag_descriptions["Zone"].startswith("A Zone is")

    def test_paths_and_methods(self, subset_schema: SchemaModel) -> None:
        assert set(subset_schema.paths["/zones"]) == {HTTPMethod.GET, HTTPMethod.POST}
        record = subset_schema.paths["/zones/{zone_id}/dns_records/{dns_record_id}"]
        assert set(record) == {HTTPMethod.GET, HTTPMethod.PATCH, HTTPMethod.DELETE}

    def test_operations_sorted_by_path_then_method(self, subset_schema: SchemaModel) -> None:
        keys = [(op.path, op.method.value) for op in subset_schema.operations()]
        assert keys == sorted(keys)
        assert len(keys) == 10

    def test_operation_fields(self, subset_schema: SchemaModel) -> None:
        op = subset_schema.paths["/zones"][HTTPMethod.GET]
        assert op.operation_id == "zones-get"
        assert op.summary == "List Zones"
        assert op.tags == ["Zone"]
        assert [p["name"] for p in op.parameters] == ["name", "status", "page", "per_page"]

    def test_shared_parameters_dereferenced_and_merged(self, subset_schema: SchemaModel) -> None:
        op = subset_schema.paths["/zones/{zone_id}/dns_records"][HTTPMethod.GET]
        names = [(p["name"], p["in"]) for p in op.parameters]
        assert names == [
            ("zone_id", "path"),
            ("type", "query"),
            ("proxied", "query"),
            ("tag", "query"),
        ]

    def test_request_body_kept(self, subset_schema: SchemaModel) -> None:
        op = subset_schema.paths["/zones"][HTTPMethod.POST]
        assert op.request_body is not None
        assert op.request_body["required"] is True

    def test_deprecated(self, subset_schema: SchemaModel) -> None:
        record = subset_schema.paths["/zones/{zone_id}/dns_records/{dns_record_id}"]
        assert record[HTTPMethod.DELETE].deprecated is True
        assert record[HTTPMethod.GET].deprecated is False

    def test_operation_parameter_overrides_path_item(self) -> None:
        raw: dict[str, Any] = {
            "openapi": "3.0.3",
            "paths": {
                "/items": {
                    "parameters": [
                        {"name": "page", "in": "query", "description": "shared"},
                    ],
                    "get": {
                        "parameters": [
                            {"name": "page", "in": "query", "description": "own"},
                        ]
                    },
                }
            },
        }
        op = extract_schema(raw).paths["/items"][HTTPMethod.GET]
        assert [p["description"] for p in op.parameters] == ["own"]

    def test_rejects_swagger(self) -> None:
        with pytest.raises(SchemaError):
            extract_schema({"swagger": "2.0", "paths": {}})

    def test_refs_table_is_reused(self, subset_schema: SchemaModel) -> None:
        assert subset_schema.refs is subset_schema.refs
        assert subset_schema.refs.resolve("#/components/schemas/identifier") == {
            "type": "string",
            "maxLength": 32,
        }
