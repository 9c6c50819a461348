"""Tests for OperationBuilder and operation metadata."""

from __future__ import annotations

import logging

import pytest

from fastapi_openapi_assembler.component import ComponentKind
from fastapi_openapi_assembler.models import (
    Document,
    MediaType,
    Parameter,
    Reference,
    RequestBody,
    Response,
    Schema,
    Server,
)
from fastapi_openapi_assembler.operations import (
    OperationBuilder,
    OperationMetadata,
    normalize_extensions,
)
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.settings import OpenApiSettings

SCHEMAS = ComponentKind.SCHEMAS


def _json_body() -> RequestBody:
    return RequestBody(content={"application/json": MediaType(schema=Schema())})


def _ok() -> dict[str, Response | Reference]:
    return {"200": Response(description="OK")}


class TestAutoErrorResponses:
    def test_required_parameter_yields_400_and_422(
        self, operation_builder: OperationBuilder, registry: ComponentRegistry
    ) -> None:
        op = operation_builder.build(
            OperationMetadata(
                parameters=[Parameter(name="id", location="query", required=True)],
                responses=_ok(),
            )
        )
        assert list(op.responses) == ["200", "400", "422"]
        for status in ("400", "422"):
            response = op.responses[status]
            assert isinstance(response, Response)
            schema = response.content["application/json"].schema
            assert schema == Reference(SCHEMAS, "ErrorResponse")
        assert registry.contains(SCHEMAS, "ErrorResponse")

    def test_error_descriptions(self, operation_builder: OperationBuilder) -> None:
        op = operation_builder.build(
            OperationMetadata(request_body=_json_body(), responses=_ok())
        )
        assert sorted(op.responses) == ["200", "400", "415", "422"]
        unsupported, invalid = op.responses["415"], op.responses["422"]
        assert unsupported.description == "Unsupported Media Type"  # type: ignore[union-attr]
        assert invalid.description == "Unprocessable Entity"  # type: ignore[union-attr]

    def test_allowed_content_types_add_415(
        self, operation_builder: OperationBuilder
    ) -> None:
        op = operation_builder.build(
            OperationMetadata(
                allowed_request_content_types=["application/json"], responses=_ok()
            )
        )
        assert sorted(op.responses) == ["200", "415"]

    def test_response_content_adds_406(
        self, operation_builder: OperationBuilder
    ) -> None:
        response = Response(description="OK")
        response.media_type("application/json").schema = Schema(type="string")
        op = operation_builder.build(OperationMetadata(responses={"200": response}))
        assert sorted(op.responses) == ["200", "406"]

    def test_multiple_default_content_types_add_406(
        self, document: Document, registry: ComponentRegistry
    ) -> None:
        settings = OpenApiSettings(
            default_response_content_types=("application/json", "application/xml")
        )
        builder = OperationBuilder(document, registry, settings)
        op = builder.build(OperationMetadata(responses=_ok()))
        assert sorted(op.responses) == ["200", "406"]

    @pytest.mark.parametrize("catch_all", ["4XX", "default", "4xx"])
    def test_catch_all_suppresses_synthesis(
        self, operation_builder: OperationBuilder, catch_all: str
    ) -> None:
        op = operation_builder.build(
            OperationMetadata(
                request_body=_json_body(),
                responses={"200": Response(description="OK"), catch_all: Response()},
            )
        )
        assert sorted(op.responses) == sorted(["200", catch_all])

    def test_declared_status_is_kept(self, operation_builder: OperationBuilder) -> None:
        custom = Response(description="Custom bad request")
        op = operation_builder.build(
            OperationMetadata(
                parameters=[Parameter(name="q")],
                responses={"200": Response(description="OK"), "400": custom},
            )
        )
        assert op.responses["400"] is custom
        assert "422" in op.responses

    def test_disabled_by_settings(
        self, document: Document, registry: ComponentRegistry
    ) -> None:
        builder = OperationBuilder(
            document, registry, OpenApiSettings(auto_error_responses=False)
        )
        op = builder.build(
            OperationMetadata(request_body=_json_body(), responses=_ok())
        )
        assert list(op.responses) == ["200"]
        assert not registry.contains(SCHEMAS, "ErrorResponse")

    def test_existing_error_schema_not_replaced(
        self, operation_builder: OperationBuilder, registry: ComponentRegistry
    ) -> None:
        mine = Schema(type="object", description="mine")
        registry.shared.add(SCHEMAS, "ErrorResponse", mine)
        operation_builder.build(
            OperationMetadata(parameters=[Parameter(name="q")], responses=_ok())
        )
        assert registry.shared.store(SCHEMAS)["ErrorResponse"] is mine

    def test_error_schema_shape(
        self, operation_builder: OperationBuilder, registry: ComponentRegistry
    ) -> None:
        operation_builder.build(
            OperationMetadata(parameters=[Parameter(name="q")], responses=_ok())
        )
        schema = registry.shared.store(SCHEMAS)["ErrorResponse"]
        assert schema.required == ["status", "error", "reason", "timestamp"]
        assert schema.properties["status"].format == "int32"
        assert schema.properties["details"].nullable is True

    def test_same_metadata_same_result(
        self, operation_builder: OperationBuilder
    ) -> None:
        def metadata() -> OperationMetadata:
            return OperationMetadata(
                parameters=[Parameter(name="id", location="path")],
                request_body=_json_body(),
                responses=_ok(),
            )

        first = operation_builder.build(metadata())
        second = operation_builder.build(metadata())
        assert first == second


class TestOperationFields:
    def test_default_success_response(
        self, operation_builder: OperationBuilder
    ) -> None:
        op = operation_builder.build(OperationMetadata(operation_id="ping"))
        assert list(op.responses) == ["200"]
        assert op.responses["200"].description == "Success"  # type: ignore[union-attr]

    def test_blank_strings_become_none(
        self, operation_builder: OperationBuilder
    ) -> None:
        op = operation_builder.build(
            OperationMetadata(operation_id="  ", summary="", description="Desc")
        )
        assert op.operation_id is None
        assert op.summary is None
        assert op.description == "Desc"

    def test_tags_registered_once(
        self, operation_builder: OperationBuilder, document: Document
    ) -> None:
        op = operation_builder.build(
            OperationMetadata(tags=["orders", "orders", " ", "admin"])
        )
        assert op.tags == ["orders", "admin"]
        assert [t.name for t in document.tags] == ["orders", "admin"]
        operation_builder.build(OperationMetadata(tags=["orders"]))
        assert [t.name for t in document.tags] == ["orders", "admin"]

    def test_security_none_inherits(self, operation_builder: OperationBuilder) -> None:
        op = operation_builder.build(OperationMetadata())
        assert op.security is None

    def test_empty_security_is_anonymous(
        self, operation_builder: OperationBuilder
    ) -> None:
        op = operation_builder.build(OperationMetadata(security=[]))
        assert op.security == []

    def test_security_deduplicated_with_scope_union(
        self, operation_builder: OperationBuilder
    ) -> None:
        op = operation_builder.build(
            OperationMetadata(
                security=[
                    {"oauth": ["read"]},
                    {"apiKey": []},
                    {"oauth": ["read", "write"]},
                ]
            )
        )
        assert op.security == [{"oauth": ["read", "write"]}, {"apiKey": []}]

    def test_extensions_prefixed(self, operation_builder: OperationBuilder) -> None:
        op = operation_builder.build(
            OperationMetadata(extensions={"internal": True, "x-owner": "team"})
        )
        assert op.extensions == {"x-internal": True, "x-owner": "team"}

    def test_servers_are_cloned(self, operation_builder: OperationBuilder) -> None:
        server = Server(url="https://api.example.com")
        op = operation_builder.build(OperationMetadata(servers=[server]))
        assert op.servers == [server]
        assert op.servers[0] is not server

    def test_invalid_parameter_skipped(
        self, operation_builder: OperationBuilder, caplog: pytest.LogCaptureFixture
    ) -> None:
        metadata = OperationMetadata(operation_id="op")
        metadata.parameters.append("id")  # type: ignore[arg-type]
        with caplog.at_level(logging.WARNING):
            op = operation_builder.build(metadata)
        assert op.parameters == []
        assert "Skipping parameter" in caplog.text


class TestOperationMetadata:
    def test_targets(self) -> None:
        assert OperationMetadata().targets("default")
        assert not OperationMetadata(enabled=False).targets("default")
        scoped = OperationMetadata(document_ids=("public",))
        assert scoped.targets("public")
        assert not scoped.targets("default")

    def test_add_response_creates_once(self) -> None:
        metadata = OperationMetadata()
        first = metadata.add_response("201")
        assert metadata.add_response("201") is first
        assert metadata.responses == {"201": first}


class TestNormalizeExtensions:
    def test_blank_keys_dropped(self) -> None:
        assert normalize_extensions({"": 1, " ": 2, "X-Keep": 3}) == {"X-Keep": 3}

    def test_none(self) -> None:
        assert normalize_extensions(None) == {}
