"""Tests for per-version rendering and round-trip diagnostics."""

from __future__ import annotations

import json

import pytest
import yaml

from fastapi_openapi_assembler.component import ComponentKind
from fastapi_openapi_assembler.models import (
    Document,
    Info,
    License,
    Operation,
    Parameter,
    PathItem,
    Reference,
    Response,
    Schema,
    SecurityScheme,
    Tag,
)
from fastapi_openapi_assembler.serializer import (
    DocumentWriter,
    resolve_pointer,
    round_trip,
    to_dict,
    to_json,
    to_yaml,
)
from fastapi_openapi_assembler.versions import SpecVersion

SCHEMAS = ComponentKind.SCHEMAS


def _writer(version: str) -> DocumentWriter:
    return DocumentWriter(SpecVersion.parse(version))


def _document() -> Document:
    doc = Document(info=Info(title="Shop", version="2.0.0"))
    doc.components.schemas["Pet"] = Schema(
        type="object", properties={"name": Schema(type="string")}
    )
    ok = Response(description="OK")
    ok.media_type("application/json").schema = Reference(SCHEMAS, "Pet")
    item = PathItem()
    item.add_operation(
        "get",
        Operation(
            operation_id="getPet",
            parameters=[Parameter(name="id", location="path")],
            responses={"200": ok},
        ),
    )
    doc.paths["/pets/{id}"] = item
    return doc


class TestNullable:
    def test_typed_nullable(self) -> None:
        node = Schema(type="string", nullable=True)
        assert _writer("3.0").schema(node) == {"type": "string", "nullable": True}
        assert _writer("3.1").schema(node) == {"type": ["string", "null"]}

    def test_nullable_reference_wrapper(self) -> None:
        node = Schema(nullable=True, all_of=[Reference(SCHEMAS, "Pet")])
        pet = {"$ref": "#/components/schemas/Pet"}
        assert _writer("3.0").schema(node) == {"allOf": [pet], "nullable": True}
        assert _writer("3.1").schema(node) == {"anyOf": [pet, {"type": "null"}]}

    def test_untyped_nullable_without_body(self) -> None:
        assert _writer("3.2").schema(Schema(nullable=True)) == {"type": "null"}


class TestVersionedKeywords:
    def test_examples(self) -> None:
        node = Schema(type="integer", example=1, examples=[2])
        assert _writer("3.0").schema(node)["example"] == 1
        assert "examples" not in _writer("3.0").schema(node)
        assert _writer("3.1").schema(node)["examples"] == [1, 2]

    def test_const(self) -> None:
        node = Schema(type="string", const="fixed")
        assert _writer("3.0").schema(node)["enum"] == ["fixed"]
        assert _writer("3.1").schema(node)["const"] == "fixed"

    def test_exclusive_bounds(self) -> None:
        node = Schema(type="number", maximum=10, exclusive_maximum=True, minimum=0)
        assert _writer("3.0").schema(node) == {
            "type": "number",
            "maximum": 10,
            "exclusiveMaximum": True,
            "minimum": 0,
        }
        assert _writer("3.1").schema(node) == {
            "type": "number",
            "exclusiveMaximum": 10,
            "minimum": 0,
        }

    def test_reference_siblings_only_in_modern(self) -> None:
        ref = Reference(SCHEMAS, "Pet", summary="A pet")
        assert _writer("3.0").reference(ref) == {"$ref": "#/components/schemas/Pet"}
        assert _writer("3.1").reference(ref)["summary"] == "A pet"

    def test_tag_fields_only_in_3_2(self) -> None:
        tag = Tag(name="pets", summary="Pets", parent="animals", kind="nav")
        assert _writer("3.1").tag(tag) == {"name": "pets"}
        assert _writer("3.2").tag(tag) == {
            "name": "pets",
            "summary": "Pets",
            "parent": "animals",
            "kind": "nav",
        }

    def test_info_summary_and_license_identifier(self) -> None:
        info = Info(
            title="Shop",
            summary="Pet shop",
            license=License(name="MIT", identifier="MIT"),
        )
        assert "summary" not in _writer("3.0").info(info)
        assert _writer("3.0").info(info)["license"] == {"name": "MIT"}
        modern = _writer("3.1").info(info)
        assert modern["summary"] == "Pet shop"
        assert modern["license"] == {"name": "MIT", "identifier": "MIT"}

    def test_security_scheme_deprecated_only_in_3_2(self) -> None:
        scheme = SecurityScheme(type="http", scheme="basic", deprecated=True)
        assert "deprecated" not in _writer("3.1").security_scheme(scheme)
        assert _writer("3.2").security_scheme(scheme)["deprecated"] is True


class TestDocument:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [("3.0", "3.0.4"), ("3.1", "3.1.2"), ("3.2", "3.2.0")],
    )
    def test_openapi_field(self, version: str, expected: str) -> None:
        assert to_dict(_document(), version)["openapi"] == expected

    def test_swagger_dispatch(self) -> None:
        assert to_dict(_document(), "2.0")["swagger"] == "2.0"

    def test_webhooks_dropped_before_3_1(self) -> None:
        doc = _document()
        hook = PathItem()
        hook.add_operation("post", Operation(responses={"200": Response("OK")}))
        doc.webhooks["petAdopted"] = hook
        assert "webhooks" not in to_dict(doc, "3.0")
        assert "petAdopted" in to_dict(doc, "3.1")["webhooks"]

    def test_path_items_component_dropped_before_3_1(self) -> None:
        doc = _document()
        doc.components.path_items["Shared"] = PathItem(summary="shared")
        assert "pathItems" not in to_dict(doc, "3.0")["components"]
        assert to_dict(doc, "3.1")["components"]["pathItems"] == {
            "Shared": {"summary": "shared"}
        }

    def test_empty_values_omitted(self) -> None:
        rendered = to_dict(Document(), "3.1")
        assert rendered == {
            "openapi": "3.1.2",
            "info": {"title": "API", "version": "1.0.0"},
            "paths": {},
        }

    def test_empty_security_is_kept(self) -> None:
        doc = _document()
        doc.paths["/pets/{id}"].operations["get"].security = []
        rendered = to_dict(doc, "3.1")
        assert rendered["paths"]["/pets/{id}"]["get"]["security"] == []

    def test_operation_order_follows_http_methods(self) -> None:
        item = PathItem()
        item.add_operation("post", Operation())
        item.add_operation("get", Operation())
        assert list(_writer("3.1").path_item(item)) == ["get", "post"]

    def test_json(self) -> None:
        text = to_json(_document(), "3.0")
        assert json.loads(text) == to_dict(_document(), "3.0")
        assert "\n  " in text

    def test_yaml(self) -> None:
        doc = _document()
        doc.tags.append(Tag(name="pets"))
        text = to_yaml(doc, "3.0")
        assert text.startswith("openapi: 3.0.4\n")
        assert "tags:\n  - name: pets" in text
        assert yaml.safe_load(text) == to_dict(doc, "3.0")


class TestRoundTrip:
    @pytest.mark.parametrize("fmt", ["json", "yaml", "YAML"])
    def test_valid_document(self, fmt: str) -> None:
        result = round_trip(_document(), "3.1", fmt)
        assert result.ok
        assert result.errors == []
        assert result.warnings == []
        assert result.data is not None
        assert result.data["info"]["title"] == "Shop"

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="xml"):
            round_trip(_document(), "3.1", "xml")

    def test_unresolved_reference(self) -> None:
        doc = _document()
        del doc.components.schemas["Pet"]
        result = round_trip(doc, "3.1")
        assert not result.ok
        assert any("#/components/schemas/Pet" in e for e in result.errors)

    def test_external_reference_warns(self) -> None:
        doc = _document()
        doc.extensions["x-link"] = {"$ref": "https://example.com/pet.json"}
        result = round_trip(doc, "3.1")
        assert result.ok
        assert any("External reference" in w for w in result.warnings)

    def test_missing_title(self) -> None:
        doc = _document()
        doc.info.title = ""
        result = round_trip(doc, "3.1")
        assert "Missing 'info.title'" in result.errors

    def test_operation_without_responses(self) -> None:
        doc = _document()
        doc.paths["/pets/{id}"].operations["get"].responses = {}
        result = round_trip(doc, "3.0")
        assert "Operation GET /pets/{id} has no responses" in result.errors

    def test_undeclared_path_parameter_warns(self) -> None:
        doc = _document()
        doc.paths["/pets/{id}"].operations["get"].parameters = []
        result = round_trip(doc, "3.1")
        assert result.ok
        assert result.warnings == [
            "Operation GET /pets/{id} does not declare path parameter 'id'"
        ]

    def test_path_parameter_declared_on_path_item(self) -> None:
        doc = _document()
        doc.paths["/pets/{id}"].operations["get"].parameters = []
        doc.paths["/pets/{id}"].parameters.append(Parameter("id", "path"))
        assert round_trip(doc, "3.1").warnings == []

    def test_duplicate_operation_id(self) -> None:
        doc = _document()
        other = PathItem()
        other.add_operation(
            "get", Operation(operation_id="getPet", responses={"200": Response("OK")})
        )
        doc.paths["/pets"] = other
        result = round_trip(doc, "3.1")
        assert any("Duplicate operationId 'getPet'" in e for e in result.errors)


class TestResolvePointer:
    def test_escaped_segments(self) -> None:
        data = {"paths": {"/pets/{id}": {"get": {"x": 1}}}}
        assert resolve_pointer(data, "#/paths/~1pets~1{id}/get/x") == 1

    def test_list_index(self) -> None:
        assert resolve_pointer({"a": [10, 20]}, "#/a/1") == 20

    @pytest.mark.parametrize("ref", ["#/missing", "#/a/5", "other.json#/a"])
    def test_missing(self, ref: str) -> None:
        with pytest.raises(KeyError):
            resolve_pointer({"a": [10]}, ref)
