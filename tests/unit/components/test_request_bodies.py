"""Tests for request body components."""

from __future__ import annotations

from typing import Annotated

import pytest

from fastapi_openapi_assembler.component import ComponentKind, PoolScope
from fastapi_openapi_assembler.components.declarations import (
    ExampleRef,
    RequestBodyProps,
    openapi_request_bodies,
)
from fastapi_openapi_assembler.components.request_bodies import (
    RequestBodyComponentBuilder,
    build_request_body,
)
from fastapi_openapi_assembler.components.schemas import SchemaInferencer
from fastapi_openapi_assembler.models import (
    Example,
    Reference,
    RequestBody,
    Schema,
)
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.resolver import ReferenceResolver

BODIES = ComponentKind.REQUEST_BODIES
SCHEMAS = ComponentKind.SCHEMAS


@openapi_request_bodies(description="A new customer", required=True)
class NewCustomer:
    name: str
    email: str


@openapi_request_bodies(inline=True)
class Uploads:
    avatar: Annotated[
        bytes,
        RequestBodyProps(content_types=("image/png",), required=True),
        ExampleRef("tiny", "TinyPng"),
    ]
    notes: Annotated[
        list[str],
        RequestBodyProps(key="Notes", example=["first"]),
    ]


@pytest.fixture
def builder(
    registry: ComponentRegistry,
    inferencer: SchemaInferencer,
    resolver: ReferenceResolver,
) -> RequestBodyComponentBuilder:
    return RequestBodyComponentBuilder(registry, inferencer, resolver)


class TestRequestBodyComponentBuilder:
    def test_class_body_references_schema(
        self, builder: RequestBodyComponentBuilder, registry: ComponentRegistry
    ) -> None:
        assert builder.build(NewCustomer) == ["NewCustomer"]
        body = registry.try_get(PoolScope.SHARED, BODIES, "NewCustomer", RequestBody)
        assert body is not None
        assert body.description == "A new customer"
        assert body.required is True
        media = body.content["application/json"]
        assert media.schema == Reference(SCHEMAS, "NewCustomer")
        assert registry.shared.contains(SCHEMAS, "NewCustomer")

    def test_member_bodies(
        self, builder: RequestBodyComponentBuilder, registry: ComponentRegistry
    ) -> None:
        registry.add(
            PoolScope.INLINE, ComponentKind.EXAMPLES, "TinyPng", Example(value="iVBO")
        )
        assert builder.build(Uploads) == ["avatar", "Notes"]

        avatar = registry.try_get(PoolScope.INLINE, BODIES, "avatar", RequestBody)
        assert avatar is not None
        assert avatar.required is True
        png = avatar.content["image/png"]
        assert png.schema == Schema(type="string", format="binary")
        assert png.examples["tiny"] == Example(value="iVBO")

        notes = registry.try_get(PoolScope.INLINE, BODIES, "Notes", RequestBody)
        assert notes is not None
        assert notes.content["application/json"].example == ["first"]


class TestBuildRequestBody:
    def test_each_content_type_gets_its_own_schema(self) -> None:
        schema = Schema(type="object")
        body = build_request_body(
            schema, content_types=("application/json", "application/xml")
        )
        json_schema = body.content["application/json"].schema
        xml_schema = body.content["application/xml"].schema
        assert json_schema == xml_schema == schema
        assert json_schema is not xml_schema
