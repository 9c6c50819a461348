"""Tests for header and link components."""

from __future__ import annotations

from typing import Annotated

import pytest

from fastapi_openapi_assembler.component import ComponentKind, PoolScope
from fastapi_openapi_assembler.components.declarations import (
    HeaderProps,
    LinkProps,
    openapi_headers,
    openapi_links,
)
from fastapi_openapi_assembler.components.headers import HeaderComponentBuilder
from fastapi_openapi_assembler.components.links import (
    LinkComponentBuilder,
    build_link,
)
from fastapi_openapi_assembler.components.schemas import SchemaInferencer
from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.models import Header, Link, Reference, Schema, Server
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.resolver import ReferenceResolver


@openapi_headers(join_class_name="-")
class Rate:
    limit: Annotated[int, HeaderProps(key="Limit", description="Requests allowed")]
    window: Annotated[str, HeaderProps(schema_ref="Duration", explode=True)]
    plain: int


@openapi_links(inline=True)
class OrderLinks:
    customer: Annotated[
        str,
        LinkProps(
            operation_id="getCustomer",
            parameters={"id": "$response.body#/customerId"},
            server_url="https://crm.example.com",
        ),
    ]


@pytest.fixture
def builders(
    registry: ComponentRegistry,
    inferencer: SchemaInferencer,
    resolver: ReferenceResolver,
) -> tuple[HeaderComponentBuilder, LinkComponentBuilder]:
    return (
        HeaderComponentBuilder(registry, inferencer, resolver),
        LinkComponentBuilder(registry, inferencer, resolver),
    )


class TestHeaderComponentBuilder:
    def test_headers(
        self,
        builders: tuple[HeaderComponentBuilder, LinkComponentBuilder],
        registry: ComponentRegistry,
    ) -> None:
        headers, _ = builders
        assert headers.build(Rate) == ["Rate-Limit", "Rate-window"]
        limit = registry.try_get(
            PoolScope.SHARED, ComponentKind.HEADERS, "Rate-Limit", Header
        )
        assert limit is not None
        assert limit.description == "Requests allowed"
        assert limit.schema == Schema(type="integer", format="int64")
        assert limit.explode is None

        window = registry.try_get(
            PoolScope.SHARED, ComponentKind.HEADERS, "Rate-window", Header
        )
        assert window is not None
        assert window.schema == Reference(ComponentKind.SCHEMAS, "Duration")
        assert window.explode is True


class TestLinkComponentBuilder:
    def test_links(
        self,
        builders: tuple[HeaderComponentBuilder, LinkComponentBuilder],
        registry: ComponentRegistry,
    ) -> None:
        _, links = builders
        assert links.build(OrderLinks) == ["customer"]
        link = registry.try_get(
            PoolScope.INLINE, ComponentKind.LINKS, "customer", Link
        )
        assert link is not None
        assert link.operation_id == "getCustomer"
        assert link.parameters == {"id": "$response.body#/customerId"}
        assert link.server == Server(url="https://crm.example.com")


class TestBuildLink:
    def test_operation_id_and_ref_are_exclusive(self) -> None:
        with pytest.raises(OpenApiConfigurationError, match="both"):
            build_link(operation_id="a", operation_ref="#/paths/~1a/get")

    def test_blank_values_ignored(self) -> None:
        link = build_link(
            operation_id=" ",
            operation_ref="#/paths/~1a/get",
            description="",
            parameters={"": 1, "limit": 10},
        )
        assert link.operation_id is None
        assert link.operation_ref == "#/paths/~1a/get"
        assert link.description is None
        assert link.parameters == {"limit": 10}

    def test_request_body_converted(self) -> None:
        link = build_link(operation_id="op", request_body={"ids": (1, 2)})
        assert link.request_body == {"ids": [1, 2]}
