"""Shared pytest fixtures for fastapi-openapi-assembler tests."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from fastapi_openapi_assembler.components.schemas import SchemaInferencer
from fastapi_openapi_assembler.descriptor import OpenApiDescriptor
from fastapi_openapi_assembler.models import Document
from fastapi_openapi_assembler.operations import OperationBuilder
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.resolver import ReferenceResolver


@pytest.fixture
def registry() -> ComponentRegistry:
    return ComponentRegistry()


@pytest.fixture
def inferencer(registry: ComponentRegistry) -> SchemaInferencer:
    return SchemaInferencer(registry)


@pytest.fixture
def resolver(registry: ComponentRegistry) -> ReferenceResolver:
    return ReferenceResolver(registry)


@pytest.fixture
def document(registry: ComponentRegistry) -> Document:
    """Document whose components are the registry's shared pool."""
    return Document(components=registry.shared.components)


@pytest.fixture
def operation_builder(
    document: Document, registry: ComponentRegistry
) -> OperationBuilder:
    return OperationBuilder(document, registry)


@pytest.fixture
def descriptor() -> OpenApiDescriptor:
    return OpenApiDescriptor()


@pytest.fixture
def fetch_openapi() -> Any:
    """Async helper returning the parsed body of an app's /openapi.json."""

    async def _fetch(app: FastAPI, url: str = "/openapi.json") -> Any:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.get(url)
            assert resp.status_code == 200
            if url.endswith(".json"):
                return resp.json()
            return resp.text

    return _fetch
