"""Contract tests: verify all public symbols are importable from top-level."""

from __future__ import annotations

import dataclasses

import pytest

import fastapi_openapi_assembler

PUBLIC_SYMBOLS = [
    # Core
    "OpenApiDescriptor",
    "OpenApiSettings",
    "SpecVersion",
    "ComponentKind",
    "ConflictPolicy",
    "PoolScope",
    "Document",
    "Schema",
    "Reference",
    "RoundTripResult",
    # Exceptions
    "OpenApiError",
    "OpenApiConfigurationError",
    "ComponentConflictError",
    "ComponentTypeMismatchError",
    "ReferenceNotFoundError",
    "UnsupportedSpecVersionError",
    "PathTemplateError",
    # Component declarations
    "SchemaProps",
    "SchemaType",
    "AdditionalProperties",
    "ParameterProps",
    "ResponseProps",
    "RequestBodyProps",
    "HeaderProps",
    "HeaderRef",
    "ExampleProps",
    "ExampleRef",
    "LinkProps",
    "LinkRef",
    "ComponentSet",
    "discover_components",
    "openapi_schema",
    "openapi_parameters",
    "openapi_responses",
    "openapi_request_bodies",
    "openapi_headers",
    "openapi_examples",
    "openapi_links",
    # Security
    "ApiKeyAuthOptions",
    "BasicAuthOptions",
    "BearerAuthOptions",
    "CookieAuthOptions",
    "MutualTlsOptions",
    "NegotiateAuthOptions",
    "OAuth2Options",
    "OpenIdConnectOptions",
    # Operations and paths
    "OperationSpec",
    "OperationMetadata",
    "PathMetadata",
    "RouteOptions",
    "ParameterSpec",
    "ParameterRef",
    "RequestBodySpec",
    "RequestBodyRef",
    "ResponseSpec",
    "ResponseRef",
    "ResponseHeaderRef",
    "ResponseExampleRef",
    "ResponseLinkRef",
    "CallbackRef",
    # Templates
    "PathTemplateMapping",
    "map_path_template",
    # FastAPI integration
    "collect_routes",
    "install_openapi",
    "map_template_route",
    "openapi_operation",
    "openapi_path",
    # Numeric markers
    "Int32",
    "Int64",
    "Float32",
]


class TestPublicAPIContract:
    def test_all_symbols_importable(self) -> None:
        for symbol in PUBLIC_SYMBOLS:
            assert hasattr(fastapi_openapi_assembler, symbol), (
                f"Symbol '{symbol}' not found in fastapi_openapi_assembler"
            )

    def test_all_symbols_in_all(self) -> None:
        for symbol in PUBLIC_SYMBOLS:
            assert symbol in fastapi_openapi_assembler.__all__, (
                f"Symbol '{symbol}' not in __all__"
            )

    def test_all_is_sorted(self) -> None:
        names = fastapi_openapi_assembler.__all__
        assert names == sorted(names)

    def test_exception_hierarchy(self) -> None:
        from fastapi_openapi_assembler import (
            ComponentConflictError,
            ComponentTypeMismatchError,
            OpenApiConfigurationError,
            OpenApiError,
            PathTemplateError,
            ReferenceNotFoundError,
            UnsupportedSpecVersionError,
        )

        for exc in (
            ComponentConflictError,
            ComponentTypeMismatchError,
            OpenApiConfigurationError,
            PathTemplateError,
            ReferenceNotFoundError,
            UnsupportedSpecVersionError,
        ):
            assert issubclass(exc, OpenApiError)
        assert issubclass(ComponentTypeMismatchError, TypeError)
        assert issubclass(UnsupportedSpecVersionError, ValueError)
        assert issubclass(PathTemplateError, ValueError)

    def test_component_kind_has_eleven_members(self) -> None:
        from fastapi_openapi_assembler import ComponentKind

        assert len(list(ComponentKind)) == 11

    def test_spec_versions(self) -> None:
        from fastapi_openapi_assembler import SpecVersion

        assert [v.value for v in SpecVersion] == ["2.0", "3.0", "3.1", "3.2"]

    def test_declarations_are_frozen(self) -> None:
        from fastapi_openapi_assembler import ResponseSpec

        spec = ResponseSpec(200, "OK")
        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.description = "other"  # type: ignore[misc]

    def test_descriptor_starts_ungenerated(self) -> None:
        from fastapi_openapi_assembler import OpenApiDescriptor

        descriptor = OpenApiDescriptor()
        assert descriptor.has_been_generated is False
        assert descriptor.document.paths == {}
