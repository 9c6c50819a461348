"""FastAPI OpenAPI Assembler - type-driven OpenAPI documents for FastAPI apps."""

from fastapi_openapi_assembler._types import Float32, Int32, Int64
from fastapi_openapi_assembler.annotated import (
    CallbackRef,
    OperationSpec,
    ParameterRef,
    ParameterSpec,
    RequestBodyRef,
    RequestBodySpec,
    ResponseExampleRef,
    ResponseHeaderRef,
    ResponseLinkRef,
    ResponseRef,
    ResponseSpec,
)
from fastapi_openapi_assembler.component import ComponentKind, ConflictPolicy, PoolScope
from fastapi_openapi_assembler.components import (
    AdditionalProperties,
    ApiKeyAuthOptions,
    BasicAuthOptions,
    BearerAuthOptions,
    ComponentSet,
    CookieAuthOptions,
    ExampleProps,
    ExampleRef,
    HeaderProps,
    HeaderRef,
    LinkProps,
    LinkRef,
    MutualTlsOptions,
    NegotiateAuthOptions,
    OAuth2Options,
    OpenIdConnectOptions,
    ParameterProps,
    RequestBodyProps,
    ResponseProps,
    discover_components,
    openapi_examples,
    openapi_headers,
    openapi_links,
    openapi_parameters,
    openapi_request_bodies,
    openapi_responses,
    openapi_schema,
)
from fastapi_openapi_assembler.descriptor import OpenApiDescriptor
from fastapi_openapi_assembler.exceptions import (
    ComponentConflictError,
    ComponentTypeMismatchError,
    OpenApiConfigurationError,
    OpenApiError,
    PathTemplateError,
    ReferenceNotFoundError,
    UnsupportedSpecVersionError,
)
from fastapi_openapi_assembler.integration import (
    collect_routes,
    install_openapi,
    map_template_route,
    openapi_operation,
    openapi_path,
)
from fastapi_openapi_assembler.merge import SchemaProps, SchemaType
from fastapi_openapi_assembler.models import Document, Reference, Schema
from fastapi_openapi_assembler.operations import OperationMetadata, PathMetadata
from fastapi_openapi_assembler.paths import RouteOptions
from fastapi_openapi_assembler.serializer import RoundTripResult
from fastapi_openapi_assembler.settings import OpenApiSettings
from fastapi_openapi_assembler.templates import PathTemplateMapping, map_path_template
from fastapi_openapi_assembler.versions import SpecVersion

__all__ = [
    "AdditionalProperties",
    "ApiKeyAuthOptions",
    "BasicAuthOptions",
    "BearerAuthOptions",
    "CallbackRef",
    "ComponentConflictError",
    "ComponentKind",
    "ComponentSet",
    "ComponentTypeMismatchError",
    "ConflictPolicy",
    "CookieAuthOptions",
    "Document",
    "ExampleProps",
    "ExampleRef",
    "Float32",
    "HeaderProps",
    "HeaderRef",
    "Int32",
    "Int64",
    "LinkProps",
    "LinkRef",
    "MutualTlsOptions",
    "NegotiateAuthOptions",
    "OAuth2Options",
    "OpenApiConfigurationError",
    "OpenApiDescriptor",
    "OpenApiError",
    "OpenApiSettings",
    "OpenIdConnectOptions",
    "OperationMetadata",
    "OperationSpec",
    "ParameterProps",
    "ParameterRef",
    "ParameterSpec",
    "PathMetadata",
    "PathTemplateError",
    "PathTemplateMapping",
    "PoolScope",
    "Reference",
    "ReferenceNotFoundError",
    "RequestBodyProps",
    "RequestBodyRef",
    "RequestBodySpec",
    "ResponseExampleRef",
    "ResponseHeaderRef",
    "ResponseLinkRef",
    "ResponseProps",
    "ResponseRef",
    "ResponseSpec",
    "RoundTripResult",
    "RouteOptions",
    "Schema",
    "SchemaProps",
    "SchemaType",
    "SpecVersion",
    "UnsupportedSpecVersionError",
    "collect_routes",
    "discover_components",
    "install_openapi",
    "map_path_template",
    "map_template_route",
    "openapi_examples",
    "openapi_headers",
    "openapi_links",
    "openapi_operation",
    "openapi_parameters",
    "openapi_path",
    "openapi_request_bodies",
    "openapi_responses",
    "openapi_schema",
]
