"""Component-class builders, declarations and security option descriptors."""

from fastapi_openapi_assembler.components.declarations import (
    AdditionalProperties,
    ComponentSet,
    ExampleProps,
    ExampleRef,
    HeaderProps,
    HeaderRef,
    LinkProps,
    LinkRef,
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
from fastapi_openapi_assembler.components.examples import ExampleComponentBuilder
from fastapi_openapi_assembler.components.headers import HeaderComponentBuilder
from fastapi_openapi_assembler.components.links import LinkComponentBuilder
from fastapi_openapi_assembler.components.parameters import ParameterComponentBuilder
from fastapi_openapi_assembler.components.request_bodies import (
    RequestBodyComponentBuilder,
)
from fastapi_openapi_assembler.components.responses import ResponseComponentBuilder
from fastapi_openapi_assembler.components.schemas import SchemaInferencer
from fastapi_openapi_assembler.components.security import (
    ApiKeyAuthOptions,
    AuthSchemeOptions,
    BasicAuthOptions,
    BearerAuthOptions,
    CookieAuthOptions,
    MutualTlsOptions,
    NegotiateAuthOptions,
    OAuth2Options,
    OpenIdConnectOptions,
    security_scheme_for,
)

__all__ = [
    "AdditionalProperties",
    "ApiKeyAuthOptions",
    "AuthSchemeOptions",
    "BasicAuthOptions",
    "BearerAuthOptions",
    "ComponentSet",
    "CookieAuthOptions",
    "ExampleComponentBuilder",
    "ExampleProps",
    "ExampleRef",
    "HeaderComponentBuilder",
    "HeaderProps",
    "HeaderRef",
    "LinkComponentBuilder",
    "LinkProps",
    "LinkRef",
    "MutualTlsOptions",
    "NegotiateAuthOptions",
    "OAuth2Options",
    "OpenIdConnectOptions",
    "ParameterComponentBuilder",
    "ParameterProps",
    "RequestBodyComponentBuilder",
    "RequestBodyProps",
    "ResponseComponentBuilder",
    "ResponseProps",
    "SchemaInferencer",
    "discover_components",
    "openapi_examples",
    "openapi_headers",
    "openapi_links",
    "openapi_parameters",
    "openapi_request_bodies",
    "openapi_responses",
    "openapi_schema",
    "security_scheme_for",
]
