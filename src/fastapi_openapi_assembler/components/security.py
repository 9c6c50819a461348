"""Authentication option descriptors mapped to security schemes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from fastapi_openapi_assembler._types import SecurityRequirement
from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.models import OAuthFlow, OAuthFlows, SecurityScheme

_MTLS_DESCRIPTION = (
    "Mutual TLS (client certificate) authentication. Requires a client "
    "certificate at the transport layer; this is not a header-based scheme."
)


@dataclass(kw_only=True)
class AuthSchemeOptions:
    """Base for the small per-scheme descriptors the assembler consumes."""

    description: str | None = None
    deprecated: bool = False
    global_scheme: bool = False


@dataclass(kw_only=True)
class ApiKeyAuthOptions(AuthSchemeOptions):
    name: str = "X-Api-Key"
    location: str = "header"


@dataclass(kw_only=True)
class BasicAuthOptions(AuthSchemeOptions):
    pass


@dataclass(kw_only=True)
class BearerAuthOptions(AuthSchemeOptions):
    bearer_format: str = "JWT"


@dataclass(kw_only=True)
class CookieAuthOptions(AuthSchemeOptions):
    cookie_name: str = "session"


@dataclass(kw_only=True)
class OAuth2Options(AuthSchemeOptions):
    authorization_url: str
    token_url: str | None = None
    scopes: dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class OpenIdConnectOptions(AuthSchemeOptions):
    authority: str | None = None
    metadata_address: str | None = None


@dataclass(kw_only=True)
class NegotiateAuthOptions(AuthSchemeOptions):
    protocol: str = "negotiate"


@dataclass(kw_only=True)
class MutualTlsOptions(AuthSchemeOptions):
    pass


def security_scheme_for(options: AuthSchemeOptions) -> SecurityScheme:
    """Translate an options descriptor into a SecurityScheme.

    Raises OpenApiConfigurationError for an unsupported options type or an
    OpenID Connect descriptor without a discovery location.
    """
    common = {"description": options.description, "deprecated": options.deprecated}

    if isinstance(options, ApiKeyAuthOptions):
        return SecurityScheme(
            type="apiKey", name=options.name, location=options.location, **common
        )
    if isinstance(options, BasicAuthOptions):
        return SecurityScheme(type="http", scheme="basic", **common)
    if isinstance(options, BearerAuthOptions):
        return SecurityScheme(
            type="http", scheme="bearer", bearer_format=options.bearer_format, **common
        )
    if isinstance(options, CookieAuthOptions):
        return SecurityScheme(
            type="apiKey", name=options.cookie_name, location="cookie", **common
        )
    if isinstance(options, OAuth2Options):
        flow = OAuthFlow(
            authorization_url=options.authorization_url,
            token_url=options.token_url,
            scopes=dict(options.scopes),
        )
        return SecurityScheme(
            type="oauth2", flows=OAuthFlows(authorization_code=flow), **common
        )
    if isinstance(options, OpenIdConnectOptions):
        if options.metadata_address:
            url = options.metadata_address
        elif options.authority:
            url = options.authority.rstrip("/") + "/.well-known/openid-configuration"
        else:
            raise OpenApiConfigurationError(
                "Either authority or metadata_address must be set to build an "
                "OpenID Connect security scheme."
            )
        return SecurityScheme(type="openIdConnect", open_id_connect_url=url, **common)
    if isinstance(options, NegotiateAuthOptions):
        scheme = "ntlm" if options.protocol.lower() == "ntlm" else "negotiate"
        return SecurityScheme(type="http", scheme=scheme, **common)
    if isinstance(options, MutualTlsOptions):
        return SecurityScheme(
            type="apiKey",
            name="mTLS",
            location="header",
            description=options.description or _MTLS_DESCRIPTION,
            deprecated=options.deprecated,
            extensions={"x-mtls": True, "x-transport-auth": "mutualTLS"},
        )
    raise OpenApiConfigurationError(
        f"Unsupported authentication options type: {type(options).__qualname__}"
    )


def build_security_requirements(
    requirements: Sequence[Mapping[str, Iterable[str]]],
) -> list[SecurityRequirement]:
    """One requirement per distinct scheme, first-seen order, scopes unioned."""
    scopes: dict[str, list[str]] = {}
    for requirement in requirements:
        for scheme, declared in requirement.items():
            if not scheme or not scheme.strip():
                continue
            collected = scopes.setdefault(scheme, [])
            for scope in declared or ():
                if scope not in collected:
                    collected.append(scope)
    return [{scheme: names} for scheme, names in scopes.items()]
