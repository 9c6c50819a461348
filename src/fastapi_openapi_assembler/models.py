"""OpenAPI object graph: one dataclass per document object kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from fastapi_openapi_assembler._types import JsonValue, SecurityRequirement
from fastapi_openapi_assembler.component import ComponentKind

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


@dataclass
class Reference:
    """Nominal pointer to a shared component, resolved by name at serialization."""

    kind: ComponentKind
    id: str
    summary: str | None = None
    description: str | None = None

    @property
    def ref(self) -> str:
        return f"#/components/{self.kind.section}/{self.id}"


@dataclass
class ExternalDocs:
    url: str
    description: str | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Discriminator:
    property_name: str
    mapping: dict[str, str] = field(default_factory=dict)


@dataclass
class Xml:
    name: str | None = None
    namespace: str | None = None
    prefix: str | None = None
    attribute: bool = False
    wrapped: bool = False


@dataclass
class Schema:
    """JSON-Schema-shaped constraint set; children are owned by the parent."""

    type: str | None = None
    nullable: bool = False
    format: str | None = None
    title: str | None = None
    description: str | None = None
    default: JsonValue = None
    example: JsonValue = None
    examples: list[JsonValue] = field(default_factory=list)
    const: JsonValue = None
    enum: list[JsonValue] | None = None
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool = False
    exclusive_maximum: bool = False
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    min_properties: int | None = None
    max_properties: int | None = None
    properties: dict[str, SchemaLike] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    additional_properties: SchemaLike | bool | None = None
    items: SchemaLike | None = None
    all_of: list[SchemaLike] = field(default_factory=list)
    one_of: list[SchemaLike] = field(default_factory=list)
    any_of: list[SchemaLike] = field(default_factory=list)
    not_: SchemaLike | None = None
    discriminator: Discriminator | None = None
    read_only: bool = False
    write_only: bool = False
    deprecated: bool = False
    xml: Xml | None = None
    external_docs: ExternalDocs | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)

    def add_required(self, name: str) -> None:
        if name not in self.required:
            self.required.append(name)


SchemaLike = Union[Schema, Reference]


@dataclass
class Example:
    summary: str | None = None
    description: str | None = None
    value: JsonValue = None
    external_value: str | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Encoding:
    content_type: str | None = None
    headers: dict[str, Header | Reference] = field(default_factory=dict)
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool = False


@dataclass
class MediaType:
    schema: SchemaLike | None = None
    example: JsonValue = None
    examples: dict[str, Example | Reference] = field(default_factory=dict)
    encoding: dict[str, Encoding] = field(default_factory=dict)
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Parameter:
    name: str
    location: str = "query"
    description: str | None = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool = False
    schema: SchemaLike | None = None
    example: JsonValue = None
    examples: dict[str, Example | Reference] = field(default_factory=dict)
    content: dict[str, MediaType] = field(default_factory=dict)
    extensions: dict[str, JsonValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # path parameters are always required
        if self.location == "path":
            self.required = True


@dataclass
class Header:
    description: str | None = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool = False
    schema: SchemaLike | None = None
    example: JsonValue = None
    examples: dict[str, Example | Reference] = field(default_factory=dict)
    content: dict[str, MediaType] = field(default_factory=dict)
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class ServerVariable:
    default: str
    enum: list[str] = field(default_factory=list)
    description: str | None = None


@dataclass
class Server:
    url: str
    description: str | None = None
    variables: dict[str, ServerVariable] = field(default_factory=dict)
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Link:
    operation_ref: str | None = None
    operation_id: str | None = None
    parameters: dict[str, JsonValue] = field(default_factory=dict)
    request_body: JsonValue = None
    description: str | None = None
    server: Server | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class RequestBody:
    content: dict[str, MediaType] = field(default_factory=dict)
    description: str | None = None
    required: bool = False
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Response:
    description: str = ""
    headers: dict[str, Header | Reference] = field(default_factory=dict)
    content: dict[str, MediaType] = field(default_factory=dict)
    links: dict[str, Link | Reference] = field(default_factory=dict)
    extensions: dict[str, JsonValue] = field(default_factory=dict)

    def media_type(self, content_type: str) -> MediaType:
        """Return the media type for *content_type*, creating it if missing."""
        media = self.content.get(content_type)
        if media is None:
            media = self.content[content_type] = MediaType()
        return media


@dataclass
class Operation:
    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    external_docs: ExternalDocs | None = None
    parameters: list[Parameter | Reference] = field(default_factory=list)
    request_body: RequestBody | Reference | None = None
    responses: dict[str, Response | Reference] = field(default_factory=dict)
    callbacks: dict[str, Callback | Reference] = field(default_factory=dict)
    deprecated: bool = False
    security: list[SecurityRequirement] | None = None
    servers: list[Server] = field(default_factory=list)
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class PathItem:
    summary: str | None = None
    description: str | None = None
    operations: dict[str, Operation] = field(default_factory=dict)
    servers: list[Server] = field(default_factory=list)
    parameters: list[Parameter | Reference] = field(default_factory=list)
    extensions: dict[str, JsonValue] = field(default_factory=dict)

    def add_operation(self, method: str, operation: Operation) -> None:
        key = method.lower()
        if key not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method '{method}'")
        self.operations[key] = operation


@dataclass
class Callback:
    """Maps runtime expressions to path items."""

    path_items: dict[str, PathItem] = field(default_factory=dict)
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class OAuthFlow:
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None
    scopes: dict[str, str] = field(default_factory=dict)


@dataclass
class OAuthFlows:
    implicit: OAuthFlow | None = None
    password: OAuthFlow | None = None
    client_credentials: OAuthFlow | None = None
    authorization_code: OAuthFlow | None = None


@dataclass
class SecurityScheme:
    type: str
    description: str | None = None
    name: str | None = None
    location: str | None = None
    scheme: str | None = None
    bearer_format: str | None = None
    flows: OAuthFlows | None = None
    open_id_connect_url: str | None = None
    deprecated: bool = False
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Tag:
    name: str
    description: str | None = None
    summary: str | None = None
    parent: str | None = None
    kind: str | None = None
    external_docs: ExternalDocs | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Contact:
    name: str | None = None
    url: str | None = None
    email: str | None = None


@dataclass
class License:
    name: str
    identifier: str | None = None
    url: str | None = None


@dataclass
class Info:
    title: str = "API"
    version: str = "1.0.0"
    summary: str | None = None
    description: str | None = None
    terms_of_service: str | None = None
    contact: Contact | None = None
    license: License | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)


@dataclass
class Components:
    """Eleven independent named maps, one per ComponentKind."""

    schemas: dict[str, Schema | Reference] = field(default_factory=dict)
    responses: dict[str, Response | Reference] = field(default_factory=dict)
    parameters: dict[str, Parameter | Reference] = field(default_factory=dict)
    examples: dict[str, Example | Reference] = field(default_factory=dict)
    request_bodies: dict[str, RequestBody | Reference] = field(default_factory=dict)
    headers: dict[str, Header | Reference] = field(default_factory=dict)
    security_schemes: dict[str, SecurityScheme | Reference] = field(
        default_factory=dict
    )
    links: dict[str, Link | Reference] = field(default_factory=dict)
    callbacks: dict[str, Callback | Reference] = field(default_factory=dict)
    path_items: dict[str, PathItem | Reference] = field(default_factory=dict)
    media_types: dict[str, MediaType | Reference] = field(default_factory=dict)

    def store(self, kind: ComponentKind) -> dict[str, Any]:
        result: dict[str, Any] = getattr(self, kind.attribute)
        return result


@dataclass
class Document:
    info: Info = field(default_factory=Info)
    servers: list[Server] = field(default_factory=list)
    paths: dict[str, PathItem] = field(default_factory=dict)
    webhooks: dict[str, PathItem] = field(default_factory=dict)
    components: Components = field(default_factory=Components)
    security: list[SecurityRequirement] | None = None
    tags: list[Tag] = field(default_factory=list)
    external_docs: ExternalDocs | None = None
    json_schema_dialect: str | None = None
    extensions: dict[str, JsonValue] = field(default_factory=dict)
