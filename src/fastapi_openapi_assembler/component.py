"""ComponentKind, PoolScope, ConflictPolicy and the ComponentBuilder ABC."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from fastapi_openapi_assembler.components.schemas import SchemaInferencer
    from fastapi_openapi_assembler.registry import ComponentRegistry
    from fastapi_openapi_assembler.resolver import ReferenceResolver


class ComponentKind(Enum):
    """The eleven named maps of an OpenAPI components section."""

    SCHEMAS = "schemas"
    RESPONSES = "responses"
    PARAMETERS = "parameters"
    EXAMPLES = "examples"
    REQUEST_BODIES = "requestBodies"
    HEADERS = "headers"
    SECURITY_SCHEMES = "securitySchemes"
    LINKS = "links"
    CALLBACKS = "callbacks"
    PATH_ITEMS = "pathItems"
    MEDIA_TYPES = "mediaTypes"

    @property
    def section(self) -> str:
        """Key of this kind under ``components`` in the serialized document."""
        return self.value

    @property
    def attribute(self) -> str:
        _ATTRIBUTES = {
            "schemas": "schemas",
            "responses": "responses",
            "parameters": "parameters",
            "examples": "examples",
            "requestBodies": "request_bodies",
            "headers": "headers",
            "securitySchemes": "security_schemes",
            "links": "links",
            "callbacks": "callbacks",
            "pathItems": "path_items",
            "mediaTypes": "media_types",
        }
        return _ATTRIBUTES[self.value]

    @property
    def label(self) -> str:
        _LABELS = {
            "schemas": "schema",
            "responses": "response",
            "parameters": "parameter",
            "examples": "example",
            "requestBodies": "request body",
            "headers": "header",
            "securitySchemes": "security scheme",
            "links": "link",
            "callbacks": "callback",
            "pathItems": "path item",
            "mediaTypes": "media type",
        }
        return _LABELS[self.value]

    @property
    def model(self) -> type:
        """Concrete model class stored under this kind."""
        from fastapi_openapi_assembler import models

        _MODELS: dict[str, type] = {
            "schemas": models.Schema,
            "responses": models.Response,
            "parameters": models.Parameter,
            "examples": models.Example,
            "requestBodies": models.RequestBody,
            "headers": models.Header,
            "securitySchemes": models.SecurityScheme,
            "links": models.Link,
            "callbacks": models.Callback,
            "pathItems": models.PathItem,
            "mediaTypes": models.MediaType,
        }
        return _MODELS[self.value]


class PoolScope(Enum):
    """Which component pool a lookup or write targets."""

    SHARED = "shared"
    INLINE = "inline"


class ConflictPolicy(Enum):
    """What to do when a component name already exists in a pool."""

    ERROR = "error"
    OVERWRITE = "overwrite"
    IGNORE = "ignore"


class ComponentBuilder(ABC):
    """Turns one annotated component class into registered components."""

    kind: ClassVar[ComponentKind]
    declaration_attr: ClassVar[str]

    def __init__(
        self,
        registry: ComponentRegistry,
        inferencer: SchemaInferencer,
        resolver: ReferenceResolver,
    ) -> None:
        self.registry = registry
        self.inferencer = inferencer
        self.resolver = resolver

    def applies_to(self, cls: type) -> bool:
        return bool(cls.__dict__.get(self.declaration_attr))

    @abstractmethod
    def build(self, cls: type) -> list[str]:
        """Register the components declared by *cls*; return their names."""

    def register(
        self,
        name: str,
        value: Any,
        *,
        inline: bool = False,
        if_exists: ConflictPolicy = ConflictPolicy.OVERWRITE,
    ) -> None:
        scope = PoolScope.INLINE if inline else PoolScope.SHARED
        self.registry.add(scope, self.kind, name, value, if_exists)

    @staticmethod
    def member_key(cls: type, name: str, join_class_name: str | None) -> str:
        if join_class_name is None:
            return name
        return f"{cls.__name__}{join_class_name}{name}"
