"""Component-class decorators, member props, and discovery."""

from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from types import ModuleType
from typing import (
    Annotated,
    Any,
    ClassVar,
    TypeVar,
    get_args,
    get_origin,
    get_type_hints,
)

from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.merge import SchemaProps

C = TypeVar("C", bound=type)
P = TypeVar("P")

MISSING: Any = dataclasses.MISSING

SCHEMA_ATTR = "__openapi_schema__"
PARAMETERS_ATTR = "__openapi_parameters__"
RESPONSES_ATTR = "__openapi_responses__"
EXAMPLES_ATTR = "__openapi_examples__"
REQUEST_BODIES_ATTR = "__openapi_request_bodies__"
HEADERS_ATTR = "__openapi_headers__"
LINKS_ATTR = "__openapi_links__"


# --- class-level declarations ----------------------------------------------


@dataclass(frozen=True)
class SchemaDeclaration:
    props: SchemaProps
    key: str | None = None


@dataclass(frozen=True)
class ParametersDeclaration:
    inline: bool = False
    join_class_name: str | None = None


@dataclass(frozen=True)
class ResponsesDeclaration:
    description: str | None = None
    content_types: tuple[str, ...] = ("application/json",)
    inline: bool = False
    join_class_name: str | None = None


@dataclass(frozen=True)
class ExamplesDeclaration:
    key: str | None = None
    summary: str | None = None
    description: str | None = None
    value: Any = None
    external_value: str | None = None
    inline: bool = False


@dataclass(frozen=True)
class RequestBodiesDeclaration:
    key: str | None = None
    description: str | None = None
    content_types: tuple[str, ...] = ("application/json",)
    required: bool = False
    example: Any = None
    inline: bool = False


@dataclass(frozen=True)
class HeadersDeclaration:
    inline: bool = False
    join_class_name: str | None = None


@dataclass(frozen=True)
class LinksDeclaration:
    inline: bool = False
    join_class_name: str | None = None


def _declare(attr: str, declaration: Any) -> Callable[[C], C]:
    def decorator(cls: C) -> C:
        existing = cls.__dict__.get(attr, ())
        # decorators apply bottom-up; keep source order
        setattr(cls, attr, (declaration, *existing))
        return cls

    return decorator


def openapi_schema(
    props: SchemaProps | None = None, /, *, key: str | None = None, **fields: Any
) -> Callable[[C], C]:
    """Register a class as a schema component; may be stacked (merged)."""
    if props is None:
        props = SchemaProps(**fields)
    elif fields:
        props = dataclasses.replace(props, **fields)
    return _declare(SCHEMA_ATTR, SchemaDeclaration(props, key))


def openapi_parameters(
    *, inline: bool = False, join_class_name: str | None = None
) -> Callable[[C], C]:
    """Every ParameterProps member of the class becomes a parameter component."""
    return _declare(PARAMETERS_ATTR, ParametersDeclaration(inline, join_class_name))


def openapi_responses(
    *,
    description: str | None = None,
    content_types: tuple[str, ...] = ("application/json",),
    inline: bool = False,
    join_class_name: str | None = None,
) -> Callable[[C], C]:
    """Every ResponseProps member of the class becomes a response component."""
    return _declare(
        RESPONSES_ATTR,
        ResponsesDeclaration(
            description, tuple(content_types), inline, join_class_name
        ),
    )


def openapi_examples(
    *,
    key: str | None = None,
    summary: str | None = None,
    description: str | None = None,
    value: Any = None,
    external_value: str | None = None,
    inline: bool = False,
) -> Callable[[C], C]:
    """Register example components from ExampleProps members or the whole class."""
    return _declare(
        EXAMPLES_ATTR,
        ExamplesDeclaration(key, summary, description, value, external_value, inline),
    )


def openapi_request_bodies(
    *,
    key: str | None = None,
    description: str | None = None,
    content_types: tuple[str, ...] = ("application/json",),
    required: bool = False,
    example: Any = None,
    inline: bool = False,
) -> Callable[[C], C]:
    """Register request bodies from RequestBodyProps members or the whole class."""
    return _declare(
        REQUEST_BODIES_ATTR,
        RequestBodiesDeclaration(
            key, description, tuple(content_types), required, example, inline
        ),
    )


def openapi_headers(
    *, inline: bool = False, join_class_name: str | None = None
) -> Callable[[C], C]:
    return _declare(HEADERS_ATTR, HeadersDeclaration(inline, join_class_name))


def openapi_links(
    *, inline: bool = False, join_class_name: str | None = None
) -> Callable[[C], C]:
    return _declare(LINKS_ATTR, LinksDeclaration(inline, join_class_name))


def declarations(cls: type, attr: str) -> tuple[Any, ...]:
    """Declarations placed on *cls* itself (never inherited)."""
    return tuple(cls.__dict__.get(attr, ()))


def single_declaration(cls: type, attr: str) -> Any:
    """The one declaration of a singleton decorator, or None.

    Raises OpenApiConfigurationError when the decorator was stacked.
    """
    found = declarations(cls, attr)
    if len(found) > 1:
        decorator = attr.strip("_")
        raise OpenApiConfigurationError(
            f"Type '{cls.__qualname__}' has multiple @{decorator} declarations. "
            "Only one is allowed per class."
        )
    return found[0] if found else None


def is_schema_class(cls: Any) -> bool:
    return isinstance(cls, type) and bool(cls.__dict__.get(SCHEMA_ATTR))


# --- member props -----------------------------------------------------------


@dataclass(frozen=True)
class ParameterProps:
    location: str = "query"
    name: str | None = None
    key: str | None = None
    description: str | None = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: str | None = None
    explode: bool = False
    allow_reserved: bool = False
    example: Any = None
    content_type: str | None = None


@dataclass(frozen=True)
class ResponseProps:
    description: str | None = None
    key: str | None = None
    schema: Any = None
    schema_ref: str | None = None
    content_types: tuple[str, ...] = ("application/json",)
    inline: bool = False


@dataclass(frozen=True)
class ExampleProps:
    key: str | None = None
    summary: str | None = None
    description: str | None = None
    value: Any = None
    external_value: str | None = None


@dataclass(frozen=True)
class RequestBodyProps:
    key: str | None = None
    description: str | None = None
    content_types: tuple[str, ...] = ("application/json",)
    required: bool = False
    example: Any = None


@dataclass(frozen=True)
class HeaderProps:
    key: str | None = None
    description: str | None = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: str | None = None
    explode: bool = False
    allow_reserved: bool = False
    example: Any = None
    schema_ref: str | None = None


@dataclass(frozen=True)
class LinkProps:
    key: str | None = None
    operation_id: str | None = None
    operation_ref: str | None = None
    description: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    request_body: Any = None
    server_url: str | None = None


@dataclass(frozen=True)
class HeaderRef:
    key: str
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class LinkRef:
    key: str
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class ExampleRef:
    key: str
    reference_id: str
    content_type: str | None = None
    inline: bool = False


@dataclass(frozen=True)
class AdditionalProperties:
    """Marks a member whose type describes the object's additionalProperties."""


@dataclass(frozen=True)
class Member:
    """One public annotated member of a component class."""

    name: str
    type: Any
    metadata: tuple[Any, ...] = ()
    default: Any = field(default_factory=lambda: MISSING)

    def props(self, kind: type[P]) -> list[P]:
        return [m for m in self.metadata if isinstance(m, kind)]

    def first(self, kind: type[P]) -> P | None:
        found = self.props(kind)
        return found[0] if found else None

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING


def _split_annotated(hint: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(hint) is Annotated:
        base, *metadata = get_args(hint)
        return base, tuple(metadata)
    return hint, ()


def _member_default(cls: type, name: str) -> Any:
    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            if f.name != name:
                continue
            if f.default is not MISSING:
                return f.default
            if f.default_factory is not MISSING:
                return f.default_factory()
            return MISSING
    value = inspect.getattr_static(cls, name, MISSING)
    if callable(value) or isinstance(value, (property, staticmethod, classmethod)):
        return MISSING
    return value


def annotated_members(cls: type, *, own_only: bool = False) -> list[Member]:
    """Public annotated members in declaration order, bases first."""
    hints = get_type_hints(cls, include_extras=True)
    own = set(inspect.get_annotations(cls))

    if dataclasses.is_dataclass(cls):
        order = [f.name for f in dataclasses.fields(cls)]
    else:
        order = list(hints)

    members: list[Member] = []
    for name in order:
        if name.startswith("_") or name not in hints:
            continue
        if own_only and name not in own:
            continue
        hint = hints[name]
        if get_origin(hint) is ClassVar or hint is ClassVar:
            continue
        base, metadata = _split_annotated(hint)
        members.append(Member(name, base, metadata, _member_default(cls, name)))
    return members


# --- discovery --------------------------------------------------------------


@dataclass
class ComponentSet:
    """Annotated classes bucketed by component role."""

    schemas: list[type] = field(default_factory=list)
    parameters: list[type] = field(default_factory=list)
    responses: list[type] = field(default_factory=list)
    examples: list[type] = field(default_factory=list)
    request_bodies: list[type] = field(default_factory=list)
    headers: list[type] = field(default_factory=list)
    links: list[type] = field(default_factory=list)

    def add(self, cls: type) -> None:
        buckets = (
            (SCHEMA_ATTR, self.schemas),
            (PARAMETERS_ATTR, self.parameters),
            (RESPONSES_ATTR, self.responses),
            (EXAMPLES_ATTR, self.examples),
            (REQUEST_BODIES_ATTR, self.request_bodies),
            (HEADERS_ATTR, self.headers),
            (LINKS_ATTR, self.links),
        )
        for attr, bucket in buckets:
            if declarations(cls, attr) and cls not in bucket:
                bucket.append(cls)

    def extend(self, other: ComponentSet) -> None:
        for cls in other:
            self.add(cls)

    def __iter__(self) -> Iterator[type]:
        seen: list[type] = []
        for bucket in (
            self.schemas,
            self.parameters,
            self.responses,
            self.examples,
            self.request_bodies,
            self.headers,
            self.links,
        ):
            for cls in bucket:
                if cls not in seen:
                    seen.append(cls)
                    yield cls

    def __bool__(self) -> bool:
        return any(True for _ in self)


def discover_components(*sources: ModuleType | type) -> ComponentSet:
    """Bucket annotated classes from modules (definition order) or explicit types."""
    result = ComponentSet()
    for source in sources:
        if isinstance(source, ModuleType):
            for value in vars(source).values():
                if isinstance(value, type) and value.__module__ == source.__name__:
                    result.add(value)
        elif isinstance(source, type):
            result.add(source)
        else:
            raise TypeError(f"Cannot discover components in {source!r}")
    return result
