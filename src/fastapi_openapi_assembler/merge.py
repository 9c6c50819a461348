"""SchemaProps declarations and the attribute merger."""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any

from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.models import (
    Discriminator,
    ExternalDocs,
    Schema,
    SchemaLike,
    Xml,
)


class SchemaType(Enum):
    """Explicit type override; NONE leaves the inferred type alone."""

    NONE = "none"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class SchemaProps:
    """Schema refinement declared on a class or on an annotated member.

    Counts use ``-1`` as the unset sentinel. Composition entries are either a
    component name (``str``) or a type to infer.
    """

    title: str | None = None
    description: str | None = None
    type: SchemaType = SchemaType.NONE
    format: str | None = None
    pattern: str | None = None
    maximum: str | float | None = None
    minimum: str | float | None = None
    exclusive_maximum: bool = False
    exclusive_minimum: bool = False
    multiple_of: float | None = None
    max_length: int = -1
    min_length: int = -1
    max_items: int = -1
    min_items: int = -1
    max_properties: int = -1
    min_properties: int = -1
    unique_items: bool = False
    nullable: bool = False
    read_only: bool = False
    write_only: bool = False
    deprecated: bool = False
    required: bool = False
    array: bool = False
    enum: tuple[Any, ...] = ()
    default: Any = None
    example: Any = None
    examples: tuple[Any, ...] = ()
    const: Any = None
    required_properties: tuple[str, ...] = ()
    all_of: tuple[Any, ...] = ()
    one_of: tuple[Any, ...] = ()
    any_of: tuple[Any, ...] = ()
    not_: Any = None
    discriminator_property: str | None = None
    discriminator_mapping: Mapping[str, str] = field(default_factory=dict)
    external_docs_url: str | None = None
    external_docs_description: str | None = None
    xml_name: str | None = None
    xml_namespace: str | None = None
    xml_prefix: str | None = None
    xml_attribute: bool = False
    xml_wrapped: bool = False
    additional_properties_allowed: bool = True


def _last_non_blank(values: Sequence[Any]) -> Any:
    result = None
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        result = value
    return result


def _last_non_null(values: Sequence[Any]) -> Any:
    result = None
    for value in values:
        if value is not None:
            result = value
    return result


def _last_count(values: Sequence[int]) -> int:
    result = -1
    for value in values:
        if value >= 0:
            result = value
    return result


def _last_type(values: Sequence[SchemaType]) -> SchemaType:
    result = SchemaType.NONE
    for value in values:
        if value is not SchemaType.NONE:
            result = value
    return result


def _concat(values: Sequence[tuple[Any, ...]]) -> tuple[Any, ...]:
    return tuple(item for value in values for item in value)


def _concat_unique(values: Sequence[tuple[Any, ...]]) -> tuple[Any, ...]:
    result: list[Any] = []
    for value in values:
        for item in value:
            if item not in result:
                result.append(item)
    return tuple(result)


def _merge_mappings(values: Sequence[Mapping[str, str]]) -> dict[str, str]:
    result: dict[str, str] = {}
    for value in values:
        result.update(value)
    return result


_STRINGS = (
    "title",
    "description",
    "format",
    "pattern",
    "maximum",
    "minimum",
    "discriminator_property",
    "external_docs_url",
    "external_docs_description",
    "xml_name",
    "xml_namespace",
    "xml_prefix",
)
_COUNTS = (
    "max_length",
    "min_length",
    "max_items",
    "min_items",
    "max_properties",
    "min_properties",
)
_FLAGS = (
    "exclusive_maximum",
    "exclusive_minimum",
    "unique_items",
    "nullable",
    "read_only",
    "write_only",
    "deprecated",
    "required",
    "array",
    "xml_attribute",
    "xml_wrapped",
)

_POLICIES: dict[str, Callable[[Sequence[Any]], Any]] = {
    **{name: _last_non_blank for name in _STRINGS},
    **{name: _last_count for name in _COUNTS},
    **{name: any for name in _FLAGS},
    "type": _last_type,
    "enum": _concat,
    "examples": _concat,
    "all_of": _concat,
    "one_of": _concat,
    "any_of": _concat,
    "required_properties": _concat_unique,
    "discriminator_mapping": _merge_mappings,
    "additional_properties_allowed": all,
}


def merge_schema_props(props: Sequence[SchemaProps]) -> SchemaProps | None:
    """Fold several declarations into one; later entries win ties."""
    if not props:
        return None
    if len(props) == 1:
        return props[0]

    merged: dict[str, Any] = {}
    for f in fields(SchemaProps):
        values = [getattr(p, f.name) for p in props]
        policy = _POLICIES.get(f.name, _last_non_null)
        merged[f.name] = policy(values)
    return SchemaProps(**merged)


def parse_bound(value: str | float, name: str) -> float:
    """Parse a numeric bound, keeping integral values as ``int``."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise OpenApiConfigurationError(
            f"Invalid {name} value '{value}': expected a number."
        ) from None


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def apply_schema_props(
    props: SchemaProps | None,
    node: Schema,
    *,
    resolve: Callable[[Any], SchemaLike] | None = None,
) -> Schema:
    """Write a merged declaration onto *node* and return it.

    *resolve* turns composition entries (type or component name) into schema
    nodes; entries are skipped when it is not supplied.
    """
    if props is None:
        return node

    if props.type is not SchemaType.NONE:
        node.type = props.type.value
    if not _is_blank(props.title):
        node.title = props.title
    if not _is_blank(props.description):
        node.description = props.description
    if not _is_blank(props.format):
        node.format = props.format
    if not _is_blank(props.pattern):
        node.pattern = props.pattern

    if props.maximum is not None and str(props.maximum).strip():
        node.maximum = parse_bound(props.maximum, "maximum")
    if props.minimum is not None and str(props.minimum).strip():
        node.minimum = parse_bound(props.minimum, "minimum")
    if props.multiple_of is not None:
        node.multiple_of = props.multiple_of

    for name in _COUNTS:
        value = getattr(props, name)
        if value >= 0:
            setattr(node, name, value)

    node.exclusive_maximum = node.exclusive_maximum or props.exclusive_maximum
    node.exclusive_minimum = node.exclusive_minimum or props.exclusive_minimum
    node.unique_items = node.unique_items or props.unique_items
    node.nullable = node.nullable or props.nullable
    node.read_only = node.read_only or props.read_only
    node.write_only = node.write_only or props.write_only
    node.deprecated = node.deprecated or props.deprecated

    if props.enum:
        node.enum = list(props.enum)
    if props.default is not None:
        node.default = copy.deepcopy(props.default)
    if props.example is not None:
        node.example = copy.deepcopy(props.example)
    if props.examples:
        node.examples.extend(copy.deepcopy(list(props.examples)))
    if props.const is not None:
        node.const = copy.deepcopy(props.const)

    for name in props.required_properties:
        node.add_required(name)

    if resolve is not None:
        node.all_of.extend(resolve(entry) for entry in props.all_of)
        node.one_of.extend(resolve(entry) for entry in props.one_of)
        node.any_of.extend(resolve(entry) for entry in props.any_of)
        if props.not_ is not None:
            node.not_ = resolve(props.not_)

    if not _is_blank(props.discriminator_property):
        node.discriminator = Discriminator(
            property_name=props.discriminator_property or "",
            mapping=dict(props.discriminator_mapping),
        )

    if not _is_blank(props.external_docs_url):
        node.external_docs = ExternalDocs(
            url=props.external_docs_url or "",
            description=props.external_docs_description,
        )

    if (
        not _is_blank(props.xml_name)
        or not _is_blank(props.xml_namespace)
        or not _is_blank(props.xml_prefix)
        or props.xml_attribute
        or props.xml_wrapped
    ):
        node.xml = Xml(
            name=props.xml_name,
            namespace=props.xml_namespace,
            prefix=props.xml_prefix,
            attribute=props.xml_attribute,
            wrapped=props.xml_wrapped,
        )

    if not props.additional_properties_allowed:
        node.additional_properties = False

    return node
