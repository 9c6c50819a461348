"""Type-to-schema inference with recursion-safe component building."""

from __future__ import annotations

import base64
import collections.abc
import dataclasses
import datetime
import decimal
import logging
import types
import uuid
from enum import Enum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from fastapi_openapi_assembler._types import Float32, Int32, Int64
from fastapi_openapi_assembler.component import ComponentKind, ConflictPolicy
from fastapi_openapi_assembler.components.declarations import (
    SCHEMA_ATTR,
    AdditionalProperties,
    Member,
    SchemaDeclaration,
    annotated_members,
    declarations,
    is_schema_class,
)
from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.merge import (
    SchemaProps,
    apply_schema_props,
    merge_schema_props,
)
from fastapi_openapi_assembler.models import Reference, Schema, SchemaLike
from fastapi_openapi_assembler.registry import ComponentRegistry

logger = logging.getLogger(__name__)

_PRIMITIVES: dict[Any, tuple[str, str | None]] = {
    str: ("string", None),
    bool: ("boolean", None),
    int: ("integer", "int64"),
    Int32: ("integer", "int32"),
    Int64: ("integer", "int64"),
    float: ("number", "double"),
    Float32: ("number", "float"),
    decimal.Decimal: ("number", "decimal"),
    datetime.datetime: ("string", "date-time"),
    datetime.date: ("string", "date"),
    datetime.time: ("string", "time"),
    datetime.timedelta: ("string", "duration"),
    uuid.UUID: ("string", "uuid"),
    bytes: ("string", "binary"),
    bytearray: ("string", "binary"),
}

_SEQUENCES = {
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Set,
    collections.abc.MutableSet,
}
_SETS = {set, frozenset, collections.abc.Set, collections.abc.MutableSet}
_MAPPINGS = {dict, collections.abc.Mapping, collections.abc.MutableMapping}

_EPOCH = datetime.datetime(1970, 1, 1)


def primitive_schema(tp: Any) -> Schema | None:
    """Schema for a primitive type (or a subclass of one), else None."""
    try:
        found = _PRIMITIVES.get(tp)
    except TypeError:
        return None
    if found is None and isinstance(tp, type):
        for base in (bool, str, int, float, decimal.Decimal, bytes):
            if issubclass(tp, base):
                found = _PRIMITIVES[base]
                break
    if found is None:
        return None
    kind, fmt = found
    return Schema(type=kind, format=fmt)


def enum_schema(tp: type[Enum]) -> Schema:
    return Schema(type="string", enum=[member.name for member in tp])


def schema_name(tp: type) -> str:
    """Component name: the last non-blank ``key`` override, else ``__name__``."""
    name = tp.__name__
    for declaration in declarations(tp, SCHEMA_ATTR):
        if declaration.key and declaration.key.strip():
            name = declaration.key
    return name


def is_intrinsic_default(value: Any) -> bool:
    """True for values that carry no information worth emitting as a default."""
    if value is None or value is False:
        return True
    if isinstance(value, Enum):
        return value.value == 0
    if isinstance(value, (int, float, decimal.Decimal)) and value == 0:
        return True
    if isinstance(value, uuid.UUID):
        return value.int == 0
    if isinstance(value, datetime.timedelta):
        return value == datetime.timedelta(0)
    if isinstance(value, datetime.datetime):
        return value in (datetime.datetime.min, _EPOCH)
    if isinstance(value, datetime.date):
        return value == datetime.date.min
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def _duration(value: datetime.timedelta) -> str:
    seconds = value.total_seconds()
    if seconds == int(seconds):
        return f"PT{int(seconds)}S"
    return f"PT{seconds}S"


def to_json_value(value: Any) -> Any:
    """Convert a Python value to a JSON-compatible structure."""
    if isinstance(value, Enum):
        return value.name
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return _duration(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, collections.abc.Mapping):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_value(v) for v in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_json_value(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if not f.name.startswith("_")
        }
    if hasattr(value, "__dict__"):
        return {
            k: to_json_value(v)
            for k, v in vars(value).items()
            if not k.startswith("_")
        }
    return str(value)


def _with_null(schema: SchemaLike) -> SchemaLike:
    if isinstance(schema, Reference):
        return Schema(all_of=[schema], nullable=True)
    schema.nullable = True
    return schema


def _default_instance(tp: type) -> Any:
    try:
        return tp()
    except Exception:
        logger.debug("Could not instantiate %s for default capture", tp.__name__)
        return None


class SchemaInferencer:
    """Maps Python types onto schema nodes, registering classes as components.

    Classes become ``$ref`` schemas; their component is built once per memo
    generation, which is what breaks cycles between self-referential types.
    """

    def __init__(self, registry: ComponentRegistry) -> None:
        self.registry = registry
        self._built: set[type] = set()
        self._owners: dict[str, type] = {}

    def reset(self) -> None:
        self._built.clear()

    @property
    def built(self) -> frozenset[type]:
        return frozenset(self._built)

    def infer_schema(self, tp: Any, allow_null: bool = False) -> SchemaLike:
        schema = self._infer(tp)
        if allow_null:
            schema = _with_null(schema)
        return schema

    def resolve_entry(self, entry: Any) -> SchemaLike:
        """Composition entry: a component name or a type."""
        if isinstance(entry, str):
            return Reference(ComponentKind.SCHEMAS, entry)
        return self.infer_schema(entry)

    def _infer(self, tp: Any) -> SchemaLike:
        origin = get_origin(tp)

        if origin is Annotated:
            base, *metadata = get_args(tp)
            props = merge_schema_props(
                [m for m in metadata if isinstance(m, SchemaProps)]
            )
            return self.refine(self._infer(base), props)

        if tp is Any or tp is object:
            return Schema()
        if tp is None or tp is type(None):
            return Schema(nullable=True)

        if origin is Union or origin is types.UnionType:
            args = get_args(tp)
            present = [a for a in args if a is not type(None)]
            nullable = len(present) < len(args)
            if len(present) == 1:
                schema = self._infer(present[0])
            else:
                schema = Schema(one_of=[self._infer(a) for a in present])
            return _with_null(schema) if nullable else schema

        if origin is Literal:
            values = list(get_args(tp))
            schema = primitive_schema(type(values[0])) if values else None
            schema = schema or Schema()
            schema.format = None
            schema.enum = [to_json_value(v) for v in values]
            return schema

        if origin in _SEQUENCES:
            args = [a for a in get_args(tp) if a is not Ellipsis]
            if origin is tuple and len(set(args)) > 1:
                items: SchemaLike = Schema(one_of=[self._infer(a) for a in args])
            else:
                items = self._infer(args[0]) if args else Schema()
            return Schema(type="array", items=items, unique_items=origin in _SETS)

        if origin in _MAPPINGS:
            args = get_args(tp)
            extra: SchemaLike | bool = self._infer(args[1]) if len(args) == 2 else True
            return Schema(type="object", additional_properties=extra)

        if tp in _SEQUENCES:
            return Schema(type="array", items=Schema(), unique_items=tp in _SETS)
        if tp in _MAPPINGS:
            return Schema(type="object", additional_properties=True)

        if isinstance(tp, type):
            if is_schema_class(tp):
                self.ensure_component(tp)
                return Reference(ComponentKind.SCHEMAS, schema_name(tp))
            if issubclass(tp, Enum):
                return enum_schema(tp)
            primitive = primitive_schema(tp)
            if primitive is not None:
                return primitive
            self.ensure_component(tp)
            return Reference(ComponentKind.SCHEMAS, schema_name(tp))

        primitive = primitive_schema(tp)
        if primitive is not None:
            return primitive

        logger.warning("Unrecognized type hint %r; falling back to a string schema", tp)
        return Schema(type="string")

    def refine(self, schema: SchemaLike, props: SchemaProps | None) -> SchemaLike:
        if props is None:
            return schema
        if props.array:
            schema = Schema(type="array", items=schema)
        if isinstance(schema, Reference):
            if props.description and props.description.strip():
                schema.description = props.description
            if props.title and props.title.strip():
                schema.summary = props.title
            if props.nullable:
                schema = _with_null(schema)
            return schema
        return apply_schema_props(props, schema, resolve=self.resolve_entry)

    def member_schema(self, member: Member) -> SchemaLike:
        """Inferred schema of a member refined by its merged SchemaProps."""
        props = merge_schema_props(member.props(SchemaProps))
        return self.refine(self.infer_schema(member.type), props)

    def claim_name(self, tp: type) -> str:
        """Component name for *tp*; raises when another type already owns it."""
        name = schema_name(tp)
        owner = self._owners.setdefault(name, tp)
        if owner is not tp:
            raise OpenApiConfigurationError(
                f"Schema component name '{name}' is claimed by both "
                f"{owner.__module__}.{owner.__qualname__} and "
                f"{tp.__module__}.{tp.__qualname__}; give one of them "
                "openapi_schema(key=...)"
            )
        return name

    def ensure_component(self, tp: type) -> None:
        name = self.claim_name(tp)
        if tp in self._built:
            return
        if self.registry.shared.contains(ComponentKind.SCHEMAS, name):
            return
        self.build_component(tp)

    def build_component(
        self, tp: type, if_exists: ConflictPolicy = ConflictPolicy.OVERWRITE
    ) -> Schema:
        """Build and register the shared schema component for *tp*."""
        name = self.claim_name(tp)
        if tp in self._built:
            existing = self.registry.shared.try_get(ComponentKind.SCHEMAS, name, Schema)
            return existing if existing is not None else Schema(type="object")
        schema = self.build_schema_for_type(tp)
        self.registry.shared.add(ComponentKind.SCHEMAS, name, schema, if_exists)
        return schema

    def build_schema_for_type(self, tp: type) -> Schema:
        """Object schema for *tp*; a type already in progress yields a placeholder."""
        if tp in self._built:
            return Schema(type="object")
        self._built.add(tp)

        class_props = merge_schema_props(
            [
                d.props
                for d in declarations(tp, SCHEMA_ATTR)
                if isinstance(d, SchemaDeclaration)
            ]
        )
        resolve = self.resolve_entry

        if issubclass(tp, Enum):
            return apply_schema_props(class_props, enum_schema(tp), resolve=resolve)

        primitive = primitive_schema(tp)
        if primitive is not None:
            return apply_schema_props(class_props, primitive, resolve=resolve)

        base = next(
            (b for b in tp.__mro__[1:] if b is not object and is_schema_class(b)), None
        )
        if base is not None:
            self.ensure_component(base)
            base_ref = Reference(ComponentKind.SCHEMAS, schema_name(base))
            if class_props is not None and class_props.array:
                array = Schema(type="array", items=base_ref)
                props = dataclasses.replace(class_props, array=False)
                return apply_schema_props(props, array, resolve=resolve)
            own = self._object_schema(tp, own_only=True)
            schema = Schema(all_of=[base_ref, own])
            if class_props is not None:
                for name in class_props.required_properties:
                    own.add_required(name)
                props = dataclasses.replace(class_props, required_properties=())
                apply_schema_props(props, schema, resolve=resolve)
            return schema

        schema = self._object_schema(tp, own_only=False)
        return apply_schema_props(class_props, schema, resolve=resolve)

    def _object_schema(self, tp: type, *, own_only: bool) -> Schema:
        schema = Schema(type="object")
        instance = _default_instance(tp)

        for member in annotated_members(tp, own_only=own_only):
            if member.first(AdditionalProperties) is not None:
                schema.additional_properties = self.infer_schema(member.type)
                continue

            prop_schema = self.member_schema(member)
            if any(p.required for p in member.props(SchemaProps)):
                schema.add_required(member.name)

            if isinstance(prop_schema, Schema) and prop_schema.default is None:
                value = getattr(instance, member.name, member.default)
                if value is not dataclasses.MISSING and not is_intrinsic_default(value):
                    prop_schema.default = to_json_value(value)

            schema.properties[member.name] = prop_schema
        return schema
