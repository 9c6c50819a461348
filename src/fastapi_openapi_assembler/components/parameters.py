"""Parameter components from ``@openapi_parameters`` classes."""

from __future__ import annotations

from typing import Any

from fastapi_openapi_assembler.component import ComponentBuilder, ComponentKind
from fastapi_openapi_assembler.components.declarations import (
    PARAMETERS_ATTR,
    ExampleRef,
    Member,
    ParameterProps,
    annotated_members,
    single_declaration,
)
from fastapi_openapi_assembler.components.schemas import (
    is_intrinsic_default,
    to_json_value,
)
from fastapi_openapi_assembler.models import MediaType, Parameter, Schema
from fastapi_openapi_assembler.resolver import ReferenceResolver

_EXPLODING_STYLES = ("form", "cookie")


def add_example_refs(
    target: Any, refs: list[ExampleRef], resolver: ReferenceResolver
) -> None:
    """Attach example refs to a parameter or header, or to each of its media types."""
    for ref in refs:
        example = resolver.reference_or_clone(
            ComponentKind.EXAMPLES, ref.reference_id, inline=ref.inline
        )
        if target.content:
            for media in target.content.values():
                media.examples[ref.key] = example
        else:
            target.examples[ref.key] = example


class ParameterComponentBuilder(ComponentBuilder):
    """One parameter component per ParameterProps member."""

    kind = ComponentKind.PARAMETERS
    declaration_attr = PARAMETERS_ATTR

    def build(self, cls: type) -> list[str]:
        declaration = single_declaration(cls, PARAMETERS_ATTR)
        names: list[str] = []
        for member in annotated_members(cls):
            props = member.first(ParameterProps)
            if props is None:
                continue
            key = self.member_key(
                cls, props.key or member.name, declaration.join_class_name
            )
            parameter = self.build_parameter(member, props)
            self.register(key, parameter, inline=declaration.inline)
            names.append(key)
        return names

    def build_parameter(self, member: Member, props: ParameterProps) -> Parameter:
        parameter = Parameter(
            name=props.name or member.name,
            location=props.location,
            description=props.description,
            required=props.required,
            deprecated=props.deprecated,
            allow_empty_value=props.allow_empty_value,
            style=props.style,
            allow_reserved=props.allow_reserved,
            example=to_json_value(props.example),
        )
        if props.explode or props.style in _EXPLODING_STYLES:
            parameter.explode = True

        schema = self.inferencer.member_schema(member)
        if (
            isinstance(schema, Schema)
            and schema.default is None
            and member.has_default
            and not is_intrinsic_default(member.default)
        ):
            schema.default = to_json_value(member.default)

        if props.content_type and props.content_type.strip():
            parameter.content[props.content_type] = MediaType(schema=schema)
        else:
            parameter.schema = schema

        add_example_refs(parameter, member.props(ExampleRef), self.resolver)
        return parameter
