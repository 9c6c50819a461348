"""Header components from ``@openapi_headers`` classes."""

from __future__ import annotations

from fastapi_openapi_assembler.component import ComponentBuilder, ComponentKind
from fastapi_openapi_assembler.components.declarations import (
    HEADERS_ATTR,
    ExampleRef,
    HeaderProps,
    Member,
    annotated_members,
    single_declaration,
)
from fastapi_openapi_assembler.components.parameters import add_example_refs
from fastapi_openapi_assembler.components.schemas import to_json_value
from fastapi_openapi_assembler.models import Header, Reference


class HeaderComponentBuilder(ComponentBuilder):
    kind = ComponentKind.HEADERS
    declaration_attr = HEADERS_ATTR

    def build(self, cls: type) -> list[str]:
        declaration = single_declaration(cls, HEADERS_ATTR)
        names: list[str] = []
        for member in annotated_members(cls):
            props = member.first(HeaderProps)
            if props is None:
                continue
            key = self.member_key(
                cls, props.key or member.name, declaration.join_class_name
            )
            header = self.build_header(member, props)
            self.register(key, header, inline=declaration.inline)
            names.append(key)
        return names

    def build_header(self, member: Member, props: HeaderProps) -> Header:
        header = Header(
            description=props.description,
            required=props.required,
            deprecated=props.deprecated,
            allow_empty_value=props.allow_empty_value,
            style=props.style,
            explode=True if props.explode else None,
            allow_reserved=props.allow_reserved,
            example=to_json_value(props.example),
        )
        if props.schema_ref and props.schema_ref.strip():
            header.schema = Reference(ComponentKind.SCHEMAS, props.schema_ref)
        else:
            header.schema = self.inferencer.member_schema(member)
        add_example_refs(header, member.props(ExampleRef), self.resolver)
        return header
