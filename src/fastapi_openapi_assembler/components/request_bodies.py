"""Request body components from ``@openapi_request_bodies`` classes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fastapi_openapi_assembler.component import (
    ComponentBuilder,
    ComponentKind,
    ConflictPolicy,
)
from fastapi_openapi_assembler.components.declarations import (
    REQUEST_BODIES_ATTR,
    ExampleRef,
    RequestBodyProps,
    annotated_members,
    single_declaration,
)
from fastapi_openapi_assembler.components.schemas import to_json_value
from fastapi_openapi_assembler.models import (
    MediaType,
    Reference,
    RequestBody,
    SchemaLike,
)
from fastapi_openapi_assembler.resolver import ReferenceResolver, clone_component


def build_request_body(
    schema: SchemaLike | None,
    *,
    content_types: Sequence[str],
    description: str | None = None,
    required: bool = False,
    example: Any = None,
) -> RequestBody:
    body = RequestBody(description=description, required=required)
    for content_type in content_types:
        media = MediaType(schema=clone_component(schema))
        if example is not None:
            media.example = to_json_value(example)
        body.content[content_type] = media
    return body


def add_body_example_refs(
    body: RequestBody, refs: Sequence[ExampleRef], resolver: ReferenceResolver
) -> None:
    for ref in refs:
        value = resolver.reference_or_clone(
            ComponentKind.EXAMPLES, ref.reference_id, inline=ref.inline
        )
        targets = [ref.content_type] if ref.content_type else list(body.content)
        for content_type in targets:
            media = body.content.setdefault(content_type, MediaType())
            media.examples[ref.key] = value


class RequestBodyComponentBuilder(ComponentBuilder):
    """RequestBodyProps members become bodies; otherwise the class is one body."""

    kind = ComponentKind.REQUEST_BODIES
    declaration_attr = REQUEST_BODIES_ATTR

    def build(self, cls: type) -> list[str]:
        declaration = single_declaration(cls, REQUEST_BODIES_ATTR)
        names: list[str] = []

        for member in annotated_members(cls):
            props = member.first(RequestBodyProps)
            if props is None:
                continue
            body = build_request_body(
                self.inferencer.member_schema(member),
                content_types=props.content_types,
                description=props.description,
                required=props.required,
                example=props.example,
            )
            add_body_example_refs(body, member.props(ExampleRef), self.resolver)
            key = props.key or member.name
            self.register(key, body, inline=declaration.inline)
            names.append(key)

        if names:
            return names

        schema = self.inferencer.infer_schema(cls)
        if declaration.inline and isinstance(schema, Reference):
            schema = self.resolver.resolve(
                ComponentKind.SCHEMAS, schema.id, inline=True
            )
        body = build_request_body(
            schema,
            content_types=declaration.content_types,
            description=declaration.description,
            required=declaration.required,
            example=declaration.example,
        )
        key = declaration.key or cls.__name__
        self.register(
            key, body, inline=declaration.inline, if_exists=ConflictPolicy.IGNORE
        )
        return [key]
