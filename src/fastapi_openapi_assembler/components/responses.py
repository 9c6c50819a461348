"""Response components from ``@openapi_responses`` classes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fastapi_openapi_assembler.component import ComponentBuilder, ComponentKind
from fastapi_openapi_assembler.components.declarations import (
    RESPONSES_ATTR,
    ExampleRef,
    HeaderRef,
    LinkRef,
    ResponseProps,
    annotated_members,
    single_declaration,
)
from fastapi_openapi_assembler.components.schemas import SchemaInferencer
from fastapi_openapi_assembler.models import Reference, Response, SchemaLike
from fastapi_openapi_assembler.resolver import ReferenceResolver

DEFAULT_CONTENT_TYPES = ("application/json",)


def resolve_response_schema(
    *,
    schema_type: Any,
    schema_ref: str | None,
    inline: bool,
    fallback: SchemaLike | None,
    inferencer: SchemaInferencer,
    resolver: ReferenceResolver,
) -> SchemaLike | None:
    """Pick the response body schema.

    An explicit type wins, then an explicit component name, then the schema
    derived from the declaring member.
    """
    if schema_type is not None:
        schema = inferencer.infer_schema(schema_type)
        if inline and isinstance(schema, Reference):
            return resolver.resolve(ComponentKind.SCHEMAS, schema.id, inline=True)
        return schema
    if schema_ref is not None and schema_ref.strip():
        if inline:
            return resolver.resolve(ComponentKind.SCHEMAS, schema_ref, inline=True)
        return Reference(ComponentKind.SCHEMAS, schema_ref)
    return fallback


def apply_response_content(
    response: Response, schema: SchemaLike | None, content_types: Sequence[str]
) -> None:
    if schema is None:
        return
    for content_type in content_types:
        response.media_type(content_type).schema = schema


def add_response_refs(
    response: Response,
    *,
    headers: Sequence[HeaderRef] = (),
    links: Sequence[LinkRef] = (),
    examples: Sequence[ExampleRef] = (),
    resolver: ReferenceResolver,
) -> None:
    """Attach header, link and example refs; missing shared ids stay nominal."""
    for header in headers:
        response.headers[header.key] = resolver.reference_or_clone(
            ComponentKind.HEADERS, header.reference_id, inline=header.inline
        )
    for link in links:
        response.links[link.key] = resolver.reference_or_clone(
            ComponentKind.LINKS, link.reference_id, inline=link.inline
        )
    for example in examples:
        if example.content_type is not None:
            targets: list[str] = [example.content_type]
        else:
            targets = list(response.content) or list(DEFAULT_CONTENT_TYPES)
        value = resolver.reference_or_clone(
            ComponentKind.EXAMPLES, example.reference_id, inline=example.inline
        )
        for content_type in targets:
            response.media_type(content_type).examples[example.key] = value


class ResponseComponentBuilder(ComponentBuilder):
    """One response component per member carrying ResponseProps or refs."""

    kind = ComponentKind.RESPONSES
    declaration_attr = RESPONSES_ATTR

    def build(self, cls: type) -> list[str]:
        declaration = single_declaration(cls, RESPONSES_ATTR)
        names: list[str] = []
        for member in annotated_members(cls, own_only=True):
            declared = member.props(ResponseProps)
            headers = member.props(HeaderRef)
            links = member.props(LinkRef)
            examples = member.props(ExampleRef)
            if not (declared or headers or links or examples):
                continue

            response = Response()
            name = member.name
            fallback = None
            if member.type not in (Any, object):
                fallback = self.inferencer.member_schema(member)

            for props in declared:
                if props.key and props.key.strip():
                    name = props.key
                if props.description and props.description.strip():
                    response.description = props.description
                schema = resolve_response_schema(
                    schema_type=props.schema,
                    schema_ref=props.schema_ref,
                    inline=props.inline,
                    fallback=fallback,
                    inferencer=self.inferencer,
                    resolver=self.resolver,
                )
                content_types = props.content_types or declaration.content_types
                apply_response_content(response, schema, content_types)

            add_response_refs(
                response,
                headers=headers,
                links=links,
                examples=examples,
                resolver=self.resolver,
            )

            if not response.description and declaration.description:
                response.description = declaration.description
            key = self.member_key(cls, name, declaration.join_class_name)
            self.register(key, response, inline=declaration.inline)
            names.append(key)
        return names
