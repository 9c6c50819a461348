"""Link components and the link factory."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fastapi_openapi_assembler.component import ComponentBuilder, ComponentKind
from fastapi_openapi_assembler.components.declarations import (
    LINKS_ATTR,
    LinkProps,
    annotated_members,
    single_declaration,
)
from fastapi_openapi_assembler.components.schemas import to_json_value
from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.models import Link, Server


def _present(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def build_link(
    *,
    operation_id: str | None = None,
    operation_ref: str | None = None,
    description: str | None = None,
    parameters: Mapping[str, Any] | None = None,
    request_body: Any = None,
    server: Server | str | None = None,
) -> Link:
    """Create a Link; ``operation_id`` and ``operation_ref`` are exclusive.

    Values starting with ``$`` are runtime expressions and kept verbatim.
    """
    if _present(operation_id) and _present(operation_ref):
        raise OpenApiConfigurationError(
            f"Link cannot declare both operation_id '{operation_id}' "
            f"and operation_ref '{operation_ref}'."
        )
    link = Link()
    if _present(operation_id):
        link.operation_id = operation_id
    elif _present(operation_ref):
        link.operation_ref = operation_ref
    if _present(description):
        link.description = description
    if isinstance(server, str):
        server = Server(url=server)
    link.server = server
    for key, value in (parameters or {}).items():
        if key is None or not str(key).strip():
            continue
        link.parameters[str(key)] = to_json_value(value)
    if request_body is not None:
        link.request_body = to_json_value(request_body)
    return link


class LinkComponentBuilder(ComponentBuilder):
    kind = ComponentKind.LINKS
    declaration_attr = LINKS_ATTR

    def build(self, cls: type) -> list[str]:
        declaration = single_declaration(cls, LINKS_ATTR)
        names: list[str] = []
        for member in annotated_members(cls):
            props = member.first(LinkProps)
            if props is None:
                continue
            link = build_link(
                operation_id=props.operation_id,
                operation_ref=props.operation_ref,
                description=props.description,
                parameters=props.parameters,
                request_body=props.request_body,
                server=props.server_url,
            )
            key = self.member_key(
                cls, props.key or member.name, declaration.join_class_name
            )
            self.register(key, link, inline=declaration.inline)
            names.append(key)
        return names
