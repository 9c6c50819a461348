"""Example components from ``@openapi_examples`` classes."""

from __future__ import annotations

import logging

from fastapi_openapi_assembler.component import (
    ComponentBuilder,
    ComponentKind,
    ConflictPolicy,
)
from fastapi_openapi_assembler.components.declarations import (
    EXAMPLES_ATTR,
    ExampleProps,
    annotated_members,
    single_declaration,
)
from fastapi_openapi_assembler.components.schemas import to_json_value
from fastapi_openapi_assembler.models import Example

logger = logging.getLogger(__name__)


class ExampleComponentBuilder(ComponentBuilder):
    """ExampleProps members become examples; otherwise the class instance is one."""

    kind = ComponentKind.EXAMPLES
    declaration_attr = EXAMPLES_ATTR

    def build(self, cls: type) -> list[str]:
        declaration = single_declaration(cls, EXAMPLES_ATTR)
        names: list[str] = []

        for member in annotated_members(cls):
            props = member.first(ExampleProps)
            if props is None:
                continue
            value = props.value
            if value is None and member.has_default:
                value = member.default
            example = Example(
                summary=props.summary,
                description=props.description,
                value=to_json_value(value),
                external_value=props.external_value,
            )
            key = props.key or member.name
            self.register(key, example, inline=declaration.inline)
            names.append(key)

        if names:
            return names

        value = declaration.value
        if value is None and declaration.external_value is None:
            try:
                value = cls()
            except Exception:
                logger.warning(
                    "Example class %s could not be instantiated; value left empty",
                    cls.__qualname__,
                )
        example = Example(
            summary=declaration.summary,
            description=declaration.description,
            value=to_json_value(value),
            external_value=declaration.external_value,
        )
        key = declaration.key or cls.__name__
        self.register(
            key, example, inline=declaration.inline, if_exists=ConflictPolicy.IGNORE
        )
        return [key]
