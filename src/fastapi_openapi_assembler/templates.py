"""RFC6570 path templates mapped onto Starlette route patterns."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi_openapi_assembler.exceptions import PathTemplateError

_VARIABLE_RE = re.compile(r"\{[+?&]?(?P<name>[^{}:/?]+)(?::[^}]+)?\}")


@dataclass(frozen=True)
class PathTemplateMapping:
    """OpenAPI path key, router pattern, and query names stripped from the path."""

    openapi_pattern: str
    router_pattern: str
    query_parameters: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class _PathExpression:
    name: str
    reserved: bool
    explode: bool

    @property
    def multi_segment(self) -> bool:
        return self.reserved or self.explode

    def openapi(self) -> str:
        prefix = "+" if self.reserved else ""
        suffix = "*" if self.explode else ""
        return "{" + prefix + self.name + suffix + "}"

    def router(self) -> str:
        if self.multi_segment:
            return "{" + self.name + ":path}"
        return "{" + self.name + "}"


def _is_valid_name(name: str) -> bool:
    if not name.strip():
        return False
    return all(c.isalnum() or c in "_.-" for c in name)


def _parse_query(template: str, expression: str) -> list[str]:
    if not expression.strip():
        raise PathTemplateError(
            template, "RFC6570 query expression must include at least one variable."
        )
    names: list[str] = []
    for raw in expression.split(","):
        raw = raw.strip()
        if not raw:
            continue
        name = raw[:-1] if raw.endswith("*") else raw
        if not _is_valid_name(name):
            raise PathTemplateError(
                template,
                f"Invalid RFC6570 variable name '{name}' in query expression.",
            )
        names.append(name)
    return names


def _parse_path(template: str, expression: str) -> _PathExpression:
    if ":" in expression:
        raise PathTemplateError(
            template,
            "Regex/constraint syntax (':') is not supported in RFC6570 templates.",
        )
    if "," in expression:
        raise PathTemplateError(
            template,
            "Multiple variables in a single RFC6570 expression are not supported.",
        )

    reserved = expression.startswith("+")
    if reserved:
        expression = expression[1:]
        if not expression:
            raise PathTemplateError(
                template, "Reserved RFC6570 expression '{+}' is not valid."
            )

    explode = expression.endswith("*")
    if explode:
        expression = expression[:-1]
        if not expression:
            raise PathTemplateError(
                template, "Explode RFC6570 expression '{*}' is not valid."
            )

    if not _is_valid_name(expression):
        raise PathTemplateError(
            template, f"Invalid RFC6570 variable name '{expression}'."
        )
    return _PathExpression(expression, reserved, explode)


def map_path_template(template: str) -> PathTemplateMapping:
    """Translate an RFC6570 path template into a Starlette route pattern.

    ``{name}`` stays a single-segment capture, ``{+name}`` and ``{name*}``
    become ``{name:path}``, and ``{?a,b}`` / ``{&a,b}`` are removed from the
    path with their names returned as query parameters.

    Raises PathTemplateError for fragment, multi-variable, constraint, empty
    or unterminated expressions.
    """
    if template is None or not template.strip():
        raise PathTemplateError(
            template or "", "OpenAPI path template is null or empty."
        )

    openapi: list[str] = []
    router: list[str] = []
    query: list[str] = []

    i = 0
    while i < len(template):
        ch = template[i]
        if ch != "{":
            openapi.append(ch)
            router.append(ch)
            i += 1
            continue

        close = template.find("}", i + 1)
        if close < 0:
            raise PathTemplateError(
                template, "Unterminated RFC6570 expression: missing '}'."
            )
        expression = template[i + 1 : close].strip()
        if not expression:
            raise PathTemplateError(
                template, "Empty RFC6570 expression '{}' is not supported."
            )

        if expression[0] == "#":
            raise PathTemplateError(
                template,
                "RFC6570 fragment expressions ('#') are not supported "
                "in OpenAPI path templates.",
            )
        if expression[0] in "?&":
            query.extend(_parse_query(template, expression[1:]))
        else:
            parsed = _parse_path(template, expression)
            openapi.append(parsed.openapi())
            router.append(parsed.router())
        i = close + 1

    openapi_pattern = "".join(openapi)
    if not openapi_pattern.strip():
        raise PathTemplateError(
            template, "OpenAPI path template resolved to an empty path."
        )
    return PathTemplateMapping(openapi_pattern, "".join(router), tuple(query))


def template_variable_names(template: str) -> list[str]:
    """Variable names of every expression in *template*, first-seen order."""
    names: list[str] = []
    if not template or not template.strip():
        return names
    for match in _VARIABLE_RE.finditer(template):
        for raw in match.group("name").split(","):
            name = raw.strip().rstrip("*")
            if name and name not in names:
                names.append(name)
    return names


def build_template_variables(
    path_params: Mapping[str, Any], template: str
) -> dict[str, Any]:
    """Map matched router values back onto the template's variables.

    Missing values are ``None``.
    """
    return {name: path_params.get(name) for name in template_variable_names(template)}
