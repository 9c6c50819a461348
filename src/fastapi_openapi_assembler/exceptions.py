"""OpenApiError hierarchy for fatal document-assembly failures."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi_openapi_assembler.component import ComponentKind


class OpenApiError(Exception):
    """Base for all document-assembly exceptions."""


class OpenApiConfigurationError(OpenApiError):
    """Invalid combination or cardinality of declarations supplied by the caller."""


class ComponentConflictError(OpenApiError):
    """A component name already exists in the target pool under the ERROR policy."""

    def __init__(self, kind: ComponentKind, name: str, *, pool: str) -> None:
        super().__init__(
            f"A {pool} {kind.label} component named '{name}' already exists."
        )
        self.kind = kind
        self.name = name
        self.pool = pool


class ComponentTypeMismatchError(OpenApiError, TypeError):
    """Typed lookup asked for a class that the component kind never stores."""

    def __init__(self, kind: ComponentKind, expected: type, actual: type) -> None:
        super().__init__(
            f"Component kind '{kind.section}' stores {actual.__name__}, "
            f"not {expected.__name__}."
        )
        self.kind = kind
        self.expected = expected
        self.actual = actual


class ReferenceNotFoundError(OpenApiError):
    """A named component reference could not be resolved in any searched pool."""

    def __init__(
        self, reference_id: str, kind: ComponentKind, *, pools: Sequence[str]
    ) -> None:
        searched = ", ".join(pools)
        super().__init__(
            f"{kind.label.capitalize()} reference '{reference_id}' not found "
            f"(searched: {searched})."
        )
        self.reference_id = reference_id
        self.kind = kind
        self.pools = tuple(pools)


class UnsupportedSpecVersionError(OpenApiError, ValueError):
    """The requested OpenAPI version string is not one of 2.0, 3.0, 3.1, 3.2."""

    def __init__(self, version: str) -> None:
        super().__init__(f"Unsupported OpenAPI spec version: {version}")
        self.version = version


class PathTemplateError(OpenApiError, ValueError):
    """An RFC6570 path template uses syntax the router cannot express."""

    def __init__(self, template: str, detail: str) -> None:
        super().__init__(f"{detail} (template: '{template}')")
        self.template = template
        self.detail = detail
