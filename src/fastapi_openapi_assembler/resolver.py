"""Reference/clone resolution across the inline and shared pools."""

from __future__ import annotations

import copy
import logging
from typing import Any, TypeVar

from fastapi_openapi_assembler.component import ComponentKind, PoolScope
from fastapi_openapi_assembler.exceptions import ReferenceNotFoundError
from fastapi_openapi_assembler.models import Reference
from fastapi_openapi_assembler.registry import ComponentRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def clone_component(value: T) -> T:
    """Fully independent structural copy of any model object."""
    return copy.deepcopy(value)


class ReferenceResolver:
    """Decides between a nominal Reference and an embedded deep clone."""

    def __init__(self, registry: ComponentRegistry) -> None:
        self._registry = registry

    def resolve(
        self, kind: ComponentKind, reference_id: str, *, inline: bool = False
    ) -> Any:
        """Return a clone from the inline pool, else a clone or Reference from shared.

        Raises ReferenceNotFoundError when neither pool holds *reference_id*.
        """
        found = self._registry.inline.try_get(kind, reference_id, kind.model)
        if found is not None:
            return clone_component(found)

        found = self._registry.shared.try_get(kind, reference_id, kind.model)
        if found is not None:
            if inline:
                return clone_component(found)
            return Reference(kind, reference_id)

        raise ReferenceNotFoundError(
            reference_id,
            kind,
            pools=(PoolScope.INLINE.value, PoolScope.SHARED.value),
        )

    def reference_or_clone(
        self,
        kind: ComponentKind,
        reference_id: str,
        *,
        inline: bool = False,
        require_existing: bool = False,
    ) -> Any:
        """Like resolve(), but a miss yields a nominal Reference unless required."""
        try:
            return self.resolve(kind, reference_id, inline=inline)
        except ReferenceNotFoundError:
            if require_existing or inline:
                raise
            logger.warning(
                "%s '%s' is not registered; emitting an unresolved reference",
                kind.label.capitalize(),
                reference_id,
            )
            return Reference(kind, reference_id)
