"""Two-pool component registry with per-kind typed lookup."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from fastapi_openapi_assembler.component import ComponentKind, ConflictPolicy, PoolScope
from fastapi_openapi_assembler.exceptions import (
    ComponentConflictError,
    ComponentTypeMismatchError,
)
from fastapi_openapi_assembler.models import Components, Reference

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ComponentPool:
    """Eleven named maps, one per ComponentKind."""

    def __init__(self, name: str, components: Components | None = None) -> None:
        self.name = name
        self.components = components if components is not None else Components()

    def store(self, kind: ComponentKind) -> dict[str, Any]:
        return self.components.store(kind)

    def add(
        self,
        kind: ComponentKind,
        name: str,
        value: Any,
        if_exists: ConflictPolicy = ConflictPolicy.OVERWRITE,
    ) -> bool:
        """Store *value* under *name*; return whether the pool changed."""
        _check_value(kind, value)
        store = self.store(kind)
        if name in store:
            if if_exists is ConflictPolicy.ERROR:
                raise ComponentConflictError(kind, name, pool=self.name)
            if if_exists is ConflictPolicy.IGNORE:
                logger.debug(
                    "Keeping existing %s %s '%s'", self.name, kind.label, name
                )
                return False
        store[name] = value
        return True

    def try_get(self, kind: ComponentKind, name: str, expected: type[T]) -> T | None:
        """Typed lookup; an alias Reference is followed within this pool."""
        model = kind.model
        if expected is not model and expected is not Reference:
            raise ComponentTypeMismatchError(kind, expected, model)
        store = self.store(kind)
        value = store.get(name)
        seen: set[str] = {name}
        while (
            expected is not Reference
            and isinstance(value, Reference)
            and value.id not in seen
        ):
            seen.add(value.id)
            value = store.get(value.id)
        if value is None or not isinstance(value, expected):
            return None
        return value

    def contains(self, kind: ComponentKind, name: str) -> bool:
        return name in self.store(kind)

    def remove(self, kind: ComponentKind, name: str) -> bool:
        return self.store(kind).pop(name, None) is not None


def _check_value(kind: ComponentKind, value: Any) -> None:
    if isinstance(value, Reference):
        if value.kind is not kind:
            raise ComponentTypeMismatchError(kind, kind.model, type(value))
        return
    if not isinstance(value, kind.model):
        raise ComponentTypeMismatchError(kind, type(value), kind.model)


class ComponentRegistry:
    """Shared (document components) and inline (clone-only) pools."""

    def __init__(self, shared: Components | None = None) -> None:
        self.shared = ComponentPool(PoolScope.SHARED.value, shared)
        self.inline = ComponentPool(PoolScope.INLINE.value)

    def pool(self, scope: PoolScope) -> ComponentPool:
        return self.shared if scope is PoolScope.SHARED else self.inline

    def add(
        self,
        scope: PoolScope,
        kind: ComponentKind,
        name: str,
        value: Any,
        if_exists: ConflictPolicy = ConflictPolicy.OVERWRITE,
    ) -> bool:
        return self.pool(scope).add(kind, name, value, if_exists)

    def try_get(
        self, scope: PoolScope, kind: ComponentKind, name: str, expected: type[T]
    ) -> T | None:
        return self.pool(scope).try_get(kind, name, expected)

    def contains(
        self, kind: ComponentKind, name: str, scope: PoolScope | None = None
    ) -> bool:
        if scope is not None:
            return self.pool(scope).contains(kind, name)
        return self.shared.contains(kind, name) or self.inline.contains(kind, name)
