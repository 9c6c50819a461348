"""Path, webhook and callback assembly from flattened route entries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from fastapi_openapi_assembler.component import ComponentKind
from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.models import (
    Callback,
    Document,
    Parameter,
    PathItem,
    Reference,
    Server,
)
from fastapi_openapi_assembler.operations import (
    OperationBuilder,
    OperationMetadata,
    PathMetadata,
    blank_to_none,
)
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.resolver import clone_component

logger = logging.getLogger(__name__)


@dataclass
class RouteOptions:
    """Host route: one pattern with per-method OpenAPI metadata."""

    pattern: str
    openapi: dict[str, OperationMetadata] = field(default_factory=dict)
    path_metadata: PathMetadata | None = None


@dataclass(frozen=True)
class RouteEntry:
    pattern: str
    method: str
    metadata: OperationMetadata
    path_metadata: PathMetadata | None = None


RouteMap = Mapping[tuple[str, str], RouteOptions]
MetadataMap = Mapping[tuple[str, str], OperationMetadata]


def flatten_routes(routes: RouteMap) -> list[RouteEntry]:
    """One entry per (pattern, method, metadata); blank patterns are skipped."""
    entries: list[RouteEntry] = []
    for (pattern, _method), options in routes.items():
        pattern = options.pattern or pattern
        if not pattern or not pattern.strip():
            continue
        for method, metadata in options.openapi.items():
            if metadata is None:
                continue
            entries.append(RouteEntry(pattern, method, metadata, options.path_metadata))
    return entries


def _group(entries: Iterable[RouteEntry]) -> dict[str, list[RouteEntry]]:
    groups: dict[str, list[RouteEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.pattern, []).append(entry)
    return groups


class PathAssembler:
    """Builds the paths, webhooks and callback trees of one document."""

    def __init__(
        self,
        document: Document,
        registry: ComponentRegistry,
        builder: OperationBuilder,
        *,
        document_id: str = "default",
    ) -> None:
        self.document = document
        self.registry = registry
        self.builder = builder
        self.document_id = document_id

    def build_paths(self, routes: RouteMap) -> None:
        for pattern, group in _group(flatten_routes(routes)).items():
            path_item = self.document.paths.get(pattern) or PathItem()
            self._add_operations(path_item, group, pattern)

            path_metadata = next(
                (e.path_metadata for e in group if e.path_metadata is not None), None
            )
            if path_metadata is not None:
                self._apply_path_metadata(path_item, path_metadata, pattern)

            if path_item.operations or pattern in self.document.paths:
                self.document.paths[pattern] = path_item

    def build_webhooks(self, metadata: MetadataMap) -> None:
        entries = [
            RouteEntry(pattern, method, meta)
            for (pattern, method), meta in metadata.items()
            if pattern and pattern.strip() and meta is not None
        ]
        for pattern, group in _group(entries).items():
            path_item = self.document.webhooks.get(pattern) or PathItem()
            self._add_operations(path_item, group, pattern)
            if path_item.operations:
                self.document.webhooks[pattern] = path_item

    def build_callbacks(self, metadata: MetadataMap) -> None:
        """Register callbacks keyed by name; duplicate (expression, method) is a no-op.

        Raises OpenApiConfigurationError when an entry lacks its runtime expression.
        """
        for (pattern, method), meta in metadata.items():
            if meta is None or not meta.targets(self.document_id):
                continue
            expression = blank_to_none(meta.expression)
            if expression is None:
                raise OpenApiConfigurationError(
                    f"Callback metadata for pattern '{pattern}' and method "
                    f"'{method}' is missing the required expression."
                )

            pool = self.registry.inline if meta.inline else self.registry.shared
            callback = pool.try_get(ComponentKind.CALLBACKS, pattern, Callback)
            if callback is None:
                callback = Callback()
                pool.add(ComponentKind.CALLBACKS, pattern, callback)

            path_item = callback.path_items.setdefault(expression, PathItem())
            if method.lower() in path_item.operations:
                logger.debug(
                    "Callback '%s' already has %s %s",
                    pattern,
                    method.upper(),
                    expression,
                )
                continue
            path_item.add_operation(method, self.builder.build(meta))

    def _add_operations(
        self, path_item: PathItem, group: list[RouteEntry], pattern: str
    ) -> None:
        for entry in group:
            if not entry.metadata.targets(self.document_id):
                continue
            operation = self.builder.build(entry.metadata)
            try:
                path_item.add_operation(entry.method, operation)
            except ValueError as exc:
                logger.warning("Skipping operation on '%s': %s", pattern, exc)

    def _apply_path_metadata(
        self, path_item: PathItem, metadata: PathMetadata, pattern: str
    ) -> None:
        try:
            summary = blank_to_none(metadata.summary)
            if summary is not None:
                path_item.summary = summary
            description = blank_to_none(metadata.description)
            if description is not None:
                path_item.description = description
            for server in metadata.servers:
                if not isinstance(server, Server):
                    raise TypeError(f"expected Server, got {type(server).__name__}")
                path_item.servers.append(clone_component(server))
            for parameter in metadata.parameters:
                if not isinstance(parameter, (Parameter, Reference)):
                    raise TypeError(
                        f"expected Parameter, got {type(parameter).__name__}"
                    )
                path_item.parameters.append(parameter)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.debug("Path-level metadata for '%s' not applied: %s", pattern, exc)
