"""OpenApiDescriptor: the per-document accumulator and generation entry point."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from fastapi_openapi_assembler.component import (
    ComponentBuilder,
    ComponentKind,
    ConflictPolicy,
    PoolScope,
)
from fastapi_openapi_assembler.components.declarations import ComponentSet
from fastapi_openapi_assembler.components.examples import ExampleComponentBuilder
from fastapi_openapi_assembler.components.headers import HeaderComponentBuilder
from fastapi_openapi_assembler.components.links import LinkComponentBuilder
from fastapi_openapi_assembler.components.parameters import ParameterComponentBuilder
from fastapi_openapi_assembler.components.request_bodies import (
    RequestBodyComponentBuilder,
)
from fastapi_openapi_assembler.components.responses import ResponseComponentBuilder
from fastapi_openapi_assembler.components.schemas import SchemaInferencer, schema_name
from fastapi_openapi_assembler.components.security import (
    AuthSchemeOptions,
    build_security_requirements,
    security_scheme_for,
)
from fastapi_openapi_assembler.models import (
    Contact,
    Document,
    ExternalDocs,
    Info,
    License,
    Server,
    Tag,
)
from fastapi_openapi_assembler.operations import (
    OperationBuilder,
    blank_to_none,
    find_tag,
    normalize_extensions,
)
from fastapi_openapi_assembler.paths import MetadataMap, PathAssembler, RouteMap
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.resolver import ReferenceResolver
from fastapi_openapi_assembler.serializer import (
    RoundTripResult,
    round_trip,
    to_dict,
    to_json,
    to_yaml,
)
from fastapi_openapi_assembler.settings import OpenApiSettings
from fastapi_openapi_assembler.versions import SpecVersion

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BUILDER_TYPES: tuple[type[ComponentBuilder], ...] = (
    ExampleComponentBuilder,
    HeaderComponentBuilder,
    LinkComponentBuilder,
    ParameterComponentBuilder,
    ResponseComponentBuilder,
    RequestBodyComponentBuilder,
)


class OpenApiDescriptor:
    """Owns one Document and everything needed to fill it.

    Usage::

        descriptor = OpenApiDescriptor(settings=OpenApiSettings(title="Shop"))
        descriptor.generate(discover_components(models), routes=routes)
        print(descriptor.to_json("3.0"))
    """

    def __init__(
        self, document_id: str = "default", *, settings: OpenApiSettings | None = None
    ) -> None:
        self.document_id = document_id
        self.settings = settings or OpenApiSettings()
        self.document = Document(
            info=Info(
                title=self.settings.title,
                version=self.settings.version,
                description=self.settings.description,
            )
        )
        self.registry = ComponentRegistry(self.document.components)
        self.inferencer = SchemaInferencer(self.registry)
        self.resolver = ReferenceResolver(self.registry)
        self.operations = OperationBuilder(self.document, self.registry, self.settings)
        self.paths = PathAssembler(
            self.document, self.registry, self.operations, document_id=document_id
        )
        self.builders: list[ComponentBuilder] = [
            builder_type(self.registry, self.inferencer, self.resolver)
            for builder_type in _BUILDER_TYPES
        ]
        self.has_been_generated = False

    # --- info / servers -----------------------------------------------------

    def set_info(
        self,
        title: str | None = None,
        version: str | None = None,
        *,
        summary: str | None = None,
        description: str | None = None,
        terms_of_service: str | None = None,
        contact: Contact | None = None,
        license: License | None = None,
        extensions: Mapping[str, Any] | None = None,
    ) -> Info:
        """Overwrite the given info fields; blank strings leave a field unchanged."""
        info = self.document.info
        for attr, value in (
            ("title", title),
            ("version", version),
            ("summary", summary),
            ("description", description),
            ("terms_of_service", terms_of_service),
        ):
            value = blank_to_none(value)
            if value is not None:
                setattr(info, attr, value)
        if contact is not None:
            info.contact = contact
        if license is not None:
            info.license = license
        info.extensions.update(normalize_extensions(extensions))
        return info

    def add_server(self, url: str, description: str | None = None) -> Server:
        for server in self.document.servers:
            if server.url == url:
                return server
        server = Server(url=url, description=blank_to_none(description))
        self.document.servers.append(server)
        return server

    # --- tags -----------------------------------------------------------------

    def add_tag(
        self,
        name: str,
        description: str | None = None,
        *,
        summary: str | None = None,
        parent: str | None = None,
        kind: str | None = None,
        external_docs: ExternalDocs | None = None,
        extensions: Mapping[str, Any] | None = None,
    ) -> Tag:
        """Create or update the tag named *name* (ordinal match)."""
        if not name or not name.strip():
            raise ValueError("Tag name must not be blank")
        tag = find_tag(self.document, name)
        if tag is None:
            tag = Tag(name=name)
            self.document.tags.append(tag)
        for attr, value in (
            ("description", description),
            ("summary", summary),
            ("parent", parent),
            ("kind", kind),
        ):
            value = blank_to_none(value)
            if value is not None:
                setattr(tag, attr, value)
        if external_docs is not None:
            tag.external_docs = external_docs
        tag.extensions.update(normalize_extensions(extensions))
        return tag

    def try_get_tag(self, name: str) -> Tag | None:
        return find_tag(self.document, name)

    def remove_tag(self, name: str) -> bool:
        tag = find_tag(self.document, name)
        if tag is None:
            return False
        self.document.tags.remove(tag)
        return True

    # --- security -------------------------------------------------------------

    def apply_security_scheme(self, name: str, options: AuthSchemeOptions) -> None:
        """Register *options* as security scheme *name*.

        A ``global_scheme`` descriptor also becomes a document-level requirement.
        """
        scheme = security_scheme_for(options)
        self.registry.shared.add(ComponentKind.SECURITY_SCHEMES, name, scheme)
        if options.global_scheme:
            existing = self.document.security or []
            self.document.security = build_security_requirements(
                [*existing, {name: []}]
            )

    # --- components -----------------------------------------------------------

    def add_component(
        self,
        kind: ComponentKind,
        name: str,
        value: Any,
        if_exists: ConflictPolicy | None = None,
    ) -> bool:
        policy = if_exists or self.settings.default_conflict_policy
        return self.registry.add(PoolScope.SHARED, kind, name, value, policy)

    def add_inline_component(
        self,
        kind: ComponentKind,
        name: str,
        value: Any,
        if_exists: ConflictPolicy | None = None,
    ) -> bool:
        policy = if_exists or self.settings.default_conflict_policy
        return self.registry.add(PoolScope.INLINE, kind, name, value, policy)

    def try_get_component(
        self, kind: ComponentKind, name: str, expected: type[T]
    ) -> T | None:
        return self.registry.try_get(PoolScope.SHARED, kind, name, expected)

    def try_get_inline(
        self, kind: ComponentKind, name: str, expected: type[T]
    ) -> T | None:
        return self.registry.try_get(PoolScope.INLINE, kind, name, expected)

    # --- generation -----------------------------------------------------------

    def build_components(self, components: ComponentSet) -> list[str]:
        """Register every annotated class; return the names registered."""
        names: list[str] = []
        policy = self.settings.default_conflict_policy
        for cls in components.schemas:
            if cls in self.inferencer.built:
                continue
            self.inferencer.build_component(cls, policy)
            names.append(schema_name(cls))

        buckets = {
            ComponentKind.EXAMPLES: components.examples,
            ComponentKind.HEADERS: components.headers,
            ComponentKind.LINKS: components.links,
            ComponentKind.PARAMETERS: components.parameters,
            ComponentKind.RESPONSES: components.responses,
            ComponentKind.REQUEST_BODIES: components.request_bodies,
        }
        for builder in self.builders:
            for cls in buckets[builder.kind]:
                if builder.applies_to(cls):
                    names.extend(builder.build(cls))
        return names

    def generate(
        self,
        components: ComponentSet | None = None,
        *,
        routes: RouteMap | None = None,
        webhooks: MetadataMap | None = None,
        callbacks: MetadataMap | None = None,
        security_schemes: Mapping[str, AuthSchemeOptions] | None = None,
    ) -> Document:
        """Run every assembly stage in order and return the document.

        Components come first so route metadata can reference them, then
        callbacks, paths and webhooks.
        """
        self.inferencer.reset()
        for name, options in (security_schemes or {}).items():
            self.apply_security_scheme(name, options)
        if components:
            registered = self.build_components(components)
            logger.debug(
                "Document '%s': %d components registered",
                self.document_id,
                len(registered),
            )
        if callbacks:
            self.paths.build_callbacks(callbacks)
        if routes:
            self.paths.build_paths(routes)
        if webhooks:
            self.paths.build_webhooks(webhooks)
        self.has_been_generated = True
        return self.document

    # --- output ---------------------------------------------------------------

    def _version(self, version: str | SpecVersion | None) -> SpecVersion:
        return SpecVersion.parse(version or self.settings.default_spec_version)

    def to_dict(self, version: str | SpecVersion | None = None) -> dict[str, Any]:
        return to_dict(self.document, self._version(version))

    def to_json(self, version: str | SpecVersion | None = None) -> str:
        return to_json(self.document, self._version(version))

    def to_yaml(self, version: str | SpecVersion | None = None) -> str:
        return to_yaml(self.document, self._version(version))

    def round_trip(
        self, version: str | SpecVersion | None = None, fmt: str = "json"
    ) -> RoundTripResult:
        return round_trip(self.document, self._version(version), fmt)
