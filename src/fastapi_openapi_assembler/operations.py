"""Operation metadata and the operation builder."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi_openapi_assembler._types import SecurityRequirement
from fastapi_openapi_assembler.component import ComponentKind, ConflictPolicy
from fastapi_openapi_assembler.components.security import build_security_requirements
from fastapi_openapi_assembler.models import (
    Callback,
    Document,
    ExternalDocs,
    MediaType,
    Operation,
    Parameter,
    Reference,
    RequestBody,
    Response,
    Schema,
    Server,
    Tag,
)
from fastapi_openapi_assembler.registry import ComponentRegistry
from fastapi_openapi_assembler.resolver import clone_component
from fastapi_openapi_assembler.settings import OpenApiSettings

logger = logging.getLogger(__name__)

ERROR_DESCRIPTIONS = {
    "400": "Bad Request",
    "406": "Not Acceptable",
    "415": "Unsupported Media Type",
    "422": "Unprocessable Entity",
}


@dataclass
class OperationMetadata:
    """Everything needed to build one operation.

    ``responses=None`` means "nothing declared" and yields a default 200;
    ``security=[]`` forces anonymous access for the operation.
    """

    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    external_docs: ExternalDocs | None = None
    deprecated: bool = False
    parameters: list[Parameter | Reference] = field(default_factory=list)
    request_body: RequestBody | Reference | None = None
    responses: dict[str, Response | Reference] | None = None
    servers: list[Server] = field(default_factory=list)
    callbacks: dict[str, Callback | Reference] = field(default_factory=dict)
    security: list[SecurityRequirement] | None = None
    extensions: dict[str, Any] = field(default_factory=dict)
    allowed_request_content_types: list[str] = field(default_factory=list)
    enabled: bool = True
    document_ids: tuple[str, ...] | None = None
    expression: str | None = None
    inline: bool = False

    def targets(self, document_id: str) -> bool:
        if not self.enabled:
            return False
        return self.document_ids is None or document_id in self.document_ids

    def add_response(self, status_code: str) -> Response | Reference:
        """Get or create the concrete response for *status_code*."""
        if self.responses is None:
            self.responses = {}
        response = self.responses.get(status_code)
        if response is None:
            response = self.responses[status_code] = Response()
        return response


@dataclass
class PathMetadata:
    """Path-item level overlay shared by every operation under a pattern."""

    summary: str | None = None
    description: str | None = None
    servers: list[Server] = field(default_factory=list)
    parameters: list[Parameter | Reference] = field(default_factory=list)


def blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def normalize_extensions(extensions: Mapping[str, Any] | None) -> dict[str, Any]:
    """Prefix every key with ``x-`` unless it already has one."""
    result: dict[str, Any] = {}
    for key, value in (extensions or {}).items():
        if not key or not key.strip():
            continue
        name = key if key.lower().startswith("x-") else f"x-{key}"
        result[name] = value
    return result


def find_tag(document: Document, name: str) -> Tag | None:
    for tag in document.tags:
        if tag.name == name:
            return tag
    return None


def ensure_tag(document: Document, name: str) -> Tag:
    tag = find_tag(document, name)
    if tag is None:
        tag = Tag(name=name)
        document.tags.append(tag)
    return tag


def error_schema() -> Schema:
    """Schema of the synthesized 4xx error payload."""
    nullable = {"type": "string", "nullable": True}
    return Schema(
        type="object",
        required=["status", "error", "reason", "timestamp"],
        properties={
            "status": Schema(type="integer", format="int32"),
            "error": Schema(type="string"),
            "reason": Schema(type="string"),
            "timestamp": Schema(type="string", format="date-time"),
            "details": Schema(**nullable),
            "exception": Schema(**nullable),
            "stackTrace": Schema(**nullable),
            "path": Schema(**nullable),
            "method": Schema(**nullable),
        },
    )


class OperationBuilder:
    """Assembles Operation objects and their synthesized error responses."""

    def __init__(
        self,
        document: Document,
        registry: ComponentRegistry,
        settings: OpenApiSettings | None = None,
    ) -> None:
        self.document = document
        self.registry = registry
        self.settings = settings or OpenApiSettings()

    def build(self, metadata: OperationMetadata) -> Operation:
        op = Operation(
            operation_id=blank_to_none(metadata.operation_id),
            summary=blank_to_none(metadata.summary),
            description=blank_to_none(metadata.description),
            deprecated=metadata.deprecated,
            external_docs=metadata.external_docs,
        )

        for name in metadata.tags:
            if not name or not name.strip():
                continue
            ensure_tag(self.document, name)
            if name not in op.tags:
                op.tags.append(name)

        for server in metadata.servers:
            if isinstance(server, Server):
                op.servers.append(clone_component(server))
            else:
                logger.warning(
                    "Skipping server %r on operation %s: not a Server",
                    server,
                    op.operation_id,
                )

        for parameter in metadata.parameters:
            if isinstance(parameter, (Parameter, Reference)):
                op.parameters.append(parameter)
            else:
                logger.warning(
                    "Skipping parameter %r on operation %s: not a Parameter",
                    parameter,
                    op.operation_id,
                )

        op.request_body = metadata.request_body

        if metadata.responses is None:
            op.responses = {"200": Response(description="Success")}
        else:
            op.responses = dict(metadata.responses)

        op.callbacks = dict(metadata.callbacks)

        if metadata.security is not None:
            op.security = build_security_requirements(metadata.security)

        op.extensions = normalize_extensions(metadata.extensions)

        if self.settings.auto_error_responses:
            self.add_error_responses(op, metadata)
        return op

    def error_statuses(self, op: Operation, metadata: OperationMetadata) -> list[str]:
        """Status codes that would be synthesized for *op*, sorted."""
        keys = {key.upper() for key in op.responses}
        if "4XX" in keys or "DEFAULT" in keys:
            return []

        statuses: set[str] = set()
        has_body = op.request_body is not None
        if op.parameters or has_body:
            statuses.update(("400", "422"))
        if has_body or metadata.allowed_request_content_types:
            statuses.add("415")
        if len(self.settings.default_response_content_types) > 1 or any(
            self._has_content(r) for r in op.responses.values()
        ):
            statuses.add("406")
        return sorted(s for s in statuses if s not in op.responses)

    def add_error_responses(self, op: Operation, metadata: OperationMetadata) -> None:
        missing = self.error_statuses(op, metadata)
        if not missing:
            return
        name = self.ensure_error_schema()
        for status in missing:
            response = Response(description=ERROR_DESCRIPTIONS[status])
            for content_type in self.settings.error_content_types:
                response.content[content_type] = MediaType(
                    schema=Reference(ComponentKind.SCHEMAS, name)
                )
            op.responses[status] = response

    def ensure_error_schema(self) -> str:
        name = self.settings.error_schema_name
        self.registry.shared.add(
            ComponentKind.SCHEMAS, name, error_schema(), ConflictPolicy.IGNORE
        )
        return name

    def _has_content(self, response: Response | Reference) -> bool:
        if isinstance(response, Reference):
            found = self.registry.shared.try_get(
                ComponentKind.RESPONSES, response.id, Response
            )
            return found is not None and bool(found.content)
        return bool(response.content)
