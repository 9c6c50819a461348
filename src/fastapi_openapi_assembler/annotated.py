"""Route-level declarations and their application to operation metadata."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from fastapi_openapi_assembler._types import SecurityRequirement
from fastapi_openapi_assembler.component import ComponentKind
from fastapi_openapi_assembler.components.declarations import (
    ExampleRef,
    HeaderRef,
    LinkRef,
)
from fastapi_openapi_assembler.components.request_bodies import build_request_body
from fastapi_openapi_assembler.components.responses import (
    DEFAULT_CONTENT_TYPES,
    add_response_refs,
    apply_response_content,
    resolve_response_schema,
)
from fastapi_openapi_assembler.components.schemas import (
    SchemaInferencer,
    is_intrinsic_default,
    to_json_value,
)
from fastapi_openapi_assembler.exceptions import OpenApiConfigurationError
from fastapi_openapi_assembler.models import (
    ExternalDocs,
    Parameter,
    Reference,
    Response,
    Schema,
    Server,
)
from fastapi_openapi_assembler.operations import OperationMetadata
from fastapi_openapi_assembler.resolver import ReferenceResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResponseSpec:
    status_code: str | int | None
    description: str | None = None
    schema: Any = None
    schema_ref: str | None = None
    content_types: tuple[str, ...] = DEFAULT_CONTENT_TYPES
    inline: bool = False


@dataclass(frozen=True)
class ResponseRef:
    status_code: str | int | None
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    location: str = "query"
    type: Any = str
    description: str | None = None
    required: bool = False
    deprecated: bool = False
    allow_empty_value: bool = False
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool = False
    default: Any = None
    example: Any = None


@dataclass(frozen=True)
class ParameterRef:
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class RequestBodySpec:
    type: Any = None
    schema_ref: str | None = None
    description: str | None = None
    content_types: tuple[str, ...] = DEFAULT_CONTENT_TYPES
    required: bool = False
    example: Any = None
    inline: bool = False


@dataclass(frozen=True)
class RequestBodyRef:
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class ResponseHeaderRef:
    status_code: str | int | None
    key: str | None
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class ResponseLinkRef:
    status_code: str | int | None
    key: str | None
    reference_id: str
    inline: bool = False


@dataclass(frozen=True)
class ResponseExampleRef:
    status_code: str | int | None
    key: str | None
    reference_id: str
    content_type: str | None = None
    inline: bool = False


@dataclass(frozen=True)
class CallbackRef:
    key: str | None
    reference_id: str
    inline: bool = False


@dataclass
class OperationSpec:
    """Declarative description of one route's operation."""

    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: Sequence[str] = ()
    deprecated: bool = False
    external_docs: ExternalDocs | None = None
    declarations: Sequence[Any] = ()
    security: list[SecurityRequirement] | None = None
    servers: Sequence[Server] = ()
    extensions: Mapping[str, Any] = field(default_factory=dict)
    allowed_request_content_types: Sequence[str] = ()
    enabled: bool = True
    document_ids: tuple[str, ...] | None = None
    expression: str | None = None
    inline: bool = False


_STATUS_SCOPED = (
    ResponseSpec,
    ResponseRef,
    ResponseHeaderRef,
    ResponseLinkRef,
    ResponseExampleRef,
)
_KEYED = (ResponseHeaderRef, ResponseLinkRef, ResponseExampleRef, CallbackRef)


def _status(declaration: Any) -> str:
    code = declaration.status_code
    if code is None or not str(code).strip():
        raise OpenApiConfigurationError(
            f"{type(declaration).__name__} for '{_label(declaration)}' "
            "requires a status_code."
        )
    return str(code).strip()


def _label(declaration: Any) -> str:
    label = getattr(declaration, "reference_id", None)
    if label is None:
        label = getattr(declaration, "description", None)
    return label or type(declaration).__name__


def _validate(declaration: Any) -> None:
    if isinstance(declaration, _STATUS_SCOPED):
        _status(declaration)
    if isinstance(declaration, _KEYED):
        if declaration.key is None or not declaration.key.strip():
            raise OpenApiConfigurationError(
                f"{type(declaration).__name__} for '{declaration.reference_id}' "
                "requires a key."
            )


class OperationAnnotator:
    """Applies an OperationSpec's declarations to fresh OperationMetadata."""

    def __init__(
        self, inferencer: SchemaInferencer, resolver: ReferenceResolver
    ) -> None:
        self.inferencer = inferencer
        self.resolver = resolver

    def annotate(self, spec: OperationSpec) -> OperationMetadata:
        metadata = OperationMetadata(
            operation_id=spec.operation_id,
            summary=spec.summary,
            description=spec.description,
            tags=list(spec.tags),
            external_docs=spec.external_docs,
            deprecated=spec.deprecated,
            servers=list(spec.servers),
            security=None if spec.security is None else list(spec.security),
            extensions=dict(spec.extensions),
            allowed_request_content_types=list(spec.allowed_request_content_types),
            enabled=spec.enabled,
            document_ids=spec.document_ids,
            expression=spec.expression,
            inline=spec.inline,
        )

        for declaration in spec.declarations:
            _validate(declaration)

        # responses and bodies first so refs can attach to them
        attachments: list[Any] = []
        for declaration in spec.declarations:
            if isinstance(declaration, ResponseSpec):
                self._apply_response(metadata, declaration)
            elif isinstance(declaration, ResponseRef):
                response = self.resolver.resolve(
                    ComponentKind.RESPONSES,
                    declaration.reference_id,
                    inline=declaration.inline,
                )
                if metadata.responses is None:
                    metadata.responses = {}
                metadata.responses[_status(declaration)] = response
            elif isinstance(declaration, ParameterSpec):
                metadata.parameters.append(self._parameter(declaration))
            elif isinstance(declaration, ParameterRef):
                metadata.parameters.append(
                    self.resolver.resolve(
                        ComponentKind.PARAMETERS,
                        declaration.reference_id,
                        inline=declaration.inline,
                    )
                )
            elif isinstance(declaration, RequestBodySpec):
                metadata.request_body = self._request_body(declaration)
            elif isinstance(declaration, RequestBodyRef):
                metadata.request_body = self.resolver.resolve(
                    ComponentKind.REQUEST_BODIES,
                    declaration.reference_id,
                    inline=declaration.inline,
                )
            elif isinstance(declaration, CallbackRef):
                metadata.callbacks[declaration.key or ""] = self.resolver.resolve(
                    ComponentKind.CALLBACKS,
                    declaration.reference_id,
                    inline=declaration.inline,
                )
            elif isinstance(
                declaration, (ResponseHeaderRef, ResponseLinkRef, ResponseExampleRef)
            ):
                attachments.append(declaration)
            else:
                raise OpenApiConfigurationError(
                    f"Unsupported operation declaration: {declaration!r}"
                )

        for declaration in attachments:
            self._attach(metadata, declaration)
        return metadata

    def _apply_response(self, metadata: OperationMetadata, spec: ResponseSpec) -> None:
        status = _status(spec)
        response = metadata.add_response(status)
        if isinstance(response, Reference):
            raise OpenApiConfigurationError(
                f"Response '{status}' is already a reference to '{response.id}'."
            )
        if spec.description and spec.description.strip():
            response.description = spec.description
        schema = resolve_response_schema(
            schema_type=spec.schema,
            schema_ref=spec.schema_ref,
            inline=spec.inline,
            fallback=None,
            inferencer=self.inferencer,
            resolver=self.resolver,
        )
        apply_response_content(response, schema, spec.content_types)

    def _parameter(self, spec: ParameterSpec) -> Parameter:
        schema = self.inferencer.infer_schema(spec.type)
        if (
            isinstance(schema, Schema)
            and spec.default is not None
            and not is_intrinsic_default(spec.default)
        ):
            schema.default = to_json_value(spec.default)
        return Parameter(
            name=spec.name,
            location=spec.location,
            description=spec.description,
            required=spec.required,
            deprecated=spec.deprecated,
            allow_empty_value=spec.allow_empty_value,
            style=spec.style,
            explode=spec.explode,
            allow_reserved=spec.allow_reserved,
            schema=schema,
            example=to_json_value(spec.example),
        )

    def _request_body(self, spec: RequestBodySpec) -> Any:
        schema = resolve_response_schema(
            schema_type=spec.type,
            schema_ref=spec.schema_ref,
            inline=spec.inline,
            fallback=None,
            inferencer=self.inferencer,
            resolver=self.resolver,
        )
        return build_request_body(
            schema,
            content_types=spec.content_types,
            description=spec.description,
            required=spec.required,
            example=spec.example,
        )

    def _attach(self, metadata: OperationMetadata, declaration: Any) -> None:
        status = _status(declaration)
        response = metadata.add_response(status)
        if not isinstance(response, Response):
            logger.warning(
                "Response '%s' is a reference; %s '%s' not attached",
                status,
                type(declaration).__name__,
                declaration.key,
            )
            return
        if isinstance(declaration, ResponseHeaderRef):
            refs: dict[str, Any] = {
                "headers": [
                    HeaderRef(
                        declaration.key, declaration.reference_id, declaration.inline
                    )
                ]
            }
        elif isinstance(declaration, ResponseLinkRef):
            refs = {
                "links": [
                    LinkRef(
                        declaration.key, declaration.reference_id, declaration.inline
                    )
                ]
            }
        else:
            refs = {
                "examples": [
                    ExampleRef(
                        declaration.key,
                        declaration.reference_id,
                        declaration.content_type,
                        declaration.inline,
                    )
                ]
            }
        add_response_refs(response, resolver=self.resolver, **refs)
