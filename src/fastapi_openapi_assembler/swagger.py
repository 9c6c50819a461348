"""Swagger 2.0 rendering of the 3.x object graph."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit

from fastapi_openapi_assembler.component import ComponentKind
from fastapi_openapi_assembler.models import (
    HTTP_METHODS,
    Document,
    Header,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    Reference,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
)
from fastapi_openapi_assembler.serializer import DocumentWriter, _put
from fastapi_openapi_assembler.versions import SpecVersion

logger = logging.getLogger(__name__)

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_REF_PREFIXES = {
    ComponentKind.SCHEMAS: "#/definitions/",
    ComponentKind.PARAMETERS: "#/parameters/",
    ComponentKind.REQUEST_BODIES: "#/parameters/",
    ComponentKind.RESPONSES: "#/responses/",
}

_FLOW_NAMES = (
    ("implicit", "implicit"),
    ("password", "password"),
    ("client_credentials", "application"),
    ("authorization_code", "accessCode"),
)


class SwaggerWriter:
    """Renders one document as a Swagger 2.0 dict.

    Kinds without a 2.0 home (examples, headers, links, callbacks) are
    inlined from the shared components or dropped.
    """

    def __init__(self, document: Document) -> None:
        self.doc = document
        # 3.0 rules cover the info, tag and external docs shapes
        self.base = DocumentWriter(SpecVersion.V3_0)

    def render(self) -> dict[str, Any]:
        doc = self.doc
        out: dict[str, Any] = {"swagger": "2.0", "info": self.base.info(doc.info)}
        if doc.servers:
            parts = urlsplit(doc.servers[0].url)
            _put(out, "host", parts.netloc)
            _put(out, "basePath", parts.path.rstrip("/") or None)
            if parts.scheme:
                out["schemes"] = [parts.scheme]
        out["paths"] = {k: self.path_item(v) for k, v in doc.paths.items()}

        components = doc.components
        _put(
            out,
            "definitions",
            {k: self.schema(v) for k, v in components.schemas.items()},
        )
        parameters = {k: self.parameter(v) for k, v in components.parameters.items()}
        for name, body in components.request_bodies.items():
            rendered = self.body_parameters(body)
            if len(rendered) == 1:
                parameters[name] = rendered[0]
        _put(out, "parameters", parameters)
        _put(
            out,
            "responses",
            {k: self.response(v) for k, v in components.responses.items()},
        )
        definitions: dict[str, Any] = {}
        for name, scheme in components.security_schemes.items():
            rendered_scheme = self.security_scheme(name, scheme)
            if rendered_scheme is not None:
                definitions[name] = rendered_scheme
        _put(out, "securityDefinitions", definitions)
        if doc.security is not None:
            out["security"] = [dict(r) for r in doc.security]
        _put(out, "tags", [self.base.tag(t) for t in doc.tags])
        if doc.external_docs is not None:
            out["externalDocs"] = self.base.external_docs(doc.external_docs)
        out.update(doc.extensions)
        return out

    def ref(self, ref: Reference) -> dict[str, Any]:
        prefix = _REF_PREFIXES.get(ref.kind)
        if prefix is None:
            raise KeyError(ref.kind)
        return {"$ref": prefix + ref.id}

    def deref(self, value: Any, kind: ComponentKind) -> Any:
        """Follow a Reference into the shared components; None when missing."""
        seen: set[str] = set()
        while isinstance(value, Reference):
            if value.id in seen:
                return None
            seen.add(value.id)
            value = self.doc.components.store(kind).get(value.id)
        return value

    def path_item(self, item: PathItem) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for method in HTTP_METHODS:
            op = item.operations.get(method)
            if op is None:
                continue
            if method == "trace":
                logger.warning("Swagger 2.0 has no TRACE operations; dropped")
                continue
            out[method] = self.operation(op)
        _put(out, "parameters", [self.parameter(p) for p in item.parameters])
        out.update(item.extensions)
        return out

    def operation(self, op: Operation) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "tags", list(op.tags))
        _put(out, "summary", op.summary)
        _put(out, "description", op.description)
        if op.external_docs is not None:
            out["externalDocs"] = self.base.external_docs(op.external_docs)
        _put(out, "operationId", op.operation_id)

        body = self.deref(op.request_body, ComponentKind.REQUEST_BODIES)
        if isinstance(body, RequestBody):
            _put(out, "consumes", list(body.content))

        produces: list[str] = []
        for response in op.responses.values():
            resolved = self.deref(response, ComponentKind.RESPONSES)
            if isinstance(resolved, Response):
                for content_type in resolved.content:
                    if content_type not in produces:
                        produces.append(content_type)
        _put(out, "produces", produces)

        parameters = [self.parameter(p) for p in op.parameters]
        if isinstance(op.request_body, Reference):
            parameters.append(self.ref(op.request_body))
        elif op.request_body is not None:
            parameters.extend(self.body_parameters(op.request_body))
        _put(out, "parameters", parameters)

        out["responses"] = {
            str(code): self.response(r) for code, r in op.responses.items()
        }
        if op.callbacks:
            logger.debug(
                "Callbacks on %s are not representable in 2.0", op.operation_id
            )
        if op.deprecated:
            out["deprecated"] = True
        if op.security is not None:
            out["security"] = [dict(r) for r in op.security]
        out.update(op.extensions)
        return out

    def _inline_schema_fields(self, schema: Any, out: dict[str, Any]) -> None:
        """Copy a primitive schema onto a non-body parameter or header."""
        schema = self.deref(schema, ComponentKind.SCHEMAS)
        if not isinstance(schema, Schema):
            out.setdefault("type", "string")
            return
        rendered = self.schema(schema)
        rendered.pop("x-nullable", None)
        out.update(rendered)
        out.setdefault("type", "string")
        if "items" in out:
            out.setdefault("collectionFormat", "csv")

    def parameter(self, p: Parameter | Reference) -> dict[str, Any]:
        if isinstance(p, Reference):
            return self.ref(p)
        out: dict[str, Any] = {"name": p.name, "in": p.location}
        _put(out, "description", p.description)
        if p.required:
            out["required"] = True
        if p.allow_empty_value:
            out["allowEmptyValue"] = True
        if p.location == "cookie":
            logger.warning("Cookie parameter '%s' rendered as a header", p.name)
            out["in"] = "header"
        schema = p.schema
        if schema is None and p.content:
            schema = next(iter(p.content.values())).schema
        self._inline_schema_fields(schema, out)
        if p.explode and "items" in out:
            out["collectionFormat"] = "multi"
        out.update(p.extensions)
        return out

    def body_parameters(self, body: RequestBody | Reference) -> list[dict[str, Any]]:
        if isinstance(body, Reference):
            return [self.ref(body)]
        if not body.content:
            return []
        content_type, media = next(iter(body.content.items()))
        schema = self.deref(media.schema, ComponentKind.SCHEMAS)
        if content_type in _FORM_TYPES and isinstance(schema, Schema):
            params = []
            for name, prop in schema.properties.items():
                param: dict[str, Any] = {"name": name, "in": "formData"}
                if name in schema.required:
                    param["required"] = True
                self._inline_schema_fields(prop, param)
                if param.get("format") == "binary":
                    param.pop("format")
                    param["type"] = "file"
                params.append(param)
            return params
        out: dict[str, Any] = {"name": "body", "in": "body"}
        _put(out, "description", body.description)
        if body.required:
            out["required"] = True
        out["schema"] = self.schema(media.schema) if media.schema is not None else {}
        out.update(body.extensions)
        return [out]

    def header(self, h: Header | Reference) -> dict[str, Any]:
        resolved = self.deref(h, ComponentKind.HEADERS)
        if not isinstance(resolved, Header):
            return {"type": "string"}
        out: dict[str, Any] = {}
        _put(out, "description", resolved.description)
        self._inline_schema_fields(resolved.schema, out)
        return out

    def response(self, r: Response | Reference) -> dict[str, Any]:
        if isinstance(r, Reference):
            return self.ref(r)
        out: dict[str, Any] = {"description": r.description or ""}
        media: MediaType | None = next(iter(r.content.values()), None)
        if media is not None and media.schema is not None:
            out["schema"] = self.schema(media.schema)
        examples = {
            content_type: m.example
            for content_type, m in r.content.items()
            if m.example is not None
        }
        _put(out, "examples", examples)
        _put(out, "headers", {k: self.header(v) for k, v in r.headers.items()})
        out.update(r.extensions)
        return out

    def schema(self, node: Schema | Reference) -> dict[str, Any]:
        if isinstance(node, Reference):
            return self.ref(node)
        out = self.base._schema_body(node)
        for key in ("allOf", "oneOf", "anyOf", "properties", "items", "not"):
            out.pop(key, None)
        if node.properties:
            out["properties"] = {k: self.schema(v) for k, v in node.properties.items()}
        if isinstance(node.additional_properties, (Schema, Reference)):
            out["additionalProperties"] = self.schema(node.additional_properties)
        if node.items is not None:
            out["items"] = self.schema(node.items)
        if node.all_of:
            out["allOf"] = [self.schema(s) for s in node.all_of]
        alternatives = node.one_of or node.any_of
        if alternatives:
            # 2.0 has no unions; keep the first branch
            logger.debug("Union schema collapsed to its first alternative")
            out.update(self.schema(alternatives[0]))
        if "discriminator" in out:
            out["discriminator"] = out["discriminator"]["propertyName"]
        if node.nullable:
            out["x-nullable"] = True
        return out

    def security_scheme(
        self, name: str, s: SecurityScheme | Reference
    ) -> dict[str, Any] | None:
        s = self.deref(s, ComponentKind.SECURITY_SCHEMES)
        if not isinstance(s, SecurityScheme):
            return None
        out: dict[str, Any]
        if s.type == "http" and s.scheme == "basic":
            out = {"type": "basic"}
        elif s.type == "http" and s.scheme == "bearer":
            out = {"type": "apiKey", "name": "Authorization", "in": "header"}
        elif s.type == "apiKey" and s.location in ("header", "query"):
            out = {"type": "apiKey", "name": s.name, "in": s.location}
        elif s.type == "oauth2" and s.flows is not None:
            out = {"type": "oauth2"}
            for attr, flow_name in _FLOW_NAMES:
                flow = getattr(s.flows, attr)
                if flow is None:
                    continue
                out["flow"] = flow_name
                _put(out, "authorizationUrl", flow.authorization_url)
                _put(out, "tokenUrl", flow.token_url)
                out["scopes"] = dict(flow.scopes)
                break
        else:
            logger.warning(
                "Security scheme '%s' (%s) has no Swagger 2.0 equivalent; dropped",
                name,
                s.type,
            )
            return None
        _put(out, "description", s.description)
        out.update(s.extensions)
        return out
