"""Document rendering to JSON/YAML and round-trip diagnostics."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

from fastapi_openapi_assembler.component import ComponentKind
from fastapi_openapi_assembler.models import (
    HTTP_METHODS,
    Callback,
    Components,
    Document,
    Encoding,
    Example,
    ExternalDocs,
    Header,
    Info,
    Link,
    MediaType,
    OAuthFlow,
    OAuthFlows,
    Operation,
    Parameter,
    PathItem,
    Reference,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
    Server,
    Tag,
    Xml,
)
from fastapi_openapi_assembler.versions import SpecVersion

logger = logging.getLogger(__name__)

_PATH_VARIABLE_RE = re.compile(r"\{[+]?([^{}*?&]+)\*?\}")


class IndentListDumper(yaml.SafeDumper):
    """Indents block sequences under their parent key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def _put(out: dict[str, Any], key: str, value: Any) -> None:
    """Set *key* unless *value* is empty (None, blank string, empty container)."""
    if value is None:
        return
    if isinstance(value, (str, list, dict)) and not value:
        return
    out[key] = value


class DocumentWriter:
    """Renders the object graph as a plain dict for one 3.x spec version."""

    def __init__(self, version: SpecVersion) -> None:
        self.version = version

    @property
    def modern(self) -> bool:
        return self.version in (SpecVersion.V3_1, SpecVersion.V3_2)

    def document(self, doc: Document) -> dict[str, Any]:
        out: dict[str, Any] = {"openapi": self.version.version_string}
        out["info"] = self.info(doc.info)
        if self.modern:
            _put(out, "jsonSchemaDialect", doc.json_schema_dialect)
        _put(out, "servers", [self.server(s) for s in doc.servers])
        out["paths"] = {k: self.path_item(v) for k, v in doc.paths.items()}
        if self.modern:
            webhooks = {k: self.path_item(v) for k, v in doc.webhooks.items()}
            _put(out, "webhooks", webhooks)
        _put(out, "components", self.components(doc.components))
        if doc.security is not None:
            out["security"] = [dict(r) for r in doc.security]
        _put(out, "tags", [self.tag(t) for t in doc.tags])
        if doc.external_docs is not None:
            out["externalDocs"] = self.external_docs(doc.external_docs)
        out.update(doc.extensions)
        return out

    def info(self, info: Info) -> dict[str, Any]:
        out: dict[str, Any] = {"title": info.title}
        if self.modern:
            _put(out, "summary", info.summary)
        _put(out, "description", info.description)
        _put(out, "termsOfService", info.terms_of_service)
        if info.contact is not None:
            contact: dict[str, Any] = {}
            _put(contact, "name", info.contact.name)
            _put(contact, "url", info.contact.url)
            _put(contact, "email", info.contact.email)
            out["contact"] = contact
        if info.license is not None:
            lic: dict[str, Any] = {"name": info.license.name}
            if self.modern:
                _put(lic, "identifier", info.license.identifier)
            _put(lic, "url", info.license.url)
            out["license"] = lic
        out["version"] = info.version
        out.update(info.extensions)
        return out

    def server(self, server: Server) -> dict[str, Any]:
        out: dict[str, Any] = {"url": server.url}
        _put(out, "description", server.description)
        variables = {}
        for name, variable in server.variables.items():
            rendered: dict[str, Any] = {"default": variable.default}
            _put(rendered, "enum", list(variable.enum))
            _put(rendered, "description", variable.description)
            variables[name] = rendered
        _put(out, "variables", variables)
        out.update(server.extensions)
        return out

    def external_docs(self, docs: ExternalDocs) -> dict[str, Any]:
        out: dict[str, Any] = {"url": docs.url}
        _put(out, "description", docs.description)
        out.update(docs.extensions)
        return out

    def tag(self, tag: Tag) -> dict[str, Any]:
        out: dict[str, Any] = {"name": tag.name}
        if self.version is SpecVersion.V3_2:
            _put(out, "summary", tag.summary)
        _put(out, "description", tag.description)
        if tag.external_docs is not None:
            out["externalDocs"] = self.external_docs(tag.external_docs)
        if self.version is SpecVersion.V3_2:
            _put(out, "parent", tag.parent)
            _put(out, "kind", tag.kind)
        out.update(tag.extensions)
        return out

    def reference(self, ref: Reference) -> dict[str, Any]:
        out: dict[str, Any] = {"$ref": ref.ref}
        if self.modern:
            _put(out, "summary", ref.summary)
            _put(out, "description", ref.description)
        return out

    def path_item(self, item: PathItem) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "summary", item.summary)
        _put(out, "description", item.description)
        for method in HTTP_METHODS:
            operation = item.operations.get(method)
            if operation is not None:
                out[method] = self.operation(operation)
        _put(out, "servers", [self.server(s) for s in item.servers])
        _put(out, "parameters", [self.parameter(p) for p in item.parameters])
        out.update(item.extensions)
        return out

    def operation(self, op: Operation) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "tags", list(op.tags))
        _put(out, "summary", op.summary)
        _put(out, "description", op.description)
        if op.external_docs is not None:
            out["externalDocs"] = self.external_docs(op.external_docs)
        _put(out, "operationId", op.operation_id)
        _put(out, "parameters", [self.parameter(p) for p in op.parameters])
        if op.request_body is not None:
            out["requestBody"] = self.request_body(op.request_body)
        out["responses"] = {
            str(code): self.response(r) for code, r in op.responses.items()
        }
        _put(out, "callbacks", {k: self.callback(v) for k, v in op.callbacks.items()})
        if op.deprecated:
            out["deprecated"] = True
        if op.security is not None:
            out["security"] = [dict(r) for r in op.security]
        _put(out, "servers", [self.server(s) for s in op.servers])
        out.update(op.extensions)
        return out

    def _parameter_fields(self, p: Parameter | Header, out: dict[str, Any]) -> None:
        _put(out, "description", p.description)
        if p.required:
            out["required"] = True
        if p.deprecated:
            out["deprecated"] = True
        if p.allow_empty_value:
            out["allowEmptyValue"] = True
        _put(out, "style", p.style)
        if p.explode is not None:
            out["explode"] = p.explode
        if p.allow_reserved:
            out["allowReserved"] = True
        if p.schema is not None:
            out["schema"] = self.schema(p.schema)
        if p.example is not None:
            out["example"] = p.example
        _put(out, "examples", {k: self.example(v) for k, v in p.examples.items()})
        _put(out, "content", {k: self.media_type(v) for k, v in p.content.items()})
        out.update(p.extensions)

    def parameter(self, p: Parameter | Reference) -> dict[str, Any]:
        if isinstance(p, Reference):
            return self.reference(p)
        out: dict[str, Any] = {"name": p.name, "in": p.location}
        self._parameter_fields(p, out)
        return out

    def header(self, h: Header | Reference) -> dict[str, Any]:
        if isinstance(h, Reference):
            return self.reference(h)
        out: dict[str, Any] = {}
        self._parameter_fields(h, out)
        return out

    def example(self, e: Example | Reference) -> dict[str, Any]:
        if isinstance(e, Reference):
            return self.reference(e)
        out: dict[str, Any] = {}
        _put(out, "summary", e.summary)
        _put(out, "description", e.description)
        if e.value is not None:
            out["value"] = e.value
        _put(out, "externalValue", e.external_value)
        out.update(e.extensions)
        return out

    def encoding(self, e: Encoding) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "contentType", e.content_type)
        _put(out, "headers", {k: self.header(v) for k, v in e.headers.items()})
        _put(out, "style", e.style)
        if e.explode is not None:
            out["explode"] = e.explode
        if e.allow_reserved:
            out["allowReserved"] = True
        return out

    def media_type(self, m: MediaType | Reference) -> dict[str, Any]:
        if isinstance(m, Reference):
            return self.reference(m)
        out: dict[str, Any] = {}
        if m.schema is not None:
            out["schema"] = self.schema(m.schema)
        if m.example is not None:
            out["example"] = m.example
        _put(out, "examples", {k: self.example(v) for k, v in m.examples.items()})
        _put(out, "encoding", {k: self.encoding(v) for k, v in m.encoding.items()})
        out.update(m.extensions)
        return out

    def request_body(self, b: RequestBody | Reference) -> dict[str, Any]:
        if isinstance(b, Reference):
            return self.reference(b)
        out: dict[str, Any] = {}
        _put(out, "description", b.description)
        out["content"] = {k: self.media_type(v) for k, v in b.content.items()}
        if b.required:
            out["required"] = True
        out.update(b.extensions)
        return out

    def response(self, r: Response | Reference) -> dict[str, Any]:
        if isinstance(r, Reference):
            return self.reference(r)
        out: dict[str, Any] = {"description": r.description or ""}
        _put(out, "headers", {k: self.header(v) for k, v in r.headers.items()})
        _put(out, "content", {k: self.media_type(v) for k, v in r.content.items()})
        _put(out, "links", {k: self.link(v) for k, v in r.links.items()})
        out.update(r.extensions)
        return out

    def link(self, link: Link | Reference) -> dict[str, Any]:
        if isinstance(link, Reference):
            return self.reference(link)
        out: dict[str, Any] = {}
        _put(out, "operationRef", link.operation_ref)
        _put(out, "operationId", link.operation_id)
        _put(out, "parameters", dict(link.parameters))
        if link.request_body is not None:
            out["requestBody"] = link.request_body
        _put(out, "description", link.description)
        if link.server is not None:
            out["server"] = self.server(link.server)
        out.update(link.extensions)
        return out

    def callback(self, cb: Callback | Reference) -> dict[str, Any]:
        if isinstance(cb, Reference):
            return self.reference(cb)
        out = {expr: self.path_item(item) for expr, item in cb.path_items.items()}
        out.update(cb.extensions)
        return out

    def _flow(self, flow: OAuthFlow) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "authorizationUrl", flow.authorization_url)
        _put(out, "tokenUrl", flow.token_url)
        _put(out, "refreshUrl", flow.refresh_url)
        out["scopes"] = dict(flow.scopes)
        return out

    def _flows(self, flows: OAuthFlows) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, flow in (
            ("implicit", flows.implicit),
            ("password", flows.password),
            ("clientCredentials", flows.client_credentials),
            ("authorizationCode", flows.authorization_code),
        ):
            if flow is not None:
                out[key] = self._flow(flow)
        return out

    def security_scheme(self, s: SecurityScheme | Reference) -> dict[str, Any]:
        if isinstance(s, Reference):
            return self.reference(s)
        out: dict[str, Any] = {"type": s.type}
        _put(out, "description", s.description)
        _put(out, "name", s.name)
        _put(out, "in", s.location)
        _put(out, "scheme", s.scheme)
        _put(out, "bearerFormat", s.bearer_format)
        if s.flows is not None:
            out["flows"] = self._flows(s.flows)
        _put(out, "openIdConnectUrl", s.open_id_connect_url)
        if s.deprecated and self.version is SpecVersion.V3_2:
            out["deprecated"] = True
        out.update(s.extensions)
        return out

    def xml(self, x: Xml) -> dict[str, Any]:
        out: dict[str, Any] = {}
        _put(out, "name", x.name)
        _put(out, "namespace", x.namespace)
        _put(out, "prefix", x.prefix)
        if x.attribute:
            out["attribute"] = True
        if x.wrapped:
            out["wrapped"] = True
        return out

    def schema(self, node: Schema | Reference) -> dict[str, Any]:
        if isinstance(node, Reference):
            return self.reference(node)
        out = self._schema_body(node)
        if not node.nullable:
            return out
        if not self.modern:
            out["nullable"] = True
            return out
        if node.type is not None:
            return out
        # untyped nullable: express null as an alternative
        if not out:
            return {"type": "null"}
        if list(out) == ["allOf"] and len(out["allOf"]) == 1:
            out = out["allOf"][0]
        return {"anyOf": [out, {"type": "null"}]}

    def _schema_body(self, node: Schema) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if node.type is not None:
            if node.nullable and self.modern:
                out["type"] = [node.type, "null"]
            else:
                out["type"] = node.type
        _put(out, "format", node.format)
        _put(out, "title", node.title)
        _put(out, "description", node.description)
        if node.default is not None:
            out["default"] = node.default

        if self.modern:
            examples = ([node.example] if node.example is not None else []) + list(
                node.examples
            )
            _put(out, "examples", examples)
            if node.const is not None:
                out["const"] = node.const
        else:
            example = node.example
            if example is None and node.examples:
                example = node.examples[0]
            if example is not None:
                out["example"] = example
        if node.enum is not None:
            out["enum"] = list(node.enum)
        elif node.const is not None and not self.modern:
            out["enum"] = [node.const]

        self._bounds(node, out)
        if node.multiple_of is not None:
            out["multipleOf"] = node.multiple_of
        for key, value in (
            ("maxLength", node.max_length),
            ("minLength", node.min_length),
        ):
            if value is not None:
                out[key] = value
        _put(out, "pattern", node.pattern)
        for key, value in (
            ("maxItems", node.max_items),
            ("minItems", node.min_items),
        ):
            if value is not None:
                out[key] = value
        if node.unique_items:
            out["uniqueItems"] = True
        for key, value in (
            ("maxProperties", node.max_properties),
            ("minProperties", node.min_properties),
        ):
            if value is not None:
                out[key] = value

        _put(out, "required", list(node.required))
        _put(out, "properties", {k: self.schema(v) for k, v in node.properties.items()})
        if isinstance(node.additional_properties, bool):
            out["additionalProperties"] = node.additional_properties
        elif node.additional_properties is not None:
            out["additionalProperties"] = self.schema(node.additional_properties)
        if node.items is not None:
            out["items"] = self.schema(node.items)
        _put(out, "allOf", [self.schema(s) for s in node.all_of])
        _put(out, "oneOf", [self.schema(s) for s in node.one_of])
        _put(out, "anyOf", [self.schema(s) for s in node.any_of])
        if node.not_ is not None:
            out["not"] = self.schema(node.not_)
        if node.discriminator is not None:
            disc: dict[str, Any] = {"propertyName": node.discriminator.property_name}
            _put(disc, "mapping", dict(node.discriminator.mapping))
            out["discriminator"] = disc
        if node.read_only:
            out["readOnly"] = True
        if node.write_only:
            out["writeOnly"] = True
        if node.deprecated:
            out["deprecated"] = True
        if node.xml is not None:
            out["xml"] = self.xml(node.xml)
        if node.external_docs is not None:
            out["externalDocs"] = self.external_docs(node.external_docs)
        out.update(node.extensions)
        return out

    def _bounds(self, node: Schema, out: dict[str, Any]) -> None:
        if self.modern:
            if node.maximum is not None:
                key = "exclusiveMaximum" if node.exclusive_maximum else "maximum"
                out[key] = node.maximum
            if node.minimum is not None:
                key = "exclusiveMinimum" if node.exclusive_minimum else "minimum"
                out[key] = node.minimum
            return
        if node.maximum is not None:
            out["maximum"] = node.maximum
            if node.exclusive_maximum:
                out["exclusiveMaximum"] = True
        if node.minimum is not None:
            out["minimum"] = node.minimum
            if node.exclusive_minimum:
                out["exclusiveMinimum"] = True

    def components(self, components: Components) -> dict[str, Any]:
        renderers = {
            ComponentKind.SCHEMAS: self.schema,
            ComponentKind.RESPONSES: self.response,
            ComponentKind.PARAMETERS: self.parameter,
            ComponentKind.EXAMPLES: self.example,
            ComponentKind.REQUEST_BODIES: self.request_body,
            ComponentKind.HEADERS: self.header,
            ComponentKind.SECURITY_SCHEMES: self.security_scheme,
            ComponentKind.LINKS: self.link,
            ComponentKind.CALLBACKS: self.callback,
            ComponentKind.PATH_ITEMS: self._path_item_or_ref,
            ComponentKind.MEDIA_TYPES: self.media_type,
        }
        out: dict[str, Any] = {}
        for kind, render in renderers.items():
            if kind is ComponentKind.PATH_ITEMS and not self.modern:
                continue
            if (
                kind is ComponentKind.MEDIA_TYPES
                and self.version is not SpecVersion.V3_2
            ):
                continue
            store = components.store(kind)
            _put(out, kind.section, {name: render(v) for name, v in store.items()})
        return out

    def _path_item_or_ref(self, item: PathItem | Reference) -> dict[str, Any]:
        if isinstance(item, Reference):
            return self.reference(item)
        return self.path_item(item)


def to_dict(document: Document, version: str | SpecVersion = "3.1") -> dict[str, Any]:
    """Render *document* at *version* as plain JSON-compatible data."""
    spec_version = SpecVersion.parse(version)
    if spec_version.is_swagger:
        from fastapi_openapi_assembler.swagger import SwaggerWriter

        return SwaggerWriter(document).render()
    return DocumentWriter(spec_version).document(document)


def to_json(
    document: Document, version: str | SpecVersion = "3.1", *, indent: int | None = 2
) -> str:
    return json.dumps(to_dict(document, version), indent=indent, ensure_ascii=False)


def to_yaml(document: Document, version: str | SpecVersion = "3.1") -> str:
    return yaml.dump(
        to_dict(document, version),
        Dumper=IndentListDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


# --- round-trip diagnostics -------------------------------------------------


@dataclass
class RoundTripResult:
    """Outcome of serializing and re-parsing a document."""

    text: str
    data: dict[str, Any] | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def round_trip(
    document: Document, version: str | SpecVersion = "3.1", fmt: str = "json"
) -> RoundTripResult:
    """Serialize *document*, parse it back, and collect structural diagnostics."""
    fmt = fmt.lower()
    if fmt not in ("json", "yaml"):
        raise ValueError(f"Unsupported round-trip format '{fmt}'")
    text = to_json(document, version) if fmt == "json" else to_yaml(document, version)
    result = RoundTripResult(text=text)

    try:
        data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        result.errors.append(f"Parse error: {exc}")
        return result
    if not isinstance(data, dict):
        result.errors.append("Parse error: document root is not a mapping")
        return result

    result.data = data
    _check_info(data, result)
    _check_refs(data, result)
    _check_operations(data, result)
    for message in result.errors:
        logger.debug("Round-trip error: %s", message)
    return result


def _check_info(data: dict[str, Any], result: RoundTripResult) -> None:
    info = data.get("info")
    if not isinstance(info, dict):
        result.errors.append("Missing 'info' object")
        return
    for key in ("title", "version"):
        if not info.get(key):
            result.errors.append(f"Missing 'info.{key}'")


def _walk_refs(node: Any, path: str) -> list[tuple[str, str]]:
    found: list[tuple[str, str]] = []
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            found.append((path, ref))
        for key, value in node.items():
            found.extend(_walk_refs(value, f"{path}/{key}"))
    elif isinstance(node, list):
        for index, value in enumerate(node):
            found.extend(_walk_refs(value, f"{path}/{index}"))
    return found


def resolve_pointer(data: Any, ref: str) -> Any:
    """Resolve a local ``#/a/b`` JSON pointer; raises KeyError when absent."""
    if not ref.startswith("#/"):
        raise KeyError(ref)
    node = data
    for raw in ref[2:].split("/"):
        part = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(node, dict) and part in node:
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            raise KeyError(ref)
    return node


def _check_refs(data: dict[str, Any], result: RoundTripResult) -> None:
    for path, ref in _walk_refs(data, "#"):
        if not ref.startswith("#/"):
            result.warnings.append(f"External reference '{ref}' at {path} not checked")
            continue
        try:
            resolve_pointer(data, ref)
        except KeyError:
            result.errors.append(f"Unresolved reference '{ref}' at {path}")


def _parameter_names(data: dict[str, Any], params: Any) -> set[str]:
    names: set[str] = set()
    for param in params or ():
        if isinstance(param, dict) and "$ref" in param:
            try:
                param = resolve_pointer(data, param["$ref"])
            except KeyError:
                continue
        if isinstance(param, dict) and param.get("in") == "path":
            names.add(str(param.get("name")))
    return names


def _check_operations(data: dict[str, Any], result: RoundTripResult) -> None:
    seen_ids: dict[str, str] = {}
    for pattern, item in (data.get("paths") or {}).items():
        if not isinstance(item, dict):
            continue
        shared = _parameter_names(data, item.get("parameters"))
        variables = [v.strip() for v in _PATH_VARIABLE_RE.findall(pattern)]
        for method in HTTP_METHODS:
            op = item.get(method)
            if not isinstance(op, dict):
                continue
            label = f"{method.upper()} {pattern}"
            if not op.get("responses"):
                result.errors.append(f"Operation {label} has no responses")
            declared = shared | _parameter_names(data, op.get("parameters"))
            for variable in variables:
                if variable not in declared:
                    result.warnings.append(
                        f"Operation {label} does not declare "
                        f"path parameter '{variable}'"
                    )
            op_id = op.get("operationId")
            if op_id:
                if op_id in seen_ids:
                    result.errors.append(
                        f"Duplicate operationId '{op_id}' on {label} "
                        f"and {seen_ids[op_id]}"
                    )
                else:
                    seen_ids[op_id] = label
