"""FastAPI / Starlette glue: route collection and ``app.openapi`` replacement."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from fastapi import FastAPI
from fastapi.routing import APIRoute
from starlette.convertors import FloatConvertor, IntegerConvertor, UUIDConvertor
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from fastapi_openapi_assembler.annotated import (
    OperationAnnotator,
    OperationSpec,
    ParameterSpec,
)
from fastapi_openapi_assembler.components.declarations import ComponentSet
from fastapi_openapi_assembler.components.security import AuthSchemeOptions
from fastapi_openapi_assembler.descriptor import OpenApiDescriptor
from fastapi_openapi_assembler.models import Parameter, Reference, Server
from fastapi_openapi_assembler.operations import OperationMetadata, PathMetadata
from fastapi_openapi_assembler.paths import RouteOptions
from fastapi_openapi_assembler.templates import PathTemplateMapping, map_path_template

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

OPERATION_ATTR = "__openapi_operation__"
PATH_ATTR = "__openapi_path__"
TEMPLATE_ATTR = "__openapi_template__"

_CONVERTOR_TYPES = (
    (IntegerConvertor, int),
    (FloatConvertor, float),
    (UUIDConvertor, uuid.UUID),
)

OperationSource = OperationSpec | OperationMetadata


def openapi_operation(
    spec: OperationSpec | None = None, /, **fields: Any
) -> Callable[[F], F]:
    """Attach an OperationSpec to an endpoint.

    Accepts a ready spec or its fields as keywords::

        @app.get("/widgets/{id}")
        @openapi_operation(operation_id="getWidget", declarations=[...])
        async def get_widget(id: int): ...
    """
    if spec is None:
        spec = OperationSpec(**fields)
    elif fields:
        spec = dataclasses.replace(spec, **fields)

    def decorator(endpoint: F) -> F:
        setattr(endpoint, OPERATION_ATTR, spec)
        return endpoint

    return decorator


def openapi_path(
    *,
    summary: str | None = None,
    description: str | None = None,
    servers: Sequence[Server] = (),
    parameters: Sequence[Parameter | Reference] = (),
) -> Callable[[F], F]:
    """Attach path-item level metadata shared by every method of a route."""
    metadata = PathMetadata(
        summary=summary,
        description=description,
        servers=list(servers),
        parameters=list(parameters),
    )

    def decorator(endpoint: F) -> F:
        setattr(endpoint, PATH_ATTR, metadata)
        return endpoint

    return decorator


def map_template_route(
    app: FastAPI,
    template: str,
    endpoint: Callable[..., Any],
    methods: Iterable[str] = ("GET",),
    **route_kwargs: Any,
) -> PathTemplateMapping:
    """Register an RFC6570 *template* on the router.

    The template's query expansions are documented as query parameters of
    the collected operation.
    """
    mapping = map_path_template(template)
    setattr(endpoint, TEMPLATE_ATTR, mapping)
    app.add_api_route(
        mapping.router_pattern, endpoint, methods=list(methods), **route_kwargs
    )
    logger.debug(
        "Mapped template '%s' to route '%s'", template, mapping.router_pattern
    )
    return mapping


def _route_methods(route: Route) -> list[str]:
    methods = sorted(route.methods or ())
    # Starlette adds HEAD to every GET route
    if "GET" in methods and "HEAD" in methods:
        methods.remove("HEAD")
    return methods


def _endpoint_path_types(route: Route) -> dict[str, Any]:
    """Path parameter annotations FastAPI resolved for the endpoint."""
    if not isinstance(route, APIRoute):
        return {}
    return {
        field.alias: field.field_info.annotation
        for field in route.dependant.path_params
        if field.field_info.annotation is not None
    }


def _path_parameters(route: Route, declared: set[str]) -> list[ParameterSpec]:
    endpoint_types = _endpoint_path_types(route)
    result: list[ParameterSpec] = []
    for name, convertor in route.param_convertors.items():
        if name in declared:
            continue
        tp: Any = endpoint_types.get(name, str)
        for convertor_type, python_type in _CONVERTOR_TYPES:
            if isinstance(convertor, convertor_type):
                tp = python_type
                break
        result.append(ParameterSpec(name=name, location="path", type=tp, required=True))
    return result


def _default_spec(route: Route, method: str) -> OperationSpec:
    summary = route.name.replace("_", " ").title() if route.name else None
    operation_id = f"{route.name}_{method.lower()}" if route.name else None
    tags: list[str] = []
    if isinstance(route, APIRoute):
        tags = [str(t) for t in route.tags]
        summary = route.summary or summary
    return OperationSpec(operation_id=operation_id, summary=summary, tags=tags)


def collect_routes(
    app: FastAPI,
    descriptor: OpenApiDescriptor,
    *,
    include_unannotated: bool = True,
) -> dict[tuple[str, str], RouteOptions]:
    """Turn ``app.routes`` into the ``(pattern, method) -> RouteOptions`` map.

    Path parameters the endpoint does not declare are added from the route's
    convertors; template routes also gain their query variables.
    """
    annotator = OperationAnnotator(descriptor.inferencer, descriptor.resolver)
    routes: dict[tuple[str, str], RouteOptions] = {}

    for route in app.routes:
        if not isinstance(route, Route) or not route.include_in_schema:
            continue
        endpoint = route.endpoint
        spec: OperationSpec | None = getattr(endpoint, OPERATION_ATTR, None)
        if spec is None and not include_unannotated:
            continue

        mapping: PathTemplateMapping | None = getattr(endpoint, TEMPLATE_ATTR, None)
        pattern = mapping.openapi_pattern if mapping is not None else route.path_format
        options = RouteOptions(
            pattern=pattern, path_metadata=getattr(endpoint, PATH_ATTR, None)
        )

        for method in _route_methods(route):
            method_spec = spec if spec is not None else _default_spec(route, method)
            declared = {
                d.name
                for d in method_spec.declarations
                if isinstance(d, ParameterSpec)
            }
            extra: list[Any] = _path_parameters(route, declared)
            if mapping is not None:
                extra.extend(
                    ParameterSpec(name=name, location="query")
                    for name in mapping.query_parameters
                    if name not in declared
                )
            if extra:
                method_spec = dataclasses.replace(
                    method_spec, declarations=[*method_spec.declarations, *extra]
                )
            options.openapi[method.lower()] = annotator.annotate(method_spec)

        if options.openapi:
            routes[(pattern, "*")] = options
    return routes


def _metadata_map(
    descriptor: OpenApiDescriptor,
    entries: Mapping[tuple[str, str], OperationSource] | None,
) -> dict[tuple[str, str], OperationMetadata]:
    annotator = OperationAnnotator(descriptor.inferencer, descriptor.resolver)
    result: dict[tuple[str, str], OperationMetadata] = {}
    for key, value in (entries or {}).items():
        if isinstance(value, OperationSpec):
            value = annotator.annotate(value)
        result[key] = value
    return result


def install_openapi(
    app: FastAPI,
    descriptor: OpenApiDescriptor,
    *,
    components: ComponentSet | None = None,
    spec_version: str | None = None,
    webhooks: Mapping[tuple[str, str], OperationSource] | None = None,
    callbacks: Mapping[tuple[str, str], OperationSource] | None = None,
    security_schemes: Mapping[str, AuthSchemeOptions] | None = None,
    yaml_url: str | None = None,
    use_app_info: bool = True,
) -> None:
    """Serve the descriptor's document from ``app.openapi``.

    The document is generated on first request and cached on the app, the
    same way FastAPI caches its own schema.
    """

    def build() -> None:
        if descriptor.has_been_generated:
            return
        if use_app_info:
            descriptor.set_info(
                title=app.title, version=app.version, description=app.description
            )
        # components first: route declarations resolve against them
        if components:
            descriptor.build_components(components)
        descriptor.generate(
            routes=collect_routes(app, descriptor),
            webhooks=_metadata_map(descriptor, webhooks),
            callbacks=_metadata_map(descriptor, callbacks),
            security_schemes=security_schemes,
        )

    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        build()
        app.openapi_schema = descriptor.to_dict(spec_version)
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]

    if yaml_url:

        async def openapi_yaml(request: Request) -> Response:
            build()
            return Response(
                descriptor.to_yaml(spec_version), media_type="application/yaml"
            )

        app.add_route(yaml_url, openapi_yaml, include_in_schema=False)
