"""Integration tests for serving the assembled document from FastAPI."""

from __future__ import annotations

from typing import Annotated, Any

import pytest
import yaml
from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse

from fastapi_openapi_assembler.annotated import (
    OperationSpec,
    ParameterRef,
    RequestBodySpec,
    ResponseSpec,
)
from fastapi_openapi_assembler.components.declarations import (
    ParameterProps,
    discover_components,
    openapi_parameters,
)
from fastapi_openapi_assembler.components.security import BearerAuthOptions
from fastapi_openapi_assembler.descriptor import OpenApiDescriptor
from fastapi_openapi_assembler.exceptions import ReferenceNotFoundError
from fastapi_openapi_assembler.integration import (
    OPERATION_ATTR,
    collect_routes,
    install_openapi,
    map_template_route,
    openapi_operation,
    openapi_path,
)
from fastapi_openapi_assembler.models import Parameter, Schema
from fastapi_openapi_assembler.operations import OperationMetadata


class Note:
    text: str


@openapi_parameters()
class CommonParameters:
    trace_id: Annotated[str, ParameterProps(location="header", name="X-Trace-Id")]


def _notes_app() -> FastAPI:
    app = FastAPI(title="Notes", version="0.3.0", description="Note keeping")

    @app.get("/notes/{note_id}", tags=["notes"])
    async def read_note(note_id: int) -> dict[str, Any]:
        return {"id": note_id}

    @app.post("/notes")
    @openapi_operation(
        operation_id="createNote",
        summary="Create a note",
        tags=("notes",),
        declarations=[
            ParameterRef("trace_id"),
            RequestBodySpec(Note, required=True),
            ResponseSpec(201, "Created", schema=Note),
        ],
    )
    async def create_note() -> dict[str, Any]:
        return {}

    @app.get("/hidden", include_in_schema=False)
    async def hidden() -> dict[str, Any]:
        return {}

    return app


def _install(app: FastAPI, **kwargs: Any) -> OpenApiDescriptor:
    descriptor = OpenApiDescriptor()
    install_openapi(
        app, descriptor, components=discover_components(CommonParameters), **kwargs
    )
    return descriptor


class TestInstallOpenapi:
    async def test_app_info_and_defaults(self, fetch_openapi: Any) -> None:
        app = _notes_app()
        _install(app, spec_version="3.1")
        schema = await fetch_openapi(app)
        assert schema["openapi"] == "3.1.2"
        assert schema["info"] == {
            "title": "Notes",
            "description": "Note keeping",
            "version": "0.3.0",
        }
        assert "/hidden" not in schema["paths"]
        assert "/openapi.json" not in schema["paths"]

    async def test_unannotated_route_gets_default_operation(
        self, fetch_openapi: Any
    ) -> None:
        app = _notes_app()
        _install(app)
        schema = await fetch_openapi(app)
        op = schema["paths"]["/notes/{note_id}"]["get"]
        assert op["operationId"] == "read_note_get"
        assert op["summary"] == "Read Note"
        assert op["tags"] == ["notes"]
        assert op["parameters"] == [
            {
                "name": "note_id",
                "in": "path",
                "required": True,
                "schema": {"type": "integer", "format": "int64"},
            }
        ]
        assert sorted(op["responses"]) == ["200", "400", "422"]

    async def test_annotated_route(self, fetch_openapi: Any) -> None:
        app = _notes_app()
        _install(app, spec_version="3.0")
        schema = await fetch_openapi(app)
        op = schema["paths"]["/notes"]["post"]
        assert op["operationId"] == "createNote"
        assert op["parameters"] == [{"$ref": "#/components/parameters/trace_id"}]
        body = op["requestBody"]
        assert body["required"] is True
        assert body["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/Note"
        }
        assert sorted(op["responses"]) == ["201", "400", "406", "415", "422"]
        components = schema["components"]
        assert components["parameters"]["trace_id"]["name"] == "X-Trace-Id"
        assert "Note" in components["schemas"]
        assert "ErrorResponse" in components["schemas"]

    async def test_missing_parameter_component(self) -> None:
        app = _notes_app()
        install_openapi(app, OpenApiDescriptor())
        with pytest.raises(ReferenceNotFoundError, match="trace_id"):
            app.openapi()

    async def test_schema_cached_on_app(self) -> None:
        app = _notes_app()
        _install(app)
        assert app.openapi() is app.openapi()
        assert app.openapi_schema is not None

    async def test_security_and_webhooks(self, fetch_openapi: Any) -> None:
        app = _notes_app()
        _install(
            app,
            security_schemes={"bearer": BearerAuthOptions(global_scheme=True)},
            webhooks={
                ("noteShared", "post"): OperationSpec(
                    operation_id="noteShared",
                    declarations=[ResponseSpec(200, "Acknowledged")],
                ),
                ("noteDeleted", "post"): OperationMetadata(operation_id="deleted"),
            },
        )
        schema = await fetch_openapi(app)
        assert schema["security"] == [{"bearer": []}]
        bearer = schema["components"]["securitySchemes"]["bearer"]
        assert bearer == {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        assert set(schema["webhooks"]) == {"noteShared", "noteDeleted"}

    async def test_swagger_output(self, fetch_openapi: Any) -> None:
        app = _notes_app()
        _install(app, spec_version="2.0")
        schema = await fetch_openapi(app)
        assert schema["swagger"] == "2.0"
        assert "/notes/{note_id}" in schema["paths"]

    async def test_yaml_route(self, fetch_openapi: Any) -> None:
        app = _notes_app()
        _install(app, spec_version="3.0", yaml_url="/openapi.yaml")
        text = await fetch_openapi(app, "/openapi.yaml")
        data = yaml.safe_load(text)
        assert data["openapi"] == "3.0.4"
        assert "/openapi.yaml" not in data["paths"]


class TestCollectRoutes:
    def test_exclude_unannotated(self) -> None:
        app = _notes_app()
        descriptor = OpenApiDescriptor()
        descriptor.build_components(discover_components(CommonParameters))
        routes = collect_routes(app, descriptor, include_unannotated=False)
        assert list(routes) == [("/notes", "*")]
        assert list(routes[("/notes", "*")].openapi) == ["post"]

    def test_starlette_route_uses_convertor_type(self) -> None:
        app = FastAPI()

        async def raw(request: Request) -> JSONResponse:
            return JSONResponse({})

        app.add_route("/raw/{count:int}", raw)
        routes = collect_routes(app, OpenApiDescriptor())
        op = routes[("/raw/{count}", "*")].openapi["get"]
        (param,) = op.parameters
        assert isinstance(param, Parameter)
        assert param.schema == Schema(type="integer", format="int64")

    def test_decorator_attaches_spec(self) -> None:
        @openapi_operation(OperationSpec(summary="Base"), operation_id="merged")
        async def endpoint() -> None:
            return None

        spec = getattr(endpoint, OPERATION_ATTR)
        assert spec.summary == "Base"
        assert spec.operation_id == "merged"

    async def test_template_route(self, fetch_openapi: Any) -> None:
        app = FastAPI()

        @openapi_path(summary="Stored files")
        async def read_file(path: str) -> dict[str, Any]:
            return {"path": path}

        mapping = map_template_route(app, "/files/{+path}{?download}", read_file)
        assert mapping.router_pattern == "/files/{path:path}"
        _install(app)

        schema = await fetch_openapi(app)
        item = schema["paths"]["/files/{+path}"]
        assert item["summary"] == "Stored files"
        names = [(p["name"], p["in"]) for p in item["get"]["parameters"]]
        assert names == [("path", "path"), ("download", "query")]
