"""
Shared components and security example.

Demonstrates:
- Reusable response, header and parameter components
- Referencing them from operations
- Global and per-operation security
- Emitting the same document as OpenAPI 3.0 and Swagger 2.0
"""

from typing import Annotated

from fastapi import FastAPI

from fastapi_openapi_assembler import (
    ApiKeyAuthOptions,
    BearerAuthOptions,
    HeaderProps,
    OpenApiDescriptor,
    OpenApiSettings,
    ParameterProps,
    ParameterRef,
    RequestBodySpec,
    ResponseHeaderRef,
    ResponseProps,
    ResponseRef,
    ResponseSpec,
    SchemaProps,
    discover_components,
    install_openapi,
    openapi_headers,
    openapi_operation,
    openapi_parameters,
    openapi_responses,
    openapi_schema,
)


@openapi_schema()
class Problem:
    title: Annotated[str, SchemaProps(required=True)]
    detail: str | None


@openapi_schema(description="A customer order")
class Order:
    id: Annotated[int, SchemaProps(required=True, read_only=True)]
    items: Annotated[list[str], SchemaProps(min_items=1)]
    total: Annotated[float, SchemaProps(minimum=0)]


@openapi_responses()
class Replies:
    not_found: Annotated[Problem, ResponseProps(description="Missing", key="NotFound")]


@openapi_headers()
class RateHeaders:
    remaining: Annotated[int, HeaderProps(key="RateRemaining")]


@openapi_parameters()
class Paging:
    page: Annotated[int, ParameterProps(description="1-based page number")]
    tenant: Annotated[str, ParameterProps(location="header", name="X-Tenant")]


app = FastAPI(title="Orders", version="2.0.0")


@app.get("/orders")
@openapi_operation(
    operation_id="listOrders",
    tags=("orders",),
    declarations=[
        ParameterRef("page"),
        ParameterRef("tenant"),
        ResponseSpec(200, "A page of orders", schema=list[Order]),
        ResponseHeaderRef(200, "X-Rate-Remaining", "RateRemaining"),
    ],
)
async def list_orders():
    return []


@app.post("/orders")
@openapi_operation(
    operation_id="createOrder",
    tags=("orders",),
    security=[{"apiKey": []}],
    declarations=[
        RequestBodySpec(Order, required=True),
        ResponseSpec(201, "Created", schema=Order),
    ],
)
async def create_order():
    return {}


@app.get("/orders/{order_id}")
@openapi_operation(
    operation_id="getOrder",
    tags=("orders",),
    declarations=[
        ResponseSpec(200, "The order", schema=Order),
        ResponseRef(404, "NotFound"),
    ],
)
async def get_order(order_id: int):
    return {}


descriptor = OpenApiDescriptor(settings=OpenApiSettings(default_spec_version="3.0"))
descriptor.add_server("https://api.example.com/v2", "Production")
descriptor.add_tag("orders", "Order management")

install_openapi(
    app,
    descriptor,
    components=discover_components(Problem, Order, Replies, RateHeaders, Paging),
    security_schemes={
        "bearer": BearerAuthOptions(global_scheme=True),
        "apiKey": ApiKeyAuthOptions(name="X-Api-Key"),
    },
    yaml_url="/openapi.yaml",
)


if __name__ == "__main__":
    # Build once and print the Swagger 2.0 rendition of the same document
    app.openapi()
    print(descriptor.to_yaml("2.0"))
    result = descriptor.round_trip("3.1")
    for message in result.errors + result.warnings:
        print(message)
