"""
Basic usage example of fastapi-openapi-assembler.

Demonstrates:
- Declaring a schema component on a plain class
- Describing a route with openapi_operation
- Serving the assembled document as JSON and YAML
"""

from typing import Annotated

from fastapi import FastAPI

from fastapi_openapi_assembler import (
    OpenApiDescriptor,
    ParameterSpec,
    ResponseSpec,
    SchemaProps,
    discover_components,
    install_openapi,
    openapi_operation,
    openapi_schema,
)

app = FastAPI(title="Basic Assembler Example", version="1.0.0")


@openapi_schema(description="A book in the catalogue")
class Book:
    isbn: Annotated[str, SchemaProps(required=True, pattern=r"^\d{13}$")]
    title: Annotated[str, SchemaProps(required=True, max_length=200)]
    authors: list[str]
    pages: int | None


BOOKS = {"9780262033848": {"isbn": "9780262033848", "title": "CLRS", "authors": []}}


@app.get("/")
async def index():
    """Routes without declarations still get an operation."""
    return {"message": "Hello, World!"}


@app.get("/books/{isbn}")
@openapi_operation(
    operation_id="getBook",
    summary="Fetch a book",
    tags=("books",),
    declarations=[
        ParameterSpec("isbn", "path", description="13 digit ISBN"),
        ResponseSpec(200, "The book", schema=Book),
    ],
)
async def get_book(isbn: str):
    return BOOKS[isbn]


install_openapi(
    app,
    OpenApiDescriptor(),
    components=discover_components(Book),
    spec_version="3.1",
    yaml_url="/openapi.yaml",
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

    # Test with:
    # curl http://localhost:8000/openapi.json
    # curl http://localhost:8000/openapi.yaml
