from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

PROBLEM_REF = "#/components/schemas/ProblemDetail"


def custom_openapi(app: FastAPI):
    """Generate the OpenAPI schema with RFC 7807 bodies for 422 responses."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    for path in openapi_schema.get("paths", {}).values():
        for operation in path.values():
            unprocessable = operation.get("responses", {}).get("422")
            if not unprocessable:
                continue
            schema = (
                unprocessable.get("content", {})
                .get("application/json", {})
                .get("schema", {})
            )
            if "HTTPValidationError" in schema.get("$ref", ""):
                unprocessable["content"] = {
                    "application/problem+json": {"schema": {"$ref": PROBLEM_REF}}
                }

    schemas = openapi_schema.get("components", {}).get("schemas", {})
    schemas.pop("HTTPValidationError", None)
    schemas.pop("ValidationError", None)

    app.openapi_schema = openapi_schema
    return app.openapi_schema
