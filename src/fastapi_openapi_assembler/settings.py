"""Per-descriptor configuration."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi_openapi_assembler.component import ConflictPolicy


@dataclass(frozen=True)
class OpenApiSettings:
    """Immutable knobs consumed by the descriptor and operation builder."""

    title: str = "API"
    version: str = "1.0.0"
    description: str | None = None
    error_schema_name: str = "ErrorResponse"
    error_content_types: tuple[str, ...] = ("application/json",)
    default_response_content_types: tuple[str, ...] = ("application/json",)
    auto_error_responses: bool = True
    default_conflict_policy: ConflictPolicy = ConflictPolicy.OVERWRITE
    default_spec_version: str = "3.1"
