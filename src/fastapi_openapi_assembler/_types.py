"""Shared type aliases and fixed-width numeric marker types."""

from __future__ import annotations

from typing import Any, NewType

# Python has a single int/float; these markers select an explicit OpenAPI format
Int32 = NewType("Int32", int)
Int64 = NewType("Int64", int)
Float32 = NewType("Float32", float)

JsonValue = Any
SecurityRequirement = dict[str, list[str]]
