"""Supported OpenAPI output versions."""

from __future__ import annotations

from enum import Enum

from fastapi_openapi_assembler.exceptions import UnsupportedSpecVersionError


class SpecVersion(Enum):
    """OpenAPI spec families the serializer can emit."""

    V2_0 = "2.0"
    V3_0 = "3.0"
    V3_1 = "3.1"
    V3_2 = "3.2"

    @property
    def version_string(self) -> str:
        """Value written to the ``openapi`` / ``swagger`` root key."""
        _STRINGS = {
            "2.0": "2.0",
            "3.0": "3.0.4",
            "3.1": "3.1.2",
            "3.2": "3.2.0",
        }
        return _STRINGS[self.value]

    @property
    def is_swagger(self) -> bool:
        return self is SpecVersion.V2_0

    @property
    def is_3_0(self) -> bool:
        return self is SpecVersion.V3_0

    @classmethod
    def parse(cls, value: str | SpecVersion) -> SpecVersion:
        """Normalize ``"v3.0.1"``, ``"3.1"``, ``"2.0"`` and similar forms."""
        if isinstance(value, SpecVersion):
            return value
        text = str(value).strip()
        if text[:1] in ("v", "V"):
            text = text[1:]
        family = _ACCEPTED.get(text)
        if family is None:
            raise UnsupportedSpecVersionError(str(value))
        return cls(family)


_ACCEPTED = {
    "2.0": "2.0",
    "2.0.0": "2.0",
    "3.0": "3.0",
    "3.0.0": "3.0",
    "3.0.1": "3.0",
    "3.0.2": "3.0",
    "3.0.3": "3.0",
    "3.0.4": "3.0",
    "3.1": "3.1",
    "3.1.0": "3.1",
    "3.1.1": "3.1",
    "3.1.2": "3.1",
    "3.2": "3.2",
    "3.2.0": "3.2",
}
