"""Tests for RFC6570 path template mapping."""

from __future__ import annotations

import pytest

from fastapi_openapi_assembler.exceptions import PathTemplateError
from fastapi_openapi_assembler.templates import (
    build_template_variables,
    map_path_template,
    template_variable_names,
)


class TestMapPathTemplate:
    def test_simple_variable_is_single_segment(self) -> None:
        mapping = map_path_template("/orders/{id}")
        assert mapping.openapi_pattern == "/orders/{id}"
        assert mapping.router_pattern == "/orders/{id}"
        assert mapping.query_parameters == ()

    def test_reserved_expansion_is_catch_all(self) -> None:
        mapping = map_path_template("/files/{+path}")
        assert mapping.router_pattern == "/files/{path:path}"

    def test_explode_is_catch_all(self) -> None:
        mapping = map_path_template("/files/{path*}")
        assert mapping.router_pattern == "/files/{path:path}"

    def test_query_expansion_is_stripped(self) -> None:
        mapping = map_path_template("/search{?q,limit}")
        assert mapping.openapi_pattern == "/search"
        assert mapping.router_pattern == "/search"
        assert mapping.query_parameters == ("q", "limit")

    def test_continuation_query_expansion(self) -> None:
        mapping = map_path_template("/search/{kind}{?q}{&page}")
        assert mapping.router_pattern == "/search/{kind}"
        assert mapping.query_parameters == ("q", "page")

    @pytest.mark.parametrize(
        ("template", "message"),
        [
            ("/orders/{id", "Unterminated"),
            ("/orders/{a,b}", "Multiple variables"),
            ("/orders/{}", "Empty"),
            ("/orders/{#frag}", "fragment"),
            ("/orders/{id:int}", "constraint"),
            ("/files/{+}", "Reserved"),
            ("/files/{*}", "Explode"),
            ("   ", "null or empty"),
            ("{?q}", "empty path"),
        ],
    )
    def test_rejected_templates(self, template: str, message: str) -> None:
        with pytest.raises(PathTemplateError, match=message) as info:
            map_path_template(template)
        assert info.value.template == template


class TestTemplateVariables:
    def test_variable_names_in_order(self) -> None:
        names = template_variable_names("/a/{id}/{+rest}{?q,limit}")
        assert names == ["id", "rest", "q", "limit"]

    def test_blank_template_has_no_variables(self) -> None:
        assert template_variable_names("") == []

    def test_build_variables_fills_missing_with_none(self) -> None:
        values = build_template_variables({"id": "7"}, "/a/{id}{?q}")
        assert values == {"id": "7", "q": None}
