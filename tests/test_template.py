import pytest

from brex_mcp.resources.template import ResourceTemplate, compile_template


class TestCompileTemplate:
    def test_optional_segment_and_slashes(self):
        regex, names = compile_template("brex://expenses{/id}")
        assert names == ("id",)
        assert regex.pattern == r"^brex:\/\/expenses(?:\/([^\/]+))?$"

    def test_template_without_parameters(self):
        regex, names = compile_template("brex://docs/usage")
        assert names == ()
        assert regex.groups == 0

    def test_parameter_in_the_middle(self):
        _, names = compile_template("brex://accounts/cash{/id}/statements")
        assert names == ("id",)


class TestResourceTemplate:
    def test_match_with_and_without_id(self):
        template = ResourceTemplate("brex://expenses/card{/id}")
        assert template.match("brex://expenses/card/abc123")
        assert template.parse("brex://expenses/card/abc123") == {"id": "abc123"}
        assert template.match("brex://expenses/card")
        assert template.parse("brex://expenses/card") == {}

    def test_extra_segment_does_not_match(self):
        template = ResourceTemplate("brex://expenses{/id}")
        assert not template.match("brex://expenses/abc/def")
        assert template.parse("brex://expenses/abc/def") == {}

    def test_match_is_anchored(self):
        template = ResourceTemplate("brex://expenses{/id}")
        assert not template.match("xbrex://expenses")

    def test_empty_segment_does_not_match(self):
        template = ResourceTemplate("brex://budgets{/id}")
        assert not template.match("brex://budgets/")

    def test_inner_parameter(self):
        template = ResourceTemplate("brex://accounts/cash{/id}/statements")
        assert template.parse("brex://accounts/cash/acc_1/statements") == {"id": "acc_1"}
        assert template.parse("brex://accounts/cash/statements") == {}
        assert template.match("brex://accounts/cash/statements")

    @pytest.mark.parametrize(
        "uri",
        [
            "brex://budgets",
            "brex://budgets/b_1",
            "brex://budgets/b_1/extra",
            "brex://spend_limits/s_1",
            "",
        ],
    )
    def test_parse_is_empty_exactly_when_no_match_or_no_params(self, uri):
        template = ResourceTemplate("brex://budgets{/id}")
        parsed = template.parse(uri)
        if template.match(uri):
            assert set(parsed) <= {"id"}
        else:
            assert parsed == {}

    def test_unescaped_metacharacters_keep_regex_meaning(self):
        # "." in the literal part matches any character
        template = ResourceTemplate("brex://a.b{/id}")
        assert template.match("brex://a.b/1")
        assert template.match("brex://axb/1")

    def test_templates_compare_by_pattern(self):
        assert ResourceTemplate("brex://budgets{/id}") == ResourceTemplate(
            "brex://budgets{/id}"
        )
