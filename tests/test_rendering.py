"""Template rendering: output, control flow, loops, variables and includes."""

from __future__ import annotations

import pytest

from quire import (
    DictLoader,
    Environment,
    TemplateNotFoundError,
    TemplateRuntimeError,
    UndefinedError,
)
from quire.environment.exceptions import ErrorCode

from .conftest import assert_contains


class TestOutput:
    """Variable output and stringification."""

    def test_simple_variable(self, env):
        assert env.from_string("Hello, {{ name }}!").render(name="World") == "Hello, World!"

    def test_undefined_renders_empty(self, env):
        assert env.from_string("[{{ missing }}][{{ page.missing.deeper }}]").render() == "[][]"

    def test_nil_and_booleans(self, env):
        tmpl = env.from_string("{{ a }}|{{ b }}|{{ c }}")
        assert tmpl.render(a=None, b=True, c=False) == "|true|false"

    def test_list_concatenates(self, env):
        assert env.from_string("{{ items }}").render(items=["a", "b", 3]) == "ab3"

    def test_mapping_and_index_lookup(self, env):
        tmpl = env.from_string("{{ page.author.name }} {{ items[1] }} {{ items.last }}")
        assert tmpl.render(page={"author": {"name": "Ada"}}, items=[1, 2, 3]) == "Ada 2 3"

    def test_size_on_collections(self, env):
        tmpl = env.from_string("{{ items.size }} {{ text.size }} {{ mapping.size }}")
        assert tmpl.render(items=[1, 2], text="abc", mapping={"a": 1}) == "2 3 1"

    def test_mapping_key_shadows_size(self, env):
        assert env.from_string("{{ d.size }}").render(d={"size": "XL"}) == "XL"

    def test_keyword_arguments_override_mapping(self, env):
        assert env.from_string("{{ x }}").render({"x": 1}, x=2) == "2"

    def test_whitespace_control(self, env):
        tmpl = env.from_string("<ul>\n  {%- for x in items %}\n  <li>{{ x }}</li>\n  {%- endfor %}\n</ul>")
        assert tmpl.render(items=[1, 2]) == "<ul>\n  <li>1</li>\n  <li>2</li>\n</ul>"

    def test_raw(self, env):
        assert env.from_string("{% raw %}{{ x }}{% endraw %}").render(x=1) == "{{ x }}"

    def test_comment(self, env):
        assert env.from_string("a{% comment %}{{ x }}{% endcomment %}b{% # note %}").render() == "ab"


class TestConditionals:
    """if / unless / case and Liquid truthiness."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "no"),
            (False, "no"),
            (True, "yes"),
            (0, "yes"),
            ("", "yes"),
            ([], "yes"),
        ],
    )
    def test_only_nil_and_false_are_falsy(self, env, value, expected):
        tmpl = env.from_string("{% if v %}yes{% else %}no{% endif %}")
        assert tmpl.render(v=value) == expected

    def test_undefined_is_falsy(self, env):
        assert env.from_string("{% if missing %}yes{% else %}no{% endif %}").render() == "no"

    def test_elsif_chain(self, env):
        tmpl = env.from_string("{% if n > 10 %}big{% elsif n > 5 %}mid{% else %}small{% endif %}")
        assert [tmpl.render(n=n) for n in (20, 7, 1)] == ["big", "mid", "small"]

    def test_unless(self, env):
        tmpl = env.from_string("{% unless draft %}published{% else %}draft{% endunless %}")
        assert tmpl.render(draft=False) == "published"
        assert tmpl.render(draft=True) == "draft"

    def test_contains(self, env):
        tmpl = env.from_string(
            "{% if page.tags contains 'python' %}py{% endif %}"
            "{% if page.title contains 'Hello' %}hi{% endif %}"
        )
        assert tmpl.render(page={"tags": ["python"], "title": "Hello world"}) == "pyhi"

    def test_empty_keyword(self, env):
        tmpl = env.from_string("{% if items == empty %}none{% else %}some{% endif %}")
        assert tmpl.render(items=[]) == "none"
        assert tmpl.render(items=[1]) == "some"

    def test_and_or_right_associative(self, env):
        # false or (true and false) -> false
        tmpl = env.from_string("{% if a or b and c %}yes{% else %}no{% endif %}")
        assert tmpl.render(a=False, b=True, c=False) == "no"

    def test_true_is_not_one(self, env):
        assert env.from_string("{% if x == 1 %}eq{% endif %}").render(x=True) == ""

    def test_case(self, env):
        tmpl = env.from_string(
            "{% case style %}{% when 'dark', 'night' %}D{% when 'light' %}L{% else %}?{% endcase %}"
        )
        assert [tmpl.render(style=s) for s in ("night", "light", "sepia")] == ["D", "L", "?"]

    def test_comparing_incompatible_types_is_runtime_error(self, env):
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("{% if a < b %}x{% endif %}", name="cmp.html").render(a=1, b="x")
        assert exc_info.value.template_name == "cmp.html"
        assert exc_info.value.lineno == 1


class TestLoops:
    """for loops, forloop variables, break/continue."""

    def test_for_over_list(self, env):
        assert env.from_string("{% for x in items %}{{ x }},{% endfor %}").render(items=[1, 2]) == "1,2,"

    def test_for_else_on_empty(self, env):
        tmpl = env.from_string("{% for x in items %}{{ x }}{% else %}none{% endfor %}")
        assert tmpl.render(items=[]) == "none"
        assert tmpl.render() == "none"

    def test_forloop_variables(self, env):
        tmpl = env.from_string(
            "{% for x in items %}{{ forloop.index }}/{{ forloop.length }}"
            "{% if forloop.first %}F{% endif %}{% if forloop.last %}L{% endif %} {% endfor %}"
        )
        assert tmpl.render(items=["a", "b", "c"]) == "1/3F 2/3 3/3L "

    def test_rindex(self, env):
        tmpl = env.from_string("{% for x in items %}{{ forloop.rindex }}{{ forloop.rindex0 }} {% endfor %}")
        assert tmpl.render(items=[1, 2]) == "21 10 "

    def test_nested_parentloop(self, env):
        tmpl = env.from_string(
            "{% for a in outer %}{% for b in inner %}"
            "{{ forloop.parentloop.index }}.{{ forloop.index }} "
            "{% endfor %}{% endfor %}"
        )
        assert tmpl.render(outer=[1, 2], inner=[1, 2]) == "1.1 1.2 2.1 2.2 "

    def test_limit_offset_reversed(self, env):
        tmpl = env.from_string("{% for x in (1..6) limit:3 offset:1 reversed %}{{ x }}{% endfor %}")
        assert tmpl.render() == "432"

    def test_range_with_variable(self, env):
        assert env.from_string("{% for i in (1..n) %}{{ i }}{% endfor %}").render(n=3) == "123"

    def test_break_and_continue(self, env):
        tmpl = env.from_string(
            "{% for x in items %}{% if x == 2 %}{% continue %}{% endif %}"
            "{% if x == 4 %}{% break %}{% endif %}{{ x }}{% endfor %}"
        )
        assert tmpl.render(items=[1, 2, 3, 4, 5]) == "13"

    def test_mapping_iterates_pairs(self, env):
        tmpl = env.from_string("{% for pair in d %}{{ pair[0] }}={{ pair[1] }};{% endfor %}")
        assert tmpl.render(d={"a": 1, "b": 2}) == "a=1;b=2;"

    def test_loop_variable_does_not_leak(self, env):
        assert env.from_string("{% for x in items %}{% endfor %}[{{ x }}]").render(items=[1]) == "[]"


class TestVariables:
    """assign and capture write to the template scope."""

    def test_assign_with_filter(self, env):
        tmpl = env.from_string("{% assign n = items | size %}{{ n }}")
        assert tmpl.render(items=[1, 2, 3]) == "3"

    def test_assign_inside_loop_is_visible_after(self, env):
        tmpl = env.from_string("{% for x in items %}{% assign last = x %}{% endfor %}{{ last }}")
        assert tmpl.render(items=[1, 2]) == "2"

    def test_capture(self, env):
        tmpl = env.from_string("{% capture greeting %}Hi {{ name }}{% endcapture %}[{{ greeting }}]")
        assert tmpl.render(name="Ada") == "[Hi Ada]"

    def test_assign_does_not_mutate_caller_context(self, env):
        context = {"x": 1}
        env.from_string("{% assign x = 2 %}").render(context)
        assert context == {"x": 1}

    def test_render_is_repeatable(self, env):
        tmpl = env.from_string("{% assign total = total | plus: 1 %}{{ total }}")
        assert tmpl.render(total=1) == tmpl.render(total=1) == "2"


class TestIncludes:
    """include with parameters, nesting and depth limit."""

    def test_include_with_params(self, env_with_loader):
        tmpl = env_with_loader.from_string("{% include greeting.html name='Ada' %}")
        assert tmpl.render() == "Hello Ada!"

    def test_include_param_from_variable(self, env_with_loader):
        tmpl = env_with_loader.from_string("{% include skills.html items=site.data.skills %}")
        skills = [{"name": "Python", "level": 5}, {"name": "Go", "level": 3}]
        assert tmpl.render(site={"data": {"skills": skills}}) == "Python:5,Go:3"

    def test_include_sees_caller_scope(self):
        env = Environment(loader=DictLoader({"p.html": "{{ title }}"}))
        assert env.from_string("{% include p.html %}").render(title="T") == "T"

    def test_include_params_scoped_to_include(self, env_with_loader):
        tmpl = env_with_loader.from_string("{% include greeting.html name='x' %}[{{ include.name }}]")
        assert tmpl.render() == "Hello x![]"

    def test_empty_tags_render_no_list(self, env_with_loader):
        tmpl = env_with_loader.from_string("{% include tags.html tags=page.tags %}")
        assert tmpl.render(page={"tags": []}) == ""
        assert tmpl.render(page={"tags": ["a"]}) == "<ul><li>a</li></ul>"

    def test_nested_include_in_subdirectory(self, env_with_loader):
        tmpl = env_with_loader.from_string("{% include nested/footer.html %}")
        assert tmpl.render() == "<footer>Hello footer!</footer>"

    def test_missing_include(self, env_with_loader):
        with pytest.raises(TemplateNotFoundError) as exc_info:
            env_with_loader.from_string("\n{% include nope.html %}", name="page.html").render()
        assert "nope.html" in str(exc_info.value)
        assert "page.html:2" in str(exc_info.value)

    def test_circular_include_hits_depth_limit(self, env_with_loader):
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env_with_loader.from_string("{% include loop.html %}").render()
        assert exc_info.value.code is ErrorCode.INCLUDE_DEPTH
        assert "loop.html" in exc_info.value.message

    def test_custom_depth_limit(self):
        env = Environment(
            loader=DictLoader({"a.html": "{% include b.html %}", "b.html": "B"}),
            max_include_depth=1,
        )
        with pytest.raises(TemplateRuntimeError):
            env.from_string("{% include a.html %}").render()

    def test_error_inside_include_reports_stack(self):
        env = Environment(loader=DictLoader({"bad.html": "ok\n{{ x | nosuch }}"}))
        with pytest.raises(TemplateRuntimeError) as exc_info:
            env.from_string("line\n{% include bad.html %}", name="page.html").render()
        err = exc_info.value
        assert err.template_name == "bad.html"
        assert err.lineno == 2
        assert ("page.html", 2) in err.template_stack
        assert_contains(err.format_compact(), "bad.html:2", "page.html:2")


class TestStrictVariables:
    """strict_variables turns undefined lookups into errors."""

    def test_undefined_raises(self, env_strict):
        with pytest.raises(UndefinedError) as exc_info:
            env_strict.from_string("{{ titel }}", name="t.html").render(title="x")
        assert exc_info.value.name == "titel"
        assert "title" in str(exc_info.value)

    def test_undefined_attribute_raises(self, env_strict):
        with pytest.raises(UndefinedError) as exc_info:
            env_strict.from_string("{{ page.nope }}").render(page={})
        assert exc_info.value.name == "page.nope"

    def test_defined_values_render(self, env_strict):
        assert env_strict.from_string("{{ a.b }}").render(a={"b": 1}) == "1"
