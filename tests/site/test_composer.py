"""Page composition through layout chains."""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from quire import DictLoader, Environment, TemplateRuntimeError
from quire.site import (
    ContentDocument,
    DataTables,
    LayoutCycleError,
    LayoutSet,
    MissingIncludeDataError,
    MissingLayoutError,
    PageComposer,
)

from ..conftest import DEFAULT_LAYOUT, PAGE_LAYOUT, assert_contains
from ..strategies import markdown_paragraphs, tag_lists, titles

SITE = {"title": "Test Site", "baseurl": ""}


def make_composer(layouts: dict[str, str] | None = None, includes=None, site=None):
    env = Environment(loader=DictLoader(includes or {}))
    sources = {"default": DEFAULT_LAYOUT, "page": PAGE_LAYOUT}
    if layouts is not None:
        sources = layouts
    return PageComposer(env, LayoutSet.from_sources(env, sources), site or SITE)


def page(path="about.md", body="Hello.", **front_matter) -> ContentDocument:
    front_matter.setdefault("layout", "page")
    return ContentDocument(path, front_matter, body)


class TestLayoutResolution:
    """Layout chains, missing layouts and cycles."""

    def test_chain_innermost_first(self):
        chain = make_composer().resolve_layouts(page())
        assert [layout.name for layout in chain] == ["page", "default"]

    def test_layout_none(self):
        assert make_composer().resolve_layouts(page(layout="none")) == []

    def test_no_layout_declared_names_document(self):
        doc = ContentDocument("docs/setup.md", {"title": "Setup"}, "x")
        with pytest.raises(MissingLayoutError) as exc_info:
            make_composer().compose(doc)
        err = exc_info.value
        assert err.path == "docs/setup.md"
        assert "declares no layout" in err.message
        assert "default, page" in err.suggestion
        assert str(err).startswith("docs/setup.md: ")

    def test_unknown_layout_suggests(self):
        with pytest.raises(MissingLayoutError) as exc_info:
            make_composer().compose(page(layout="pgae"))
        err = exc_info.value
        assert err.layout == "pgae"
        assert err.path == "about.md"
        assert err.suggestion == "Did you mean 'page'?"

    def test_missing_parent_names_referrer(self):
        composer = make_composer({"post": "---\nlayout: base\n---\n{{ content }}"})
        with pytest.raises(MissingLayoutError) as exc_info:
            composer.compose(page(layout="post"))
        err = exc_info.value
        assert err.layout == "base"
        assert "(referenced by _layouts/post.html)" in err.message
        assert err.suggestion.startswith("Create _layouts/base.html")

    def test_cycle(self):
        composer = make_composer(
            {
                "a": "---\nlayout: b\n---\n{{ content }}",
                "b": "---\nlayout: a\n---\n{{ content }}",
            }
        )
        with pytest.raises(LayoutCycleError) as exc_info:
            composer.compose(page(layout="a"))
        assert exc_info.value.chain == ["a", "b", "a"]
        assert "a → b → a" in exc_info.value.message


class TestCompose:
    """Rendering bodies and layouts."""

    def test_markdown_through_layouts(self):
        result = make_composer().compose(
            page(title="About", tags=["python", "go"], body="Some **bold** text.")
        )
        assert_contains(
            result.html,
            "<title>About | Test Site</title>",
            "<h1>About</h1>",
            '<ul class="tags"><li>python</li><li>go</li></ul>',
            "<p>Some <strong>bold</strong> text.</p>",
        )
        assert result.url == "/about.html"

    def test_empty_tags_render_no_list(self):
        html = make_composer().compose(page(title="About", tags=[])).html
        assert "<ul" not in html
        assert "<li>" not in html

    def test_missing_tags_render_no_list(self):
        assert "<ul" not in make_composer().compose(page(title="About")).html

    def test_html_body_is_not_converted(self):
        doc = page("about.html", body="<div>*raw*</div>", layout="none")
        assert make_composer().compose(doc).html == "<div>*raw*</div>"

    def test_body_is_a_template(self):
        doc = page("about.html", body="{{ page.title | upcase }}", title="About", layout="none")
        assert make_composer().compose(doc).html == "ABOUT"

    def test_layout_front_matter_visible(self):
        composer = make_composer({"hero": "---\nbanner: big\n---\n{{ layout.banner }}|{{ content }}"})
        assert composer.compose(page("a.html", body="x", layout="hero")).html == "big|x"

    def test_page_content_in_layout(self):
        composer = make_composer({"raw": "{{ page.content }}"})
        assert composer.compose(page("a.md", body="Hi", layout="raw")).html == "<p>Hi</p>"

    def test_custom_front_matter_keys(self):
        composer = make_composer({"hero": "<img src=\"{{ page.hero_image }}\">{{ content }}"})
        doc = page("a.html", body="", layout="hero", hero_image="/x.png")
        assert composer.compose(doc).html == '<img src="/x.png">'

    def test_include_with_site_data(self):
        includes = {
            "skills.html": "{% for s in include.items %}{{ s.name }};{% endfor %}",
        }
        site = {"data": DataTables({"skills": [{"name": "Python"}, {"name": "Go"}]})}
        composer = make_composer(
            {"plain": "{% include skills.html items=site.data.skills %}{{ content }}"},
            includes=includes,
            site=site,
        )
        assert composer.compose(page("a.html", body="!", layout="plain")).html == "Python;Go;!"

    def test_missing_data_names_document(self):
        composer = make_composer(
            {"plain": "{{ content }}"},
            includes={"skills.html": "{% for s in site.data.skils %}{% endfor %}"},
            site={"data": DataTables({"skills": []})},
        )
        doc = page("about.md", body="{% include skills.html %}", layout="plain")
        with pytest.raises(MissingIncludeDataError) as exc_info:
            composer.compose(doc)
        assert exc_info.value.path == "about.md"
        assert exc_info.value.template == "skills.html"

    def test_layout_error_names_layout(self):
        composer = make_composer({"broken": "<p>\n{{ content | nope }}</p>"})
        with pytest.raises(TemplateRuntimeError) as exc_info:
            composer.compose(page("a.html", body="x", layout="broken"))
        assert exc_info.value.location == "_layouts/broken.html:2"

    def test_output_path_is_relative(self):
        result = make_composer().compose(page(permalink="/about/"))
        assert result.output_path.as_posix() == "about/index.html"

    @given(title=titles, tags=tag_lists, body=markdown_paragraphs)
    @settings(max_examples=50, deadline=None)
    def test_compose_is_idempotent(self, title: str, tags: list[str], body: str) -> None:
        composer = make_composer()
        doc = page(title=title, tags=tags, body=body)
        assert composer.compose(doc).html == composer.compose(doc).html
