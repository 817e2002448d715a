"""Content documents: field access, validation and routes."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from quire.site import ContentDocument, ParseError


def doc(path: str, **front_matter) -> ContentDocument:
    return ContentDocument(path, front_matter, "Body text.\n\nSecond paragraph.")


class TestFields:
    """Front matter fields."""

    def test_declared_fields(self):
        d = doc("about.md", title="About", style="wide", color="blue", description="Me")
        assert (d.title, d.style, d.color, d.description) == ("About", "wide", "blue", "Me")

    def test_missing_fields_are_none(self):
        d = doc("about.md")
        assert d.title is None
        assert d.layout is None
        assert d.weight is None
        assert d.tags == ()

    @pytest.mark.parametrize(
        ("tags", "expected"),
        [(["a", "b"], ("a", "b")), ("a b", ("a", "b")), ([], ()), (None, ())],
    )
    def test_tags(self, tags, expected):
        assert doc("x.md", tags=tags).tags == expected

    def test_weight_must_be_integer(self):
        with pytest.raises(ParseError) as exc_info:
            doc("about.md", weight="first")
        assert exc_info.value.path == "about.md"
        assert "'weight' must be an integer" in exc_info.value.message

    def test_weight_rejects_bool(self):
        with pytest.raises(ParseError):
            doc("about.md", weight=True)

    def test_tags_must_be_list_or_string(self):
        with pytest.raises(ParseError, match="'tags'"):
            doc("about.md", tags={"a": 1})

    def test_bad_date(self):
        with pytest.raises(ParseError, match="Invalid date"):
            doc("about.md", date="someday")

    def test_post_title_from_slug(self):
        assert doc("_posts/2024-03-05-hello-world.md").title == "Hello world"

    def test_excerpt(self):
        assert doc("a.md").excerpt == "Body text."

    def test_to_liquid(self):
        d = doc("about.md", title="About", permalink="/about/", hero="x.png", tags="a")
        page = d.to_liquid(content="<p>x</p>")
        assert page["title"] == "About"
        assert page["url"] == "/about/"
        assert page["hero"] == "x.png"
        assert page["tags"] == ["a"]
        assert page["content"] == "<p>x</p>"
        assert d.to_liquid()["content"] == d.body


class TestRoutes:
    """URL and output path derivation."""

    @pytest.mark.parametrize(
        ("path", "front_matter", "url"),
        [
            ("about.md", {"permalink": "/about/"}, "/about/"),
            ("about.md", {"permalink": "about/"}, "/about/"),
            ("about.md", {}, "/about.html"),
            ("index.html", {}, "/"),
            ("docs/index.md", {}, "/docs/"),
            ("docs/setup.markdown", {}, "/docs/setup.html"),
            ("feed.xml", {}, "/feed.xml"),
            ("_posts/2024-03-05-hello.md", {}, "/2024/03/05/hello.html"),
            (
                "_posts/2024-03-05-hello.md",
                {"date": "2024-04-01 10:00:00"},
                "/2024/04/01/hello.html",
            ),
            ("_posts/notes.md", {}, "/notes.html"),
        ],
    )
    def test_url(self, path, front_matter, url):
        assert ContentDocument(path, front_matter).url == url

    @pytest.mark.parametrize(
        ("url", "output"),
        [
            ("/about/", "about/index.html"),
            ("/", "index.html"),
            ("/about", "about/index.html"),
            ("/feed.xml", "feed.xml"),
            ("/2024/03/05/hello.html", "2024/03/05/hello.html"),
        ],
    )
    def test_output_path(self, tmp_path, url, output):
        d = ContentDocument("page.md", {"permalink": url})
        assert d.output_path(tmp_path) == tmp_path / Path(output)

    def test_post_detection(self):
        assert doc("_posts/2024-01-01-a.md").is_post
        assert not doc("posts/2024-01-01-a.md").is_post
        assert doc("_posts/2024-01-01-a.md").date == dt.datetime(2024, 1, 1)

    def test_custom_markdown_ext(self):
        d = ContentDocument("notes.mdown", {}, markdown_ext=(".mdown",))
        assert d.is_markdown
        assert d.url == "/notes.html"

    def test_invalid_date_in_post_name(self):
        with pytest.raises(ParseError, match="Invalid date in file name"):
            doc("_posts/2024-13-40-bad.md")

    @pytest.mark.parametrize("permalink", ["/../../escaped/", "blog/../../x.html"])
    def test_permalink_cannot_climb_out(self, permalink):
        with pytest.raises(ParseError, match="climbs out") as exc_info:
            doc("evil.md", permalink=permalink)
        assert exc_info.value.path == "evil.md"
