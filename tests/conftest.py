"""Pytest configuration and fixtures for Quire tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from quire import DictLoader, Environment
from quire.environment import terminal
from quire.site import SiteBuilder, load_config


@pytest.fixture(autouse=True)
def _plain_terminal(monkeypatch):
    """Keep error text free of ANSI codes regardless of FORCE_COLOR."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def env():
    """Create a basic Quire Environment."""
    return Environment()


@pytest.fixture
def env_strict():
    """Create an Environment that raises on undefined variables."""
    return Environment(strict_variables=True)


@pytest.fixture
def env_with_loader():
    """Create an Environment with DictLoader and test includes."""
    loader = DictLoader(
        {
            "greeting.html": "Hello {{ include.name }}!",
            "tags.html": (
                "{% if include.tags.size > 0 %}<ul>"
                "{% for tag in include.tags %}<li>{{ tag }}</li>{% endfor %}"
                "</ul>{% endif %}"
            ),
            "skills.html": (
                "{% for skill in include.items %}"
                "{{ skill.name }}:{{ skill.level }}{% unless forloop.last %},{% endunless %}"
                "{% endfor %}"
            ),
            "nested/footer.html": "<footer>{% include greeting.html name='footer' %}</footer>",
            "loop.html": "{% include loop.html %}",
        }
    )
    return Environment(loader=loader)


SiteFactory = Callable[..., Path]


@pytest.fixture
def make_site(tmp_path: Path) -> SiteFactory:
    """Write a site source tree from a ``{relative path: text}`` mapping.

    Returns the source directory. The default config pins ``time`` so
    builds are reproducible.
    """

    def _make(files: dict[str, str], config: str | None = None) -> Path:
        source = tmp_path / "site"
        source.mkdir(exist_ok=True)
        (source / "_config.yml").write_text(
            config if config is not None else 'title: Test Site\ntime: "2024-01-01T00:00:00"\n'
        )
        for rel, text in files.items():
            path = source / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text)
        return source

    return _make


@pytest.fixture
def build_site(make_site: SiteFactory):
    """Write a site and build it; returns ``(report, destination)``."""

    def _build(files: dict[str, str], config: str | None = None, **kwargs):
        source = make_site(files, config)
        site_config = load_config(source)
        report = SiteBuilder(site_config, **kwargs).build()
        return report, site_config.destination_path

    return _build


DEFAULT_LAYOUT = (
    "<html><head><title>{{ page.title }} | {{ site.title }}</title></head>"
    "<body>{{ content }}</body></html>"
)

PAGE_LAYOUT = (
    "---\nlayout: default\n---\n"
    "<article><h1>{{ page.title }}</h1>"
    "{% if page.tags.size > 0 %}<ul class=\"tags\">"
    "{% for tag in page.tags %}<li>{{ tag }}</li>{% endfor %}</ul>{% endif %}"
    "{{ content }}</article>"
)


def assert_contains(result: str, *expected_parts: str) -> None:
    """Assert output contains all expected parts.

    Args:
        result: The rendered output.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in result, (
            f"Output missing expected content:\n  Missing: {part!r}\n  Actual: {result!r}"
        )
