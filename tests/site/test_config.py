"""Site configuration loading."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from quire.site import ConfigError, SiteConfig, load_config


def write_config(tmp_path: Path, text: str) -> Path:
    (tmp_path / "_config.yml").write_text(text)
    return tmp_path


class TestLoadConfig:
    """``_config.yml`` parsing."""

    def test_defaults_without_file(self, tmp_path):
        config = load_config(tmp_path)
        assert config == SiteConfig(source=tmp_path)
        assert config.destination_path == tmp_path / "_site"
        assert config.layouts_path == tmp_path / "_layouts"

    def test_known_and_extra_keys(self, tmp_path):
        config = load_config(
            write_config(
                tmp_path,
                "title: My Site\nbaseurl: /blog\nexclude: [drafts, '*.log']\n"
                "author: Ada\nsocial:\n  github: ada\n",
            )
        )
        assert config.title == "My Site"
        assert config.baseurl == "/blog"
        assert config.exclude == ("drafts", "*.log")
        assert config.extra == {"author": "Ada", "social": {"github": "ada"}}

    def test_to_liquid_merges_extra(self, tmp_path):
        site = load_config(write_config(tmp_path, "title: T\nauthor: Ada\n")).to_liquid()
        assert site["title"] == "T"
        assert site["author"] == "Ada"
        assert site["baseurl"] == ""

    def test_markdown_ext_normalised(self, tmp_path):
        config = load_config(write_config(tmp_path, "markdown_ext: md,mdown\n"))
        assert config.markdown_ext == (".md", ".mdown")

    def test_time(self, tmp_path):
        config = load_config(write_config(tmp_path, "time: 2024-01-02\n"))
        assert config.time == dt.datetime(2024, 1, 2)

    def test_overrides_win(self, tmp_path):
        config = load_config(
            write_config(tmp_path, "destination: public\nfail_fast: false\n"),
            overrides={"destination": "/tmp/out", "fail_fast": True, "strict_variables": None},
        )
        assert config.destination_path == Path("/tmp/out")
        assert config.fail_fast is True
        assert config.strict_variables is False

    def test_explicit_config_file(self, tmp_path):
        other = tmp_path / "prod.yml"
        other.write_text("url: https://example.com\n")
        assert load_config(tmp_path, other).url == "https://example.com"

    def test_explicit_config_file_missing(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, tmp_path / "missing.yml")


class TestConfigErrors:
    """Invalid configuration is reported with its location."""

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            load_config(write_config(tmp_path, "title: ok\nexclude: [a\n"))
        assert exc_info.value.path == "_config.yml"
        assert exc_info.value.lineno is not None

    def test_undecodable_file(self, tmp_path):
        (tmp_path / "_config.yml").write_bytes(b"title: \xff\n")
        with pytest.raises(ConfigError, match="Cannot read") as exc_info:
            load_config(tmp_path)
        assert exc_info.value.path == "_config.yml"

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(write_config(tmp_path, "- a\n"))

    @pytest.mark.parametrize(
        "text",
        ["fail_fast: yes please\n", "exclude: 3\n", "time: tomorrow\n"],
    )
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(ConfigError):
            load_config(write_config(tmp_path, text))

    def test_config_error_is_parse_error(self):
        from quire.site import ParseError

        assert issubclass(ConfigError, ParseError)
