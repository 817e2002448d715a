"""``quire build`` command line."""

from __future__ import annotations

import logging

import pytest

from quire import __version__
from quire.cli import EXIT_FAILURE, EXIT_OK, EXIT_USAGE, build_parser, main

from .conftest import DEFAULT_LAYOUT, PAGE_LAYOUT

SITE = {
    "_layouts/default.html": DEFAULT_LAYOUT,
    "_layouts/page.html": PAGE_LAYOUT,
    "about.md": "---\nlayout: page\ntitle: About\npermalink: /about/\n---\nHello.",
}


@pytest.fixture(autouse=True)
def _restore_logger():
    """main() replaces the quire logger's handlers; put them back afterwards."""
    logger = logging.getLogger("quire")
    saved = (logger.handlers[:], logger.level, logger.propagate)
    yield
    logger.handlers[:], logger.level, logger.propagate = saved


class TestParser:
    """Argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args(["build"])
        assert str(args.source) == "."
        assert args.destination is None
        assert args.fail_fast is None

    def test_command_required(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == EXIT_USAGE

    def test_verbose_and_quiet_conflict(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["build", "-v", "-q"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out


class TestBuildCommand:
    """Exit codes and output."""

    def test_success(self, make_site, capsys):
        source = make_site(SITE)
        assert main(["build", "--source", str(source)]) == EXIT_OK
        assert (source / "_site" / "about" / "index.html").exists()
        out = capsys.readouterr().out
        assert "1 pages, 0 static files" in out

    def test_quiet(self, make_site, capsys):
        source = make_site(SITE)
        assert main(["build", "-s", str(source), "-q"]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_destination(self, make_site, tmp_path):
        source = make_site(SITE)
        out = tmp_path / "out"
        assert main(["build", "-s", str(source), "-d", str(out)]) == EXIT_OK
        assert "<h1>About</h1>" in (out / "about" / "index.html").read_text()

    def test_document_failure(self, make_site, capsys):
        source = make_site({**SITE, "orphan.md": "---\ntitle: Orphan\n---\nx"})
        assert main(["build", "-s", str(source)]) == EXIT_FAILURE
        err = capsys.readouterr().err
        assert "orphan.md" in err
        assert "Document declares no layout" in err
        assert "1 of 2 documents failed" in err
        assert (source / "_site" / "about" / "index.html").exists()

    def test_fail_fast(self, make_site, capsys):
        source = make_site({**SITE, "orphan.md": "---\ntitle: Orphan\n---\nx"})
        assert main(["build", "-s", str(source), "--fail-fast"]) == EXIT_FAILURE
        err = capsys.readouterr().err
        assert "Q-SITE-002" in err
        assert "Location: orphan.md" in err

    def test_bad_config(self, make_site, capsys):
        source = make_site(SITE, config="title: [\n")
        assert main(["build", "-s", str(source)]) == EXIT_FAILURE
        assert "_config.yml" in capsys.readouterr().err

    def test_missing_source(self, tmp_path, capsys):
        assert main(["build", "-s", str(tmp_path / "nope")]) == EXIT_USAGE
        assert "source directory not found" in capsys.readouterr().err
