"""Site configuration: ``_config.yml`` at the source root.

Known keys map onto :class:`SiteConfig` fields; every other key is kept in
``extra`` and exposed to templates under ``site``. A missing file means
all defaults.

Example:
    >>> config = load_config("my-site", overrides={"destination": "public"})
    >>> config.destination_path
    PosixPath('my-site/public')

"""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from quire.site.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE = "_config.yml"


@dataclass(frozen=True)
class SiteConfig:
    """Resolved build configuration.

    Directory fields are relative to ``source`` unless absolute.
    """

    source: Path = Path(".")
    destination: str = "_site"
    title: str = ""
    description: str = ""
    url: str = ""
    baseurl: str = ""
    layouts_dir: str = "_layouts"
    includes_dir: str = "_includes"
    data_dir: str = "_data"
    posts_dir: str = "_posts"
    markdown_ext: tuple[str, ...] = (".md", ".markdown")
    exclude: tuple[str, ...] = ()
    fail_fast: bool = False
    strict_variables: bool = False
    time: _dt.datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def _resolve(self, value: str) -> Path:
        path = Path(value)
        return path if path.is_absolute() else self.source / path

    @property
    def destination_path(self) -> Path:
        return self._resolve(self.destination)

    @property
    def layouts_path(self) -> Path:
        return self._resolve(self.layouts_dir)

    @property
    def includes_path(self) -> Path:
        return self._resolve(self.includes_dir)

    @property
    def data_path(self) -> Path:
        return self._resolve(self.data_dir)

    def to_liquid(self) -> dict[str, Any]:
        """Config keys as seen by templates (before ``pages``/``posts`` are added)."""
        site = dict(self.extra)
        site.update(
            {
                "title": self.title,
                "description": self.description,
                "url": self.url,
                "baseurl": self.baseurl,
            }
        )
        return site


_FIELD_NAMES = frozenset(f.name for f in fields(SiteConfig)) - {"source", "extra"}


def _coerce(key: str, value: Any, path: str) -> Any:
    if key in ("markdown_ext", "exclude"):
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"'{key}' must be a list", path=path)
        items = tuple(str(item) for item in value)
        if key == "markdown_ext":
            items = tuple(ext if ext.startswith(".") else f".{ext}" for ext in items)
        return items
    if key in ("fail_fast", "strict_variables"):
        if not isinstance(value, bool):
            raise ConfigError(f"'{key}' must be true or false, got {value!r}", path=path)
        return value
    if key == "time":
        if value is None or isinstance(value, _dt.datetime):
            return value
        if isinstance(value, _dt.date):
            return _dt.datetime(value.year, value.month, value.day)
        try:
            return _dt.datetime.fromisoformat(str(value))
        except ValueError:
            raise ConfigError(f"Invalid 'time' value {value!r}", path=path) from None
    return "" if value is None else str(value)


def load_config(
    source: str | Path,
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SiteConfig:
    """Read the site configuration for ``source``.

    Args:
        source: Site source directory
        config_file: Config path; defaults to ``<source>/_config.yml``
        overrides: Values that win over the file (command-line flags)

    Raises:
        ConfigError: The file is malformed or holds an invalid value
    """
    source = Path(source)
    path = Path(config_file) if config_file is not None else source / CONFIG_FILE
    display = path.name if config_file is None else str(path)

    raw: dict[str, Any] = {}
    if path.is_file():
        try:
            loaded = yaml.safe_load(path.read_text("utf-8"))
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            raise ConfigError(
                f"Invalid YAML: {getattr(exc, 'problem', None) or exc}",
                path=display,
                lineno=mark.line + 1 if mark is not None else None,
            ) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Cannot read configuration: {exc}", path=display) from exc
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError("Configuration must be a mapping of keys to values", path=display)
        raw = {str(key): value for key, value in (loaded or {}).items()}
        logger.debug("Read configuration from %s", path)
    elif config_file is not None:
        raise ConfigError("Configuration file not found", path=display)

    config = _from_mapping(source, raw, display)
    if overrides:
        values = {
            key: _coerce(key, value, display)
            for key, value in overrides.items()
            if value is not None and key in _FIELD_NAMES
        }
        config = replace(config, **values)
    return config


def _from_mapping(source: Path, raw: dict[str, Any], display: str) -> SiteConfig:
    known = {key: _coerce(key, raw[key], display) for key in raw if key in _FIELD_NAMES}
    extra = {key: value for key, value in raw.items() if key not in _FIELD_NAMES}
    return SiteConfig(source=source, extra=extra, **known)
